"""MCP (Model Context Protocol) server exposing the corpus search tools."""
