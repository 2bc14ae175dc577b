"""
Agent — search tools for LLM agents.

The tools are plain LangChain ``@tool`` callables, so they can be bound
to any tool-calling chat model or served over MCP
(:mod:`corpus_rag.mcp_server.server`).
"""

from corpus_rag.agent.tools import TOOL_REGISTRY, search_chat, search_code, search_documentation

__all__ = [
    "TOOL_REGISTRY",
    "search_chat",
    "search_code",
    "search_documentation",
]
