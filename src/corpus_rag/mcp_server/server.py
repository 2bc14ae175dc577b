"""MCP server exposing the corpus search tools over stdio."""

from __future__ import annotations

import asyncio
import json
import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from corpus_rag.agent.tools import DEFAULT_N_RESULTS, MAX_N_RESULTS, TOOL_COLLECTIONS, TOOL_REGISTRY, run_search

logger = logging.getLogger(__name__)

server = Server("corpus-rag")


def _input_schema(collection: str) -> dict:
    return {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": f"The search query for the {collection} collection."},
            "n_results": {
                "type": "integer",
                "default": DEFAULT_N_RESULTS,
                "description": f"Number of results to return (max {MAX_N_RESULTS}).",
            },
        },
        "required": ["query"],
    }


@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name=name,
            description=TOOL_REGISTRY[name].description,
            inputSchema=_input_schema(collection),
        )
        for name, collection in TOOL_COLLECTIONS.items()
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    collection = TOOL_COLLECTIONS.get(name)
    if collection is None:
        payload = {"error": {"type": "ValidationError", "message": f"Unknown tool: {name}"}}
        return [TextContent(type="text", text=json.dumps(payload))]

    query = arguments.get("query", "")
    n_results = arguments.get("n_results", DEFAULT_N_RESULTS)
    # The search is blocking I/O; keep it off the event loop.
    text = await asyncio.to_thread(run_search, name, collection, query, n_results)
    return [TextContent(type="text", text=text)]


async def main() -> None:
    async with stdio_server() as (read, write):
        await server.run(read, write, server.create_initialization_options())


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
