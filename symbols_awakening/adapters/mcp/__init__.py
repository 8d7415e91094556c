# symbols_awakening\adapters\mcp\__init__.py
"""
MCP Adapter.

Exposes the repository port as Model Context Protocol tools, resources and
prompts over stdio.
"""

from .server import build_server, serve_stdio
from .tools import SymbolsToolService

__all__ = ["SymbolsToolService", "build_server", "serve_stdio"]
