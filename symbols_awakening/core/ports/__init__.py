# symbols_awakening\core\ports\__init__.py
"""
Core Ports (Interfaces).

This package defines the Protocols that the storage adapters must implement.
Both the MCP tool server and the REST API talk to the symbol dataset only
through these interfaces, never through a concrete backend.
"""

from .symbol_repository import ISymbolRepository

__all__ = [
    "ISymbolRepository",
]
