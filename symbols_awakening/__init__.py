# symbols_awakening\__init__.py
"""
Symbols Awakening - symbolic ontology server.

This package exposes a dataset of symbols and symbol sets through two thin
adapters (an MCP tool server over stdio and a FastAPI REST API) that share a
single data-access contract, following Hexagonal Architecture (Ports & Adapters).
"""

__version__ = "0.1.0"
