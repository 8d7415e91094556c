# symbols_awakening\adapters\__init__.py
"""
Infrastructure Adapters.

Concrete implementations of the Port defined in `symbols_awakening.core.ports`
and the transports that drive it:
- `api`: Primary Adapter (Driving) - FastAPI REST server.
- `mcp`: Primary Adapter (Driving) - MCP tool server over stdio.
- `persistence`: Secondary Adapters (Driven) - SQLAlchemy and in-memory backends.

Dependencies point INWARD. These modules depend on `symbols_awakening.core`,
but `symbols_awakening.core` never imports from here.
"""
