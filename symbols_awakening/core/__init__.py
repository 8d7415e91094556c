# symbols_awakening\core\__init__.py
"""
Core Domain Layer.

This package contains the entities and the data-access contract of the system:
- No dependencies on frameworks (FastAPI, MCP).
- No dependencies on infrastructure (SQLAlchemy, files).
- Defines the Interface (Port) that every storage backend must implement.
"""
