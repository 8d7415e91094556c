# symbols_awakening\shared\__init__.py
"""
Application context shared by every entry point.

- `config`: environment-driven `Settings` and storage backend selection.
- `logging_config`: structlog setup (stderr only).
- `container`: the dependency-injector `Container` that owns the repository.
"""
