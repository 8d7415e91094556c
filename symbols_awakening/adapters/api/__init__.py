# symbols_awakening\adapters\api\__init__.py
"""
REST API Adapter.

The HTTP entry point for the symbols ontology, built on FastAPI:
- It depends on `symbols_awakening.core` (models and the repository port).
- It reads the repository from the container kept on `app.state`.
- It does NOT contain business logic; every route maps a `Result` to a response.
"""

from .main import create_app

__all__ = ["create_app"]
