# symbols_awakening\adapters\api\routers\__init__.py
"""
API Route Definitions.

Route handlers (controllers) organized by resource.
- `symbols`: CRUD, search and category listing for symbols.
- `symbol_sets`: CRUD and search for symbol sets.
- `categories`: Distinct categories and service information.
- `health`: System health checks.
"""
