# symbols_awakening\core\domain\__init__.py
"""
Domain Entities and Value Objects.

Symbols, symbol sets and the `Result` envelope returned by every data-access
operation. These models are devoid of any infrastructure logic.
"""
