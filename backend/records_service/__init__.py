"""
Records Service: Application Package Initializer
==================================================

What: Marks the `records_service` directory as a Python package.
Who:  Used by uvicorn (`records_service.main:app`) and by pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │       Services (Record Store)       │  ← CRUD against one collection
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← Record entity + API payloads
    ├─────────────────────────────────────┤
    │   Database (Connection Provider)    │  ← Timed, verified PyMongo clients
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
