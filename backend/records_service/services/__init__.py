# Services package init
"""
Records Service: Services Layer
=================================

What:  Persistence logic sitting between routes (HTTP) and the connection
       provider (MongoDB).

Service Inventory:
    - RecordStore: list / get / create / upsert of Record documents

Routes receive the store through FastAPI's dependency injection
(`get_record_store`), so tests can swap it via `app.dependency_overrides`.
"""
