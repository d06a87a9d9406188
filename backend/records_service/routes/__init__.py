# Routes package init
"""
Records Service: API Routes Package
=====================================

Route Inventory:
    - records.py:  GET/PUT/POST /api/v1/records, GET /api/v1/records/{id}
    - health.py:   GET /health, GET /ping
    - examples.py: GET /, /time, /api/v1/example/helloworld, /product/{id},
                   /debug/error (opt-in)
    - metrics.py:  GET /metrics (path configurable)

Routes stay thin: extract input, call the record store, shape the response.
"""
