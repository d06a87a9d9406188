# Middleware package init
"""
Records Service: Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [Metrics] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID for logs and Sentry events
    2. Logging: access log line with the request ID
    3. Metrics: Prometheus count / duration per route template
    4. GZip, CORS: Starlette's stock middleware
"""
