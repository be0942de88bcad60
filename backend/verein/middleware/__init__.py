# Middleware package init
"""
Verein Backend - Middleware Package
====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: take X-Request-ID from the client or generate one
    2. Logging: access log line with the request ID, status and duration

    The order is reversed for responses, so the access log sees the final
    status code and the request ID ends up in the response headers.
"""
