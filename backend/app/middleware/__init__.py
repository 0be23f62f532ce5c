# Middleware package init
"""
Eclairum Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit: reject abusive clients before any processing
    2. Request ID: correlation ID for every log line and error body
    3. Logging: one access line per request, with status and duration
    4. GZip / CORS: Starlette built-ins

    Responses travel back through the same chain in reverse.
"""
