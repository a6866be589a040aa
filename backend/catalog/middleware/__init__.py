# Middleware package init
"""
Catalog Backend — Middleware Package
====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit first (only when rate_limit_enabled): reject floods early
    2. Request ID: correlation ID for every log line of the request
    3. Logging: access line with status and duration
"""
