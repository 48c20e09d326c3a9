"""
Notekeeper Backend — Middleware Package
========================================

Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [CORS] → [Request ID] → [Logging] → [Rate Limit] → Route Handler

    1. CORS outermost: preflight OPTIONS requests are answered before they
       spend admission budget, and 429 responses still carry CORS headers
       so the browser client can read the status.
    2. Request ID: correlation ID on every response, 429s included
    3. Logging: request line with status and duration, 429s included
    4. Rate Limit: reject over-budget requests before any route runs
"""
