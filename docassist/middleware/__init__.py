"""
Document AI Assistant — Middleware Package
===========================================

    Request → [Request Context] → [GZip] → [CORS] → Route Handler

RequestContextMiddleware assigns the correlation id, and after the handler
returns writes one access-log line that includes the authenticated owner
(set by the security dependency while the request was processed).
"""
