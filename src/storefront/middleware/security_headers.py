# src/storefront/middleware/security_headers.py

from fastapi import Request

from config.settings import settings


async def security_headers_middleware(request: Request, call_next):
    resp = await call_next(request)
    # JSON API only; /docs pulls its UI from a CDN
    if request.url.path.startswith("/api"):
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"
    resp.headers["X-Content-Type-Options"] = "nosniff"
    resp.headers["X-Frame-Options"] = "DENY"
    resp.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
    if settings.COOKIE_SECURE:
        # HTTPS deployments only
        resp.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"
    # admin responses carry per-user data
    if request.url.path.startswith("/api/admin"):
        resp.headers["Cache-Control"] = "no-store"
    return resp
