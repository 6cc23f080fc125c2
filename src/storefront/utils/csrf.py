# src/storefront/utils/csrf.py
from __future__ import annotations

import os
import secrets
from typing import Optional

from fastapi import Request, HTTPException
from fastapi.responses import Response

from config.settings import settings

CSRF_COOKIE_NAME = os.getenv("CSRF_COOKIE_NAME", "XSRF-TOKEN")
CSRF_HEADER_NAME = os.getenv("CSRF_HEADER_NAME", "X-CSRF-Token")


def ensure_csrf_cookie(resp: Response, request: Request) -> None:
    # don't rotate on each request
    if CSRF_COOKIE_NAME in request.cookies:
        return
    token = secrets.token_urlsafe(32)
    resp.set_cookie(
        key=CSRF_COOKIE_NAME,
        value=token,
        httponly=False,                         # JS must read it to echo the header
        samesite="lax",
        secure=settings.COOKIE_SECURE,
        path="/",
    )


async def csrf_protect(request: Request) -> None:
    # skip safe methods
    if request.method in {"GET", "HEAD", "OPTIONS", "TRACE"}:
        return

    cookie_val: Optional[str] = request.cookies.get(CSRF_COOKIE_NAME)
    if not cookie_val:
        raise HTTPException(status_code=403, detail="CSRF cookie missing")

    token: Optional[str] = request.headers.get(CSRF_HEADER_NAME)
    if not token or not secrets.compare_digest(token, cookie_val):
        raise HTTPException(status_code=403, detail="CSRF token missing or invalid")
