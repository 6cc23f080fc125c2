# src/storefront/utils/auth.py
from __future__ import annotations

import logging
from typing import Optional, Literal, cast

from fastapi import Request, Depends, HTTPException
from fastapi.responses import JSONResponse, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.storefront.models.admin_user import AdminUser
from src.storefront.utils.csrf import ensure_csrf_cookie
from src.storefront.utils.database import get_db
from src.storefront.utils.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    decode_access_token,
    hash_password,
    needs_rehash,
    verify_password,
)

logger = logging.getLogger(__name__)

# -------------------------------------------------------------------
# Config
# -------------------------------------------------------------------
ACCESS_COOKIE_NAME = "admin-token"

_samesite_env = (settings.COOKIE_SAMESITE or "strict").strip().lower()
if _samesite_env not in ("lax", "strict", "none"):
    _samesite_env = "strict"

# Browsers require SameSite=None cookies to also be Secure
if _samesite_env == "none" and not settings.COOKIE_SECURE:
    _samesite_env = "lax"

COOKIE_SAMESITE = cast(Literal["lax", "strict", "none"], _samesite_env)
COOKIE_DOMAIN: Optional[str] = (settings.COOKIE_DOMAIN or "").strip() or None


# -------------------------------------------------------------------
# Cookie helpers
# -------------------------------------------------------------------
def _cookie_kwargs() -> dict:
    """
    - Include domain ONLY if it's set
    - path=/ so /api/admin routes receive the cookie
    """
    kw = {
        "secure": settings.COOKIE_SECURE,
        "samesite": COOKIE_SAMESITE,
        "path": "/",
    }
    if COOKIE_DOMAIN:
        kw["domain"] = COOKIE_DOMAIN
    return kw


def _set_access_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        ACCESS_COOKIE_NAME,
        access_token,
        httponly=True,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        **_cookie_kwargs(),
    )


def _clear_access_cookie(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE_NAME, path="/")
    if COOKIE_DOMAIN:
        response.delete_cookie(ACCESS_COOKIE_NAME, domain=COOKIE_DOMAIN, path="/")


def _user_payload(user: AdminUser) -> dict:
    return {"id": user.id, "email": user.email, "name": user.name, "role": user.role}


# -------------------------------------------------------------------
# Core auth
# -------------------------------------------------------------------
async def authenticate_admin(db: AsyncSession, email: str, password: str) -> Optional[AdminUser]:
    email = (email or "").strip().lower()
    if not email or not password:
        return None

    user = await db.scalar(select(AdminUser).where(AdminUser.email == email))
    if not user or not user.is_active:
        return None

    if not verify_password(password, user.password):
        return None

    # upgrade stale hashes on successful login
    if needs_rehash(user.password):
        user.password = hash_password(password)
        await db.commit()
        await db.refresh(user)
        logger.info("Password hash upgraded for %s", user.email)
    return user


def login_response(user: AdminUser, request: Request) -> JSONResponse:
    token = create_access_token({"sub": user.id, "email": user.email, "role": user.role})

    resp = JSONResponse({
        "success": True,
        "message": "Login successful",
        "user": _user_payload(user),
    })
    _set_access_cookie(resp, token)
    ensure_csrf_cookie(resp, request)

    logger.info("Admin login: %s", user.email)
    return resp


def logout_response() -> JSONResponse:
    resp = JSONResponse({"success": True, "message": "Logged out successfully"})
    _clear_access_cookie(resp)
    return resp


# -------------------------------------------------------------------
# Protected dependency
# -------------------------------------------------------------------
def _extract_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if auth_header:
        parts = auth_header.split(" ", 1)
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1].strip()

    cookie_tok = request.cookies.get(ACCESS_COOKIE_NAME)
    if cookie_tok:
        return cookie_tok.strip()

    return None


async def get_current_admin(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AdminUser:
    token = _extract_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = decode_access_token(token)
    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = await db.scalar(select(AdminUser).where(AdminUser.id == sub))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")
    return user
