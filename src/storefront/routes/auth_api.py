# src/storefront/routes/auth_api.py
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.storefront.models.admin_user import AdminUser
from src.storefront.schemas.auth import LoginRequest
from src.storefront.utils.auth import (
    authenticate_admin,
    get_current_admin,
    login_response,
    logout_response,
)
from src.storefront.utils.csrf import csrf_protect
from src.storefront.utils.database import get_db

auth_api = APIRouter(tags=["Admin Auth"])


@auth_api.post("/login", dependencies=[Depends(csrf_protect)])
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate_admin(db, body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return login_response(user, request)


@auth_api.post("/logout", dependencies=[Depends(csrf_protect)])
async def logout():
    return logout_response()


@auth_api.get("/me")
async def me(current_admin: AdminUser = Depends(get_current_admin)):
    return {
        "success": True,
        "user": {
            "id": current_admin.id,
            "email": current_admin.email,
            "name": current_admin.name,
            "role": current_admin.role,
        },
    }
