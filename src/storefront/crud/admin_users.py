# src/storefront/crud/admin_users.py
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.storefront.models.admin_user import AdminUser
from src.storefront.utils.security import hash_password


async def get_admin_by_email(db: AsyncSession, email: str) -> Optional[AdminUser]:
    return await db.scalar(select(AdminUser).where(AdminUser.email == (email or "").strip().lower()))


async def create_admin(
    db: AsyncSession,
    email: str,
    password: str,
    name: Optional[str] = None,
    role: str = "ADMIN",
) -> AdminUser:
    user = AdminUser(
        email=email.strip().lower(),
        name=(name or "").strip() or None,
        password=hash_password(password),
        role=role.strip().upper(),
        is_active=True,
    )
    db.add(user)
    try:
        await db.commit()
        await db.refresh(user)
    except IntegrityError:
        await db.rollback()
        raise
    return user
