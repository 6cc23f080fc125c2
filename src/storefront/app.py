# src/storefront/app.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import settings
from src.storefront.middleware.security_headers import security_headers_middleware
from src.storefront.utils.csrf import ensure_csrf_cookie
from src.storefront.utils.error_handler import custom_exception_handler

from src.storefront.routes.auth_api import auth_api
from src.storefront.routes.menus_api import router as menus_router
from src.storefront.routes.menu_admin_api import router as menu_admin_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title=settings.APP_NAME, version="1.0")

# ----------------------------------------------------------
# SECURITY HEADERS
# ----------------------------------------------------------
app.middleware("http")(security_headers_middleware)

# ----------------------------------------------------------
# GLOBAL XSRF TOKEN SEEDING
# ----------------------------------------------------------
@app.middleware("http")
async def seed_xsrf_cookie(request: Request, call_next):
    resp = await call_next(request)
    if request.method == "GET":
        ensure_csrf_cookie(resp, request)
    return resp

# ----------------------------------------------------------
# CUSTOM ERROR HANDLERS
# ----------------------------------------------------------
# 1) HTTP errors (routing 404 and the ones raised in handlers)
app.add_exception_handler(StarletteHTTPException, custom_exception_handler)

# 2) Validation errors
app.add_exception_handler(RequestValidationError, custom_exception_handler)

# 3) Unhandled database constraint errors
app.add_exception_handler(IntegrityError, custom_exception_handler)

# 4) Catch-all
app.add_exception_handler(Exception, custom_exception_handler)

# ----------------------------------------------------------
# ROUTERS
# ----------------------------------------------------------
app.include_router(menus_router)
app.include_router(auth_api, prefix="/api/admin/auth")
app.include_router(menu_admin_router)


@app.get("/health", include_in_schema=False)
async def health():
    return {"status": "ok"}
