import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.config import settings
from storefront.database import create_db_and_tables
from storefront.errors import StorefrontError, UpstreamUnavailableError
from storefront.routes import admin, auth, books, content, health, orders, payments
from storefront.services.storage import THUMBNAILS

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("storefront")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local; elsewhere alembic owns the schema
    if settings.env == "local":
        create_db_and_tables()
    yield


app = FastAPI(title="PDF Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------- ERROR MAPPING --------
# every error leaves the API as {"message": ...}

@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = "Route not found"
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(OperationalError)
async def database_error_handler(request: Request, exc: OperationalError):
    logger.error(f"Database unavailable during {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=UpstreamUnavailableError.status_code,
        content={"message": "Database unavailable. Please try again later."},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error during {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(books.router, prefix="/books", tags=["Books"])
app.include_router(payments.router, prefix="/payments", tags=["Payments"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(content.router, prefix="/items", tags=["Content"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])
app.include_router(health.router, prefix="/health", tags=["Health"])

# thumbnails are public; PDFs only go out through /items/{id}/content
if settings.storage_backend.lower() == "disk":
    THUMBNAIL_DIR = os.path.join(settings.upload_dir, THUMBNAILS)
    os.makedirs(THUMBNAIL_DIR, exist_ok=True)
    app.mount("/uploads/thumbnails", StaticFiles(directory=THUMBNAIL_DIR), name="thumbnails")


@app.get("/")
def root():
    return {
        "auth_endpoints": ["/auth/register", "/auth/login", "/auth/me"],
        "book_endpoints": ["/books", "/books/{book_id}"],
        "payment_endpoints": ["/payments/create-order", "/payments/verify"],
        "order_endpoints": ["/orders/my", "/orders"],
        "content_endpoints": ["/items/{book_id}/content"],
        "admin_endpoints": ["/admin/reconcile-grants"],
    }
