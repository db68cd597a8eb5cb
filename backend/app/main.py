from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError, StorageError
from app.core.logging_config import get_logger  # registers the storefront handlers on import
from app.api.v1.api import api_router

logger = get_logger("main")

ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization"]

# Domain error -> HTTP status
DOMAIN_ERROR_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

app = FastAPI(
    title=settings.APP_NAME,
    description="Storefront: catalog, sale programs, discounts and carts",
    version="1.0.0",
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=ALLOWED_METHODS,
    allow_headers=ALLOWED_HEADERS,
)


@app.on_event("startup")
async def startup_event():
    """Migrations are applied by run_server.py before uvicorn starts."""
    logger.info(f"=== {settings.APP_NAME} started (environment={settings.ENVIRONMENT}) ===")


def cors_headers_for(request: Request) -> dict:
    """
    CORS headers for error responses.

    Responses built by exception handlers can bypass CORSMiddleware, and the
    storefront runs cross-origin with credentials, so errors echo the origin
    back explicitly when it is an allowed one.
    """
    origin = request.headers.get("origin")
    if not origin or origin not in settings.CORS_ORIGINS:
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
        "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
    }


def _json_error(request: Request, status_code: int, content: dict, extra_headers: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={**cors_headers_for(request), **(extra_headers or {})},
    )


async def domain_error_handler(request: Request, exc):
    status_code = next(code for cls, code in DOMAIN_ERROR_STATUS.items() if isinstance(exc, cls))
    if status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.detail}")
    return _json_error(request, status_code, {"detail": exc.message, "error": jsonable_encoder(exc.detail)})


for _error_cls in DOMAIN_ERROR_STATUS:
    app.add_exception_handler(_error_cls, domain_error_handler)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _json_error(request, exc.status_code, {"detail": exc.detail}, exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _json_error(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        {"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _json_error(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"detail": "Internal server error", "error": str(exc) if settings.DEBUG else "An error occurred"},
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
