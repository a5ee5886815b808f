import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from app.config import get_settings
from app.database import engine, init_db
from app.errors import ServiceError
from app.routers import message_router, todo_router, user_router

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# range hints appended to "invalid <param> parameter"
PARAM_HINTS = {"page_size": " (1-100)"}


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request"
    first = errors[0]
    raw_loc = tuple(first.get("loc", ()))
    if len(raw_loc) > 1 and raw_loc[0] == "body" and isinstance(raw_loc[1], int):
        # malformed JSON reports a character offset
        return "invalid request payload"
    loc = [str(part) for part in raw_loc]
    if loc and loc[0] in ("query", "path"):
        return f"invalid {loc[-1]} parameter{PARAM_HINTS.get(loc[-1], '')}"
    field = ".".join(loc[1:]) if len(loc) > 1 else "body"
    return f"{field}: {first.get('msg', 'invalid value')}"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        logger.warning("%s %s validation failed: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("%s %s unhandled error", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "internal server error"})


@asynccontextmanager
async def lifespan(app: FastAPI):
    if get_settings().auto_create_tables:
        await init_db()
    yield
    await engine.dispose()


def create_app(*routers: tuple[APIRouter, str], title: str = "Todo API") -> FastAPI:
    """Build an app serving ``routers``, each given as ``(router, prefix)``."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title=title, lifespan=lifespan)
    register_exception_handlers(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=settings.allow_credentials,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Authorization"],
        expose_headers=["Content-Length"],
    )
    for router, prefix in routers:
        app.include_router(router, prefix=prefix)
    return app


TODOS = (todo_router.router, "/api/todos")
USERS = (user_router.router, "/api")
MESSAGES = (message_router.router, "/api")

app = create_app(TODOS, USERS, MESSAGES)


# Root health
@app.get("/")
async def read_root():
    return {"status": "ok"}
