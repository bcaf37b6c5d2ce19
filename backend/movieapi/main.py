import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from movieapi.core.config import require_jwt_secret, settings
from movieapi.core.database import database_version, get_db
from movieapi.core.errors import AuthError, ErrorKind, kind_for_status
from movieapi.core.logging_config import configure_logging
from movieapi.middleware.request_log import register_request_logging
from movieapi.routes.users import router as users_router

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

require_jwt_secret()

app = FastAPI(title=settings.PROJECT_NAME)
logger.info(
    "Startup config: ENV=%s algorithm=%s access_ttl=%ss refresh_ttl=%ss",
    settings.ENV,
    settings.JWT_ALGORITHM,
    settings.ACCESS_TOKEN_EXPIRE_SECONDS,
    settings.REFRESH_TOKEN_EXPIRE_SECONDS,
)


def _error_payload(kind: ErrorKind, message: str) -> dict:
    return {"error": True, "code": kind.value, "message": message}


@app.exception_handler(AuthError)
def auth_error_handler(request: Request, exc: AuthError):  # noqa: ARG001
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException):  # noqa: ARG001
    detail = exc.detail
    message = detail if isinstance(detail, str) and detail else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(kind_for_status(exc.status_code), message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
    # Malformed input is always a 400 here, never FastAPI's default 422.
    return JSONResponse(
        status_code=400,
        content={
            **_error_payload(ErrorKind.BAD_REQUEST, "Invalid request payload"),
            "details": {"errors": _serializable_errors(exc)},
        },
    )


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=_error_payload(ErrorKind.INTERNAL, "Internal server error"),
    )


def _serializable_errors(exc: RequestValidationError) -> list[dict]:
    out: list[dict] = []
    for err in exc.errors():
        out.append(
            {
                "loc": [str(part) for part in err.get("loc", ())],
                "msg": str(err.get("msg", "")),
                "type": str(err.get("type", "")),
            }
        )
    return out


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_request_logging(app)

app.include_router(users_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/health/db")
def database_health_check(db: Session = Depends(get_db)):
    try:
        version = database_version(db)
    except SQLAlchemyError as e:
        logger.exception("Database health check failed")
        raise AuthError.internal("Database unavailable") from e
    return {"status": "ok", "database": version}
