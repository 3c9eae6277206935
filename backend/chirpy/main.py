import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from chirpy.auth.errors import AuthenticationRejectedError, AuthInfrastructureError
from chirpy.core.config import settings, require_jwt_secret
from chirpy.routes.auth import router as auth_router
from chirpy.routes.users import router as users_router
from chirpy.routes.webhooks import router as webhooks_router

logger = logging.getLogger(__name__)

require_jwt_secret()

app = FastAPI(title="Chirpy")
logger.info(
    "Startup config: ENV=%s issuer=%s access_ttl_min=%s refresh_ttl_days=%s",
    settings.ENV,
    settings.JWT_ISSUER,
    settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    settings.REFRESH_TOKEN_EXPIRE_DAYS,
)

_ERROR_CODE_BY_STATUS: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
}

# One body for every credential rejection; the cause only goes to the logs.
_UNAUTHORIZED_MESSAGE = "Could not validate credentials"
_INTERNAL_MESSAGE = "Internal server error"


def _error_code(status_code: int) -> str:
    return _ERROR_CODE_BY_STATUS.get(int(status_code), "HTTP_ERROR")


@app.exception_handler(HTTPException)
def http_exception_handler(request: Request, exc: HTTPException):  # noqa: ARG001
    detail = exc.detail
    message: str
    details: dict | None = None

    if isinstance(detail, str):
        message = detail
    elif isinstance(detail, dict):
        msg = detail.get("message")
        message = msg if isinstance(msg, str) and msg else "Request failed"
        det = detail.get("details")
        details = det if isinstance(det, dict) else None
    else:
        message = str(detail) if detail is not None else "Request failed"

    payload: dict = {"error": _error_code(exc.status_code), "message": message}
    if details:
        payload["details"] = details
    return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Invalid request payload",
            "details": {"errors": exc.errors()},
        },
    )


@app.exception_handler(AuthenticationRejectedError)
def auth_rejected_handler(request: Request, exc: AuthenticationRejectedError):
    logger.info(
        "Auth rejected on %s %s: %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc,
    )
    return JSONResponse(
        status_code=401,
        content={"error": "UNAUTHORIZED", "message": _UNAUTHORIZED_MESSAGE},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(AuthInfrastructureError)
def auth_infrastructure_handler(request: Request, exc: AuthInfrastructureError):
    logger.error(
        "Auth infrastructure failure on %s %s: %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": _INTERNAL_MESSAGE},
    )


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(webhooks_router)

@app.get("/api/healthz")
def health_check():
    return {"status": "ok"}
