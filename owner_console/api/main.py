import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from owner_console.api.middleware import request_logging_middleware
from owner_console.api.routes.billing import router as billing_router
from owner_console.api.routes.organizations import router as organizations_router
from owner_console.api.routes.plans import router as plans_router
from owner_console.api.routes.webhooks import router as webhooks_router
from owner_console.api.routes.whoami import router as whoami_router
from owner_console.core.config import settings
from owner_console.core.errors import ConsoleError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Owner Console")
app.middleware("http")(request_logging_middleware)
app.include_router(organizations_router, prefix="/api/v1")
app.include_router(plans_router, prefix="/api/v1")
app.include_router(billing_router, prefix="/api/v1")
app.include_router(whoami_router, prefix="/api/v1")
app.include_router(webhooks_router, prefix="/api/v1")


@app.exception_handler(ConsoleError)
async def console_error_handler(request: Request, exc: ConsoleError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in {"body", "query", "path"}]
        field_errors.setdefault(".".join(location) or "body", []).append(error.get("msg", "Invalid value"))
    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation failed",
            "error_type": "validation_error",
            "field_errors": field_errors,
        },
    )


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    return {"status": "ok"}
