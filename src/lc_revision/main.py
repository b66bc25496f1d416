import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from structlog import contextvars as structlog_contextvars

from . import __version__
from .logging import configure_logging, logger
from .middleware import RequestIDMiddleware
from .routers import health, problems, revisions
from .scheduling import CollaboratorUnavailableError, InvalidOutcomeError

configure_logging()
app = FastAPI(title="LC Revision API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def access_log(request: Request, call_next):
    start = time.time()
    path = request.url.path
    method = request.method
    request_id = getattr(request.state, "request_id", None)
    structlog_contextvars.bind_contextvars(request_id=request_id)
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        latency_ms = (time.time() - start) * 1000
        logger.info(
            "request_complete",
            path=path,
            method=method,
            status_code=status_code,
            latency_ms=round(latency_ms, 2),
        )
        structlog_contextvars.clear_contextvars()


# リクエストID付与（アクセスログより外側で実行させるため後から追加）
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(CollaboratorUnavailableError)
async def _collaborator_unavailable(request: Request, exc: CollaboratorUnavailableError) -> JSONResponse:
    logger.warning("collaborator_unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=503,
        content={"detail": "Revision store temporarily unavailable"},
        headers={"Retry-After": "1"},
    )


@app.exception_handler(InvalidOutcomeError)
async def _invalid_outcome(request: Request, exc: InvalidOutcomeError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"detail": "Invalid outcome. Must be SUCCESS, PARTIAL, or FAIL"},
    )


app.include_router(health.router)  # ヘルスチェック
app.include_router(problems.router, prefix="/api/problems")
app.include_router(revisions.router, prefix="/api/revisions")
