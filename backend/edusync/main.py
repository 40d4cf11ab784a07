"""FastAPI application entrypoint.

This module wires the EduSync backend together: routers, the
application-wide authorization gate, error handlers, request logging
and CORS. Controllers are intentionally thin: they accept requests,
delegate to services, and return JSON responses.

Endpoints implemented:
- POST /api/auth/register
- POST /api/auth/login
- GET/POST /api/courses, GET/PUT/DELETE /api/courses/{course_id}
- GET/POST /api/assessments, GET/PUT/DELETE /api/assessments/{assessment_id}
- GET/POST /api/results, GET/PUT/DELETE /api/results/{result_id}
- GET /api/users, GET/PUT/DELETE /api/users/{user_id}
- GET /health
"""

import json
import logging
import os
import time
import uuid

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .auth import authorize
from .config import settings
from .database import create_db_and_tables
from .errors import AppError
from .routes import ROUTERS

app = FastAPI(title="EduSync API", dependencies=[Depends(authorize)])
logger = logging.getLogger("edusync.api")
if not logger.handlers:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

for router in ROUTERS:
    app.include_router(router)

create_db_and_tables()


def _server_error_body(exc: Exception) -> dict:
    if settings.is_dev:
        return {
            "message": "An error occurred while processing your request.",
            "error": str(exc),
            "type": type(exc).__name__,
        }
    return {"message": "An error occurred while processing your request. Please try again later."}


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    context = {
        "request_id": req_id,
        "path": request.url.path,
        "method": request.method,
        "client": request.client.host if request.client else "unknown",
    }
    response: Response
    try:
        response = await call_next(request)
    except Exception as exc:
        context["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception("request_failed %s", json.dumps(context, ensure_ascii=True))
        return JSONResponse(status_code=500, content=_server_error_body(exc), headers={"X-Request-ID": req_id})
    response.headers["X-Request-ID"] = req_id
    context["status_code"] = response.status_code
    context["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info("request_done %s", json.dumps(context, ensure_ascii=True))
    return response


# Added after the request middleware so it wraps it, and generic 500s carry CORS headers too.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Token-Expired", "X-Request-ID", "Location"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("app_error %s", exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed bodies, paths and queries as 400 with per-field messages."""
    errors = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        errors.setdefault(".".join(loc) or "body", []).append(err.get("msg", "invalid value"))
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}


def serve():
    """Run the API under uvicorn (the ``edusync-serve`` console script)."""
    import uvicorn
    uvicorn.run(
        "edusync.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    serve()
