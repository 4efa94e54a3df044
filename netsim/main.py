from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from netsim.api.router import api_router
from netsim.config import settings
from netsim.core.simulator.runtime import runtime
from netsim.utils.error_codes import ERROR_MESSAGES, ErrorCode
from netsim.utils.exceptions import NetsimException
from netsim.utils.observability import configure_logging


logger = logging.getLogger(__name__)


async def _start_storage(app: FastAPI) -> None:
    """Load the mirrored topology and start mirroring. Failures never block startup."""
    from netsim.core.simulator.storage import StorageMirror, load_topology
    from netsim.db.session import AsyncSessionLocal

    sim = app.state.runtime
    try:
        devices, connections = await load_topology(AsyncSessionLocal)
        if devices or connections:
            sim.load_topology(devices, connections)
    except Exception:
        logger.exception("lifespan.simulator_load_failed (non-fatal)")

    mirror = StorageMirror(events=sim.events, session_factory=AsyncSessionLocal)
    try:
        await mirror.start()
        app.state.storage_mirror = mirror
    except Exception:
        logger.exception("lifespan.simulator_mirror_start_failed (non-fatal)")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    app.state.storage_mirror = None

    from netsim.db.session import engine, init_models

    try:
        await init_models()
    except Exception:
        logger.exception("lifespan.db_init_failed (non-fatal)")

    if settings.SIMULATOR_DB_ENABLED:
        await _start_storage(app)

    if settings.SIMULATOR_SEED_DEMO and app.state.runtime.seed_demo():
        logger.info("lifespan.simulator_demo_seeded")

    try:
        yield
    finally:
        try:
            await app.state.runtime.shutdown()
        except Exception:
            logger.exception("simulator.runtime.shutdown_failed")

        mirror = getattr(app.state, "storage_mirror", None)
        if mirror is not None:
            try:
                await mirror.stop()
            finally:
                app.state.storage_mirror = None

        await engine.dispose()


app = FastAPI(title="Network Simulator Backend", debug=settings.DEBUG, lifespan=lifespan)
app.state.runtime = runtime

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=settings.CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    from netsim.utils.request_id import request_id_var, new_request_id, validate_request_id

    incoming_rid = request.headers.get("X-Request-ID")
    rid = validate_request_id(incoming_rid) or new_request_id()
    token = request_id_var.set(rid)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)

    response.headers["X-Request-ID"] = rid
    return response


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    if not settings.METRICS_ENABLED:
        return await call_next(request)

    start = time.perf_counter()
    response = await call_next(request)
    elapsed_s = time.perf_counter() - start

    from netsim.utils.metrics import HTTP_REQUESTS_TOTAL, HTTP_REQUEST_DURATION_SECONDS

    # Route templates keep label cardinality low; unmatched paths share one label.
    route = request.scope.get("route")
    route_path = getattr(route, "path", None)
    path_label = route_path if isinstance(route_path, str) and route_path else "__unmatched__"
    method = request.method
    HTTP_REQUESTS_TOTAL.labels(method=method, path=path_label, status=str(response.status_code)).inc()
    HTTP_REQUEST_DURATION_SECONDS.labels(method=method, path=path_label).observe(elapsed_s)
    return response


@app.exception_handler(NetsimException)
async def netsim_exception_handler(request: Request, exc: NetsimException):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    # Validator exceptions in "ctx" are not JSON-serializable.
    errors = [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": ERROR_MESSAGES[ErrorCode.E002],
            "details": {"code": ErrorCode.E002.value, "errors": jsonable_encoder(errors)},
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Route {request.url.path} not found"
    else:
        message = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    from netsim.utils.request_id import current_request_id

    logger.exception("http.unhandled_error path=%s request_id=%s", request.url.path, current_request_id())
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": ERROR_MESSAGES[ErrorCode.E010]},
    )


app.include_router(api_router, prefix="/api/v1")


if settings.METRICS_ENABLED:

    @app.get("/metrics")
    async def metrics():
        from netsim.utils.metrics import render_metrics

        payload, content_type = render_metrics()
        return Response(content=payload, media_type=content_type)
