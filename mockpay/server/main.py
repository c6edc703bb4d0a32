"""HTTP binding for the mock engine.

Lets several client processes share one in-memory mock over plain HTTP. The
routes only shape requests: parse parameters, call the service, render the
record or the structured error.
"""

from time import perf_counter

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mockpay.common.config import settings
from mockpay.common.errors import InvalidRequest
from mockpay.common.logging import configure_logging, logger, new_request_id, request_id_ctx
from mockpay.common.metrics import (
    http_request_duration_seconds,
    http_requests_total,
    invalid_requests_total,
    metrics_response,
)
from mockpay.common.startup import log_startup_config
from mockpay.engine.context import MockContext
from mockpay.engine.service import MockPaymentService
from mockpay.server.params import request_params

configure_logging()
log_startup_config(settings)
service = MockPaymentService(MockContext(settings))
app = FastAPI(title="mockpay")


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Record request count and latency for every HTTP call."""

    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    token = request_id_ctx.set(request.headers.get("request-id") or new_request_id())
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        response.headers["request-id"] = request_id_ctx.get()
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()
        request_id_ctx.reset(token)


@app.exception_handler(InvalidRequest)
async def invalid_request_handler(request: Request, exc: InvalidRequest):
    """Render engine errors the way the real service does."""

    invalid_requests_total.labels(
        service=settings.service_name,
        param=exc.param or "",
        status_code=str(exc.http_status),
    ).inc()
    logger.info(
        "request_rejected path=%s status=%s param=%s message=%s",
        request.url.path,
        exc.http_status,
        exc.param,
        exc.message,
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.post("/v1/tokens")
async def create_token(request: Request):
    """Tokenize `card[...]` details into a single-use token."""

    params = await request_params(request)
    token_id = service.generate_source_token(params.get("card"))
    return service.retrieve_token(token_id).to_dict()


@app.post("/v1/charges")
async def create_charge(request: Request):
    params = await request_params(request)
    return service.create_charge(params).to_dict()


@app.get("/v1/charges")
async def list_charges(request: Request):
    params = await request_params(request)
    page = service.list_charges(
        customer=params.get("customer"),
        limit=params.get("limit"),
        starting_after=params.get("starting_after"),
        expand=params.get("expand"),
    )
    return page.to_dict()


@app.get("/v1/charges/{charge_id}")
async def retrieve_charge(charge_id: str, request: Request):
    params = await request_params(request)
    return service.retrieve_charge(charge_id, expand=params.get("expand")).to_dict()


@app.post("/v1/charges/{charge_id}/capture")
async def capture_charge(charge_id: str, request: Request):
    params = await request_params(request)
    return service.capture_charge(charge_id, amount=params.get("amount")).to_dict()


@app.post("/v1/customers")
async def create_customer(request: Request):
    params = await request_params(request)
    return service.create_customer(params).to_dict()


@app.get("/v1/customers")
async def list_customers(request: Request):
    params = await request_params(request)
    return service.list_customers(limit=params.get("limit"), starting_after=params.get("starting_after")).to_dict()


@app.get("/v1/customers/{customer_id}")
async def retrieve_customer(customer_id: str, request: Request):
    params = await request_params(request)
    return service.retrieve_customer(customer_id, expand=params.get("expand")).to_dict()


@app.post("/v1/customers/{customer_id}/sources")
async def create_customer_source(customer_id: str, request: Request):
    params = await request_params(request)
    return service.create_customer_source(customer_id, params.get("source")).to_dict()


@app.get("/v1/balance_transactions/{txn_id}")
def retrieve_balance_transaction(txn_id: str):
    return service.retrieve_balance_transaction(txn_id).to_dict()


@app.post("/_mock/reset")
def reset():
    """Drop all records so the next test starts from empty collections."""

    service.reset()
    return {"ok": True}


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}
