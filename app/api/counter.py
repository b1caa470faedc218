# app/api/counter.py
from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from app.config.settings import get_settings
from app.schemas.counter import CounterMutation, CounterTotal
from app.services.counter import CounterStore, InvalidValueError, coerce_value


router = APIRouter(tags=["counter"])

logger = logging.getLogger("coin_dashboard.counter")

ALLOWED_METHODS = ("GET", "POST")


def get_counter(request: Request) -> CounterStore:
    store = getattr(request.app.state, "counter", None)
    if store is None:
        store = CounterStore()
        request.app.state.counter = store
    return store


def _error_response(
    *,
    code: str,
    message: str,
    status_code: int = 400,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    payload: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details:
        payload["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=payload)


async def _read_body(request: Request) -> dict[str, Any]:
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


@router.get("/total", response_model=CounterTotal)
def read_total(counter: CounterStore = Depends(get_counter)) -> CounterTotal:
    return CounterTotal(total=counter.total)


@router.post("/total", response_model=CounterMutation)
async def add_to_total(request: Request, counter: CounterStore = Depends(get_counter)):
    body = await _read_body(request)
    raw_value = body.get("value")

    settings = getattr(request.app.state, "settings", None) or get_settings()
    try:
        value = coerce_value(raw_value, strict=settings.COUNTER_STRICT_VALUES)
    except InvalidValueError as exc:
        return _error_response(
            code="invalid_value",
            message=str(exc),
            details={"value": raw_value},
        )

    try:
        total = counter.add(value)
    except InvalidValueError as exc:
        if settings.COUNTER_STRICT_VALUES:
            return _error_response(
                code="invalid_value",
                message=f"adding {raw_value!r} would overflow the total",
                details={"value": raw_value},
            )
        # overflowing values are coerced to 0 like any other non-number
        logger.warning("counter overflow ignored | err=%s", exc)
        total = counter.total
    return CounterMutation(message="Coin added", total=total)


@router.post("/total/reset", response_model=CounterMutation)
def reset_total(counter: CounterStore = Depends(get_counter)) -> CounterMutation:
    return CounterMutation(message="Counter reset", total=counter.reset())


@router.api_route("/total", methods=["PUT", "PATCH", "DELETE", "OPTIONS"], include_in_schema=False)
async def total_method_not_allowed(request: Request) -> PlainTextResponse:
    return PlainTextResponse(
        f"Method {request.method} Not Allowed",
        status_code=405,
        headers={"Allow": ", ".join(ALLOWED_METHODS)},
    )
