from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.config.variants import PAGE_SIZES
from app.schemas.market import MarketViewPayload, PageSizeUpdate, SortDirection, SortKey
from app.services.polling_view import MarketView


router = APIRouter(prefix="/market", tags=["market"])


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


def _market_view(request: Request) -> Optional[MarketView]:
    view = getattr(request.app.state, "view", None)
    return view if isinstance(view, MarketView) else None


def _no_market_view() -> JSONResponse:
    return _error_response(
        code="market_view_unavailable",
        message="This dashboard is not running the market variant",
        status_code=404,
    )


@router.get("/coins", response_model=MarketViewPayload)
async def get_coins(
    request: Request,
    query: Optional[str] = None,
    sort_key: Optional[SortKey] = None,
    direction: Optional[SortDirection] = None,
):
    """
    Filtered and sorted coin table.
    Example: /market/coins?query=btc&sort_key=current_price&direction=desc

    The dashboard has a single viewer: query, sort_key and direction are
    written into the shared MarketView and stay in effect for every later
    request until changed again. Omit them to read the current view
    unchanged.
    """
    view = _market_view(request)
    if view is None:
        return _no_market_view()

    if query is not None:
        view.set_query(query)
    if sort_key is not None:
        view.set_sort_key(sort_key)
    if direction is not None:
        view.set_sort_direction(direction)
    return view.payload()


@router.post("/refresh", response_model=MarketViewPayload)
async def refresh_now(request: Request):
    view = _market_view(request)
    if view is None:
        return _no_market_view()

    await view.refresh()
    return view.payload()


@router.put("/page-size", response_model=MarketViewPayload)
async def update_page_size(request: Request, body: PageSizeUpdate):
    view = _market_view(request)
    if view is None:
        return _no_market_view()

    if body.page_size not in PAGE_SIZES:
        return _error_response(
            code="invalid_page_size",
            message=f"page_size must be one of {list(PAGE_SIZES)}",
            status_code=422,
            details={"page_size": body.page_size, "allowed": list(PAGE_SIZES)},
        )

    await view.set_page_size(body.page_size)
    return view.payload()


@router.delete("/error", response_model=MarketViewPayload)
async def dismiss_error(request: Request):
    view = _market_view(request)
    if view is None:
        return _no_market_view()

    view.dismiss_error()
    return view.payload()
