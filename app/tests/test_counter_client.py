from __future__ import annotations

import httpx
import pytest

from app.main import create_app
from app.services.counter_client import CounterDataSource
from app.services.data_source import DataSourceError
from app.services.polling_view import CounterView
from app.tests.helpers import make_settings


def _asgi_client() -> httpx.AsyncClient:
    app = create_app(make_settings(DASHBOARD_VARIANT="counter"))
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://counter.test")


@pytest.mark.asyncio
async def test_counter_view_against_counter_service():
    async with _asgi_client() as client:
        view = CounterView(CounterDataSource("http://counter.test/", client=client), history_size=5)

        assert await view.refresh() is True
        assert view.total == 0

        await view.add(1)
        await view.add(10)
        assert view.total == 11

        await view.refresh()
        assert view.total == 11

        await view.reset()
        assert view.total == 0
        assert [e.total for e in view.history] == [0, 1, 11, 0]
        assert view.error is None


@pytest.mark.asyncio
async def test_counter_client_reports_http_status():
    def handler(request):
        return httpx.Response(500, text="boom")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        source = CounterDataSource("http://counter.test", client=client)
        with pytest.raises(DataSourceError) as excinfo:
            await source.fetch()
    assert excinfo.value.message == "HTTP 500"


@pytest.mark.asyncio
async def test_counter_client_rejects_payload_without_total():
    def handler(request):
        return httpx.Response(200, json={"count": 1})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        source = CounterDataSource("http://counter.test", client=client)
        with pytest.raises(DataSourceError):
            await source.fetch()


@pytest.mark.asyncio
async def test_counter_view_survives_unreachable_service():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        view = CounterView(CounterDataSource("http://counter.test", client=client))
        assert await view.add(1) is False
    assert view.error == "Failed to reach counter service"
    assert view.total is None
    assert view.loading is False
