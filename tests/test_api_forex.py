import asyncio
import json
from pathlib import Path

import httpx
from fastapi.testclient import TestClient

from record_keeper.api import create_app
from record_keeper.forex import ForexFeedClient


def test_forex_defaults_are_preloaded(make_settings) -> None:
    with TestClient(create_app(make_settings("forex"))) as client:
        prices = {p["symbol"]: p["price"] for p in client.get("/forex").json()}

    assert prices == {"EURUSD": 1.0, "USDJPY": 1.0}


def test_symbol_lookup_is_case_insensitive(make_settings) -> None:
    with TestClient(create_app(make_settings("forex"))) as client:
        assert client.get("/forex/eurusd").json() == {"symbol": "EURUSD", "price": 1.0}
        assert client.get("/forex/XAUUSD").status_code == 404


def test_put_upserts_and_persists(make_settings, data_file: Path) -> None:
    with TestClient(create_app(make_settings("forex"))) as client:
        assert client.put("/forex", json={"symbol": "EURUSD", "price": 1.23}).status_code == 200
        assert client.put("/forex", json={"symbol": "gbpusd", "price": 1.27}).status_code == 200

        assert client.get("/forex/EURUSD").json()["price"] == 1.23
        assert client.get("/forex/GBPUSD").json() == {"symbol": "GBPUSD", "price": 1.27}

    saved = json.loads(data_file.read_text(encoding="utf-8"))
    assert saved["forex_pairs"]["GBPUSD"]["price"] == 1.27


def test_restored_prices_win_over_defaults(make_settings, data_file: Path) -> None:
    data_file.write_text(
        '{"forex_pairs": {"EURUSD": {"symbol": "EURUSD", "price": 1.09}}}',
        encoding="utf-8",
    )

    with TestClient(create_app(make_settings("forex"))) as client:
        assert client.get("/forex/EURUSD").json()["price"] == 1.09
        assert client.get("/forex/USDJPY").json()["price"] == 1.0


def test_startup_fetch_merges_before_serving(make_settings, data_file: Path) -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, json={"base": "USD", "rates": {"EURUSD": 1.1, "GBPUSD": 1.3}})

    feed = ForexFeedClient(
        urls=["https://feeds.test/latest/USD"],
        transport=httpx.MockTransport(handler),
    )
    settings = make_settings("forex", FOREX_FETCH_ON_STARTUP=True)
    try:
        with TestClient(create_app(settings, feed_client=feed)) as client:
            assert requested == ["https://feeds.test/latest/USD"]
            assert client.get("/forex/EURUSD").json()["price"] == 1.1
            assert client.get("/forex/GBPUSD").json()["price"] == 1.3
            assert client.get("/forex/USDJPY").json()["price"] == 1.0
    finally:
        asyncio.run(feed.aclose())

    saved = json.loads(data_file.read_text(encoding="utf-8"))
    assert saved["forex_pairs"]["GBPUSD"]["price"] == 1.3


def test_unreachable_feed_does_not_block_startup(make_settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    feed = ForexFeedClient(
        urls=["https://feeds.test/latest/USD"],
        transport=httpx.MockTransport(handler),
    )
    settings = make_settings("forex", FOREX_FETCH_ON_STARTUP=True)
    try:
        with TestClient(create_app(settings, feed_client=feed)) as client:
            assert client.get("/forex/EURUSD").json()["price"] == 1.0
    finally:
        asyncio.run(feed.aclose())


def test_cors_allows_localhost_any_port(make_settings) -> None:
    with TestClient(create_app(make_settings("forex"))) as client:
        resp = client.options(
            "/forex",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "PUT",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert resp.headers["access-control-allow-credentials"] == "true"
    assert "PUT" in resp.headers["access-control-allow-methods"]


def test_cors_allows_null_origin(make_settings) -> None:
    with TestClient(create_app(make_settings("forex"))) as client:
        resp = client.get("/forex", headers={"Origin": "null"})

    assert resp.headers["access-control-allow-origin"] == "null"


def test_cors_rejects_foreign_origin(make_settings) -> None:
    with TestClient(create_app(make_settings("forex"))) as client:
        preflight = client.options(
            "/forex",
            headers={"Origin": "https://evil.test", "Access-Control-Request-Method": "GET"},
        )
        simple = client.get("/forex", headers={"Origin": "https://evil.test"})

    assert preflight.status_code == 400
    assert "access-control-allow-origin" not in simple.headers


def test_non_finite_price_is_rejected_and_snapshot_survives_restart(make_settings) -> None:
    settings = make_settings("all")
    with TestClient(create_app(settings)) as client:
        client.post("/task", json={"id": 1, "name": "keep me", "completed": False})

        resp = client.put(
            "/forex",
            content=b'{"symbol": "XAU", "price": 1e400}',
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 422
        assert client.get("/forex/XAU").status_code == 404

    with TestClient(create_app(settings)) as client:
        assert client.get("/task/1").json()["name"] == "keep me"
        assert client.get("/forex/EURUSD").json()["price"] == 1.0


def test_startup_fetch_skips_unrepresentable_rates(make_settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = '{"rates": {"BIG": 1' + "0" * 400 + ', "INF": 1e400, "GBPUSD": 1.3}}'
        return httpx.Response(200, content=body.encode(), headers={"Content-Type": "application/json"})

    feed = ForexFeedClient(
        urls=["https://feeds.test/latest/USD"],
        transport=httpx.MockTransport(handler),
    )
    settings = make_settings("forex", FOREX_FETCH_ON_STARTUP=True)
    try:
        with TestClient(create_app(settings, feed_client=feed)) as client:
            assert client.get("/forex/GBPUSD").json()["price"] == 1.3
            assert client.get("/forex/BIG").status_code == 404
            assert client.get("/forex/INF").status_code == 404
    finally:
        asyncio.run(feed.aclose())

    with TestClient(create_app(make_settings("forex"))) as client:
        assert client.get("/forex/GBPUSD").json()["price"] == 1.3
