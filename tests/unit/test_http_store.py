from __future__ import annotations

import json

import httpx
import pytest

from sellytics_admin.config import ConsoleConfig
from sellytics_admin.controllers import CollectionController
from sellytics_admin.entities import ADMINS
from sellytics_admin.errors import RemoteReadFailure
from sellytics_admin.store import (
    ConflictError,
    Filter,
    HttpStore,
    JoinSpec,
    ServerError,
    StoreError,
    StoreValidationError,
    TransportError,
)

BASE = "https://project.example.test"


def _store(handler, **overrides) -> HttpStore:
    config = ConsoleConfig(store_url=BASE, store_key="anon-key", retry_backoff_ms=0, **overrides)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpStore(config, client=client)


async def test_select_sends_projection_order_and_auth_headers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"review_id": "r-1"}, {"review_id": "r-2"}])

    async with _store(handler) as store:
        rows = await store.select("reviews", ["review_id", "is_approved"], order_by="created_at", ascending=True)

    assert rows == [{"review_id": "r-1"}, {"review_id": "r-2"}]
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/reviews"
    assert request.url.params["select"] == "review_id,is_approved"
    assert request.url.params["order"] == "created_at.asc"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Authorization"] == "Bearer anon-key"


async def test_select_joined_embeds_inner_joins_and_drops_unmatched_rows() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"id": 7, "dynamic_sales": {"amount": 10}, "dynamic_product": {"name": "Phone"}},
                {"id": 8, "dynamic_sales": None, "dynamic_product": {"name": "Case"}},
            ],
        )

    async with _store(handler) as store:
        rows = await store.select_joined(
            "receipts",
            ["id", "device_id"],
            filters=[Filter("store_receipt_id", 42), Filter("device_id", "DEV123")],
            joins=[JoinSpec("dynamic_sales", ("amount",)), JoinSpec("dynamic_product", ("name", "suppliers_name"))],
        )

    assert [row["id"] for row in rows] == [7]
    params = seen[0].url.params
    assert params["select"] == "id,device_id,dynamic_sales!inner(amount),dynamic_product!inner(name,suppliers_name)"
    assert params["store_receipt_id"] == "eq.42"
    assert params["device_id"] == "eq.DEV123"


async def test_update_and_delete_are_keyed_by_id() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    async with _store(handler) as store:
        await store.update("reviews", "review_id", "r-1", {"is_approved": True})
        await store.delete("sprintify_admin", "id", 5)

    patch, delete = seen
    assert patch.method == "PATCH"
    assert patch.url.params["review_id"] == "eq.r-1"
    assert json.loads(patch.content) == {"is_approved": True}
    assert patch.headers["Prefer"] == "return=minimal"
    assert delete.method == "DELETE"
    assert delete.url.path == "/rest/v1/sprintify_admin"
    assert delete.url.params["id"] == "eq.5"


async def test_insert_returns_created_rows() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(201, json=[{**row, "id": idx + 1} for idx, row in enumerate(body)])

    async with _store(handler) as store:
        rows = await store.insert("users", [{"full_name": "Ngozi", "status": "active"}])

    assert rows == [{"full_name": "Ngozi", "status": "active", "id": 1}]


async def test_error_payload_maps_to_typed_store_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "PATCH":
            return httpx.Response(
                409,
                json={"code": "23505", "message": "duplicate key", "details": "Key exists", "hint": None},
                headers={"X-Request-ID": "req-1"},
            )
        return httpx.Response(400, json={"code": "PGRST100", "message": "bad filter", "hint": "check syntax"})

    async with _store(handler) as store:
        with pytest.raises(ConflictError) as conflict:
            await store.update("users", "id", 1, {"status": "active"})
        with pytest.raises(StoreValidationError) as invalid:
            await store.select("users", ["id"])

    assert conflict.value.code == "23505"
    assert conflict.value.trace_id == "req-1"
    assert invalid.value.hint == "check syntax"


async def test_reads_retry_server_errors_but_writes_do_not() -> None:
    calls = {"GET": 0, "DELETE": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls[request.method] += 1
        if request.method == "GET" and calls["GET"] == 1:
            return httpx.Response(503, json={"message": "unavailable"})
        if request.method == "DELETE":
            return httpx.Response(500, json={"message": "boom"})
        return httpx.Response(200, json=[])

    async with _store(handler, retry_max_attempts=2) as store:
        assert await store.select("users", ["id"]) == []
        with pytest.raises(ServerError):
            await store.delete("users", "id", 1)

    assert calls == {"GET": 2, "DELETE": 1}


async def test_transport_failures_become_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _store(handler) as store:
        with pytest.raises(TransportError) as excinfo:
            await store.select("users", ["id"])

    assert excinfo.value.code == "NETWORK_ERROR"


async def test_non_json_success_body_becomes_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>gateway</html>", headers={"X-Request-ID": "req-html"})

    async with _store(handler) as store:
        with pytest.raises(StoreError) as excinfo:
            await store.select("sprintify_admin", ["id"])

    assert excinfo.value.code == "INVALID_PAYLOAD"
    assert excinfo.value.status_code == 200
    assert excinfo.value.trace_id == "req-html"


async def test_non_json_success_body_is_recorded_by_the_controller() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>gateway</html>")

    async with _store(handler) as store:
        controller = CollectionController(store, ADMINS)
        items = await controller.load()

    assert items == []
    assert isinstance(controller.error, RemoteReadFailure)
    assert controller.error.code == "INVALID_PAYLOAD"
