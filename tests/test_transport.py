# tests/test_transport.py
import httpx
import pytest
import respx

from membertracker_client.security import SecurityEventLog
from membertracker_client.transport import (
    CACHE_BUSTER_PARAM,
    ApiTransport,
    HttpFailure,
    NetworkFailure,
    RetryPolicy,
)

from conftest import BASE_URL, RecordingSleep, make_settings


def make_transport(sleep: RecordingSleep) -> ApiTransport:
    cfg = make_settings()
    return ApiTransport(
        settings=cfg,
        retry_policy=RetryPolicy(settings=cfg, sleep=sleep),
        security_log=SecurityEventLog(),
    )


@respx.mock
async def test_get_carries_cache_busting_nonce():
    route = respx.get(f"{BASE_URL}/v1/members").mock(return_value=httpx.Response(200, json=[]))
    transport = make_transport(RecordingSleep())

    await transport.get("/v1/members", params={"page": 2})
    await transport.get("/v1/members")

    first, second = (int(call.request.url.params[CACHE_BUSTER_PARAM]) for call in route.calls)
    assert second > first
    assert route.calls[0].request.url.params["page"] == "2"
    await transport.aclose()


@respx.mock
async def test_mutating_call_mirrors_csrf_cookie_into_header():
    route = respx.post(f"{BASE_URL}/v1/members").mock(return_value=httpx.Response(201, json={"id": 7}))
    transport = make_transport(RecordingSleep())
    transport.cookies.set("XSRF-TOKEN", "csrf-123")

    body = await transport.post("/v1/members", json={"firstName": "Ada"})

    assert body == {"id": 7}
    request = route.calls.last.request
    assert request.headers["X-XSRF-TOKEN"] == "csrf-123"
    assert CACHE_BUSTER_PARAM not in request.url.params
    await transport.aclose()


@pytest.mark.parametrize("api_first", [True, False])
@respx.mock
async def test_duplicate_csrf_cookies_use_most_specific_path(api_first):
    route = respx.post(f"{BASE_URL}/v1/members").mock(return_value=httpx.Response(201, json={"id": 7}))
    transport = make_transport(RecordingSleep())
    cookies = [("api-token", "/api"), ("root-token", "/")]
    for value, path in cookies if api_first else reversed(cookies):
        transport.cookies.set("XSRF-TOKEN", value, path=path)

    assert await transport.post("/v1/members", json={}) == {"id": 7}
    assert route.calls.last.request.headers["X-XSRF-TOKEN"] == "api-token"
    await transport.aclose()


@respx.mock
async def test_duplicate_csrf_cookies_outside_request_path_fall_back():
    route = respx.patch(f"{BASE_URL}/v1/members/7").mock(return_value=httpx.Response(200, json={}))
    transport = make_transport(RecordingSleep())
    transport.cookies.set("XSRF-TOKEN", "admin-token", path="/admin")
    transport.cookies.set("XSRF-TOKEN", "root-token", path="/")

    await transport.patch("/v1/members/7", json={"firstName": "Ada"})

    assert route.calls.last.request.headers["X-XSRF-TOKEN"] == "root-token"
    await transport.aclose()


@respx.mock
async def test_missing_csrf_cookie_omits_header():
    route = respx.delete(f"{BASE_URL}/v1/members/7").mock(return_value=httpx.Response(204))
    transport = make_transport(RecordingSleep())

    assert await transport.delete("/v1/members/7") is None
    assert "X-XSRF-TOKEN" not in route.calls.last.request.headers
    await transport.aclose()


@respx.mock
async def test_read_does_not_send_csrf_header():
    route = respx.get(f"{BASE_URL}/v1/payments").mock(return_value=httpx.Response(200, json=[]))
    transport = make_transport(RecordingSleep())
    transport.cookies.set("XSRF-TOKEN", "csrf-123")

    await transport.get("/v1/payments")

    assert "X-XSRF-TOKEN" not in route.calls.last.request.headers
    await transport.aclose()


@respx.mock
async def test_transient_server_errors_are_retried_with_backoff():
    route = respx.get(f"{BASE_URL}/v1/members").mock(
        side_effect=[
            httpx.Response(503),
            httpx.Response(502),
            httpx.Response(200, json=[{"id": 1}]),
        ]
    )
    sleep = RecordingSleep()
    transport = make_transport(sleep)

    assert await transport.get("/v1/members") == [{"id": 1}]
    assert route.call_count == 3
    assert sleep.delays == [1.0, 2.0]
    await transport.aclose()


@respx.mock
async def test_server_error_surfaces_after_retry_budget():
    route = respx.get(f"{BASE_URL}/v1/members").mock(
        return_value=httpx.Response(500, json={"error": "boom"})
    )
    sleep = RecordingSleep()
    transport = make_transport(sleep)

    with pytest.raises(HttpFailure) as exc_info:
        await transport.get("/v1/members")

    assert exc_info.value.status == 500
    assert exc_info.value.body == {"error": "boom"}
    assert route.call_count == 4
    assert sleep.delays == [1.0, 2.0, 3.0]
    await transport.aclose()


@respx.mock
async def test_network_failure_surfaces_after_retry_budget():
    route = respx.get(f"{BASE_URL}/v1/members").mock(side_effect=httpx.ConnectError)
    sleep = RecordingSleep()
    transport = make_transport(sleep)

    with pytest.raises(NetworkFailure) as exc_info:
        await transport.get("/v1/members")

    assert exc_info.value.method == "GET"
    assert route.call_count == 4
    assert sleep.delays == [1.0, 2.0, 3.0]
    await transport.aclose()


@respx.mock
async def test_timeout_recovers_on_retry():
    route = respx.get(f"{BASE_URL}/v1/members").mock(
        side_effect=[httpx.ConnectTimeout, httpx.Response(200, json=[])]
    )
    transport = make_transport(RecordingSleep())

    assert await transport.get("/v1/members") == []
    assert route.call_count == 2
    await transport.aclose()


@respx.mock
async def test_client_error_is_surfaced_without_retry():
    route = respx.get(f"{BASE_URL}/v1/members/99").mock(return_value=httpx.Response(404, text="Not found"))
    sleep = RecordingSleep()
    transport = make_transport(sleep)

    with pytest.raises(HttpFailure) as exc_info:
        await transport.get("/v1/members/99")

    assert exc_info.value.status == 404
    assert exc_info.value.body == "Not found"
    assert route.call_count == 1
    assert sleep.delays == []
    await transport.aclose()


@respx.mock
async def test_forbidden_is_surfaced_and_recorded():
    route = respx.put(f"{BASE_URL}/v1/members/1").mock(return_value=httpx.Response(403))
    transport = make_transport(RecordingSleep())

    with pytest.raises(HttpFailure) as exc_info:
        await transport.put("/v1/members/1", json={"firstName": "Ada"})

    assert exc_info.value.status == 403
    assert route.call_count == 1
    kinds = [event.kind for event in transport.security_log.events]
    assert kinds == ["forbidden-access"]
    await transport.aclose()


@respx.mock
async def test_unauthorized_without_coordinator_is_surfaced():
    respx.get(f"{BASE_URL}/v1/members").mock(return_value=httpx.Response(401))
    transport = make_transport(RecordingSleep())

    with pytest.raises(HttpFailure) as exc_info:
        await transport.get("/v1/members")

    assert exc_info.value.status == 401
    await transport.aclose()


@respx.mock
async def test_activity_hook_runs_per_dispatch_and_never_fails_the_call():
    respx.get(f"{BASE_URL}/v1/members").mock(
        side_effect=[httpx.Response(500), httpx.Response(200, json=[])]
    )
    transport = make_transport(RecordingSleep())
    calls = []

    def broken_hook():
        calls.append(1)
        raise RuntimeError("session store unavailable")

    transport.activity_hook = broken_hook

    assert await transport.get("/v1/members") == []
    assert len(calls) == 2
    await transport.aclose()
