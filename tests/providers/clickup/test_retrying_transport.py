from __future__ import annotations

import httpx
import pytest

from beanup.providers.clickup._retrying_transport import RetryingTransport, RetryPolicy


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float, attempt: int) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> SleepRecorder:
    recorder = SleepRecorder()
    monkeypatch.setattr(RetryingTransport, "_sleep", staticmethod(recorder))
    return recorder


def scripted(*responses: httpx.Response | Exception) -> tuple[httpx.MockTransport, list[httpx.Request]]:
    queue = list(responses)
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)

    return httpx.MockTransport(handler), seen


async def send(transport: RetryingTransport) -> httpx.Response:
    async with httpx.AsyncClient(transport=transport, base_url="https://api.test") as client:
        return await client.get("/task/abc")


@pytest.mark.asyncio
async def test_retries_server_errors_until_success(sleeps: SleepRecorder) -> None:
    inner, seen = scripted(httpx.Response(502), httpx.Response(500), httpx.Response(200, json={"id": "abc"}))

    response = await send(RetryingTransport(transport=inner, policy=RetryPolicy(jitter=0)))

    assert response.status_code == 200
    assert len(seen) == 3
    assert sleeps.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_never_retries_fatal_client_errors(sleeps: SleepRecorder) -> None:
    inner, seen = scripted(httpx.Response(400, json={"err": "Bad request", "ECODE": "INPUT_001"}))

    response = await send(RetryingTransport(transport=inner))

    assert response.status_code == 400
    assert len(seen) == 1
    assert sleeps.delays == []


@pytest.mark.asyncio
async def test_never_retries_not_found(sleeps: SleepRecorder) -> None:
    inner, seen = scripted(httpx.Response(404, json={"err": "Task not found", "ECODE": "ITEM_013"}))

    response = await send(RetryingTransport(transport=inner))

    assert response.status_code == 404
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts(sleeps: SleepRecorder) -> None:
    inner, seen = scripted(httpx.Response(503))

    response = await send(RetryingTransport(transport=inner, policy=RetryPolicy(jitter=0)))

    assert response.status_code == 503
    assert len(seen) == 5
    assert sleeps.delays == [1.0, 2.0, 4.0, 8.0]


@pytest.mark.asyncio
async def test_rate_limit_honours_retry_after(sleeps: SleepRecorder) -> None:
    inner, seen = scripted(
        httpx.Response(429, headers={"Retry-After": "12"}),
        httpx.Response(200, json={}),
    )

    response = await send(RetryingTransport(transport=inner, policy=RetryPolicy(jitter=0)))

    assert response.status_code == 200
    assert len(seen) == 2
    assert sleeps.delays == [12.0]


@pytest.mark.asyncio
async def test_rate_limit_ecode_is_retried(sleeps: SleepRecorder) -> None:
    inner, seen = scripted(
        httpx.Response(400, json={"err": "Rate limit reached", "ECODE": "APP_002"}),
        httpx.Response(200, json={}),
    )

    response = await send(RetryingTransport(transport=inner, policy=RetryPolicy(jitter=0)))

    assert response.status_code == 200
    assert len(seen) == 2


@pytest.mark.asyncio
async def test_each_sleep_is_capped(sleeps: SleepRecorder) -> None:
    inner, _ = scripted(httpx.Response(429, headers={"Retry-After": "600"}), httpx.Response(200, json={}))

    await send(RetryingTransport(transport=inner, policy=RetryPolicy(jitter=0)))

    assert sleeps.delays == [30.0]


@pytest.mark.asyncio
async def test_cumulative_backoff_respects_budget(sleeps: SleepRecorder) -> None:
    inner, seen = scripted(httpx.Response(500))

    response = await send(RetryingTransport(transport=inner, policy=RetryPolicy(jitter=0, max_total_delay=3.5)))

    assert response.status_code == 500
    assert sleeps.delays == [1.0, 2.0]
    assert sum(sleeps.delays) <= 3.5
    assert len(seen) == 3


@pytest.mark.asyncio
async def test_transport_errors_are_retried_then_raised(sleeps: SleepRecorder) -> None:
    inner, seen = scripted(httpx.ConnectError("connection reset"))

    with pytest.raises(httpx.ConnectError):
        await send(RetryingTransport(transport=inner, policy=RetryPolicy(jitter=0, max_attempts=3)))

    assert len(seen) == 3
    assert sleeps.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_transport_error_recovers(sleeps: SleepRecorder) -> None:
    inner, seen = scripted(httpx.ReadTimeout("slow"), httpx.Response(200, json={"ok": True}))

    response = await send(RetryingTransport(transport=inner))

    assert response.status_code == 200
    assert len(seen) == 2


def test_policy_delay_includes_bounded_jitter() -> None:
    policy = RetryPolicy(base_delay=1.0, jitter=0.5, max_delay=30.0)

    for attempt in range(4):
        delay = policy.delay_for(attempt)
        assert 2**attempt <= delay <= 2**attempt + 0.5

    assert policy.delay_for(10) == 30.0
