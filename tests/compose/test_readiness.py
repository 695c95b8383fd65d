"""Tests for readiness polling."""

import asyncio

import pytest
import pytest_asyncio
from helpers.fake_docker import FakeDockerBackend

from composekit.compose.readiness import wait_for_ready
from composekit.engine import ContainerHandle, EngineClient
from composekit.errors import ContainerDiedError, OperationCancelledError, ReadinessTimeoutError


@pytest_asyncio.fixture
async def container(client: EngineClient, fake_docker: FakeDockerBackend) -> ContainerHandle:
    fake_docker.add_container("web")
    return await client.find_container("web")


class CountingCheck:
    """Readiness check that fails a fixed number of times, then succeeds."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    def __call__(self, container: ContainerHandle) -> bool:
        self.calls += 1
        return self.calls > self.failures


@pytest.mark.asyncio
async def test_ready_after_three_failures(container: ContainerHandle):
    check = CountingCheck(failures=3)

    await wait_for_ready(container, check, interval=0.001, max_attempts=10)

    assert check.calls == 4


@pytest.mark.asyncio
async def test_async_check_and_raising_check(container: ContainerHandle):
    attempts = []

    async def check(handle: ContainerHandle) -> bool:
        attempts.append(handle.name)
        if len(attempts) == 1:
            raise ConnectionRefusedError("not listening yet")
        return True

    await wait_for_ready(container, check, interval=0.001, max_attempts=5)

    assert attempts == ["web", "web"]


@pytest.mark.asyncio
async def test_timeout_after_max_attempts(container: ContainerHandle):
    check = CountingCheck(failures=100)

    with pytest.raises(ReadinessTimeoutError, match="after 3 attempts"):
        await wait_for_ready(container, check, interval=0.001, max_attempts=3)
    assert check.calls == 3


@pytest.mark.asyncio
async def test_container_death_stops_polling(container: ContainerHandle, fake_docker: FakeDockerBackend):
    check = CountingCheck(failures=100)

    def die_on_first_check(handle: ContainerHandle) -> bool:
        fake_docker.container_named("web").running = False
        return check(handle)

    with pytest.raises(ContainerDiedError) as exc_info:
        await wait_for_ready(container, die_on_first_check, interval=0.001, max_attempts=10)

    assert exc_info.value.attempt == 2
    assert check.calls == 1


@pytest.mark.asyncio
async def test_cancellation_token(container: ContainerHandle):
    cancel = asyncio.Event()
    check = CountingCheck(failures=100)

    async def cancel_soon() -> None:
        await asyncio.sleep(0.05)
        cancel.set()

    canceller = asyncio.create_task(cancel_soon())
    with pytest.raises(OperationCancelledError):
        await wait_for_ready(container, check, interval=10, max_attempts=10, cancel=cancel)
    await canceller

    assert check.calls == 0
