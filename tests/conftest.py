from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from beanroute.configs import PushConfig
from beanroute.core.push.client import PushApiClient
from beanroute.core.push.controller import PushSubscriptionController
from tests.fixtures.backend import FakeBackend, create_backend_app
from tests.fixtures.platform import FakePlatform


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def push_settings() -> PushConfig:
    """Settings with delays short enough for tests; periodic checks stay out of the way."""
    return PushConfig(
        BaseUrl="http://test",
        CheckIntervalSeconds=60,
        ConfirmDelaySeconds=0.05,
        WorkerControlWaitSeconds=0,
        PermissionTimeoutSeconds=1,
    )


@pytest_asyncio.fixture
async def api_client(backend: FakeBackend, push_settings: PushConfig) -> AsyncGenerator[PushApiClient, None]:
    """Push API client wired to the fake backend through ASGITransport."""
    transport = ASGITransport(app=create_backend_app(backend))
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield PushApiClient(http=http, settings=push_settings)


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest_asyncio.fixture
async def make_controller(
    api_client: PushApiClient, push_settings: PushConfig
) -> AsyncGenerator[Callable[..., PushSubscriptionController], None]:
    """Factory building controllers for a platform, closed after the test."""
    created: list[PushSubscriptionController] = []

    def _make(
        platform: FakePlatform, user_id: str | None = "user-1", settings: PushConfig | None = None
    ) -> PushSubscriptionController:
        controller = PushSubscriptionController(api_client, platform, settings=settings or push_settings)
        controller.set_user(user_id)
        created.append(controller)
        return controller

    yield _make

    for controller in created:
        await controller.aclose()
