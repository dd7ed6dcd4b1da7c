"""Tests for ConfigurationProber."""

import httpx
import pytest

from beanroute.core.push.client import PushApiClient
from beanroute.core.push.config_probe import ConfigurationProber
from beanroute.core.push.errors import ConfigError, NetworkError
from tests.fixtures.backend import VAPID_PUBLIC_KEY, FakeBackend


@pytest.mark.asyncio
class TestConfigurationProber:
    async def test_configured(self, api_client: PushApiClient) -> None:
        config = await ConfigurationProber(api_client).fetch_config()
        assert config is not None
        assert config.configured is True
        assert config.public_key == VAPID_PUBLIC_KEY

    async def test_not_configured(self, api_client: PushApiClient, backend: FakeBackend) -> None:
        backend.configured = False
        config = await ConfigurationProber(api_client).fetch_config()
        assert config is not None
        assert config.configured is False
        assert config.public_key is None

    async def test_unauthorized_is_a_no_op(self, api_client: PushApiClient, backend: FakeBackend) -> None:
        backend.config_status = 401
        assert await ConfigurationProber(api_client).fetch_config() is None

    async def test_server_error_raises(self, api_client: PushApiClient, backend: FakeBackend) -> None:
        backend.config_status = 500
        with pytest.raises(ConfigError) as exc_info:
            await ConfigurationProber(api_client).fetch_config()
        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Failed to get push notification configuration"

    async def test_never_caches(self, api_client: PushApiClient, backend: FakeBackend) -> None:
        prober = ConfigurationProber(api_client)
        await prober.fetch_config()
        backend.configured = False
        config = await prober.fetch_config()
        assert config is not None and config.configured is False
        assert backend.count("/api/push/config") == 2


@pytest.mark.asyncio
async def test_transport_failure_raises_network_error() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler), base_url="http://test") as http:
        prober = ConfigurationProber(PushApiClient(http=http))
        with pytest.raises(NetworkError, match="/api/push/config"):
            await prober.fetch_config()
