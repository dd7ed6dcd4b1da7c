"""Server-side push configuration probe."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from beanroute.core.push.client import PushApiClient, error_detail
from beanroute.core.push.errors import ConfigError
from beanroute.core.push.models import ServerConfig

logger = logging.getLogger(__name__)


class ConfigurationProber:
    """Fetches ``/api/push/config``. Every call is a fresh round trip."""

    def __init__(self, client: PushApiClient) -> None:
        self.client = client

    async def fetch_config(self) -> ServerConfig | None:
        """Return the server's push configuration.

        ``None`` means the request was rejected with 401: the user is not
        authenticated yet and there is nothing to do.
        """
        resp = await self.client.get_config()

        if resp.status_code == 401:
            logger.debug("Push config probe returned 401, not authenticated yet")
            return None

        if not resp.is_success:
            raise ConfigError(
                error_detail(resp, f"Push config request failed with status {resp.status_code}"),
                status_code=resp.status_code,
            )

        try:
            config = ServerConfig.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise ConfigError(f"Malformed push config response: {e}", status_code=resp.status_code) from e

        logger.debug("Push config: configured=%s", config.configured)
        return config
