"""Subscription status reconciliation.

Three signals are observed independently:

- the server's record of whether this user has a stored subscription,
- the platform's own active push subscription object,
- whether the service worker currently controls the page.

On mobile the server is authoritative, because the OS may evict background
workers without notice and the local signals produce false negatives. On
desktop all three must agree; a mismatch there usually means the subscription
was revoked in browser settings and the server does not know yet, so the
status should read "off" and prompt a full re-subscribe.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import ValidationError

from beanroute.core.push.client import PushApiClient, error_detail
from beanroute.core.push.errors import NetworkError
from beanroute.core.push.models import (
    DeviceProfile,
    PlaceholderSubscription,
    RealSubscription,
    Reconciliation,
    SubscriptionRecord,
    SubscriptionState,
    UserStatus,
)
from beanroute.core.push.platform import PushPlatform

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubscriptionReconciler:
    def __init__(
        self,
        client: PushApiClient,
        platform: PushPlatform,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.client = client
        self.platform = platform
        self.clock = clock

    async def reconcile(self, profile: DeviceProfile) -> Reconciliation | None:
        """Recompute the subscription state from scratch.

        Returns ``None`` when the status call answered 401 (the session ended
        mid-flight); the caller keeps its prior state in that case.
        """
        server_subscribed = await self._fetch_server_flag()
        if server_subscribed is None:
            return None

        permission = self.platform.get_notification_permission()

        if profile.is_mobile:
            record: SubscriptionRecord | None = None
            if server_subscribed:
                record = await self._local_subscription()
                if record is None:
                    record = PlaceholderSubscription.for_user_agent(self.platform.user_agent)
            is_subscribed = server_subscribed
        else:
            record = await self._local_subscription()
            controlling = await self._worker_controlling()
            is_subscribed = server_subscribed and record is not None and controlling
            if server_subscribed and not is_subscribed:
                logger.debug(
                    "Desktop subscription is stale (platform_record=%s, worker_controlling=%s)",
                    record is not None,
                    controlling,
                )

        state = SubscriptionState(
            is_subscribed=is_subscribed,
            permission=permission,
            last_checked_at=self.clock(),
        )
        return Reconciliation(state=state, record=record)

    async def _fetch_server_flag(self) -> bool | None:
        resp = await self.client.get_user_status()
        if resp.status_code == 401:
            logger.debug("Subscription status check returned 401, leaving state untouched")
            return None
        if not resp.is_success:
            raise NetworkError(
                error_detail(resp, f"Failed to get subscription status (status {resp.status_code})")
            )
        try:
            return UserStatus.model_validate(resp.json()).subscribed
        except (ValueError, ValidationError) as e:
            raise NetworkError(f"Malformed subscription status response: {e}", cause=e) from e

    async def _local_subscription(self) -> RealSubscription | None:
        try:
            return await self.platform.get_push_subscription()
        except Exception as e:
            logger.debug("Platform subscription lookup failed: %s", e)
            return None

    async def _worker_controlling(self) -> bool:
        try:
            return await self.platform.is_worker_controlling()
        except Exception as e:
            logger.debug("Service worker control check failed: %s", e)
            return False
