"""Push subscription lifecycle controller.

Owns the subscription record and state for one authenticated user session
and drives them through::

    UNINITIALIZED -> CHECKING_SUPPORT -> UNSUPPORTED | SUPPORTED_UNCONFIGURED | READY
    READY -> REQUESTING_PERMISSION -> CREATING_SUBSCRIPTION -> REGISTERING_WITH_SERVER -> SUBSCRIBED
    SUBSCRIBED -> UNSUBSCRIBING -> READY

Background work (``initialize``, periodic checks, the post-subscribe
confirmation) records errors on ``error`` and never raises. User-initiated
operations raise a :class:`PushError`.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from beanroute.configs import PushConfig, configs
from beanroute.core.push.capability import CapabilityDetector
from beanroute.core.push.checker import ConsistencyChecker
from beanroute.core.push.client import PushApiClient, error_detail
from beanroute.core.push.config_probe import ConfigurationProber
from beanroute.core.push.errors import (
    AuthRequiredError,
    NotConfiguredError,
    NotificationSendError,
    NotSubscribedError,
    NotSupportedError,
    PermissionDeniedError,
    PlatformSubscriptionError,
    PushError,
    ReloadRequiredError,
    ServerRegistrationError,
    ServerUnregistrationError,
)
from beanroute.core.push.models import (
    DeviceProfile,
    LifecycleState,
    OSFamily,
    PermissionState,
    PlaceholderSubscription,
    RealSubscription,
    Reconciliation,
    ServerConfig,
    SubscriptionRecord,
    SubscriptionState,
)
from beanroute.core.push.platform import PushPlatform
from beanroute.core.push.reconciler import SubscriptionReconciler
from beanroute.core.push.vapid import url_b64_to_bytes

logger = logging.getLogger(__name__)

VIBRATION_PATTERN = (200, 100, 200)

IOS_INSTALL_HINT = "Add BeanRoute to your home screen to receive notifications on iOS"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PushSubscriptionController:
    def __init__(
        self,
        client: PushApiClient,
        platform: PushPlatform,
        settings: PushConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.settings = settings or configs.Push
        self.client = client
        self.platform = platform
        self.clock = clock

        self.detector = CapabilityDetector(platform)
        self.prober = ConfigurationProber(client)
        self.reconciler = SubscriptionReconciler(client, platform, clock=clock)
        self.checker = ConsistencyChecker(
            is_active=self._should_poll,
            check=self._periodic_check,
            interval=self.settings.CheckIntervalSeconds,
        )

        self._user_id: str | None = None
        self._confirm_task: asyncio.Task[None] | None = None
        self._reset()

    # --- Session ----------------------------------------------------------------

    @property
    def user_id(self) -> str | None:
        return self._user_id

    def set_user(self, user_id: str | None) -> None:
        """Track the authenticated user. Logout or a user switch discards all state."""
        if user_id == self._user_id:
            return
        if self._user_id is not None:
            logger.debug("Push session for user %s discarded", self._user_id)
        self._user_id = user_id
        self._reset()

    def _reset(self) -> None:
        self.checker.cancel()
        if self._confirm_task is not None and not self._confirm_task.done():
            self._confirm_task.cancel()
        self._confirm_task = None

        self.lifecycle = LifecycleState.UNINITIALIZED
        self.profile: DeviceProfile | None = None
        self.server_config: ServerConfig | None = None
        self.record: SubscriptionRecord | None = None
        self.state = SubscriptionState()
        self.error: str | None = None
        self.loading = False
        self._initializing = False
        self._initialized = False

    async def aclose(self) -> None:
        await self.checker.stop()
        task, self._confirm_task = self._confirm_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    # --- Derived status ---------------------------------------------------------

    @property
    def is_supported(self) -> bool:
        return self.profile is not None and self.profile.is_push_supported

    @property
    def is_configured(self) -> bool:
        return self.server_config is not None and self.server_config.configured

    @property
    def is_subscribed(self) -> bool:
        return self.state.is_subscribed

    @property
    def permission(self) -> PermissionState:
        return self.state.permission

    @property
    def can_subscribe(self) -> bool:
        return self.is_supported and self.is_configured and self.permission == PermissionState.GRANTED

    @property
    def needs_permission(self) -> bool:
        return self.is_supported and self.is_configured and self.permission == PermissionState.DEFAULT

    @property
    def permission_denied(self) -> bool:
        return self.permission == PermissionState.DENIED

    @property
    def install_hint(self) -> str | None:
        if self.profile is not None and self.profile.needs_home_screen_install:
            return IOS_INSTALL_HINT
        return None

    @property
    def status_text(self) -> str:
        if self.loading:
            return "Checking..."
        if self.error:
            return f"Error: {self.error}"
        if not self.is_supported:
            return "Not supported"
        if not self.is_configured:
            return "Not configured"
        if self.permission_denied:
            return "Permission denied"
        if self.needs_permission:
            return "Permission needed"
        if self.is_subscribed:
            return "Notifications enabled"
        return "Notifications disabled"

    def get_device_info(self) -> DeviceProfile:
        """Re-detect the device profile and keep it for later checks."""
        self.profile = self.detector.detect()
        return self.profile

    # --- Bootstrap --------------------------------------------------------------

    async def initialize(self) -> None:
        """Detect support, probe the server and run the first reconcile.

        Runs once per user session; concurrent and repeated calls are no-ops.
        """
        if self._user_id is None or self._initializing or self._initialized:
            return

        user = self._user_id
        self._initializing = True
        self.loading = True
        self.error = None
        completed = True
        try:
            self.lifecycle = LifecycleState.CHECKING_SUPPORT
            profile = self.get_device_info()
            if profile.has_notification_api:
                self._set_permission(self.platform.get_notification_permission())

            if not profile.is_push_supported:
                self.lifecycle = LifecycleState.UNSUPPORTED
                logger.info("Push notifications unsupported on this device (mobile=%s)", profile.is_mobile)
                return

            config = await self.prober.fetch_config()
            if user != self._user_id:
                return
            if config is None:
                completed = False
                self.lifecycle = LifecycleState.UNINITIALIZED
                return

            self.server_config = config
            if not config.configured:
                self.lifecycle = LifecycleState.SUPPORTED_UNCONFIGURED
                logger.info("Push notifications are not configured on the server")
                return

            self.lifecycle = LifecycleState.READY
            # Polling starts before the first reconcile so a failed one is retried.
            self.checker.start()
            await self._reconcile_for(user)
        except PushError as e:
            self.error = e.message
            logger.warning("Push initialization failed: %s", e.message)
        except Exception as e:
            self.error = str(e)
            logger.exception("Push initialization failed")
        finally:
            if user == self._user_id:
                self._initializing = False
                self._initialized = completed
                self.loading = False

    # --- Reconciliation ---------------------------------------------------------

    def _should_poll(self) -> bool:
        return self._user_id is not None and self.is_supported and self.is_configured

    async def _periodic_check(self) -> None:
        user = self._user_id
        if user is None:
            return
        await self._reconcile_for(user)

    async def _reconcile_for(self, user: str) -> bool:
        if self.profile is None:
            self.get_device_info()
        assert self.profile is not None
        result = await self.reconciler.reconcile(self.profile)
        return self._apply(result, user)

    def _apply(self, result: Reconciliation | None, user: str) -> bool:
        # A response that lands after logout or a user switch is dropped.
        if result is None or user != self._user_id:
            return False
        self.record = result.record
        self.state = result.state
        if self.lifecycle in (LifecycleState.READY, LifecycleState.SUBSCRIBED):
            self.lifecycle = LifecycleState.SUBSCRIBED if result.state.is_subscribed else LifecycleState.READY
        return True

    async def refresh_subscription_status(self) -> SubscriptionState:
        """User-triggered reconcile. Errors propagate to the caller."""
        user = self._user_id
        if user is None:
            return self.state
        if self.profile is None:
            self.get_device_info()
        if not self.is_supported or not self.is_configured:
            return self.state
        await self._reconcile_for(user)
        return self.state

    def _schedule_confirmation(self, user: str) -> None:
        if self._confirm_task is not None and not self._confirm_task.done():
            self._confirm_task.cancel()
        self._confirm_task = asyncio.create_task(self._confirm_after_delay(user), name="push-subscribe-confirm")

    async def _confirm_after_delay(self, user: str) -> None:
        await asyncio.sleep(self.settings.ConfirmDelaySeconds)
        try:
            if await self._reconcile_for(user):
                logger.debug("Post-subscribe confirmation: subscribed=%s", self.state.is_subscribed)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Post-subscribe confirmation failed: %s", e)

    # --- User actions -----------------------------------------------------------

    @asynccontextmanager
    async def _user_action(self) -> AsyncIterator[None]:
        self.loading = True
        self.error = None
        try:
            yield
        except PushError as e:
            self.error = e.message
            logger.warning("Push action failed (%s): %s", e.code, e.message)
            raise
        finally:
            self.loading = False

    def _set_permission(self, permission: PermissionState) -> None:
        if permission != self.state.permission:
            self.state = dataclasses.replace(self.state, permission=permission)

    def _current_profile(self) -> DeviceProfile:
        return self.profile if self.profile is not None else self.get_device_info()

    @staticmethod
    def _unsupported(profile: DeviceProfile) -> NotSupportedError:
        if profile.os_family == OSFamily.IOS and not profile.is_standalone_app:
            return NotSupportedError(
                "Push notifications are not available in this browser. Add BeanRoute to your home screen first"
            )
        return NotSupportedError()

    async def request_permission(self) -> PermissionState:
        """Show the native permission prompt. The only operation that may do so."""
        async with self._user_action():
            return await self._request_permission(self._current_profile())

    async def _request_permission(self, profile: DeviceProfile) -> PermissionState:
        if not profile.is_push_supported:
            raise self._unsupported(profile)

        if not self.is_configured:
            config = await self.prober.fetch_config()
            if config is None:
                raise AuthRequiredError("Your session has expired. Please log in again")
            self.server_config = config
            if not self.is_configured:
                raise NotConfiguredError()

        prior = self.lifecycle
        self.lifecycle = LifecycleState.REQUESTING_PERMISSION
        try:
            permission = await asyncio.wait_for(
                self.platform.request_notification_permission(),
                timeout=self.settings.PermissionTimeoutSeconds,
            )
        except asyncio.TimeoutError as e:
            raise PermissionDeniedError("Notification permission prompt timed out") from e
        finally:
            self.lifecycle = prior

        self._set_permission(permission)
        if permission != PermissionState.GRANTED:
            raise PermissionDeniedError()
        return permission

    async def subscribe(self) -> SubscriptionRecord:
        if self._user_id is None:
            self.error = AuthRequiredError.default_message
            raise AuthRequiredError()

        user = self._user_id
        async with self._user_action():
            profile = self._current_profile()
            if not profile.is_push_supported:
                raise self._unsupported(profile)

            permission = self.platform.get_notification_permission()
            self._set_permission(permission)
            if permission == PermissionState.DENIED:
                raise PermissionDeniedError()
            if permission == PermissionState.DEFAULT:
                permission = await self._request_permission(profile)

            prior = self.lifecycle
            try:
                self.lifecycle = LifecycleState.CREATING_SUBSCRIPTION
                # Always fresh: a stale public key yields undeliverable subscriptions.
                config = await self.prober.fetch_config()
                if config is None:
                    raise AuthRequiredError("Your session has expired. Please log in again")
                self.server_config = config
                if not config.configured:
                    raise NotConfiguredError("Push notifications not configured on server")

                if profile.is_mobile:
                    record = await self._create_mobile_subscription(profile, config)
                else:
                    record = await self._create_desktop_subscription(config)

                self.lifecycle = LifecycleState.REGISTERING_WITH_SERVER
                await self._register(record, profile)
            except NotConfiguredError:
                self.lifecycle = LifecycleState.SUPPORTED_UNCONFIGURED
                raise
            except PushError:
                self.lifecycle = LifecycleState.READY if prior != LifecycleState.UNINITIALIZED else prior
                raise

            if user != self._user_id:
                return record

            self.record = record
            self.state = SubscriptionState(
                is_subscribed=True,
                permission=permission,
                last_checked_at=self.clock(),
                optimistic=True,
            )
            self.lifecycle = LifecycleState.SUBSCRIBED
            logger.info(
                "Subscribed to push notifications (mobile=%s, fallback=%s)",
                profile.is_mobile,
                record.is_mobile_fallback,
            )

            self._schedule_confirmation(user)
            if self._should_poll():
                self.checker.start()
            return record

    async def _create_mobile_subscription(
        self, profile: DeviceProfile, config: ServerConfig
    ) -> SubscriptionRecord:
        # Some notification capability beats none: never abort here.
        if not profile.has_full_push:
            logger.info("No push stack on this mobile browser, using limited notifications")
            return PlaceholderSubscription.for_user_agent(self.platform.user_agent)
        try:
            return await self._replace_platform_subscription(url_b64_to_bytes(config.public_key or ""))
        except Exception as e:
            logger.warning("Mobile push subscribe failed, using limited notifications: %s", e)
            return PlaceholderSubscription.for_user_agent(self.platform.user_agent)

    async def _create_desktop_subscription(self, config: ServerConfig) -> RealSubscription:
        if not await self.ensure_worker_control():
            raise ReloadRequiredError()
        key = url_b64_to_bytes(config.public_key or "")
        try:
            return await self._replace_platform_subscription(key)
        except PushError:
            raise
        except Exception as e:
            raise PlatformSubscriptionError(f"Failed to create push subscription: {e}", cause=e) from e

    async def _replace_platform_subscription(self, application_server_key: bytes) -> RealSubscription:
        # Drop any previous registration first so the server never keeps an orphan.
        existing = await self.platform.get_push_subscription()
        if existing is not None:
            logger.debug("Replacing existing push subscription %s", existing.endpoint)
            await self.platform.remove_push_subscription()
        return await self.platform.create_push_subscription(application_server_key)

    async def ensure_worker_control(self) -> bool:
        """Make sure a service worker controls the page, nudging a waiting one once."""
        try:
            if await self.platform.is_worker_controlling():
                return True
            logger.debug("Service worker not in control, asking it to skip waiting")
            await self.platform.skip_waiting()
            await asyncio.sleep(self.settings.WorkerControlWaitSeconds)
            return await self.platform.is_worker_controlling()
        except Exception as e:
            logger.warning("Could not establish service worker control: %s", e)
            return False

    async def _register(self, record: SubscriptionRecord, profile: DeviceProfile) -> None:
        body: dict[str, Any] = {
            "subscription": record.to_wire(),
            "userAgent": self.platform.user_agent,
            "mobile": profile.is_mobile,
            "pwa": profile.is_standalone_app,
        }
        if record.is_limited:
            body["limited"] = True

        try:
            resp = await self.client.register(body)
        except PushError:
            await self._discard_record(record)
            raise

        if not resp.is_success:
            await self._discard_record(record)
            raise ServerRegistrationError(
                error_detail(resp, ServerRegistrationError.default_message),
                status_code=resp.status_code,
            )

    async def _discard_record(self, record: SubscriptionRecord) -> None:
        self.record = None
        self.state = SubscriptionState(is_subscribed=False, permission=self.permission, last_checked_at=self.clock())
        if isinstance(record, RealSubscription):
            try:
                await self.platform.remove_push_subscription()
            except Exception as e:
                logger.debug("Could not remove unregistered platform subscription: %s", e)

    async def unsubscribe(self) -> None:
        record = self.record
        if record is None:
            return

        async with self._user_action():
            prior = self.lifecycle
            self.lifecycle = LifecycleState.UNSUBSCRIBING
            try:
                if isinstance(record, RealSubscription):
                    try:
                        await self.platform.remove_push_subscription()
                    except Exception as e:
                        # The server-side removal is what stops delivery.
                        logger.warning("Platform unsubscribe failed: %s", e)

                resp = await self.client.unregister({"subscription": {"endpoint": record.endpoint}})
                if not resp.is_success:
                    raise ServerUnregistrationError(
                        error_detail(resp, ServerUnregistrationError.default_message),
                        status_code=resp.status_code,
                    )
            except PushError:
                self.lifecycle = prior
                raise

            self.record = None
            self.state = SubscriptionState(is_subscribed=False, permission=self.permission, last_checked_at=self.clock())
            self.lifecycle = LifecycleState.READY
            logger.info("Unsubscribed from push notifications")

    async def send_test_notification(self) -> dict[str, Any]:
        """Ask the server to push a test notification to the current user."""
        if self._user_id is None:
            raise AuthRequiredError("User must be logged in to send a test notification")
        if not self.is_subscribed:
            raise NotSubscribedError()

        async with self._user_action():
            resp = await self.client.send(
                {
                    "title": self.settings.TestTitle,
                    "body": self.settings.TestBody,
                    "target": {"userIds": [self._user_id]},
                    "data": {"test": True},
                }
            )
            if not resp.is_success:
                raise NotificationSendError(
                    error_detail(resp, NotificationSendError.default_message),
                    status_code=resp.status_code,
                )
            logger.info("Test notification sent")
            try:
                body = resp.json()
            except ValueError:
                return {}
            return body if isinstance(body, dict) else {}

    async def show_basic_notification(self, title: str | None = None, body: str | None = None) -> None:
        """Show a local notification without the push service, vibrating where possible."""
        profile = self._current_profile()
        if not profile.has_notification_api:
            raise self._unsupported(profile)

        async with self._user_action():
            permission = self.platform.get_notification_permission()
            self._set_permission(permission)
            if permission != PermissionState.GRANTED:
                raise PermissionDeniedError()

            try:
                await self.platform.show_notification(title or self.settings.TestTitle, body or self.settings.TestBody)
            except Exception as e:
                raise NotSupportedError(f"Could not show notification: {e}") from e

            if profile.has_vibration_api:
                try:
                    self.platform.vibrate(VIBRATION_PATTERN)
                except Exception as e:
                    logger.debug("Vibration failed: %s", e)
