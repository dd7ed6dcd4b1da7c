"""Push subscription data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

MOBILE_ENDPOINT_PREFIX = "mobile://"

# Fixed key material carried by placeholder records. Never valid for encryption.
PLACEHOLDER_P256DH = "mobile-fallback-p256dh"
PLACEHOLDER_AUTH = "mobile-fallback-auth"


class OSFamily(StrEnum):
    IOS = "ios"
    ANDROID = "android"
    OTHER = "other"


class PermissionState(StrEnum):
    """Mirror of the platform's ``Notification.permission`` values."""

    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class LifecycleState(StrEnum):
    UNINITIALIZED = "uninitialized"
    CHECKING_SUPPORT = "checking_support"
    UNSUPPORTED = "unsupported"
    SUPPORTED_UNCONFIGURED = "supported_unconfigured"
    READY = "ready"
    REQUESTING_PERMISSION = "requesting_permission"
    CREATING_SUBSCRIPTION = "creating_subscription"
    REGISTERING_WITH_SERVER = "registering_with_server"
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBING = "unsubscribing"


@dataclass(frozen=True, slots=True)
class DeviceProfile:
    """What the current runtime offers for notifications.

    Derived once per detection and never mutated; call the detector again to
    observe a change (e.g. the app was installed to the home screen).
    """

    is_mobile: bool
    os_family: OSFamily
    is_standalone_app: bool
    has_notification_api: bool = False
    has_service_worker_api: bool = False
    has_push_manager_api: bool = False
    has_vibration_api: bool = False

    @property
    def has_full_push(self) -> bool:
        return self.has_notification_api and self.has_service_worker_api and self.has_push_manager_api

    @property
    def is_push_supported(self) -> bool:
        # Mobile browsers may expose Notification without a working push stack;
        # local-only notifications still count there.
        if self.is_mobile:
            return self.has_notification_api
        return self.has_full_push

    @property
    def needs_home_screen_install(self) -> bool:
        """iOS only delivers web push reliably to apps added to the home screen."""
        return self.os_family == OSFamily.IOS and not self.is_standalone_app


class ServerConfig(BaseModel):
    """Response of ``GET /api/push/config``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    configured: bool = False
    public_key: str | None = Field(default=None, alias="publicKey")


class UserStatus(BaseModel):
    """Response of ``GET /api/push/user-status``."""

    model_config = ConfigDict(extra="ignore")

    subscribed: bool = False


class SubscriptionKeys(BaseModel):
    p256dh: str
    auth: str


class RealSubscription(BaseModel):
    """A push subscription issued by the platform's push service."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["real"] = "real"
    endpoint: str
    keys: SubscriptionKeys
    is_limited: bool = False

    @property
    def is_mobile_fallback(self) -> bool:
        return False

    def to_wire(self) -> dict[str, Any]:
        return {"endpoint": self.endpoint, "keys": self.keys.model_dump()}


class PlaceholderSubscription(BaseModel):
    """Synthetic record for mobile devices that could not obtain a real subscription.

    Only gives the rest of the system a uniform shape to persist and compare.
    It cannot receive a real push message.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["placeholder"] = "placeholder"
    endpoint: str
    keys: SubscriptionKeys = Field(
        default_factory=lambda: SubscriptionKeys(p256dh=PLACEHOLDER_P256DH, auth=PLACEHOLDER_AUTH)
    )
    is_limited: bool = True

    @classmethod
    def for_user_agent(cls, user_agent: str) -> PlaceholderSubscription:
        return cls(endpoint=f"{MOBILE_ENDPOINT_PREFIX}{user_agent}")

    @property
    def is_mobile_fallback(self) -> bool:
        return True

    def to_wire(self) -> dict[str, Any]:
        return {"endpoint": self.endpoint, "keys": self.keys.model_dump(), "mobile": True}


SubscriptionRecord = Annotated[RealSubscription | PlaceholderSubscription, Field(discriminator="kind")]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class SubscriptionState:
    """Authoritative subscription status, always replaced as a whole.

    ``optimistic`` is set right after a successful subscribe and cleared by
    the delayed confirmation check, which may also overturn ``is_subscribed``.
    """

    is_subscribed: bool = False
    permission: PermissionState = PermissionState.DEFAULT
    last_checked_at: datetime = field(default_factory=_utcnow, compare=False)
    optimistic: bool = False


@dataclass(frozen=True, slots=True)
class Reconciliation:
    """Outcome of one reconcile pass, applied by the controller in one step."""

    state: SubscriptionState
    record: SubscriptionRecord | None
