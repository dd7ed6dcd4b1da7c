"""
Push Platform

Abstract base class for the runtime that hosts notifications: the browser's
``navigator``/``window`` globals, the service worker container and its push
manager. Everything the detector and controller need from the platform goes
through this interface.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from beanroute.core.push.models import PermissionState, RealSubscription


class PushPlatform(ABC):
    """Abstract base class for notification platforms."""

    @property
    @abstractmethod
    def user_agent(self) -> str:
        """The platform's user agent string."""

    # --- Feature checks ---------------------------------------------------------
    # Absence of a feature is reported as False, never raised.

    @abstractmethod
    def has_notification_api(self) -> bool:
        pass

    @abstractmethod
    def has_service_worker_api(self) -> bool:
        pass

    @abstractmethod
    def has_push_manager_api(self) -> bool:
        pass

    def has_vibration_api(self) -> bool:
        return False

    @abstractmethod
    def is_standalone_display(self) -> bool:
        """Whether the app runs installed (``display-mode: standalone``)."""

    # --- Permission -------------------------------------------------------------

    @abstractmethod
    def get_notification_permission(self) -> PermissionState:
        pass

    @abstractmethod
    async def request_notification_permission(self) -> PermissionState:
        """
        Show the native permission prompt.

        Returns:
            The permission the user settled on
        """

    # --- Push manager -----------------------------------------------------------

    @abstractmethod
    async def get_push_subscription(self) -> RealSubscription | None:
        """Return the active push subscription of the ready worker registration, if any."""

    @abstractmethod
    async def create_push_subscription(self, application_server_key: bytes) -> RealSubscription:
        """
        Subscribe the ready worker registration to push.

        Args:
            application_server_key: Decoded VAPID public key

        Returns:
            The platform-issued subscription
        """

    @abstractmethod
    async def remove_push_subscription(self) -> bool:
        """Unsubscribe the active push subscription. Returns False when there was none."""

    # --- Service worker ---------------------------------------------------------

    @abstractmethod
    async def is_worker_controlling(self) -> bool:
        """Whether a service worker currently controls this page."""

    @abstractmethod
    async def skip_waiting(self) -> None:
        """Post ``SKIP_WAITING`` to a waiting service worker so it activates."""

    # --- Local notifications ----------------------------------------------------

    @abstractmethod
    async def show_notification(self, title: str, body: str) -> None:
        """Display a local notification without going through the push service."""

    def vibrate(self, pattern: Sequence[int]) -> None:
        """Fire-and-forget vibration. No-op where unsupported."""
        return None
