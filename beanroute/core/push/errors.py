"""Push subscription errors.

Every error surfaced to callers is a ``PushError`` subclass with a stable
``code``. Callers render ``message`` and branch on the type or code only.
"""

from __future__ import annotations

from enum import StrEnum


class PushErrorCode(StrEnum):
    NOT_SUPPORTED = "push.not_supported"
    NOT_CONFIGURED = "push.not_configured"
    PERMISSION_DENIED = "push.permission_denied"
    AUTH_REQUIRED = "push.auth_required"
    SERVER_REGISTRATION_FAILED = "push.server_registration_failed"
    SERVER_UNREGISTRATION_FAILED = "push.server_unregistration_failed"
    NETWORK = "push.network"
    CONFIG_UNAVAILABLE = "push.config_unavailable"
    RELOAD_REQUIRED = "push.reload_required"
    PLATFORM_SUBSCRIBE_FAILED = "push.platform_subscribe_failed"
    NOT_SUBSCRIBED = "push.not_subscribed"
    SEND_FAILED = "push.send_failed"

    @property
    def recoverable(self) -> bool:
        """Whether invoking the same operation again may succeed without outside change."""
        return self in (
            PushErrorCode.SERVER_REGISTRATION_FAILED,
            PushErrorCode.SERVER_UNREGISTRATION_FAILED,
            PushErrorCode.NETWORK,
            PushErrorCode.CONFIG_UNAVAILABLE,
            PushErrorCode.PLATFORM_SUBSCRIBE_FAILED,
            PushErrorCode.SEND_FAILED,
        )


class PushError(Exception):
    """Base class for push subscription errors."""

    code: PushErrorCode = PushErrorCode.NETWORK
    default_message = "Push notification request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return self.code.recoverable


class NotSupportedError(PushError):
    code = PushErrorCode.NOT_SUPPORTED
    default_message = "Push notifications are not supported in this browser"


class NotConfiguredError(PushError):
    code = PushErrorCode.NOT_CONFIGURED
    default_message = "Push notifications are not configured on the server"


class PermissionDeniedError(PushError):
    code = PushErrorCode.PERMISSION_DENIED
    default_message = "Permission denied for notifications"


class AuthRequiredError(PushError):
    code = PushErrorCode.AUTH_REQUIRED
    default_message = "User must be logged in to subscribe"


class ServerRegistrationError(PushError):
    code = PushErrorCode.SERVER_REGISTRATION_FAILED
    default_message = "Failed to subscribe on server"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ServerUnregistrationError(PushError):
    code = PushErrorCode.SERVER_UNREGISTRATION_FAILED
    default_message = "Failed to unsubscribe on server"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class NetworkError(PushError):
    code = PushErrorCode.NETWORK
    default_message = "Network request failed"

    def __init__(self, message: str | None = None, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class ConfigError(PushError):
    """``/api/push/config`` answered with a non-2xx status other than 401."""

    code = PushErrorCode.CONFIG_UNAVAILABLE
    default_message = "Failed to get push notification configuration"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ReloadRequiredError(PushError):
    code = PushErrorCode.RELOAD_REQUIRED
    default_message = "Service worker is not controlling this page. Please reload and try again"


class PlatformSubscriptionError(PushError):
    code = PushErrorCode.PLATFORM_SUBSCRIBE_FAILED
    default_message = "The browser refused to create a push subscription"

    def __init__(self, message: str | None = None, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class NotSubscribedError(PushError):
    code = PushErrorCode.NOT_SUBSCRIBED
    default_message = "Not subscribed to notifications"


class NotificationSendError(PushError):
    code = PushErrorCode.SEND_FAILED
    default_message = "Failed to send test notification"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
