from .capability import CapabilityDetector
from .checker import ConsistencyChecker
from .client import PushApiClient
from .config_probe import ConfigurationProber
from .controller import PushSubscriptionController
from .errors import (
    AuthRequiredError,
    ConfigError,
    NetworkError,
    NotConfiguredError,
    NotificationSendError,
    NotSubscribedError,
    NotSupportedError,
    PermissionDeniedError,
    PlatformSubscriptionError,
    PushError,
    PushErrorCode,
    ReloadRequiredError,
    ServerRegistrationError,
    ServerUnregistrationError,
)
from .models import (
    DeviceProfile,
    LifecycleState,
    OSFamily,
    PermissionState,
    PlaceholderSubscription,
    RealSubscription,
    Reconciliation,
    ServerConfig,
    SubscriptionKeys,
    SubscriptionRecord,
    SubscriptionState,
)
from .platform import PushPlatform
from .reconciler import SubscriptionReconciler
from .vapid import url_b64_to_bytes

__all__ = [
    # Components
    "CapabilityDetector",
    "ConfigurationProber",
    "SubscriptionReconciler",
    "PushSubscriptionController",
    "ConsistencyChecker",
    "PushApiClient",
    "PushPlatform",
    "url_b64_to_bytes",
    # Data model
    "DeviceProfile",
    "LifecycleState",
    "OSFamily",
    "PermissionState",
    "PlaceholderSubscription",
    "RealSubscription",
    "Reconciliation",
    "ServerConfig",
    "SubscriptionKeys",
    "SubscriptionRecord",
    "SubscriptionState",
    # Errors
    "PushError",
    "PushErrorCode",
    "NotSupportedError",
    "NotConfiguredError",
    "PermissionDeniedError",
    "AuthRequiredError",
    "ServerRegistrationError",
    "ServerUnregistrationError",
    "NetworkError",
    "ConfigError",
    "ReloadRequiredError",
    "PlatformSubscriptionError",
    "NotSubscribedError",
    "NotificationSendError",
]
