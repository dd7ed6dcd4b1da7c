from pydantic import BaseModel, Field


class PushConfig(BaseModel):
    """Web Push subscription client configuration.

    - ``BaseUrl``: origin of the BeanRoute backend that serves ``/api/push/*``.
    - Timeouts bound every backend round trip and the native permission
      prompt so a hung request can never pin ``loading`` forever.
    - Delays are the short pauses used while the service worker takes control
      and while the server catches up after a registration.
    """

    BaseUrl: str = Field(default="http://localhost:3000", description="BeanRoute backend origin")

    RequestTimeoutSeconds: float = Field(default=10.0, description="Timeout for each /api/push/* request")
    PermissionTimeoutSeconds: float = Field(
        default=60.0,
        description="Upper bound on how long the native permission prompt may stay open",
    )

    CheckIntervalSeconds: float = Field(default=30.0, description="Periodic subscription drift check interval")
    ConfirmDelaySeconds: float = Field(
        default=1.0,
        description="Delay before the authoritative re-check that follows a successful subscribe",
    )
    WorkerControlWaitSeconds: float = Field(
        default=1.0,
        description="Pause after asking a waiting service worker to skip waiting",
    )

    TestTitle: str = Field(default="Test Notification", description="Title of the self-test notification")
    TestBody: str = Field(
        default="This is a test notification from BeanRoute!",
        description="Body of the self-test notification",
    )
