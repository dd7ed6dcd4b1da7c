"""Device and notification capability detection."""

from __future__ import annotations

import re

from beanroute.core.push.models import DeviceProfile, OSFamily
from beanroute.core.push.platform import PushPlatform

_IOS_RE = re.compile(r"iPad|iPhone|iPod")
_ANDROID_RE = re.compile(r"android", re.IGNORECASE)
_OTHER_MOBILE_RE = re.compile(r"Windows Phone|IEMobile|WPDesktop|BlackBerry|BB10|PlayBook")


def classify_user_agent(user_agent: str) -> tuple[bool, OSFamily]:
    """Return ``(is_mobile, os_family)`` for a user agent string."""
    if _IOS_RE.search(user_agent):
        return True, OSFamily.IOS
    if _ANDROID_RE.search(user_agent):
        return True, OSFamily.ANDROID
    if _OTHER_MOBILE_RE.search(user_agent):
        return True, OSFamily.OTHER
    return False, OSFamily.OTHER


class CapabilityDetector:
    def __init__(self, platform: PushPlatform) -> None:
        self.platform = platform

    def detect(self) -> DeviceProfile:
        is_mobile, os_family = classify_user_agent(self.platform.user_agent or "")
        return DeviceProfile(
            is_mobile=is_mobile,
            os_family=os_family,
            is_standalone_app=self.platform.is_standalone_display(),
            has_notification_api=self.platform.has_notification_api(),
            has_service_worker_api=self.platform.has_service_worker_api(),
            has_push_manager_api=self.platform.has_push_manager_api(),
            has_vibration_api=self.platform.has_vibration_api(),
        )
