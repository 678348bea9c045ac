from django.conf import settings
from ninja_extra.throttling import AnonRateThrottle, UserRateThrottle


class AnonDefaultThrottle(AnonRateThrottle):
    rate = "60/min"


class UserDefaultThrottle(UserRateThrottle):
    rate = "100/min"


class ScanThrottle(UserRateThrottle):
    """Gate terminals scan in bursts; authenticated staff are keyed by user, kiosks by IP."""

    scope = "scan"
    rate = settings.ADMISSION_SCAN_RATE


class AuthThrottle(AnonRateThrottle):
    rate = "100/min"
