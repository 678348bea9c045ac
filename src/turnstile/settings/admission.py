"""Admission engine settings.

Tunables for the scan transaction boundary.
"""

from decouple import config

# How many times a detected serialization conflict or deadlock is retried before giving up.
ADMISSION_CONFLICT_RETRIES = config("ADMISSION_CONFLICT_RETRIES", default=1, cast=int)

# Upper bound (milliseconds) on waiting for another scan of the same booking. PostgreSQL only.
ADMISSION_LOCK_TIMEOUT_MS = config("ADMISSION_LOCK_TIMEOUT_MS", default=5000, cast=int)

# Throttle applied to the scan endpoint, per staff user or per kiosk IP.
ADMISSION_SCAN_RATE = config("ADMISSION_SCAN_RATE", default="600/min")
