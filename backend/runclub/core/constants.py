"""Shared application constants.

Centralizes the formats and defaults the normalization and storage code
agree on so we can document and adjust them in one place.
"""
import re

SERVICE_NAME = "Run Club API"
API_VERSION = "1.0.0"

# Fallback civil zone when settings are not consulted (pure helpers)
DEFAULT_TIMEZONE = "America/New_York"

# Strict calendar date, parsed as components without any tz interpretation
ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

# Strict 24h 'HH:MM'
HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

# Lenient 'H:MM', 'H:MM PM', 'H:MMpm'
LOOSE_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])?$")

# e.g. '8:30/mile', '5:15/km'
PACE_RE = re.compile(r"^[\d:]+(/mile|/km)$")

RSVP_STATUSES = ("yes", "no")

REQUIRED_RUN_FIELDS = ("date", "time", "location", "pace")
REQUIRED_RSVP_FIELDS = ("firstName", "lastName", "status")
