"""Record id and timestamp helpers."""

import secrets
import string
import time
from datetime import UTC, datetime

from dateutil import parser as dateutil_parser

_ID_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 9


def generate_id(prefix: str | None = None) -> str:
    """
    Build an opaque record id: ``[prefix-]{epoch_millis}-{9 base36 chars}``.

    Ids sort roughly by creation time; the random suffix keeps ids created in
    the same millisecond apart.
    """
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    base = f"{int(time.time() * 1000)}-{suffix}"
    return f"{prefix}-{base}" if prefix else base


def utc_now() -> datetime:
    return datetime.now(UTC)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-ish timestamp or date, returning an aware UTC datetime.

    Returns None for empty or unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = dateutil_parser.isoparse(str(value))
        except (ValueError, OverflowError):
            try:
                parsed = dateutil_parser.parse(str(value))
            except (ValueError, OverflowError):
                return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
