"""Quarter and month bucket normalization.

Two bucket formats are stored on every version:

- year-quarter, ``"YYYY QN"`` (due and payment quarters, required)
- year-month, ``"YYYY-MM"`` (invoice month, optional)

Normalization is lenient and only reshapes text; validation is strict and
runs on the normalized value.
"""

import re

from project_ledger.errors import BucketFormatError

QUARTER_FORMAT = "YYYY QN"
YEAR_MONTH_FORMAT = "YYYY-MM"

_QUARTER_RE = re.compile(r"^\d{4} Q[1-4]$")
_YEAR_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

_WHITESPACE_RE = re.compile(r"\s+")
_QUARTER_MARKER_RE = re.compile(r"Q\s*([1-4])")


def normalize_quarter(value: str | None) -> str | None:
    """Reshape a quarter bucket: ``"2025-q 1"`` -> ``"2025 Q1"``."""
    if value is None:
        return None
    s = value.strip().replace("-", " ")
    s = _WHITESPACE_RE.sub(" ", s)
    s = s.upper()
    return _QUARTER_MARKER_RE.sub(r"Q\1", s)


def normalize_year_month(value: str | None) -> str | None:
    """Trim a month bucket. Blank means absent."""
    if value is None or not value.strip():
        return None
    return value.strip()


def validate_quarter(value: str | None, field: str = "quarter") -> str:
    """Return the value if it is a strict ``YYYY QN`` bucket."""
    if value is None or not _QUARTER_RE.match(value.strip()):
        raise BucketFormatError(field, value, QUARTER_FORMAT)
    return value.strip()


def validate_year_month(value: str | None, field: str = "month") -> str | None:
    """Return the value if it is absent or a strict ``YYYY-MM`` bucket."""
    if value is None:
        return None
    if not _YEAR_MONTH_RE.match(value.strip()):
        raise BucketFormatError(field, value, YEAR_MONTH_FORMAT)
    return value.strip()


def clean_quarter(value: str | None, field: str = "quarter") -> str:
    """Normalize then validate a required quarter bucket."""
    return validate_quarter(normalize_quarter(value), field)


def clean_year_month(value: str | None, field: str = "month") -> str | None:
    """Normalize then validate an optional month bucket."""
    return validate_year_month(normalize_year_month(value), field)
