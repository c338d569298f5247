"""Certificate date/time fusion for client responses.

NPS returns the certificate date and time as two fields of the protection
(certificateDate "2015-06-01", certificateTime "14:30:00"); the client API
exposes a single ISO 8601 value ("2015-06-01T14:30:00").

The values are joined as strings. No calendar validation is done.
"""

from typing import Any

from lta_protections.transformers.base import (
    Record,
    TransformIssue,
    TransformResult,
    type_mismatch,
)
from lta_protections.transformers.record_paths import MISSING, get_path
from lta_protections.transformers.rules import Rule

CERTIFICATE_DATE_FIELD = "certificateDate"
CERTIFICATE_TIME_FIELD = "certificateTime"


def fuse_certificate_date(date: str | None, time: str | None) -> str | None:
    """Combine a date and a time into one ISO 8601 string.

    Examples:
        >>> fuse_certificate_date("2015-06-01", "14:30:00")
        '2015-06-01T14:30:00'
        >>> fuse_certificate_date("2015-06-01", None)
        '2015-06-01'
        >>> fuse_certificate_date(None, "14:30:00") is None
        True
    """
    if date is None:
        return None
    if time is None:
        return date
    return f"{date}T{time}"


def _read_optional_string(
    record: Record, path: str, issues: list[TransformIssue]
) -> str | None:
    value: Any = get_path(record, path)
    if value is MISSING or value is None:
        return None
    if not isinstance(value, str):
        issues.append(type_mismatch(path, "a string", value))
        return None
    return value


def certificate_date(branch: str = "") -> Rule:
    """Rule contributing the fused certificateDate read from branch.

    Args:
        branch: Path of the branch holding certificateDate/certificateTime
                ("" when they are fields of the input record itself)
    """
    prefix = f"{branch}." if branch else ""

    def rule(record: Record) -> TransformResult:
        issues: list[TransformIssue] = []
        date = _read_optional_string(record, prefix + CERTIFICATE_DATE_FIELD, issues)
        time = _read_optional_string(record, prefix + CERTIFICATE_TIME_FIELD, issues)
        if issues:
            return TransformResult.fail(*issues)

        fused = fuse_certificate_date(date, time)
        if fused is None:
            return TransformResult.ok({})
        return TransformResult.ok({CERTIFICATE_DATE_FIELD: fused})

    return rule
