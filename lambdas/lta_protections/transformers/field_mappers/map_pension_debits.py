"""Pension debit list mapping for NPS application requests.

Client element:  {"startDate": "2012-01-01", "amount": 500}
NPS element:     {"pensionDebitStartDate": "2012-01-01", "pensionDebitEnteredAmount": 500}

Every element field changes name, so the list is parsed into PensionDebit
values and rebuilt rather than renamed in place. A malformed list is never
dropped silently: the whole request is rejected.
"""

import logging
from typing import Any

from pydantic import ValidationError

from lta_protections.transformers.base import (
    Record,
    TransformErrorKind,
    TransformIssue,
    TransformResult,
    type_mismatch,
)
from lta_protections.transformers.record_paths import MISSING, get_path
from lta_protections.transformers.schemas import PensionDebit

logger = logging.getLogger(__name__)

PENSION_DEBITS_FIELD = "pensionDebits"


def describe_validation_error(error: ValidationError) -> str:
    """One-line summary of a pydantic error, e.g. "amount: Input should be a valid number"."""
    parts = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        parts.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(parts)


def parse_pension_debits(
    value: Any, field_path: str = PENSION_DEBITS_FIELD
) -> tuple[list[PensionDebit], list[TransformIssue]]:
    """Parse the client pension debit list.

    Every element is checked so that all malformed elements are reported.

    Args:
        value: The value of the pensionDebits field
        field_path: Path used in reported issues

    Returns:
        Tuple of (parsed debits, issues). Issues is empty on success.
    """
    if not isinstance(value, list):
        return [], [type_mismatch(field_path, "an array", value)]

    debits: list[PensionDebit] = []
    issues: list[TransformIssue] = []
    for index, element in enumerate(value):
        try:
            debits.append(PensionDebit.model_validate(element))
        except ValidationError as e:
            issues.append(
                TransformIssue(
                    kind=TransformErrorKind.MALFORMED_ARRAY_ELEMENT,
                    field_path=field_path,
                    message=f"Element {index}: {describe_validation_error(e)}",
                    source_value=index,
                )
            )
    return debits, issues


def map_pension_debits(record: Record) -> TransformResult:
    """Rule contributing the NPS pension debit list.

    An absent (or null) pensionDebits field contributes nothing, so the
    request carries no pensionDebits key at all rather than an empty list.
    """
    value = get_path(record, PENSION_DEBITS_FIELD)
    if value is MISSING or value is None:
        return TransformResult.ok({})

    debits, issues = parse_pension_debits(value)
    if issues:
        logger.warning(
            "Unable to parse pension debits",
            extra={"issue_count": len(issues)},
        )
        return TransformResult.fail(*issues)

    return TransformResult.ok(
        {PENSION_DEBITS_FIELD: [debit.to_nps().to_dict() for debit in debits]}
    )
