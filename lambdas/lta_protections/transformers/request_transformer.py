"""Outbound transformation: client protection application -> NPS request body.

Client request body:
    {
        "protectionType": "IP2014",
        "relevantAmount": 1250000.0,
        "postADayBenefitCrystallisationEvents": 100000.0,
        "pensionDebits": [{"startDate": "2015-05-25", "amount": 1000.0}]
    }

NPS request body:
    {
        "nino": "AA123456",
        "protection": {"type": 2, "relevantAmount": 1250000.0, "postADayBCE": 100000.0},
        "pensionDebits": [{"pensionDebitStartDate": "2015-05-25", "pensionDebitEnteredAmount": 1000.0}]
    }

Any failure here means the client sent a request that cannot be submitted;
callers report it as a bad request.
"""

import logging
from typing import Any

from pydantic import ValidationError

from lta_protections.transformers.base import Record, TransformResult, type_mismatch
from lta_protections.transformers.field_mappers.map_pension_debits import (
    map_pension_debits,
)
from lta_protections.transformers.rules import (
    Rule,
    RuleError,
    empty,
    encode_field,
    fallback,
    insert_branch,
    merge,
    put,
    rename,
    sequence,
    update,
)
from lta_protections.transformers.schemas import AMOUNT_ADAPTER, ProtectionApplication
from lta_protections.transformers.vocabulary import DEFAULT_VOCABULARIES, Vocabularies

logger = logging.getLogger(__name__)

# Numeric amounts passed through to NPS unchanged when present
COPIED_AMOUNT_FIELDS = (
    "preADayPensionInPayment",
    "uncrystallisedRights",
    "nonUKRights",
    "relevantAmount",
)


def _amount(value: Any, path: str) -> int | float:
    try:
        return AMOUNT_ADAPTER.validate_python(value)
    except ValidationError as e:
        raise RuleError(type_mismatch(path, "a number", value)) from e


def amount_if_present(source: str, target: str | None = None) -> Rule:
    """Rule contributing the amount at source, placed at target (default source).

    An absent amount contributes nothing; a present one must be a number.
    """
    return fallback(
        sequence(update(source, _amount), rename(source, target or source)),
        empty(),
    )


class ApplicationRequestTransformer:
    """Builds NPS application request bodies from client applications.

    Example:
        >>> transformer = ApplicationRequestTransformer(DEFAULT_VOCABULARIES)
        >>> transformer.transform("AA123456", {"protectionType": "FP2016"}).record
        {'nino': 'AA123456', 'protection': {'type': 1}}
    """

    def __init__(self, vocabularies: Vocabularies = DEFAULT_VOCABULARIES):
        self.vocabularies = vocabularies
        # Encoded before the rename so issues name the client field
        self.protection_rule: Rule = merge(
            sequence(
                encode_field("protectionType", vocabularies.protection_types),
                rename("protectionType", "type"),
            ),
            amount_if_present("postADayBenefitCrystallisationEvents", "postADayBCE"),
            *(amount_if_present(name) for name in COPIED_AMOUNT_FIELDS),
        )

    def request_rule(self, nino_without_suffix: str) -> Rule:
        """Rule building the request body apart from the pension debits."""
        insert_nino_and_protection = merge(
            put("nino", nino_without_suffix),
            insert_branch("protection"),
        )
        return sequence(self.protection_rule, insert_nino_and_protection)

    def transform(self, nino_without_suffix: str, application: Any) -> TransformResult:
        """Transform a client application into an NPS request body.

        Args:
            nino_without_suffix: The NINO with its suffix character dropped
            application: The client request body

        Returns:
            TransformResult with the NPS request body, or the issues found.
            A malformed pension debit list fails the whole transformation
            before any other field is looked at.
        """
        if not isinstance(application, dict):
            return TransformResult.fail(type_mismatch("root", "an object", application))

        debits = map_pension_debits(application)
        if not debits.success:
            return debits

        result = merge(
            lambda record: debits,
            self.request_rule(nino_without_suffix),
        )(application)

        if result.success:
            logger.info(
                "Built NPS application request",
                extra={"has_pension_debits": "pensionDebits" in (result.record or {})},
            )
        else:
            logger.warning(
                "Unable to build NPS application request",
                extra={"issues": [i.to_dict() for i in result.issues]},
            )
        return result


def transform_apply_request_body(
    nino_without_suffix: str,
    application: ProtectionApplication | Record,
    vocabularies: Vocabularies | None = None,
) -> TransformResult:
    """Transform a client application body into an NPS request body."""
    transformer = ApplicationRequestTransformer(vocabularies or DEFAULT_VOCABULARIES)
    return transformer.transform(nino_without_suffix, application)
