"""Inbound transformation: NPS response bodies -> client response bodies.

NPS application response:
    {
        "nino": "AB123456",
        "pensionSchemeAdministratorCheckReference": "PSA123456789",
        "protection": {
            "id": 1, "version": 1, "type": 1, "status": 1,
            "certificateDate": "2015-06-01", "certificateTime": "14:30:00",
            "notificationID": 3, "protectionReference": "IP141234567890A"
        }
    }

Client response:
    {
        "nino": "AB123456A",
        "psaCheckReference": "PSA123456789",
        "protectionID": 1, "version": 1,
        "protectionType": "FP2016", "status": "Open",
        "certificateDate": "2015-06-01T14:30:00",
        "notificationId": 3, "protectionReference": "IP141234567890A"
    }

The read-existing-protections response carries a "protections" list instead
of a single "protection" branch; every element is flattened the same way.
"""

import logging
from typing import Any

from lta_protections.transformers.base import Record, TransformResult, type_mismatch
from lta_protections.transformers.field_mappers.map_protection_details import (
    protection_details,
    protection_list,
)
from lta_protections.transformers.rules import (
    Rule,
    RuleError,
    merge,
    move_field_if_present,
    prune,
    sequence,
    update,
)
from lta_protections.transformers.schemas import NpsApplicationResponse, NpsReadResponse
from lta_protections.transformers.vocabulary import DEFAULT_VOCABULARIES, Vocabularies

logger = logging.getLogger(__name__)

PROTECTION_BRANCH = "protection"
PSA_CHECK_REFERENCE_SOURCE = "pensionSchemeAdministratorCheckReference"
PSA_CHECK_REFERENCE_TARGET = "psaCheckReference"


def append_nino_suffix(nino_suffix: str) -> Rule:
    """Rule returning the record with the suffix appended to its nino."""

    def add_suffix(value: Any, path: str) -> str:
        if not isinstance(value, str):
            raise RuleError(type_mismatch(path, "a string", value))
        return value + nino_suffix

    return update("nino", add_suffix)


def _log_result(result: TransformResult, description: str) -> TransformResult:
    if result.success:
        logger.info(f"Built client {description}")
    else:
        logger.warning(
            f"Unable to build client {description}",
            extra={"issues": [i.to_dict() for i in result.issues]},
        )
    return result


class ApplicationResponseTransformer:
    """Builds client protection records from NPS application responses."""

    def __init__(self, vocabularies: Vocabularies = DEFAULT_VOCABULARIES):
        self.vocabularies = vocabularies
        self.details_rule: Rule = protection_details(vocabularies, PROTECTION_BRANCH)

    def response_rule(self, nino_suffix: str) -> Rule:
        return sequence(
            merge(append_nino_suffix(nino_suffix), self.details_rule),
            move_field_if_present(PSA_CHECK_REFERENCE_SOURCE, PSA_CHECK_REFERENCE_TARGET),
            prune(PROTECTION_BRANCH),
        )

    def transform(self, nino_suffix: str, response: Any) -> TransformResult:
        """Transform an NPS application response body into a client record.

        Args:
            nino_suffix: Suffix character dropped from the NINO before the call
            response: The NPS response body

        Returns:
            TransformResult with the client record, or the issues found
        """
        if not isinstance(response, dict):
            return TransformResult.fail(type_mismatch("root", "an object", response))
        result = self.response_rule(nino_suffix)(response)
        return _log_result(result, "protection application response")


class ReadResponseTransformer:
    """Builds client protection lists from NPS read responses."""

    def __init__(self, vocabularies: Vocabularies = DEFAULT_VOCABULARIES):
        self.vocabularies = vocabularies
        self.list_rule: Rule = protection_list(vocabularies)

    def response_rule(self, nino_suffix: str) -> Rule:
        return sequence(
            merge(append_nino_suffix(nino_suffix), self.list_rule),
            move_field_if_present(PSA_CHECK_REFERENCE_SOURCE, PSA_CHECK_REFERENCE_TARGET),
        )

    def transform(self, nino_suffix: str, response: Any) -> TransformResult:
        if not isinstance(response, dict):
            return TransformResult.fail(type_mismatch("root", "an object", response))
        result = self.response_rule(nino_suffix)(response)
        return _log_result(result, "existing protections response")


def transform_apply_response_body(
    nino_suffix: str,
    response: NpsApplicationResponse | Record,
    vocabularies: Vocabularies | None = None,
) -> TransformResult:
    """Transform an NPS application response body into a client record."""
    transformer = ApplicationResponseTransformer(vocabularies or DEFAULT_VOCABULARIES)
    return transformer.transform(nino_suffix, response)


def transform_read_response_body(
    nino_suffix: str,
    response: NpsReadResponse | Record,
    vocabularies: Vocabularies | None = None,
) -> TransformResult:
    """Transform an NPS read-existing-protections body into a client record."""
    transformer = ReadResponseTransformer(vocabularies or DEFAULT_VOCABULARIES)
    return transformer.transform(nino_suffix, response)
