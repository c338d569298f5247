"""Protection detail mapping from NPS protections to client records.

NPS nests a protection's details in a branch with NPS field names and integer
codes. The client API exposes them flat, with client field names and
vocabulary names:

    NPS field            client field                           notes
    id                   protectionID                           optional
    version              version                                optional
    type                 protectionType                         required, decoded
    status               status                                 optional, decoded
    notificationID       notificationId                         optional
    postADayBCE          postADayBenefitCrystallisationEvents   optional
    protectionReference, relevantAmount, preADayPensionInPayment,
    uncrystallisedRights, nonUKRights                           optional copies
    certificateDate + certificateTime -> certificateDate        fused

The same rules serve the single protection of an application response (read
from the "protection" branch) and each element of a read response (read
from the element itself).
"""

from lta_protections.transformers.base import (
    Record,
    TransformErrorKind,
    TransformIssue,
    TransformResult,
    type_mismatch,
)
from lta_protections.transformers.field_mappers.map_certificate_date import (
    certificate_date,
)
from lta_protections.transformers.record_paths import MISSING, get_path
from lta_protections.transformers.rules import (
    Rule,
    decode_field,
    decode_field_if_present,
    merge,
    prefix_issues,
    rename,
    rename_if_present,
    sequence,
)
from lta_protections.transformers.vocabulary import Vocabularies

# NPS field -> client field, for fields copied without any conversion
RENAMED_FIELDS: dict[str, str] = {
    "id": "protectionID",
    "version": "version",
    "relevantAmount": "relevantAmount",
    "preADayPensionInPayment": "preADayPensionInPayment",
    "postADayBCE": "postADayBenefitCrystallisationEvents",
    "uncrystallisedRights": "uncrystallisedRights",
    "nonUKRights": "nonUKRights",
    "notificationID": "notificationId",
    "protectionReference": "protectionReference",
}


def protection_details(vocabularies: Vocabularies, branch: str = "") -> Rule:
    """Build the rule lifting protection details out of branch.

    Args:
        vocabularies: Tables used to decode type and status codes
        branch: Path of the NPS protection branch ("" for the record itself)

    Returns:
        Rule contributing the flat client protection fields
    """
    prefix = f"{branch}." if branch else ""

    copies = [
        rename_if_present(prefix + nps_field, client_field)
        for nps_field, client_field in RENAMED_FIELDS.items()
    ]

    return merge(
        sequence(
            rename(prefix + "type", "protectionType"),
            decode_field("protectionType", vocabularies.protection_types),
        ),
        sequence(
            rename_if_present(prefix + "status", "status"),
            decode_field_if_present("status", vocabularies.protection_statuses),
        ),
        *copies,
        certificate_date(branch),
    )


def protection_list(vocabularies: Vocabularies, field: str = "protections") -> Rule:
    """Build the rule reshaping every NPS protection of a read response.

    An absent (or null) list contributes nothing. Issues found inside an
    element are reported under "protections[<index>]".

    Args:
        vocabularies: Tables used to decode type and status codes
        field: Top-level field holding the list
    """
    element_rule = protection_details(vocabularies)

    def rule(record: Record) -> TransformResult:
        value = get_path(record, field)
        if value is MISSING or value is None:
            return TransformResult.ok({})
        if not isinstance(value, list):
            return TransformResult.fail(type_mismatch(field, "an array", value))

        reshaped: list[Record] = []
        issues: list[TransformIssue] = []
        for index, element in enumerate(value):
            if not isinstance(element, dict):
                issues.append(
                    TransformIssue(
                        kind=TransformErrorKind.MALFORMED_ARRAY_ELEMENT,
                        field_path=field,
                        message=f"Element {index}: protection must be an object",
                        source_value=index,
                    )
                )
                continue
            result = prefix_issues(element_rule(element), f"{field}[{index}]")
            if result.success:
                reshaped.append(result.record or {})
            else:
                issues.extend(result.issues)

        if issues:
            return TransformResult.fail(*issues)
        return TransformResult.ok({field: reshaped})

    return rule
