"""Record transformation engine for NPS protection payloads.

Records are plain JSON-shaped dicts. Rules are functions taking a record and
returning a TransformResult; combinators in rules build the pipelines in
request_transformer and response_transformer from smaller rules.

Example:
    >>> from lta_protections.transformers import transform_apply_request_body
    >>> transform_apply_request_body("AA123456", {"protectionType": "IP2014"}).record
    {'nino': 'AA123456', 'protection': {'type': 2}}
"""

from lta_protections.transformers.base import (
    Record,
    TransformationError,
    TransformErrorKind,
    TransformIssue,
    TransformResult,
)
from lta_protections.transformers.request_transformer import (
    ApplicationRequestTransformer,
    transform_apply_request_body,
)
from lta_protections.transformers.response_transformer import (
    ApplicationResponseTransformer,
    ReadResponseTransformer,
    transform_apply_response_body,
    transform_read_response_body,
)
from lta_protections.transformers.vocabulary import (
    DEFAULT_VOCABULARIES,
    PROTECTION_STATUSES,
    PROTECTION_TYPES,
    Vocabularies,
    VocabularyTable,
)

__all__ = [
    "ApplicationRequestTransformer",
    "ApplicationResponseTransformer",
    "DEFAULT_VOCABULARIES",
    "PROTECTION_STATUSES",
    "PROTECTION_TYPES",
    "ReadResponseTransformer",
    "Record",
    "TransformErrorKind",
    "TransformIssue",
    "TransformResult",
    "TransformationError",
    "Vocabularies",
    "VocabularyTable",
    "transform_apply_request_body",
    "transform_apply_response_body",
    "transform_read_response_body",
]
