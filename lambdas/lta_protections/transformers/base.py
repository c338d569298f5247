"""Result and issue types shared by every transformation rule.

Rules never raise for bad input data. They return a TransformResult that
either carries the produced record or the structural issues that prevented
it from being produced. Issues accumulate when independent rules are merged.

Key Classes:
    TransformErrorKind: Kind of structural failure
    TransformIssue: Individual failure with the field path it concerns
    TransformResult: Produced record or list of issues
    TransformationError: Exception form of a failed result (see unwrap())
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

Record = dict[str, Any]


class TransformErrorKind(Enum):
    """Kind of structural failure reported by a rule.

    MISSING_REQUIRED_FIELD: A field the rule depends on is absent
    TYPE_MISMATCH: A value exists but is not of the expected JSON kind
    UNKNOWN_VOCABULARY_VALUE: A name is not present in its vocabulary table
    INDEX_OUT_OF_RANGE: A numeric code falls outside its vocabulary table
    MALFORMED_ARRAY_ELEMENT: An array element does not have the expected shape
    """

    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    TYPE_MISMATCH = "TypeMismatch"
    UNKNOWN_VOCABULARY_VALUE = "UnknownVocabularyValue"
    INDEX_OUT_OF_RANGE = "IndexOutOfRange"
    MALFORMED_ARRAY_ELEMENT = "MalformedArrayElement"


@dataclass(frozen=True)
class TransformIssue:
    """A single structural failure found while transforming a record.

    Attributes:
        kind: The kind of failure
        field_path: Dot-notation path of the field concerned (e.g., "protection.type")
        message: Human-readable description of the failure
        source_value: What the failure is about, when there is one: the
                      offending value (UnknownVocabularyValue,
                      IndexOutOfRange), the element index
                      (MalformedArrayElement) or the expected kind
                      (TypeMismatch, e.g. "a number")
    """

    kind: TransformErrorKind
    field_path: str
    message: str
    source_value: Any | None = None

    def with_prefix(self, prefix: str) -> "TransformIssue":
        """Return a copy of this issue with its path nested under prefix."""
        path = f"{prefix}.{self.field_path}" if self.field_path else prefix
        return TransformIssue(self.kind, path, self.message, self.source_value)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization.

        Returns:
            Dictionary representation with kind as string
        """
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "field_path": self.field_path,
            "message": self.message,
        }
        if self.source_value is not None:
            result["source_value"] = self.source_value
        return result


def missing_field(path: str) -> TransformIssue:
    return TransformIssue(
        kind=TransformErrorKind.MISSING_REQUIRED_FIELD,
        field_path=path,
        message=f"Required field '{path}' is missing",
    )


def type_mismatch(path: str, expected: str, value: Any) -> TransformIssue:
    return TransformIssue(
        kind=TransformErrorKind.TYPE_MISMATCH,
        field_path=path,
        message=f"Field '{path}' must be {expected}, got {json_kind(value)}",
        source_value=expected,
    )


def json_kind(value: Any) -> str:
    """Name the JSON kind of a decoded value (used in error messages)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


class TransformationError(Exception):
    """Raised by TransformResult.unwrap() when the result is a failure."""

    def __init__(self, issues: list[TransformIssue]):
        self.issues = issues
        summary = "; ".join(f"{i.kind.value}({i.field_path})" for i in issues)
        super().__init__(f"Transformation failed: {summary}")


@dataclass
class TransformResult:
    """Result of applying a rule or pipeline to a record.

    Exactly one of the two states holds: success with a produced record, or
    failure with at least one issue.

    Attributes:
        success: True if a record was produced
        record: The produced record (None on failure)
        issues: Structural issues (empty on success)
    """

    success: bool
    record: Record | None = None
    issues: list[TransformIssue] = field(default_factory=list)

    @classmethod
    def ok(cls, record: Record) -> "TransformResult":
        return cls(success=True, record=record)

    @classmethod
    def fail(cls, *issues: TransformIssue) -> "TransformResult":
        return cls(success=False, issues=list(issues))

    @property
    def only_missing_fields(self) -> bool:
        """True when every issue is a missing field (the "absent" case)."""
        return bool(self.issues) and all(
            issue.kind == TransformErrorKind.MISSING_REQUIRED_FIELD
            for issue in self.issues
        )

    def error_kinds(self) -> set[TransformErrorKind]:
        return {issue.kind for issue in self.issues}

    def unwrap(self) -> Record:
        """Return the produced record or raise TransformationError.

        Raises:
            TransformationError: If the result is a failure
        """
        if not self.success or self.record is None:
            raise TransformationError(self.issues)
        return self.record

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization.

        Returns:
            Dictionary with success flag and either the record or the issues
        """
        if self.success:
            return {"success": True, "record": self.record}
        return {
            "success": False,
            "issues": [issue.to_dict() for issue in self.issues],
            "error_count": len(self.issues),
        }
