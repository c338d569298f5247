"""Field rules and the combinators that compose them into pipelines.

A rule is any callable taking a record and returning a TransformResult. Most
rules produce a *contribution*: a new record holding only the fields the rule
is responsible for (rename, put, insert_branch). Update-style rules
(encode_field, decode_field, update, prune, move_field) return the whole
input record with one location changed.

Contributions are combined with three combinators:

    merge(a, b, ...)     run every rule on the same input and deep-merge the
                         produced records; all issues are collected
    sequence(a, b, ...)  feed each rule's output into the next; stop at the
                         first failure
    fallback(a, b)       if a fails only because a field is absent, run b on
                         the original input; any other failure propagates

Example:
    >>> rule = merge(
    ...     sequence(rename("protectionType", "type"), encode_field("type", PROTECTION_TYPES)),
    ...     copy_if_present("relevantAmount"),
    ... )
    >>> rule({"protectionType": "IP2014", "relevantAmount": 1000.0}).record
    {'type': 2, 'relevantAmount': 1000.0}
"""

import copy
import logging
from functools import reduce
from typing import Any, Callable

from lta_protections.transformers.base import (
    Record,
    TransformErrorKind,
    TransformIssue,
    TransformResult,
    missing_field,
    type_mismatch,
)
from lta_protections.transformers.record_paths import (
    MISSING,
    deep_merge,
    delete_path,
    get_path,
    nest_under,
    set_path,
)
from lta_protections.transformers.vocabulary import (
    IndexOutOfRangeError,
    UnknownVocabularyValueError,
    VocabularyTable,
)

logger = logging.getLogger(__name__)

Rule = Callable[[Record], TransformResult]


class RuleError(Exception):
    """Raised inside value functions passed to update() to report an issue."""

    def __init__(self, issue: TransformIssue):
        self.issue = issue
        super().__init__(issue.message)


# ---------------------------------------------------------------- combinators


def merge(*rules: Rule) -> Rule:
    """Combine rules that each own disjoint output paths ("and").

    Every rule runs against the same input, so issues from independent rules
    are all reported. The merged record is produced only if every rule
    succeeded.
    """

    def rule(record: Record) -> TransformResult:
        results = [r(record) for r in rules]
        issues = [issue for result in results for issue in result.issues]
        if any(not result.success for result in results):
            return TransformResult.fail(*issues)
        merged = reduce(deep_merge, (result.record or {} for result in results), {})
        return TransformResult.ok(merged)

    return rule


def sequence(*rules: Rule) -> Rule:
    """Chain rules so each one reads the previous rule's output ("and-then")."""

    def rule(record: Record) -> TransformResult:
        current = record
        for step in rules:
            result = step(current)
            if not result.success:
                return result
            current = result.record or {}
        return TransformResult.ok(current)

    return rule


def fallback(primary: Rule, alternative: Rule) -> Rule:
    """Use alternative when primary fails because a field is absent ("or-else").

    The alternative is evaluated against the original input, never against
    anything primary produced. Failures other than a missing field (type
    mismatches, vocabulary errors, malformed elements) are not absorbed.
    """

    def rule(record: Record) -> TransformResult:
        result = primary(record)
        if result.success:
            return result
        if result.only_missing_fields:
            logger.debug(
                "Falling back after missing field",
                extra={"field_paths": [i.field_path for i in result.issues]},
            )
            return alternative(record)
        return result

    return rule


# ----------------------------------------------------------------- primitives


def empty() -> Rule:
    """Rule producing an empty contribution; merges to a no-op."""
    return lambda record: TransformResult.ok({})


def identity() -> Rule:
    """Rule producing the whole input record."""
    return lambda record: TransformResult.ok(dict(record))


def put(path: str, value: Any) -> Rule:
    """Rule contributing a constant value at path."""
    return lambda record: TransformResult.ok(nest_under(path, copy.deepcopy(value)))


def insert_branch(path: str) -> Rule:
    """Rule contributing the whole input record nested beneath path."""
    return lambda record: TransformResult.ok(nest_under(path, copy.deepcopy(record)))


def prune(path: str) -> Rule:
    """Rule returning the input record without the value at path.

    Pruning an absent path is not an error.
    """
    return lambda record: TransformResult.ok(delete_path(record, path))


def rename(source: str, target: str) -> Rule:
    """Rule contributing the value at source, placed at target.

    The contribution holds only target; the source field does not appear in
    it. Either path may address a nested field, so rename("protection.id",
    "id") lifts a branch field to the top level.
    """

    def rule(record: Record) -> TransformResult:
        value = get_path(record, source)
        if value is MISSING:
            return TransformResult.fail(missing_field(source))
        return TransformResult.ok(nest_under(target, copy.deepcopy(value)))

    return rule


def rename_if_present(source: str, target: str) -> Rule:
    return fallback(rename(source, target), empty())


def copy_if_present(name: str) -> Rule:
    return rename_if_present(name, name)


def move_field(source: str, target: str) -> Rule:
    """Rule returning the input record with source moved to target.

    Unlike rename(), every other field of the record is kept, so moving a
    field and moving it back restores the original record.
    """

    def rule(record: Record) -> TransformResult:
        value = get_path(record, source)
        if value is MISSING:
            return TransformResult.fail(missing_field(source))
        return TransformResult.ok(set_path(delete_path(record, source), target, value))

    return rule


def move_field_if_present(source: str, target: str) -> Rule:
    return fallback(move_field(source, target), identity())


def update(path: str, fn: Callable[[Any, str], Any]) -> Rule:
    """Rule returning the input record with the value at path replaced.

    Args:
        path: Field path of the value to replace (required)
        fn: Called as fn(value, path); returns the new value or raises
            RuleError to report an issue
    """

    def rule(record: Record) -> TransformResult:
        value = get_path(record, path)
        if value is MISSING:
            return TransformResult.fail(missing_field(path))
        try:
            new_value = fn(value, path)
        except RuleError as e:
            return TransformResult.fail(e.issue)
        return TransformResult.ok(set_path(record, path, new_value))

    return rule


# ------------------------------------------------------------ code translation


def _encoder(table: VocabularyTable) -> Callable[[Any, str], int]:
    def encode_value(value: Any, path: str) -> int:
        if not isinstance(value, str):
            raise RuleError(type_mismatch(path, "a string", value))
        try:
            return table.encode(value)
        except UnknownVocabularyValueError as e:
            raise RuleError(
                TransformIssue(
                    kind=TransformErrorKind.UNKNOWN_VOCABULARY_VALUE,
                    field_path=path,
                    message=str(e),
                    source_value=value,
                )
            ) from e

    return encode_value


def _decoder(table: VocabularyTable) -> Callable[[Any, str], str]:
    def decode_value(value: Any, path: str) -> str:
        # bool is an int subclass but never a valid code
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise RuleError(type_mismatch(path, "a number", value))
        if isinstance(value, float):
            if not value.is_integer():
                raise RuleError(type_mismatch(path, "an integer code", value))
            value = int(value)
        try:
            return table.decode(value)
        except IndexOutOfRangeError as e:
            raise RuleError(
                TransformIssue(
                    kind=TransformErrorKind.INDEX_OUT_OF_RANGE,
                    field_path=path,
                    message=str(e),
                    source_value=value,
                )
            ) from e

    return decode_value


def encode_field(path: str, table: VocabularyTable) -> Rule:
    """Replace the name at path with its code in table."""
    return update(path, _encoder(table))


def decode_field(path: str, table: VocabularyTable) -> Rule:
    """Replace the code at path with its name in table."""
    return update(path, _decoder(table))


def encode_field_if_present(path: str, table: VocabularyTable) -> Rule:
    return fallback(encode_field(path, table), empty())


def decode_field_if_present(path: str, table: VocabularyTable) -> Rule:
    return fallback(decode_field(path, table), empty())


def prefix_issues(result: TransformResult, prefix: str) -> TransformResult:
    """Nest the paths of a failed result's issues under prefix."""
    if result.success:
        return result
    return TransformResult.fail(*(issue.with_prefix(prefix) for issue in result.issues))
