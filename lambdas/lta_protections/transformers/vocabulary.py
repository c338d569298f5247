"""Fixed ordered vocabularies and the name <-> integer code codec.

The registration system persists enumerations as integer codes; the
application API exposes them as names. A name's position in its table is its
stable code, so tables may only ever grow at the end.

Reference tables:
    protection types: Unknown, FP2016, IP2014, IP2016, Primary, Enhanced, Fixed, " FP2014"
    protection statuses: Unknown, Open, Dormant, Withdrawn, Expired, Unsuccessful, Rejected

Note: the last protection type really is " FP2014" with a leading space. It is
what the registration system stores and must be matched verbatim.
"""

from dataclasses import dataclass
from typing import Any


class VocabularyError(ValueError):
    """Base class for vocabulary lookup failures."""


class UnknownVocabularyValueError(VocabularyError):
    """Raised when a name is not present in a vocabulary table."""

    def __init__(self, table_name: str, value: Any):
        self.table_name = table_name
        self.value = value
        super().__init__(f"'{value}' is not a known {table_name} value")


class IndexOutOfRangeError(VocabularyError):
    """Raised when a code falls outside a vocabulary table."""

    def __init__(self, table_name: str, index: int, size: int):
        self.table_name = table_name
        self.index = index
        self.size = size
        super().__init__(
            f"Code {index} is out of range for {table_name} (valid range 0-{size - 1})"
        )


@dataclass(frozen=True)
class VocabularyTable:
    """Immutable ordered vocabulary whose positions are integer codes.

    Attributes:
        name: Table name used in error messages (e.g., "protection type")
        entries: Names in code order
    """

    name: str
    entries: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(set(self.entries)) != len(self.entries):
            raise ValueError(f"Vocabulary '{self.name}' contains duplicate entries")

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def encode(self, name: str) -> int:
        return encode(self, name)

    def decode(self, index: int) -> str:
        return decode(self, index)


def encode(table: VocabularyTable, name: str) -> int:
    """Return the zero-based code of name in table.

    Raises:
        UnknownVocabularyValueError: If name is not in the table

    Example:
        >>> encode(PROTECTION_TYPES, "IP2014")
        2
    """
    try:
        return table.entries.index(name)
    except ValueError:
        raise UnknownVocabularyValueError(table.name, name) from None


def decode(table: VocabularyTable, index: int) -> str:
    """Return the name stored at code index.

    Negative indexes are rejected rather than counted from the end.

    Raises:
        IndexOutOfRangeError: If index < 0 or index >= len(table)

    Example:
        >>> decode(PROTECTION_STATUSES, 1)
        'Open'
    """
    if index < 0 or index >= len(table.entries):
        raise IndexOutOfRangeError(table.name, index, len(table.entries))
    return table.entries[index]


PROTECTION_TYPES = VocabularyTable(
    name="protection type",
    entries=(
        "Unknown",
        "FP2016",
        "IP2014",
        "IP2016",
        "Primary",
        "Enhanced",
        "Fixed",
        " FP2014",
    ),
)

PROTECTION_STATUSES = VocabularyTable(
    name="protection status",
    entries=(
        "Unknown",
        "Open",
        "Dormant",
        "Withdrawn",
        "Expired",
        "Unsuccessful",
        "Rejected",
    ),
)


@dataclass(frozen=True)
class Vocabularies:
    """The vocabulary tables injected into the transformers.

    Attributes:
        protection_types: Protection type names
        protection_statuses: Protection status names
    """

    protection_types: VocabularyTable = PROTECTION_TYPES
    protection_statuses: VocabularyTable = PROTECTION_STATUSES


DEFAULT_VOCABULARIES = Vocabularies()
