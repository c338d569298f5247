"""
National Insurance number handling for NPS calls.

NPS identifies an individual by the first eight characters of the NINO; the
trailing suffix letter (A-D) is dropped before the call and appended again
to the NINO returned in the response.

    "AB123456A" -> ("AB123456", "A")
    "AB123456"  -> ("AB123456", None)

No checksum or prefix validation is done here.
"""

from dataclasses import dataclass

NINO_WITHOUT_SUFFIX_LENGTH = 8
NINO_WITH_SUFFIX_LENGTH = 9


class NinoError(ValueError):
    """Raised when a NINO cannot be split into its body and suffix."""


@dataclass(frozen=True)
class SplitNino:
    """A NINO split for an NPS call."""

    nino_without_suffix: str
    suffix: str | None = None

    @property
    def has_suffix(self) -> bool:
        return self.suffix is not None


def drop_nino_suffix(nino: str) -> tuple[str, str | None]:
    """
    Split a NINO into the part sent to NPS and its suffix character.

    Args:
        nino: The NINO as supplied by the client, any case

    Returns:
        Tuple of (nino_without_suffix, suffix); suffix is None for an
        eight-character NINO

    Raises:
        NinoError: If nino is not a string of eight or nine characters
    """
    split = split_nino(nino)
    return split.nino_without_suffix, split.suffix


def split_nino(nino: str) -> SplitNino:
    """Split a NINO into a SplitNino. See drop_nino_suffix."""
    if not isinstance(nino, str):
        raise NinoError("NINO must be a string")

    normalized = nino.strip().upper()

    if not normalized:
        raise NinoError("NINO cannot be empty or whitespace only")

    if len(normalized) == NINO_WITH_SUFFIX_LENGTH:
        return SplitNino(
            nino_without_suffix=normalized[:NINO_WITHOUT_SUFFIX_LENGTH],
            suffix=normalized[NINO_WITHOUT_SUFFIX_LENGTH:],
        )

    if len(normalized) == NINO_WITHOUT_SUFFIX_LENGTH:
        return SplitNino(nino_without_suffix=normalized)

    raise NinoError(
        f"NINO must have {NINO_WITHOUT_SUFFIX_LENGTH} or "
        f"{NINO_WITH_SUFFIX_LENGTH} characters, got {len(normalized)}"
    )
