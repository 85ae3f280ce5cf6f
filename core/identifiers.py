"""Identifier classification for player, item, condition and power codes.

Four structured kinds share the same short numeric shape and are told apart
by leading digit (COIN 8xxx, POIN 5xxx-7xxx, ITIN any other 4 digits) or by
the ``#`` separator (PLIN ``1234#12``). Anything else is free text (OTHER).

Classification is a pure function of the raw text: identifiers are never
mutated, they are recomputed from input every time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum


class IdentifierKind(StrEnum):
    ITIN = "ITIN"
    COIN = "COIN"
    POIN = "POIN"
    PLIN = "PLIN"
    OTHER = "OTHER"


class LinkMode(StrEnum):
    """Classification hint: a forced kind, or AUTO detection."""

    AUTO = "AUTO"
    ITIN = "ITIN"
    COIN = "COIN"
    POIN = "POIN"
    PLIN = "PLIN"
    OTHER = "OTHER"


STRUCTURED_KINDS: tuple[IdentifierKind, ...] = (
    IdentifierKind.ITIN,
    IdentifierKind.COIN,
    IdentifierKind.POIN,
    IdentifierKind.PLIN,
)

PLIN_PATTERN = re.compile(r"^\d{1,4}#\d{1,2}$", re.ASCII)
ENTITY_CODE_PATTERN = re.compile(r"^\d{4}$", re.ASCII)

# Order matters: PLIN before the bare four-digit kinds, ITIN last.
_AUTO_RULES: tuple[tuple[re.Pattern[str], IdentifierKind], ...] = (
    (PLIN_PATTERN, IdentifierKind.PLIN),
    (re.compile(r"^8\d{3}$", re.ASCII), IdentifierKind.COIN),
    (re.compile(r"^[567]\d{3}$", re.ASCII), IdentifierKind.POIN),
    (re.compile(r"^\d{4}$", re.ASCII), IdentifierKind.ITIN),
)

_WHITESPACE = re.compile(r"\s+")
_CODE_START = re.compile(r"[0-9#]")
_FIVE_DIGITS = re.compile(r"^[0-9]{5}$")
_NOT_PLIN_CHAR = re.compile(r"[^0-9#]")


@dataclass(frozen=True)
class Identifier:
    kind: IdentifierKind
    value: str

    @property
    def link(self) -> str:
        """``KIND:VALUE`` form stored in a note's linked ids."""
        return f"{self.kind}:{self.value}"

    @property
    def is_structured(self) -> bool:
        return self.kind in STRUCTURED_KINDS

    @classmethod
    def from_link(cls, link: str) -> Identifier:
        kind, sep, value = link.partition(":")
        if sep and kind in IdentifierKind.__members__:
            return cls(IdentifierKind(kind), value)
        return cls(IdentifierKind.OTHER, link)


def _strip_all_whitespace(raw: str) -> str:
    return _WHITESPACE.sub("", raw).upper()


def _leading_prefix(clean: str) -> IdentifierKind | None:
    for kind in STRUCTURED_KINDS:
        if clean.startswith(kind.value):
            return kind
    return None


def classify(raw: str, hint: LinkMode | str = LinkMode.AUTO) -> Identifier:
    """Classify raw text as an identifier.

    A forced kind strips its own literal prefix (``ITIN1234`` -> ``1234``).
    AUTO honours a typed prefix only when a digit or ``#`` follows it, so
    ``ITIN:1234`` stays free text while ``ITIN1234`` is an ITIN. Free text
    keeps the original input, trimmed only at the ends.
    """
    mode = LinkMode(hint)
    if mode is LinkMode.OTHER:
        return Identifier(IdentifierKind.OTHER, raw.strip())

    clean = _strip_all_whitespace(raw)

    if mode is not LinkMode.AUTO:
        kind = IdentifierKind(mode.value)
        if clean.startswith(kind.value):
            clean = clean[len(kind.value):]
        return Identifier(kind, clean)

    prefix = _leading_prefix(clean)
    if prefix is not None:
        remainder = clean[len(prefix.value):]
        if remainder and _CODE_START.match(remainder[0]):
            return Identifier(prefix, remainder)
        return Identifier(IdentifierKind.OTHER, raw.strip())

    for pattern, kind in _AUTO_RULES:
        if pattern.match(clean):
            return Identifier(kind, clean)
    return Identifier(IdentifierKind.OTHER, raw.strip())


def detect_link_mode(partial: str, current: LinkMode = LinkMode.AUTO) -> LinkMode:
    """Mode to show while the user is still typing ``partial``.

    A bare prefix confirms its kind; a prefix followed by anything other than
    a digit or ``#`` flips to OTHER. Without a prefix the current mode holds.
    """
    if not partial:
        return LinkMode.AUTO
    clean = _strip_all_whitespace(partial)
    prefix = _leading_prefix(clean)
    if prefix is None:
        return current
    remainder = clean[len(prefix.value):]
    if not remainder or _CODE_START.match(remainder[0]):
        return LinkMode(prefix.value)
    return LinkMode.OTHER


def auto_punctuate_plin(text: str) -> str:
    """Rewrite a bare run of five digits as ``NNNN#N``."""
    if _FIVE_DIGITS.match(text):
        return f"{text[:4]}#{text[4:]}"
    return text


def normalize_plin_field(raw: str) -> str:
    """Normalizer for dedicated PLIN inputs; tolerates partial entry."""
    clean = _NOT_PLIN_CHAR.sub("", raw)
    if "#" in clean:
        head, _, tail = clean.partition("#")
        return f"{head[:4]}#{tail.replace('#', '')[:2]}"
    if len(clean) > 4:
        return f"{clean[:4]}#{clean[4:6]}"
    return clean


def is_plin(value: str) -> bool:
    return bool(PLIN_PATTERN.match(value))


def is_entity_code(value: str) -> bool:
    return bool(ENTITY_CODE_PATTERN.match(value))
