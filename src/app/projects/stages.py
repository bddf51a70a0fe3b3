"""Stage canonicalization for authoritative project records.

The XML source labels a project's lifecycle stage with free text. The CRM
stores one of eight canonical stage codes. ``canonicalize_stage`` maps the
known synonyms onto those codes with an exact, case-sensitive lookup and
passes anything else through untouched.

Exports:
    STAGE_ALIASES: Canonical code -> tuple of free-text aliases.
    CANONICAL_STAGES: The closed set of canonical codes.
    canonicalize_stage: Map a raw stage label to its canonical code.
"""

from __future__ import annotations

STAGE_ALIASES: dict[str, tuple[str, ...]] = {
    "Bid Date Set": (
        "Pre-Bid",
        "Bid Date Set",
        "Biddate Set",
        "Schematic Design",
        "Design Development",
    ),
    "OB": ("Open Bid", "SUBBIDS: ASAP"),
    "LBA": ("Low Bid Apparent", "Low Bid / Apparent", "Low Bids Announced"),
    "AGC": (
        "Post-Bid - General Contractor Award",
        "Architectural General Contracting",
        "General Contractor Award",
    ),
    "PB": ("Post Bid",),
    "GC": ("General Contract", "Construction Underway"),
    "CM": ("Construction Manager",),
    "CD": ("Construction Documents", "Pre-Design"),
}

CANONICAL_STAGES: frozenset[str] = frozenset(STAGE_ALIASES)

# Reverse lookup: alias -> code. Aliases are unique across codes.
_ALIAS_TO_CODE: dict[str, str] = {
    alias: code for code, aliases in STAGE_ALIASES.items() for alias in aliases
}


def canonicalize_stage(raw_stage: str | None) -> str | None:
    """Return the canonical code for ``raw_stage``, or ``raw_stage`` unchanged.

    No whitespace or case normalization is applied. ``None`` maps to ``None``.
    """
    if raw_stage is None:
        return None
    return _ALIAS_TO_CODE.get(raw_stage, raw_stage)
