"""Canonicalization of free-text filament fields.

All functions are pure and total: unrecognized input comes back cleaned
but unmapped, never as an error.
"""

import math
import re
from dataclasses import replace

from spoolshelf.app.schemas.inventory import FilamentDraft, FilamentRecord

# Leading run of anything that is not a letter or digit ("- PLA", "• Silk")
_LEADING_JUNK = re.compile(r"^[\W_]+")
_WHITESPACE = re.compile(r"\s+")

CANONICAL_TYPES = {
    "basic": "Basic",
    "matte": "Matte",
    "silk": "Silk",
}

# Order matters: PLA+ must be tried before PLA
CANONICAL_MATERIALS = ("PLA+", "PLA", "PETG", "ABS", "ASA", "TPU")


def normalize_text(value: str) -> str:
    cleaned = _LEADING_JUNK.sub("", value.strip())
    return _WHITESPACE.sub(" ", cleaned)


def canonical_type(value: str) -> str:
    cleaned = normalize_text(value)
    return CANONICAL_TYPES.get(cleaned.lower(), cleaned)


def canonical_material(value: str) -> str:
    cleaned = normalize_text(value).upper()
    compact = _WHITESPACE.sub("", cleaned)
    for material in CANONICAL_MATERIALS:
        if compact == material:
            return material
    return cleaned


def normalize_draft(draft: FilamentDraft) -> FilamentDraft:
    return replace(
        draft,
        brand=draft.brand.strip(),
        color=normalize_text(draft.color),
        type=canonical_type(draft.type),
        material=canonical_material(draft.material),
    )


def normalize_filament(filament: FilamentRecord) -> FilamentRecord:
    return replace(
        filament,
        brand=filament.brand.strip(),
        color=normalize_text(filament.color),
        type=canonical_type(filament.type),
        material=canonical_material(filament.material),
    )


def validate_draft(draft: FilamentDraft) -> dict[str, str]:
    """Field-level problems that would make the API reject the draft."""
    errors: dict[str, str] = {}

    if not draft.brand.strip():
        errors["brand"] = "Brand is required."
    if not draft.color.strip():
        errors["color"] = "Color is required."
    if not draft.type.strip():
        errors["type"] = "Type is required."
    if not draft.material.strip():
        errors["material"] = "Material is required."

    amount = draft.amount
    if not isinstance(amount, (int, float)) or not math.isfinite(amount) or amount < 0:
        errors["amount"] = "Amount must be zero or greater."

    return errors
