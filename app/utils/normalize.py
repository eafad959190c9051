"""
Field normalization for application submissions.

Clients send the same field in different shapes (single string,
comma-separated string, repeated form field, JSON list or boolean).
One function per field type turns them into the stored representation.
"""

from typing import Any, List, Optional

CONSENT_TRUE_VALUES = {"true", "on"}


def normalize_skills(value: Any) -> List[str]:
    """
    Return an ordered list of trimmed, non-empty skill names.

    "soil, GIS"          -> ["soil", "GIS"]
    ["soil", "GIS"]      -> ["soil", "GIS"]
    ["soil,GIS", "maps"] -> ["soil", "GIS", "maps"]
    None / ""            -> []
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = [value]
    elif isinstance(value, (list, tuple)):
        items = [item for item in value if item is not None]
    else:
        items = [value]

    skills = []
    for item in items:
        for part in str(item).split(","):
            part = part.strip()
            if part:
                skills.append(part)
    return skills


def normalize_consent(value: Any) -> bool:
    """Only True, "true" and "on" (checkbox) count as consent; exact match."""
    if value is True:
        return True
    if isinstance(value, str):
        return value in CONSENT_TRUE_VALUES
    return False


def normalize_text(value: Any, default: str = "") -> str:
    """Trimmed string, or `default` when absent or blank."""
    if isinstance(value, (list, tuple)):
        value = value[-1] if value else None
    if value is None:
        return default
    value = str(value).strip()
    return value or default


def normalize_optional_text(value: Any) -> Optional[str]:
    value = normalize_text(value)
    return value or None
