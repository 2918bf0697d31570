from typing import Iterable, List, Optional


def parse_materials(raw: Optional[str]) -> List[str]:
    """Split the stored comma-joined material column into an ordered list."""
    if not raw:
        return []
    return [link.strip() for link in raw.split(",") if link.strip()]


def serialize_materials(links: Iterable[str]) -> str:
    return ", ".join(links)


def merge_materials(existing: List[str], new_links: Iterable[str]) -> List[str]:
    """Append new links in order, skipping blanks and ones already present."""
    merged = list(existing)
    for link in new_links:
        trimmed = link.strip()
        if trimmed and trimmed not in merged:
            merged.append(trimmed)
    return merged
