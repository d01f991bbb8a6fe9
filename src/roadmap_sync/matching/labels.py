"""Case-insensitive label/tag matching."""

from __future__ import annotations

from collections.abc import Iterable


def normalize_labels(labels: Iterable[str]) -> list[str]:
    """Lower-case and trim labels, dropping empty ones.

    Args:
        labels: Raw label names.

    Returns:
        Normalized label names in their original order.
    """
    normalized = (label.strip().lower() for label in labels)
    return [label for label in normalized if label]


def matches_all(item_labels: Iterable[str], required: Iterable[str]) -> bool:
    """Check that every required tag is present on an item.

    Comparison is exact after normalization; there is no prefix matching.
    An empty ``required`` set always matches.

    Args:
        item_labels: Labels carried by the ticket, issue or PR.
        required: Tags the caller filters on.

    Returns:
        True if all required tags are present.
    """
    wanted = set(normalize_labels(required))
    if not wanted:
        return True
    return wanted.issubset(normalize_labels(item_labels))
