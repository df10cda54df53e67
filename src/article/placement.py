"""Image placement policy.

Inline images are capped at every other section: only even-indexed
sections may carry one, whatever the model asked for.  The rule is a pure
function of the section's position so a given outline always yields the
same image slots.
"""

from __future__ import annotations


def should_place_image(section_index: int, backend_requested: bool) -> bool:
    """Decide whether an image call is issued for a section.

    Args:
        section_index: Zero-based position of the section in the outline.
        backend_requested: Whether the generated prose contains an image
            directive.

    Returns:
        True only when an image was requested and the section is even-indexed.
    """
    if section_index < 0:
        raise ValueError(f"section_index must be non-negative, got {section_index}")
    return backend_requested and section_index % 2 == 0


def image_slots(section_count: int) -> list[int]:
    """Indexes of the sections allowed to carry an image."""
    return [i for i in range(section_count) if should_place_image(i, True)]
