"""Type definitions and enums for the category filter.

Usage:
    from category_filter.types import CategoryState, ToggleDirection

    # CategoryState inherits from StrEnum, so direct comparison works
    if state == CategoryState.INCLUDED:
        ...

    CategoryState.is_valid("excluded")  # True
    ToggleDirection("include").state  # CategoryState.INCLUDED
"""

from __future__ import annotations

from enum import StrEnum


class CategoryState(StrEnum):
    """Tri-state classification of a category within the current draft.

    Values:
        INCLUDED: The category is required ("included")
        EXCLUDED: The category must be absent ("excluded")
        NEUTRAL: The category does not appear in the draft ("neutral")
    """

    INCLUDED = "included"
    EXCLUDED = "excluded"
    NEUTRAL = "neutral"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check if a string value is a valid category state.

        Args:
            value: The string value to validate.

        Returns:
            True if the value matches a valid category state.
        """
        return value in cls._value2member_map_

    @classmethod
    def values(cls) -> frozenset[str]:
        """Return all valid category state values as a frozenset."""
        return frozenset(member.value for member in cls)


class ToggleDirection(StrEnum):
    """Direction of a toggle command issued against one category.

    Values:
        INCLUDE: Mark the category as included ("include")
        EXCLUDE: Mark the category as excluded ("exclude")
    """

    INCLUDE = "include"
    EXCLUDE = "exclude"

    @property
    def state(self) -> CategoryState:
        """The category state this direction sets."""
        if self is ToggleDirection.INCLUDE:
            return CategoryState.INCLUDED
        return CategoryState.EXCLUDED


__all__ = [
    "CategoryState",
    "ToggleDirection",
]
