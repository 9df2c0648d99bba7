"""In-session category state.

The state model maps every category shown to the user to its tri-state
value. It is built once per session from the catalog and the parsed host
expression, mutated by user commands, and discarded when the session ends.
Keys are always kept in sorted order so the serializer sees a stable
iteration order.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterable, Iterator, Mapping

from category_filter.expression import is_valid_category_name
from category_filter.logging import get_logger
from category_filter.types import CategoryState

logger = get_logger(__name__)


def _check_name(name: str) -> None:
    if not is_valid_category_name(name):
        raise ValueError(f"Invalid category name: {name!r}")


class CategoryStateModel(Mapping[str, CategoryState]):
    """Sorted, mutable mapping of category name to CategoryState.

    Included and excluded are mutually exclusive per category; setting one
    replaces the other. Reads go through the ``Mapping`` interface, so the
    model can be handed directly to ``serialize_state``.

    Example:
        model = CategoryStateModel(["Smoke", "DbApi"])
        model.set_state("Smoke", CategoryState.INCLUDED)
        model.set_state("Smoke", CategoryState.EXCLUDED)
        model["Smoke"]  # CategoryState.EXCLUDED
    """

    def __init__(
        self,
        names: Iterable[str] = (),
        states: Mapping[str, CategoryState] | None = None,
    ) -> None:
        """Initialize the model.

        Args:
            names: Category names to show, all starting NEUTRAL.
            states: Optional initial states; their keys are added to ``names``.

        Raises:
            ValueError: If a name is not a ``[A-Za-z0-9]+`` token.
        """
        states = states or {}
        self._names: list[str] = sorted(set(names) | set(states))
        for name in self._names:
            _check_name(name)
        self._states: dict[str, CategoryState] = dict.fromkeys(self._names, CategoryState.NEUTRAL)
        for name, state in states.items():
            self._states[name] = CategoryState(state)

    def __getitem__(self, name: str) -> CategoryState:
        return self._states[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        items = ", ".join(f"{name}={self._states[name]}" for name in self._names)
        return f"CategoryStateModel({items})"

    def add(self, name: str) -> bool:
        """Insert a NEUTRAL category, keeping sort order.

        Returns:
            True if the name was added, False if it was already present.

        Raises:
            ValueError: If ``name`` is not a ``[A-Za-z0-9]+`` token.
        """
        if name in self._states:
            return False
        _check_name(name)
        bisect.insort(self._names, name)
        self._states[name] = CategoryState.NEUTRAL
        return True

    def discard(self, name: str) -> None:
        """Remove a category if present."""
        if name in self._states:
            self._names.remove(name)
            del self._states[name]

    def set_state(self, name: str, state: CategoryState) -> None:
        """Set a category's state, adding the category if unknown.

        Args:
            name: Category name.
            state: New state. INCLUDED and EXCLUDED replace each other.

        Raises:
            ValueError: If ``name`` is unknown and not a valid category name.
        """
        self.add(name)
        self._states[name] = CategoryState(state)
        logger.debug(
            "Category %s set to %s",
            name,
            state,
            extra={"diagnostic_tag": "state", "category": name},
        )

    def set_flags(self, name: str, included: bool, excluded: bool) -> CategoryState:
        """Set a category's state from independent include/exclude flags.

        Requesting both flags resolves to INCLUDED; requesting neither
        resolves to NEUTRAL.

        Returns:
            The state that was applied.
        """
        if included:
            state = CategoryState.INCLUDED
        elif excluded:
            state = CategoryState.EXCLUDED
        else:
            state = CategoryState.NEUTRAL
        self.set_state(name, state)
        return state

    def clear(self, name: str) -> None:
        """Reset a single category to NEUTRAL. Unknown names are ignored."""
        if name in self._states:
            self._states[name] = CategoryState.NEUTRAL

    def clear_all(self) -> None:
        """Reset every category to NEUTRAL."""
        for name in self._names:
            self._states[name] = CategoryState.NEUTRAL

    def included(self) -> list[str]:
        """Included category names, in sorted order."""
        return [name for name in self._names if self._states[name] == CategoryState.INCLUDED]

    def excluded(self) -> list[str]:
        """Excluded category names, in sorted order."""
        return [name for name in self._names if self._states[name] == CategoryState.EXCLUDED]

    def selected(self) -> dict[str, CategoryState]:
        """All non-neutral categories and their states, in sorted order."""
        return {
            name: self._states[name]
            for name in self._names
            if self._states[name] != CategoryState.NEUTRAL
        }


def build_state(
    catalog: Iterable[str],
    parsed: Mapping[str, CategoryState],
) -> CategoryStateModel:
    """Merge the catalog with the categories parsed from the host expression.

    Every parsed category appears in the result even if the catalog does
    not know it, so nothing in the currently committed filter is dropped.

    Args:
        catalog: Known category names.
        parsed: Output of ``parse_expression`` for the host expression.

    Returns:
        A model keyed by ``catalog | parsed`` in sorted order, with parsed
        categories carrying their parsed state and the rest NEUTRAL.
    """
    catalog_names = set(catalog)
    unknown = sorted(name for name in parsed if name not in catalog_names)
    if unknown:
        logger.info(
            "Expression references categories missing from the catalog: %s",
            ", ".join(unknown),
        )
    return CategoryStateModel(catalog_names, parsed)


__all__ = [
    "CategoryStateModel",
    "build_state",
]
