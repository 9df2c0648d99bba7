"""Filter editing sessions.

A session is opened when the user starts editing a trigger's filter and is
discarded when they are done. It owns the category state model for that
edit and exposes the user's actions as explicit commands. Every command
mutates the model synchronously; the draft expression is recomputed from
the model on demand and is never edited directly.

Component Boundaries
--------------------
The session talks to three collaborators:

- ``CategoryCatalog`` for the persisted list of category names.
- The host's currently committed expression, passed to ``open``.
- A ``FilterTarget`` that receives the final expression on ``commit``.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from category_filter.catalog import CategoryCatalog
from category_filter.exceptions import CommitError
from category_filter.expression import parse_expression, serialize_state
from category_filter.logging import get_logger
from category_filter.state import CategoryStateModel, build_state
from category_filter.types import CategoryState, ToggleDirection

logger = get_logger(__name__)


@runtime_checkable
class FilterTarget(Protocol):
    """Receiver for a committed filter expression (e.g. the trigger's filter field)."""

    def set_expression(self, expression: str) -> None:
        """Replace the host's filter with ``expression``.

        Raises:
            CommitError: If the host cannot accept the expression.
        """
        ...


class FileFilterTarget:
    """FilterTarget that writes the committed expression to a text file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def set_expression(self, expression: str) -> None:
        try:
            self._path.write_text(expression + "\n", encoding="utf-8")
        except OSError as e:
            raise CommitError(f"Failed to write filter to {self._path}: {e}") from e


@dataclass(frozen=True)
class CategoryRow:
    """One row of the category checklist.

    Attributes:
        name: Category name.
        state: Current tri-state value.
        in_catalog: False for categories only known from the host expression.
    """

    name: str
    state: CategoryState
    in_catalog: bool


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a command that can be rejected.

    Attributes:
        success: Whether the command was applied.
        message: User-facing notice; empty on success.
        draft: The draft expression after the command.
    """

    success: bool
    draft: str
    message: str = ""


class FilterSession:
    """Editing session over one trigger's category filter.

    Example:
        session = FilterSession.open(catalog, "Category=Smoke")
        session.toggle_category("DbApi", ToggleDirection.INCLUDE)
        session.toggle_category("Registration", ToggleDirection.EXCLUDE)
        session.draft  # "(Category=DbApi|Category=Smoke)&Category!=Registration"
        session.commit(target)
    """

    def __init__(
        self,
        catalog: CategoryCatalog,
        state: CategoryStateModel,
        catalog_names: set[str],
        host_expression: str = "",
        session_id: str | None = None,
    ) -> None:
        """Initialize the session. Prefer ``FilterSession.open``."""
        self._catalog = catalog
        self._state = state
        self._catalog_names = catalog_names
        self._host_expression = host_expression
        self._session_id = session_id or uuid.uuid4().hex
        self._logger = logger.with_context(session_id=self._session_id)
        self._lock = threading.RLock()

    @classmethod
    def open(
        cls,
        catalog: CategoryCatalog,
        host_expression: str | None = "",
        session_id: str | None = None,
    ) -> FilterSession:
        """Open a session from the catalog and the host's current expression.

        Args:
            catalog: Category catalog to load names from.
            host_expression: The filter currently committed on the host.
            session_id: Optional identifier; a random one is generated if omitted.

        Returns:
            A session whose rows are ``catalog | parsed`` with parsed states.
        """
        host_expression = (host_expression or "").strip()
        names = catalog.load()
        parsed = parse_expression(host_expression)
        session = cls(
            catalog=catalog,
            state=build_state(names, parsed),
            catalog_names=set(names),
            host_expression=host_expression,
            session_id=session_id,
        )
        session._logger.info(
            "Opened filter session with %d categories (%d selected)",
            len(session._state),
            len(parsed),
        )
        return session

    @property
    def session_id(self) -> str:
        """Identifier of this session."""
        return self._session_id

    @property
    def lock(self) -> threading.RLock:
        """Lock held by callers that share the session across threads."""
        return self._lock

    @property
    def host_expression(self) -> str:
        """The expression the host had when the session was opened."""
        return self._host_expression

    @property
    def state(self) -> Mapping[str, CategoryState]:
        """Read-only view of the current category states."""
        return self._state

    @property
    def draft(self) -> str:
        """The expression representing the current state."""
        return serialize_state(self._state)

    @property
    def is_modified(self) -> bool:
        """True if the draft differs from the host's expression."""
        return self.draft != self._host_expression

    def rows(self) -> list[CategoryRow]:
        """Checklist rows in sorted order."""
        return [
            CategoryRow(name=name, state=state, in_catalog=name in self._catalog_names)
            for name, state in self._state.items()
        ]

    def toggle_category(self, name: str, direction: ToggleDirection | str) -> str:
        """Mark a category as included or excluded.

        Args:
            name: Category name. Unknown names are added as rows.
            direction: ``include`` or ``exclude``.

        Returns:
            The updated draft.

        Raises:
            ValueError: If ``direction`` is not a valid toggle direction, or
                ``name`` is not a valid category name.
        """
        direction = ToggleDirection(direction)
        self._state.set_state(name, direction.state)
        draft = self.draft
        self._logger.debug("Toggled %s to %s: %s", name, direction, draft, extra={"category": name})
        return draft

    def clear_category(self, name: str) -> str:
        """Return a category to neutral and return the updated draft."""
        self._state.clear(name)
        return self.draft

    def clear_all(self) -> str:
        """Return every category to neutral and return the (empty) draft."""
        self._state.clear_all()
        return self.draft

    def add_category(self, name: str) -> CommandResult:
        """Add a category to the catalog and show it as a neutral row.

        Returns:
            A failed result carrying the user-facing notice if the name is
            empty, invalid or already in the catalog; state is unchanged.
        """
        reason = self._catalog.try_add(name)
        if reason is not None:
            return CommandResult(success=False, draft=self.draft, message=reason)

        name = name.strip()
        self._catalog_names.add(name)
        self._state.add(name)
        return CommandResult(success=True, draft=self.draft)

    def delete_category(self, name: str) -> str:
        """Delete a category from the catalog.

        The row disappears unless the category is currently selected, in
        which case it stays (outside the catalog) so the draft is unchanged.

        Returns:
            The draft, unchanged by this command.
        """
        self._catalog.delete(name)
        self._catalog_names.discard(name)
        if self._state.get(name) == CategoryState.NEUTRAL:
            self._state.discard(name)
        return self.draft

    def restore_defaults(self) -> str:
        """Restore the catalog to its defaults, keeping current selections.

        Returns:
            The draft, unchanged by this command.
        """
        self._catalog.restore_defaults()
        names = self._catalog.load()
        self._catalog_names = set(names)
        self._state = CategoryStateModel(names, self._state.selected())
        return self.draft

    def commit(self, target: FilterTarget, expression: str | None = None) -> str:
        """Push the draft (or a hand-edited override) to the host.

        Args:
            target: Receiver of the expression.
            expression: Optional text to commit instead of the draft. It is
                committed as-is after trimming and is not parsed back into
                the session's state.

        Returns:
            The committed expression.

        Raises:
            CommitError: If the target rejects the expression.
        """
        value = self.draft if expression is None else expression.strip()
        target.set_expression(value)
        self._host_expression = value
        self._logger.info("Committed filter expression: %s", value or "<empty>")
        return value


__all__ = [
    "CategoryRow",
    "CommandResult",
    "FileFilterTarget",
    "FilterSession",
    "FilterTarget",
]
