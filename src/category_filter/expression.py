"""Category filter expression parsing and serialization.

Filter expressions are the strings the test-run trigger accepts in its
filter field. Only a narrow subset of boolean syntax is involved:

    Category=Smoke                                      single include
    Category!=Smoke                                     single exclude
    Category=Smoke|Category=DbApi                       any of several includes
    Category!=Smoke&Category!=DbApi                     all excludes
    (Category=Smoke|Category=DbApi)&Category!=Registration

Parsing is a pattern scan for atoms rather than a grammar walk: operators
and parentheses are not interpreted, and text that is not an atom is
ignored. Serialization produces the canonical form shown above, grouping a
clause in parentheses only when it is combined with the other clause.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from category_filter.logging import get_logger
from category_filter.types import CategoryState

__all__ = [
    "AND",
    "ATOM_PATTERN",
    "CATEGORY_FIELD",
    "CATEGORY_NAME_PATTERN",
    "OR",
    "Atom",
    "find_atoms",
    "is_valid_category_name",
    "parse_expression",
    "render_atom",
    "serialize_state",
]

logger = get_logger(__name__)

CATEGORY_FIELD = "Category"
AND = "&"
OR = "|"

CATEGORY_NAME_PATTERN = re.compile(r"[A-Za-z0-9]+")
ATOM_PATTERN = re.compile(rf"{CATEGORY_FIELD}(!?)=([A-Za-z0-9]+)")

# Characters that may legitimately surround atoms in a canonical expression.
_SEPARATOR_CHARS = re.compile(r"[&|()\s]+")


def is_valid_category_name(name: str) -> bool:
    """Return True if ``name`` is a single ``[A-Za-z0-9]+`` token."""
    return CATEGORY_NAME_PATTERN.fullmatch(name) is not None


@dataclass(frozen=True)
class Atom:
    """A single ``Category=<name>`` or ``Category!=<name>`` predicate.

    Attributes:
        name: The category name.
        state: INCLUDED for ``=``, EXCLUDED for ``!=``.
    """

    name: str
    state: CategoryState

    def __post_init__(self) -> None:
        """Validate atom arguments."""
        if not is_valid_category_name(self.name):
            raise ValueError(f"Invalid category name: {self.name!r}")
        if self.state == CategoryState.NEUTRAL:
            raise ValueError("Atom state must be included or excluded")

    def render(self) -> str:
        """Render the atom in expression syntax."""
        return render_atom(self.name, self.state)


def render_atom(name: str, state: CategoryState) -> str:
    """Render ``Category=<name>`` for INCLUDED, ``Category!=<name>`` otherwise."""
    operator = "=" if state == CategoryState.INCLUDED else "!="
    return f"{CATEGORY_FIELD}{operator}{name}"


def find_atoms(expression: str | None) -> list[Atom]:
    """Find every category atom in an expression, in order of appearance.

    Args:
        expression: The filter expression. ``None`` and blank strings are
            treated as empty.

    Returns:
        All matched atoms, duplicates included.
    """
    if not expression or not expression.strip():
        return []

    atoms = [
        Atom(
            name=match.group(2),
            state=CategoryState.EXCLUDED if match.group(1) else CategoryState.INCLUDED,
        )
        for match in ATOM_PATTERN.finditer(expression)
    ]

    leftover = _SEPARATOR_CHARS.sub("", ATOM_PATTERN.sub("", expression))
    if leftover:
        logger.debug(
            "Ignoring unrecognized text in filter expression: %r",
            leftover,
            extra={"diagnostic_tag": "parser"},
        )

    return atoms


def parse_expression(expression: str | None) -> dict[str, CategoryState]:
    """Extract per-category include/exclude state from an expression.

    A category mentioned both as an include and as an exclude atom is
    reported as INCLUDED.

    Args:
        expression: The filter expression currently committed on the host.

    Returns:
        One entry per distinct category name, in order of first appearance.
        Values are only ever INCLUDED or EXCLUDED. Never raises.

    Example:
        >>> parsed = parse_expression("(Category=Smoke|Category=DbApi)&Category!=Registration")
        >>> [(name, str(state)) for name, state in parsed.items()]
        [('Smoke', 'included'), ('DbApi', 'included'), ('Registration', 'excluded')]
    """
    parsed: dict[str, CategoryState] = {}
    for atom in find_atoms(expression):
        current = parsed.get(atom.name)
        if current is None:
            parsed[atom.name] = atom.state
        elif current != atom.state:
            logger.debug(
                "Category %s is both included and excluded, keeping include",
                atom.name,
                extra={"diagnostic_tag": "parser"},
            )
            parsed[atom.name] = CategoryState.INCLUDED
    return parsed


def _build_clause(names: Iterable[str], state: CategoryState, joiner: str, grouped: bool) -> str:
    """Render same-operator atoms as one clause.

    Args:
        names: Category names in output order.
        state: INCLUDED or EXCLUDED, shared by every atom in the clause.
        joiner: ``|`` for includes, ``&`` for excludes.
        grouped: Wrap a multi-atom clause in parentheses.

    Returns:
        The clause text, or an empty string when ``names`` is empty.
    """
    atoms = [render_atom(name, state) for name in names]
    if not atoms:
        return ""
    if len(atoms) == 1:
        return atoms[0]
    clause = joiner.join(atoms)
    return f"({clause})" if grouped else clause


def serialize_state(state: Mapping[str, CategoryState]) -> str:
    """Serialize category state into the canonical filter expression.

    Included categories are ORed together, excluded categories are ANDed
    together, and the two clauses are joined with ``&`` (include clause
    first). A multi-atom clause is parenthesized only when the other clause
    is present as well. Names keep the mapping's iteration order.

    Args:
        state: Mapping of category name to state. NEUTRAL entries are skipped.

    Returns:
        The expression, or an empty string when nothing is selected.

    Examples:
        >>> serialize_state({"DbApi": CategoryState.INCLUDED, "Smoke": CategoryState.INCLUDED})
        'Category=DbApi|Category=Smoke'
        >>> serialize_state({
        ...     "DbApi": CategoryState.INCLUDED,
        ...     "Registration": CategoryState.EXCLUDED,
        ...     "Smoke": CategoryState.INCLUDED,
        ... })
        '(Category=DbApi|Category=Smoke)&Category!=Registration'
    """
    included = [name for name, value in state.items() if value == CategoryState.INCLUDED]
    excluded = [name for name, value in state.items() if value == CategoryState.EXCLUDED]

    both = bool(included) and bool(excluded)
    clauses = [
        _build_clause(included, CategoryState.INCLUDED, OR, grouped=both),
        _build_clause(excluded, CategoryState.EXCLUDED, AND, grouped=both),
    ]
    return AND.join(clause for clause in clauses if clause)
