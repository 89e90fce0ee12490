"""Selection state constrained by a selection mode."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Hashable, Iterable, Tuple

from ...errors import InvalidSelectionModeError


class SelectionMode(str, Enum):
    OFF = "off"
    SINGLE = "single"
    MULTIPLE = "multiple"


class SelectionState:
    """Set of selected row identities.

    Every mutator returns ``True`` when the effective selection changed so
    callers can emit exactly one notification per change.  Under
    :attr:`SelectionMode.OFF` all mutations are no-ops and under
    :attr:`SelectionMode.SINGLE` at most one identity is ever selected.
    """

    def __init__(
        self,
        mode: SelectionMode = SelectionMode.OFF,
        selected: Iterable[Hashable] = (),
    ) -> None:
        self._mode = SelectionMode(mode)
        # dict keeps insertion order; values are unused.
        self._selected: Dict[Hashable, None] = {}
        for identity in selected:
            self.select(identity)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def mode(self) -> SelectionMode:
        return self._mode

    @property
    def selected(self) -> Tuple[Hashable, ...]:
        return tuple(self._selected)

    def is_selected(self, identity: Hashable) -> bool:
        return identity in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, identity: object) -> bool:
        return identity in self._selected

    def copy(self) -> "SelectionState":
        clone = SelectionState(self._mode)
        clone._selected = dict(self._selected)
        return clone

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def select(self, identity: Hashable) -> bool:
        if self._mode is SelectionMode.OFF:
            return False
        if self._mode is SelectionMode.SINGLE:
            if list(self._selected) == [identity]:
                return False
            self._selected = {identity: None}
            return True
        if identity in self._selected:
            return False
        self._selected[identity] = None
        return True

    def deselect(self, identity: Hashable) -> bool:
        if identity not in self._selected:
            return False
        del self._selected[identity]
        return True

    def toggle(self, identity: Hashable) -> bool:
        if self._mode is SelectionMode.OFF:
            return False
        if identity in self._selected:
            return self.deselect(identity)
        return self.select(identity)

    def clear(self) -> bool:
        if not self._selected:
            return False
        self._selected.clear()
        return True

    def select_all(self, identities: Iterable[Hashable]) -> bool:
        if self._mode is SelectionMode.OFF:
            return False
        if self._mode is not SelectionMode.MULTIPLE:
            raise InvalidSelectionModeError(
                f"select_all requires {SelectionMode.MULTIPLE.value!r} mode, "
                f"current mode is {self._mode.value!r}"
            )
        changed = False
        for identity in identities:
            if identity not in self._selected:
                self._selected[identity] = None
                changed = True
        return changed

    def retain(self, identities: Iterable[Hashable]) -> bool:
        """Drop every selected identity that is not in *identities*."""
        keep = set(identities)
        survivors = {identity: None for identity in self._selected if identity in keep}
        if len(survivors) == len(self._selected):
            return False
        self._selected = survivors
        return True

    def set_mode(self, mode: SelectionMode) -> bool:
        """Switch mode, trimming the selection to what the new mode allows."""
        mode = SelectionMode(mode)
        self._mode = mode
        if mode is SelectionMode.OFF:
            return self.clear()
        if mode is SelectionMode.SINGLE and len(self._selected) > 1:
            latest = list(self._selected)[-1]
            self._selected = {latest: None}
            return True
        return False

    def __repr__(self) -> str:
        return f"SelectionState(mode={self._mode.value}, selected={list(self._selected)!r})"
