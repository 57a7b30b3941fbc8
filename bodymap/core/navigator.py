"""
Drill-down navigator over the body-site taxonomy.

Public API:
    DrillDownNavigator(store, on_resolve=None, selected_code=None)
        .select(node) / .select_id(node_id) / .back() / .reset() / .clear()
        .breadcrumb() / .breadcrumb_text() / .snapshot()

Behavior:
- Browsing: the caller renders `current_view`; picking a branch descends,
  picking a leaf resolves it to (code, label) and calls `on_resolve` once.
- Resolved: select() and back() do nothing until reset() or clear().
- The only durable state is `history` (branch nodes, root to current).
  `current_view` is always recomputed from the history ids through
  TaxonomyStore.children_of, never cached separately.
- Every operation replaces the NavigationState object; it is never mutated.
- An inbound `selected_code` that matches a leaf starts in Resolved;
  an unknown code degrades to Browsing at root. The resolved code is the
  leaf's canonical form, so an inbound "04" resolves to "4".
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .models import Branch, Resolution, TaxonomyNode, is_branch, is_leaf
from .taxonomy_store import InvalidPathError, TaxonomyStore
from ..config import BREADCRUMB_SEPARATOR, DEBUG

OnResolve = Callable[[str, str], None]


class InvalidSelectionError(ValueError):
    """The selected node is not part of the view currently offered."""


@dataclass(frozen=True)
class NavigationState:
    history: Tuple[Branch, ...]
    current_view: Tuple[TaxonomyNode, ...]
    resolved: Optional[Resolution] = None

    @property
    def is_resolved(self) -> bool:
        return self.resolved is not None

    @property
    def path(self) -> List[str]:
        return [b.id for b in self.history]


class DrillDownNavigator:
    def __init__(
        self,
        store: TaxonomyStore,
        on_resolve: Optional[OnResolve] = None,
        selected_code: Union[int, str, None] = None,
    ):
        self._store = store
        self._on_resolve = on_resolve
        self._state = self._initial_state()

        if selected_code is not None and str(selected_code).strip():
            leaf = store.find_leaf_by_code(selected_code)
            if leaf is not None:
                self._state = replace(self._state, resolved=Resolution(str(leaf.code), leaf.label))
            elif DEBUG:
                print(f"[DEBUG] Unknown site code {selected_code!r}; starting at root")

    # ---- state accessors ---- #
    @property
    def store(self) -> TaxonomyStore:
        return self._store

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def history(self) -> Tuple[Branch, ...]:
        return self._state.history

    @property
    def current_view(self) -> Tuple[TaxonomyNode, ...]:
        return self._state.current_view

    @property
    def resolved(self) -> Optional[Resolution]:
        return self._state.resolved

    @property
    def is_resolved(self) -> bool:
        return self._state.is_resolved

    @property
    def path(self) -> List[str]:
        return self._state.path

    @property
    def current_parent(self) -> Optional[Branch]:
        return self._state.history[-1] if self._state.history else None

    def breadcrumb(self) -> Tuple[str, ...]:
        return tuple(b.label for b in self._state.history)

    def breadcrumb_text(self, sep: str = BREADCRUMB_SEPARATOR) -> str:
        return sep.join(self.breadcrumb())

    # ---- operations ---- #
    def select(self, node: TaxonomyNode) -> Optional[Resolution]:
        """Descend into a branch or resolve a leaf; returns the resolution for leaves."""
        if self._state.is_resolved:
            return None
        assert is_branch(node) or is_leaf(node), f"malformed taxonomy node: {node!r}"
        if node not in self._state.current_view:
            raise InvalidSelectionError(
                f"'{getattr(node, 'id', node)}' is not offered at path {self.path}"
            )

        if isinstance(node, Branch):
            self._state = NavigationState(
                history=self._state.history + (node,),
                current_view=node.children,
            )
            return None

        resolution = Resolution(code=str(node.code), label=node.label)
        self._state = replace(self._state, resolved=resolution)
        if self._on_resolve is not None:
            self._on_resolve(resolution.code, resolution.label)
        return resolution

    def select_id(self, node_id: str) -> Optional[Resolution]:
        if self._state.is_resolved:
            return None
        node = next((n for n in self._state.current_view if n.id == node_id), None)
        if node is None:
            raise InvalidSelectionError(f"'{node_id}' is not offered at path {self.path}")
        return self.select(node)

    def back(self) -> None:
        if self._state.is_resolved or not self._state.history:
            return
        history = self._state.history[:-1]
        self._state = NavigationState(
            history=history,
            current_view=self._store.children_of([b.id for b in history]),
        )

    def reset(self) -> None:
        self._state = self._initial_state()

    def clear(self) -> None:
        """The "Change" affordance: back to root and tell the host no site is selected."""
        self.reset()
        if self._on_resolve is not None:
            self._on_resolve("", "")

    def restore(self, path: Sequence[str]) -> None:
        """Rebuild a Browsing state from branch ids, e.g. echoed back by a client."""
        history: List[Branch] = []
        for depth, node_id in enumerate(path):
            view = self._store.children_of(list(path[:depth]))
            node = next((n for n in view if n.id == node_id), None)
            if not isinstance(node, Branch):
                raise InvalidPathError(f"'{node_id}' at depth {depth} is not a branch")
            history.append(node)
        self._state = NavigationState(
            history=tuple(history),
            current_view=self._store.children_of(list(path)),
        )

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the state; view items are plain dicts."""
        resolved = self._state.resolved
        return {
            "state": "resolved" if resolved else "browsing",
            "history": self.path,
            "breadcrumb": list(self.breadcrumb()),
            "view": [
                {
                    "id": n.id,
                    "label": n.label,
                    "code": n.code if is_leaf(n) else None,
                    "is_leaf": is_leaf(n),
                }
                for n in self._state.current_view
            ],
            "resolved": {"code": resolved.code, "label": resolved.label} if resolved else None,
        }

    def _initial_state(self) -> NavigationState:
        return NavigationState(history=(), current_view=self._store.roots)
