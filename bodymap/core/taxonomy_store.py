# bodymap/core/taxonomy_store.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple, Union

from .loaders import load_taxonomy
from .models import Branch, Leaf, TaxonomyNode
from ..config import DEBUG, TAXONOMY_FILE


class TaxonomyError(ValueError):
    """The taxonomy data asset violates the branch/leaf or code-uniqueness rules."""


class InvalidPathError(ValueError):
    """A path of node ids does not exist in the forest."""

# ---------------------------- parsing ---------------------------- #

def _parse_code(raw: Any, where: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise TaxonomyError(f"{where}: code must be a positive integer, got {raw!r}")
    if raw <= 0:
        raise TaxonomyError(f"{where}: code must be a positive integer, got {raw!r}")
    return raw


def _parse_nodes(
    records: Sequence[Dict[str, Any]],
    parent_path: str,
    seen_codes: Dict[int, str],
) -> Tuple[TaxonomyNode, ...]:
    nodes: List[TaxonomyNode] = []
    sibling_ids: Set[str] = set()
    for rec in records:
        if not isinstance(rec, dict):
            raise TaxonomyError(f"{parent_path or '<root>'}: node must be an object, got {type(rec).__name__}")
        node_id = str(rec.get("id") or "").strip()
        label = str(rec.get("label") or "").strip()
        where = f"{parent_path} > {node_id}" if parent_path else node_id
        if not node_id:
            raise TaxonomyError(f"{parent_path or '<root>'}: node without an id")
        if not label:
            raise TaxonomyError(f"{where}: node without a label")
        if node_id in sibling_ids:
            raise TaxonomyError(f"{where}: duplicate id among siblings")
        sibling_ids.add(node_id)

        has_code = rec.get("code") is not None
        has_children = "children" in rec and rec["children"] is not None
        if has_code and has_children:
            raise TaxonomyError(f"{where}: node has both a code and children")
        if not has_code and not has_children:
            raise TaxonomyError(f"{where}: node has neither a code nor children")

        if has_code:
            code = _parse_code(rec["code"], where)
            if code in seen_codes:
                raise TaxonomyError(f"{where}: code {code} already used by {seen_codes[code]}")
            seen_codes[code] = where
            nodes.append(Leaf(id=node_id, label=label, code=code))
        else:
            children = rec["children"]
            if not isinstance(children, list) or not children:
                raise TaxonomyError(f"{where}: branch must have a non-empty children list")
            nodes.append(Branch(id=node_id, label=label, children=_parse_nodes(children, where, seen_codes)))
    return tuple(nodes)


def parse_forest(records: Sequence[Dict[str, Any]]) -> Tuple[TaxonomyNode, ...]:
    """Build the immutable forest from plain records, validating every invariant."""
    if not isinstance(records, (list, tuple)) or not records:
        raise TaxonomyError("taxonomy must be a non-empty list of root nodes")
    return _parse_nodes(records, "", {})


def validate_forest(roots: Sequence[TaxonomyNode]) -> None:
    """Apply the load-time rules to nodes that were built directly instead of parsed."""
    if not roots:
        raise TaxonomyError("taxonomy must be a non-empty list of root nodes")
    seen_codes: Dict[int, str] = {}

    def check(nodes: Sequence[TaxonomyNode], parent_path: str):
        sibling_ids: Set[str] = set()
        for node in nodes:
            if not isinstance(node, (Branch, Leaf)):
                raise TaxonomyError(f"{parent_path or '<root>'}: not a Branch or Leaf: {node!r}")
            where = f"{parent_path} > {node.id}" if parent_path else node.id
            if node.id in sibling_ids:
                raise TaxonomyError(f"{where}: duplicate id among siblings")
            sibling_ids.add(node.id)
            if isinstance(node, Leaf):
                _parse_code(node.code, where)
                if node.code in seen_codes:
                    raise TaxonomyError(f"{where}: code {node.code} already used by {seen_codes[node.code]}")
                seen_codes[node.code] = where
            else:
                if not node.children:
                    raise TaxonomyError(f"{where}: branch must have a non-empty children list")
                check(node.children, where)

    check(roots, "")


def node_to_record(node: TaxonomyNode) -> Dict[str, Any]:
    if isinstance(node, Leaf):
        return {"id": node.id, "label": node.label, "code": node.code}
    return {"id": node.id, "label": node.label, "children": [node_to_record(c) for c in node.children]}

# ---------------------------- flatten function (kept public) ---------------------------- #

def flatten_to_leaves(roots: Iterable[TaxonomyNode]) -> List[Dict[str, Any]]:
    """
    Return list of leaves with id, label, code, path, path_ids, depth.
    The path joins ancestor labels and the leaf label with ' > '.
    """
    leaves: List[Dict[str, Any]] = []

    def dfs(node: TaxonomyNode, labels: List[str], ids: List[str]):
        if isinstance(node, Leaf):
            path_now = labels + [node.label]
            leaves.append(
                {
                    "id": node.id,
                    "label": node.label,
                    "code": node.code,
                    "path": " > ".join(path_now),
                    "path_ids": list(ids),
                    "depth": len(path_now),
                }
            )
            return
        for c in node.children:
            dfs(c, labels + [node.label], ids + [node.id])

    for r in roots:
        dfs(r, [], [])
    return leaves

# ---------------------------- store ---------------------------- #

class TaxonomyStore:
    """
    Holds the static body-site forest and answers child lookups by id path.
    Build with from_file() for the shipped data asset or from_records() for inline data.
    """
    def __init__(self, roots: Sequence[TaxonomyNode], source: Optional[Path] = None):
        self.roots: Tuple[TaxonomyNode, ...] = tuple(roots)
        validate_forest(self.roots)
        self.source = source
        self._leaves = flatten_to_leaves(self.roots)
        self._by_code: Dict[int, Dict[str, Any]] = {lf["code"]: lf for lf in self._leaves}

    @classmethod
    def from_records(cls, records: Sequence[Dict[str, Any]], source: Optional[Path] = None) -> "TaxonomyStore":
        return cls(parse_forest(records), source=source)

    @classmethod
    def from_file(cls, path: Union[str, Path, None] = None) -> "TaxonomyStore":
        file = Path(path or TAXONOMY_FILE)
        store = cls.from_records(load_taxonomy(file), source=file)
        print(f"[TAXONOMY] Loaded {len(store._leaves)} sites from {file}")
        return store

    # ---- Lookups ---- #
    def children_of(self, path: Sequence[str]) -> Tuple[TaxonomyNode, ...]:
        view: Tuple[TaxonomyNode, ...] = self.roots
        for depth, node_id in enumerate(path):
            match = next((n for n in view if n.id == node_id), None)
            if match is None:
                raise InvalidPathError(f"no node '{node_id}' at depth {depth} of path {list(path)}")
            if not isinstance(match, Branch):
                raise InvalidPathError(f"'{node_id}' at depth {depth} is a leaf and has no children")
            view = match.children
        return view

    def find_leaf_by_code(self, code: Union[int, str, None]) -> Optional[Leaf]:
        """
        Codes are compared as integers, so "04", " 4" and 4 all find the same leaf.
        Callers that echo the code back should use str(leaf.code), the canonical form.
        """
        info = self._lookup(code)
        if info is None:
            return None
        return self._walk_to_leaf(info["path_ids"], info["id"])

    def path_to_code(self, code: Union[int, str, None]) -> Optional[List[str]]:
        info = self._lookup(code)
        return list(info["path_ids"]) if info else None

    def describe(self, code: Union[int, str, None]) -> Optional[Dict[str, Any]]:
        info = self._lookup(code)
        return dict(info) if info else None

    def leaves(self) -> List[Dict[str, Any]]:
        return [dict(lf) for lf in self._leaves]

    def codes(self) -> Set[int]:
        return set(self._by_code)

    def iter_nodes(self) -> Iterator[TaxonomyNode]:
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Branch):
                stack.extend(reversed(node.children))

    def to_records(self) -> List[Dict[str, Any]]:
        return [node_to_record(r) for r in self.roots]

    # ---- internals ---- #
    def _lookup(self, code: Union[int, str, None]) -> Optional[Dict[str, Any]]:
        if code is None or isinstance(code, bool):
            return None
        try:
            key = int(str(code).strip())
        except ValueError:
            if DEBUG:
                print(f"[DEBUG] Non-numeric site code ignored: {code!r}")
            return None
        return self._by_code.get(key)

    def _walk_to_leaf(self, path_ids: Sequence[str], leaf_id: str) -> Optional[Leaf]:
        for node in self.children_of(path_ids):
            if node.id == leaf_id and isinstance(node, Leaf):
                return node
        return None


@lru_cache(maxsize=1)
def default_store() -> TaxonomyStore:
    """Process-wide store for the shipped EPINet body-site taxonomy."""
    return TaxonomyStore.from_file(TAXONOMY_FILE)
