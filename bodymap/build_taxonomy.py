#!/usr/bin/env python3
"""
Build the nested body-site taxonomy from a single flattened file.

Usage:
  bodymap-build-taxonomy --flat epinet_flat.json --out bodymap/data/taxonomies/epinet_body_sites.json

Notes:
- The flat file must contain records with: id, label, parent_id ('' or 'root' for root-level).
  Leaves also carry an integer `code`; records without a code become branches.
- Each record is nested under the record whose `id` == its `parent_id`, so ids must be unique across
  the whole file (the loaded taxonomy only needs them unique among siblings). A repeated id is rejected.
- Unknown parents are deferred across passes; remaining orphans attach to the root level unless --strict is used.
- Siblings keep input order, except deferred records land after siblings placed in an earlier pass.
- The result is validated with the same rules the store applies at load time before it is written.
"""
import argparse
import json
from typing import Any, Dict, List, Optional

from .core.loaders import write_taxonomy
from .core.taxonomy_store import TaxonomyStore


def load_json(path):
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def normalize_flat(nodes) -> List[Dict[str, Any]]:
    # nodes may be a dict with a "sites" list or a list
    if isinstance(nodes, dict) and isinstance(nodes.get("sites"), list):
        nodes = nodes["sites"]
    elif isinstance(nodes, list):
        pass
    else:
        raise ValueError("Flattened file must be a list or a dict with a 'sites' list.")
    out = []
    for n in nodes:
        if not n or not n.get("id"):
            continue
        out.append({
            "id": str(n["id"]).strip(),
            "label": n.get("label") or n.get("name") or str(n["id"]),
            "code": n.get("code"),
            "parent_id": str(n.get("parent_id") or "").strip(),
        })
    return out


def _is_root(parent_id: str) -> bool:
    return not parent_id or parent_id.lower() == "root"


def build_forest(flat_nodes: List[Dict[str, Any]], strict: bool = False) -> List[Dict[str, Any]]:
    """Nest flat records into root records; ids are matched within the whole file."""
    seen_ids = set()
    for n in flat_nodes:
        if n["id"] in seen_ids:
            raise ValueError(f"Duplicate id '{n['id']}' in flat file; parent_id lookups need file-wide unique ids.")
        seen_ids.add(n["id"])

    roots: List[Dict[str, Any]] = []
    index: Dict[str, Dict[str, Any]] = {}

    def make_node(n: Dict[str, Any]) -> Dict[str, Any]:
        node: Dict[str, Any] = {"id": n["id"], "label": n["label"]}
        if n.get("code") is not None:
            node["code"] = n["code"]
        index[n["id"]] = node
        return node

    def find_parent(parent_id: str) -> Optional[Dict[str, Any]]:
        return index.get(parent_id)

    pending = flat_nodes[:]
    progress = True
    while pending and progress:
        next_pending = []
        progress = False
        for n in pending:
            if _is_root(n["parent_id"]):
                roots.append(make_node(n))
                progress = True
                continue
            parent = find_parent(n["parent_id"])
            if parent is None:
                next_pending.append(n)
                continue
            parent.setdefault("children", []).append(make_node(n))
            progress = True
        pending = next_pending

    if pending:
        missing = sorted(set(n["parent_id"] for n in pending))
        if strict:
            raise SystemExit(f"Aborting due to unknown parent_id(s): {missing[:20]} (and possibly more).")
        print(f"[TAXONOMY] Attaching {len(pending)} orphan(s) to the root level; unknown parents: {missing[:20]}")
        for n in pending:
            roots.append(make_node(n))

    return roots


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--flat", required=True, help="Path to a single flattened JSON file to build into a hierarchy.")
    ap.add_argument("--out", required=True, help="Output path for the nested taxonomy JSON.")
    ap.add_argument("--strict", action="store_true", help="Fail if any record's parent_id is unknown (instead of attaching to root).")
    args = ap.parse_args(argv)

    forest = build_forest(normalize_flat(load_json(args.flat)), strict=args.strict)
    store = TaxonomyStore.from_records(forest)

    out_path = write_taxonomy(args.out, store.to_records())
    print(f"[TAXONOMY] Wrote {len(store.codes())} sites to {out_path}")


if __name__ == "__main__":
    main()
