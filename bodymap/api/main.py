from flask import Flask, request, jsonify
from pydantic import BaseModel, ValidationError
from ..config import (
    DEBUG,
    PORT,
    TAXONOMY_FILE,
)
from ..core.models import (
    NavigatorRequest,
    NavigatorResponse,
    ResolvedSite,
    SelectRequest,
    SiteResult,
    ViewItem,
)
from ..core.navigator import DrillDownNavigator, InvalidSelectionError
from ..core.presentation import header_text, icon_for, is_mirrored, selection_text, step_hint
from ..core.taxonomy_store import InvalidPathError, TaxonomyStore, default_store
import os
from typing import Any, Dict, List, Optional, Tuple, Type


def _store() -> TaxonomyStore:
    # tests and embedding hosts may inject their own store
    return app.config.get("TAXONOMY_STORE") or default_store()


def _error(message: str, details: Any = None, status: int = 400):
    body: Dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = details
    return jsonify(body), status


def _read_body(model: Type[BaseModel]) -> BaseModel:
    # Missing or empty body is treated as "{}" so /navigator with no payload renders the root
    payload = request.get_json(force=True, silent=True)
    if payload is None:
        if request.get_data(as_text=True).strip():
            raise ValueError("Invalid JSON body")
        payload = {}
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a single JSON object")
    return model.model_validate(payload)


def _build_navigator(req: NavigatorRequest, emitted: List[Tuple[str, str]]) -> DrillDownNavigator:
    nav = DrillDownNavigator(
        _store(),
        on_resolve=lambda code, label: emitted.append((code, label)),
        selected_code=req.selected_code,
    )
    # A resolved selection suppresses the drill-down, so the echoed history is dropped
    if not nav.is_resolved and req.history:
        nav.restore(req.history)
    return nav


def _render(nav: DrillDownNavigator, emitted: Optional[List[Tuple[str, str]]] = None) -> Dict[str, Any]:
    snap = nav.snapshot()
    resolved = nav.resolved
    resp = NavigatorResponse(
        state=snap["state"],
        history=snap["history"],
        breadcrumb=snap["breadcrumb"],
        view=[ViewItem(**item, icon=icon_for(item["id"]), mirrored=is_mirrored(item["id"])) for item in snap["view"]],
        resolved=ResolvedSite(**snap["resolved"]) if snap["resolved"] else None,
        header=header_text(nav),
        step_hint=step_hint(len(nav.history)),
        selection_text=selection_text(resolved.code, resolved.label) if resolved else selection_text(None, None),
        emitted=[ResolvedSite(code=c, label=lbl) for c, lbl in (emitted or [])],
    )
    return resp.model_dump()


def _navigate(model: Type[NavigatorRequest], action):
    try:
        req = _read_body(model)
    except ValidationError as e:
        return _error("Invalid navigator payload", str(e))
    except ValueError as e:
        return _error(str(e))

    emitted: List[Tuple[str, str]] = []
    try:
        nav = _build_navigator(req, emitted)
        action(nav, req)
    except (InvalidPathError, InvalidSelectionError) as e:
        return _error("Invalid navigation", str(e))

    if DEBUG:
        print(f"[DEBUG] navigator path={nav.path} resolved={nav.resolved} emitted={emitted}")
    return jsonify(_render(nav, emitted)), 200


app = Flask(__name__)


@app.get("/health")
def health():
    store = _store()
    return {
        "status": "ok",
        "taxonomy_file": os.path.abspath(str(store.source or TAXONOMY_FILE)),
        "sites": len(store.codes()),
    }


@app.get("/taxonomy")
def taxonomy():
    return jsonify(_store().to_records())


@app.get("/taxonomy/leaves")
def taxonomy_leaves():
    return jsonify(_store().leaves())


@app.get("/sites/<code>")
def site(code: str):
    info = _store().describe(code)
    if not info:
        return _error("Unknown site code", {"code": code}, status=404)
    result = SiteResult(
        code=str(info["code"]),
        label=info["label"],
        id=info["id"],
        path=info["path"],
        path_ids=info["path_ids"],
    )
    return jsonify(result.model_dump()), 200


@app.post("/navigator")
def navigator_view():
    return _navigate(NavigatorRequest, lambda nav, req: None)


@app.post("/navigator/select")
def navigator_select():
    return _navigate(SelectRequest, lambda nav, req: nav.select_id(req.node_id))


@app.post("/navigator/back")
def navigator_back():
    return _navigate(NavigatorRequest, lambda nav, req: nav.back())


@app.post("/navigator/reset")
def navigator_reset():
    return _navigate(NavigatorRequest, lambda nav, req: nav.reset())


@app.post("/navigator/clear")
def navigator_clear():
    return _navigate(NavigatorRequest, lambda nav, req: nav.clear())


def main():
    app.run(
        host="0.0.0.0",
        port=PORT,
        debug=False,
        use_reloader=False
    )


if __name__ == "__main__":
    main()
