import json
from pathlib import Path
from typing import Any, Dict, List, Union

from ..config import TAXONOMY_FILE


def load_taxonomy(path: Union[str, Path, None] = None) -> List[Dict[str, Any]]:
    """Read the body-site forest; a single root object is wrapped in a list."""
    file = Path(path or TAXONOMY_FILE)
    if not file.exists():
        raise FileNotFoundError(f"Taxonomy file not found: {file}")
    with open(file, "r", encoding="utf-8") as f:
        data = json.load(f)
    return data if isinstance(data, list) else [data]


def write_taxonomy(path: Union[str, Path], records: List[Dict[str, Any]]) -> Path:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(records, f, indent=2, ensure_ascii=False)
        f.write("\n")
    return out_path
