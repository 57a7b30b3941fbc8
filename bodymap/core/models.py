from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

# ---------------------------- taxonomy nodes ---------------------------- #

@dataclass(frozen=True)
class Leaf:
    id: str
    label: str
    code: int           # EPINet site code, unique across the forest


@dataclass(frozen=True)
class Branch:
    id: str
    label: str
    children: Tuple["TaxonomyNode", ...]


TaxonomyNode = Union[Branch, Leaf]


def is_leaf(node) -> bool:
    return isinstance(node, Leaf)


def is_branch(node) -> bool:
    return isinstance(node, Branch)


@dataclass(frozen=True)
class Resolution:
    code: str
    label: str

# ---------------------------- API payloads ---------------------------- #

class NavigatorRequest(BaseModel):
    history: List[str] = Field(default_factory=list)   # branch ids, root to current
    selected_code: Optional[str] = None

    @field_validator("selected_code", mode="before")
    @classmethod
    def _code_to_str(cls, value):
        if value is None:
            return None
        return str(value).strip() or None


class SelectRequest(NavigatorRequest):
    node_id: str


class ViewItem(BaseModel):
    id: str
    label: str
    code: Optional[int] = None
    is_leaf: bool
    icon: Optional[str] = None
    mirrored: bool = False


class ResolvedSite(BaseModel):
    code: str
    label: str


class NavigatorResponse(BaseModel):
    state: str                          # "browsing" | "resolved"
    history: List[str]
    breadcrumb: List[str]
    view: List[ViewItem]
    resolved: Optional[ResolvedSite] = None
    header: str
    step_hint: str
    selection_text: str
    emitted: List[ResolvedSite] = Field(default_factory=list)   # pairs the host form should store


class SiteResult(BaseModel):
    code: str
    label: str
    id: str
    path: str
    path_ids: List[str]
