# bodymap/core/presentation.py
"""Host-layer display lookups for the site picker, keyed by node id. Not part of the taxonomy."""
from typing import Optional

from .navigator import DrillDownNavigator

# Icon names follow the lucide set used by the portal front end.
_ICONS = {
    "hands": "hand",
    "hand_right": "hand",
    "hand_left": "hand",
    "fingers_r": "pointer",
    "fingers_l": "pointer",
    "palm_r": "hand",
    "palm_l": "hand",
    "arms": "biceps-flexed",
    "arm_right": "biceps-flexed",
    "arm_left": "biceps-flexed",
    "arm_r_upper": "biceps-flexed",
    "arm_r_fore": "biceps-flexed",
    "arm_r_wrist": "watch",
    "arm_l_upper": "biceps-flexed",
    "arm_l_fore": "biceps-flexed",
    "arm_l_wrist": "watch",
    "torso": "user",
    "head": "user-circle",
    "face_r": "user-circle",
    "face_l": "user-circle",
    "head_back": "user-circle",
    "front_body": "heart",
    "chest_r": "heart",
    "chest_l": "heart",
    "abd_r": "activity",
    "abd_l": "activity",
    "back_body": "user",
    "back_up": "circle-dot",
    "back_low": "circle-dot",
    "buttock": "circle-dot",
    "legs": "footprints",
    "leg_r": "footprints",
    "leg_l": "footprints",
    "thigh_r": "biceps-flexed",
    "thigh_l": "biceps-flexed",
    "leg_low_r": "footprints",
    "leg_low_l": "footprints",
    "foot_r": "footprints",
    "foot_l": "footprints",
}

_STEP_HINTS = ("Step 1: Choose Region", "Step 2: Narrow Down", "Step 3: Specific Part")


def icon_for(node_id: str) -> Optional[str]:
    # None means the host draws its generic dot
    return _ICONS.get(node_id)


def is_mirrored(node_id: str) -> bool:
    """Left-side nodes are drawn mirrored."""
    parts = (node_id or "").lower().split("_")
    return "l" in parts or "left" in parts


def step_hint(depth: int) -> str:
    return _STEP_HINTS[min(max(depth, 0), len(_STEP_HINTS) - 1)]


def selection_text(code: Optional[str], label: Optional[str]) -> str:
    if not code:
        return "No location selected"
    return f"{label or 'Item Selected'} (Code: {code})"


def header_text(navigator: DrillDownNavigator) -> str:
    parent = navigator.current_parent
    return parent.label if parent else "Select Body Region"
