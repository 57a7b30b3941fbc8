import pytest

from bodymap.core.taxonomy_store import TaxonomyStore, default_store

SMALL_FOREST = [
    {
        "id": "hands",
        "label": "Hands & Fingers",
        "children": [
            {
                "id": "hand_right",
                "label": "Right Hand",
                "children": [
                    {"id": "index_r_tip", "label": "Index Tip (R)", "code": 4},
                    {"id": "thumb_r_tip", "label": "Thumb Tip (R)", "code": 3},
                ],
            },
            {"id": "hand_r_dorsal", "label": "Back of Hand (Dorsal)", "code": 1},
        ],
    },
    {"id": "buttock", "label": "Buttocks", "code": 54},
]


@pytest.fixture
def store():
    return default_store()


@pytest.fixture
def small_store():
    return TaxonomyStore.from_records(SMALL_FOREST)
