import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

_PACKAGE_DIR = Path(__file__).resolve().parent


def _get_int_env(name, default=None):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool_env(name, default=False):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes")

DATA_DIR = os.getenv("DATA_DIR", str(_PACKAGE_DIR / "data"))
TAXONOMY_DIR = os.path.join(DATA_DIR, "taxonomies")
TAXONOMY_FILE = os.getenv("TAXONOMY_FILE", os.path.join(TAXONOMY_DIR, "epinet_body_sites.json"))

DEBUG = _get_bool_env("DEBUG", False)
PORT = _get_int_env("PORT", 8000)
BREADCRUMB_SEPARATOR = os.getenv("BREADCRUMB_SEPARATOR", " › ")
