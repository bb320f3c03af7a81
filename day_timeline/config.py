"""Runtime settings.

Each constant can be overridden through an environment variable so the app
can point at another data file (or a scratch one in tests) without code
changes.
"""
import os

DATA_FILE = os.environ.get("TIMELINE_DATA_FILE", "timeline_data.json")
ERROR_LOG = os.environ.get("TIMELINE_ERROR_LOG", "error.log")
CHARTS_DIR = os.environ.get("TIMELINE_CHARTS_DIR", "charts_images")
EXPORT_DIR = os.environ.get("TIMELINE_EXPORT_DIR", ".")

DEFAULT_TAG_COLOR = "#000000"


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


# refresh rate of the timeline view only; stored data never depends on it
TICK_SECONDS = _float_env("TIMELINE_TICK_SECONDS", 0.5)
