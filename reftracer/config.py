"""Centralized configuration for reftracer.

Settings come from the environment, after loading a .env file from the
project root once. Command-line options override every value here.

Environment variables:
    REFTRACER_MODE: "strict" (default) or "legacy"
    REFTRACER_GLOBAL_OBJECT_NAMES: comma-separated global object names
    REFTRACER_FOLD_CONCATENATION: fold `"a" + "b"` keys (default on)
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from reftracer.core.models import TraceMode
from reftracer.tracing.tracer import DEFAULT_GLOBAL_OBJECT_NAMES

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

_ENV_LOADED = False
_CACHED_MODE: TraceMode | None = None
_CACHED_GLOBAL_OBJECT_NAMES: tuple[str, ...] | None = None
_CACHED_FOLD_CONCATENATION: bool | None = None


def _find_project_root() -> Path:
    """Find project root by searching for .env file.

    Searches upward from this file's location (max 5 levels) and falls
    back to the parent of the reftracer package.
    """
    current = Path(__file__).resolve().parent

    for _ in range(5):
        if (current / ".env").exists():
            return current
        if current.parent == current:
            break
        current = current.parent

    return Path(__file__).resolve().parent.parent


def _load_env() -> None:
    """Load the .env file once."""
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    env_path = _find_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()
    _ENV_LOADED = True


def _load_mode() -> TraceMode:
    _load_env()
    raw = os.environ.get("REFTRACER_MODE")
    if not raw:
        return TraceMode.STRICT
    try:
        return TraceMode.from_string(raw)
    except ValueError:
        logger.warning("Ignoring REFTRACER_MODE=%r, using 'strict'", raw)
        return TraceMode.STRICT


def _load_global_object_names() -> tuple[str, ...]:
    _load_env()
    raw = os.environ.get("REFTRACER_GLOBAL_OBJECT_NAMES")
    if raw is None:
        return DEFAULT_GLOBAL_OBJECT_NAMES
    return tuple(name.strip() for name in raw.split(",") if name.strip())


def _load_fold_concatenation() -> bool:
    _load_env()
    raw = os.environ.get("REFTRACER_FOLD_CONCATENATION", "").strip().lower()
    if not raw:
        return True
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    logger.warning("Ignoring REFTRACER_FOLD_CONCATENATION=%r", raw)
    return True


def get_mode() -> TraceMode:
    """Get the default interop mode, loading once and caching."""
    global _CACHED_MODE
    if _CACHED_MODE is None:
        _CACHED_MODE = _load_mode()
    return _CACHED_MODE


def get_global_object_names() -> tuple[str, ...]:
    """Get the names treated as the global object."""
    global _CACHED_GLOBAL_OBJECT_NAMES
    if _CACHED_GLOBAL_OBJECT_NAMES is None:
        _CACHED_GLOBAL_OBJECT_NAMES = _load_global_object_names()
    return _CACHED_GLOBAL_OBJECT_NAMES


def get_fold_concatenation() -> bool:
    """Get whether string concatenations fold into property names."""
    global _CACHED_FOLD_CONCATENATION
    if _CACHED_FOLD_CONCATENATION is None:
        _CACHED_FOLD_CONCATENATION = _load_fold_concatenation()
    return _CACHED_FOLD_CONCATENATION


def reset_config() -> None:
    """Forget cached settings so the next getter call re-reads the environment."""
    global _CACHED_MODE, _CACHED_GLOBAL_OBJECT_NAMES, _CACHED_FOLD_CONCATENATION
    _CACHED_MODE = None
    _CACHED_GLOBAL_OBJECT_NAMES = None
    _CACHED_FOLD_CONCATENATION = None
