"""Cache key construction for class views.

Parameter objects become key discriminators through `canonicalize_params`:
names are sorted, `name:value` pairs are joined with `:`. Two requests built
from the same filters in a different order therefore share a cache entry.
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional

from .views import ClassCacheView

PARAM_SEPARATOR = ":"
LIST_SEPARATOR = ","
GLOB_SPECIAL = "\\*?[]"


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return _render_value(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return LIST_SEPARATOR.join(sorted(_render_value(item) for item in value))
    if isinstance(value, (list, tuple)):
        return LIST_SEPARATOR.join(_render_value(item) for item in value)
    if isinstance(value, Mapping):
        return json.dumps(value, sort_keys=True, default=str, separators=(",", ":"))
    return str(value)


def canonicalize_params(params: Optional[Mapping[str, Any]] = None) -> str:
    """Deterministic string form of a query parameter mapping.

    None-valued parameters are dropped, so an absent filter and an explicit
    None address the same entry.

    Example:
        >>> canonicalize_params({"page": 1, "level": "JSS1"})
        'level:JSS1:page:1'
    """
    if not params:
        return ""

    return PARAM_SEPARATOR.join(
        f"{name}{PARAM_SEPARATOR}{_render_value(params[name])}"
        for name in sorted(params)
        if params[name] is not None
    )


def build_key(namespace: str, view: ClassCacheView, discriminator: Any) -> str:
    """Full cache key for one entry of a view."""
    return f"{view.prefix(namespace)}{discriminator}"


def build_scoped_key(namespace: str, view: ClassCacheView, scope: Any,
                     params: Optional[Mapping[str, Any]] = None) -> str:
    """Key for views addressed as `{scope}:{params}` (counts, analytics, dimensions)."""
    return build_key(namespace, view, f"{scope}{PARAM_SEPARATOR}{canonicalize_params(params)}")


def build_view_pattern(namespace: str, view: ClassCacheView) -> str:
    """Glob matching every entry of a view."""
    return f"{view.prefix(namespace)}*"


def escape_glob(value: Any) -> str:
    """Backslash-escape glob metacharacters so `value` matches only itself.

    Example:
        >>> escape_glob("JSS[1]")
        'JSS\\\\[1\\\\]'
    """
    return "".join(f"\\{char}" if char in GLOB_SPECIAL else char for char in str(value))


def build_scope_pattern(namespace: str, view: ClassCacheView, scope: Any) -> str:
    """Glob matching every entry of a view under one scope value."""
    return f"{view.prefix(namespace)}{escape_glob(scope)}{PARAM_SEPARATOR}*"
