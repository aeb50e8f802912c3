"""
Environment helpers for config dataclasses.

``read_env_defaults`` turns an ``{field: ENV_VAR}`` map into keyword
arguments for a config dataclass, coercing each raw string to the
field's declared type. Unset variables are skipped so the dataclass
default applies.
"""

from __future__ import annotations

import os
from dataclasses import MISSING, Field
from logging import getLogger
from typing import Any, Dict, Mapping, Optional

logger = getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _coerce(raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"not a boolean: {raw!r}")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


def read_env_defaults(
    env_map: Mapping[str, str],
    dataclass_fields: Mapping[str, Field],
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Read config overrides from the environment.

    Values that fail to coerce are logged and ignored.
    """
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    for field_name, env_var in env_map.items():
        raw = env.get(env_var)
        if raw is None or field_name not in dataclass_fields:
            continue
        default = dataclass_fields[field_name].default
        if default is MISSING:
            default = None
        try:
            values[field_name] = _coerce(raw, default)
        except ValueError as e:
            logger.warning(f"Ignoring {env_var}={raw!r}: {e}")
    return values
