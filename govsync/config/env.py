"""${VAR} and $VAR substitution for string values read from YAML."""

from __future__ import annotations

import os
import re
from typing import Any

ENV_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def substitute_env(value: str) -> str:
    """Replace ${VAR} and $VAR with environment variable values; unset variables become ''."""
    if not isinstance(value, str):
        return value

    def repl(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        return os.environ.get(name, "")

    return ENV_PATTERN.sub(repl, value)


def substitute_env_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively substitute ${VAR} in string values."""
    out: dict[str, Any] = {}
    for k, v in data.items():
        if isinstance(v, dict):
            out[k] = substitute_env_dict(v)
        elif isinstance(v, str):
            out[k] = substitute_env(v)
        else:
            out[k] = v
    return out
