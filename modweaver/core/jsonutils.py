# modweaver/core/jsonutils.py
from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

__all__ = ["safeJsonDumps", "jsLiteral"]



def safeJsonDumps(obj: object, *, default: Callable[[Any], Any] | None = None) -> str:
    """
    Serializes an object to a compact JSON string.
    Uses deterministic separators (",", ":") and disallows NaN/infinity.
    UTF-8 characters are kept as-is. `default` is handed to json.dumps for
    values it cannot encode on its own.
    """
    return json.dumps(obj, ensure_ascii=False, allow_nan=False, separators=(",", ":"), default=default)



def jsLiteral(value: Any) -> str:
    """
    Renders a JSON value as a JavaScript expression that fits on one line,
    so it can never split a line of a mod region.

    NaN and +/-Infinity come out as the JS globals of the same name.
    """
    text = json.dumps(value, ensure_ascii=False, allow_nan=True, separators=(",", ":"))
    # U+2028/U+2029 terminate lines in pre-ES2019 string literals
    return text.replace("\u2028", "\\u2028").replace("\u2029", "\\u2029")
