# tests/modweaver/core/test_jsonutils.py
from __future__ import annotations
import json
from pathlib import Path

import pytest

from modweaver.core.jsonutils import jsLiteral, safeJsonDumps


def test_safeJsonDumps_is_compact_and_keeps_unicode() -> None:
    assert safeJsonDumps({"a": [1, 2], "b": "ünï"}) == '{"a":[1,2],"b":"ünï"}'


def test_safeJsonDumps_rejects_nan() -> None:
    with pytest.raises(ValueError):
        safeJsonDumps(float("nan"))


def test_safeJsonDumps_default_handles_foreign_values() -> None:
    assert json.loads(safeJsonDumps({"path": Path("x")}, default=str)) == {"path": "x"}


def test_jsLiteral_stays_on_one_line() -> None:
    literal = jsLiteral({"text": "a\nb\r\nc\u2028d\u2029e"})

    assert "\n" not in literal and "\r" not in literal
    assert "\u2028" not in literal and "\u2029" not in literal
    assert literal == '{"text":"a\\nb\\r\\nc\\u2028d\\u2029e"}'


def test_jsLiteral_non_finite_numbers() -> None:
    assert jsLiteral([float("nan"), float("inf"), float("-inf")]) == "[NaN,Infinity,-Infinity]"


def test_jsLiteral_cannot_forge_a_closing_marker() -> None:
    assert jsLiteral("x\n// END MOD: other\n") == '"x\\n// END MOD: other\\n"'
