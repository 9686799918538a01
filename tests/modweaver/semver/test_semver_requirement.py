# tests/modweaver/semver/test_semver_requirement.py
import pytest

from modweaver.semver.semver import (
    parseSemVerVersion,
    parseSemVerRequirement,
    versionSatisfiesRequirement,
)


def _matches(req_str: str | None, candidates: list[str]) -> list[str]:
    req = parseSemVerRequirement(req_str)
    vers = [parseSemVerVersion(vs) for vs in candidates]
    return [str(v) for v in vers if versionSatisfiesRequirement(v, req)]


@pytest.mark.parametrize("raw", [None, "", "   ", "*"])
def test_requirement_parse_any(raw):
    assert parseSemVerRequirement(raw) is None


def test_requirement_exact_version():
    assert _matches("1.2.3", ["1.2.3", "1.2.4"]) == ["1.2.3"]
    assert _matches("=1.2.3", ["1.2.3", "1.2.4"]) == ["1.2.3"]


def test_requirement_basic_inequalities():
    assert _matches(">=1.2.0 <2.0.0", ["1.1.9", "1.2.0", "1.5.0", "2.0.0"]) == ["1.2.0", "1.5.0"]
    assert _matches(">1.0.0 <=1.0.9001", ["1.0.0", "1.0.1", "1.0.9001", "1.1.0"]) == ["1.0.1", "1.0.9001"]


def test_requirement_caret_semantics():
    assert _matches("^1.2.3", ["1.2.3", "1.4.0", "2.0.0", "0.9.0"]) == ["1.2.3", "1.4.0"]
    assert _matches("^0.2.3", ["0.2.3", "0.2.9", "0.3.0", "1.0.0"]) == ["0.2.3", "0.2.9"]
    assert _matches("^0.0.3", ["0.0.2", "0.0.3", "0.0.4"]) == ["0.0.3"]


def test_requirement_tilde_semantics():
    assert _matches("~1.2.3", ["1.2.3", "1.2.9", "1.3.0", "2.0.0"]) == ["1.2.3", "1.2.9"]
    assert _matches("~1", ["0.9.9", "1.0.0", "1.5.0", "2.0.0"]) == ["1.0.0", "1.5.0"]


def test_requirement_hyphen_range():
    matched = _matches("1.2.3 - 2.0.0", ["1.0.0", "1.2.3", "1.5.0", "2.0.0", "2.0.1"])
    assert matched == ["1.2.3", "1.5.0", "2.0.0"]


def test_invalid_hyphen_range_upper_less_than_lower():
    with pytest.raises(ValueError):
        parseSemVerRequirement("2.0.0 - 1.0.0")


@pytest.mark.parametrize(
    "raw",
    [
        "^",           # missing version
        "~",           # missing version
        ">= ",         # missing version
        "<=x.y.z",     # invalid version
        "1.2.3 - ",    # bad range
        "- 1.2.3",     # bad range
    ],
)
def test_requirement_invalid_inputs(raw):
    with pytest.raises(ValueError):
        parseSemVerRequirement(raw)
