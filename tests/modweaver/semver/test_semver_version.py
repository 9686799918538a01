# tests/modweaver/semver/test_semver_version.py
import pytest

from modweaver.semver.semver import parseSemVerVersion, SemVerVersion


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1",        (1, 0, 0, (), ())),
        ("1.2",      (1, 2, 0, (), ())),
        ("1.0.9001", (1, 0, 9001, (), ())),
        ("0.0.309",  (0, 0, 309, (), ())),
        ("v1.2.3",   (1, 2, 3, (), ())),
        ("1.2.3-alpha.1",         (1, 2, 3, ("alpha", "1"), ())),
        ("1.2.3+build.1",         (1, 2, 3, (), ("build", "1"))),
        ("1.2.3-alpha+exp.sha",   (1, 2, 3, ("alpha",), ("exp", "sha"))),
    ],
)
def test_parseSemVerVersion_valid(raw, expected):
    v = parseSemVerVersion(raw)
    assert (v.major, v.minor, v.patch, v.prerelease, v.build) == expected


@pytest.mark.parametrize(
    "raw",
    ["", "   ", ".1", "1.", "1..2", "1.2.3.4", "01.2.3", "1.02.3", "1.2.3-", "1.2.3+", "v", "vv1.2.3", "app-1.0.0"],
)
def test_parseSemVerVersion_invalid(raw):
    with pytest.raises(ValueError):
        parseSemVerVersion(raw)


def test_parseSemVerVersion_rejects_non_strings():
    with pytest.raises(TypeError):
        parseSemVerVersion(100)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "a, b",
    [
        ("1.0.9", "1.0.10"),
        ("1.0.99", "1.1.0"),
        ("0.0.309", "1.0.0"),
        ("1.0.0-alpha", "1.0.0-alpha.1"),
        ("1.0.0-alpha.1", "1.0.0-alpha.beta"),
        ("1.0.0-beta.2", "1.0.0-beta.11"),
        ("1.0.0-rc.1", "1.0.0"),
    ],
)
def test_semver_order(a, b):
    assert parseSemVerVersion(a) < parseSemVerVersion(b)


def test_build_metadata_ignored_in_comparison():
    a = parseSemVerVersion("1.0.0+build.1")
    b = parseSemVerVersion("1.0.0+build.2")

    assert a == b
    assert hash(a) == hash(b)
    assert a == SemVerVersion(1, 0, 0)


def test_str_roundtrip():
    assert str(parseSemVerVersion("v1.2.3-rc.1+sha.5")) == "1.2.3-rc.1+sha.5"
