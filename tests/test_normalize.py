import pytest

from app.utils.normalize import (
    normalize_consent, normalize_optional_text, normalize_skills, normalize_text
)


@pytest.mark.parametrize("value, expected", [
    ("soil,GIS", ["soil", "GIS"]),
    ("soil, GIS ,  mapping", ["soil", "GIS", "mapping"]),
    ("soil", ["soil"]),
    ("  soil  ", ["soil"]),
    (["soil", "GIS"], ["soil", "GIS"]),
    (["soil, GIS", "mapping"], ["soil", "GIS", "mapping"]),
    ([" soil ", "", "  "], ["soil"]),
    ("soil,,GIS,", ["soil", "GIS"]),
    ("soil,soil", ["soil", "soil"]),
    ("", []),
    (None, []),
    ([], []),
])
def test_normalize_skills(value, expected):
    assert normalize_skills(value) == expected


@pytest.mark.parametrize("joined, repeated", [
    ("soil,GIS,irrigation", ["soil", "GIS", "irrigation"]),
    ("a, b", ["a", " b"]),
])
def test_skills_shapes_agree_with_comma_joined_form(joined, repeated):
    naive = [s.strip() for s in ",".join(repeated).split(",") if s.strip()]
    assert normalize_skills(joined) == normalize_skills(repeated) == naive


@pytest.mark.parametrize("value, expected", [
    (True, True),
    ("true", True),
    ("on", True),
    (False, False),
    ("false", False),
    ("off", False),
    ("yes", False),
    ("TRUE", False),
    (" on", False),
    ("1", False),
    (1, False),
    ("", False),
    (None, False),
    ([], False),
])
def test_normalize_consent(value, expected):
    assert normalize_consent(value) is expected


@pytest.mark.parametrize("value, default, expected", [
    ("  Jane Doe ", "", "Jane Doe"),
    (None, "", ""),
    ("", "Not specified", "Not specified"),
    ("   ", "Not specified", "Not specified"),
    (["first", "second"], "", "second"),
    ([], "fallback", "fallback"),
    (42, "", "42"),
])
def test_normalize_text(value, default, expected):
    assert normalize_text(value, default=default) == expected


def test_normalize_optional_text():
    assert normalize_optional_text("  ") is None
    assert normalize_optional_text(" note ") == "note"
