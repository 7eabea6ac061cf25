import pytest

from mcp_env_setup.errors import ManifestError
from mcp_env_setup.manifest import normalize_name, parse_manifest, read_manifest
from mcp_env_setup.types import Requirement


def test_read_manifest(fixture_path):
    """Test comments and blank lines are skipped"""
    requirements = read_manifest(fixture_path / "manifests" / "requirements.txt")

    assert requirements == [
        Requirement("requests", "2.31.0"),
        Requirement("six", "1.16.0"),
        Requirement("Flask_Login", "0.6.2"),
    ]


def test_parse_manifest_whitespace_around_pin():
    assert parse_manifest("  black == 24.1.0  \n") == [Requirement("black", "24.1.0")]


def test_parse_manifest_empty():
    assert parse_manifest("") == []
    assert parse_manifest("# nothing pinned\n\n") == []


def test_invalid_line_reports_line_number(fixture_path):
    with pytest.raises(ManifestError) as exc:
        read_manifest(fixture_path / "manifests" / "invalid.txt")

    assert exc.value.details["line_no"] == 2
    assert "numpy>=1.26" in str(exc.value)


def test_missing_manifest(tmp_path):
    with pytest.raises(ManifestError) as exc:
        read_manifest(tmp_path / "requirements.txt")
    assert exc.value.details == {"missing": True}


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Flask_Login", "flask-login"),
        ("zope.interface", "zope-interface"),
        ("typing__extensions", "typing-extensions"),
        ("pip", "pip"),
    ],
)
def test_normalize_name(name, expected):
    assert normalize_name(name) == expected


def test_requirement_str():
    assert str(Requirement("six", "1.16.0")) == "six==1.16.0"


def test_manifest_not_utf8(tmp_path):
    path = tmp_path / "requirements.txt"
    path.write_bytes(b"caf\xe9==1.0\n")

    with pytest.raises(ManifestError) as exc:
        read_manifest(path)
    assert "not valid UTF-8" in str(exc.value)
    assert "missing" not in exc.value.details
