import pytest

from rstudio_cluster.tfvars import (
    load_tfvars,
    parse_tfvars,
    required,
    resolve_tfvars_path,
    strip_quotes,
    to_int,
)


def test_parse_tfvars_handles_strings_ints_and_comments():
    content = """
    # comment
    // also a comment
    location = "Central US"   # trailing comment
    count    = 3 # inline
    enabled  = true
    note     = "a # inside quotes"
    not a pair
    """
    parsed = parse_tfvars(content)
    assert parsed == {
        "location": "Central US",
        "count": "3",
        "enabled": "true",
        "note": "a # inside quotes",
    }


def test_strip_quotes_only_strips_matching_pairs():
    assert strip_quotes('"abc"') == "abc"
    assert strip_quotes("'abc'") == "abc"
    assert strip_quotes('"abc') == '"abc'
    assert strip_quotes('"') == '"'


def test_to_int_wraps_error():
    assert to_int("20") == 20
    with pytest.raises(ValueError, match="Invalid int value: x"):
        to_int("x")


def test_required_reports_key():
    with pytest.raises(KeyError, match="Missing required var: location"):
        required({}, "location")


def test_resolve_prefers_argument_then_env(tmp_path, monkeypatch):
    monkeypatch.setenv("TFVARS_FILE", "vars/prod.tfvars")
    assert resolve_tfvars_path(tmp_path) == (tmp_path / "vars/prod.tfvars").resolve()
    assert resolve_tfvars_path(tmp_path, "other.tfvars") == (tmp_path / "other.tfvars").resolve()
    monkeypatch.setenv("TFVARS_FILE", "  ")
    assert resolve_tfvars_path(tmp_path) == (tmp_path / "vars/rstudio.tfvars").resolve()


def test_load_tfvars_missing_file(tmp_path, monkeypatch):
    monkeypatch.delenv("TFVARS_FILE", raising=False)
    with pytest.raises(FileNotFoundError, match="tfvars file not found"):
        load_tfvars(tmp_path)
