import pytest

from utils import templates
from utils.templates import checked_template, template_variables

TEMPLATE_VARS = {
    "mini_ad.sh.tpl": {
        "realm",
        "netbios",
        "domain_fqdn",
        "force_group",
        "admin_password",
        "groups_json",
        "users_json",
    },
    "nfs_gateway.sh.tpl": {
        "storage_account",
        "share_name",
        "vault_name",
        "netbios",
        "realm",
        "domain_fqdn",
        "force_group",
        "domain_users",
    },
    "rstudio_booter.sh.tpl": {
        "storage_account",
        "share_name",
        "vault_name",
        "domain_fqdn",
        "force_group",
    },
}


@pytest.mark.parametrize("name", sorted(TEMPLATE_VARS))
def test_shipped_templates_match_module_variables(name):
    assert checked_template(name, TEMPLATE_VARS[name]).endswith(name)


def test_escaped_references_are_shell_expansions():
    content = 'echo "${realm}" "$${HOME}" "$${value^^}"'
    assert template_variables(content) == {"realm"}


def test_expressions_are_rejected():
    with pytest.raises(ValueError, match="Unsupported template expression"):
        template_variables("${upper(realm)}")


def test_mismatch_reports_both_sides(tmp_path, monkeypatch):
    (tmp_path / "t.tpl").write_text("${a} ${b}", encoding="utf-8")
    monkeypatch.setattr(templates, "TEMPLATE_DIR", tmp_path)
    with pytest.raises(ValueError, match=r"missing=\['b'\] unexpected=\['c'\]"):
        checked_template("t.tpl", ["a", "c"])


def test_missing_template(tmp_path, monkeypatch):
    monkeypatch.setattr(templates, "TEMPLATE_DIR", tmp_path)
    with pytest.raises(FileNotFoundError):
        checked_template("nope.tpl", [])
