import pytest

from rstudio_cluster import preflight
from rstudio_cluster.preflight import (
    PreflightError,
    check_env,
    format_missing_env_message,
    missing_env,
)
from rstudio_cluster.utils import CmdError

ENV = {
    "ARM_CLIENT_ID": "cid",
    "ARM_CLIENT_SECRET": "s3cret",
    "ARM_SUBSCRIPTION_ID": "sub",
    "ARM_TENANT_ID": "tenant",
}


def test_missing_env_treats_blank_as_missing():
    assert missing_env({"A": "1", "B": ""}, ["A", "B", "C"]) == ["B", "C"]


def test_format_missing_env_message():
    msg = format_missing_env_message(["ARM_TENANT_ID"])
    assert "  - ARM_TENANT_ID" in msg
    assert 'export ARM_TENANT_ID="<value>"' in msg
    assert format_missing_env_message([]) == ""


def test_check_env_raises_with_hint():
    with pytest.raises(PreflightError, match="ARM_CLIENT_SECRET"):
        check_env({"ARM_CLIENT_ID": "x"})
    check_env(ENV)


def test_check_tools_reports_missing(monkeypatch):
    monkeypatch.setattr(preflight, "missing_tools", lambda tools: ["packer"])
    with pytest.raises(PreflightError, match="packer"):
        preflight.check_tools()


def test_az_login_uses_service_principal(monkeypatch):
    calls = []
    monkeypatch.setattr(
        preflight, "az", lambda args, secrets=(): calls.append((args, list(secrets)))
    )
    preflight.az_login(ENV)
    login, account = calls
    assert login[0][:2] == ["login", "--service-principal"]
    assert "s3cret" in login[0]
    assert login[1] == ["s3cret"]
    assert account[0] == ["account", "set", "--subscription", "sub"]


def test_az_login_failure_is_preflight_error(monkeypatch):
    def failing(args, secrets=()):
        raise CmdError("bad creds")

    monkeypatch.setattr(preflight, "az", failing)
    with pytest.raises(PreflightError, match="Failed to log into Azure"):
        preflight.az_login(ENV)
