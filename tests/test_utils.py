import sys

import pytest

from rstudio_cluster import utils
from rstudio_cluster.utils import CmdError, redact, run, var_args


def test_run_returns_stdout_only(capsys):
    out = run(
        [sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr)"]
    )
    assert out == "out"
    printed = capsys.readouterr().out
    assert "Running:" in printed
    assert "err" in printed


def test_run_raises_with_exit_code():
    with pytest.raises(CmdError) as exc:
        run([sys.executable, "-c", "print('partial'); raise SystemExit(3)"])
    assert "Command failed (3)" in str(exc.value)
    assert "partial" in str(exc.value)


def test_run_redacts_secrets_in_echo_and_error(capsys):
    with pytest.raises(CmdError) as exc:
        run(
            [sys.executable, "-c", "print('hunter2'); raise SystemExit(1)"],
            secrets=["hunter2"],
        )
    assert "hunter2" not in str(exc.value)
    assert "hunter2" not in capsys.readouterr().out


def test_run_quiet_does_not_echo_output(capsys):
    out = run([sys.executable, "-c", "print('secret-body')"], echo=False)
    assert out == "secret-body"
    # only the echoed command line mentions it
    assert capsys.readouterr().out.count("secret-body") == 1


def test_redact_ignores_empty_values():
    assert redact("a b", ["", "b"]) == "a ****"


def test_var_args_keeps_order():
    assert var_args({"b": "2", "a": "1"}) == ["--var=b=2", "--var=a=1"]


@pytest.mark.parametrize("raw,expected", [("", None), ("None", None), ("  kv-1 \n", "kv-1")])
def test_az_tsv_normalizes_empty_results(monkeypatch, raw, expected):
    calls = []

    def fake_run(cmd, cwd=None, secrets=(), echo=True, env=None):
        calls.append(cmd)
        return raw

    monkeypatch.setattr(utils, "run", fake_run)
    monkeypatch.setattr(utils, "_resolve_az_exe", lambda: "az")
    assert utils.az_tsv(["keyvault", "list"]) == expected
    assert calls[0] == ["az", "keyvault", "list", "--output", "tsv"]


def test_child_env_overrides(monkeypatch):
    monkeypatch.setenv("KEEP", "1")
    env = utils.child_env({"TFVARS_FILE": "x"})
    assert env["KEEP"] == "1"
    assert env["TFVARS_FILE"] == "x"
