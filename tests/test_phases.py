import pytest

from rstudio_cluster import discovery, phases
from rstudio_cluster.discovery import DiscoveryError
from rstudio_cluster.phases import ClusterInputs, select_phases
from rstudio_cluster.utils import CmdError

ARM_ENV = {
    "ARM_CLIENT_ID": "cid",
    "ARM_CLIENT_SECRET": "csecret",
    "ARM_SUBSCRIPTION_ID": "sub",
    "ARM_TENANT_ID": "tenant",
}


@pytest.fixture
def recorder(monkeypatch):
    """Capture every cdktf/packer/az side effect in one ordered log."""
    log = []

    def fake_cdktf(project_dir, args, env=None, secrets=()):
        log.append(("cdktf", list(args), tuple(secrets)))
        return ""

    def fake_packer(template_dir, args, secrets=()):
        log.append(("packer", list(args), tuple(secrets)))
        return ""

    monkeypatch.setattr(phases, "cdktf", fake_cdktf)
    monkeypatch.setattr(phases, "packer", fake_packer)
    monkeypatch.setattr(discovery, "find_key_vault", lambda rg, prefix: "ad-key-vault-x")
    monkeypatch.setattr(discovery, "latest_image", lambda rg, prefix: "rstudio_image_2")
    monkeypatch.setattr(discovery, "find_storage_account", lambda rg, prefix: "nfsabc")
    monkeypatch.setattr(
        discovery, "get_secret_field", lambda vault, name, field: "ubuntu-pw"
    )
    monkeypatch.setattr(discovery, "list_images", lambda rg: ["rstudio_image_1", "rstudio_image_2"])
    monkeypatch.setattr(discovery, "delete_image", lambda rg, name: log.append(("delete", name)))
    for k, v in ARM_ENV.items():
        monkeypatch.setenv(k, v)
    return log


def test_select_phases_orders_and_validates():
    assert select_phases(None) == ["directory", "servers", "image", "cluster"]
    assert select_phases(["cluster", " servers"]) == ["servers", "cluster"]
    with pytest.raises(CmdError, match="Unknown phase"):
        select_phases(["network"])


def test_cluster_inputs_vars():
    inputs = ClusterInputs("kv", "nfs1", "pw", "img")
    assert inputs.as_vars() == {
        "vault_name": "kv",
        "nfs_storage_account": "nfs1",
        "ubuntu_password": "pw",
        "rstudio_image_name": "img",
    }


def test_apply_all_runs_phases_in_order(settings, recorder):
    phases.apply_all(settings)
    steps = [entry[1][:2] for entry in recorder]
    assert steps == [
        ["deploy", "directory"],
        ["deploy", "servers"],
        ["init", "."],
        ["build", "-var=client_id=cid"],
        ["deploy", "cluster"],
    ]


def test_apply_all_propagates_discovered_values(settings, recorder):
    phases.apply_all(settings)
    servers = recorder[1]
    assert servers[1] == ["deploy", "servers", "--auto-approve", "--var=vault_name=ad-key-vault-x"]

    cluster = recorder[-1]
    assert cluster[1] == [
        "deploy",
        "cluster",
        "--auto-approve",
        "--var=vault_name=ad-key-vault-x",
        "--var=nfs_storage_account=nfsabc",
        "--var=ubuntu_password=ubuntu-pw",
        "--var=rstudio_image_name=rstudio_image_2",
    ]
    assert cluster[2] == ("ubuntu-pw",)


def test_packer_build_passes_credentials_and_hides_secret(settings, recorder):
    phases.apply_all(settings, ["image"])
    build = recorder[1]
    assert "-var=client_secret=csecret" in build[1]
    assert "-var=resource_group=rstudio-project-rg" in build[1]
    assert "-var=location=Central US" in build[1]
    assert build[1][-1] == "rstudio_image.pkr.hcl"
    assert build[2] == ("csecret",)


def test_apply_cluster_fails_without_image(settings, recorder, monkeypatch):
    monkeypatch.setattr(discovery, "latest_image", lambda rg, prefix: None)
    with pytest.raises(DiscoveryError, match="No image with the prefix 'rstudio_image'"):
        phases.apply_all(settings, ["cluster"])
    assert recorder == []


def test_apply_servers_fails_without_vault(settings, recorder, monkeypatch):
    monkeypatch.setattr(discovery, "find_key_vault", lambda rg, prefix: None)
    with pytest.raises(DiscoveryError, match="No Key Vault"):
        phases.apply_all(settings, ["directory", "servers"])
    # directory already ran before discovery failed
    assert [e[1][:2] for e in recorder] == [["deploy", "directory"]]


def test_destroy_all_reverse_order_with_image_cleanup(settings, recorder, capsys):
    phases.destroy_all(settings)
    summary = [e[1][:2] if e[0] == "cdktf" else ["delete", e[1]] for e in recorder]
    assert summary == [
        ["destroy", "cluster"],
        ["delete", "rstudio_image_1"],
        ["delete", "rstudio_image_2"],
        ["destroy", "servers"],
        ["destroy", "directory"],
    ]
    assert "successfully destroyed" in capsys.readouterr().out


def test_destroy_continues_when_image_delete_fails(settings, recorder, monkeypatch, capsys):
    def failing_delete(rg, name):
        raise CmdError("locked")

    monkeypatch.setattr(discovery, "delete_image", failing_delete)
    phases.destroy_all(settings)
    out = capsys.readouterr().out
    assert "WARNING: Failed to delete rstudio_image_1 - skipping" in out
    assert recorder[-1][1][:2] == ["destroy", "directory"]


def test_destroy_network_only_touches_directory(settings, recorder):
    phases.destroy_network(settings)
    assert [e[1] for e in recorder] == [["destroy", "directory", "--auto-approve"]]


def test_stack_env_carries_tfvars_choice(settings, monkeypatch):
    seen = {}

    def fake_cdktf(project_dir, args, env=None, secrets=()):
        seen["env"] = env

    monkeypatch.setattr(phases, "cdktf", fake_cdktf)
    from dataclasses import replace

    phases.deploy_directory(replace(settings, tfvars_file="vars/prod.tfvars"))
    assert seen["env"]["TFVARS_FILE"] == "vars/prod.tfvars"
