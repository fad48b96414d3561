from pathlib import Path

import pytest

from rstudio_cluster.settings import DeploySettings

TFVARS = """
name_prefix            = "rstudio"
location               = "Central US"
project_resource_group = "rstudio-project-rg"
cluster_resource_group = "rstudio-vmss-rg"

vnet_cidr               = "10.0.0.0/23"
subnet_vm_cidr          = "10.0.0.0/25"
subnet_mini_ad_cidr     = "10.0.0.128/25"
subnet_app_gateway_cidr = "10.0.1.0/25"
mini_ad_private_ip      = "10.0.0.132"

domain_fqdn     = "mcloud.mikecloud.com"
netbios         = "mcloud"
mini_ad_vm_size = "Standard_B2s"

nfs_gateway_vm_size = "Standard_B2s"
windows_vm_size     = "Standard_DS1_v2"

vmss_vm_size           = "Standard_B2ms"
vmss_min_instances     = 2
vmss_default_instances = 2
vmss_max_instances     = 4

check_interval_seconds = 5
max_retries            = 3
"""


@pytest.fixture
def repo_root(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.delenv("TFVARS_FILE", raising=False)
    (tmp_path / "vars").mkdir()
    (tmp_path / "vars" / "rstudio.tfvars").write_text(TFVARS, encoding="utf-8")
    return tmp_path


@pytest.fixture
def settings(tmp_path: Path) -> DeploySettings:
    return DeploySettings(
        project_resource_group="rstudio-project-rg",
        cluster_resource_group="rstudio-vmss-rg",
        location="Central US",
        infra_dir=tmp_path / "infra",
        packer_dir=tmp_path / "packer",
        check_interval=7,
        max_retries=3,
    )
