"""
Phased deploy and teardown of the RStudio cluster.

Apply order is directory -> servers -> image -> cluster. Each CDKTF stack is
deployed on its own; values only known after an earlier phase (key vault
name, storage account, latest image, ubuntu password) are discovered from
Azure and passed to the next stack as Terraform variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from . import discovery
from .settings import DeploySettings
from .utils import CmdError, cdktf, child_env, packer, var_args

PHASES = ("directory", "servers", "image", "cluster")


@dataclass(frozen=True)
class ClusterInputs:
    vault_name: str
    nfs_storage_account: str
    ubuntu_password: str
    rstudio_image_name: str

    def as_vars(self) -> Dict[str, str]:
        return {
            "vault_name": self.vault_name,
            "nfs_storage_account": self.nfs_storage_account,
            "ubuntu_password": self.ubuntu_password,
            "rstudio_image_name": self.rstudio_image_name,
        }


def select_phases(requested: Optional[Iterable[str]]) -> List[str]:
    """Return requested phases in canonical order; None means all."""
    if not requested:
        return list(PHASES)
    wanted = [p.strip() for p in requested if p.strip()]
    unknown = [p for p in wanted if p not in PHASES]
    if unknown:
        raise CmdError(
            f"Unknown phase(s): {', '.join(unknown)}. Valid phases: {', '.join(PHASES)}"
        )
    return [p for p in PHASES if p in wanted]


def _stack_env(settings: DeploySettings) -> Dict[str, str]:
    if settings.tfvars_file:
        return child_env({"TFVARS_FILE": settings.tfvars_file})
    return child_env({})


def _deploy_stack(
    settings: DeploySettings,
    stack: str,
    variables: Optional[Dict[str, str]] = None,
    secrets: Sequence[str] = (),
) -> None:
    cdktf(
        settings.infra_dir,
        ["deploy", stack, "--auto-approve", *var_args(variables or {})],
        env=_stack_env(settings),
        secrets=secrets,
    )


def _destroy_stack(
    settings: DeploySettings,
    stack: str,
    variables: Optional[Dict[str, str]] = None,
    secrets: Sequence[str] = (),
) -> None:
    cdktf(
        settings.infra_dir,
        ["destroy", stack, "--auto-approve", *var_args(variables or {})],
        env=_stack_env(settings),
        secrets=secrets,
    )


def discover_vault(settings: DeploySettings) -> str:
    vault = discovery.require(
        discovery.find_key_vault(settings.project_resource_group, settings.key_vault_prefix),
        f"No Key Vault with the prefix '{settings.key_vault_prefix}' was found in "
        f"{settings.project_resource_group}.",
    )
    print(f"NOTE: Key Vault for secrets is {vault}")
    return vault


def discover_cluster_inputs(settings: DeploySettings, vault: str) -> ClusterInputs:
    rg = settings.project_resource_group
    image = discovery.require(
        discovery.latest_image(rg, settings.image_prefix),
        f"No image with the prefix '{settings.image_prefix}' was found in {rg}.",
    )
    print(f"NOTE: Using the latest image ({image}) in {rg}.")
    password = discovery.get_secret_field(vault, settings.ubuntu_secret_name, "password")
    storage = discovery.require(
        discovery.find_storage_account(rg, settings.storage_prefix),
        f"No storage account with the prefix '{settings.storage_prefix}' was found in {rg}.",
    )
    print(f"NOTE: NFS storage account is {storage}")
    return ClusterInputs(
        vault_name=vault,
        nfs_storage_account=storage,
        ubuntu_password=password,
        rstudio_image_name=image,
    )


def deploy_directory(settings: DeploySettings) -> None:
    print("NOTE: Phase 1 - deploying directory layer (network, Key Vault, Mini-AD).")
    _deploy_stack(settings, "directory")


def deploy_servers(settings: DeploySettings, vault: str) -> None:
    print("NOTE: Phase 2 - deploying services layer (NFS, gateway, AD admin server).")
    _deploy_stack(settings, "servers", {"vault_name": vault})


def build_image(settings: DeploySettings, env: Optional[Dict[str, str]] = None) -> None:
    print("NOTE: Phase 3 - building RStudio image with Packer.")
    env = dict(os.environ) if env is None else env
    secret = env.get("ARM_CLIENT_SECRET", "")
    packer(settings.packer_dir, ["init", "."])
    packer(
        settings.packer_dir,
        [
            "build",
            f"-var=client_id={env.get('ARM_CLIENT_ID', '')}",
            f"-var=client_secret={secret}",
            f"-var=subscription_id={env.get('ARM_SUBSCRIPTION_ID', '')}",
            f"-var=tenant_id={env.get('ARM_TENANT_ID', '')}",
            f"-var=resource_group={settings.project_resource_group}",
            f"-var=location={settings.location}",
            "rstudio_image.pkr.hcl",
        ],
        secrets=[secret],
    )


def deploy_cluster(settings: DeploySettings, inputs: ClusterInputs) -> None:
    print("NOTE: Phase 4 - deploying RStudio cluster (VMSS, Application Gateway).")
    _deploy_stack(settings, "cluster", inputs.as_vars(), secrets=[inputs.ubuntu_password])


def apply_all(settings: DeploySettings, phases: Optional[Iterable[str]] = None) -> None:
    selected = select_phases(phases)
    vault: Optional[str] = None
    for phase in selected:
        if phase == "directory":
            deploy_directory(settings)
        elif phase == "servers":
            vault = vault or discover_vault(settings)
            deploy_servers(settings, vault)
        elif phase == "image":
            build_image(settings)
        elif phase == "cluster":
            vault = vault or discover_vault(settings)
            deploy_cluster(settings, discover_cluster_inputs(settings, vault))
    print("NOTE: Azure RStudio Cluster deployment completed successfully.")


def delete_all_images(settings: DeploySettings) -> None:
    rg = settings.project_resource_group
    for image in discovery.list_images(rg):
        print(f"NOTE: Deleting image: {image}")
        try:
            discovery.delete_image(rg, image)
        except CmdError:
            print(f"WARNING: Failed to delete {image} - skipping")


def destroy_directory(settings: DeploySettings) -> None:
    print("NOTE: Destroying directory layer (Key Vault, Mini-AD, network).")
    _destroy_stack(settings, "directory")


def destroy_all(settings: DeploySettings) -> None:
    # Order matters: the cluster mounts storage from servers, both use directory
    vault = discover_vault(settings)
    inputs = discover_cluster_inputs(settings, vault)

    print("NOTE: Destroying cluster layer (VMSS, Application Gateway).")
    _destroy_stack(settings, "cluster", inputs.as_vars(), secrets=[inputs.ubuntu_password])

    delete_all_images(settings)

    print("NOTE: Destroying server layer (NFS gateway, AD admin server, storage).")
    _destroy_stack(settings, "servers", {"vault_name": vault})

    destroy_directory(settings)
    print(
        "NOTE: Azure RStudio Cluster and Mini-AD environment has been successfully destroyed."
    )


def destroy_network(settings: DeploySettings) -> None:
    destroy_directory(settings)
