"""
Deploy settings for the orchestration CLI.

Reads the same tfvars file the CDKTF app consumes so both sides agree on
resource group names and discovery prefixes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from .tfvars import load_tfvars, optional, required, resolve_tfvars_path, to_int


@dataclass(frozen=True)
class DeploySettings:
    project_resource_group: str
    cluster_resource_group: str
    location: str
    infra_dir: Path
    packer_dir: Path
    key_vault_prefix: str = "ad-key-vault"
    image_prefix: str = "rstudio_image"
    storage_prefix: str = "nfs"
    windows_label_prefix: str = "win-ad-"
    linux_label_prefix: str = "nfs-gateway-"
    app_gateway_name: str = "rstudio-app-gateway"
    app_gateway_pip_name: str = "rstudio-app-gateway-pip"
    ubuntu_secret_name: str = "ubuntu-credentials"
    check_interval: int = 30
    max_retries: int = 20
    tfvars_file: Optional[str] = None


def load_settings(
    repo_root: Optional[Path] = None,
    tfvars_file: Optional[str] = None,
    infra_dir: Optional[str] = None,
    packer_dir: Optional[str] = None,
) -> DeploySettings:
    """Load settings; paths are relative to ``repo_root`` (default: the cwd)."""
    repo_root = Path.cwd() if repo_root is None else Path(repo_root)
    vars_map = load_tfvars(repo_root, tfvars_file)
    defaults = DeploySettings(
        project_resource_group="",
        cluster_resource_group="",
        location="",
        infra_dir=Path(),
        packer_dir=Path(),
    )
    return DeploySettings(
        project_resource_group=required(vars_map, "project_resource_group"),
        cluster_resource_group=required(vars_map, "cluster_resource_group"),
        location=required(vars_map, "location"),
        infra_dir=(repo_root / (infra_dir or "infra")).resolve(),
        packer_dir=(repo_root / (packer_dir or "packer")).resolve(),
        app_gateway_name=optional(vars_map, "app_gateway_name", defaults.app_gateway_name),
        app_gateway_pip_name=optional(
            vars_map, "app_gateway_pip_name", defaults.app_gateway_pip_name
        ),
        check_interval=to_int(
            optional(vars_map, "check_interval_seconds", str(defaults.check_interval))
        ),
        max_retries=to_int(optional(vars_map, "max_retries", str(defaults.max_retries))),
        # absolute, so child processes in infra/ resolve the same file
        tfvars_file=(
            str(resolve_tfvars_path(repo_root, tfvars_file)) if tfvars_file else None
        ),
    )


def with_polling(
    settings: DeploySettings, interval: Optional[int], retries: Optional[int]
) -> DeploySettings:
    if interval is not None and interval < 0:
        raise ValueError("interval must be >= 0")
    if retries is not None and retries < 1:
        raise ValueError("retries must be >= 1")
    return replace(
        settings,
        check_interval=settings.check_interval if interval is None else interval,
        max_retries=settings.max_retries if retries is None else retries,
    )
