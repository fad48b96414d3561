"""
Post-deploy validation.

Polls Application Gateway backend health until at least one RStudio server
reports Healthy, then prints the Quick Start endpoints.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from . import discovery
from .settings import DeploySettings
from .utils import CmdError

LABEL_WIDTH = 28
BANNER = "=" * 76


class ValidationTimeout(CmdError):
    pass


@dataclass(frozen=True)
class QuickStart:
    resource_group: str
    key_vault: Optional[str]
    windows_host: Optional[str]
    nfs_gateway_host: Optional[str]
    rstudio_dns: Optional[str]

    @property
    def rstudio_url(self) -> str:
        return f"http://{self.rstudio_dns or ''}"


def wait_for_healthy_backend(
    settings: DeploySettings, sleep: Callable[[float], None] = time.sleep
) -> List[str]:
    print("NOTE: Waiting for at least one healthy backend RStudio server...")
    retries = settings.max_retries
    for attempt in range(1, retries + 1):
        healthy = discovery.healthy_backends(
            settings.cluster_resource_group, settings.app_gateway_name
        )
        if healthy:
            print("NOTE: At least one healthy backend RStudio server found!")
            return healthy
        print(f"NOTE: Retry {attempt}/{retries}: No healthy servers yet. Retrying...")
        if attempt == retries:
            break
        sleep(settings.check_interval)
    raise ValidationTimeout("Timeout reached. No healthy backend servers found.")


def collect_quick_start(settings: DeploySettings) -> QuickStart:
    servers_rg = settings.project_resource_group
    return QuickStart(
        resource_group=settings.cluster_resource_group,
        key_vault=discovery.find_key_vault(servers_rg, settings.key_vault_prefix),
        windows_host=discovery.public_fqdn_by_label_prefix(
            servers_rg, settings.windows_label_prefix
        ),
        nfs_gateway_host=discovery.public_fqdn_by_label_prefix(
            servers_rg, settings.linux_label_prefix
        ),
        rstudio_dns=discovery.public_ip_fqdn(
            settings.cluster_resource_group, settings.app_gateway_pip_name
        ),
    )


def _row(label: str, value: Optional[str]) -> str:
    return f"{'NOTE: ' + label + ':':<{LABEL_WIDTH}} {value or ''}".rstrip()


def format_quick_start(qs: QuickStart) -> str:
    lines = [
        "",
        BANNER,
        "RStudio VMSS Quick Start - Validation Output (Azure)",
        BANNER,
        "",
        _row("Resource Group", qs.resource_group),
        _row("Key Vault", qs.key_vault),
        "",
        _row("Windows RDP Host", qs.windows_host),
        _row("NFS Gateway Host", qs.nfs_gateway_host),
        "",
        _row("RStudio URL", qs.rstudio_url),
        "",
    ]
    return "\n".join(lines)


def validate(
    settings: DeploySettings, sleep: Callable[[float], None] = time.sleep
) -> QuickStart:
    wait_for_healthy_backend(settings, sleep=sleep)
    qs = collect_quick_start(settings)
    print(format_quick_start(qs))
    return qs
