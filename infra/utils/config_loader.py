"""
Config loader for tfvars -> typed config used by the CDKTF stacks.

Pure helpers on top of the shared tfvars reader; all three stacks build
their resources from the same RStudioInfrastructureConfig.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from rstudio_cluster.tfvars import load_tfvars, optional, required, to_int

from iac_types import (
    AppGatewayConfig,
    DomainConfig,
    DomainUser,
    KeyVaultConfig,
    MiniAdConfig,
    NfsStorageConfig,
    NSGConfig,
    NSGRule,
    RStudioInfrastructureConfig,
    ScaleSetConfig,
    ServersConfig,
    SubnetConfig,
    VNetConfig,
)

AZURE_DNS = "168.63.129.16"

DEFAULT_GROUPS: Dict[str, int] = {
    "mcloud-users": 10001,
    "india": 10002,
    "us": 10003,
    "linux-admins": 10004,
    "rstudio-admins": 10005,
}

DEFAULT_USERS: List[DomainUser] = [
    DomainUser("jsmith", "John", "Smith", 10001, ["mcloud-users", "us", "linux-admins"]),
    DomainUser("edavis", "Emily", "Davis", 10002, ["mcloud-users", "us"]),
    DomainUser("rpatel", "Raj", "Patel", 10003, ["mcloud-users", "india", "linux-admins"]),
    DomainUser("akumar", "Amit", "Kumar", 10004, ["mcloud-users", "india"]),
]


def _rule(
    name: str,
    priority: int,
    port: str,
    source: str = "*",
    protocol: str = "Tcp",
) -> NSGRule:
    return NSGRule(
        name=name,
        priority=priority,
        direction="Inbound",
        access="Allow",
        protocol=protocol,
        source=source,
        destination="*",
        source_port="*",
        destination_port=port,
    )


def _build_vnet_config(
    name: str,
    vnet_cidr: str,
    vm_cidr: str,
    mini_ad_cidr: str,
    app_gateway_cidr: str,
    mini_ad_ip: str,
) -> VNetConfig:
    subnets = {
        "vm": SubnetConfig(name="vm-subnet", address_prefix=vm_cidr, nsg_name=f"{name}-vm-nsg"),
        "mini_ad": SubnetConfig(
            name="mini-ad-subnet", address_prefix=mini_ad_cidr, nsg_name=f"{name}-ad-nsg"
        ),
        "app_gateway": SubnetConfig(
            name="app-gateway-subnet",
            address_prefix=app_gateway_cidr,
            nsg_name=f"{name}-agw-nsg",
        ),
    }
    nsgs = {
        "vm": NSGConfig(
            name=subnets["vm"].nsg_name,
            rules=[
                _rule("allow-ssh", 100, "22"),
                _rule("allow-rdp", 110, "3389"),
                _rule("allow-smb-vnet", 120, "445", source="VirtualNetwork"),
                _rule("allow-rstudio-vnet", 130, "8787", source="VirtualNetwork"),
            ],
        ),
        "mini_ad": NSGConfig(
            name=subnets["mini_ad"].nsg_name,
            rules=[_rule("allow-vnet-inbound", 100, "*", source="VirtualNetwork", protocol="*")],
        ),
        "app_gateway": NSGConfig(
            name=subnets["app_gateway"].nsg_name,
            rules=[
                _rule("allow-http", 100, "80"),
                _rule("allow-gateway-manager", 110, "65200-65535", source="GatewayManager"),
                _rule("allow-azure-lb", 120, "*", source="AzureLoadBalancer", protocol="*"),
            ],
        ),
    }
    return VNetConfig(
        name=name,
        address_space=[vnet_cidr],
        dns_servers=[mini_ad_ip, AZURE_DNS],
        subnets=subnets,
        network_security_groups=nsgs,
    )


def _build_domain_config(vars_map: Dict[str, str]) -> DomainConfig:
    fqdn = required(vars_map, "domain_fqdn")
    force_group = optional(vars_map, "force_group", "mcloud-users")
    if force_group not in DEFAULT_GROUPS:
        raise ValueError(f"force_group must be one of: {', '.join(DEFAULT_GROUPS)}")
    return DomainConfig(
        domain_fqdn=fqdn,
        netbios=required(vars_map, "netbios").upper(),
        realm=optional(vars_map, "realm", fqdn.upper()),
        force_group=force_group,
        groups=dict(DEFAULT_GROUPS),
        users=list(DEFAULT_USERS),
    )


def _build_scale_set_config(vars_map: Dict[str, str], prefix: str) -> ScaleSetConfig:
    cfg = ScaleSetConfig(
        name=f"{prefix}-vmss",
        vm_size=required(vars_map, "vmss_vm_size"),
        min_instances=to_int(required(vars_map, "vmss_min_instances")),
        default_instances=to_int(required(vars_map, "vmss_default_instances")),
        max_instances=to_int(required(vars_map, "vmss_max_instances")),
        scale_out_cpu_threshold=to_int(optional(vars_map, "scale_out_cpu_threshold", "60")),
        scale_in_cpu_threshold=to_int(optional(vars_map, "scale_in_cpu_threshold", "25")),
    )
    if not 1 <= cfg.min_instances <= cfg.default_instances <= cfg.max_instances:
        raise ValueError(
            "Scale set sizes must satisfy 1 <= min <= default <= max, got "
            f"{cfg.min_instances}/{cfg.default_instances}/{cfg.max_instances}"
        )
    if cfg.scale_in_cpu_threshold >= cfg.scale_out_cpu_threshold:
        raise ValueError("scale_in_cpu_threshold must be below scale_out_cpu_threshold")
    return cfg


def load_tfvars_config(
    *, repo_root: Path, tfvars_file: Optional[str] = None
) -> RStudioInfrastructureConfig:
    vars_map = load_tfvars(repo_root, tfvars_file)

    prefix = required(vars_map, "name_prefix")
    location = required(vars_map, "location")

    vnet_cfg = _build_vnet_config(
        name=f"{prefix}-vnet",
        vnet_cidr=required(vars_map, "vnet_cidr"),
        vm_cidr=required(vars_map, "subnet_vm_cidr"),
        mini_ad_cidr=required(vars_map, "subnet_mini_ad_cidr"),
        app_gateway_cidr=required(vars_map, "subnet_app_gateway_cidr"),
        mini_ad_ip=required(vars_map, "mini_ad_private_ip"),
    )

    return RStudioInfrastructureConfig(
        name_prefix=prefix,
        location=location,
        project_resource_group=required(vars_map, "project_resource_group"),
        cluster_resource_group=required(vars_map, "cluster_resource_group"),
        vnet_config=vnet_cfg,
        domain=_build_domain_config(vars_map),
        mini_ad=MiniAdConfig(
            vm_name="mini-ad-dc",
            vm_size=required(vars_map, "mini_ad_vm_size"),
            private_ip=required(vars_map, "mini_ad_private_ip"),
            admin_username="ubuntu",
        ),
        key_vault_config=KeyVaultConfig(
            name_prefix="ad-key-vault", sku=optional(vars_map, "kv_sku", "standard")
        ),
        storage_config=NfsStorageConfig(
            account_prefix="nfs",
            share_name="nfs",
            quota_gb=to_int(optional(vars_map, "nfs_share_quota_gb", "100")),
        ),
        servers=ServersConfig(
            nfs_gateway_name="nfs-gateway",
            nfs_gateway_vm_size=required(vars_map, "nfs_gateway_vm_size"),
            nfs_gateway_label_prefix="nfs-gateway-",
            windows_name="win-ad-admin",
            windows_vm_size=required(vars_map, "windows_vm_size"),
            windows_label_prefix="win-ad-",
        ),
        app_gateway=AppGatewayConfig(
            name=optional(vars_map, "app_gateway_name", "rstudio-app-gateway"),
            public_ip_name=optional(vars_map, "app_gateway_pip_name", "rstudio-app-gateway-pip"),
            dns_label_prefix="rstudio-",
            capacity=to_int(optional(vars_map, "app_gateway_capacity", "2")),
            backend_port=8787,
            probe_path="/",
        ),
        scale_set=_build_scale_set_config(vars_map, prefix),
    )
