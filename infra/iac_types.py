from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class SubnetConfig:
    name: str
    address_prefix: str
    nsg_name: str


@dataclass(frozen=True)
class NSGRule:
    name: str
    priority: int
    direction: str  # Inbound or Outbound
    access: str  # Allow or Deny
    protocol: str  # Tcp/Udp/*
    source: str
    destination: str
    source_port: str
    destination_port: str


@dataclass(frozen=True)
class NSGConfig:
    name: str
    rules: List[NSGRule]


@dataclass(frozen=True)
class VNetConfig:
    name: str
    address_space: List[str]
    dns_servers: List[str]
    subnets: Dict[str, SubnetConfig]
    network_security_groups: Dict[str, NSGConfig]


@dataclass(frozen=True)
class DomainUser:
    username: str
    given_name: str
    surname: str
    uid_number: int
    groups: List[str]


@dataclass(frozen=True)
class DomainConfig:
    domain_fqdn: str  # e.g. mcloud.mikecloud.com
    netbios: str  # e.g. MCLOUD
    realm: str  # upper-case FQDN
    force_group: str  # primary group for cluster users
    groups: Dict[str, int]  # group name -> gidNumber
    users: List[DomainUser]


@dataclass(frozen=True)
class MiniAdConfig:
    vm_name: str
    vm_size: str
    private_ip: str
    admin_username: str


@dataclass(frozen=True)
class KeyVaultConfig:
    name_prefix: str  # random suffix appended at deploy time
    sku: str


@dataclass(frozen=True)
class NfsStorageConfig:
    account_prefix: str
    share_name: str
    quota_gb: int


@dataclass(frozen=True)
class ServersConfig:
    nfs_gateway_name: str
    nfs_gateway_vm_size: str
    nfs_gateway_label_prefix: str
    windows_name: str
    windows_vm_size: str
    windows_label_prefix: str


@dataclass(frozen=True)
class AppGatewayConfig:
    name: str
    public_ip_name: str
    dns_label_prefix: str
    capacity: int
    backend_port: int
    probe_path: str


@dataclass(frozen=True)
class ScaleSetConfig:
    name: str
    vm_size: str
    min_instances: int
    default_instances: int
    max_instances: int
    scale_out_cpu_threshold: int
    scale_in_cpu_threshold: int


@dataclass(frozen=True)
class RStudioInfrastructureConfig:
    name_prefix: str
    location: str
    project_resource_group: str
    cluster_resource_group: str
    vnet_config: VNetConfig
    domain: DomainConfig
    mini_ad: MiniAdConfig
    key_vault_config: KeyVaultConfig
    storage_config: NfsStorageConfig
    servers: ServersConfig
    app_gateway: AppGatewayConfig
    scale_set: ScaleSetConfig
