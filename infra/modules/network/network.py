"""
Network module.

Creates the project RG, the VNet (DNS pointed at the Mini-AD), the VM,
Mini-AD and Application Gateway subnets with their NSGs, and a NAT gateway
for outbound traffic.
"""

from __future__ import annotations

from typing import Dict, Tuple

from constructs import Construct

from cdktf import TerraformOutput
from cdktf_cdktf_provider_azurerm.resource_group import ResourceGroup
from cdktf_cdktf_provider_azurerm.virtual_network import VirtualNetwork
from cdktf_cdktf_provider_azurerm.subnet import Subnet
from cdktf_cdktf_provider_azurerm.network_security_group import NetworkSecurityGroup
from cdktf_cdktf_provider_azurerm.network_security_rule import NetworkSecurityRule
from cdktf_cdktf_provider_azurerm.public_ip import PublicIp
from cdktf_cdktf_provider_azurerm.nat_gateway import NatGateway
from cdktf_cdktf_provider_azurerm.nat_gateway_public_ip_association import (
    NatGatewayPublicIpAssociation,
)
from cdktf_cdktf_provider_azurerm.subnet_nat_gateway_association import (
    SubnetNatGatewayAssociation,
)
from cdktf_cdktf_provider_azurerm.subnet_network_security_group_association import (
    SubnetNetworkSecurityGroupAssociation,
)

from iac_types import NSGConfig, RStudioInfrastructureConfig

# Subnet key -> construct id suffix
_SUBNET_IDS = {"vm": "Vm", "mini_ad": "MiniAd", "app_gateway": "AppGateway"}


def _provision_nsg(
    scope: Construct, key: str, nsg_cfg: NSGConfig, rg: ResourceGroup, location: str
) -> NetworkSecurityGroup:
    suffix = _SUBNET_IDS[key]
    nsg = NetworkSecurityGroup(
        scope,
        f"nsg{suffix}",
        name=nsg_cfg.name,
        location=location,
        resource_group_name=rg.name,
    )
    for rule in nsg_cfg.rules:
        NetworkSecurityRule(
            scope,
            f"nsg{suffix}-{rule.name}",
            name=rule.name,
            priority=rule.priority,
            direction=rule.direction,
            access=rule.access,
            protocol=rule.protocol,
            source_port_range=rule.source_port,
            destination_port_range=rule.destination_port,
            source_address_prefix=rule.source,
            destination_address_prefix=rule.destination,
            resource_group_name=rg.name,
            network_security_group_name=nsg.name,
        )
    return nsg


def provision_network(
    *, scope: Construct, cfg: RStudioInfrastructureConfig
) -> Tuple[ResourceGroup, VirtualNetwork, Dict[str, Subnet]]:
    """Provision networking and return (rg, vnet, subnets by key)."""
    rg = ResourceGroup(
        scope, "rg", name=cfg.project_resource_group, location=cfg.location
    )

    vnet = VirtualNetwork(
        scope,
        "vnet",
        name=cfg.vnet_config.name,
        location=cfg.location,
        resource_group_name=rg.name,
        address_space=cfg.vnet_config.address_space,
        dns_servers=cfg.vnet_config.dns_servers,
    )

    subnets: Dict[str, Subnet] = {}
    for key, subnet_cfg in cfg.vnet_config.subnets.items():
        suffix = _SUBNET_IDS[key]
        subnet = Subnet(
            scope,
            f"subnet{suffix}",
            name=subnet_cfg.name,
            resource_group_name=rg.name,
            virtual_network_name=vnet.name,
            address_prefixes=[subnet_cfg.address_prefix],
            service_endpoints=["Microsoft.Storage"] if key == "vm" else None,
            depends_on=[vnet],
        )
        nsg = _provision_nsg(
            scope, key, cfg.vnet_config.network_security_groups[key], rg, cfg.location
        )
        SubnetNetworkSecurityGroupAssociation(
            scope,
            f"subnet{suffix}NsgAssoc",
            subnet_id=subnet.id,
            network_security_group_id=nsg.id,
        )
        subnets[key] = subnet

    nat_pip = PublicIp(
        scope,
        "natPip",
        name=f"{cfg.name_prefix}-nat-pip",
        location=cfg.location,
        resource_group_name=rg.name,
        allocation_method="Static",
        sku="Standard",
    )

    nat = NatGateway(
        scope,
        "nat",
        name=f"{cfg.name_prefix}-nat",
        location=cfg.location,
        resource_group_name=rg.name,
        sku_name="Standard",
    )

    NatGatewayPublicIpAssociation(
        scope, "natPipAssoc", nat_gateway_id=nat.id, public_ip_address_id=nat_pip.id
    )
    # The app gateway subnet must keep its own outbound path
    SubnetNatGatewayAssociation(
        scope, "natAssocVm", subnet_id=subnets["vm"].id, nat_gateway_id=nat.id
    )
    SubnetNatGatewayAssociation(
        scope, "natAssocMiniAd", subnet_id=subnets["mini_ad"].id, nat_gateway_id=nat.id
    )

    TerraformOutput(scope, "resource_group", value=rg.name)
    TerraformOutput(scope, "virtual_network", value=vnet.name)

    return rg, vnet, subnets
