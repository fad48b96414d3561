"""
NFS gateway module.

Ubuntu VM that mounts the Azure Files NFS share, joins the Mini-AD with
Samba membership and re-exports the share over SMB.
"""

from __future__ import annotations

from constructs import Construct

from cdktf import Fn, TerraformOutput
from cdktf_cdktf_provider_azurerm.linux_virtual_machine import LinuxVirtualMachine
from cdktf_cdktf_provider_azurerm.network_interface import (
    NetworkInterface,
    NetworkInterfaceIpConfiguration,
)
from cdktf_cdktf_provider_azurerm.public_ip import PublicIp

from iac_types import RStudioInfrastructureConfig
from modules.directory.mini_ad import UBUNTU_IMAGE
from modules.keyvault.keyvault import grant_secrets_reader
from utils.templates import checked_template


def provision_nfs_gateway(
    *,
    scope: Construct,
    cfg: RStudioInfrastructureConfig,
    rg_name: str,
    subnet_id: str,
    key_vault_id: str,
    vault_name: str,
    storage_account_name: str,
    admin_password: str,
    dns_suffix: str,
) -> LinuxVirtualMachine:
    servers = cfg.servers
    domain = cfg.domain
    pip = PublicIp(
        scope,
        "nfsGatewayPip",
        name=f"{servers.nfs_gateway_name}-pip",
        location=cfg.location,
        resource_group_name=rg_name,
        allocation_method="Static",
        sku="Standard",
        domain_name_label=f"{servers.nfs_gateway_label_prefix}{dns_suffix}",
    )
    nic = NetworkInterface(
        scope,
        "nfsGatewayNic",
        name=f"{servers.nfs_gateway_name}-nic",
        location=cfg.location,
        resource_group_name=rg_name,
        ip_configuration=[
            NetworkInterfaceIpConfiguration(
                name="internal",
                subnet_id=subnet_id,
                private_ip_address_allocation="Dynamic",
                public_ip_address_id=pip.id,
            )
        ],
    )

    template_vars = {
        "storage_account": storage_account_name,
        "share_name": cfg.storage_config.share_name,
        "vault_name": vault_name,
        "netbios": domain.netbios,
        "realm": domain.realm,
        "domain_fqdn": domain.domain_fqdn,
        "force_group": domain.force_group,
        "domain_users": " ".join(u.username for u in domain.users),
    }
    path = checked_template("nfs_gateway.sh.tpl", template_vars)

    vm = LinuxVirtualMachine(
        scope,
        "nfsGateway",
        name=servers.nfs_gateway_name,
        location=cfg.location,
        resource_group_name=rg_name,
        size=servers.nfs_gateway_vm_size,
        admin_username="ubuntu",
        admin_password=admin_password,
        disable_password_authentication=False,
        network_interface_ids=[nic.id],
        os_disk={"caching": "ReadWrite", "storage_account_type": "Standard_LRS"},
        source_image_reference=UBUNTU_IMAGE,
        identity={"type": "SystemAssigned"},
        custom_data=Fn.base64encode(Fn.templatefile(path, template_vars)),
    )
    grant_secrets_reader(
        scope,
        "nfsGatewayKvReader",
        key_vault_id=key_vault_id,
        principal_id=vm.identity.principal_id,
    )

    TerraformOutput(scope, "nfs_gateway_fqdn", value=pip.fqdn)
    return vm
