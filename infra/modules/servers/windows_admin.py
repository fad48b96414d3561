"""
Windows AD admin module.

Windows Server VM joined to the Mini-AD through the JsonADDomainExtension,
used over RDP for AD management tools.
"""

from __future__ import annotations

from constructs import Construct

from cdktf import Fn, TerraformOutput
from cdktf_cdktf_provider_azurerm.network_interface import (
    NetworkInterface,
    NetworkInterfaceIpConfiguration,
)
from cdktf_cdktf_provider_azurerm.public_ip import PublicIp
from cdktf_cdktf_provider_azurerm.virtual_machine_extension import (
    VirtualMachineExtension,
)
from cdktf_cdktf_provider_azurerm.windows_virtual_machine import WindowsVirtualMachine

from iac_types import RStudioInfrastructureConfig


def provision_windows_admin(
    *,
    scope: Construct,
    cfg: RStudioInfrastructureConfig,
    rg_name: str,
    subnet_id: str,
    admin_password: str,
    dns_suffix: str,
) -> WindowsVirtualMachine:
    servers = cfg.servers
    domain = cfg.domain
    pip = PublicIp(
        scope,
        "windowsPip",
        name=f"{servers.windows_name}-pip",
        location=cfg.location,
        resource_group_name=rg_name,
        allocation_method="Static",
        sku="Standard",
        domain_name_label=f"{servers.windows_label_prefix}{dns_suffix}",
    )
    nic = NetworkInterface(
        scope,
        "windowsNic",
        name=f"{servers.windows_name}-nic",
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

    vm = WindowsVirtualMachine(
        scope,
        "windowsAdmin",
        name=servers.windows_name,
        computer_name="win-ad-admin",
        location=cfg.location,
        resource_group_name=rg_name,
        size=servers.windows_vm_size,
        admin_username="sysadmin",
        admin_password=admin_password,
        network_interface_ids=[nic.id],
        os_disk={"caching": "ReadWrite", "storage_account_type": "Standard_LRS"},
        source_image_reference={
            "publisher": "MicrosoftWindowsServer",
            "offer": "WindowsServer",
            "sku": "2022-datacenter-azure-edition",
            "version": "latest",
        },
    )

    VirtualMachineExtension(
        scope,
        "windowsDomainJoin",
        name="domain-join",
        virtual_machine_id=vm.id,
        publisher="Microsoft.Compute",
        type="JsonADDomainExtension",
        type_handler_version="1.3",
        settings=Fn.jsonencode(
            {
                "Name": domain.domain_fqdn,
                "User": f"{domain.netbios}\\Admin",
                "Restart": "true",
                # join domain + create computer account
                "Options": "3",
            }
        ),
        protected_settings=Fn.jsonencode({"Password": admin_password}),
    )

    TerraformOutput(scope, "windows_fqdn", value=pip.fqdn)
    return vm
