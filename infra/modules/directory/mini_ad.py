"""
Mini-AD module.

A single Ubuntu VM promoted to a Samba 4 domain controller at first boot.
It owns the static IP the VNet hands out as its DNS server.
"""

from __future__ import annotations

from typing import List

from constructs import Construct

from cdktf import Fn, TerraformOutput
from cdktf_cdktf_provider_azurerm.linux_virtual_machine import LinuxVirtualMachine
from cdktf_cdktf_provider_azurerm.network_interface import (
    NetworkInterface,
    NetworkInterfaceIpConfiguration,
)
from cdktf_cdktf_provider_azurerm.subnet import Subnet

from iac_types import RStudioInfrastructureConfig
from utils.templates import checked_template

UBUNTU_IMAGE = {
    "publisher": "canonical",
    "offer": "ubuntu-24_04-lts",
    "sku": "server",
    "version": "latest",
}


def provision_mini_ad(
    *,
    scope: Construct,
    cfg: RStudioInfrastructureConfig,
    rg_name: str,
    subnet: Subnet,
    admin_password: str,
    vm_password: str,
    user_passwords: List[str],
) -> LinuxVirtualMachine:
    """Provision the domain controller; passwords may be Terraform tokens."""
    domain = cfg.domain
    nic = NetworkInterface(
        scope,
        "miniAdNic",
        name=f"{cfg.mini_ad.vm_name}-nic",
        location=cfg.location,
        resource_group_name=rg_name,
        ip_configuration=[
            NetworkInterfaceIpConfiguration(
                name="internal",
                subnet_id=subnet.id,
                private_ip_address_allocation="Static",
                private_ip_address=cfg.mini_ad.private_ip,
            )
        ],
    )

    users = [
        {
            "username": u.username,
            "given_name": u.given_name,
            "surname": u.surname,
            "uid": u.uid_number,
            "groups": u.groups,
            "password": password,
        }
        for u, password in zip(domain.users, user_passwords)
    ]
    groups = [{"name": name, "gid": gid} for name, gid in domain.groups.items()]
    template_vars = {
        "realm": domain.realm,
        "netbios": domain.netbios,
        "domain_fqdn": domain.domain_fqdn,
        "force_group": domain.force_group,
        "admin_password": admin_password,
        "groups_json": Fn.jsonencode(groups),
        "users_json": Fn.jsonencode(users),
    }
    path = checked_template("mini_ad.sh.tpl", template_vars)

    vm = LinuxVirtualMachine(
        scope,
        "miniAd",
        name=cfg.mini_ad.vm_name,
        computer_name="mini-ad",
        location=cfg.location,
        resource_group_name=rg_name,
        size=cfg.mini_ad.vm_size,
        admin_username=cfg.mini_ad.admin_username,
        admin_password=vm_password,
        disable_password_authentication=False,
        network_interface_ids=[nic.id],
        os_disk={"caching": "ReadWrite", "storage_account_type": "Standard_LRS"},
        source_image_reference=UBUNTU_IMAGE,
        custom_data=Fn.base64encode(Fn.templatefile(path, template_vars)),
    )

    TerraformOutput(scope, "mini_ad_private_ip", value=cfg.mini_ad.private_ip)
    return vm
