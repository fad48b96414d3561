from __future__ import annotations

from constructs import Construct

from cdktf import TerraformStack, TerraformVariable
from cdktf_cdktf_provider_azurerm.data_azurerm_virtual_network import (
    DataAzurermVirtualNetwork,
)
from cdktf_cdktf_provider_random.string_resource import StringResource

from iac_types import RStudioInfrastructureConfig
from modules.servers.nfs_gateway import provision_nfs_gateway
from modules.servers.windows_admin import provision_windows_admin
from modules.storage.storage import provision_nfs_storage
from stacks.azure_stack import (
    ADMIN_SECRET,
    UBUNTU_SECRET,
    configure_providers,
    lookup_key_vault,
    lookup_subnet,
    output_config,
    secret_password,
)


class ServersStack(TerraformStack):
    """Phase 2: NFS storage, the NFS gateway and the Windows AD admin host.

    Needs the Key Vault name discovered after phase 1 (``vault_name``).
    """

    def __init__(
        self, scope: Construct, id: str, config: RStudioInfrastructureConfig
    ) -> None:
        super().__init__(scope, id)
        configure_providers(self)

        vault_name = TerraformVariable(
            self,
            "vault_name",
            type="string",
            description="Key Vault created by the directory stack",
        )

        rg_name = config.project_resource_group
        vnet = DataAzurermVirtualNetwork(
            self, "vnet", name=config.vnet_config.name, resource_group_name=rg_name
        )
        subnet_vm = lookup_subnet(self, "subnetVm", config, "vm")
        kv = lookup_key_vault(self, config, vault_name.string_value)
        admin_password = secret_password(self, "adminSecret", kv, ADMIN_SECRET)
        ubuntu_password = secret_password(self, "ubuntuSecret", kv, UBUNTU_SECRET)

        dns_suffix = StringResource(
            self, "dnsSuffix", length=6, upper=False, special=False, numeric=True
        )

        storage = provision_nfs_storage(
            self,
            config.storage_config,
            rg_name,
            config.location,
            vnet.id,
            subnet_vm.id,
        )

        provision_nfs_gateway(
            scope=self,
            cfg=config,
            rg_name=rg_name,
            subnet_id=subnet_vm.id,
            key_vault_id=kv.id,
            vault_name=kv.name,
            storage_account_name=storage.name,
            admin_password=ubuntu_password,
            dns_suffix=dns_suffix.result,
        )

        provision_windows_admin(
            scope=self,
            cfg=config,
            rg_name=rg_name,
            subnet_id=subnet_vm.id,
            admin_password=admin_password,
            dns_suffix=dns_suffix.result,
        )

        output_config(self, config)
