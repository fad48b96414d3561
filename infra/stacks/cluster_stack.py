from __future__ import annotations

from constructs import Construct

from cdktf import TerraformStack, TerraformVariable
from cdktf_cdktf_provider_azurerm.data_azurerm_image import DataAzurermImage
from cdktf_cdktf_provider_azurerm.resource_group import ResourceGroup
from cdktf_cdktf_provider_random.string_resource import StringResource

from iac_types import RStudioInfrastructureConfig
from modules.cluster.app_gateway import backend_pool_id, provision_app_gateway
from modules.cluster.vmss import provision_scale_set
from stacks.azure_stack import (
    configure_providers,
    lookup_key_vault,
    lookup_subnet,
    output_config,
)


class ClusterStack(TerraformStack):
    """Phase 4: Application Gateway and the autoscaled RStudio scale set.

    Every variable is discovered by the deploy CLI after the earlier phases.
    """

    def __init__(
        self, scope: Construct, id: str, config: RStudioInfrastructureConfig
    ) -> None:
        super().__init__(scope, id)
        configure_providers(self)

        vault_name = TerraformVariable(
            self, "vault_name", type="string", description="Key Vault from phase 1"
        )
        storage_account = TerraformVariable(
            self,
            "nfs_storage_account",
            type="string",
            description="Azure Files NFS storage account from phase 2",
        )
        ubuntu_password = TerraformVariable(
            self,
            "ubuntu_password",
            type="string",
            sensitive=True,
            description="Local ubuntu password for scale set instances",
        )
        image_name = TerraformVariable(
            self,
            "rstudio_image_name",
            type="string",
            description="Newest Packer image (rstudio_image_<timestamp>)",
        )

        rg = ResourceGroup(
            self, "rg", name=config.cluster_resource_group, location=config.location
        )
        image = DataAzurermImage(
            self,
            "rstudioImage",
            name=image_name.string_value,
            resource_group_name=config.project_resource_group,
        )
        subnet_vm = lookup_subnet(self, "subnetVm", config, "vm")
        subnet_agw = lookup_subnet(self, "subnetAppGateway", config, "app_gateway")
        kv = lookup_key_vault(self, config, vault_name.string_value)

        dns_suffix = StringResource(
            self, "dnsSuffix", length=6, upper=False, special=False, numeric=True
        )

        gateway, _pip = provision_app_gateway(
            scope=self,
            config=config.app_gateway,
            rg_name=rg.name,
            location=config.location,
            subnet_id=subnet_agw.id,
            dns_suffix=dns_suffix.result,
        )

        provision_scale_set(
            scope=self,
            cfg=config,
            rg_name=rg.name,
            subnet_id=subnet_vm.id,
            image_id=image.id,
            backend_pool_id=backend_pool_id(gateway),
            key_vault_id=kv.id,
            vault_name=vault_name.string_value,
            storage_account_name=storage_account.string_value,
            ubuntu_password=ubuntu_password.string_value,
        )

        output_config(self, config)
