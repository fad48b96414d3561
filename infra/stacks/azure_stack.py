"""
Shared stack helpers.

Provider wiring, lookups of resources owned by earlier phases, and the
config snapshot surfaced as an output of every stack.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from constructs import Construct

from cdktf import Fn, TerraformOutput, Token
from cdktf_cdktf_provider_azurerm.data_azurerm_key_vault import DataAzurermKeyVault
from cdktf_cdktf_provider_azurerm.data_azurerm_key_vault_secret import (
    DataAzurermKeyVaultSecret,
)
from cdktf_cdktf_provider_azurerm.data_azurerm_subnet import DataAzurermSubnet
from cdktf_cdktf_provider_azurerm.provider import AzurermProvider
from cdktf_cdktf_provider_random.provider import RandomProvider

from iac_types import RStudioInfrastructureConfig

ADMIN_SECRET = "admin-ad-credentials"
UBUNTU_SECRET = "ubuntu-credentials"


def synth_config_json(config: RStudioInfrastructureConfig) -> Dict[str, Any]:
    """Convert dataclasses to plain dict for diagnostics or outputs."""
    return asdict(config)


def configure_providers(scope: Construct) -> None:
    AzurermProvider(scope, "azurerm", features=[{}])
    RandomProvider(scope, "random")


def output_config(scope: Construct, config: RStudioInfrastructureConfig) -> None:
    TerraformOutput(scope, "config_json", value=Fn.jsonencode(synth_config_json(config)))


def lookup_subnet(
    scope: Construct, id: str, config: RStudioInfrastructureConfig, key: str
) -> DataAzurermSubnet:
    return DataAzurermSubnet(
        scope,
        id,
        name=config.vnet_config.subnets[key].name,
        virtual_network_name=config.vnet_config.name,
        resource_group_name=config.project_resource_group,
    )


def lookup_key_vault(
    scope: Construct, config: RStudioInfrastructureConfig, vault_name: str
) -> DataAzurermKeyVault:
    return DataAzurermKeyVault(
        scope,
        "keyVault",
        name=vault_name,
        resource_group_name=config.project_resource_group,
    )


def secret_password(
    scope: Construct, id: str, key_vault: DataAzurermKeyVault, secret_name: str
) -> str:
    """Password field of a JSON credentials secret, as a Terraform token."""
    secret = DataAzurermKeyVaultSecret(
        scope, id, name=secret_name, key_vault_id=key_vault.id
    )
    return Token.as_string(Fn.lookup(Fn.jsondecode(secret.value), "password"))
