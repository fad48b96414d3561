"""
Key Vault module.

Creates Azure Key Vault with RBAC enabled, grants the deploying principal
secret management, and stores the generated credentials as JSON secrets.
"""

from __future__ import annotations

import os
from typing import Dict, List, Tuple

from constructs import Construct

from cdktf import Fn
from cdktf_cdktf_provider_azurerm.data_azurerm_client_config import (
    DataAzurermClientConfig,
)
from cdktf_cdktf_provider_azurerm.key_vault import KeyVault
from cdktf_cdktf_provider_azurerm.key_vault_secret import KeyVaultSecret
from cdktf_cdktf_provider_azurerm.role_assignment import RoleAssignment
from cdktf_cdktf_provider_random.password import Password
from cdktf_cdktf_provider_random.string_resource import StringResource

from iac_types import RStudioInfrastructureConfig

# Characters that survive shell double quotes and samba-tool arguments
PASSWORD_SPECIALS = "-_!%"


def generate_password(scope: Construct, id: str) -> Password:
    return Password(
        scope,
        id,
        length=24,
        special=True,
        override_special=PASSWORD_SPECIALS,
        min_lower=1,
        min_upper=1,
        min_numeric=1,
        min_special=1,
    )


def provision_key_vault(
    *, scope: Construct, cfg: RStudioInfrastructureConfig, rg_name: str
) -> Tuple[KeyVault, RoleAssignment]:
    """Provision Key Vault and return (vault, officer role assignment)."""
    tenant_id = os.getenv("ARM_TENANT_ID")
    if not tenant_id:
        raise ValueError("ARM_TENANT_ID must be set for Key Vault tenant binding")
    client = DataAzurermClientConfig(scope, "current")
    suffix = StringResource(scope, "kvSuffix", length=8, upper=False, special=False)
    kv = KeyVault(
        scope,
        "keyVault",
        name=f"{cfg.key_vault_config.name_prefix}-{suffix.result}",
        location=cfg.location,
        resource_group_name=rg_name,
        tenant_id=tenant_id,
        sku_name=cfg.key_vault_config.sku,
        soft_delete_retention_days=7,
        purge_protection_enabled=False,
        rbac_authorization_enabled=True,
        public_network_access_enabled=True,
    )
    officer = RoleAssignment(
        scope,
        "kvSecretsOfficer",
        scope=kv.id,
        role_definition_name="Key Vault Secrets Officer",
        principal_id=client.object_id,
    )
    return kv, officer


def store_credentials(
    *,
    scope: Construct,
    kv: KeyVault,
    officer: RoleAssignment,
    credentials: Dict[str, Tuple[str, str]],
) -> List[KeyVaultSecret]:
    """Store ``{secret-name: (username, password)}`` as JSON secrets."""
    secrets: List[KeyVaultSecret] = []
    for name, (username, password) in credentials.items():
        secrets.append(
            KeyVaultSecret(
                scope,
                f"secret-{name}",
                name=name,
                value=Fn.jsonencode({"username": username, "password": password}),
                key_vault_id=kv.id,
                content_type="application/json",
                # RBAC propagation must finish before the data plane accepts writes
                depends_on=[officer],
            )
        )
    return secrets


def grant_secrets_reader(
    scope: Construct, id: str, *, key_vault_id: str, principal_id: str
) -> RoleAssignment:
    return RoleAssignment(
        scope,
        id,
        scope=key_vault_id,
        role_definition_name="Key Vault Secrets User",
        principal_id=principal_id,
    )
