from __future__ import annotations

from constructs import Construct

from cdktf import TerraformOutput, TerraformStack

from iac_types import RStudioInfrastructureConfig
from modules.directory.mini_ad import provision_mini_ad
from modules.keyvault.keyvault import (
    generate_password,
    provision_key_vault,
    store_credentials,
)
from modules.network.network import provision_network
from stacks.azure_stack import (
    ADMIN_SECRET,
    UBUNTU_SECRET,
    configure_providers,
    output_config,
)


class DirectoryStack(TerraformStack):
    """Phase 1: network, Key Vault with credentials, and the Mini-AD."""

    def __init__(
        self, scope: Construct, id: str, config: RStudioInfrastructureConfig
    ) -> None:
        super().__init__(scope, id)
        configure_providers(self)

        rg, _vnet, subnets = provision_network(scope=self, cfg=config)

        kv, officer = provision_key_vault(scope=self, cfg=config, rg_name=rg.name)
        TerraformOutput(self, "key_vault_name", value=kv.name)

        admin_pw = generate_password(self, "adminPassword")
        ubuntu_pw = generate_password(self, "ubuntuPassword")
        user_pws = [
            generate_password(self, f"{u.username}Password") for u in config.domain.users
        ]

        credentials = {
            ADMIN_SECRET: (f"{config.domain.netbios}\\Admin", admin_pw.result),
            UBUNTU_SECRET: ("ubuntu", ubuntu_pw.result),
        }
        for user, pw in zip(config.domain.users, user_pws):
            credentials[f"{user.username}-ad-credentials"] = (user.username, pw.result)
        store_credentials(scope=self, kv=kv, officer=officer, credentials=credentials)

        provision_mini_ad(
            scope=self,
            cfg=config,
            rg_name=rg.name,
            subnet=subnets["mini_ad"],
            admin_password=admin_pw.result,
            vm_password=ubuntu_pw.result,
            user_passwords=[pw.result for pw in user_pws],
        )

        output_config(self, config)
