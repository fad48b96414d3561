"""
Storage module for Azure Files over NFS.

Provisions a premium FileStorage account, an NFS 4.1 share, and private
connectivity (private endpoint + privatelink DNS zone linked to the VNet).
"""

from constructs import Construct

from cdktf import TerraformOutput
from cdktf_cdktf_provider_azurerm.storage_account import StorageAccount
from cdktf_cdktf_provider_azurerm.storage_share import StorageShare
from cdktf_cdktf_provider_azurerm.private_endpoint import PrivateEndpoint
from cdktf_cdktf_provider_azurerm.private_dns_zone import PrivateDnsZone
from cdktf_cdktf_provider_azurerm.private_dns_zone_virtual_network_link import (
    PrivateDnsZoneVirtualNetworkLink,
)
from cdktf_cdktf_provider_random.string_resource import StringResource

from iac_types import NfsStorageConfig


def provision_nfs_storage(
    scope: Construct,
    config: NfsStorageConfig,
    rg_name: str,
    location: str,
    vnet_id: str,
    subnet_vm_id: str,
) -> StorageAccount:
    """Provision the NFS share and return its storage account."""
    suffix = StringResource(
        scope, "storageSuffix", length=12, upper=False, special=False
    )

    # NFS shares require premium FileStorage and no secure-transfer enforcement
    storage_account = StorageAccount(
        scope,
        "storageAccount",
        name=f"{config.account_prefix}{suffix.result}",
        resource_group_name=rg_name,
        location=location,
        account_kind="FileStorage",
        account_tier="Premium",
        account_replication_type="LRS",
        https_traffic_only_enabled=False,
        min_tls_version="TLS1_2",
        public_network_access_enabled=True,
        allow_nested_items_to_be_public=False,
        network_rules={
            "default_action": "Deny",
            "bypass": ["AzureServices"],
            "virtual_network_subnet_ids": [subnet_vm_id],
        },
        tags={"Environment": "RStudio"},
    )

    StorageShare(
        scope,
        "nfsShare",
        name=config.share_name,
        storage_account_id=storage_account.id,
        enabled_protocol="NFS",
        quota=config.quota_gb,
    )

    pdns_zone = PrivateDnsZone(
        scope,
        "pdnsZoneFile",
        name="privatelink.file.core.windows.net",
        resource_group_name=rg_name,
    )

    PrivateDnsZoneVirtualNetworkLink(
        scope,
        "pdnsVnetLinkFile",
        name="nfs-file-link",
        resource_group_name=rg_name,
        private_dns_zone_name=pdns_zone.name,
        virtual_network_id=vnet_id,
        registration_enabled=False,
    )

    PrivateEndpoint(
        scope,
        "privateEndpointFile",
        name="nfs-file-pe",
        resource_group_name=rg_name,
        location=location,
        subnet_id=subnet_vm_id,
        private_service_connection={
            "name": "file-connection",
            "private_connection_resource_id": storage_account.id,
            "is_manual_connection": False,
            "subresource_names": ["file"],
        },
        private_dns_zone_group={
            "name": "file-dns-group",
            "private_dns_zone_ids": [pdns_zone.id],
        },
    )

    TerraformOutput(scope, "nfs_storage_account", value=storage_account.name)
    return storage_account
