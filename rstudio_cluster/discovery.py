"""
Resource discovery through ``az`` queries.

Names that carry a random suffix (key vault, storage account) or a build
timestamp (images) are looked up by prefix between phases.
"""

from __future__ import annotations

import json
from typing import Dict, List, Optional, TypeVar

from .utils import CmdError, az, az_tsv

T = TypeVar("T")


class DiscoveryError(CmdError):
    pass


def require(value: Optional[T], what: str) -> T:
    if value is None:
        raise DiscoveryError(what)
    return value


def find_key_vault(resource_group: str, prefix: str) -> Optional[str]:
    return az_tsv(
        [
            "keyvault",
            "list",
            "--resource-group",
            resource_group,
            "--query",
            f"[?starts_with(name, '{prefix}')].name | [0]",
        ]
    )


def latest_image(resource_group: str, prefix: str) -> Optional[str]:
    """Newest image by name; packer names carry a sortable timestamp."""
    return az_tsv(
        [
            "image",
            "list",
            "--resource-group",
            resource_group,
            "--query",
            f"[?starts_with(name, '{prefix}')]|sort_by(@, &name)[-1].name",
        ]
    )


def list_images(resource_group: str) -> List[str]:
    out = az_tsv(["image", "list", "--resource-group", resource_group, "--query", "[].name"])
    if not out:
        return []
    return [line.strip() for line in out.splitlines() if line.strip()]


def delete_image(resource_group: str, name: str) -> None:
    az(["image", "delete", "--name", name, "--resource-group", resource_group])


def find_storage_account(resource_group: str, prefix: str) -> Optional[str]:
    return az_tsv(
        [
            "storage",
            "account",
            "list",
            "--resource-group",
            resource_group,
            "--query",
            f"[?starts_with(name, '{prefix}')].name | [0]",
        ]
    )


def get_secret_json(vault_name: str, secret_name: str) -> Dict[str, str]:
    # Secret bodies are never echoed; they hold credentials
    raw = az_tsv(
        [
            "keyvault",
            "secret",
            "show",
            "--name",
            secret_name,
            "--vault-name",
            vault_name,
            "--query",
            "value",
        ],
        echo=False,
    )
    if raw is None:
        raise DiscoveryError(f"Secret '{secret_name}' in {vault_name} is empty")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as ex:
        raise DiscoveryError(f"Secret '{secret_name}' is not valid JSON") from ex
    if not isinstance(data, dict):
        raise DiscoveryError(f"Secret '{secret_name}' is not a JSON object")
    return data


def get_secret_field(vault_name: str, secret_name: str, field: str) -> str:
    value = get_secret_json(vault_name, secret_name).get(field)
    if not value:
        raise DiscoveryError(f"Secret '{secret_name}' has no '{field}' field")
    return str(value)


def public_fqdn_by_label_prefix(resource_group: str, prefix: str) -> Optional[str]:
    return az_tsv(
        [
            "network",
            "public-ip",
            "list",
            "--resource-group",
            resource_group,
            "--query",
            "[?dnsSettings && starts_with(dnsSettings.domainNameLabel, "
            f"'{prefix}')].dnsSettings.fqdn | [0]",
        ]
    )


def public_ip_fqdn(resource_group: str, name: str) -> Optional[str]:
    return az_tsv(
        [
            "network",
            "public-ip",
            "show",
            "--name",
            name,
            "--resource-group",
            resource_group,
            "--query",
            "dnsSettings.fqdn",
        ]
    )


def healthy_backends(resource_group: str, app_gateway: str) -> List[str]:
    out = az_tsv(
        [
            "network",
            "application-gateway",
            "show-backend-health",
            "--resource-group",
            resource_group,
            "--name",
            app_gateway,
            "--query",
            "backendAddressPools[].backendHttpSettingsCollection[].servers[?health == 'Healthy']",
        ]
    )
    if not out:
        return []
    return [line for line in out.splitlines() if line.strip()]
