"""
Application Gateway module.

Public HTTP entry point for RStudio: listener on 80, backend pool filled by
the scale set, cookie affinity so a browser session sticks to one node.
"""

from __future__ import annotations

from typing import Tuple

from constructs import Construct

from cdktf import TerraformOutput
from cdktf_cdktf_provider_azurerm.application_gateway import (
    ApplicationGateway,
    ApplicationGatewayBackendAddressPool,
    ApplicationGatewayBackendHttpSettings,
    ApplicationGatewayFrontendIpConfiguration,
    ApplicationGatewayFrontendPort,
    ApplicationGatewayGatewayIpConfiguration,
    ApplicationGatewayHttpListener,
    ApplicationGatewayProbe,
    ApplicationGatewayProbeMatch,
    ApplicationGatewayRequestRoutingRule,
    ApplicationGatewaySku,
)
from cdktf_cdktf_provider_azurerm.public_ip import PublicIp

from iac_types import AppGatewayConfig

BACKEND_POOL = "rstudio-backend-pool"
HTTP_SETTINGS = "rstudio-http-settings"
PROBE = "rstudio-probe"
LISTENER = "rstudio-listener"
FRONTEND_IP = "rstudio-frontend-ip"
FRONTEND_PORT = "http-port"


def backend_pool_id(app_gateway: ApplicationGateway) -> str:
    return f"{app_gateway.id}/backendAddressPools/{BACKEND_POOL}"


def provision_app_gateway(
    *,
    scope: Construct,
    config: AppGatewayConfig,
    rg_name: str,
    location: str,
    subnet_id: str,
    dns_suffix: str,
) -> Tuple[ApplicationGateway, PublicIp]:
    pip = PublicIp(
        scope,
        "appGatewayPip",
        name=config.public_ip_name,
        location=location,
        resource_group_name=rg_name,
        allocation_method="Static",
        sku="Standard",
        domain_name_label=f"{config.dns_label_prefix}{dns_suffix}",
    )

    gateway = ApplicationGateway(
        scope,
        "appGateway",
        name=config.name,
        location=location,
        resource_group_name=rg_name,
        sku=ApplicationGatewaySku(
            name="Standard_v2", tier="Standard_v2", capacity=config.capacity
        ),
        gateway_ip_configuration=[
            ApplicationGatewayGatewayIpConfiguration(
                name="gateway-ip-config", subnet_id=subnet_id
            )
        ],
        frontend_port=[ApplicationGatewayFrontendPort(name=FRONTEND_PORT, port=80)],
        frontend_ip_configuration=[
            ApplicationGatewayFrontendIpConfiguration(
                name=FRONTEND_IP, public_ip_address_id=pip.id
            )
        ],
        backend_address_pool=[ApplicationGatewayBackendAddressPool(name=BACKEND_POOL)],
        probe=[
            ApplicationGatewayProbe(
                name=PROBE,
                protocol="Http",
                host="127.0.0.1",
                path=config.probe_path,
                interval=30,
                timeout=30,
                unhealthy_threshold=3,
                match=ApplicationGatewayProbeMatch(status_code=["200-399"]),
            )
        ],
        backend_http_settings=[
            ApplicationGatewayBackendHttpSettings(
                name=HTTP_SETTINGS,
                cookie_based_affinity="Enabled",
                port=config.backend_port,
                protocol="Http",
                request_timeout=60,
                probe_name=PROBE,
            )
        ],
        http_listener=[
            ApplicationGatewayHttpListener(
                name=LISTENER,
                frontend_ip_configuration_name=FRONTEND_IP,
                frontend_port_name=FRONTEND_PORT,
                protocol="Http",
            )
        ],
        request_routing_rule=[
            ApplicationGatewayRequestRoutingRule(
                name="rstudio-routing-rule",
                rule_type="Basic",
                priority=100,
                http_listener_name=LISTENER,
                backend_address_pool_name=BACKEND_POOL,
                backend_http_settings_name=HTTP_SETTINGS,
            )
        ],
    )

    TerraformOutput(scope, "rstudio_url", value=f"http://{pip.fqdn}")
    return gateway, pip
