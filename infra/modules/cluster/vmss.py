"""
RStudio scale set module.

Linux VMSS built from the Packer image, registered in the Application
Gateway backend pool, repaired on failed health checks and scaled on CPU.
"""

from __future__ import annotations

from constructs import Construct

from cdktf import Fn, TerraformOutput, TerraformResourceLifecycle
from cdktf_cdktf_provider_azurerm.linux_virtual_machine_scale_set import (
    LinuxVirtualMachineScaleSet,
    LinuxVirtualMachineScaleSetAutomaticInstanceRepair,
    LinuxVirtualMachineScaleSetExtension,
    LinuxVirtualMachineScaleSetNetworkInterface,
    LinuxVirtualMachineScaleSetNetworkInterfaceIpConfiguration,
)
from cdktf_cdktf_provider_azurerm.monitor_autoscale_setting import (
    MonitorAutoscaleSetting,
    MonitorAutoscaleSettingProfile,
    MonitorAutoscaleSettingProfileCapacity,
    MonitorAutoscaleSettingProfileRule,
    MonitorAutoscaleSettingProfileRuleMetricTrigger,
    MonitorAutoscaleSettingProfileRuleScaleAction,
)

from iac_types import RStudioInfrastructureConfig, ScaleSetConfig
from modules.keyvault.keyvault import grant_secrets_reader
from utils.templates import checked_template


def _cpu_rule(
    vmss_id: str, operator: str, threshold: int, direction: str
) -> MonitorAutoscaleSettingProfileRule:
    return MonitorAutoscaleSettingProfileRule(
        metric_trigger=MonitorAutoscaleSettingProfileRuleMetricTrigger(
            metric_name="Percentage CPU",
            metric_resource_id=vmss_id,
            time_grain="PT1M",
            statistic="Average",
            time_window="PT5M",
            time_aggregation="Average",
            operator=operator,
            threshold=threshold,
        ),
        scale_action=MonitorAutoscaleSettingProfileRuleScaleAction(
            direction=direction,
            type="ChangeCount",
            value=1,
            cooldown="PT5M",
        ),
    )


def provision_autoscale(
    scope: Construct,
    config: ScaleSetConfig,
    rg_name: str,
    location: str,
    vmss: LinuxVirtualMachineScaleSet,
) -> MonitorAutoscaleSetting:
    return MonitorAutoscaleSetting(
        scope,
        "vmssAutoscale",
        name=f"{config.name}-autoscale",
        resource_group_name=rg_name,
        location=location,
        target_resource_id=vmss.id,
        profile=[
            MonitorAutoscaleSettingProfile(
                name="cpu-profile",
                capacity=MonitorAutoscaleSettingProfileCapacity(
                    default=config.default_instances,
                    minimum=config.min_instances,
                    maximum=config.max_instances,
                ),
                rule=[
                    _cpu_rule(
                        vmss.id, "GreaterThan", config.scale_out_cpu_threshold, "Increase"
                    ),
                    _cpu_rule(
                        vmss.id, "LessThan", config.scale_in_cpu_threshold, "Decrease"
                    ),
                ],
            )
        ],
    )


def provision_scale_set(
    *,
    scope: Construct,
    cfg: RStudioInfrastructureConfig,
    rg_name: str,
    subnet_id: str,
    image_id: str,
    backend_pool_id: str,
    key_vault_id: str,
    vault_name: str,
    storage_account_name: str,
    ubuntu_password: str,
) -> LinuxVirtualMachineScaleSet:
    config = cfg.scale_set
    template_vars = {
        "storage_account": storage_account_name,
        "share_name": cfg.storage_config.share_name,
        "vault_name": vault_name,
        "domain_fqdn": cfg.domain.domain_fqdn,
        "force_group": cfg.domain.force_group,
    }
    path = checked_template("rstudio_booter.sh.tpl", template_vars)

    vmss = LinuxVirtualMachineScaleSet(
        scope,
        "rstudioVmss",
        name=config.name,
        resource_group_name=rg_name,
        location=cfg.location,
        sku=config.vm_size,
        instances=config.default_instances,
        admin_username="ubuntu",
        admin_password=ubuntu_password,
        disable_password_authentication=False,
        source_image_id=image_id,
        upgrade_mode="Manual",
        overprovision=False,
        os_disk={"caching": "ReadWrite", "storage_account_type": "Standard_LRS"},
        identity={"type": "SystemAssigned"},
        custom_data=Fn.base64encode(Fn.templatefile(path, template_vars)),
        network_interface=[
            LinuxVirtualMachineScaleSetNetworkInterface(
                name="rstudio-nic",
                primary=True,
                ip_configuration=[
                    LinuxVirtualMachineScaleSetNetworkInterfaceIpConfiguration(
                        name="internal",
                        primary=True,
                        subnet_id=subnet_id,
                        application_gateway_backend_address_pool_ids=[backend_pool_id],
                    )
                ],
            )
        ],
        extension=[
            LinuxVirtualMachineScaleSetExtension(
                name="rstudio-health",
                publisher="Microsoft.ManagedServices",
                type="ApplicationHealthLinux",
                type_handler_version="1.0",
                auto_upgrade_minor_version=True,
                settings=Fn.jsonencode(
                    {"protocol": "tcp", "port": cfg.app_gateway.backend_port}
                ),
            )
        ],
        automatic_instance_repair=LinuxVirtualMachineScaleSetAutomaticInstanceRepair(
            enabled=True, grace_period="PT30M"
        ),
        # Autoscale owns the instance count after creation
        lifecycle=TerraformResourceLifecycle(ignore_changes=["instances"]),
    )

    grant_secrets_reader(
        scope,
        "vmssKvReader",
        key_vault_id=key_vault_id,
        principal_id=vmss.identity.principal_id,
    )
    provision_autoscale(scope, config, rg_name, cfg.location, vmss)

    TerraformOutput(scope, "vmss_name", value=vmss.name)
    return vmss
