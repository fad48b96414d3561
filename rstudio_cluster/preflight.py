"""
Preflight validation helpers.

Checks the local toolchain and credentials before any phase runs, then logs
the Azure CLI in with the service principal Terraform and Packer use.
"""

from __future__ import annotations

import os
from typing import List, Mapping, Optional

from .utils import CmdError, az, missing_tools

REQUIRED_TOOLS = ["az", "cdktf", "terraform", "packer"]
REQUIRED_ENV = [
    "ARM_CLIENT_ID",
    "ARM_CLIENT_SECRET",
    "ARM_SUBSCRIPTION_ID",
    "ARM_TENANT_ID",
]


class PreflightError(CmdError):
    pass


def missing_env(env: Mapping[str, str], keys: List[str]) -> List[str]:
    """Return the list of keys missing in the provided environment mapping."""
    return [k for k in keys if not env.get(k)]


def format_missing_env_message(missing: List[str]) -> str:
    """Format a friendly, actionable message for missing env vars."""
    if not missing:
        return ""
    lines: List[str] = []
    lines.append("Preflight check failed: missing environment variables")
    lines.append("")
    lines.append("Missing:")
    for k in missing:
        lines.append(f"  - {k}")
    lines.append("")
    lines.append("How to set them in bash (current session):")
    for k in missing:
        lines.append(f'  export {k}="<value>"')
    lines.append("")
    lines.append("Then re-run: python -m rstudio_cluster.cli check-env")
    return "\n".join(lines)


def check_tools(tools: List[str] = REQUIRED_TOOLS) -> None:
    missing = missing_tools(tools)
    if missing:
        raise PreflightError(f"Required tools not found in PATH: {', '.join(missing)}")
    print(f"NOTE: All required commands are available: {', '.join(tools)}")


def check_env(env: Optional[Mapping[str, str]] = None) -> None:
    env = os.environ if env is None else env
    missing = missing_env(env=env, keys=REQUIRED_ENV)
    if missing:
        raise PreflightError(format_missing_env_message(missing))
    print("NOTE: All required environment variables are set.")


def az_login(env: Optional[Mapping[str, str]] = None) -> None:
    env = os.environ if env is None else env
    secret = env["ARM_CLIENT_SECRET"]
    print("NOTE: Logging in to Azure using Service Principal...")
    try:
        az(
            [
                "login",
                "--service-principal",
                "--username",
                env["ARM_CLIENT_ID"],
                "--password",
                secret,
                "--tenant",
                env["ARM_TENANT_ID"],
                "--output",
                "none",
            ],
            secrets=[secret],
        )
    except CmdError as e:
        raise PreflightError(f"Failed to log into Azure. Check your credentials.\n{e}") from e
    az(["account", "set", "--subscription", env["ARM_SUBSCRIPTION_ID"]])
    print("NOTE: Successfully logged into Azure.")


def run_preflight(env: Optional[Mapping[str, str]] = None) -> None:
    check_tools()
    check_env(env)
    az_login(env)
