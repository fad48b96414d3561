"""
CDKTF entrypoint for the Azure RStudio cluster.

Synthesizes one stack per deploy phase: ``directory``, ``servers`` and
``cluster``. The deploy CLI applies them one at a time (the Packer image
build runs between ``servers`` and ``cluster``).
"""

from __future__ import annotations

from pathlib import Path
import os
import sys

from cdktf import App

from rstudio_cluster.preflight import format_missing_env_message, missing_env

from stacks.cluster_stack import ClusterStack
from stacks.directory_stack import DirectoryStack
from stacks.servers_stack import ServersStack
from utils.config_loader import load_tfvars_config

REQUIRED_ENV = ["ARM_TENANT_ID", "ARM_SUBSCRIPTION_ID"]


def main() -> None:
    repo_root = Path(__file__).resolve().parents[1]

    # Preflight: ensure required env vars are present before synthesizing
    missing = missing_env(env=os.environ, keys=REQUIRED_ENV)
    if missing:
        print(format_missing_env_message(missing), file=sys.stderr)
        sys.exit(2)

    app = App()
    try:
        cfg = load_tfvars_config(repo_root=repo_root)
        DirectoryStack(app, "directory", cfg)
        ServersStack(app, "servers", cfg)
        ClusterStack(app, "cluster", cfg)
    except (FileNotFoundError, KeyError, ValueError) as ex:
        # Surface a concise, friendly message instead of a long traceback
        print(f"Error: {ex}", file=sys.stderr)
        sys.exit(1)

    try:
        app.synth()
    except Exception as ex:  # noqa: BLE001 - present actionable error
        print("Synthesis failed.", file=sys.stderr)
        print(str(ex), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
