from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .phases import PHASES, apply_all, destroy_all, destroy_network
from .preflight import run_preflight
from .settings import DeploySettings, load_settings, with_polling
from .utils import CmdError, cdktf, child_env
from .validate import validate


def _settings(args: argparse.Namespace) -> DeploySettings:
    return load_settings(
        repo_root=args.repo_root,
        tfvars_file=args.tfvars,
        infra_dir=args.infra_dir,
        packer_dir=args.packer_dir,
    )


def check_env_cmd(args: argparse.Namespace) -> None:
    run_preflight()


def apply_cmd(args: argparse.Namespace) -> None:
    settings = _settings(args)
    if not args.skip_preflight:
        run_preflight()
    phases = args.phases.split(",") if args.phases else None
    apply_all(settings, phases)
    if args.validate:
        validate(settings)


def destroy_cmd(args: argparse.Namespace) -> None:
    destroy_all(_settings(args))


def destroy_network_cmd(args: argparse.Namespace) -> None:
    destroy_network(_settings(args))


def validate_cmd(args: argparse.Namespace) -> None:
    try:
        settings = with_polling(_settings(args), args.interval, args.retries)
    except ValueError as e:
        raise CmdError(str(e)) from e
    validate(settings)


def synth_cmd(args: argparse.Namespace) -> None:
    settings = _settings(args)
    if not settings.infra_dir.exists():
        raise CmdError(f"Project directory not found: {settings.infra_dir}")
    env = child_env({"TFVARS_FILE": settings.tfvars_file}) if settings.tfvars_file else None
    print("Synthesizing CDKTF...")
    cdktf(settings.infra_dir, ["get"], env=env)
    cdktf(settings.infra_dir, ["synth"], env=env)
    print("CDKTF synth completed.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rstudio-cluster", description="Azure RStudio cluster deployment CLI"
    )
    parser.add_argument(
        "--repo-root",
        type=Path,
        help="Directory holding vars/, infra/ and packer/ (default: current directory)",
    )
    parser.add_argument(
        "--tfvars", help="tfvars file relative to the repo root (default vars/rstudio.tfvars)"
    )
    parser.add_argument("--infra-dir", default="infra")
    parser.add_argument("--packer-dir", default="packer")
    sub = parser.add_subparsers(dest="cmd", required=True)

    chk = sub.add_parser("check-env", help="Check tools, credentials and log in to Azure")
    chk.set_defaults(func=check_env_cmd)

    app = sub.add_parser("apply", help="Deploy directory, servers, image and cluster")
    app.add_argument(
        "--phases",
        help=f"Comma separated subset of: {','.join(PHASES)} (always run in that order)",
    )
    app.add_argument("--skip-preflight", action="store_true")
    app.add_argument(
        "--validate", action="store_true", help="Wait for a healthy backend afterwards"
    )
    app.set_defaults(func=apply_cmd)

    des = sub.add_parser("destroy", help="Destroy cluster, images, servers and directory")
    des.set_defaults(func=destroy_cmd)

    desn = sub.add_parser("destroy-network", help="Destroy only the directory layer")
    desn.set_defaults(func=destroy_network_cmd)

    val = sub.add_parser("validate", help="Wait for healthy RStudio backends")
    val.add_argument("--interval", type=int, help="Seconds between health checks")
    val.add_argument("--retries", type=int, help="Maximum number of health checks")
    val.set_defaults(func=validate_cmd)

    syn = sub.add_parser("synth", help="Synthesize the CDKTF stacks")
    syn.set_defaults(func=synth_cmd)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except CmdError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except KeyError as e:
        # Missing required var
        print(f"ERROR: {e.args[0]}", file=sys.stderr)
        return 1
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
