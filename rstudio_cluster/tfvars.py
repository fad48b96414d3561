"""
Minimal .tfvars reader shared by the CLI and the CDKTF app.

Functional, pure helpers that parse the subset of tfvars syntax this repo
uses: single-line ``key = value`` pairs holding strings, ints and booleans.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional

DEFAULT_TFVARS = "vars/rstudio.tfvars"


def strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def parse_tfvars(content: str) -> Dict[str, str]:
    """Very small tfvars parser for simple key = value pairs.

    Lines starting with '#' or '//' are ignored, as are trailing ' #' comments
    outside of quoted values.
    """
    vars_map: Dict[str, str] = {}
    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or line.startswith("//"):
            continue
        if "=" not in line:
            continue
        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip()
        if val.startswith('"'):
            end = val.find('"', 1)
            if end != -1:
                val = val[: end + 1]
        elif " #" in val:
            val = val.split(" #", 1)[0].strip()
        vars_map[key] = strip_quotes(val)
    return vars_map


def to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError as ex:
        raise ValueError(f"Invalid int value: {value}") from ex


def required(vars_map: Dict[str, str], key: str) -> str:
    if key not in vars_map:
        raise KeyError(f"Missing required var: {key}")
    return vars_map[key]


def optional(vars_map: Dict[str, str], key: str, default: str) -> str:
    return vars_map.get(key, default)


def resolve_tfvars_path(repo_root: Path, tfvars_file: Optional[str] = None) -> Path:
    # Use default if env var is missing or empty
    chosen = tfvars_file or os.getenv("TFVARS_FILE")
    rel = chosen if (chosen and chosen.strip()) else DEFAULT_TFVARS
    return (repo_root / rel).resolve()


def load_tfvars(repo_root: Path, tfvars_file: Optional[str] = None) -> Dict[str, str]:
    path = resolve_tfvars_path(repo_root, tfvars_file)
    if not path.exists():
        raise FileNotFoundError(f"tfvars file not found: {path}")
    return parse_tfvars(path.read_text(encoding="utf-8"))
