"""
Helpers for cloud-init templates rendered by Terraform's templatefile().

Templates live in infra/templates and use Terraform interpolation: ``${name}``
is a template variable, ``$${...}`` is a literal shell expansion.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Set

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"

_REF = re.compile(r"\$(\$?)\{([^}]*)\}")
_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def template_path(name: str) -> Path:
    path = TEMPLATE_DIR / name
    if not path.exists():
        raise FileNotFoundError(f"Template not found: {path}")
    return path


def template_variables(content: str) -> Set[str]:
    """Return the variable names a template references."""
    names: Set[str] = set()
    for escaped, expr in _REF.findall(content):
        if escaped:
            continue
        expr = expr.strip()
        if not _IDENT.match(expr):
            raise ValueError(f"Unsupported template expression: ${{{expr}}}")
        names.add(expr)
    return names


def checked_template(name: str, variables: Iterable[str]) -> str:
    """Resolve a template and ensure ``variables`` covers exactly its references."""
    path = template_path(name)
    wanted = template_variables(path.read_text(encoding="utf-8"))
    given = set(variables)
    missing = sorted(wanted - given)
    extra = sorted(given - wanted)
    if missing or extra:
        raise ValueError(
            f"Template {name} variable mismatch: missing={missing} unexpected={extra}"
        )
    return str(path)
