from __future__ import annotations

import os
import shutil
import subprocess
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional


class CmdError(Exception):
    pass


def redact(text: str, secrets: Iterable[str]) -> str:
    for s in secrets:
        if s:
            text = text.replace(s, "****")
    return text


def run(
    cmd: List[str],
    cwd: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    secrets: Iterable[str] = (),
    echo: bool = True,
) -> str:
    """Execute a command, stream both pipes, and return ONLY stdout text.

    Important: callers parse the return (tsv/json); never mix stderr into it.
    Values in ``secrets`` are masked in everything printed to the console.
    """
    hidden = [s for s in secrets if s]
    print(f"Running: {redact(' '.join(cmd), hidden)}")
    proc = subprocess.Popen(
        cmd,
        cwd=cwd,
        env=dict(env) if env is not None else None,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        bufsize=1,
    )

    stdout_buf: List[str] = []

    def pump(pipe, tag: str) -> None:
        try:
            for line in iter(pipe.readline, ""):
                line = line.rstrip()
                if echo:
                    print(redact(line, hidden), flush=True)
                if tag == "stdout":
                    stdout_buf.append(line)
        finally:
            pipe.close()

    t_out = threading.Thread(target=pump, args=(proc.stdout, "stdout"), daemon=True)
    t_err = threading.Thread(target=pump, args=(proc.stderr, "stderr"), daemon=True)
    t_out.start()
    t_err.start()
    rc = proc.wait()
    t_out.join()
    t_err.join()

    out_text = "\n".join(stdout_buf).strip()
    if rc != 0:
        raise CmdError(
            redact(
                f"Command failed ({rc}): {' '.join(cmd)}\nSTDOUT:\n{out_text}", hidden
            )
        )
    return out_text


def _resolve_az_exe() -> str:
    # On Windows the CLI is a batch shim that Popen cannot find by bare name
    for candidate in ("az", "az.cmd"):
        found = shutil.which(candidate)
        if found:
            return found
    return "az"


def az(args: List[str], secrets: Iterable[str] = (), echo: bool = True) -> str:
    return run([_resolve_az_exe(), *args], cwd=None, secrets=secrets, echo=echo)


def az_tsv(args: List[str], echo: bool = True) -> Optional[str]:
    """Run an az query with tsv output; blank or literal ``None`` becomes None."""
    out = az([*args, "--output", "tsv"], echo=echo).strip()
    if not out or out == "None":
        return None
    return out


def cdktf(
    project_dir: Path,
    args: List[str],
    env: Optional[Mapping[str, str]] = None,
    secrets: Iterable[str] = (),
) -> str:
    return run(["cdktf", *args], cwd=str(project_dir), env=env, secrets=secrets)


def packer(
    template_dir: Path, args: List[str], secrets: Iterable[str] = ()
) -> str:
    return run(["packer", *args], cwd=str(template_dir), secrets=secrets)


def var_args(variables: Dict[str, str]) -> List[str]:
    """Render ``-var``-style flags in insertion order."""
    return [f"--var={k}={v}" for k, v in variables.items()]


def child_env(overrides: Mapping[str, str]) -> Dict[str, str]:
    env = dict(os.environ)
    env.update(overrides)
    return env


def missing_tools(tools: Iterable[str]) -> List[str]:
    return [t for t in tools if shutil.which(t) is None]
