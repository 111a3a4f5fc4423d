"""
Probe runner collecting the text the parser works on.

Runs read-only version probes and path lookups concurrently and
concatenates their output into a transcript. Probe failures only mean
less text; nothing here raises for a missing tool.
"""

from __future__ import annotations

import os
import subprocess
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Sequence

from .common import vlog
from .models import Platform
from .normalize import strip_ansi

DEFAULT_TIMEOUT_SECONDS = 5

# Output fragments meaning the probe did not find its tool
ERROR_MARKERS = ("error", "not found", "not recognized", "no such file", "could not find")


@dataclass(frozen=True)
class Probe:
    """
    Shell probe command.

    Attributes:
        command: Command line run through the platform shell
        label: Human-readable description
        prefix: Text prepended to the first output line (path lookups)
    """
    command: str
    label: str = ""
    prefix: str = ""


POSIX_PROBES: tuple[Probe, ...] = (
    # Java
    Probe("java -version", "Java Version"),
    Probe("which java", "Java Path", "Path: "),
    Probe("/usr/libexec/java_home -V", "Java Deep Scan"),
    # Python
    Probe("python3 --version", "Python Version"),
    Probe("which python3", "Python Path", "Path: "),
    Probe("pyenv versions", "PyEnv Versions"),
    # Go
    Probe("go version", "Go Version"),
    Probe("which go", "Go Path", "Path: "),
    Probe("ls ~/sdk", "Go SDK Folder"),
    # Node
    Probe("node -v", "Node Version"),
    Probe("which node", "Node Path", "Path: "),
    # Folder names without the "v" so they read as a listing, not as `node -v`
    Probe("ls ~/.nvm/versions/node | sed 's/^v//'", "NVM Versions"),
    # Homebrew
    Probe("brew list --versions", "Brew Packages"),
)

WINDOWS_PROBES: tuple[Probe, ...] = (
    Probe("java -version", "Java Version"),
    Probe("where java", "Java Path", "Path: "),
    Probe("python --version", "Python Version"),
    Probe("where python", "Python Path", "Path: "),
    Probe("py -0p", "Python Launcher"),
    Probe("pyenv versions", "PyEnv Versions"),
    Probe("go version", "Go Version"),
    Probe("where go", "Go Path", "Path: "),
    Probe("node -v", "Node Version"),
    Probe("where node", "Node Path", "Path: "),
    Probe("nvm list", "NVM List"),
)


def probes_for(platform: Platform | str) -> tuple[Probe, ...]:
    if Platform.coerce(platform) == Platform.WINDOWS:
        return WINDOWS_PROBES
    return POSIX_PROBES


def _shell_args(command: str, platform: Platform) -> list[str] | str:
    if platform == Platform.WINDOWS:
        return command
    # Login shell so PATH from the user's profile is loaded
    shell = os.environ.get("SHELL") or "/bin/sh"
    return [shell, "-l", "-c", command]


def run_probe(
    probe: Probe,
    platform: Platform | str = Platform.POSIX,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    verbose: bool = False,
) -> str:
    """Run one probe and return its output.

    stderr is merged into stdout (java -version prints there).

    Returns:
        Output with ANSI sequences removed, or "" if the probe failed
    """
    platform = Platform.coerce(platform)
    try:
        proc = subprocess.run(
            _shell_args(probe.command, platform),
            shell=platform == Platform.WINDOWS,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            timeout=timeout,
            check=False,
            env={**os.environ, "TERM": "dumb"},  # Disable ANSI/color output from subprocesses
        )
    except (OSError, subprocess.SubprocessError) as e:
        vlog(f"Probe '{probe.command}' failed: {e}", verbose)
        return ""

    output = strip_ansi(proc.stdout or "").strip()
    if proc.returncode != 0 and not output:
        vlog(f"Probe '{probe.command}' exited with {proc.returncode}", verbose)
    return output


def is_error_output(output: str) -> bool:
    """Whether probe output reads as a failure.

    Only the first line is checked; listings such as `brew list` can contain
    package names like "libgpg-error".
    """
    lines = output.strip().splitlines()
    if not lines:
        return False
    lowered = lines[0].lower()
    return any(marker in lowered for marker in ERROR_MARKERS)


def build_transcript(results: Sequence[tuple[Probe, str]]) -> str:
    """
    Concatenate probe outputs into a parser transcript.

    Each usable probe contributes a "$ <command>" header followed by its
    output. Prefixed probes (path lookups) contribute only their first
    line, with the prefix applied, and only when the probe right before
    them contributed.
    """
    parts: list[str] = []
    previous_kept = False
    for probe, output in results:
        output = output.strip()
        usable = bool(output) and not is_error_output(output)
        if probe.prefix and not previous_kept:
            usable = False
        previous_kept = usable
        if not usable:
            continue

        parts.append(f"$ {probe.command}")
        if probe.prefix:
            first_line = output.splitlines()[0].strip()
            parts.append(f"{probe.prefix}{first_line}")
        else:
            parts.append(output)

    return "\n".join(parts) + "\n" if parts else ""


def scan_environment(
    platform: Platform | str = Platform.POSIX,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    max_workers: int = 8,
    probes: Sequence[Probe] | None = None,
    verbose: bool = False,
) -> str:
    """
    Run all probes for a platform in parallel and build the transcript.

    Probe order in the transcript follows the probe table, so a path lookup
    always follows the version probe it belongs to.
    """
    platform = Platform.coerce(platform)
    probes = tuple(probes) if probes is not None else probes_for(platform)
    if not probes:
        return ""

    outputs: dict[int, str] = {}
    with ThreadPoolExecutor(max_workers=min(max_workers, len(probes))) as executor:
        future_to_index = {
            executor.submit(run_probe, probe, platform, timeout, verbose): idx
            for idx, probe in enumerate(probes)
        }
        for future in as_completed(future_to_index):
            idx = future_to_index[future]
            try:
                outputs[idx] = future.result()
            except Exception as e:
                vlog(f"Probe '{probes[idx].command}' raised: {e}", verbose)
                outputs[idx] = ""

    vlog(f"Ran {len(probes)} probes", verbose)
    return build_transcript([(probe, outputs.get(idx, "")) for idx, probe in enumerate(probes)])
