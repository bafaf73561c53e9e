"""
Package inventory.

Enumerates installed packages and pending updates for every package manager
found on PATH. Lookups never raise: each failing manager contributes an error
string and the rest still report.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from inventory_agent.core.errors import CollectionError

logger = logging.getLogger(__name__)

COMMAND_TIMEOUT = 120

_APT_INST = re.compile(r"^Inst (\S+) (?:\[[^\]]*\] )?\((\S+) .*\[(\S+)\]\)")
_GEM_LINE = re.compile(r"^(\S+) \(([^)]*)\)$")


@dataclass(frozen=True)
class PkgInfo:
    name: str
    arch: str = ""
    version: str = ""

    def to_json(self) -> dict:
        return {"Name": self.name, "Arch": self.arch, "Version": self.version}


@dataclass
class Packages:
    """Packages grouped by the manager that reported them."""

    yum: List[PkgInfo] = field(default_factory=list)
    rpm: List[PkgInfo] = field(default_factory=list)
    apt: List[PkgInfo] = field(default_factory=list)
    deb: List[PkgInfo] = field(default_factory=list)
    gem: List[PkgInfo] = field(default_factory=list)
    pip: List[PkgInfo] = field(default_factory=list)

    def to_json(self) -> dict:
        """Lists keyed by manager name, empty managers omitted."""
        return {
            manager: list(getattr(self, manager))
            for manager in ("yum", "rpm", "apt", "deb", "gem", "pip")
            if getattr(self, manager)
        }


def _have(cmd: str) -> bool:
    return shutil.which(cmd) is not None


def _pip_cmd() -> Optional[str]:
    for cmd in ("pip3", "pip"):
        if _have(cmd):
            return cmd
    return None


def run(cmd: Sequence[str], ok_codes: Iterable[int] = (0,)) -> str:
    """Run a command and return stdout, raising CollectionError on failure."""
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            list(cmd),
            capture_output=True,
            text=True,
            timeout=COMMAND_TIMEOUT,
        )
    except subprocess.TimeoutExpired:
        raise CollectionError(f"{cmd[0]}: timed out after {COMMAND_TIMEOUT}s")
    except OSError as e:
        raise CollectionError(f"{cmd[0]}: {e}")

    if result.returncode not in tuple(ok_codes):
        stderr = (result.stderr or "").strip()
        raise CollectionError(
            f"{' '.join(cmd)}: exit status {result.returncode}: {stderr}".rstrip(": ")
        )
    return result.stdout


def parse_space_separated(output: str) -> List[PkgInfo]:
    """Parse `name arch version` lines as printed by dpkg-query and rpm."""
    pkgs = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) != 3:
            if line.strip():
                logger.debug("skipping package line %r", line)
            continue
        pkgs.append(PkgInfo(name=parts[0], arch=parts[1], version=parts[2]))
    return pkgs


def parse_apt_updates(output: str) -> List[PkgInfo]:
    pkgs = []
    for line in output.splitlines():
        m = _APT_INST.match(line)
        if m:
            pkgs.append(PkgInfo(name=m.group(1), arch=m.group(3), version=m.group(2)))
    return pkgs


def parse_yum_updates(output: str) -> List[PkgInfo]:
    pkgs = []
    for line in output.splitlines():
        if line.startswith("Obsoleting"):
            break
        parts = line.split()
        # "name.arch  version  repo"; everything else is yum chatter
        if len(parts) != 3 or "." not in parts[0]:
            continue
        name, _, arch = parts[0].rpartition(".")
        pkgs.append(PkgInfo(name=name, arch=arch, version=parts[1]))
    return pkgs


def parse_gem_list(output: str) -> List[PkgInfo]:
    pkgs = []
    for line in output.splitlines():
        m = _GEM_LINE.match(line.strip())
        if not m:
            continue
        # first listed version is the newest
        version = m.group(2).split(",")[0].replace("default: ", "").strip()
        pkgs.append(PkgInfo(name=m.group(1), arch="all", version=version))
    return pkgs


def parse_gem_outdated(output: str) -> List[PkgInfo]:
    pkgs = []
    for line in output.splitlines():
        m = _GEM_LINE.match(line.strip())
        if not m or "<" not in m.group(2):
            continue
        latest = m.group(2).split("<", 1)[1].strip()
        pkgs.append(PkgInfo(name=m.group(1), arch="all", version=latest))
    return pkgs


def parse_pip_json(output: str, version_key: str = "version") -> List[PkgInfo]:
    try:
        entries = json.loads(output or "[]")
    except ValueError as e:
        raise CollectionError(f"pip: unparsable output: {e}")
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise CollectionError("pip: unexpected output: expected a list of objects")
    return [
        PkgInfo(name=e["name"], arch="all", version=e.get(version_key, ""))
        for e in entries
        if "name" in e
    ]


Lookup = Tuple[str, str, Callable[[], List[PkgInfo]]]


def _installed_lookups() -> List[Lookup]:
    lookups: List[Lookup] = []
    if _have("dpkg-query"):
        lookups.append(("deb", "dpkg-query", lambda: parse_space_separated(
            run(["dpkg-query", "-W", "-f", "${Package} ${Architecture} ${Version}\n"])
        )))
    if _have("rpm"):
        lookups.append(("rpm", "rpm", lambda: parse_space_separated(
            run(["rpm", "-qa", "--queryformat", "%{NAME} %{ARCH} %{VERSION}-%{RELEASE}\n"])
        )))
    if _have("gem"):
        lookups.append(("gem", "gem", lambda: parse_gem_list(run(["gem", "list", "--local"]))))
    pip = _pip_cmd()
    if pip:
        lookups.append(("pip", pip, lambda: parse_pip_json(
            run([pip, "list", "--format=json", "--disable-pip-version-check"])
        )))
    return lookups


def _update_lookups() -> List[Lookup]:
    lookups: List[Lookup] = []
    if _have("apt-get"):
        lookups.append(("apt", "apt-get", lambda: parse_apt_updates(
            run(["apt-get", "upgrade", "--just-print", "-qq"])
        )))
    if _have("yum"):
        # check-update exits 100 when updates are available
        lookups.append(("yum", "yum", lambda: parse_yum_updates(
            run(["yum", "check-update", "--quiet"], ok_codes=(0, 100))
        )))
    if _have("gem"):
        lookups.append(("gem", "gem", lambda: parse_gem_outdated(run(["gem", "outdated"]))))
    pip = _pip_cmd()
    if pip:
        lookups.append(("pip", pip, lambda: parse_pip_json(
            run([pip, "list", "--outdated", "--format=json", "--disable-pip-version-check"]),
            version_key="latest_version",
        )))
    return lookups


def _collect(lookups: List[Lookup]) -> Tuple[Packages, List[str]]:
    pkgs = Packages()
    errors: List[str] = []
    for manager, tool, lookup in lookups:
        try:
            setattr(pkgs, manager, lookup())
        except CollectionError as e:
            logger.debug("%s lookup failed: %s", tool, e)
            errors.append(str(e))
    return pkgs, errors


def get_installed_packages() -> Tuple[Packages, List[str]]:
    """Return installed packages and any per manager errors."""
    return _collect(_installed_lookups())


def get_package_updates() -> Tuple[Packages, List[str]]:
    """Return available updates and any per manager errors."""
    return _collect(_update_lookups())
