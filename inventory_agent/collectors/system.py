import platform
import socket
from dataclasses import dataclass

import distro

from inventory_agent.core.errors import CollectionError


@dataclass(frozen=True)
class DistroInfo:
    long_name: str = ""
    short_name: str = ""
    version: str = ""
    kernel: str = ""
    architecture: str = ""


def get_hostname() -> str:
    return socket.gethostname()


def _normalize_arch(machine: str) -> str:
    # match the names package managers report
    return {
        "amd64": "x86_64",
        "x64": "x86_64",
        "i686": "x86_32",
        "i386": "x86_32",
        "aarch64": "arm64",
    }.get(machine.lower(), machine.lower())


def get_distribution_info() -> DistroInfo:
    """
    Identify the running OS distribution.

    On Linux the distro library reads os-release and friends; elsewhere we
    fall back to platform. Raises CollectionError when nothing identifies
    the distribution.
    """
    kernel = platform.release()
    architecture = _normalize_arch(platform.machine())

    if platform.system() != "Linux":
        short_name = platform.system().lower()
        if not short_name:
            raise CollectionError("unable to determine operating system")
        return DistroInfo(
            long_name=f"{platform.system()} {platform.version()}".strip(),
            short_name=short_name,
            version=platform.version(),
            kernel=kernel,
            architecture=architecture,
        )

    short_name = distro.id()
    if not short_name:
        raise CollectionError("unable to detect linux distribution")

    return DistroInfo(
        long_name=distro.name(pretty=True) or short_name,
        short_name=short_name,
        version=distro.version(best=True),
        kernel=kernel,
        architecture=architecture,
    )
