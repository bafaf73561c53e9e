"""
Inventory snapshot.

One InventorySnapshot is built per report cycle. Collector failures never
abort the build: they land in the snapshot's error log and the affected
fields keep their empty values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Callable, List, Tuple

from inventory_agent.collectors.packages import (
    Packages,
    get_installed_packages,
    get_package_updates,
)
from inventory_agent.collectors.system import DistroInfo, get_distribution_info, get_hostname
from inventory_agent.core.types import AttributeField, ErrorLog, FieldKind

logger = logging.getLogger(__name__)

PackageLookup = Callable[[], Tuple[Packages, List[str]]]


@dataclass(frozen=True)
class InventorySnapshot:
    hostname: str = ""
    long_name: str = ""
    short_name: str = ""
    version: str = ""
    architecture: str = ""
    kernel_version: str = ""
    installed_packages: Packages = field(default_factory=Packages)
    package_updates: Packages = field(default_factory=Packages)
    errors: ErrorLog = field(default_factory=ErrorLog)


# Attribute names are read by downstream consumers; keep spelling and order.
SNAPSHOT_FIELDS: Tuple[AttributeField, ...] = (
    AttributeField("Hostname", FieldKind.text, attrgetter("hostname")),
    AttributeField("LongName", FieldKind.text, attrgetter("long_name")),
    AttributeField("ShortName", FieldKind.text, attrgetter("short_name")),
    AttributeField("Version", FieldKind.text, attrgetter("version")),
    AttributeField("Architecture", FieldKind.text, attrgetter("architecture")),
    AttributeField("KernelVersion", FieldKind.text, attrgetter("kernel_version")),
    AttributeField("InstalledPackages", FieldKind.structured, attrgetter("installed_packages")),
    AttributeField("PackageUpdates", FieldKind.structured, attrgetter("package_updates")),
    AttributeField("Errors", FieldKind.list, attrgetter("errors")),
)


def _lookup_packages(lookup: PackageLookup, errors: ErrorLog) -> Packages:
    try:
        pkgs, errs = lookup()
    except Exception as e:
        logger.error("package lookup error: %s", e)
        errors.append(str(e))
        return Packages()
    errors.extend(errs)
    return pkgs


def build_snapshot(
    hostname_fn: Callable[[], str] = get_hostname,
    distro_fn: Callable[[], DistroInfo] = get_distribution_info,
    installed_fn: PackageLookup = get_installed_packages,
    updates_fn: PackageLookup = get_package_updates,
) -> InventorySnapshot:
    """
    Gather a best effort snapshot.

    Each collaborator is called exactly once, in order: hostname, distro,
    installed packages, package updates. A failure in one never prevents
    the others from running.
    """
    logger.info("Gathering instance inventory.")

    errors = ErrorLog()

    hostname = ""
    try:
        hostname = hostname_fn()
    except Exception as e:
        logger.error("hostname lookup error: %s", e)
        errors.append(str(e))

    di = DistroInfo()
    try:
        di = distro_fn()
    except Exception as e:
        logger.error("distribution lookup error: %s", e)
        errors.append(str(e))

    installed = _lookup_packages(installed_fn, errors)
    updates = _lookup_packages(updates_fn, errors)

    return InventorySnapshot(
        hostname=hostname,
        long_name=di.long_name,
        short_name=di.short_name,
        version=di.version,
        architecture=di.architecture,
        kernel_version=di.kernel,
        installed_packages=installed,
        package_updates=updates,
        errors=errors,
    )
