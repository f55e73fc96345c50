#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

from gi.repository import GLib
import pathlib
import pydbus
import re
import typing

import strixforge.context
import strixforge.error
import strixforge.system.shell

DMI = pathlib.Path("/sys/class/dmi/id")
MEMINFO = pathlib.Path("/proc/meminfo")


def kernel_release(context: strixforge.context.Context) -> str:
    """Returns the release string of the running kernel."""
    return strixforge.system.shell.query(
        context, "uname", "-r").stdout.strip()


def parse_version(version: str) -> typing.Tuple[int, int]:
    """
    Returns the leading (major, minor) pair of a kernel release string, or
    (0, 0) if the string does not start with one.

    Keyword arguments:
    version -- the kernel release string, e.g. "6.18.2-arch1-1"
    """
    m = re.match(r"(?P<major>\d+)\.(?P<minor>\d+)", version)

    if not m:
        return 0, 0

    return int(m.group("major")), int(m.group("minor"))


def total_memory(meminfo: pathlib.Path = MEMINFO) -> int:
    """
    Returns the total system memory in whole gigabytes (rounded down).
    Raises HostError if the memory information is unavailable.

    Keyword arguments:
    meminfo -- the memory information pseudo-file
    """
    try:
        with open(meminfo, "r") as f:
            buffer = f.read()
    except OSError as e:
        raise strixforge.error.HostError(
            f"Failed to read {meminfo}: {e.strerror}")

    m = re.search(r"^MemTotal:\s+(?P<kb>\d+)", buffer, re.MULTILINE)

    if not m:
        raise strixforge.error.HostError(f"MemTotal not found in {meminfo}")

    return int(m.group("kb")) // 1024 // 1024


def identification(dmi: pathlib.Path = DMI) -> typing.Tuple[str, str]:
    """
    Returns the (manufacturer, product) pair of the host.  Asks
    systemd-hostnamed first and falls back on the DMI data exported by the
    kernel.  Missing fields are returned as empty strings.

    Keyword arguments:
    dmi -- the DMI sysfs directory
    """
    manufacturer = product = ""

    # HardwareVendor and HardwareModel are only provided by newer versions of
    # systemd-hostnamed.
    try:
        hostname = pydbus.SystemBus().get("org.freedesktop.hostname1")
        manufacturer = hostname.HardwareVendor or ""
        product = hostname.HardwareModel or ""
    except (GLib.Error, AttributeError):
        pass

    if not manufacturer:
        manufacturer = _read(dmi / "sys_vendor")

    if not product:
        product = _read(dmi / "product_name")

    return manufacturer, product


def disable_unit(context: strixforge.context.Context, unit: str) -> None:
    """
    Disables and stops a systemd unit.  Raises CommandError if systemctl
    fails, including when the unit does not exist.

    Keyword arguments:
    context -- the execution context
    unit    -- the unit name
    """
    strixforge.system.shell.execute_sudo(
        context, "systemctl", "disable", "--now", unit)


def _read(file: pathlib.Path) -> str:
    try:
        with open(file, "r") as f:
            return f.read().strip()
    except OSError:
        return ""
