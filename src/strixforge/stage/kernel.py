#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import pathlib
import typing

import strixforge.boot
import strixforge.context
import strixforge.device
import strixforge.error
import strixforge.stage
import strixforge.system.host
import strixforge.ui

LogLevel = strixforge.ui.LogLevel

# Strix Halo support landed in 6.18.
MINIMUM_VERSION = (6, 18)

PARAMETERS = ["iommu=pt", "amd_pstate=active"]

# At and above this amount of memory (in GB), ZRAM competes with the GPU for
# GTT memory.
ZRAM_THRESHOLD = 64
ZRAM_UNIT = "zram-generator@zram0.service"


class KernelStage(strixforge.stage.Stage):
    """Kernel version check, boot loader configuration and device quirks."""

    identifier = "kernel"
    name = "Kernel Configuration"
    description = "Verify kernel version, configure boot loaders, apply " \
        "device quirks"
    optional = False

    def __init__(
            self, device: typing.Optional[strixforge.device.Device],
            root: pathlib.Path = pathlib.Path("/")) -> None:
        super().__init__()
        self._device = device
        self._root = root
        self._backups = []

    def run(
            self, context: strixforge.context.Context,
            sink: strixforge.ui.Sink) -> None:
        self._backups = []
        warnings = 0

        # Step 1: Kernel version.  This is the only step which may fail the
        # stage.
        sink.progress(10, "Checking kernel version...")

        try:
            version = strixforge.system.host.kernel_release(context)
        except strixforge.error.CommandError as e:
            raise strixforge.error.HostError(
                f"Failed to get kernel version: {e.message}")

        major, minor = strixforge.system.host.parse_version(version)
        sink.log(
            LogLevel.INFO,
            f"Kernel version: {version} (parsed: {major}.{minor})")

        if (major, minor) < MINIMUM_VERSION:
            raise strixforge.error.HostError(
                f"Kernel {MINIMUM_VERSION[0]}.{MINIMUM_VERSION[1]}+ required, "
                f"found {version}. Please update your kernel")

        sink.log(LogLevel.INFO, "Kernel version meets requirements")

        # Step 2 and 3: Boot loaders, one after the other.
        sink.progress(20, "Detecting boot loaders...")
        loaders = strixforge.boot.detect(self._root)

        if loaders:
            sink.log(
                LogLevel.INFO,
                f"Detected {len(loaders)} active boot loader(s)")
        else:
            sink.log(
                LogLevel.WARN, "No supported boot loader detected (checked: "
                "GRUB, systemd-boot, Limine, rEFInd)")
            sink.log(
                LogLevel.WARN, f"Manual action required: add "
                f"'{' '.join(PARAMETERS)}' to your kernel command line")

        for index, loader in enumerate(loaders):
            sink.log(LogLevel.INFO, f"Configuring {loader.name}")
            sink.progress(
                20 + 40 * index // len(loaders),
                f"Backing up {loader.name} configuration...")

            try:
                backup = loader.backup(context)
                self._backups.append((loader, backup))
                sink.log(LogLevel.INFO, f"Backup created: {backup}")
            except strixforge.error.BootloaderError as e:
                warnings += 1
                sink.log(
                    LogLevel.WARN,
                    f"Could not back up {loader.name}: {e.message}")

            sink.progress(
                20 + (40 * index + 20) // len(loaders),
                f"Adding kernel parameters to {loader.name}...")

            for parameter in PARAMETERS:
                try:
                    loader.add_param(context, parameter)
                except strixforge.error.BootloaderError as e:
                    warnings += 1
                    sink.log(
                        LogLevel.WARN, f"Failed to add {parameter} to "
                        f"{loader.name}: {e.message}")

        # Step 4: Device quirks.
        sink.progress(60, "Applying device quirks...")
        warnings += self._apply_quirks(context, sink)

        # Step 5: ZRAM.
        sink.progress(75, "Checking ZRAM configuration...")
        warnings += self._tune_memory(context, sink)

        sink.progress(100, "Kernel configuration complete")

        if warnings:
            sink.log(
                LogLevel.WARN, f"Kernel configuration completed with "
                f"{warnings} warning(s); review the log above")

        sink.log(
            LogLevel.INFO,
            "Note: a reboot may be required for kernel parameter changes")

    def rollback(self, context: strixforge.context.Context) -> None:
        """Restores the boot loader configurations backed up by run()."""
        error = None

        for loader, backup in reversed(self._backups):
            try:
                loader.restore(context, backup)
            except strixforge.error.BootloaderError as e:
                error = e

        if error is not None:
            raise error

    def _apply_quirks(
            self, context: strixforge.context.Context,
            sink: strixforge.ui.Sink) -> int:
        if self._device is None:
            sink.log(
                LogLevel.INFO, "No recognized device, skipping device quirks")
            return 0

        warnings = 0

        for quirk in self._device.quirks:
            if strixforge.device.QuirkType.AUTO == quirk.type:
                sink.log(LogLevel.INFO, f"Applying quirk: {quirk.description}")

                try:
                    quirk.apply(context, self._root)
                except strixforge.error.CancelledError:
                    raise
                except strixforge.error.Error as e:
                    warnings += 1
                    sink.log(
                        LogLevel.WARN,
                        f"Quirk {quirk.identifier} failed: {e.message}")
            else:
                sink.log(LogLevel.WARN, f"Advisory: {quirk.description}")

        return warnings

    def _tune_memory(
            self, context: strixforge.context.Context,
            sink: strixforge.ui.Sink) -> int:
        try:
            memory = strixforge.system.host.total_memory()
        except strixforge.error.HostError as e:
            sink.log(
                LogLevel.WARN, f"Could not determine system memory: "
                f"{e.message}. Skipping ZRAM optimization")
            return 1

        if memory < ZRAM_THRESHOLD:
            sink.log(
                LogLevel.INFO, f"System memory {memory} GB < "
                f"{ZRAM_THRESHOLD} GB. Keeping ZRAM enabled")
            return 0

        sink.log(
            LogLevel.INFO, f"High memory system ({memory} GB) detected. "
            f"Disabling ZRAM to prevent GTT conflicts")

        # The unit does not exist on every system.
        try:
            strixforge.system.host.disable_unit(context, ZRAM_UNIT)
        except strixforge.error.CommandError as e:
            sink.log(
                LogLevel.WARN, f"Failed to disable ZRAM (might not be "
                f"active): {e.message}")
            return 0

        sink.log(LogLevel.INFO, "ZRAM disabled")
        return 0
