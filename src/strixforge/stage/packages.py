#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import pathlib
import typing

import strixforge.context
import strixforge.stage
import strixforge.system.package
import strixforge.ui

LogLevel = strixforge.ui.LogLevel

# Graphics and compute userland for the Radeon 8060S.
PACKAGES = ["mesa", "vulkan-radeon", "rocm-hip-runtime", "rocminfo"]


class PackagesStage(strixforge.stage.Stage):
    """Graphics and compute packages."""

    identifier = "packages"
    name = "Graphics and Compute Packages"
    description = "Install Mesa, RADV and the ROCm runtime"
    optional = True

    def __init__(
            self, extra: typing.Sequence[str] = (),
            root: pathlib.Path = pathlib.Path("/")) -> None:
        super().__init__()
        self._packages = PACKAGES + [
            name for name in extra if name not in PACKAGES]
        self._pacman = strixforge.system.package.Pacman(root)

    def run(
            self, context: strixforge.context.Context,
            sink: strixforge.ui.Sink) -> None:
        sink.progress(10, "Checking installed packages...")
        missing = self._pacman.missing(self._packages)

        if not missing:
            sink.progress(100, "All packages already installed")
            return

        sink.log(LogLevel.INFO, f"Installing {', '.join(missing)}")
        sink.progress(30, "Installing packages...")
        self._pacman.install(context, missing)
        sink.progress(100, "Packages installed")
