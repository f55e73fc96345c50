#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import getpass
import os

import strixforge.context
import strixforge.error
import strixforge.stage
import strixforge.system.lxd
import strixforge.ui

LogLevel = strixforge.ui.LogLevel


class ContainerStage(strixforge.stage.Stage):
    """LXD container runtime with GPU access."""

    identifier = "containers"
    name = "Container Runtime"
    description = "Initialize LXD and give containers access to the GPU"
    optional = True

    def __init__(
            self, user: str = None, gpu_gid: int = 110,
            nesting: bool = True) -> None:
        super().__init__()
        self._user = user
        self._gpu_gid = gpu_gid
        self._nesting = nesting
        self._lxd = strixforge.system.lxd.LXD()

    def run(
            self, context: strixforge.context.Context,
            sink: strixforge.ui.Sink) -> None:
        if not self._lxd.is_available():
            raise strixforge.error.InitializationError(
                "LXD is not installed")

        sink.progress(10, "Initializing LXD...")
        self._lxd.init(context)

        sink.progress(40, "Configuring LXD group membership...")
        user = sink.prompt(
            "User to add to the lxd group", self._user or
            os.getenv("SUDO_USER") or getpass.getuser())

        if self._lxd.is_user_in_group(context, user):
            sink.log(LogLevel.INFO, f"{user} already is in the lxd group")
        else:
            self._lxd.add_user_to_group(context, user)
            sink.log(
                LogLevel.INFO, f"Added {user} to the lxd group; log in again "
                f"for the change to take effect")

        sink.progress(60, "Adding GPU to the default profile...")
        self._lxd.add_gpu_device(context, self._gpu_gid)

        sink.progress(80, "Configuring container nesting...")

        if sink.confirm(
                "Allow containers to run containers (nesting)?",
                self._nesting):
            self._lxd.enable_nesting(context)
            sink.log(LogLevel.INFO, "Container nesting enabled")

        sink.progress(100, "Container runtime ready")
