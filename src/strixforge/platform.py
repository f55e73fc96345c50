#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import typing

import strixforge.configuration
import strixforge.context
import strixforge.device
import strixforge.device.strixhalo
import strixforge.stage
import strixforge.stage.containers
import strixforge.stage.kernel
import strixforge.stage.packages


class StrixHalo(object):
    """AMD Strix Halo platform."""

    name = "AMD Strix Halo"

    def __init__(
            self,
            configuration: strixforge.configuration.Configuration) -> None:
        self._configuration = configuration

    def detect(
            self,
            context: strixforge.context.Context) -> strixforge.device.Device:
        """
        Returns the device the installer is running on.  Raises
        UnknownDeviceError if the device is not known.
        """
        return strixforge.device.strixhalo.detect(context)

    def stages(
            self, device: typing.Optional[strixforge.device.Device]) -> \
            typing.List[strixforge.stage.Stage]:
        """
        Returns the pipeline stages in the order they have to run.

        Keyword arguments:
        device -- the detected device or None if it is unknown
        """
        containers = self._configuration.containers

        return [
            strixforge.stage.kernel.KernelStage(device),
            strixforge.stage.packages.PackagesStage(
                self._configuration.packages.extra),
            strixforge.stage.containers.ContainerStage(
                containers.user, containers.gpu_gid, containers.nesting)
        ]
