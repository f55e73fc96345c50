#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import typing

import strixforge.context
import strixforge.device
import strixforge.error
import strixforge.system.host

Action = strixforge.device.Action
Quirk = strixforge.device.Quirk
QuirkType = strixforge.device.QuirkType

# RyzenAdj is the only way to change the TDP on most Strix Halo boards.
TDP_TOOL = Quirk(
    "tdp-tool", "Install RyzenAdj for TDP control", QuirkType.AUTO,
    Action.PACKAGE, "ryzenadj")


class Model(object):
    """Known device model."""

    def __init__(
            self, name: str, manufacturer: str, product: str,
            quirks: typing.Sequence[Quirk]) -> None:
        self.name = name
        self._manufacturer = manufacturer.lower()
        self._product = product.lower()
        self._quirks = quirks

    def matches(self, manufacturer: str, product: str) -> bool:
        """
        Returns True if the host identification belongs to this model.

        Keyword arguments:
        manufacturer -- the host manufacturer string
        product      -- the host product string
        """
        return self._manufacturer in manufacturer.lower() and \
            self._product in product.lower()

    def create(
            self, manufacturer: str,
            product: str) -> strixforge.device.Device:
        return strixforge.device.Device(
            self.name, manufacturer, product, self._quirks)


MODELS = [
    Model("Beelink GTR9 Pro", "Beelink", "GTR9", [
        Quirk(
            "e610-blacklist",
            "Blacklist Intel E610 Ethernet driver (crashes under GPU load)",
            QuirkType.AUTO, Action.KERNEL_PARAMETER,
            "modprobe.blacklist=ice"),
        TDP_TOOL
    ]),
    Model("Framework Desktop", "Framework", "Desktop", [
        Quirk(
            "uma-frame-buffer",
            "Set the iGPU memory (UMA frame buffer) to its minimum in the "
            "BIOS; the kernel assigns graphics memory dynamically",
            QuirkType.ADVISORY),
        TDP_TOOL
    ]),
    Model("GMKtec EVO-X2", "GMKtec", "EVO-X2", [
        Quirk(
            "bios-update",
            "Update the BIOS to the latest release before running large "
            "models; early releases train memory unreliably",
            QuirkType.ADVISORY),
        Quirk(
            "uma-frame-buffer",
            "Set the iGPU memory (UMA frame buffer) to its minimum in the "
            "BIOS; the kernel assigns graphics memory dynamically",
            QuirkType.ADVISORY),
        TDP_TOOL
    ])
]


def detect(context: strixforge.context.Context) -> strixforge.device.Device:
    """
    Returns the device the installer is running on.  Raises
    UnknownDeviceError if the host is not a known Strix Halo device.

    Keyword arguments:
    context -- the execution context
    """
    context.check()
    manufacturer, product = strixforge.system.host.identification()

    for model in MODELS:
        if model.matches(manufacturer, product):
            return model.create(manufacturer, product)

    raise strixforge.error.UnknownDeviceError(manufacturer, product)
