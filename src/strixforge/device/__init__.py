#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import enum
import pathlib
import typing

import strixforge.boot
import strixforge.context
import strixforge.error
import strixforge.system.package


class QuirkType(enum.Enum):
    """Quirk type."""

    # Applied without asking.
    AUTO = "auto"

    # Only reported to the operator.
    ADVISORY = "advisory"


class Action(enum.Enum):
    """Corrective action carried out by a quirk."""

    NONE = "none"
    KERNEL_PARAMETER = "kernel_parameter"
    PACKAGE = "package"


class Quirk(object):
    """Device-specific corrective action."""

    def __init__(
            self, identifier: str, description: str, type: QuirkType,
            action: Action = Action.NONE, argument: str = None) -> None:
        self.identifier = identifier
        self.description = description
        self.type = type
        self.action = action
        self.argument = argument

    def apply(
            self, context: strixforge.context.Context,
            root: pathlib.Path = pathlib.Path("/")) -> None:
        """
        Carries out the corrective action.  Raises an Error subclass on
        failure.

        Keyword arguments:
        context -- the execution context
        root    -- the root directory of the host (default /)
        """
        if Action.KERNEL_PARAMETER == self.action:
            self._add_kernel_parameter(context, root)
        elif Action.PACKAGE == self.action:
            self._install_package(context, root)

    def _add_kernel_parameter(
            self, context: strixforge.context.Context,
            root: pathlib.Path) -> None:
        error = None

        # Every boot loader gets its chance; the last error wins.  Without a
        # managed boot loader there is nothing to do.
        for loader in strixforge.boot.detect(root):
            try:
                loader.add_param(context, self.argument)
            except strixforge.error.BootloaderError as e:
                error = e

        if error is not None:
            raise error

    def _install_package(
            self, context: strixforge.context.Context,
            root: pathlib.Path) -> None:
        if not strixforge.system.package.Pacman(root).is_installed(
                self.argument):
            strixforge.system.package.Yay().install(context, [self.argument])


class Device(object):
    """Hardware platform."""

    def __init__(
            self, name: str, manufacturer: str, product: str,
            quirks: typing.Iterable[Quirk] = ()) -> None:
        self.name = name
        self.manufacturer = manufacturer
        self.product = product
        self._quirks = tuple(quirks)

    @property
    def quirks(self) -> typing.Tuple[Quirk, ...]:
        return self._quirks
