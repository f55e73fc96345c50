#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import typing


class Error(Exception):
    """Strixforge error."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BootloaderError(Error):
    """Boot loader error."""

    pass


class CancelledError(Error):
    """Operation cancelled error."""

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message)


class CommandError(Error):
    """External command error."""

    def __init__(self, message: str, result: typing.Any) -> None:
        super().__init__(message)
        self.result = result


class HostError(Error):
    """Host metadata error."""

    pass


class InitializationError(Error):
    """Initialization error."""

    pass


class StageError(Error):
    """Pipeline stage error."""

    def __init__(
            self, message: str, stage: typing.Any,
            cause: Exception = None) -> None:
        super().__init__(message)
        self.stage = stage
        self.cause = cause


class UnknownDeviceError(Error):
    """Unknown device error."""

    def __init__(self, manufacturer: str, product: str) -> None:
        super().__init__(
            f"Unrecognized device {manufacturer or '(unknown)'} "
            f"{product or '(unknown)'}")
        self.manufacturer = manufacturer
        self.product = product
