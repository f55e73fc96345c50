#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import datetime
import importlib
import pathlib
import typing

import strixforge.context
import strixforge.error
import strixforge.system.shell

# Candidate boot loaders in detection order as (module, class) pairs.
CANDIDATES = [
    ("grub", "GRUB"),
    ("systemdboot", "SystemDBoot"),
    ("limine", "Limine"),
    ("refind", "REFInd")
]


class Loader(object):
    """Boot loader."""

    name = None

    def __init__(self, path: pathlib.Path, root: pathlib.Path) -> None:
        if type(self) is Loader:
            raise NotImplementedError

        self.path = path
        self._root = root

    def is_installed(self) -> bool:
        """
        Returns True if every signal of this boot loader is present on the
        host.  Checks the file system on every call and changes nothing.
        """
        raise NotImplementedError

    def patch(self, buffer: str, parameter: str) -> str:
        """
        Returns the configuration buffer with the kernel parameter added.
        Raises BootloaderError if the configuration has no place for it.

        Keyword arguments:
        buffer    -- the current configuration
        parameter -- the kernel parameter to add
        """
        raise NotImplementedError

    def update(self, context: strixforge.context.Context) -> None:
        """
        Regenerates the boot loader configuration so that changes take effect
        on the next boot.  Raises BootloaderError on failure.

        Keyword arguments:
        context -- the execution context
        """
        pass

    def backup(self, context: strixforge.context.Context) -> pathlib.Path:
        """
        Copies the configuration file next to itself, returning the path of
        the copy.  Existing backups are never overwritten.  Raises
        BootloaderError on failure.

        Keyword arguments:
        context -- the execution context
        """
        timestamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
        backup = self.path.with_name(f"{self.path.name}.backup-{timestamp}")
        counter = 1

        # Two backups within the same second.
        while backup.exists():
            backup = self.path.with_name(
                f"{self.path.name}.backup-{timestamp}-{counter}")
            counter += 1

        try:
            strixforge.system.shell.execute_sudo(
                context, "cp", "-p", str(self.path), str(backup))
        except strixforge.error.CommandError as e:
            raise strixforge.error.BootloaderError(
                f"Failed to back up {self.name} configuration: {e.message}")

        return backup

    def restore(
            self, context: strixforge.context.Context,
            backup: pathlib.Path) -> None:
        """
        Copies a backup over the configuration file and regenerates the boot
        loader configuration.  Raises BootloaderError on failure.

        Keyword arguments:
        context -- the execution context
        backup  -- the backup created by backup()
        """
        try:
            strixforge.system.shell.execute_sudo(
                context, "cp", "-p", str(backup), str(self.path))
        except strixforge.error.CommandError as e:
            raise strixforge.error.BootloaderError(
                f"Failed to restore {self.name} configuration: {e.message}")

        self.update(context)

    def add_param(
            self, context: strixforge.context.Context,
            parameter: str) -> None:
        """
        Adds a kernel parameter unless the configuration already contains it.
        Raises BootloaderError if the configuration could not be changed or
        regenerated.  A failed regeneration does not revert the change.

        Keyword arguments:
        context   -- the execution context
        parameter -- the kernel parameter, e.g. "iommu=pt"
        """
        try:
            with open(self.path, "r") as f:
                buffer = f.read()
        except OSError as e:
            raise strixforge.error.BootloaderError(
                f"Failed to read {self.path}: {e.strerror}")
        except UnicodeDecodeError as e:
            raise strixforge.error.BootloaderError(
                f"Failed to read {self.path}: Not UTF-8 encoded ({e.reason} "
                f"at byte {e.start})")

        if parameter in buffer:
            return

        try:
            strixforge.system.shell.write_file_sudo(
                context, self.path, self.patch(buffer, parameter))
        except strixforge.error.CommandError as e:
            raise strixforge.error.BootloaderError(
                f"Failed to update {self.path}: {e.message}")

        self.update(context)

    def _regenerate(
            self, context: strixforge.context.Context, *argv: str) -> None:
        try:
            strixforge.system.shell.execute_sudo(context, *argv)
        except strixforge.error.CommandError as e:
            raise strixforge.error.BootloaderError(
                f"Failed to update {self.name}: {e.message}")


def append_option(options: str, parameter: str) -> str:
    """
    Returns a space separated option string with parameter appended.

    Keyword arguments:
    options   -- the current options, possibly empty
    parameter -- the option to append
    """
    return f"{options.strip()} {parameter}".strip()


def detect(root: pathlib.Path = pathlib.Path("/")) -> typing.List[Loader]:
    """
    Returns all boot loaders which are currently installed, in detection order.
    Several boot loaders may be active at the same time; if none is, the
    result is empty.

    Keyword arguments:
    root -- the root directory of the host (default /)
    """
    result = []

    for module, name in CANDIDATES:
        loader = getattr(importlib.import_module(
            f"strixforge.boot.loader.{module}"), name)(root)

        if loader.is_installed():
            result.append(loader)

    return result
