#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import pathlib
import re
import typing

import strixforge.context
import strixforge.error
import strixforge.system.shell


class Pacman(object):
    """Arch Linux package manager."""

    def __init__(self, root: pathlib.Path = pathlib.Path("/")) -> None:
        self._path = root / "var" / "lib" / "pacman" / "local"

    def is_installed(self, name: str) -> bool:
        """
        Returns True if the local package database contains the package.
        Raises HostError if a database entry cannot be read.

        Keyword arguments:
        name -- the package name
        """
        for desc in self._path.glob(f"{name}-*/desc"):
            try:
                with open(desc, "r") as f:
                    buffer = f.read()
            except (OSError, UnicodeDecodeError) as e:
                raise strixforge.error.HostError(
                    f"Failed to read package database entry {desc}: {e}")

            if re.search(fr"%NAME%\s+{re.escape(name)}\s+", buffer):
                return True

        return False

    def missing(self, names: typing.Iterable[str]) -> typing.List[str]:
        """
        Returns the packages from names which are not installed, preserving
        their order.

        Keyword arguments:
        names -- the package names
        """
        return [name for name in names if not self.is_installed(name)]

    def install(
            self, context: strixforge.context.Context,
            names: typing.Sequence[str]) -> None:
        """
        Installs packages from the repositories.  Raises CommandError on
        failure.

        Keyword arguments:
        context -- the execution context
        names   -- the package names
        """
        strixforge.system.shell.execute_sudo(
            context, "pacman", "-S", "--needed", "--noconfirm", *names)


class Yay(object):
    """AUR helper."""

    def install(
            self, context: strixforge.context.Context,
            names: typing.Sequence[str]) -> None:
        """
        Installs packages from the AUR.  yay refuses to run as root and asks
        for privileges itself.  Raises CommandError on failure.

        Keyword arguments:
        context -- the execution context
        names   -- the package names
        """
        strixforge.system.shell.execute(
            context, "yay", "-S", "--needed", "--noconfirm", *names)
