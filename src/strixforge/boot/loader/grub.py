#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import pathlib
import re

import strixforge.boot
import strixforge.context
import strixforge.error


class GRUB(strixforge.boot.Loader):
    """GRUB boot loader."""

    name = "GRUB"

    def __init__(self, root: pathlib.Path = pathlib.Path("/")) -> None:
        super().__init__(root / "etc" / "default" / "grub", root)

    def is_installed(self) -> bool:
        return (self._root / "boot" / "grub").is_dir() and self.path.exists()

    def patch(self, buffer: str, parameter: str) -> str:
        """
        Appends the kernel parameter to GRUB_CMDLINE_LINUX_DEFAULT.

        Keyword arguments:
        buffer    -- the contents of /etc/default/grub
        parameter -- the kernel parameter to add
        """
        m = re.search(
            r'^GRUB_CMDLINE_LINUX_DEFAULT="(?P<options>[^"\n]*)"', buffer,
            re.MULTILINE)

        if not m:
            raise strixforge.error.BootloaderError(
                f"GRUB_CMDLINE_LINUX_DEFAULT not found in {self.path}")

        return buffer[:m.start("options")] + \
            strixforge.boot.append_option(m.group("options"), parameter) + \
            buffer[m.end("options"):]

    def update(self, context: strixforge.context.Context) -> None:
        self._regenerate(
            context, "grub-mkconfig", "-o",
            str(self._root / "boot" / "grub" / "grub.cfg"))
