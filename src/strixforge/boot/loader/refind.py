#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import pathlib
import re

import strixforge.boot
import strixforge.error


class REFInd(strixforge.boot.Loader):
    """rEFInd boot loader."""

    name = "rEFInd"

    def __init__(self, root: pathlib.Path = pathlib.Path("/")) -> None:
        super().__init__(root / "boot" / "refind_linux.conf", root)

    def is_installed(self) -> bool:
        return self.path.exists()

    def patch(self, buffer: str, parameter: str) -> str:
        """
        Appends the kernel parameter to the options of every entry.  Each
        entry is a line of the form "Title" "options".  rEFInd reads this file
        at boot time so nothing needs to be regenerated.

        Keyword arguments:
        buffer    -- the contents of /boot/refind_linux.conf
        parameter -- the kernel parameter to add
        """
        pattern = r'^(?P<title>[ \t]*"[^"\n]*"[ \t]+)' \
            r'"(?P<options>[^"\n]*)"[ \t]*$'

        if not re.search(pattern, buffer, re.MULTILINE):
            raise strixforge.error.BootloaderError(
                f"No boot options found in {self.path}")

        return re.sub(
            pattern, lambda m: f'{m.group("title")}"'
            f'{strixforge.boot.append_option(m.group("options"), parameter)}"',
            buffer, flags=re.MULTILINE)
