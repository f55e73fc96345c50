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
import strixforge.system.shell


class Limine(strixforge.boot.Loader):
    """Limine boot loader configured through limine-mkinitcpio-hook."""

    name = "Limine"

    def __init__(self, root: pathlib.Path = pathlib.Path("/")) -> None:
        super().__init__(root / "etc" / "default" / "limine", root)

    def is_installed(self) -> bool:
        return strixforge.system.shell.command_exists(
            "limine-mkinitcpio") and self.path.exists() and \
            (self._root / "boot" / "limine").is_dir()

    def patch(self, buffer: str, parameter: str) -> str:
        """
        Appends the kernel parameter to every KERNEL_CMDLINE directive, e.g.
        KERNEL_CMDLINE[default]+="quiet".  Commented out directives are
        enabled if there is no active one and a missing directive is added.
        Raises BootloaderError if an active directive is not double quoted.

        Keyword arguments:
        buffer    -- the contents of /etc/default/limine
        parameter -- the kernel parameter to add
        """
        pattern = r'^(?P<name>KERNEL_CMDLINE[^=\s]*=)"(?P<options>[^"\n]*)"'

        if not re.search(r"^KERNEL_CMDLINE", buffer, re.MULTILINE):
            buffer = re.sub(
                r"^#\s*KERNEL_CMDLINE", "KERNEL_CMDLINE", buffer,
                flags=re.MULTILINE)

        if not re.search(r"^KERNEL_CMDLINE", buffer, re.MULTILINE):
            if buffer and not buffer.endswith("\n"):
                buffer += "\n"

            return buffer + f'KERNEL_CMDLINE[default]+="{parameter}"\n'

        # An unquoted directive would be left alone while ours gets appended
        # to the same string without a separator.
        for line in re.findall(r"^KERNEL_CMDLINE.*$", buffer, re.MULTILINE):
            if not re.match(pattern + r"[ \t]*(?:#.*)?$", line):
                raise strixforge.error.BootloaderError(
                    f"Unsupported KERNEL_CMDLINE value in {self.path}: "
                    f"{line}")

        return re.sub(
            pattern, lambda m: f'{m.group("name")}"'
            f'{strixforge.boot.append_option(m.group("options"), parameter)}"',
            buffer, flags=re.MULTILINE)

    def update(self, context: strixforge.context.Context) -> None:
        self._regenerate(context, "limine-mkinitcpio")
