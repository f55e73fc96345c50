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


class SystemDBoot(strixforge.boot.Loader):
    """systemd-boot boot loader managed by sdboot-manage."""

    name = "systemd-boot"

    def __init__(self, root: pathlib.Path = pathlib.Path("/")) -> None:
        super().__init__(root / "etc" / "sdboot-manage.conf", root)

    def is_installed(self) -> bool:
        # sdboot-manage alone is not enough, we also need to be booted via
        # EFI with a loader configuration in place.
        return strixforge.system.shell.command_exists("sdboot-manage") and \
            self.path.exists() and \
            (self._root / "sys" / "firmware" / "efi").exists() and \
            (self._root / "boot" / "loader" / "loader.conf").exists()

    def patch(self, buffer: str, parameter: str) -> str:
        """
        Appends the kernel parameter to LINUX_OPTIONS.  The directive is empty
        and commented out by default; a commented out directive is enabled
        first and a missing one is added.  The file is sourced by bash, so
        double quoted, single quoted and bare values are patched in place.
        Raises BootloaderError for any other value.

        Keyword arguments:
        buffer    -- the contents of /etc/sdboot-manage.conf
        parameter -- the kernel parameter to add
        """
        if not re.search(r"^LINUX_OPTIONS=", buffer, re.MULTILINE):
            buffer = re.sub(
                r"^#\s*LINUX_OPTIONS=", "LINUX_OPTIONS=", buffer,
                flags=re.MULTILINE)

        if not re.search(r"^LINUX_OPTIONS=", buffer, re.MULTILINE):
            if buffer and not buffer.endswith("\n"):
                buffer += "\n"

            return buffer + f'LINUX_OPTIONS="{parameter}"\n'

        # Every active directive has to be understood, otherwise a later
        # one we cannot patch would override ours.
        for line in re.findall(r"^LINUX_OPTIONS=.*$", buffer, re.MULTILINE):
            if not _OPTIONS.match(line):
                raise strixforge.error.BootloaderError(
                    f"Unsupported LINUX_OPTIONS value in {self.path}: {line}")

        return _OPTIONS.sub(lambda m: _options(m, parameter), buffer)

    def update(self, context: strixforge.context.Context) -> None:
        self._regenerate(context, "sdboot-manage", "gen")


# Double quoted, single quoted or bare value, optionally followed by a
# comment.
_OPTIONS = re.compile(
    r"""^LINUX_OPTIONS=(?:"(?P<double>[^"\n]*)"|'(?P<single>[^'\n]*)'|"""
    r"""(?P<bare>[^\s"'#]*))(?=[ \t]*(?:#[^\n]*)?$)""", re.MULTILINE)


def _options(m: re.Match, parameter: str) -> str:
    if m.group("single") is not None:
        options = strixforge.boot.append_option(m.group("single"), parameter)
        return f"LINUX_OPTIONS='{options}'"

    options = m.group("double") if m.group("double") is not None \
        else m.group("bare")
    return f'LINUX_OPTIONS="' \
        f'{strixforge.boot.append_option(options, parameter)}"'
