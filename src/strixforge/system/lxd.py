#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import strixforge.context
import strixforge.error
import strixforge.system.shell


class LXD(object):
    """LXD container runtime."""

    def is_available(self) -> bool:
        return strixforge.system.shell.command_exists("lxd") and \
            strixforge.system.shell.command_exists("lxc")

    def init(self, context: strixforge.context.Context) -> None:
        """Initializes LXD with automatic defaults."""
        strixforge.system.shell.execute_sudo(context, "lxd", "init", "--auto")

    def is_user_in_group(
            self, context: strixforge.context.Context, user: str) -> bool:
        """
        Returns True if user is a member of the lxd group.

        Keyword arguments:
        context -- the execution context
        user    -- the user name
        """
        try:
            result = strixforge.system.shell.query(context, "id", "-nG", user)
        except strixforge.error.CommandError:
            return False

        return "lxd" in result.stdout.split()

    def add_user_to_group(
            self, context: strixforge.context.Context, user: str) -> None:
        """
        Adds user to the lxd group.

        Keyword arguments:
        context -- the execution context
        user    -- the user name
        """
        strixforge.system.shell.execute_sudo(
            context, "usermod", "-aG", "lxd", user)

    def add_gpu_device(
            self, context: strixforge.context.Context, gid: int) -> None:
        """
        Adds the GPU to the default profile.  An existing GPU device is left
        untouched.

        Keyword arguments:
        context -- the execution context
        gid     -- the group ID owning the device nodes inside containers
        """
        try:
            strixforge.system.shell.execute_sudo(
                context, "lxc", "profile", "device", "add", "default", "gpu",
                "gpu", f"gid={gid}")
        except strixforge.error.CommandError as e:
            if "already exists" not in e.result.stderr:
                raise

    def enable_nesting(self, context: strixforge.context.Context) -> None:
        """Allows containers of the default profile to run containers."""
        strixforge.system.shell.execute_sudo(
            context, "lxc", "profile", "set", "default", "security.nesting",
            "true")
