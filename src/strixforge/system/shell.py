#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import os
import pathlib
import sh
import shlex
import syslog
import typing

import strixforge.context
import strixforge.error

# Seconds between two cancellation checks while a command is running.
_POLL_INTERVAL = 0.1


class Result(object):
    """Result of an external command."""

    def __init__(
            self, stdout: str = "", stderr: str = "",
            exit_code: int = 0) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code


def command_exists(name: str) -> bool:
    """
    Returns True if name resolves to an executable on the search path.

    Keyword arguments:
    name -- the command name
    """
    try:
        sh.Command(name)
    except sh.CommandNotFound:
        return False

    return True


def query(
        context: strixforge.context.Context, program: str,
        *args: str) -> Result:
    """
    Runs a read-only command.  Unlike the other functions in this module,
    queries also run in dry-run mode.  Raises CommandError if the command
    fails.

    Keyword arguments:
    context -- the execution context
    program -- the program to run
    args    -- the program arguments
    """
    return _run(context, [program, *args])


def execute(
        context: strixforge.context.Context, program: str,
        *args: str) -> Result:
    """
    Runs a command which changes the host.  Raises CommandError if the command
    fails.

    Keyword arguments:
    context -- the execution context
    program -- the program to run
    args    -- the program arguments
    """
    return _mutate(context, [program, *args])


def execute_sudo(
        context: strixforge.context.Context, program: str,
        *args: str) -> Result:
    """
    Runs a command with root privileges.  Raises CommandError if the command
    fails.

    Keyword arguments:
    context -- the execution context
    program -- the program to run
    args    -- the program arguments
    """
    return _mutate(context, _sudo([program, *args]))


def execute_shell_sudo(
        context: strixforge.context.Context, script: str) -> Result:
    """
    Runs a shell script with root privileges.  Raises CommandError if the
    script fails.

    Keyword arguments:
    context -- the execution context
    script  -- the script passed to sh -c
    """
    return _mutate(context, _sudo(["sh", "-c", script]))


def write_file_sudo(
        context: strixforge.context.Context, path: pathlib.Path,
        content: str) -> Result:
    """
    Replaces the content of a file with root privileges.  Raises CommandError
    if the file could not be written.

    Keyword arguments:
    context -- the execution context
    path    -- the file to write
    content -- the new file content
    """
    return _mutate(context, _sudo(["tee", str(path)]), content)


def _decode(buffer: typing.Optional[bytes]) -> str:
    return buffer.decode("utf-8", "replace") if buffer else ""


def _format(argv: typing.Sequence[str]) -> str:
    return " ".join(shlex.quote(arg) for arg in argv)


def _sudo(argv: typing.List[str]) -> typing.List[str]:
    # No need to go through sudo when we already are root.
    if 0 == os.geteuid():
        return argv

    return ["sudo", *argv]


def _mutate(
        context: strixforge.context.Context, argv: typing.List[str],
        input: str = None) -> Result:
    context.check()

    if context.dry_run:
        syslog.syslog(syslog.LOG_INFO, f"Dry run, skipping {_format(argv)}")
        return Result()

    syslog.syslog(syslog.LOG_DEBUG, f"Running {_format(argv)}")
    return _run(context, argv, input)


def _run(
        context: strixforge.context.Context, argv: typing.List[str],
        input: str = None) -> Result:
    context.check()

    try:
        command = sh.Command(argv[0])
    except sh.CommandNotFound:
        raise strixforge.error.CommandError(
            f"{argv[0]}: Command not found", Result(exit_code=127))

    kwargs = {"_bg": True, "_bg_exc": False}

    if input is not None:
        kwargs["_in"] = input

    process = command(*argv[1:], **kwargs)

    # Wait in short intervals so that a cancelled context abandons the
    # command instead of blocking until it exits on its own.
    try:
        while True:
            try:
                process.wait(timeout=_POLL_INTERVAL)
                break
            except sh.TimeoutException:
                if context.cancelled:
                    process.terminate()
                    raise strixforge.error.CancelledError(
                        f"{_format(argv)}: Cancelled")
    except sh.ErrorReturnCode as e:
        result = Result(_decode(e.stdout), _decode(e.stderr), e.exit_code)
        raise strixforge.error.CommandError(
            f"{_format(argv)}: Exited with status {e.exit_code}"
            + (f": {result.stderr.strip()}" if result.stderr.strip() else ""),
            result)

    return Result(
        _decode(process.stdout), _decode(process.stderr), process.exit_code)
