#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import sys
import syslog
import typing

import strixforge.stage
import strixforge.ui

LogLevel = strixforge.ui.LogLevel
Status = strixforge.stage.Status


class AutoSink(strixforge.ui.Sink):
    """
    Unattended front end.  Narrates to stdout and syslog and answers every
    prompt with its default.
    """

    def __init__(self, stream: typing.TextIO = None) -> None:
        super().__init__()
        self._stream = stream

    def stage_start(self, stage: strixforge.stage.Stage) -> None:
        self._write(f"-> Starting: {stage.name}")

    def stage_complete(self, result: strixforge.stage.Result) -> None:
        if Status.SUCCESS == result.status:
            self._write(f"Complete: {result.stage_name}")
        elif Status.FAILED == result.status:
            self._write(
                f"Failed: {result.stage_name} - {result.error}",
                syslog.LOG_ERR)
        else:
            self._write(f"Skipped: {result.stage_name}")

    def progress(self, percent: int, message: str) -> None:
        self._write(f"  [{percent}%] {message}")

    def log(self, level: strixforge.ui.LogLevel, message: str) -> None:
        if LogLevel.ERROR == level:
            self._write(f"Error: {message}", syslog.LOG_ERR)
        elif LogLevel.WARN == level:
            self._write(f"Warning: {message}", syslog.LOG_WARNING)
        else:
            self._write(message)

    def confirm(self, message: str, default: bool) -> bool:
        self._write(f"{message} {'yes' if default else 'no'}")
        return default

    def select(
            self, message: str, options: typing.Sequence[str],
            default: int = 0) -> int:
        self._write(f"{message} {options[default]}")
        return default

    def prompt(self, message: str, default: str) -> str:
        self._write(f"{message} {default}")
        return default

    def _write(self, message: str, priority: int = syslog.LOG_INFO) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        print(message, file=stream, flush=True)
        syslog.syslog(priority, message.strip())
