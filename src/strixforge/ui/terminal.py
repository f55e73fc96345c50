#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import typing

import strixforge.stage
import strixforge.ui.auto

# Width of the progress bar in characters.
WIDTH = 30


class TerminalSink(strixforge.ui.auto.AutoSink):
    """Interactive terminal front end.  Blocks on stdin for every prompt."""

    def __init__(
            self, stream: typing.TextIO = None,
            input: typing.Callable[[str], str] = input) -> None:
        super().__init__(stream)
        self._input = input
        self._number = 0

    def stage_start(self, stage: strixforge.stage.Stage) -> None:
        self._number += 1
        self._write("")
        self._write(
            f"[{self._number}] {stage.name}"
            f"{' (optional)' if stage.optional else ''}")

        if stage.description:
            self._write(f"    {stage.description}")

    def progress(self, percent: int, message: str) -> None:
        filled = WIDTH * max(0, min(percent, 100)) // 100
        self._write(
            f"  [{'#' * filled}{'-' * (WIDTH - filled)}] {percent:3d}% "
            f"{message}")

    def confirm(self, message: str, default: bool) -> bool:
        while True:
            answer = self._ask(
                f"{message} [{'Y/n' if default else 'y/N'}] ").lower()

            if not answer:
                return default
            elif answer in ["y", "yes"]:
                return True
            elif answer in ["n", "no"]:
                return False

    def select(
            self, message: str, options: typing.Sequence[str],
            default: int = 0) -> int:
        self._write(message)

        for index, option in enumerate(options):
            self._write(
                f"  {index + 1}) {option}{' *' if index == default else ''}")

        while True:
            answer = self._ask(f"Choice [{default + 1}]: ")

            if not answer:
                return default

            try:
                index = int(answer) - 1
            except ValueError:
                continue

            if 0 <= index < len(options):
                return index

    def prompt(self, message: str, default: str) -> str:
        answer = self._ask(f"{message} [{default}]: ")
        return answer if answer else default

    def _ask(self, question: str) -> str:
        # End of input means the operator has nothing more to say.
        try:
            return self._input(question).strip()
        except EOFError:
            return ""
