#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import enum
import typing


class LogLevel(enum.Enum):
    """Log message severity."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class Sink(object):
    """
    Front end receiving pipeline notifications and answering operator
    prompts.  The engine and the stages only ever talk to this interface.
    """

    def __init__(self) -> None:
        if type(self) is Sink:
            raise NotImplementedError

    def stage_start(self, stage: typing.Any) -> None:
        """
        Called before a stage runs.

        Keyword arguments:
        stage -- the stage
        """
        raise NotImplementedError

    def stage_complete(self, result: typing.Any) -> None:
        """
        Called with the result of every stage, including skipped ones.

        Keyword arguments:
        result -- the stage result
        """
        raise NotImplementedError

    def progress(self, percent: int, message: str) -> None:
        """
        Reports the progress of the running stage.

        Keyword arguments:
        percent -- the progress of the stage between 0 and 100
        message -- what the stage is doing
        """
        raise NotImplementedError

    def log(self, level: LogLevel, message: str) -> None:
        """
        Narrates a message to the operator.

        Keyword arguments:
        level   -- the message severity
        message -- the message
        """
        raise NotImplementedError

    def confirm(self, message: str, default: bool) -> bool:
        """
        Asks a yes/no question, returning the answer.

        Keyword arguments:
        message -- the question
        default -- the answer used if the operator gives none
        """
        raise NotImplementedError

    def select(
            self, message: str, options: typing.Sequence[str],
            default: int = 0) -> int:
        """
        Asks the operator to pick one of options, returning its index.

        Keyword arguments:
        message -- the question
        options -- the options to pick from
        default -- the index used if the operator gives none
        """
        raise NotImplementedError

    def prompt(self, message: str, default: str) -> str:
        """
        Asks for free text, returning the answer.

        Keyword arguments:
        message -- the question
        default -- the answer used if the operator gives none
        """
        raise NotImplementedError
