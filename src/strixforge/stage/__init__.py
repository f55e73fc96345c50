#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import enum
import typing

import strixforge.context
import strixforge.ui


class Status(enum.Enum):
    """Stage status."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class Result(typing.NamedTuple):
    """Outcome of one stage."""

    stage_name: str
    status: Status
    error: typing.Optional[Exception] = None


class Stage(object):
    """Installation pipeline stage."""

    identifier = None
    name = None
    description = None
    optional = False

    def __init__(self) -> None:
        if type(self) is Stage:
            raise NotImplementedError

    def run(
            self, context: strixforge.context.Context,
            sink: strixforge.ui.Sink) -> None:
        """
        Runs the stage, reporting progress to sink.  Raises an exception if
        the stage failed.  Called at most once per pipeline run.

        Keyword arguments:
        context -- the execution context
        sink    -- the front end
        """
        raise NotImplementedError

    def rollback(self, context: strixforge.context.Context) -> None:
        """
        Reverts what the last run changed, as far as the stage is able to.

        Keyword arguments:
        context -- the execution context
        """
        pass
