#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import syslog
import typing

import strixforge.context
import strixforge.error
import strixforge.stage
import strixforge.ui

Result = strixforge.stage.Result
Status = strixforge.stage.Status


class Engine(object):
    """Runs the installation pipeline stage by stage."""

    def __init__(
            self, stages: typing.Sequence[strixforge.stage.Stage],
            sink: strixforge.ui.Sink,
            skip: typing.Iterable[str] = ()) -> None:
        self._stages = list(stages)
        self._sink = sink
        self._skip = set(skip)
        self._dry_run = False
        self._index = -1
        self._results = []

    @property
    def stages(self) -> typing.List[strixforge.stage.Stage]:
        return list(self._stages)

    @property
    def results(self) -> typing.List[Result]:
        return list(self._results)

    @property
    def current(self) -> typing.Optional[strixforge.stage.Stage]:
        """The stage currently running, None outside of run()."""
        if 0 <= self._index < len(self._stages):
            return self._stages[self._index]

        return None

    def set_dry_run(self, dry_run: bool) -> None:
        """
        Enables or disables dry-run mode.  Must be called before run().

        Keyword arguments:
        dry_run -- True if no persisted host mutation may occur
        """
        self._dry_run = dry_run

    def run(self, context: strixforge.context.Context) -> typing.List[Result]:
        """
        Runs all stages in order, returning their results.  A failing
        optional stage is recorded and the pipeline continues; a failing
        required stage ends the pipeline with StageError.  Cancellation ends
        the pipeline with CancelledError.

        Keyword arguments:
        context -- the execution context
        """
        context = context.with_dry_run(self._dry_run)
        self._results = []

        try:
            for self._index, stage in enumerate(self._stages):
                context.check()

                if stage.identifier in self._skip:
                    self._complete(Result(stage.name, Status.SKIPPED))
                    continue

                self._sink.stage_start(stage)

                if self._dry_run:
                    self._sink.log(
                        strixforge.ui.LogLevel.INFO,
                        f"Dry run: {stage.name} will not change the system")

                try:
                    stage.run(context, self._sink)
                except strixforge.error.CancelledError as e:
                    self._complete(Result(stage.name, Status.FAILED, e))
                    raise
                except Exception as e:
                    self._complete(Result(stage.name, Status.FAILED, e))

                    if not isinstance(e, strixforge.error.Error):
                        syslog.syslog(
                            syslog.LOG_ERR, f"Unexpected error in stage "
                            f"{stage.identifier}: {e!r}")

                    if not stage.optional:
                        raise strixforge.error.StageError(
                            f"Stage {stage.name} failed: {e}", stage, e)

                    continue

                self._complete(Result(stage.name, Status.SUCCESS))
        finally:
            self._index = -1

        return self.results

    def _complete(self, result: Result) -> None:
        self._results.append(result)

        if Status.FAILED == result.status:
            syslog.syslog(
                syslog.LOG_WARNING, f"Stage {result.stage_name} failed: "
                f"{result.error}")
        else:
            syslog.syslog(
                syslog.LOG_INFO, f"Stage {result.stage_name}: "
                f"{result.status.value}")

        self._sink.stage_complete(result)
