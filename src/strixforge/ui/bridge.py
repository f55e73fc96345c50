#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import queue
import threading
import typing

import strixforge.context
import strixforge.ui


class Event(object):
    """Pipeline notification or prompt passed to the front end."""

    def __init__(self, kind: str, **kwargs: typing.Any) -> None:
        self.kind = kind
        self.__dict__.update(kwargs)

    @property
    def is_prompt(self) -> bool:
        return self.kind in ["confirm", "select", "prompt"]


class Bridge(strixforge.ui.Sink):
    """
    Sink for front ends which run on a different thread than the pipeline,
    like a browser or a native window.  Notifications are queued without
    blocking the pipeline; prompts block the pipeline until the front end
    calls answer().
    """

    def __init__(self) -> None:
        super().__init__()
        self.events = queue.Queue()
        self._answers = queue.Queue()

    def answer(self, value: typing.Any) -> None:
        """
        Answers the prompt the pipeline is currently waiting on.

        Keyword arguments:
        value -- bool for confirm, int for select, str for prompt
        """
        self._answers.put(value)

    def start(
            self, engine: typing.Any,
            context: strixforge.context.Context) -> threading.Thread:
        """
        Runs engine on a new thread, returning the thread.  The last event is
        always "done", carrying the error which ended the run or None.

        Keyword arguments:
        engine  -- the engine
        context -- the execution context
        """
        def run() -> None:
            error = None

            try:
                engine.run(context)
            except Exception as e:
                error = e

            self.events.put(Event("done", error=error))

        thread = threading.Thread(target=run, name="strixforge-engine")
        thread.start()
        return thread

    def stage_start(self, stage: typing.Any) -> None:
        self.events.put(Event("stage_start", stage=stage))

    def stage_complete(self, result: typing.Any) -> None:
        self.events.put(Event("stage_complete", result=result))

    def progress(self, percent: int, message: str) -> None:
        self.events.put(Event("progress", percent=percent, message=message))

    def log(self, level: strixforge.ui.LogLevel, message: str) -> None:
        self.events.put(Event("log", level=level, message=message))

    def confirm(self, message: str, default: bool) -> bool:
        self.events.put(Event("confirm", message=message, default=default))
        return bool(self._answers.get())

    def select(
            self, message: str, options: typing.Sequence[str],
            default: int = 0) -> int:
        self.events.put(Event(
            "select", message=message, options=list(options),
            default=default))
        return int(self._answers.get())

    def prompt(self, message: str, default: str) -> str:
        self.events.put(Event("prompt", message=message, default=default))
        return str(self._answers.get())
