#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import argh
import signal
import sys
import syslog
import typing

import strixforge.boot
import strixforge.configuration
import strixforge.context
import strixforge.engine
import strixforge.error
import strixforge.platform
import strixforge.ui
import strixforge.ui.auto
import strixforge.ui.terminal

LogLevel = strixforge.ui.LogLevel


class Installer(object):
    """Strixforge command line installer."""

    def __init__(self) -> None:
        # Load the configuration.  Raises InitializationError on error.
        self._configuration = strixforge.configuration.Configuration()
        self._platform = strixforge.platform.StrixHalo(self._configuration)
        self._context = strixforge.context.Context()

        # Ctrl+C and SIGTERM abandon the running command and end the pipeline.
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    @argh.arg("--auto", help="run all stages without prompts")
    @argh.arg("--manual", help="choose the stages to run")
    @argh.arg("--dry-run", help="show what would be done without changes")
    def install(
            self, auto: bool = False, manual: bool = False,
            dry_run: bool = False) -> None:
        """Configures this machine for the Strix Halo platform."""
        sink = strixforge.ui.auto.AutoSink() if auto \
            else strixforge.ui.terminal.TerminalSink()

        sink.log(LogLevel.INFO, f"{self._platform.name} post-installer")

        # An unknown device only means that there are no quirks to apply.
        try:
            device = self._platform.detect(self._context)
            sink.log(LogLevel.INFO, f"Detected: {device.name}")

            for quirk in device.quirks:
                sink.log(LogLevel.INFO, f"Device note: {quirk.description}")
        except strixforge.error.UnknownDeviceError as e:
            device = None
            sink.log(LogLevel.WARN, f"Could not detect device: {e.message}")

        stages = self._platform.stages(device)
        skip = set(self._configuration.skip)

        if manual:
            for stage in stages:
                if stage.identifier not in skip and not sink.confirm(
                        f"Run stage {stage.name}?", True):
                    skip.add(stage.identifier)

        engine = strixforge.engine.Engine(stages, sink, skip)
        engine.set_dry_run(dry_run)

        if dry_run:
            sink.log(LogLevel.WARN, "Dry run mode, no changes will be made")

        if not sink.confirm("Start installation?", True):
            return

        try:
            engine.run(self._context)
        except (strixforge.error.StageError,
                strixforge.error.CancelledError) as e:
            sink.log(LogLevel.ERROR, f"Installation failed: {e.message}")
            exit(-1)

        sink.log(LogLevel.INFO, "Installation complete")

    def detect(self) -> None:
        """Shows the detected device and boot loaders without changes."""
        try:
            device = self._platform.detect(self._context)
            print(
                f"Device: {device.name} ({device.manufacturer} "
                f"{device.product})")

            for quirk in device.quirks:
                print(f"  {quirk.type.value:<8} {quirk.description}")
        except strixforge.error.UnknownDeviceError as e:
            print(f"Device: {e.message}")

        loaders = strixforge.boot.detect()

        if loaders:
            for loader in loaders:
                print(f"Boot loader: {loader.name} ({loader.path})")
        else:
            print("Boot loader: none detected")

    def _signal_handler(self, number, frame) -> None:
        self._context.cancel()


def main(args: typing.List[str] = None) -> None:
    """Entry point."""
    if args is None:
        args = sys.argv[1:]

    # Set syslog logging options.
    syslog.openlog("strixforge")

    try:
        # Initialize the installer.
        installer = Installer()

        # Process command line arguments.
        parser = argh.ArghParser(prog="strixforge")
        parser.add_commands([installer.install, installer.detect])
        parser.dispatch(argv=args)
    except strixforge.error.InitializationError as e:
        print(f"Failed to start strixforge: {e.message}.")
        exit(-1)


if __name__ == "__main__":
    main()
