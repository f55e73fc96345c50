"""Tests for the kernel configuration stage."""

import pathlib

import pytest

import strixforge.boot
import strixforge.device
import strixforge.device.strixhalo
import strixforge.engine
import strixforge.error
import strixforge.stage.kernel
import strixforge.system.host
import strixforge.system.package
import strixforge.ui
from conftest import GRUB_DEFAULT, RecordingSink, make_grub

LogLevel = strixforge.ui.LogLevel
Status = strixforge.stage.Status


class FakeLoader(object):
    """Boot loader which records what the stage asks of it."""

    def __init__(self, name: str, error: str = None) -> None:
        self.name = name
        self.parameters = []
        self.restored = []
        self._error = error

    def backup(self, context) -> pathlib.Path:
        return pathlib.Path(f"/etc/{self.name}.backup")

    def add_param(self, context, parameter: str) -> None:
        self.parameters.append(parameter)

        if self._error:
            raise strixforge.error.BootloaderError(self._error)

    def restore(self, context, backup: pathlib.Path) -> None:
        self.restored.append(backup)


@pytest.fixture
def host(shell, monkeypatch):
    """A host running a supported kernel with 32 GB of memory."""
    shell.outputs["uname"] = "6.18.2-arch1-1\n"
    monkeypatch.setattr(strixforge.system.host, "total_memory", lambda: 32)
    return shell


def memory(monkeypatch, gigabytes: int) -> None:
    monkeypatch.setattr(
        strixforge.system.host, "total_memory", lambda: gigabytes)


def loaders(monkeypatch, *fakes: FakeLoader) -> None:
    monkeypatch.setattr(
        strixforge.boot, "detect", lambda root=None: list(fakes))


def warnings(sink: RecordingSink) -> list:
    return sink.messages(LogLevel.WARN)


# =============================================================================
# Kernel version
# =============================================================================


class TestKernelVersion:
    @pytest.mark.parametrize("release", ["6.17.9-arch1-1", "5.15.0", "bogus"])
    def test_unsupported(self, tmp_path, context, sink, host, release):
        host.outputs["uname"] = release
        make_grub(tmp_path)
        stage = strixforge.stage.kernel.KernelStage(None, tmp_path)

        with pytest.raises(strixforge.error.HostError) as e:
            stage.run(context, sink)

        assert "6.18+" in e.value.message
        assert [["uname", "-r"]] == host.commands
        assert [10] == sink.percents()

    def test_uname_fails(self, tmp_path, context, sink, host):
        host.failures["uname"] = "uname: broken"
        stage = strixforge.stage.kernel.KernelStage(None, tmp_path)

        with pytest.raises(strixforge.error.HostError):
            stage.run(context, sink)

    def test_newer_kernel(self, tmp_path, context, sink, host):
        host.outputs["uname"] = "7.0.1-cachyos"
        stage = strixforge.stage.kernel.KernelStage(None, tmp_path)

        stage.run(context, sink)

        assert "Kernel version meets requirements" in sink.messages()


# =============================================================================
# Boot loaders
# =============================================================================


class TestBootLoaders:
    def test_none_detected(self, tmp_path, context, sink, host):
        stage = strixforge.stage.kernel.KernelStage(None, tmp_path)

        stage.run(context, sink)

        assert [10, 20, 60, 75, 100] == sink.percents()
        assert any(
            "iommu=pt amd_pstate=active" in message
            for message in warnings(sink))
        assert not any("warning(s)" in message for message in warnings(sink))

    def test_grub(self, tmp_path, context, sink, host):
        path = make_grub(tmp_path)
        stage = strixforge.stage.kernel.KernelStage(None, tmp_path)

        stage.run(context, sink)

        assert 'GRUB_CMDLINE_LINUX_DEFAULT="loglevel=3 quiet iommu=pt ' \
            'amd_pstate=active"' in path.read_text()
        assert 2 == len(host.ran("grub-mkconfig"))
        assert 1 == len(list(path.parent.glob("grub.backup-*")))
        assert [10, 20, 20, 40, 60, 75, 100] == sink.percents()
        assert [] == warnings(sink)

    def test_already_configured(self, tmp_path, context, sink, host):
        path = make_grub(tmp_path, GRUB_DEFAULT.replace(
            "quiet", "quiet iommu=pt amd_pstate=active"))
        stage = strixforge.stage.kernel.KernelStage(None, tmp_path)

        stage.run(context, sink)

        assert 1 == path.read_text().count("iommu=pt")
        assert [] == host.ran("tee")
        assert [] == host.ran("grub-mkconfig")

    def test_every_loader_despite_failures(
            self, context, sink, host, monkeypatch):
        first = FakeLoader("GRUB", "broken")
        second = FakeLoader("rEFInd")
        loaders(monkeypatch, first, second)
        stage = strixforge.stage.kernel.KernelStage(None)

        stage.run(context, sink)

        assert ["iommu=pt", "amd_pstate=active"] == first.parameters
        assert ["iommu=pt", "amd_pstate=active"] == second.parameters
        assert [10, 20, 20, 30, 40, 50, 60, 75, 100] == sink.percents()
        assert any(
            "completed with 2 warning(s)" in message
            for message in warnings(sink))

    def test_not_utf8_is_a_warning(self, tmp_path, context, host):
        path = make_grub(tmp_path)
        path.write_bytes(
            path.read_bytes() + 'GRUB_DISTRIBUTOR="Café"\n'.encode("latin-1"))
        sink = RecordingSink()
        engine = strixforge.engine.Engine(
            [strixforge.stage.kernel.KernelStage(None, tmp_path)], sink)

        results = engine.run(context)

        assert [Status.SUCCESS] == [result.status for result in results]
        assert any(
            message.startswith("Failed to add iommu=pt to GRUB")
            for message in warnings(sink))
        assert any(
            "completed with 2 warning(s)" in message
            for message in warnings(sink))
        assert [] == host.ran("tee")
        assert [] == host.ran("grub-mkconfig")

    def test_rollback(self, tmp_path, context, sink, host):
        path = make_grub(tmp_path)
        stage = strixforge.stage.kernel.KernelStage(None, tmp_path)
        stage.run(context, sink)

        stage.rollback(context)

        assert GRUB_DEFAULT == path.read_text()
        assert 3 == len(host.ran("grub-mkconfig"))

    def test_rollback_order(self, context, sink, host, monkeypatch):
        first = FakeLoader("GRUB")
        second = FakeLoader("Limine")
        loaders(monkeypatch, first, second)
        stage = strixforge.stage.kernel.KernelStage(None)
        stage.run(context, sink)

        stage.rollback(context)

        assert [pathlib.Path("/etc/GRUB.backup")] == first.restored
        assert [pathlib.Path("/etc/Limine.backup")] == second.restored


# =============================================================================
# Device quirks
# =============================================================================


class TestQuirks:
    def test_unknown_device(self, tmp_path, context, sink, host):
        stage = strixforge.stage.kernel.KernelStage(None, tmp_path)

        stage.run(context, sink)

        assert "No recognized device, skipping device quirks" in \
            sink.messages(LogLevel.INFO)

    def test_advisory_is_only_reported(self, tmp_path, context, sink, host):
        device = strixforge.device.Device("Test", "Test", "Test", [
            strixforge.device.Quirk(
                "advice", "Update the BIOS",
                strixforge.device.QuirkType.ADVISORY,
                strixforge.device.Action.PACKAGE, "bios-tool")])
        stage = strixforge.stage.kernel.KernelStage(device, tmp_path)

        stage.run(context, sink)

        assert "Advisory: Update the BIOS" in warnings(sink)
        assert [] == host.ran("yay")

    def test_kernel_parameter(self, context, sink, host, monkeypatch):
        loader = FakeLoader("GRUB")
        loaders(monkeypatch, loader)
        device = strixforge.device.Device("Test", "Test", "Test", [
            strixforge.device.Quirk(
                "blacklist", "Blacklist", strixforge.device.QuirkType.AUTO,
                strixforge.device.Action.KERNEL_PARAMETER,
                "modprobe.blacklist=ice")])
        stage = strixforge.stage.kernel.KernelStage(device)

        stage.run(context, sink)

        assert ["iommu=pt", "amd_pstate=active", "modprobe.blacklist=ice"] == \
            loader.parameters

    def test_kernel_parameter_under_stage_root(
            self, tmp_path, context, sink, host):
        path = make_grub(tmp_path)
        device = strixforge.device.Device("Test", "Test", "Test", [
            strixforge.device.Quirk(
                "blacklist", "Blacklist", strixforge.device.QuirkType.AUTO,
                strixforge.device.Action.KERNEL_PARAMETER,
                "modprobe.blacklist=ice")])
        stage = strixforge.stage.kernel.KernelStage(device, tmp_path)

        stage.run(context, sink)

        assert 'GRUB_CMDLINE_LINUX_DEFAULT="loglevel=3 quiet iommu=pt ' \
            'amd_pstate=active modprobe.blacklist=ice"' in path.read_text()
        assert [] == warnings(sink)

    def test_unreadable_package_database(self, tmp_path, context, sink, host):
        (tmp_path / "var" / "lib" / "pacman" / "local" /
            "ryzenadj-0.16.0-1" / "desc").mkdir(parents=True)
        device = strixforge.device.Device(
            "Test", "Test", "Test", [strixforge.device.strixhalo.TDP_TOOL])
        stage = strixforge.stage.kernel.KernelStage(device, tmp_path)

        stage.run(context, sink)

        assert any(
            message.startswith("Quirk tdp-tool failed")
            for message in warnings(sink))
        assert any(
            "completed with 1 warning(s)" in message
            for message in warnings(sink))
        assert [] == host.ran("yay")

    def test_failure_is_a_warning(self, tmp_path, context, sink, host,
                                  monkeypatch):
        host.failures["yay"] = "error: target not found: ryzenadj"
        monkeypatch.setattr(
            strixforge.system.package.Pacman, "is_installed",
            lambda self, name: False)
        device = strixforge.device.Device(
            "Test", "Test", "Test", [strixforge.device.strixhalo.TDP_TOOL])
        stage = strixforge.stage.kernel.KernelStage(device, tmp_path)

        stage.run(context, sink)

        assert any(
            message.startswith("Quirk tdp-tool failed")
            for message in warnings(sink))
        assert 100 == sink.percents()[-1]

    def test_cancellation_propagates(self, tmp_path, context, sink, host,
                                     monkeypatch):
        def is_installed(self, name):
            context.cancel()
            return False

        monkeypatch.setattr(
            strixforge.system.package.Pacman, "is_installed", is_installed)
        device = strixforge.device.Device(
            "Test", "Test", "Test", [strixforge.device.strixhalo.TDP_TOOL])
        stage = strixforge.stage.kernel.KernelStage(device, tmp_path)

        with pytest.raises(strixforge.error.CancelledError):
            stage.run(context, sink)

        assert [] == host.ran("yay")


# =============================================================================
# ZRAM
# =============================================================================


class TestZRAM:
    def test_high_memory(self, tmp_path, context, sink, host, monkeypatch):
        memory(monkeypatch, 64)
        stage = strixforge.stage.kernel.KernelStage(None, tmp_path)

        stage.run(context, sink)

        assert [[
            "systemctl", "disable", "--now",
            "zram-generator@zram0.service"]] == host.ran("systemctl")

    def test_low_memory(self, tmp_path, context, sink, host, monkeypatch):
        memory(monkeypatch, 63)
        stage = strixforge.stage.kernel.KernelStage(None, tmp_path)

        stage.run(context, sink)

        assert [] == host.ran("systemctl")

    def test_missing_unit(self, tmp_path, context, sink, host, monkeypatch):
        memory(monkeypatch, 128)
        host.failures["systemctl"] = "Unit does not exist"
        stage = strixforge.stage.kernel.KernelStage(None, tmp_path)

        stage.run(context, sink)

        assert any(
            message.startswith("Failed to disable ZRAM")
            for message in warnings(sink))
        assert not any("warning(s)" in message for message in warnings(sink))

    def test_unknown_memory(self, tmp_path, context, sink, host, monkeypatch):
        def total_memory():
            raise strixforge.error.HostError("MemTotal not found")

        monkeypatch.setattr(
            strixforge.system.host, "total_memory", total_memory)
        stage = strixforge.stage.kernel.KernelStage(None, tmp_path)

        stage.run(context, sink)

        assert [] == host.ran("systemctl")
        assert any(
            "completed with 1 warning(s)" in message
            for message in warnings(sink))


# =============================================================================
# Dry run
# =============================================================================


def test_dry_run_mirrors_wet_run(tmp_path, context, host, monkeypatch):
    memory(monkeypatch, 128)
    dry = make_grub(tmp_path / "dry")
    wet = make_grub(tmp_path / "wet")
    sinks = {}

    for root, dry_run in [(dry.parents[2], True), (wet.parents[2], False)]:
        sinks[dry_run] = RecordingSink()
        engine = strixforge.engine.Engine(
            [strixforge.stage.kernel.KernelStage(None, root)],
            sinks[dry_run])
        engine.set_dry_run(dry_run)
        host.commands.clear()

        results = engine.run(context)

        assert [Status.SUCCESS] == [result.status for result in results]

        if dry_run:
            assert [["uname", "-r"]] == host.commands

    assert GRUB_DEFAULT == dry.read_text()
    assert [dry] == list(dry.parent.iterdir())
    assert "iommu=pt" in wet.read_text()
    assert sinks[True].percents() == sinks[False].percents()
