"""Tests for the polling driver loop."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from unittest.mock import Mock

import pytest

from quietwatch.watching.marker import touch_marker
from quietwatch.watching.runner import WatchEvent, WatchRunner
from quietwatch.watching.scanner import ExclusionSet, PatternSet
from quietwatch.watching.settings import WatchSettings

TAG = "# quietwatch: "


class ManualClock:
    def __init__(self, start: float = 0.0) -> None:
        self.current = start

    def now(self) -> float:
        return self.current


def write(path: Path, mtime: float, text: str = "x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    write(tmp_path / "docs" / "index.qmd", 1_000.0)
    (tmp_path / "_quarto.yml").write_text("project:\n  type: website\n", encoding="utf-8")
    return tmp_path


def make_settings(
    project: Path,
    poll_interval: float = 0.2,
    quiet_period: float = 1.5,
) -> WatchSettings:
    return WatchSettings(
        project_root=project,
        marker_path=project / "_quarto.yml",
        roots=(project,),
        exclusions=ExclusionSet([".git", "_site"]),
        patterns=PatternSet(["*.qmd", "*.yml"]),
        poll_interval=poll_interval,
        quiet_period=quiet_period,
        tag=TAG,
    )


def marker_lines(project: Path) -> list[str]:
    return (project / "_quarto.yml").read_text(encoding="utf-8").splitlines()


class TestTick:
    """Tests for single poll iterations with a manual clock."""

    def test_scenario_fires_once(self, project: Path) -> None:
        """Arm at 200 ms, touch once at 1700 ms, nothing more by 3000 ms."""
        clock = ManualClock()
        events: list[WatchEvent] = []
        runner = WatchRunner(make_settings(project), clock=clock, on_event=events.append)

        fired_at: list[float] = []
        for ms in range(200, 3001, 200):
            clock.current = ms / 1000
            if runner.tick().fire:
                fired_at.append(clock.current)

        assert len(fired_at) == 1
        assert fired_at[0] >= 1.7
        assert runner.touch_count == 1
        assert [e.kind for e in events] == ["change", "touch"]
        assert events[0].timestamp == 1_000.0
        assert events[0].path == project / "docs" / "index.qmd"
        assert marker_lines(project)[-1].startswith(TAG)

    def test_marker_write_does_not_retrigger(self, project: Path) -> None:
        """The runner's own marker update never counts as a change."""
        clock = ManualClock()
        runner = WatchRunner(make_settings(project, quiet_period=0.0), clock=clock)

        assert runner.tick().fire is True
        os.utime(project / "_quarto.yml", (99_000.0, 99_000.0))

        for step in range(1, 10):
            clock.current = float(step)
            transition = runner.tick()
            assert transition.changed is False
            assert transition.fire is False
        assert runner.touch_count == 1

    def test_symlinked_marker_does_not_retrigger(self, project: Path) -> None:
        """Touching the marker through a watched symlink fires only once."""
        link = project / "docs" / "site.yml"
        try:
            os.symlink(Path("..") / "_quarto.yml", link)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported here")

        def touch(path: Path, tag: str) -> str:
            line = touch_marker(path, tag)
            stamp = 100_000.0 + runner.touch_count
            os.utime(path, (stamp, stamp))
            return line

        clock = ManualClock()
        runner = WatchRunner(make_settings(project, quiet_period=0.0), clock=clock, touch=touch)

        for step in range(5):
            clock.current = float(step)
            runner.tick()

        assert runner.touch_count == 1
        assert runner.state.highest_seen == 1_000.0

    def test_new_edit_after_fire_touches_again(self, project: Path) -> None:
        """A strictly newer file after a touch arms the runner again."""
        clock = ManualClock()
        runner = WatchRunner(make_settings(project, quiet_period=1.0), clock=clock)

        runner.tick()
        clock.current = 1.0
        assert runner.tick().fire is True

        write(project / "docs" / "new.qmd", 2_000.0)
        clock.current = 1.2
        assert runner.tick().changed is True
        clock.current = 2.2
        assert runner.tick().fire is True
        assert runner.touch_count == 2
        assert runner.state.highest_seen == 2_000.0

        lines = marker_lines(project)
        assert sum(1 for line in lines if line.startswith(TAG)) == 1

    def test_excluded_file_never_arms(self, project: Path) -> None:
        """An edit inside an excluded directory is invisible."""
        clock = ManualClock()
        runner = WatchRunner(make_settings(project, quiet_period=0.5), clock=clock)
        runner.tick()
        clock.current = 1.0
        runner.tick()

        write(project / "docs" / ".git" / "hooks" / "x.qmd", 50_000.0)
        write(project / "_site" / "index.qmd", 50_000.0)
        clock.current = 2.0
        transition = runner.tick()

        assert transition.changed is False
        assert runner.state.highest_seen == 1_000.0

    def test_empty_project_stays_idle(self, tmp_path: Path) -> None:
        (tmp_path / "_quarto.yml").write_text("x: 1\n")
        clock = ManualClock()
        touch = Mock(return_value="line")
        runner = WatchRunner(
            make_settings(tmp_path, quiet_period=0.0), clock=clock, touch=touch
        )

        for step in range(5):
            clock.current = float(step)
            runner.tick()

        touch.assert_not_called()
        assert runner.state.pending is False

    def test_touch_receives_marker_and_tag(self, project: Path) -> None:
        touch = Mock(return_value=TAG + "now")
        runner = WatchRunner(
            make_settings(project, quiet_period=0.0), clock=ManualClock(), touch=touch
        )

        runner.tick()

        touch.assert_called_once_with(project / "_quarto.yml", TAG)

    def test_touch_failure_propagates(self, project: Path) -> None:
        """Marker write errors are fatal to the tick."""
        touch = Mock(side_effect=PermissionError("read-only"))
        runner = WatchRunner(
            make_settings(project, quiet_period=0.0), clock=ManualClock(), touch=touch
        )

        with pytest.raises(PermissionError):
            runner.tick()

    def test_event_callback_errors_are_logged(
        self, project: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A failing listener never breaks the loop."""
        on_event = Mock(side_effect=RuntimeError("listener broke"))
        runner = WatchRunner(
            make_settings(project, quiet_period=0.0),
            clock=ManualClock(),
            on_event=on_event,
        )

        transition = runner.tick()

        assert transition.fire is True
        assert on_event.call_count == 2
        assert runner.touch_count == 1
        assert "listener broke" in caplog.text


class TestWatchEvent:
    def test_to_dict(self) -> None:
        event = WatchEvent(
            kind="touch",
            timestamp=1.5,
            path=Path("/p/_quarto.yml"),
            line="# quietwatch: x",
            observed_at=10.0,
        )
        assert event.to_dict() == {
            "kind": "touch",
            "timestamp": 1.5,
            "path": str(Path("/p/_quarto.yml")),
            "line": "# quietwatch: x",
            "observed_at": 10.0,
        }


class TestRun:
    """Tests for the async loop and its cancellation."""

    @pytest.mark.asyncio
    async def test_preset_stop_returns_immediately(self, project: Path) -> None:
        touch = Mock(return_value="line")
        runner = WatchRunner(make_settings(project, quiet_period=0.0), touch=touch)
        stop = asyncio.Event()
        stop.set()

        await asyncio.wait_for(runner.run(stop), timeout=2.0)

        touch.assert_not_called()
        assert runner.is_running() is False

    @pytest.mark.asyncio
    async def test_stop_before_run_is_honored(self, project: Path) -> None:
        """stop() called before the task starts is not lost."""
        touch = Mock(return_value="line")
        runner = WatchRunner(make_settings(project, quiet_period=0.0), touch=touch)

        runner.stop()
        await asyncio.wait_for(runner.run(), timeout=2.0)

        touch.assert_not_called()
        assert runner.is_running() is False

    @pytest.mark.asyncio
    async def test_can_run_again_after_stop(self, project: Path) -> None:
        """The stop request is consumed when the loop exits."""
        stop = asyncio.Event()
        touch = Mock(return_value="line")
        runner = WatchRunner(
            make_settings(project, poll_interval=0.01, quiet_period=0.0),
            on_event=lambda event: stop.set() if event.kind == "touch" else None,
            touch=touch,
        )

        runner.stop()
        await asyncio.wait_for(runner.run(), timeout=2.0)
        touch.assert_not_called()

        await asyncio.wait_for(runner.run(stop), timeout=2.0)
        touch.assert_called_once()

    @pytest.mark.asyncio
    async def test_stops_after_touch(self, project: Path) -> None:
        """A listener can end the loop through the stop event."""
        stop = asyncio.Event()

        def on_event(event: WatchEvent) -> None:
            if event.kind == "touch":
                stop.set()

        runner = WatchRunner(
            make_settings(project, poll_interval=0.01, quiet_period=0.05),
            on_event=on_event,
        )

        await asyncio.wait_for(runner.run(stop), timeout=5.0)

        assert runner.touch_count == 1
        assert marker_lines(project)[-1].startswith(TAG)

    @pytest.mark.asyncio
    async def test_stop_method_wakes_sleeping_loop(self, project: Path) -> None:
        """stop() ends the loop without waiting out a long poll interval."""
        runner = WatchRunner(make_settings(project, poll_interval=60.0))
        task = asyncio.create_task(runner.run())
        await asyncio.sleep(0.05)
        assert runner.is_running() is True

        runner.stop()
        await asyncio.wait_for(task, timeout=2.0)

        assert runner.is_running() is False

    @pytest.mark.asyncio
    async def test_cancel_ends_loop_quietly(self, project: Path) -> None:
        runner = WatchRunner(make_settings(project, poll_interval=60.0))
        task = asyncio.create_task(runner.run())
        await asyncio.sleep(0.05)

        task.cancel()
        await asyncio.wait_for(asyncio.gather(task, return_exceptions=True), timeout=2.0)

        assert runner.is_running() is False

    @pytest.mark.asyncio
    async def test_marker_failure_ends_run(self, project: Path) -> None:
        touch = Mock(side_effect=OSError("disk gone"))
        runner = WatchRunner(
            make_settings(project, poll_interval=0.01, quiet_period=0.0), touch=touch
        )

        with pytest.raises(OSError, match="disk gone"):
            await asyncio.wait_for(runner.run(), timeout=2.0)
        assert runner.is_running() is False

    @pytest.mark.asyncio
    async def test_second_run_is_ignored(self, project: Path) -> None:
        runner = WatchRunner(make_settings(project, poll_interval=60.0))
        task = asyncio.create_task(runner.run())
        await asyncio.sleep(0.05)

        await asyncio.wait_for(runner.run(), timeout=1.0)
        assert runner.is_running() is True

        runner.stop()
        await asyncio.wait_for(task, timeout=2.0)
