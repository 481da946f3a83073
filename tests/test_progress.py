"""Tests for progress step signalling"""

import pytest

from globlist_packer.models import PackMode
from globlist_packer.progress import ProgressSignal, ProgressStep, steps_for_mode


def test_step_labels():
    assert ProgressStep.SCANNING.label == "Scanning input files"
    assert ProgressStep.FINALIZING.label == "Finalizing and saving archive"
    assert ProgressStep.DONE.label == "Done!"


def test_copy_mode_plan_skips_archive_steps():
    assert steps_for_mode(PackMode.COPY) == (
        ProgressStep.SCANNING, ProgressStep.COPYING, ProgressStep.DONE
    )
    assert len(steps_for_mode(PackMode.ARCHIVE)) == 6


class TestProgressSignal:
    """Test cases for ProgressSignal"""

    def test_events_delivered_in_order(self):
        signal = ProgressSignal(PackMode.ARCHIVE)
        received = []
        signal.subscribe(received.append)

        for step in signal.plan:
            signal.advance(step)

        assert [event.step for event in received] == list(steps_for_mode(PackMode.ARCHIVE))
        assert [event.index for event in received] == list(range(6))
        assert received[-1].is_last
        assert signal.finished
        assert signal.next_step is None

    def test_out_of_order_advance_raises(self):
        signal = ProgressSignal(PackMode.COPY)
        signal.advance(ProgressStep.SCANNING)

        with pytest.raises(RuntimeError, match="out of order"):
            signal.advance(ProgressStep.DONE)

    def test_step_fires_once(self):
        signal = ProgressSignal(PackMode.COPY)
        signal.advance(ProgressStep.SCANNING)

        with pytest.raises(RuntimeError):
            signal.advance(ProgressStep.SCANNING)

    def test_archive_step_rejected_in_copy_mode(self):
        signal = ProgressSignal(PackMode.COPY)
        signal.advance(ProgressStep.SCANNING)
        signal.advance(ProgressStep.COPYING)

        with pytest.raises(RuntimeError):
            signal.advance(ProgressStep.COMPRESSING)

    def test_failing_subscriber_does_not_stop_run(self):
        signal = ProgressSignal(PackMode.COPY)
        received = []

        def broken(event):
            raise ValueError("boom")

        signal.subscribe(broken)
        signal.subscribe(received.append)
        signal.advance(ProgressStep.SCANNING)

        assert len(received) == 1
        assert len(signal.history) == 1
