"""
Preview Window Tests
====================

Skip range and slider position mapping onto the sampled frames.
"""

import pytest

from ascii_video.sampling.preview import PreviewWindow


class TestPreviewMapping:
    """Tests for effective range and index mapping."""

    def test_empty_window(self):
        """Verify a window without frames has no index."""
        window = PreviewWindow()

        assert window.effective_frames == 0
        assert window.actual_index is None
        assert window.state()["empty"] is True

    def test_actual_index_offsets_by_skip_start(self):
        window = PreviewWindow(total_frames=50, skip_start=5, skip_end=10)

        assert window.effective_frames == 35
        assert window.move_to(0) == 5
        assert window.move_to(3) == 8
        assert window.move_to(34) == 39

    def test_position_clamps_to_range(self):
        """Verify the slider cannot pass the last effective frame."""
        window = PreviewWindow(total_frames=50)
        window.configure(skip_start=5, skip_end=10)

        assert window.move_to(40) == 39
        assert window.position == 34
        assert window.max_position == 34

    def test_negative_position_clamps_to_zero(self):
        window = PreviewWindow(total_frames=10)

        assert window.move_to(-3) == 0
        assert window.position == 0

    def test_growing_skip_reclamps_position(self):
        """Verify a shrinking range pulls the slider back."""
        window = PreviewWindow(total_frames=10)
        window.move_to(9)

        assert window.configure(skip_end=5) == 4
        assert window.position == 4

    def test_skip_consuming_all_frames_is_empty(self):
        """Verify an over-large skip range yields the empty state, not an error."""
        window = PreviewWindow(total_frames=10)

        assert window.configure(skip_start=6, skip_end=6) is None
        assert window.actual_index is None
        assert window.max_position == 0
        assert window.state()["empty"] is True

    def test_skip_exactly_all_frames_is_empty(self):
        window = PreviewWindow(total_frames=10, skip_start=4, skip_end=6)

        assert window.effective_frames == 0
        assert window.actual_index is None

    def test_total_frames_update(self):
        """Verify the window follows a new sample count."""
        window = PreviewWindow()
        window.move_to(5)

        assert window.configure(total_frames=20) == 0
        assert window.move_to(5) == 5

    @pytest.mark.parametrize("kwargs", [
        {"total_frames": -1},
        {"skip_start": -1},
        {"skip_end": -2},
    ])
    def test_negative_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            PreviewWindow().configure(**kwargs)


class TestPreviewRendering:
    """Tests for the re-render signal."""

    def test_render_signal_on_change(self):
        rendered = []
        window = PreviewWindow(total_frames=10, on_render=rendered.append)

        window.move_to(3)
        window.configure(skip_start=2)

        assert rendered == [3, 5]

    def test_no_signal_when_empty(self):
        rendered = []
        window = PreviewWindow(total_frames=4, on_render=rendered.append)

        window.configure(skip_start=4)

        assert rendered == []

    def test_no_signal_without_cached_frame(self):
        """Verify nothing renders when the cache lacks the selected frame."""
        rendered = []
        window = PreviewWindow(
            total_frames=10,
            has_frame=lambda index: index < 3,
            on_render=rendered.append,
        )

        assert window.move_to(5) is None
        assert window.move_to(2) == 2
        assert rendered == [2]

    def test_state_snapshot(self):
        window = PreviewWindow(total_frames=20, skip_start=2, skip_end=3)
        window.move_to(100)

        assert window.state() == {
            "total_frames": 20,
            "skip_start": 2,
            "skip_end": 3,
            "effective_frames": 15,
            "position": 14,
            "max_position": 14,
            "actual_index": 16,
            "empty": False,
        }
