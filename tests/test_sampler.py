"""
Frame Sampler Tests
===================

Sample counts, strictly sequential seeking, all-or-nothing caching and
superseded runs.
"""

import asyncio
import math

import pytest

from ascii_video.sampling.sampler import FrameSampler, SamplingError, sample_count


class TestSampleCount:
    """Tests for the number of preview samples."""

    @pytest.mark.parametrize("duration,expected", [
        (2.0, 20),
        (0.25, 2),
        (10.0, 100),
        (20.0, 100),
        (0.05, 0),
        (0.0, 0),
        (-1.0, 0),
        (math.nan, 0),
        (math.inf, 0),
    ])
    def test_defaults(self, duration, expected):
        assert sample_count(duration) == expected

    def test_custom_bounds(self):
        assert sample_count(3.0, max_samples=10, samples_per_second=2) == 6
        assert sample_count(30.0, max_samples=10, samples_per_second=2) == 10


class TestFrameSampler:
    """Tests for FrameSampler.sample."""

    def test_samples_evenly_in_order(self, fake_source):
        """Verify sample i is captured at i * duration / count."""
        source = fake_source(duration=2.0)
        sampler = FrameSampler(source)

        frames = asyncio.run(sampler.sample())

        assert len(frames) == 20
        assert source.seeks == pytest.approx([i * 0.1 for i in range(20)])
        assert [f.index for f in frames] == list(range(20))
        assert [int(f.pixels[0, 0, 0]) for f in frames] == list(range(20))

    def test_long_video_is_capped(self, fake_source):
        source = fake_source(duration=20.0)
        sampler = FrameSampler(source)

        frames = asyncio.run(sampler.sample())

        assert len(frames) == 100
        assert source.seeks[1] == pytest.approx(0.2)
        assert source.seeks[-1] == pytest.approx(19.8)

    def test_seeks_never_overlap(self, fake_source):
        """Verify each seek completes before the next is issued."""
        source = fake_source(duration=5.0)

        asyncio.run(FrameSampler(source).sample())

        assert source.overlapping_seeks == 0
        assert len(source.seeks) == 50

    def test_cached_frames_are_immutable(self, fake_source):
        sampler = FrameSampler(fake_source(duration=1.0))
        asyncio.run(sampler.sample())

        frame = sampler.frame_at(0)
        assert frame.pixels.flags.writeable is False
        with pytest.raises(ValueError):
            frame.pixels[0, 0, 0] = 1

    def test_frame_at_out_of_range(self, fake_source):
        sampler = FrameSampler(fake_source(duration=1.0))
        asyncio.run(sampler.sample())

        assert sampler.total_frames == 10
        assert sampler.frame_at(10) is None
        assert sampler.frame_at(-1) is None

    def test_too_short_video_caches_nothing(self, fake_source):
        source = fake_source(duration=0.05)
        sampler = FrameSampler(source)

        assert asyncio.run(sampler.sample()) == ()
        assert source.seeks == []

    def test_seek_failure_leaves_cache_empty(self, fake_source):
        """Verify a mid-run failure discards all captured frames."""
        sampler = FrameSampler(fake_source(duration=1.0))
        asyncio.run(sampler.sample())
        assert sampler.total_frames == 10

        sampler.source = fake_source(duration=1.0, fail_at=5)
        with pytest.raises(SamplingError, match="frame 5"):
            asyncio.run(sampler.sample())

        assert sampler.frames == ()
        assert sampler.total_frames == 0

    def test_load_failure(self, fake_source):
        sampler = FrameSampler(fake_source(fail_load=True))

        with pytest.raises(SamplingError, match="Failed to load video"):
            asyncio.run(sampler.sample())
        assert sampler.frames == ()

    def test_superseded_run_is_discarded(self, fake_source):
        """Verify a run stops and publishes nothing once it is no longer current."""
        state = {"current": True}

        def supersede(seek_index):
            if seek_index == 3:
                state["current"] = False

        source = fake_source(duration=2.0, on_seek=supersede)
        sampler = FrameSampler(source)

        result = asyncio.run(sampler.sample(is_current=lambda: state["current"]))

        assert result is None
        assert sampler.frames == ()
        assert len(source.seeks) == 4

    def test_failure_after_supersede_is_discarded(self, fake_source):
        """Verify a seek failing because its run was replaced is not reported as an error."""
        state = {"current": True}
        source = fake_source(duration=2.0)
        sampler = FrameSampler(source)

        async def scenario():
            task = asyncio.create_task(sampler.sample(is_current=lambda: state["current"]))
            await asyncio.sleep(0)
            state["current"] = False
            source.close()
            return await task

        assert asyncio.run(scenario()) is None
        assert sampler.frames == ()
        assert source.seeks == []

    def test_failure_of_current_run_still_raises(self, fake_source):
        source = fake_source(duration=2.0)
        sampler = FrameSampler(source)

        async def scenario():
            task = asyncio.create_task(sampler.sample())
            await asyncio.sleep(0)
            source.close()
            return await task

        with pytest.raises(SamplingError, match="Video not loaded"):
            asyncio.run(scenario())

    @pytest.mark.parametrize("kwargs", [{"max_samples": 0}, {"samples_per_second": 0}])
    def test_invalid_bounds(self, fake_source, kwargs):
        with pytest.raises(ValueError):
            FrameSampler(fake_source(), **kwargs)
