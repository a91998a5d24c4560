import numpy as np
import pytest

from fracseries import (
    AnalysisConfig,
    FrameResult,
    InputFormatError,
    NumericalError,
    analyze_frame,
    iter_frame_results,
    measure_dimension_series,
)


class RecordingSink:
    """Sink stand-in that records the order of writes and flushes"""

    def __init__(self):
        self.events = []

    def write(self, result):
        self.events.append(('write', result.frame_index))

    def flush(self):
        self.events.append(('flush', None))


class TestAnalyzeFrame:
    """Tests for the single-frame pipeline"""

    def test_full_frame(self, full_frame):
        result = analyze_frame(full_frame, frame_index=3)
        assert isinstance(result, FrameResult)
        assert result.frame_index == 3
        assert result.dimension == pytest.approx(3.0, abs=0.1)
        assert result.lacunarity.shape == (9,)
        assert result.r2 == pytest.approx(1.0)

    def test_empty_frame(self, empty_frame):
        result = analyze_frame(empty_frame)
        assert result.dimension == 0.0
        assert len(result.box_sizes) == 0

    def test_strategies_are_equivalent(self, random_frame):
        seq = analyze_frame(random_frame, strategy='sequential')
        par = analyze_frame(random_frame, strategy='parallel')
        assert seq.dimension == par.dimension
        assert seq.r2 == par.r2
        np.testing.assert_array_equal(seq.lacunarity, par.lacunarity)
        np.testing.assert_array_equal(seq.box_counts, par.box_counts)

    def test_occupied_voxels(self, line_frame, empty_frame):
        assert analyze_frame(line_frame).occupied_voxels == 16
        assert analyze_frame(empty_frame).occupied_voxels == 0

    def test_degenerate_frame_raises(self):
        with pytest.raises(NumericalError):
            analyze_frame(np.full((1, 1, 1), 9))


class TestMeasureDimensionSeries:
    """Tests for the frame driver"""

    def test_empty_then_full(self):
        frames = np.zeros((2, 4, 4, 4), dtype=np.int32)
        frames[1] = 2
        results = measure_dimension_series(frames)
        assert [r.frame_index for r in results] == [0, 1]
        assert results[0].dimension == 0.0
        assert results[1].dimension == pytest.approx(3.0, abs=0.1)

    def test_frames_are_independent(self, line_frame, slab_frame, full_frame):
        frames = np.stack([line_frame, slab_frame, full_frame])
        together = measure_dimension_series(frames)
        alone = [analyze_frame(f).dimension for f in (line_frame, slab_frame, full_frame)]
        assert [r.dimension for r in together] == alone

    def test_sink_order_and_flushes(self):
        frames = np.full((23, 2, 2, 2), 3, dtype=np.int32)
        sink = RecordingSink()
        measure_dimension_series(frames, sink=sink)
        writes = [idx for kind, idx in sink.events if kind == 'write']
        assert writes == list(range(23))
        # flushed right after frames 0, 10, 20 and once at the end
        flush_after = [sink.events[i - 1][1] for i, (kind, _) in enumerate(sink.events) if kind == 'flush']
        assert flush_after == [0, 10, 20, 22]

    def test_custom_flush_interval(self):
        frames = np.full((5, 2, 2, 2), 3, dtype=np.int32)
        sink = RecordingSink()
        measure_dimension_series(frames, config=AnalysisConfig(flush_every=2), sink=sink)
        assert sum(1 for kind, _ in sink.events if kind == 'flush') == 4

    def test_failure_aborts_remaining_frames(self):
        frames = np.zeros((3, 1, 1, 1), dtype=np.int32)
        frames[1] = 5
        sink = RecordingSink()
        with pytest.raises(NumericalError):
            measure_dimension_series(frames, sink=sink)
        assert sink.events == [('write', 0), ('flush', None)]

    def test_parallel_series_matches(self, random_frame):
        frames = np.stack([random_frame, random_frame[::-1]])
        seq = measure_dimension_series(frames, strategy='sequential')
        par = measure_dimension_series(frames, strategy='parallel')
        assert [r.dimension for r in seq] == [r.dimension for r in par]

    def test_rejects_non_4d(self, full_frame):
        with pytest.raises(InputFormatError):
            measure_dimension_series(full_frame)

    def test_iterator_is_lazy(self):
        frames = np.zeros((3, 1, 1, 1), dtype=np.int32)
        frames[2] = 5
        it = iter_frame_results(frames)
        assert next(it).frame_index == 0
        assert next(it).frame_index == 1
        with pytest.raises(NumericalError):
            next(it)
