import numpy as np

from heatmap_tracks.records import RecordSet
from heatmap_tracks.trail import GapPolicy, build_trail

SCENARIO = np.array([[0.0, 0.0, 0.0], [0.01, 0.0, 0.0], [10.0, 10.0, 10.0]])


def test_non_gated_trail_keeps_every_sample_in_order():
    rng = np.random.default_rng(5)
    points = rng.uniform(-20.0, 20.0, size=(25, 3))
    trail = build_trail(points, close_only=False, max_segment_distance=0.1)
    assert len(trail) == len(points)
    assert np.array_equal(trail.vertices, points)
    assert trail.segment_visible.all()
    assert len(trail.segment_visible) == len(points) - 1


def test_compact_policy_omits_far_sample():
    trail = build_trail(SCENARIO, close_only=True, max_segment_distance=1.0)
    assert trail.policy is GapPolicy.COMPACT
    assert trail.vertices.shape == (2, 3)
    assert np.array_equal(trail.vertices, SCENARIO[:2])
    assert trail.segment_visible.tolist() == [True]
    assert trail.source_indices.tolist() == [0, 1]
    assert trail.connected.tolist() == [True, True, False]


def test_zero_fill_policy_keeps_one_vertex_per_sample():
    trail = build_trail(SCENARIO, close_only=True, max_segment_distance=1.0, policy=GapPolicy.ZERO_FILL)
    assert trail.vertices.shape == (3, 3)
    assert trail.vertices[2].tolist() == [0.0, 0.0, 0.0]
    assert trail.segment_visible.tolist() == [True, False]


def test_policy_accepts_config_strings():
    trail = build_trail(SCENARIO, close_only=True, max_segment_distance=1.0, policy="zero_fill")
    assert trail.policy is GapPolicy.ZERO_FILL


def test_gating_is_relative_to_true_previous_sample():
    points = np.array([[0.0, 0.0, 0.0], [5.0, 0.0, 0.0], [5.5, 0.0, 0.0], [6.0, 0.0, 0.0]])
    trail = build_trail(points, close_only=True, max_segment_distance=1.0)
    # sample 1 jumps away; sample 2 is close to sample 1 even though 1 is not drawn
    assert trail.connected.tolist() == [True, False, True, True]
    assert trail.source_indices.tolist() == [0, 2, 3]
    assert trail.segment_visible.tolist() == [False, True]


def test_segment_at_exact_threshold_is_visible():
    points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
    trail = build_trail(points, close_only=True, max_segment_distance=1.0)
    assert trail.segment_visible.tolist() == [True]


def test_runs_split_on_hidden_segments():
    points = np.array(
        [[0.0, 0.0, 0.0], [0.5, 0.0, 0.0], [9.0, 0.0, 0.0], [9.5, 0.0, 0.0], [10.0, 0.0, 0.0], [30.0, 0.0, 0.0]]
    )
    trail = build_trail(points, close_only=True, max_segment_distance=1.0, policy=GapPolicy.ZERO_FILL)
    runs = trail.runs()
    assert [len(run) for run in runs] == [2, 2]
    assert runs[0][:, 0].tolist() == [0.0, 0.5]
    assert runs[1][:, 0].tolist() == [9.5, 10.0]


def test_empty_and_single_sample():
    empty = build_trail(np.zeros((0, 3)), close_only=True, max_segment_distance=1.0)
    assert len(empty) == 0
    assert len(empty.segment_visible) == 0
    assert empty.runs() == []

    single = build_trail(np.array([[1.0, 2.0, 3.0]]), close_only=True, max_segment_distance=1.0)
    assert single.vertices.tolist() == [[1.0, 2.0, 3.0]]
    assert len(single.segment_visible) == 0


def test_trail_from_record_set_uses_requested_source():
    rows = [
        {"xpos": float(i), "ypos": 0.0, "zpos": 0.0, "EtPositionX": 0.0, "EtPositionY": float(i), "EtPositionZ": 0.0}
        for i in range(3)
    ]
    records = RecordSet.from_records(rows)
    gaze_trail = build_trail(records, close_only=False, max_segment_distance=1.0)
    head_trail = build_trail(records, close_only=False, max_segment_distance=1.0, source="position")
    assert gaze_trail.vertices[:, 1].tolist() == [0.0, 1.0, 2.0]
    assert head_trail.vertices[:, 0].tolist() == [0.0, 1.0, 2.0]
