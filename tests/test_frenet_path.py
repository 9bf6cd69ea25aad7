"""
Tests for the rolling (s, d) path state kept between planning cycles.
"""

import pytest

from trajectory_pkg.errors import ContinuityViolation
from trajectory_pkg.frenet_path import FrenetPathState


def _filled_state(nb_points=10):
    state = FrenetPathState(nb_points)
    state.initialize(0.0, 0.0)
    for i in range(nb_points):
        state.write(i, (float(i), 10.0 + i, 20.0 + i), (100.0 + i, 0.1 * i, 0.01 * i))
    return state


class TestInitialize:
    def test_initial_pose_is_read_back_at_rest(self):
        state = FrenetPathState(50)
        state.initialize(100.0, 6.0)

        assert state.is_initialized
        assert state.read(0) == ((100.0, 0.0, 0.0), (6.0, 0.0, 0.0))

    def test_first_graft_index_reads_initial_pose(self):
        """With an empty previous path the first cycle grafts on index N - 1."""
        state = FrenetPathState(50)
        state.initialize(100.0, 6.0)

        assert state.read(49) == ((100.0, 0.0, 0.0), (6.0, 0.0, 0.0))

    def test_buffer_length_is_fixed(self):
        state = FrenetPathState(50)
        assert len(state) == 50
        assert not state.is_initialized


class TestRollForward:
    def test_consumed_sample_becomes_index_zero(self):
        state = _filled_state()
        state.roll_forward(3)

        assert state.read(0) == ((3.0, 13.0, 23.0), (103.0, pytest.approx(0.3), pytest.approx(0.03)))
        assert state.read(6)[0] == (9.0, 19.0, 29.0)
        assert len(state) == 10

    def test_roll_by_zero_is_a_no_op(self):
        state = _filled_state()
        before = [state.read(i) for i in range(10)]
        state.roll_forward(0)

        assert [state.read(i) for i in range(10)] == before

    def test_roll_by_whole_horizon_is_allowed(self):
        state = _filled_state()
        state.roll_forward(10)
        assert len(state) == 10

    @pytest.mark.parametrize("consumed", [-1, 11])
    def test_out_of_range_roll_is_rejected(self, consumed):
        state = _filled_state()
        with pytest.raises(ValueError):
            state.roll_forward(consumed)


class TestContinuityCheck:
    def test_matching_pose_passes(self):
        state = _filled_state()
        state.check_continuity(4, 4.0, 104.0)

    def test_tolerance_is_honored(self):
        state = _filled_state()
        state.check_continuity(4, 4.0 + 1e-9, 104.0, tol=1e-6)

    def test_mismatch_raises_with_details(self):
        state = _filled_state()
        with pytest.raises(ContinuityViolation) as excinfo:
            state.check_continuity(4, 5.0, 104.0)

        assert excinfo.value.index == 4
        assert excinfo.value.tracked == (4.0, 104.0)
        assert excinfo.value.reported == (5.0, 104.0)

    def test_lateral_mismatch_raises(self):
        state = _filled_state()
        with pytest.raises(ContinuityViolation):
            state.check_continuity(4, 4.0, 100.0)
