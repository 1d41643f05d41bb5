import numpy as np

from errors import InvalidOffsetError
from frame_decoder import FrameResult
from player import FrameFollower, apply_displacements, report_frame


class FakeReader:
    path = "/tmp/anim.vdisp"

    def __init__(self):
        self.calls = []

    def load_frame(self, frame_index, object_name, target_vertex_count):
        self.calls.append(frame_index)
        if frame_index == 9:
            raise InvalidOffsetError(frame_index, 0)
        disp = np.full((target_vertex_count, 3), frame_index, dtype=np.float32)
        return FrameResult(disp, True, target_vertex_count)


def test_apply_displacements() -> None:
    rest = np.array([[0, 0, 0], [1, 2, 3]])
    disp = np.array([[0.5, 0, 0], [0, 0, -3]], dtype=np.float32)
    np.testing.assert_allclose(apply_displacements(rest, disp), [[0.5, 0, 0], [1, 2, 0]])


def test_report_not_found(capsys) -> None:
    result = FrameResult(np.zeros((2, 3), np.float32), False)
    messages = report_frame(result, 4, "Body", "/x/anim.vdisp")
    assert messages == ["[VDispLoader] Object 'Body' not found in frame 4 of anim.vdisp."]
    assert "not found" in capsys.readouterr().out


def test_report_vertex_count_mismatch() -> None:
    result = FrameResult(np.zeros((3, 3), np.float32), True, stored_vertex_count=5)
    messages = report_frame(result, 0, "Body", "anim.vdisp")
    assert len(messages) == 1
    assert "5 != mesh vertex count 3" in messages[0]


def test_report_clean_frame_is_silent(capsys) -> None:
    result = FrameResult(np.zeros((3, 3), np.float32), True, stored_vertex_count=3)
    assert report_frame(result, 0, "Body", "anim.vdisp") == []
    assert capsys.readouterr().out == ""


def test_report_truncated_frame() -> None:
    result = FrameResult(np.zeros((1, 3), np.float32), True, 1, truncated=True)
    assert "mid-record" in report_frame(result, 2, "Body", "anim.vdisp")[0]


def test_follower_reloads_only_on_change() -> None:
    reader = FakeReader()
    follower = FrameFollower(reader, "Body", 2)
    assert follower.follow(0) is not None
    assert follower.follow(0) is None
    assert follower.follow(1) is not None
    assert reader.calls == [0, 1]
    np.testing.assert_array_equal(follower.displacements, np.ones((2, 3)))


def test_follower_reload_forces_read() -> None:
    reader = FakeReader()
    follower = FrameFollower(reader, "Body", 2)
    follower.follow(3)
    follower.reload()
    assert reader.calls == [3, 3]


def test_follower_keeps_previous_data_on_bad_frame(capsys) -> None:
    reader = FakeReader()
    follower = FrameFollower(reader, "Body", 2)
    follower.follow(2)
    assert follower.follow(9) is None
    assert "invalid frame offset for frame 9" in capsys.readouterr().out
    np.testing.assert_array_equal(follower.displacements, np.full((2, 3), 2))
    assert follower.follow(9) is None
    assert reader.calls == [2, 9]
