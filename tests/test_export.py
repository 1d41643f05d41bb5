import numpy as np
import pytest

from errors import InvalidOffsetError
from export import bake_displacements, encode_frame, export_vdisp
from reader import VDispReader


def test_bake_displacements() -> None:
    P = np.array([[0, 0, 0], [1, 1, 1]], dtype=np.float64)
    V = np.stack([P, P + [0.5, 0, 0], P * 2])
    D = bake_displacements(V, P)
    assert D.shape == (3, 2, 3)
    assert D.dtype == np.float32
    np.testing.assert_array_equal(D[0], np.zeros((2, 3)))
    np.testing.assert_array_equal(D[1], [[0.5, 0, 0], [0.5, 0, 0]])
    np.testing.assert_array_equal(D[2], [[0, 0, 0], [1, 1, 1]])


def test_encode_frame_layout() -> None:
    data = encode_frame({"Ab": np.array([[1, 2, 3]])})
    assert data[:8] == b"\x02\x00\x00\x00\x01\x00\x00\x00"
    assert data[8:10] == b"Ab"
    assert len(data) == 8 + 2 + 12


def test_export_then_read(tmp_path, capsys) -> None:
    path = tmp_path / "exports" / "anim.vdisp"
    body = np.arange(12, dtype=np.float32).reshape(4, 3)
    cloth = -np.ones((2, 3), dtype=np.float32)
    frames = [{"Cloth": cloth, "Body": body}, None, {"Body": body * 2}]
    export_vdisp(str(path), frames, frame_start=10, fps=30)
    assert "exported" in capsys.readouterr().out

    reader = VDispReader.open(path)
    assert reader.frame_count() == 3
    assert (reader.header.frame_start, reader.header.frame_end, reader.header.fps) == (10, 12, 30)

    np.testing.assert_array_equal(reader.load_frame(0, "Body", 4).displacements, body)
    np.testing.assert_array_equal(reader.load_frame(0, "Cloth", 2).displacements, cloth)
    np.testing.assert_array_equal(reader.load_frame(2, "Body", 4).displacements, body * 2)
    assert not reader.load_frame(2, "Cloth", 2).found
    with pytest.raises(InvalidOffsetError):
        reader.load_frame(1, "Body", 4)


def test_export_requires_a_frame(tmp_path) -> None:
    with pytest.raises(ValueError):
        export_vdisp(str(tmp_path / "x.vdisp"), [])
