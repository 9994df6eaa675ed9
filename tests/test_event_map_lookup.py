import numpy as np
import pytest

from eventrot.event_map import EventMapEntry, lookup_rotations
from eventrot.math_utils import rotvec_to_rot


def _make_rotations(n: int) -> np.ndarray:
    return np.stack([rotvec_to_rot([0.1 * k, -0.05 * k, 0.2]) for k in range(n)])


def test_array_event_map_preserves_event_order():
    rots = _make_rotations(5)
    out = lookup_rotations(rots, np.array([4, 0, 4, 2]))
    assert out.shape == (4, 3, 3)
    assert np.array_equal(out[0], rots[4])
    assert np.array_equal(out[1], rots[0])
    assert np.array_equal(out[2], rots[4])
    assert np.array_equal(out[3], rots[2])


def test_entry_list_and_dict_event_maps():
    rots = _make_rotations(3)
    entries = [EventMapEntry(timestamp=0.01 * k, rotation=rots[k]) for k in range(3)]
    assert np.array_equal(lookup_rotations(entries, np.array([2, 1])), rots[[2, 1]])

    sparse = {7: entries[0], 42: rots[1]}
    out = lookup_rotations(sparse, np.array([42, 7]))
    assert np.array_equal(out[0], rots[1])
    assert np.array_equal(out[1], rots[0])


def test_missing_pixel_raises():
    with pytest.raises(KeyError):
        lookup_rotations({0: np.eye(3)}, np.array([1]))
    with pytest.raises(IndexError):
        lookup_rotations(_make_rotations(2), np.array([2]))


def test_malformed_rotation_raises():
    with pytest.raises(ValueError):
        lookup_rotations([np.eye(2)], np.array([0]))
    with pytest.raises(ValueError):
        lookup_rotations(np.zeros((4, 3)), np.array([0]))


def test_entry_from_quaternion():
    identity = EventMapEntry.from_quat(1.5, [1.0, 0.0, 0.0, 0.0])
    assert identity.timestamp == 1.5
    assert np.allclose(identity.rotation, np.eye(3))

    half = np.sqrt(0.5)
    yaw90 = EventMapEntry.from_quat(2.0, [half, 0.0, 0.0, half])
    assert np.allclose(yaw90.rotation, rotvec_to_rot([0.0, 0.0, np.pi / 2]), atol=1e-12)
