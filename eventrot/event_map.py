#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Event Map Lookup Module

Read-only access to the per-pixel event map: for each pixel, the time and
rotation of the most recent event observed there. The map is owned and
updated by the caller; this module only reads a snapshot of it.

Accepted event map forms:
    - (Npix, 3, 3) array of rotation matrices
    - list / dict / Mapping indexed by pixel index whose entries are either
      3x3 rotation matrices or records with a `.rotation` attribute
      (EventMapEntry)

Author: eventrot project
"""

from dataclasses import dataclass

import numpy as np
from scipy.spatial.transform import Rotation as R_scipy


@dataclass(frozen=True)
class EventMapEntry:
    """Last event seen at one pixel."""
    timestamp: float
    rotation: np.ndarray

    @classmethod
    def from_quat(cls, timestamp: float, q_wxyz: np.ndarray) -> "EventMapEntry":
        """Entry from an orientation quaternion [w, x, y, z] (Hamilton)."""
        w, x, y, z = np.asarray(q_wxyz, dtype=float).reshape(4)
        return cls(timestamp=float(timestamp),
                   rotation=R_scipy.from_quat([x, y, z, w]).as_matrix())


def _as_rotation(entry) -> np.ndarray:
    rot = getattr(entry, "rotation", entry)
    rot = np.asarray(rot, dtype=float)
    if rot.shape != (3, 3):
        raise ValueError(f"Event map rotation must be 3x3, got shape {rot.shape}")
    return rot


def lookup_rotations(event_map, pixel_indices: np.ndarray) -> np.ndarray:
    """
    Fetch the recorded rotation for each event's pixel.

    Args:
        event_map: Event map snapshot (see module docstring)
        pixel_indices: N pixel indices, in event order

    Returns:
        (N, 3, 3) stack of rotation matrices, row k for event k

    Raises:
        KeyError: Pixel missing from a Mapping-based event map
        IndexError: Pixel index outside an array/list-based event map
    """
    idx = np.asarray(pixel_indices).reshape(-1).astype(np.intp)

    if isinstance(event_map, np.ndarray):
        if event_map.ndim != 3 or event_map.shape[1:] != (3, 3):
            raise ValueError(f"Event map array must be (Npix, 3, 3), got {event_map.shape}")
        if idx.size and (idx.min() < 0 or idx.max() >= event_map.shape[0]):
            raise IndexError(f"Pixel index out of range for event map of {event_map.shape[0]} pixels")
        return event_map[idx].astype(float)

    rotations = np.empty((idx.size, 3, 3), dtype=float)
    for k, pix in enumerate(idx):
        rotations[k] = _as_rotation(event_map[int(pix)])
    return rotations
