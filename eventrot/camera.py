#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Camera Model Helpers Module

Bearing vectors of event-camera pixels and the undistortion look-up table
they are read from.

The undistortion table maps a row-major pixel index
    index = row * sensor_width + col
to the undistorted normalized coordinate (x/z, y/z) of that pixel. The
bearing vector of a pixel is the homogeneous ray [x/z, y/z, 1] (not unit
length), in the camera frame X right, Y down, Z forward.

Author: eventrot project
"""

import cv2
import numpy as np
from typing import Union


def pixel_index(col: Union[int, np.ndarray], row: Union[int, np.ndarray],
                sensor_width: int) -> Union[int, np.ndarray]:
    """Row-major index of pixel (col, row) into the undistortion table."""
    return row * sensor_width + col


def bearing_vectors(pixel_indices: np.ndarray, undistortion_table: np.ndarray) -> np.ndarray:
    """
    Look up homogeneous bearing vectors for a batch of pixel indices.

    Args:
        pixel_indices: N integer indices into the undistortion table
        undistortion_table: (Npix, 2) undistorted normalized coordinates

    Returns:
        3xN matrix with columns [x_undist, y_undist, 1]

    Raises:
        IndexError: If any index is outside [0, Npix)
        TypeError: If the indices are not integers
    """
    idx = np.asarray(pixel_indices).reshape(-1)
    if idx.size and not np.issubdtype(idx.dtype, np.integer):
        raise TypeError(f"Pixel indices must be integers, got dtype {idx.dtype}")
    idx = idx.astype(np.intp)

    table = np.asarray(undistortion_table, dtype=float)
    num_pixels = table.shape[0]
    bad = (idx < 0) | (idx >= num_pixels)
    if np.any(bad):
        raise IndexError(
            f"Pixel index {int(idx[bad][0])} out of range for undistortion table of {num_pixels} pixels"
        )

    bearing = np.ones((3, idx.size), dtype=float)
    bearing[0:2, :] = table[idx, 0:2].T
    return bearing


def build_undistortion_table(K: np.ndarray, D: np.ndarray, width: int, height: int,
                             model: str = "radtan") -> np.ndarray:
    """
    Build the (width*height, 2) undistortion look-up table of a sensor.

    Every pixel center (col, row) is undistorted once with OpenCV and stored
    at its row-major index.

    Args:
        K: 3x3 camera intrinsic matrix [fx, 0, cx; 0, fy, cy; 0, 0, 1]
        D: Distortion coefficients
           - radtan: [k1, k2, p1, p2(, k3)] (OpenCV plumb-bob)
           - kannala_brandt: [k1, k2, k3, k4] (OpenCV fisheye)
        width: Sensor width in pixels
        height: Sensor height in pixels
        model: "radtan" or "kannala_brandt"

    Returns:
        (width*height, 2) array of normalized coordinates (x/z, y/z)
    """
    K = np.asarray(K, dtype=np.float64).reshape(3, 3)
    D = np.asarray(D, dtype=np.float64).reshape(-1)

    cols, rows = np.meshgrid(np.arange(width, dtype=np.float64),
                             np.arange(height, dtype=np.float64))
    pts = np.stack([cols.ravel(), rows.ravel()], axis=-1).reshape(-1, 1, 2)

    if model == "radtan":
        undist = cv2.undistortPoints(pts, K, D)
    elif model == "kannala_brandt":
        if D.size != 4:
            raise ValueError(f"Kannala-Brandt model needs 4 coefficients, got {D.size}")
        undist = cv2.fisheye.undistortPoints(pts, K, D.reshape(4, 1))
    else:
        raise ValueError(f"Unknown camera model '{model}', expected 'radtan' or 'kannala_brandt'")

    return undist.reshape(-1, 2).astype(np.float64)
