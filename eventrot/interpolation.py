#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Bilinear Interpolation Module

Samples panorama intensity and its gradient fields at continuous pixel
coordinates.

Coordinate convention:
    - 0-based, grid[row, col], px = column, py = row
    - Integer coordinates return the grid value exactly

Boundary policy (identical for intensity and gradient fields):
    - wrap_x=True: px is taken modulo W and column W-1 interpolates with
      column 0 (panorama seam)
    - boundary="clamp": coordinates outside [0, W-1] x [0, H-1] are clamped
      to the nearest edge
    - boundary="nan": such coordinates return NaN

Author: eventrot project
"""

from dataclasses import dataclass

import numpy as np
from typing import Sequence, Tuple

BOUNDARY_POLICIES = ("clamp", "nan")


@dataclass(frozen=True)
class GradientMap:
    """Derivatives of the panorama along columns (x) and rows (y)."""
    x: np.ndarray
    y: np.ndarray

    def __post_init__(self):
        if np.shape(self.x) != np.shape(self.y):
            raise ValueError(
                f"Gradient fields must share a shape: x{np.shape(self.x)} vs y{np.shape(self.y)}"
            )

    @property
    def shape(self) -> Tuple[int, ...]:
        return np.shape(self.x)

    @classmethod
    def from_map(cls, pano_map: np.ndarray) -> "GradientMap":
        """Central differences inside, one-sided differences at the edges."""
        pano_map = np.asarray(pano_map, dtype=float)
        grad_y, grad_x = np.gradient(pano_map)
        return cls(x=grad_x, y=grad_y)


def check_boundary_policy(boundary: str):
    if boundary not in BOUNDARY_POLICIES:
        raise ValueError(f"Unknown boundary policy '{boundary}', expected one of {BOUNDARY_POLICIES}")


def _axis_weights(coord: np.ndarray, size: int, boundary: str, wrap: bool):
    """
    Lower/upper sample index, fractional weight and masks along one axis.

    Returns (i0, i1, frac, in_range, finite). Non-finite coordinates are
    replaced by 0 for indexing and flagged in `finite`.
    """
    finite = np.isfinite(coord)
    coord = np.where(finite, coord, 0.0)
    if wrap:
        coord = np.mod(coord, size)
        i0 = np.minimum(np.floor(coord).astype(int), size - 1)
        frac = coord - i0
        i1 = (i0 + 1) % size
        in_range = finite
    else:
        in_range = finite & (coord >= 0.0) & (coord <= size - 1)
        if boundary == "clamp":
            coord = np.clip(coord, 0.0, size - 1)
        else:
            coord = np.where(in_range, coord, 0.0)
        # Lower index never exceeds size-2 so that coord = size-1 gets weight 1 on i1
        i0 = np.clip(np.floor(coord).astype(int), 0, max(size - 2, 0))
        i1 = np.minimum(i0 + 1, size - 1)
        frac = coord - i0

    return i0, i1, frac, in_range, finite


def bilinear_sample_many(grids: Sequence[np.ndarray], px: np.ndarray, py: np.ndarray,
                         boundary: str = "clamp", wrap_x: bool = False) -> Tuple[np.ndarray, ...]:
    """
    Bilinear interpolation of several same-shaped grids at the same coordinates.

    Args:
        grids: Sequence of (H, W) arrays
        px: Column coordinates, any shape
        py: Row coordinates, same shape as px
        boundary: "clamp" or "nan"
        wrap_x: Treat columns as periodic (equirectangular panorama)

    Returns:
        Tuple of sampled arrays (one per grid), shaped like px
    """
    check_boundary_policy(boundary)
    grids = [np.asarray(g, dtype=float) for g in grids]
    if not grids:
        return ()
    height, width = grids[0].shape
    for g in grids[1:]:
        if g.shape != (height, width):
            raise ValueError(f"Grid shape mismatch: {g.shape} vs {(height, width)}")

    px = np.asarray(px, dtype=float)
    py = np.asarray(py, dtype=float)

    x0, x1, fx, in_x, finite_x = _axis_weights(px, width, boundary, wrap_x)
    y0, y1, fy, in_y, finite_y = _axis_weights(py, height, boundary, False)

    w00 = (1.0 - fx) * (1.0 - fy)
    w01 = fx * (1.0 - fy)
    w10 = (1.0 - fx) * fy
    w11 = fx * fy

    # NaN coordinates give NaN under every policy
    if boundary == "nan":
        invalid = ~(in_x & in_y)
    else:
        invalid = ~(finite_x & finite_y)

    samples = []
    for g in grids:
        value = (w00 * g[y0, x0] + w01 * g[y0, x1]) + (w10 * g[y1, x0] + w11 * g[y1, x1])
        samples.append(np.where(invalid, np.nan, value))
    return tuple(samples)


def clamped_axes(px: np.ndarray, py: np.ndarray, shape: Tuple[int, int],
                 wrap_x: bool = False) -> Tuple[np.ndarray, np.ndarray]:
    """
    Masks of finite coordinates that the "clamp" policy moves onto the edge.

    Along a clamped axis the sample does not vary with the coordinate, so the
    derivative of the sample along that axis is zero there.

    Returns:
        (clamped_x, clamped_y) boolean arrays shaped like px
    """
    height, width = shape
    px = np.asarray(px, dtype=float)
    py = np.asarray(py, dtype=float)
    _, _, _, in_x, finite_x = _axis_weights(px, width, "clamp", wrap_x)
    _, _, _, in_y, finite_y = _axis_weights(py, height, "clamp", False)
    return finite_x & ~in_x, finite_y & ~in_y


def bilinear_sample(grid: np.ndarray, px: np.ndarray, py: np.ndarray,
                    boundary: str = "clamp", wrap_x: bool = False) -> np.ndarray:
    """Bilinear interpolation of a single (H, W) grid at (px, py)."""
    return bilinear_sample_many([grid], px, py, boundary=boundary, wrap_x=wrap_x)[0]
