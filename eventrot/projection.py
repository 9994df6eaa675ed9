#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Equirectangular Projection Module

Maps 3D directions (panorama/world frame) to continuous pixel coordinates
of an equirectangular panorama of size height x width.

Axis convention (shared with camera.bearing_vectors and the map layout):
    - Camera/world frame: X right, Y down, Z forward
    - Azimuth   lon = atan2(X, Z)            (0 = forward, +π/2 = right)
    - Elevation lat = atan2(Y, sqrt(X²+Z²))  (positive = down)
    - px = W * ((lon / 2π) mod 1)            px ∈ [0, W), forward at column 0
    - py = H * (lat/π + 1/2) - 1/2           row 0 = top, row centers at integers

px is periodic in azimuth with period W. Directions on the polar axis
(X = Z = 0) have an undefined azimuth; their Jacobian is non-finite.

Author: eventrot project
"""

import numpy as np
from typing import Optional, Tuple


def project_equirectangular(points_3d: np.ndarray, pano_width: int, pano_height: int,
                            compute_jacobian: bool = False
                            ) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Project 3D direction vectors onto the equirectangular panorama.

    Points need not be unit length; only their direction matters.

    Args:
        points_3d: 3xN matrix of direction vectors (columns)
        pano_width: Panorama width W in pixels
        pano_height: Panorama height H in pixels
        compute_jacobian: Also return d(px, py)/d(point)

    Returns:
        pm: 2xN matrix of pixel coordinates [px; py]
        dpm_d3d: (N, 2, 3) Jacobian per point, or None
    """
    P = np.asarray(points_3d, dtype=float).reshape(3, -1)
    X, Y, Z = P

    r_xz_sq = X * X + Z * Z
    r_xz = np.sqrt(r_xz_sq)

    lon = np.arctan2(X, Z)
    lat = np.arctan2(Y, r_xz)

    fx = pano_width / (2.0 * np.pi)
    fy = pano_height / np.pi

    px = np.mod(fx * lon, pano_width)
    # np.mod can return W itself for tiny negative inputs
    px = np.where(px >= pano_width, 0.0, px)
    py = fy * lat + 0.5 * pano_height - 0.5
    pm = np.vstack([px, py])

    if not compute_jacobian:
        return pm, None

    num_points = P.shape[1]
    rho_sq = r_xz_sq + Y * Y
    dpm_d3d = np.zeros((num_points, 2, 3), dtype=float)

    with np.errstate(divide='ignore', invalid='ignore'):
        # d lon / d(X, Y, Z) = [Z, 0, -X] / (X² + Z²)
        dpm_d3d[:, 0, 0] = fx * Z / r_xz_sq
        dpm_d3d[:, 0, 2] = -fx * X / r_xz_sq

        # d lat / d(X, Y, Z) = [-XY, X²+Z², -ZY] / (sqrt(X²+Z²) * ||P||²)
        denom = r_xz * rho_sq
        dpm_d3d[:, 1, 0] = -fy * X * Y / denom
        dpm_d3d[:, 1, 1] = fy * r_xz_sq / denom
        dpm_d3d[:, 1, 2] = -fy * Z * Y / denom

    return pm, dpm_d3d
