#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Rotation Math Utilities Module
==============================

Exponential map of SO(3) and its derivative, used by the contrast
measurement model of the rotation EKF.

Rotation Convention:
--------------------
The state is a rotation vector v (axis-angle): direction = axis,
||v|| = angle in radians. The rotation matrix is

    R = exp([v]×) = I + sin(θ)/θ [v]× + (1 - cos(θ))/θ² [v]×²,   θ = ||v||

and rotates camera-frame bearing vectors into the panorama (world) frame:
    p_world = R @ bearing

Key Operations:
---------------
- skew_symmetric: 3x3 cross-product matrix
- rotvec_to_rot: closed-form Rodrigues exponential map
- drotated_vec_drotvec: d(R x)/dv for a fixed vector x
- drotated_vecs_drotvec: batched form for a 3xN matrix of vectors

Reference:
    G. Gallego, A. Yezzi, "A compact formula for the derivative of a 3-D
    rotation in exponential coordinates", JMIV 2014.

Author: eventrot project
"""

import numpy as np

# Below this angle the Rodrigues coefficients are replaced by their series
SMALL_ANGLE = 1e-8

# Default guard for the singular derivative at v = 0
MIN_ROTVEC_NORM = 1e-12


# =============================================================================
# Matrix Operations
# =============================================================================

def skew_symmetric(v: np.ndarray) -> np.ndarray:
    """
    Create skew-symmetric matrix from 3D vector.
    [v]× such that [v]× @ u = v × u (cross product)

    [v]× = [ 0   -vz   vy ]
           [ vz   0   -vx ]
           [-vy   vx   0  ]
    """
    v = np.asarray(v, dtype=float).reshape(3)
    return np.array([
        [0,      -v[2],  v[1]],
        [v[2],    0,    -v[0]],
        [-v[1],   v[0],   0   ]
    ], dtype=float)


def skew_symmetric_batch(vecs: np.ndarray) -> np.ndarray:
    """Stack of skew matrices for a 3xN matrix of column vectors -> (N, 3, 3)."""
    vecs = np.asarray(vecs, dtype=float).reshape(3, -1)
    x, y, z = vecs
    zeros = np.zeros_like(x)
    return np.stack([
        np.stack([zeros, -z, y], axis=-1),
        np.stack([z, zeros, -x], axis=-1),
        np.stack([-y, x, zeros], axis=-1),
    ], axis=1)


# =============================================================================
# Exponential Map
# =============================================================================

def rotvec_to_rot(rotvec: np.ndarray) -> np.ndarray:
    """
    Convert rotation vector to 3x3 rotation matrix (Rodrigues formula).

    Equivalent to expm(skew_symmetric(rotvec)) without a generic matrix
    exponential solver.

    Args:
        rotvec: Rotation vector [vx, vy, vz] (axis * angle, radians)

    Returns:
        3x3 rotation matrix
    """
    v = np.asarray(rotvec, dtype=float).reshape(3)
    theta = np.linalg.norm(v)
    if theta == 0.0:
        return np.eye(3)

    K = skew_symmetric(v)
    K2 = K @ K
    if theta < SMALL_ANGLE:
        # Second-order series: sin(θ)/θ ≈ 1, (1-cos θ)/θ² ≈ 1/2
        return np.eye(3) + K + 0.5 * K2

    a = np.sin(theta) / theta
    b = (1.0 - np.cos(theta)) / (theta * theta)
    return np.eye(3) + a * K + b * K2


def _rotvec_factor(R: np.ndarray, rotvec: np.ndarray,
                   min_norm: float = MIN_ROTVEC_NORM) -> np.ndarray:
    """M(v) = (v v^T + (R^T - I) [v]×) / ||v||²"""
    v = np.asarray(rotvec, dtype=float).reshape(3)
    norm_sq = float(v @ v)
    if np.sqrt(norm_sq) < min_norm:
        raise ValueError(
            f"Rotation vector norm {np.sqrt(norm_sq):.3e} below {min_norm:.1e}: "
            "exponential map derivative is singular at zero rotation"
        )
    return (np.outer(v, v) + (R.T - np.eye(3)) @ skew_symmetric(v)) / norm_sq


def drotated_vec_drotvec(R: np.ndarray, rotvec: np.ndarray, x: np.ndarray,
                         min_norm: float = MIN_ROTVEC_NORM) -> np.ndarray:
    """
    Derivative of the rotated vector R(v) @ x with respect to v.

        d(R x)/dv = -R [x]× M(v)
        M(v) = (v v^T + (R^T - I) [v]×) / ||v||²

    Valid for rotation angles in [0, π].

    Args:
        R: Rotation matrix exp([v]×), already evaluated at rotvec
        rotvec: Rotation vector v
        x: Fixed 3-vector being rotated
        min_norm: Smallest accepted ||v||

    Returns:
        3x3 Jacobian d(R x)/dv

    Raises:
        ValueError: If ||v|| < min_norm (formula divides by ||v||²)
    """
    M = _rotvec_factor(R, rotvec, min_norm)
    return -R @ skew_symmetric(x) @ M


def drotated_vecs_drotvec(R: np.ndarray, rotvec: np.ndarray, vecs: np.ndarray,
                          min_norm: float = MIN_ROTVEC_NORM) -> np.ndarray:
    """
    Batched drotated_vec_drotvec for a 3xN matrix of vectors.

    M(v) does not depend on x, so it is evaluated once for the batch.

    Returns:
        (N, 3, 3) array, entry k = d(R x_k)/dv
    """
    M = _rotvec_factor(R, rotvec, min_norm)
    return -np.einsum('ij,njk,kl->nil', R, skew_symmetric_batch(vecs), M)
