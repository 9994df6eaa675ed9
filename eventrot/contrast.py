#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Contrast Measurement Module

Measurement function of the rotation EKF correction step.

For every event, the contrast is the difference of panorama intensities at
the two points where the event's pixel lands:
    - current:  rotated by the predicted state R(v) = exp([v]×)
    - previous: rotated by the rotation recorded in the event map for the
                last event at the same pixel

    contrast_k = M(π(R(v) b_k)) - M(π(R_prev,k b_k))

where b_k is the bearing vector of the pixel, π the equirectangular
projection and M bilinear interpolation of the map. Only the current term
depends on the state, so the Jacobian row of event k is

    dC_k/dv = [Mx, My] · dπ/dP · d(R b_k)/dv

with [Mx, My] the gradient fields sampled at the current point.

Author: eventrot project
"""

import numpy as np
from typing import Any, Dict, Optional, Tuple

from . import config as _config
from .camera import bearing_vectors
from .event_map import lookup_rotations
from .interpolation import GradientMap, bilinear_sample_many, check_boundary_policy, clamped_axes
from .math_utils import MIN_ROTVEC_NORM, rotvec_to_rot, drotated_vecs_drotvec
from .numerical_checks import assert_finite
from .projection import project_equirectangular


def _check_inputs(rotvec_pred, pano_map, grad_map, compute_jacobian, min_rotvec_norm):
    v = np.asarray(rotvec_pred, dtype=float).reshape(-1)
    if v.size != 3:
        raise ValueError(f"rotvec_pred must have 3 elements, got {v.size}")

    pano_map = np.asarray(pano_map, dtype=float)
    if pano_map.ndim != 2:
        raise ValueError(f"Panorama map must be 2-D, got shape {pano_map.shape}")

    if compute_jacobian:
        if grad_map is None:
            raise ValueError("Jacobian requested but no gradient map was supplied")
        if tuple(grad_map.shape) != pano_map.shape:
            raise ValueError(
                f"Gradient map shape {tuple(grad_map.shape)} does not match map shape {pano_map.shape}"
            )
        if np.linalg.norm(v) < min_rotvec_norm:
            raise ValueError(
                f"Jacobian requested at rotation vector norm {np.linalg.norm(v):.3e}: "
                "exponential map derivative is singular at zero rotation"
            )
    return v, pano_map


def _contrast_from_bearings(bearing, prev_rotations, v, pano_map, grad_map,
                            compute_jacobian, boundary, wrap_x, min_rotvec_norm):
    """Core of compute_contrast once bearings and recorded rotations are resolved."""
    num_events = bearing.shape[1]
    pano_height, pano_width = pano_map.shape

    # 1. Map point of the current event (shared rotation for the batch)
    Rot = rotvec_to_rot(v)
    rotated_bvec = Rot @ bearing
    pm, dpm_d3d = project_equirectangular(rotated_bvec, pano_width, pano_height,
                                          compute_jacobian=compute_jacobian)

    # 2. Map point of the previous event at the same pixel (per-event rotation)
    rotated_vec_prev = np.einsum('nij,jn->in', prev_rotations, bearing)
    pm_prev, _ = project_equirectangular(rotated_vec_prev, pano_width, pano_height)

    # 3. Intensities at both map points, one sampling call
    px = np.concatenate([pm[0], pm_prev[0]])
    py = np.concatenate([pm[1], pm_prev[1]])
    (intensity,) = bilinear_sample_many([pano_map], px, py, boundary=boundary, wrap_x=wrap_x)
    contrast = intensity[:num_events] - intensity[num_events:]

    if not compute_jacobian:
        return contrast, None

    # 4. Map gradient at the current point, chained through projection and rotation
    grad_x, grad_y = bilinear_sample_many([grad_map.x, grad_map.y], pm[0], pm[1],
                                          boundary=boundary, wrap_x=wrap_x)
    if boundary == "clamp":
        # Clamped samples are flat along the clamped axis
        clamped_x, clamped_y = clamped_axes(pm[0], pm[1], pano_map.shape, wrap_x=wrap_x)
        grad_x = np.where(clamped_x, 0.0, grad_x)
        grad_y = np.where(clamped_y, 0.0, grad_y)
    dcontrast_d3d = grad_x[:, None] * dpm_d3d[:, 0, :] + grad_y[:, None] * dpm_d3d[:, 1, :]

    drotated_bvec_dv = drotated_vecs_drotvec(Rot, v, bearing, min_norm=min_rotvec_norm)
    jac = np.einsum('ni,nij->nj', dcontrast_d3d, drotated_bvec_dv)
    return contrast, jac


def _report(num_events, contrast, jac):
    n_bad = int(np.count_nonzero(~np.isfinite(contrast)))
    msg = f"[CONTRAST] events={num_events} non_finite={n_bad}"
    if jac is not None:
        msg += f" |J|_F={np.linalg.norm(np.nan_to_num(jac)):.3e}"
    print(msg)
    if n_bad:
        assert_finite("contrast", contrast, extra_info={"num_events": num_events})


def compute_contrast(pixel_indices: np.ndarray, event_map: Any, rotvec_pred: np.ndarray,
                     pano_map: np.ndarray, undistortion_table: np.ndarray,
                     grad_map: Optional[GradientMap] = None,
                     compute_jacobian: bool = False,
                     boundary: str = "clamp", wrap_x: bool = True,
                     min_rotvec_norm: float = MIN_ROTVEC_NORM,
                     verbose: Optional[bool] = None
                     ) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Predicted contrast of a batch of events and its Jacobian w.r.t. the state.

    Args:
        pixel_indices: N indices into the undistortion table (event locations)
        event_map: Read-only snapshot of recorded rotations per pixel
                   (see event_map.lookup_rotations)
        rotvec_pred: Predicted state, rotation vector (3,), before the update
        pano_map: (H, W) panorama brightness
        undistortion_table: (Npix, 2) undistorted normalized coordinates
        grad_map: Derivatives of the map, required for the Jacobian
        compute_jacobian: Also return the (N, 3) Jacobian
        boundary: Out-of-grid sampling policy, "clamp" or "nan"
        wrap_x: Periodic sampling across the panorama seam
        min_rotvec_norm: Smallest rotation vector norm accepted for the Jacobian
        verbose: Print a per-call summary. None falls back to the module flag
                 config.VERBOSE_DEBUG; pass load_config()['VERBOSE_DEBUG'] to
                 follow a YAML debug.verbose setting

    Returns:
        contrast: (N,) predicted contrast, in event order
        jac: (N, 3) Jacobian (row k = dcontrast_k/dv), or None if not requested

    Raises:
        ValueError: Jacobian requested without gradient map or at zero rotation,
                    malformed state/map
        IndexError: Pixel index outside the undistortion table
        KeyError: Pixel missing from a Mapping-based event map
    """
    v, pano_map = _check_inputs(rotvec_pred, pano_map, grad_map, compute_jacobian, min_rotvec_norm)

    bearing = bearing_vectors(pixel_indices, undistortion_table)
    prev_rotations = lookup_rotations(event_map, pixel_indices)

    contrast, jac = _contrast_from_bearings(bearing, prev_rotations, v, pano_map, grad_map,
                                            compute_jacobian, boundary, wrap_x, min_rotvec_norm)

    if verbose is None:
        verbose = _config.VERBOSE_DEBUG
    if verbose:
        _report(bearing.shape[1], contrast, jac)
    return contrast, jac


# Name used by the EKF correction step
evaluate = compute_contrast


class ContrastMeasurement:
    """
    Contrast measurement model bound to the static inputs of a session.

    Holds the panorama, its gradient map and the undistortion table, and
    caches the bearing vectors of every sensor pixel. The EKF calls hx() and
    jacobian() with the predicted state and the current event batch.

    Usage:
        model = ContrastMeasurement(pano, undist_table, GradientMap.from_map(pano))
        z_pred = model.hx(rotvec_pred, pixel_indices, event_map)
        H = model.jacobian(rotvec_pred, pixel_indices, event_map)
    """

    def __init__(self, pano_map: np.ndarray, undistortion_table: np.ndarray,
                 grad_map: Optional[GradientMap] = None,
                 boundary: str = "clamp", wrap_x: bool = True,
                 min_rotvec_norm: float = MIN_ROTVEC_NORM,
                 verbose: bool = False):
        self.pano_map = np.asarray(pano_map, dtype=float)
        if self.pano_map.ndim != 2:
            raise ValueError(f"Panorama map must be 2-D, got shape {self.pano_map.shape}")
        if grad_map is not None and tuple(grad_map.shape) != self.pano_map.shape:
            raise ValueError(
                f"Gradient map shape {tuple(grad_map.shape)} does not match map shape {self.pano_map.shape}"
            )
        check_boundary_policy(boundary)

        self.undistortion_table = np.asarray(undistortion_table, dtype=float)
        self.grad_map = grad_map
        self.boundary = boundary
        self.wrap_x = wrap_x
        self.min_rotvec_norm = min_rotvec_norm
        self.verbose = verbose

        num_pixels = self.undistortion_table.shape[0]
        self._bearing_all = bearing_vectors(np.arange(num_pixels), self.undistortion_table)

    @classmethod
    def from_config(cls, config: Dict[str, Any], pano_map: np.ndarray,
                    undistortion_table: np.ndarray,
                    grad_map: Optional[GradientMap] = None) -> "ContrastMeasurement":
        """Build from a load_config() dictionary."""
        return cls(pano_map, undistortion_table, grad_map,
                   boundary=config.get('BOUNDARY_POLICY', 'clamp'),
                   wrap_x=config.get('WRAP_AZIMUTH', True),
                   min_rotvec_norm=config.get('MIN_ROTVEC_NORM', MIN_ROTVEC_NORM),
                   verbose=config.get('VERBOSE_DEBUG', False))

    def _bearings(self, pixel_indices: np.ndarray) -> np.ndarray:
        idx = np.asarray(pixel_indices).reshape(-1)
        num_pixels = self._bearing_all.shape[1]
        if idx.size and not np.issubdtype(idx.dtype, np.integer):
            raise TypeError(f"Pixel indices must be integers, got dtype {idx.dtype}")
        idx = idx.astype(np.intp)
        if idx.size and (idx.min() < 0 or idx.max() >= num_pixels):
            raise IndexError(f"Pixel index out of range for undistortion table of {num_pixels} pixels")
        return self._bearing_all[:, idx]

    def evaluate(self, pixel_indices: np.ndarray, event_map: Any, rotvec_pred: np.ndarray,
                 compute_jacobian: bool = False) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        """Same contract as compute_contrast, with the session inputs bound."""
        v, pano_map = _check_inputs(rotvec_pred, self.pano_map, self.grad_map,
                                    compute_jacobian, self.min_rotvec_norm)
        bearing = self._bearings(pixel_indices)
        prev_rotations = lookup_rotations(event_map, pixel_indices)
        contrast, jac = _contrast_from_bearings(bearing, prev_rotations, v, pano_map, self.grad_map,
                                                compute_jacobian, self.boundary, self.wrap_x,
                                                self.min_rotvec_norm)
        if self.verbose:
            _report(bearing.shape[1], contrast, jac)
        return contrast, jac

    def hx(self, rotvec_pred: np.ndarray, pixel_indices: np.ndarray, event_map: Any) -> np.ndarray:
        """Predicted measurement h(x): contrast per event."""
        contrast, _ = self.evaluate(pixel_indices, event_map, rotvec_pred)
        return contrast

    def jacobian(self, rotvec_pred: np.ndarray, pixel_indices: np.ndarray, event_map: Any) -> np.ndarray:
        """Measurement Jacobian H = dh/dx, shape (N, 3)."""
        _, jac = self.evaluate(pixel_indices, event_map, rotvec_pred, compute_jacobian=True)
        return jac
