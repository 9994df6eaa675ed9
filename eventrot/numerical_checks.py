#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Numerical Validation Module
===========================

Tripwires for NaN/inf in measurement outputs and central-difference
Jacobians for checking the analytic derivatives of the contrast model.
"""

import numpy as np


def assert_finite(name, M, extra_info=None, raise_on_fail=False):
    """
    Tripwire: Check matrix/vector for inf/nan and dump diagnostics if found.

    Parameters:
    -----------
    name : str
        Descriptive name of the quantity being checked
    M : np.ndarray
        Matrix or vector to validate
    extra_info : dict, optional
        Additional diagnostic information to dump
    raise_on_fail : bool
        If True, raises ValueError on failure. If False, only prints warning.

    Returns:
    --------
    bool : True if finite, False if inf/nan detected
    """
    if M is None:
        print(f"[TRIPWIRE] {name}: is None!")
        return False

    M = np.asarray(M)
    if np.all(np.isfinite(M)):
        return True

    print(f"[TRIPWIRE] NaN/inf detected in {name} (shape {M.shape})")
    if np.any(np.isnan(M)):
        nan_locs = np.argwhere(np.isnan(M))
        print(f"  NaN locations (first 10): {nan_locs[:10].tolist()}")
    if np.any(np.isinf(M)):
        inf_locs = np.argwhere(np.isinf(M))
        print(f"  Inf locations (first 10): {inf_locs[:10].tolist()}")

    if extra_info:
        for key, val in extra_info.items():
            if isinstance(val, np.ndarray) and val.size > 10:
                print(f"  {key}: shape={val.shape}, norm={np.linalg.norm(val):.6e}")
            else:
                print(f"  {key}: {np.ravel(val) if isinstance(val, np.ndarray) else val}")

    if raise_on_fail:
        raise ValueError(f"NaN/inf detected in {name}")
    return False


def numerical_jacobian(func, x0, step=1e-6):
    """
    Central-difference Jacobian of a vector function.

    Parameters:
    -----------
    func : callable
        Maps an n-vector to an m-vector (or scalar)
    x0 : np.ndarray
        Evaluation point, n elements
    step : float
        Perturbation applied to each coordinate

    Returns:
    --------
    J : np.ndarray
        (m, n) matrix, J[i, j] = d func_i / d x_j
    """
    x0 = np.asarray(x0, dtype=float).reshape(-1)
    f0 = np.atleast_1d(np.asarray(func(x0), dtype=float)).reshape(-1)
    J = np.zeros((f0.size, x0.size), dtype=float)
    for j in range(x0.size):
        dx = np.zeros_like(x0)
        dx[j] = step
        f_plus = np.atleast_1d(np.asarray(func(x0 + dx), dtype=float)).reshape(-1)
        f_minus = np.atleast_1d(np.asarray(func(x0 - dx), dtype=float)).reshape(-1)
        J[:, j] = (f_plus - f_minus) / (2.0 * step)
    return J


def relative_jacobian_error(J_analytic, J_numeric):
    """||J_analytic - J_numeric||_F / ||J_numeric||_F"""
    J_analytic = np.asarray(J_analytic, dtype=float)
    J_numeric = np.asarray(J_numeric, dtype=float)
    ref = np.linalg.norm(J_numeric, 'fro')
    if ref == 0.0:
        return float(np.linalg.norm(J_analytic, 'fro'))
    return float(np.linalg.norm(J_analytic - J_numeric, 'fro') / ref)
