#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Contrast Model Configuration Module
===================================

Handles YAML configuration loading for the event-camera contrast
measurement model.

Configuration Structure:
------------------------
The YAML config file contains:
- panorama: sampling boundary policy (clamp | nan) and azimuth wrapping
- jacobian: guard on the rotation vector norm for the derivative
- camera: intrinsics and distortion used to build the undistortion table
- debug: verbosity

Frame Conventions:
------------------
- Camera Frame: X right, Y down, Z forward (bearing = [x/z, y/z, 1])
- Panorama: equirectangular, forward at column 0, row 0 = up
- Rotation state: rotation vector (axis * angle) mapping camera to panorama

Author: eventrot project
"""

import copy

import numpy as np
import yaml
from typing import Dict, Any

from .interpolation import BOUNDARY_POLICIES
from .math_utils import MIN_ROTVEC_NORM

# ========================================
# Debug verbosity control
# ========================================
# Set to True for per-call contrast summaries
VERBOSE_DEBUG = False


DEFAULT_CONFIG: Dict[str, Any] = {
    'BOUNDARY_POLICY': 'clamp',
    'WRAP_AZIMUTH': True,
    'MIN_ROTVEC_NORM': MIN_ROTVEC_NORM,
    'CAMERA': None,
    'VERBOSE_DEBUG': VERBOSE_DEBUG,
}


def _camera_from_yaml(cam: Dict[str, Any]) -> Dict[str, Any]:
    """Camera section -> {'model', 'K', 'D', 'w', 'h'}."""
    K = np.array([
        [cam['fx'], 0.0,       cam['cx']],
        [0.0,       cam['fy'], cam['cy']],
        [0.0,       0.0,       1.0],
    ], dtype=np.float64)
    return {
        'model': cam.get('model', 'radtan'),
        'K': K,
        'D': np.array(cam.get('distortion', [0.0, 0.0, 0.0, 0.0]), dtype=np.float64),
        'w': int(cam['image_width']),
        'h': int(cam['image_height']),
    }


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load YAML configuration file and convert to flat key format.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Dictionary with configuration parameters:
        - BOUNDARY_POLICY: 'clamp' or 'nan'
        - WRAP_AZIMUTH: periodic sampling across the panorama seam
        - MIN_ROTVEC_NORM: smallest rotation vector norm accepted by the Jacobian
        - CAMERA: dict with model, K, D, w, h (None if no camera section)
        - VERBOSE_DEBUG: per-call contrast summaries

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is malformed
        ValueError: If the boundary policy is unknown

    Example:
        >>> config = load_config("configs/contrast_default.yaml")
        >>> print(config['BOUNDARY_POLICY'])
        clamp
    """
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    result = copy.deepcopy(DEFAULT_CONFIG)

    # ========================================
    # Panorama sampling
    # ========================================
    pano = config.get('panorama', {}) or {}
    result['BOUNDARY_POLICY'] = str(pano.get('boundary', result['BOUNDARY_POLICY']))
    result['WRAP_AZIMUTH'] = bool(pano.get('wrap_azimuth', result['WRAP_AZIMUTH']))
    if result['BOUNDARY_POLICY'] not in BOUNDARY_POLICIES:
        raise ValueError(
            f"panorama.boundary must be one of {BOUNDARY_POLICIES}, got '{result['BOUNDARY_POLICY']}'"
        )

    # ========================================
    # Jacobian guard
    # ========================================
    jac = config.get('jacobian', {}) or {}
    result['MIN_ROTVEC_NORM'] = float(jac.get('min_rotvec_norm', result['MIN_ROTVEC_NORM']))

    # ========================================
    # Camera (undistortion table)
    # ========================================
    if config.get('camera'):
        result['CAMERA'] = _camera_from_yaml(config['camera'])

    debug = config.get('debug', {}) or {}
    result['VERBOSE_DEBUG'] = bool(debug.get('verbose', result['VERBOSE_DEBUG']))

    return result
