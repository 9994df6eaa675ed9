"""
eventrot: Event-Camera Rotation Contrast Package

Measurement model of an EKF that tracks the rotation of an event camera
against a brightness panorama. For a batch of events, computes the
predicted contrast (panorama intensity under the predicted rotation minus
intensity under the rotation recorded for the previous event at the same
pixel) and its analytic Jacobian w.r.t. the rotation vector state.

Version: 1.0.0

Submodules:
- config: YAML configuration loading and verbosity flags
- math_utils: Skew matrices, Rodrigues exponential map and its derivative
- camera: Bearing vectors and the undistortion look-up table
- projection: Equirectangular projection with analytic Jacobian
- interpolation: Bilinear sampling of the panorama and gradient maps
- event_map: Read-only access to recorded per-pixel rotations
- contrast: Contrast measurement and Jacobian (compute_contrast, ContrastMeasurement)
- numerical_checks: NaN/inf tripwires and central-difference Jacobians

Usage:
    from eventrot.contrast import compute_contrast, ContrastMeasurement
    from eventrot.interpolation import GradientMap
    from eventrot.camera import build_undistortion_table
    from eventrot.config import load_config
"""

__version__ = "1.0.0"

# Lazy module imports - access as eventrot.contrast, eventrot.camera, etc.
# camera pulls in OpenCV, which the rest of the package does not need
import importlib

_SUBMODULES = {
    "config", "math_utils", "camera", "projection", "interpolation",
    "event_map", "contrast", "numerical_checks",
}


def __getattr__(name):
    """Lazy module loading to avoid importing all dependencies at once."""
    if name in _SUBMODULES:
        module = importlib.import_module(f".{name}", __name__)
        globals()[name] = module
        return module
    raise AttributeError(f"module 'eventrot' has no attribute '{name}'")


def __dir__():
    """List available submodules."""
    return list(_SUBMODULES)


__all__ = list(_SUBMODULES)
