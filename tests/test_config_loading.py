from pathlib import Path

import numpy as np
import pytest

from eventrot.camera import build_undistortion_table
from eventrot.config import DEFAULT_CONFIG, load_config

DEFAULT_YAML = Path(__file__).resolve().parents[1] / "configs" / "contrast_default.yaml"


def test_default_yaml_loads():
    cfg = load_config(str(DEFAULT_YAML))
    assert cfg["BOUNDARY_POLICY"] == "clamp"
    assert cfg["WRAP_AZIMUTH"] is True
    assert cfg["MIN_ROTVEC_NORM"] == pytest.approx(1e-12)
    assert cfg["VERBOSE_DEBUG"] is False

    cam = cfg["CAMERA"]
    assert cam["model"] == "radtan"
    assert (cam["w"], cam["h"]) == (240, 180)
    assert cam["K"].shape == (3, 3)
    assert cam["K"][0, 0] == pytest.approx(198.25)
    assert cam["D"].shape == (4,)


def test_default_camera_builds_table():
    cam = load_config(str(DEFAULT_YAML))["CAMERA"]
    table = build_undistortion_table(cam["K"], cam["D"], cam["w"], cam["h"], model=cam["model"])
    assert table.shape == (240 * 180, 2)
    assert np.all(np.isfinite(table))


def test_empty_yaml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    cfg = load_config(str(path))
    assert cfg == DEFAULT_CONFIG


def test_partial_yaml_overrides(tmp_path):
    path = tmp_path / "nan.yaml"
    path.write_text("panorama:\n  boundary: nan\n  wrap_azimuth: false\ndebug:\n  verbose: true\n")
    cfg = load_config(str(path))
    assert cfg["BOUNDARY_POLICY"] == "nan"
    assert cfg["WRAP_AZIMUTH"] is False
    assert cfg["VERBOSE_DEBUG"] is True
    assert cfg["CAMERA"] is None


def test_unknown_boundary_policy_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("panorama:\n  boundary: mirror\n")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))
