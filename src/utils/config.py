"""Configuration loader.

Reads YAML configuration files and turns their sections into the
camera and conversion objects used by the pipeline.  Configuration
files normally reside in the `configs/` directory at the project root.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from src.camera import CameraIntrinsics, Extrinsic
from src.mapping.conversion_config import ConversionConfig

DEFAULT_CONFIG = Path(__file__).resolve().parents[2] / "configs" / "default.yaml"


def load_config(path: str) -> Dict[str, Any]:
    """Load a YAML configuration file into a dictionary.

    Parameters
    ----------
    path : str
        Path to the YAML configuration file.

    Returns
    -------
    dict
        Parsed configuration dictionary.  Returns an empty dict if the
        file does not exist or is empty.
    """
    cfg_path = Path(path)
    if not cfg_path.is_file():
        return {}
    with open(cfg_path, 'r', encoding='utf-8') as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"{cfg_path}: configuration must be a mapping")
    return cfg


def conversion_from_config(cfg: Dict[str, Any], overrides: Optional[Dict[str, Any]] = None) -> ConversionConfig:
    """Build a `ConversionConfig` from the ``conversion`` section.

    Entries of ``overrides`` whose value is not `None` take precedence
    over the file.
    """
    section = cfg.get("conversion") or {}
    if not isinstance(section, dict):
        raise ValueError("'conversion' section must be a mapping")
    section = dict(section)
    for key, value in (overrides or {}).items():
        if value is not None:
            section[key] = value
    return ConversionConfig.from_dict(section)


def cameras_from_config(cfg: Dict[str, Any]):
    """Return ``(depth_intrinsics, color_intrinsics, extrinsic)``.

    The colour intrinsics default to the depth intrinsics when the
    ``color_intrinsics`` section is absent.
    """
    if "depth_intrinsics" not in cfg:
        raise ValueError("configuration has no 'depth_intrinsics' section")
    for name in ("depth_intrinsics", "color_intrinsics", "extrinsic"):
        if cfg.get(name) is not None and not isinstance(cfg[name], dict):
            raise ValueError(f"'{name}' section must be a mapping")
    depth = CameraIntrinsics.from_dict(cfg["depth_intrinsics"])
    color_section = cfg.get("color_intrinsics")
    color = CameraIntrinsics.from_dict(color_section) if color_section else depth
    extrinsic = Extrinsic.from_dict(cfg.get("extrinsic") or {})
    return depth, color, extrinsic
