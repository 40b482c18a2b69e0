"""Sensor assumptions and conversion settings.

The depth encoding (raw millimetres) and the usable sensor range are
properties of the depth camera, not of the algorithm, so they are kept
here as named, overridable fields rather than literals in the
conversion code.
"""

import numbers
from dataclasses import dataclass, fields
from typing import Any, Dict

CLAMP = "clamp"
DROP = "drop"
OUT_OF_BOUNDS_POLICIES = (CLAMP, DROP)


@dataclass(frozen=True)
class ConversionConfig:
    """Settings for depth-to-point-cloud conversion."""

    depth_scale: float = 1000.0
    """Raw depth units per metre.  Raw samples are divided by this value."""

    min_depth: float = 0.0
    """Exclusive lower bound of valid depth in metres."""

    max_depth: float = 10.0
    """Inclusive upper bound of valid depth in metres."""

    out_of_bounds: str = CLAMP
    """What to do with points projecting outside the colour image.

    ``"clamp"`` paints them with the nearest edge pixel, ``"drop"``
    excludes them from the output.
    """

    workers: int = 1
    """Number of threads used to process row blocks."""

    rows_per_chunk: int = 64
    """Number of depth rows per work unit."""

    def __post_init__(self):
        for name in ("depth_scale", "min_depth", "max_depth"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ValueError(f"{name} must be a number, got {value!r}")
        for name in ("workers", "rows_per_chunk"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        if self.out_of_bounds not in OUT_OF_BOUNDS_POLICIES:
            raise ValueError(
                f"out_of_bounds must be one of {OUT_OF_BOUNDS_POLICIES}, "
                f"got {self.out_of_bounds!r}"
            )
        if self.depth_scale <= 0:
            raise ValueError("depth_scale must be positive")
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        if self.rows_per_chunk < 1:
            raise ValueError("rows_per_chunk must be at least 1")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversionConfig":
        """Build a config from the ``conversion`` section of a YAML file."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"unknown conversion settings: {sorted(unknown)}")
        return cls(**data)

    def is_valid_depth(self, depth):
        """Validity predicate on depth in metres; works on scalars and arrays."""
        return (depth > self.min_depth) & (depth <= self.max_depth)
