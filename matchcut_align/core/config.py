"""Configuration dataclasses with YAML loading and override merging."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Union

import yaml

from . import constants

logger = logging.getLogger(__name__)


@dataclass
class PreprocessorConfig:
    min_confidence: float = constants.MIN_LANDMARK_CONFIDENCE
    boundary_margin: float = constants.BOUNDARY_MARGIN


@dataclass
class SolverConfig:
    residual_tolerance: float = constants.RESIDUAL_TOLERANCE
    full_correspondence_count: int = constants.FULL_CORRESPONDENCE_COUNT
    degenerate_ratio: float = constants.DEGENERATE_SINGULAR_RATIO
    degenerate_confidence_cap: float = constants.DEGENERATE_CONFIDENCE_CAP
    use_3d: bool = False


@dataclass
class KalmanConfig:
    process_noise: float = constants.PROCESS_NOISE
    measurement_noise: float = constants.MEASUREMENT_NOISE
    initial_uncertainty: float = constants.INITIAL_UNCERTAINTY
    velocity_decay: float = constants.VELOCITY_DECAY
    default_dt: float = constants.DEFAULT_TIME_STEP
    max_dt: float = constants.MAX_TIME_STEP
    max_variance: float = constants.MAX_VARIANCE
    max_condition: float = constants.MAX_CONDITION_NUMBER


@dataclass
class AlignerConfig:
    preprocessor: PreprocessorConfig = field(default_factory=PreprocessorConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    kalman: KalmanConfig = field(default_factory=KalmanConfig)
    history_capacity: int = constants.HISTORY_CAPACITY
    smoothing_method: str = "kalman"
    ema_alpha: float = constants.EMA_ALPHA
    min_detection_confidence: float = constants.MIN_DETECTION_CONFIDENCE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AlignerConfig":
        sections = {
            "preprocessor": PreprocessorConfig,
            "solver": SolverConfig,
            "kalman": KalmanConfig,
        }
        kwargs: Dict[str, Any] = {}
        known = {f.name for f in fields(cls)}
        for key, value in data.items():
            if key not in known:
                raise ValueError(f"Unknown config key: {key}")
            if key in sections:
                kwargs[key] = _build_section(sections[key], value, key)
            else:
                kwargs[key] = value
        return cls(**kwargs)


def _build_section(section_cls, values: Any, name: str):
    if isinstance(values, section_cls):
        return values
    if not isinstance(values, Mapping):
        raise ValueError(f"Config section '{name}' must be a mapping")
    known = {f.name for f in fields(section_cls)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown keys in config section '{name}': {sorted(unknown)}")
    return section_cls(**values)


def _deep_merge(base: MutableMapping[str, Any], override: Mapping[str, Any]) -> MutableMapping[str, Any]:
    for k, v in override.items():
        if k in base and isinstance(base[k], MutableMapping) and isinstance(v, Mapping):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_yaml(path: Union[str, Path, None]) -> Dict[str, Any]:
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        logger.warning("YAML config not found: %s", p)
        return {}
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("Top-level of YAML must be a mapping/dict")
    return data


def load_config(path: Union[str, Path, None] = None,
                overrides: Optional[Mapping[str, Any]] = None) -> AlignerConfig:
    """
    Load aligner configuration.

    Defaults are merged with the YAML file at ``path`` (if any) and then with
    ``overrides``, so overrides win over the file and the file wins over the
    defaults.
    """
    cfg: Dict[str, Any] = AlignerConfig().to_dict()
    yaml_cfg = load_yaml(path)
    if yaml_cfg:
        _deep_merge(cfg, yaml_cfg)
    if overrides:
        _deep_merge(cfg, dict(overrides))
    return AlignerConfig.from_dict(cfg)
