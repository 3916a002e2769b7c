"""Configuration management for IMU attitude fusion."""

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

CORRECTION_MODES = ("linear", "slerp")


@dataclass
class FilterConfig:
    """Filter engine configuration."""
    mode: str = "linear"
    debug: bool = False


@dataclass
class LinearGainConfig:
    """Complementary gain law tuning.

    q_value affects the gyro response, r_value the influence of the
    accels and compass. The bigger r_value, the more sluggish the response.
    """
    q_value: float = 0.001
    r_value: float = 0.0005


@dataclass
class SlerpConfig:
    """Slerp correction tuning.

    0 = measured state ignored (gyros only), 1 = measured state overrides
    predicted state.
    """
    slerp_power: float = 0.02


@dataclass
class SourceConfig:
    """Per-sensor enable flags."""
    enable_gyro: bool = True
    enable_accel: bool = True
    enable_compass: bool = True


@dataclass
class FusionSettings:
    """Settings read by the filter on every sample."""
    compass_adj_declination: float = 0.0  # radians


@dataclass
class FusionConfig:
    """Complete configuration for the attitude fusion filter."""
    filter: FilterConfig = field(default_factory=FilterConfig)
    linear: LinearGainConfig = field(default_factory=LinearGainConfig)
    slerp: SlerpConfig = field(default_factory=SlerpConfig)
    sources: SourceConfig = field(default_factory=SourceConfig)
    settings: FusionSettings = field(default_factory=FusionSettings)


def load_config(config_path: Optional[str] = None) -> FusionConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file. If None, uses the
            ATTITUDE_FUSION_CONFIG environment variable, then the bundled
            default file.

    Returns:
        Configuration object with all settings.

    Raises:
        FileNotFoundError: If specified config file doesn't exist.
        ValueError: If the correction mode is unknown.
    """
    if config_path is None:
        env_path = os.environ.get("ATTITUDE_FUSION_CONFIG")
        if env_path:
            config_path = env_path
        else:
            default_path = Path(__file__).parent.parent.parent / "config" / "default.yaml"
            if default_path.exists():
                config_path = str(default_path)
            else:
                return FusionConfig()

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return FusionConfig()

    config = _build_config(data)
    logger.info("Loaded fusion configuration from %s (mode=%s)", path, config.filter.mode)
    return config


def _build_config(data: dict) -> FusionConfig:
    """Build FusionConfig object from dictionary."""
    filter_cfg = FilterConfig(**(data.get("filter") or {}))
    if filter_cfg.mode not in CORRECTION_MODES:
        raise ValueError(
            f"Unknown correction mode '{filter_cfg.mode}', "
            f"expected one of {CORRECTION_MODES}"
        )

    linear = LinearGainConfig(**(data.get("linear") or {}))
    if linear.q_value < 0 or linear.r_value < 0:
        logger.warning(
            "Negative linear gains (Q=%g, R=%g) will destabilise the filter",
            linear.q_value, linear.r_value
        )

    slerp = SlerpConfig(**(data.get("slerp") or {}))
    if not 0.0 <= slerp.slerp_power <= 1.0:
        logger.warning("Slerp power %.3f outside [0, 1]", slerp.slerp_power)

    sources = SourceConfig(**(data.get("sources") or {}))

    settings_data = dict(data.get("settings") or {})
    declination_deg = settings_data.pop("compass_adj_declination_deg", None)
    settings = FusionSettings(**settings_data)
    if declination_deg is not None:
        settings.compass_adj_declination = math.radians(declination_deg)

    return FusionConfig(
        filter=filter_cfg,
        linear=linear,
        slerp=slerp,
        sources=sources,
        settings=settings,
    )
