"""
Mock Data Settings Loader.

Loads and validates project-wide generation defaults from
config/mockdata.yaml using Pydantic models.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field, field_validator

from .config import (
    DEFAULT_FOLLOWUP_MAX,
    DEFAULT_FOLLOWUP_MIN,
    Distribution,
    SourceFormat,
    VariableDescriptor,
)
from .generators.date import INVALID_OFFSET_DAYS
from .generators.survival import EventSpec
from .proportions import PROPORTION_TOLERANCE

logger = logging.getLogger(__name__)


class MockDataSettings(BaseModel):
    """Defaults applied when a generation call leaves a parameter unset."""

    default_seed: int = Field(default=42, description="Seed for batch runs")
    default_n: int = Field(default=1000, ge=0, description="Rows per batch run")
    source_format: SourceFormat = Field(default=SourceFormat.ANALYSIS)
    default_distribution: Distribution = Field(default=Distribution.UNIFORM)
    proportion_tolerance: float = Field(
        default=PROPORTION_TOLERANCE,
        ge=0,
        le=0.5,
        description="Allowed deviation of metadata proportions from 1",
    )
    default_followup_min: int = Field(default=DEFAULT_FOLLOWUP_MIN, ge=0)
    default_followup_max: int = Field(default=DEFAULT_FOLLOWUP_MAX, ge=0)
    invalid_offset_days: Tuple[int, int] = Field(default=INVALID_OFFSET_DAYS)
    entry_role: str = Field(
        default="index-date",
        description="Role marking the entry date that survival variables are anchored on",
    )

    @field_validator("invalid_offset_days")
    @classmethod
    def validate_offsets(cls, v: Tuple[int, int]) -> Tuple[int, int]:
        """Ensure offsets are positive and ordered."""
        low, high = v
        if low < 1 or high < low:
            raise ValueError(f"invalid_offset_days must satisfy 1 <= low <= high, got {v}")
        return v

    @classmethod
    def from_yaml(cls, path: Path | str) -> "MockDataSettings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            logger.warning(f"Settings file not found at {path}, using defaults")
            return cls()

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls.model_validate(data.get("mockdata", data))

    def event_spec(self, descriptor: VariableDescriptor) -> EventSpec:
        """Event timing for a variable, filling blanks from these defaults."""
        return EventSpec.from_descriptor(
            descriptor,
            followup_min=self.default_followup_min,
            followup_max=self.default_followup_max,
        )


# =============================================================================
# Settings Loader Function
# =============================================================================


_cached_settings: Optional[MockDataSettings] = None


def load_settings(
    config_path: Optional[Path | str] = None,
    force_reload: bool = False,
) -> MockDataSettings:
    """
    Load mock data settings (cached).

    Args:
        config_path: Optional path to the settings file. Defaults to
                     config/mockdata.yaml at the project root
        force_reload: If True, reload settings even if cached

    Returns:
        MockDataSettings instance
    """
    global _cached_settings

    if _cached_settings is not None and not force_reload:
        return _cached_settings

    if config_path is None:
        project_root = Path(__file__).parent.parent.parent
        config_path = project_root / "config" / "mockdata.yaml"

    _cached_settings = MockDataSettings.from_yaml(config_path)
    logger.info(f"Loaded mock data settings from {config_path}")

    return _cached_settings
