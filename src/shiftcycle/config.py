"""Engine configuration."""

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Union


@dataclass(frozen=True)
class EngineConfig:
    """Limits and defaults for the pattern engine.

    Attributes:
        min_pattern_days: Shortest allowed cycle.
        max_pattern_days: Longest allowed cycle.
        max_name_length: Longest allowed pattern name.
        max_past_years: How far back an anchor date may lie.
        max_future_years: How far ahead an anchor date may lie.
        default_preview_days: Preview length when none is requested.
        max_workers: Size of the background pool running mutations.
        lenient_decode: If True, corrupt payloads decode to their largest
            valid prefix instead of failing.
    """

    min_pattern_days: int = 1
    max_pattern_days: int = 365
    max_name_length: int = 100
    max_past_years: int = 2
    max_future_years: int = 3
    default_preview_days: int = 30
    max_workers: int = 3
    lenient_decode: bool = False

    def __post_init__(self):
        if self.min_pattern_days < 1:
            raise ValueError("min_pattern_days must be at least 1")
        if self.max_pattern_days < self.min_pattern_days:
            raise ValueError("max_pattern_days must be >= min_pattern_days")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.default_preview_days < 1:
            raise ValueError("default_preview_days must be at least 1")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EngineConfig":
        """Build a config from a plain dict, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "EngineConfig":
        """Load a config from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
