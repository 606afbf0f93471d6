"""Profile loader for configurable processing behavior."""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict

import yaml

from ..models.processing_job import DetailLevel


@dataclass
class ProcessingProfile:
    """Configuration profile for pacing, mode selection and rendering."""
    name: str
    description: str = ""
    page_threshold: int = 5  # <= threshold pages: one whole-document call
    page_delay_ms: int = 3000
    rate_limit_backoff_ms: int = 10000
    render_scale: float = 2.0
    retry_rate_limited_pages: bool = False
    max_rate_limit_retries: int = 1
    max_file_size_mb: float = 50
    detail_level: str = "detailed"

    def __post_init__(self):
        """Validate numeric ranges and detail level."""
        if self.page_threshold < 0:
            raise ValueError(f"page_threshold must be >= 0, got {self.page_threshold}")
        if self.page_delay_ms < 0 or self.rate_limit_backoff_ms < 0:
            raise ValueError("Delays must be >= 0 ms")
        if self.render_scale <= 0:
            raise ValueError(f"render_scale must be positive, got {self.render_scale}")
        if self.max_rate_limit_retries < 0:
            raise ValueError(f"max_rate_limit_retries must be >= 0, got {self.max_rate_limit_retries}")
        self.detail_level = DetailLevel.parse(self.detail_level).value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProcessingProfile':
        """Create ProcessingProfile from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values.setdefault('name', 'default')
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def get_profiles_dir() -> Path:
    """Get directory containing profile YAML files.

    BOOKLET_PROFILES_DIR overrides the bundled profiles directory.
    """
    env_dir = os.getenv('BOOKLET_PROFILES_DIR')
    if env_dir:
        return Path(env_dir)
    return Path(__file__).resolve().parent / "profiles"


def load_profile(profile_name: str = "default") -> ProcessingProfile:
    """Load a configuration profile.

    Args:
        profile_name: Name of profile to load (without .yaml extension)

    Returns:
        ProcessingProfile object

    Raises:
        FileNotFoundError: If profile file doesn't exist
        ValueError: If profile file is invalid
    """
    profiles_dir = get_profiles_dir()
    profile_path = profiles_dir / f"{profile_name}.yaml"

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_name} (expected at {profile_path})")

    try:
        with open(profile_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in profile {profile_name}: {e}") from e

    if not data:
        raise ValueError(f"Profile file is empty: {profile_path}")
    if not isinstance(data, dict):
        raise ValueError(f"Profile {profile_name} must be a mapping, got {type(data).__name__}")

    try:
        return ProcessingProfile.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Error loading profile {profile_name}: {e}") from e


def list_available_profiles() -> list[str]:
    """List all available profile names (without .yaml extension)."""
    profiles_dir = get_profiles_dir()

    if not profiles_dir.exists():
        return ["default"]

    profiles = [p.stem for p in profiles_dir.glob("*.yaml")]
    return sorted(profiles) if profiles else ["default"]


def get_default_profile() -> ProcessingProfile:
    """Get default profile (always available)."""
    try:
        return load_profile("default")
    except FileNotFoundError:
        return ProcessingProfile(name="default", description="Default configuration")
