"""Global profile manager for processing configuration."""

import os
from typing import Optional

from .profile_loader import ProcessingProfile, get_default_profile, load_profile

# Global profile instance
_current_profile: Optional[ProcessingProfile] = None


def set_profile(profile_name: str = "default") -> ProcessingProfile:
    """Set the active profile.

    Raises:
        FileNotFoundError: If profile doesn't exist
        ValueError: If profile is invalid
    """
    global _current_profile
    _current_profile = load_profile(profile_name)
    return _current_profile


def get_profile() -> ProcessingProfile:
    """Get the current active profile.

    Loads BOOKLET_PROFILE (or the default profile) on first use.
    """
    global _current_profile
    if _current_profile is None:
        env_name = os.getenv('BOOKLET_PROFILE')
        _current_profile = load_profile(env_name) if env_name else get_default_profile()
    return _current_profile


def reset_profile():
    """Reset to default profile."""
    global _current_profile
    _current_profile = None
