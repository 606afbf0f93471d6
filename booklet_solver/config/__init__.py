"""Configuration package."""

from .profile_loader import ProcessingProfile, list_available_profiles, load_profile
from .profile_manager import get_profile, reset_profile, set_profile
from .settings import (
    clear_ai_config,
    get_ai_config_path,
    get_ai_endpoint,
    get_ai_key,
    get_ai_model,
    get_ai_provider,
    get_app_name,
    get_app_version,
    get_default_output_dir,
    load_ai_config,
    save_ai_config,
    set_ai_config,
)

__all__ = [
    'ProcessingProfile',
    'list_available_profiles',
    'load_profile',
    'get_profile',
    'reset_profile',
    'set_profile',
    'clear_ai_config',
    'get_ai_config_path',
    'get_ai_endpoint',
    'get_ai_key',
    'get_ai_model',
    'get_ai_provider',
    'get_app_name',
    'get_app_version',
    'get_default_output_dir',
    'load_ai_config',
    'save_ai_config',
    'set_ai_config',
]
