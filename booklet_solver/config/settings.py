"""Central configuration for Booklet Solver."""

import json
import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ('openai', 'claude', 'http')

DEFAULT_MODELS = {
    'openai': 'gpt-4o',
    'claude': 'claude-3-5-sonnet-20241022',
    'http': 'remote',
}


def get_app_name() -> str:
    """Get application name."""
    return "Booklet Solver"


def get_app_version() -> str:
    """Get application version from pyproject.toml."""
    try:
        import tomli
        pyproject_path = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
        with open(pyproject_path, "rb") as f:
            pyproject = tomli.load(f)
            return pyproject.get("project", {}).get("version", "0.1.0")
    except (OSError, ImportError, ValueError):
        # Installed without the source tree
        return "0.1.0"


def get_default_output_dir() -> Path:
    """Get default output directory (BOOKLET_OUTPUT_DIR or ./out), created if needed."""
    env_dir = os.getenv('BOOKLET_OUTPUT_DIR')
    output_dir = Path(env_dir) if env_dir else Path.cwd() / "out"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def get_ai_config_path() -> Path:
    """Get path to AI configuration file.

    Returns:
        BOOKLET_SOLVER_CONFIG if set, else ~/.booklet-solver/ai_config.json
    """
    env_path = os.getenv('BOOKLET_SOLVER_CONFIG')
    if env_path:
        return Path(env_path)
    return Path.home() / ".booklet-solver" / "ai_config.json"


def load_ai_config() -> dict:
    """Load AI configuration from file.

    Returns:
        Dict with AI configuration (provider, model, api_key, endpoint)
    """
    config_path = get_ai_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = json.load(f)
            if isinstance(config, dict):
                return config
            logger.warning(f"Ignoring AI config {config_path}: not a JSON object")
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load AI config: {e}")

    return {}


def save_ai_config(config: dict) -> None:
    """Save AI configuration to file."""
    config_path = get_ai_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=2, ensure_ascii=False)
    except OSError as e:
        logger.error(f"Failed to save AI config: {e}")
        raise


def get_ai_provider() -> str:
    """Get AI provider name.

    Returns:
        "openai", "claude" or "http"; AI_PROVIDER, then saved config, default "openai"
    """
    provider = os.getenv('AI_PROVIDER') or load_ai_config().get('provider') or 'openai'
    provider = provider.lower()
    if provider not in SUPPORTED_PROVIDERS:
        logger.warning(f"Invalid AI provider: {provider}, using 'openai'")
        return 'openai'
    return provider


def get_ai_model(provider: Optional[str] = None) -> str:
    """Get AI model name (AI_MODEL, then saved config, then provider default)."""
    model = os.getenv('AI_MODEL')
    if model:
        return model

    model = load_ai_config().get('model')
    if model:
        return model

    return DEFAULT_MODELS.get(provider or get_ai_provider(), DEFAULT_MODELS['openai'])


def get_ai_key() -> Optional[str]:
    """Get AI service API key from AI_KEY or the saved config."""
    key = os.getenv('AI_KEY')
    if key:
        return key
    return load_ai_config().get('api_key')


def get_ai_endpoint() -> Optional[str]:
    """Get solver service endpoint URL (AI_ENDPOINT or saved config)."""
    endpoint = os.getenv('AI_ENDPOINT')
    if endpoint:
        return endpoint
    return load_ai_config().get('endpoint')


def set_ai_config(
    provider: str,
    model: str,
    api_key: Optional[str] = None,
    endpoint: Optional[str] = None
) -> None:
    """Set AI configuration and save to file.

    Args:
        provider: AI provider ("openai", "claude" or "http")
        model: Model name
        api_key: Optional API key (if None, keeps existing key)
        endpoint: Optional service URL for the http provider
    """
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Invalid AI provider: {provider} (must be one of {', '.join(SUPPORTED_PROVIDERS)})")

    config = load_ai_config()
    config['provider'] = provider
    config['model'] = model
    if api_key is not None:
        config['api_key'] = api_key
    if endpoint is not None:
        config['endpoint'] = endpoint

    save_ai_config(config)


def clear_ai_config() -> None:
    """Remove all saved AI configuration."""
    save_ai_config({})
