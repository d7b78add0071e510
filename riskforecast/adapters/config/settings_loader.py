import os
import yaml
from riskforecast.core.domain.settings import SystemSettings

ENV_OVERRIDES = {
    "DATA_API_URL": "data_api_url",
    "DATA_API_KEY": "data_api_key",
    "REDIS_URL": "redis_url",
    "MONGO_URL": "mongo_url",
    "RF_INSIGHTS_FILE": "insights_file",
}

def load_settings(path: str | None = None) -> SystemSettings:
    """
    Load system settings from a YAML file.
    Environment variables override file values; file values override defaults.

    Args:
        path: Path to config.yaml. Defaults to RF_CONFIG_FILE env var or "config.yaml".
    """
    if path is None:
        path = os.getenv("RF_CONFIG_FILE", "config.yaml")

    config_data = {}

    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RuntimeError(f"Failed to load configuration from {path}: {e}")

    for env_var, field_name in ENV_OVERRIDES.items():
        if os.getenv(env_var):
            config_data[field_name] = os.getenv(env_var)

    return SystemSettings(**config_data)
