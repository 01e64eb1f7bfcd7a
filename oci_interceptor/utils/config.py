import os
from typing import Dict, Optional
from oci_interceptor.utils.constants import CONFIG_PATH, ENV_CONFIG_PATH


def get_config_path() -> str:
    """Return the config file path, honouring the OCI_INTERCEPTOR_CONFIG override."""
    return os.environ.get(ENV_CONFIG_PATH) or CONFIG_PATH


def read_config(config_path: Optional[str] = None) -> Dict[str, str]:
    """
    Read KEY=VALUE settings from the interceptor env file.

    Args:
        config_path: Path to the env file. Defaults to get_config_path().

    Returns:
        Dict[str, str]: Settings found in the file, empty if the file does not exist
    """
    config_path = config_path or get_config_path()
    config = {}
    if not os.path.exists(config_path):
        return config

    with open(config_path, 'r') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#') or '=' not in line:
                continue
            key, value = line.split('=', 1)
            config[key.strip()] = value.strip()
    return config


def get_setting(key: str, default: Optional[str] = None, config_path: Optional[str] = None) -> Optional[str]:
    """
    Look up a setting from the environment first, then the config file.

    Args:
        key: Setting name, e.g. OCI_INTERCEPTOR_RUNTIME_PATH
        default: Value returned when the setting is not defined anywhere
        config_path: Optional config file path override

    Returns:
        Optional[str]: The setting value or default
    """
    env_value = os.environ.get(key)
    if env_value:
        return env_value

    try:
        config = read_config(config_path)
    except (OSError, ValueError):
        # An unreadable or undecodable config file leaves every setting at its default
        return default
    return config.get(key) or default
