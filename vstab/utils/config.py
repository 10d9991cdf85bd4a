import os
import json
from pathlib import Path
from typing import Dict, Any, List
from vstab.utils.exceptions import ConfigError
from vstab.utils.logging import get_logger

def get_default_config() -> Dict[str, Any]:
    """Returns default configuration settings."""
    return {
        "development": True,  # Enable debug logging
        "log_file": "~/.config/vstab/vstab.log",
        "server": {
            "host": "127.0.0.1",
            "port": 8765
        },
        "yabai": {
            "executable": "yabai"
        },
        "discovery": {
            "interval": 1.0
        },
        "visibility": {
            "interval": 0.25,
            "max_retries": 2,
            "retry_delay": 0.1,
            # The editor itself, the process hosting the tab bar, and build variants
            "fragments": ["code", "vscode", "vstab", "electron", "python"]
        },
        "tabs": {
            "order_file": "~/.config/vstab/tab_order.json",
            "tab_bar_height": 45,
            "top_margin": 10,
            "bottom_margin": 0,
            "auto_hide": True,
            "auto_resize_vertical": True,
            "auto_resize_horizontal": True
        },
        "editors": [
            {
                "id": "vscode",
                "display_name": "Visual Studio Code",
                "app_name_patterns": ["Visual Studio Code", "Code", "Code - Insiders"]
            },
            {
                "id": "cursor",
                "display_name": "Cursor",
                "app_name_patterns": ["Cursor"]
            },
            {
                "id": "vscodium",
                "display_name": "VSCodium",
                "app_name_patterns": ["VSCodium"]
            }
        ]
    }

def load_env_vars():
    """Load environment variables from .env file if it exists."""
    env_path = Path.cwd() / '.env'
    if env_path.exists():
        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#') and '=' in line:
                    key, value = line.split('=', 1)
                    os.environ[key.strip()] = value.strip()

def replace_env_vars(config: Dict) -> Dict:
    """Recursively replace environment variables in config values."""
    result = {}
    missing_vars = []

    for key, value in config.items():
        if isinstance(value, dict):
            result[key] = replace_env_vars(value)
        elif isinstance(value, str):
            # Handle ${VAR} syntax
            if value.startswith('${') and value.endswith('}'):
                env_var = value[2:-1]
                if env_var not in os.environ:
                    missing_vars.append(env_var)
                else:
                    result[key] = os.environ[env_var]
            # Handle $VAR syntax
            elif value.startswith('$'):
                env_var = value[1:]
                if env_var not in os.environ:
                    missing_vars.append(env_var)
                else:
                    result[key] = os.environ[env_var]
            else:
                result[key] = value
        else:
            result[key] = value

    if missing_vars:
        error_msg = "\nMissing required environment variables:\n"
        for var in missing_vars:
            error_msg += f"- {var}\n"
        error_msg += "\nPlease set these in your .env file."
        raise ConfigError(error_msg)

    return result

def merge_defaults(config: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in missing keys from defaults, one level of sections deep."""
    merged = dict(defaults)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(defaults.get(key), dict):
            merged[key] = {**defaults[key], **value}
        else:
            merged[key] = value
    return merged

def ensure_config_exists(config_path: Path = None) -> Path:
    """Create default config if it doesn't exist. Returns config path."""
    config_path = config_path or Path(__file__).parent.parent / "config.json"
    if not config_path.exists():
        logger = get_logger(__name__)
        logger.warning(f"Config file not found at {config_path}")
        config = get_default_config()

        # Create config directory if it doesn't exist
        config_path.parent.mkdir(parents=True, exist_ok=True)

        # Write default config
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

        logger.info(f"Created default config at {config_path}")

    return config_path

def load_config(config_path) -> Dict[str, Any]:
    """Load a configuration file, filling gaps from the defaults."""
    try:
        with open(config_path, 'r') as f:
            config = json.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found at {config_path}")
    except json.JSONDecodeError:
        raise ConfigError(f"Error decoding json at file: {config_path}")

    if not isinstance(config, dict):
        raise ConfigError(f"Configuration at {config_path} must be a JSON object")

    return merge_defaults(replace_env_vars(config), get_default_config())

def load_config_and_logging(config_path: Path = None) -> Dict[str, Any]:
    """Loads configuration from a JSON file and replaces environment variables."""
    try:
        config_path = ensure_config_exists(config_path)
        load_env_vars()
        return load_config(config_path)
    except ConfigError:
        raise
    except Exception as e:
        raise ConfigError(f"Error loading configuration: {str(e)}")

def get_config(config: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Get a config value by dotted key, e.g. ``visibility.interval``."""
    value: Any = config
    for part in key.split('.'):
        if not isinstance(value, dict) or part not in value:
            return default
        value = value[part]
    return value

def target_app_patterns(config: Dict[str, Any]) -> List[str]:
    """Collect the owner-application patterns of every configured editor."""
    patterns: List[str] = []
    for editor in config.get("editors", []):
        for pattern in editor.get("app_name_patterns", []):
            if pattern and pattern not in patterns:
                patterns.append(pattern)
    return patterns
