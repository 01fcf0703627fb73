from darkheim.config.loader import get_config_path, load_config, save_config
from darkheim.config.schema import DarkheimConfig

__all__ = ["DarkheimConfig", "get_config_path", "load_config", "save_config"]
