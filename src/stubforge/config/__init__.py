from .loader import StubforgeConfig, config_from_dict, load_config_from_path

__all__ = ["StubforgeConfig", "config_from_dict", "load_config_from_path"]
