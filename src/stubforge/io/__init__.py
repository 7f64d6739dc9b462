from .yaml_adapter import YamlModelAdapter

__all__ = ["YamlModelAdapter"]
