from .config import StubforgeConfig, load_config_from_path
from .generator import StubGenerator, generate
from .io import YamlModelAdapter
from .reflection import DescriptorReflector, GriffeModelBuilder
from .spec import (
    ArityKind,
    CallableMember,
    InvalidArgumentError,
    ModelLoadError,
    NamespaceDescriptor,
    NamespaceKind,
    StubforgeError,
    ValueRenderError,
    Visibility,
)

__all__ = [
    "generate",
    "StubGenerator",
    "StubforgeConfig",
    "load_config_from_path",
    "DescriptorReflector",
    "GriffeModelBuilder",
    "YamlModelAdapter",
    "ArityKind",
    "CallableMember",
    "NamespaceDescriptor",
    "NamespaceKind",
    "Visibility",
    "StubforgeError",
    "InvalidArgumentError",
    "ModelLoadError",
    "ValueRenderError",
]
