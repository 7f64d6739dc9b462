from .models import (
    ArityKind,
    CallableMember,
    NamespaceDescriptor,
    NamespaceKind,
    OpaqueValue,
    SourceLiteral,
    Symbol,
    Visibility,
)
from .exceptions import (
    StubforgeError,
    InvalidArgumentError,
    LiteralError,
    ValueRenderError,
    ModelLoadError,
)
from .protocols import ReflectionProtocol, StubGeneratorProtocol

__all__ = [
    "ReflectionProtocol",
    "StubGeneratorProtocol",
    "ArityKind",
    "CallableMember",
    "NamespaceDescriptor",
    "NamespaceKind",
    "OpaqueValue",
    "SourceLiteral",
    "Symbol",
    "Visibility",
    # Errors
    "StubforgeError",
    "InvalidArgumentError",
    "LiteralError",
    "ValueRenderError",
    "ModelLoadError",
]
