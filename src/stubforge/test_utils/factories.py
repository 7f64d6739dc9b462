from typing import Any, Dict, List, Optional

from stubforge.spec import (
    CallableMember,
    NamespaceDescriptor,
    NamespaceKind,
    Visibility,
)


class NamespaceFactory:
    """
    Fluent builder for NamespaceDescriptor trees in tests.

        point = (
            NamespaceFactory.klass("Geom::Point")
            .with_constant("ORIGIN", [0, 0])
            .with_method("move", 2)
            .build()
        )
    """

    def __init__(self, name: str, kind: NamespaceKind = NamespaceKind.MODULE):
        self.name = name
        self.kind = kind
        self._superclass: Optional[NamespaceDescriptor] = None
        self._mixins: List[NamespaceDescriptor] = []
        self._constants: Dict[str, Any] = {}
        self._class_variables: Dict[str, Any] = {}
        self._class_callables: List[CallableMember] = []
        self._instance_callables: List[CallableMember] = []

    @classmethod
    def module(cls, name: str) -> "NamespaceFactory":
        return cls(name, NamespaceKind.MODULE)

    @classmethod
    def klass(cls, name: str) -> "NamespaceFactory":
        return cls(name, NamespaceKind.CLASS)

    def with_superclass(self, superclass: NamespaceDescriptor) -> "NamespaceFactory":
        self._superclass = superclass
        return self

    def with_mixin(self, mixin: NamespaceDescriptor) -> "NamespaceFactory":
        self._mixins.append(mixin)
        return self

    def with_constant(self, name: str, value: Any) -> "NamespaceFactory":
        self._constants[name] = value
        return self

    def with_nested(self, nested: NamespaceDescriptor) -> "NamespaceFactory":
        return self.with_constant(nested.short_name(), nested)

    def with_class_variable(self, name: str, value: Any) -> "NamespaceFactory":
        self._class_variables[name] = value
        return self

    def with_class_method(self, name: str, arity: int = 0) -> "NamespaceFactory":
        self._class_callables.append(CallableMember.from_arity(name, arity))
        return self

    def with_method(
        self,
        name: str,
        arity: int = 0,
        visibility: Visibility = Visibility.PUBLIC,
    ) -> "NamespaceFactory":
        self._instance_callables.append(
            CallableMember.from_arity(name, arity, visibility)
        )
        return self

    def with_protected(self, name: str, arity: int = 0) -> "NamespaceFactory":
        return self.with_method(name, arity, Visibility.PROTECTED)

    def with_private(self, name: str, arity: int = 0) -> "NamespaceFactory":
        return self.with_method(name, arity, Visibility.PRIVATE)

    def build(self) -> NamespaceDescriptor:
        return NamespaceDescriptor(
            name=self.name,
            kind=self.kind,
            superclass=self._superclass,
            mixins=tuple(self._mixins),
            constants=dict(self._constants),
            class_variables=dict(self._class_variables),
            class_callables=tuple(self._class_callables),
            instance_callables=tuple(self._instance_callables),
        )

