from typing import Any, Dict, List, Optional

from stubforge.spec import (
    CallableMember,
    NamespaceDescriptor,
    NamespaceKind,
    ReflectionProtocol,
    Visibility,
)


class DescriptorReflector(ReflectionProtocol):
    """
    Reflects over in-memory NamespaceDescriptor records.

    Descriptors only record what they declare directly. The reflector derives
    the inherited views (the mixin lookup list) from the superclass chain.
    """

    def __init__(
        self,
        root: Optional[NamespaceDescriptor] = None,
        root_name: str = "Object",
    ):
        self._root = root or NamespaceDescriptor(name=root_name, kind=NamespaceKind.CLASS)

    def is_namespace(self, entity: Any) -> bool:
        return isinstance(entity, NamespaceDescriptor)

    def qualified_name(self, entity: NamespaceDescriptor) -> str:
        return entity.name

    def kind(self, entity: NamespaceDescriptor) -> NamespaceKind:
        return entity.kind

    def superclass(self, entity: NamespaceDescriptor) -> Optional[NamespaceDescriptor]:
        if not entity.is_class:
            return None
        return entity.superclass

    def root(self) -> NamespaceDescriptor:
        return self._root

    def constants(self, entity: NamespaceDescriptor) -> List[str]:
        return list(entity.constants)

    def constant_value(self, entity: NamespaceDescriptor, name: str) -> Any:
        return entity.constants[name]

    def class_variables(self, entity: NamespaceDescriptor) -> List[str]:
        return list(entity.class_variables)

    def class_variable_value(self, entity: NamespaceDescriptor, name: str) -> Any:
        return entity.class_variables[name]

    def mixins(self, entity: NamespaceDescriptor) -> List[NamespaceDescriptor]:
        lookup: Dict[str, NamespaceDescriptor] = {}
        self._collect_mixins(entity, lookup, visiting=set())
        return list(lookup.values())

    def _collect_mixins(
        self,
        entity: NamespaceDescriptor,
        lookup: Dict[str, NamespaceDescriptor],
        visiting: set,
    ) -> None:
        if entity.name in visiting:
            return
        visiting.add(entity.name)

        for mixin in entity.mixins:
            if mixin.name not in lookup:
                lookup[mixin.name] = mixin
                # A mixin's own mixins come right after it in the lookup path.
                self._collect_mixins(mixin, lookup, visiting)
        if entity.is_class and entity.superclass is not None:
            self._collect_mixins(entity.superclass, lookup, visiting)

    def class_callables(self, entity: NamespaceDescriptor) -> List[CallableMember]:
        return list(entity.class_callables)

    def instance_callables(
        self, entity: NamespaceDescriptor, visibility: Visibility
    ) -> List[CallableMember]:
        return list(entity.callables_for(visibility))
