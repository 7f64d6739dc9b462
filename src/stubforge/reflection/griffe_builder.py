import ast
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple, Union, cast

import griffe
from griffe import AliasResolutionError, CyclicAliasError, ParameterKind

from stubforge.config import StubforgeConfig
from stubforge.spec import (
    ArityKind,
    CallableMember,
    InvalidArgumentError,
    NamespaceDescriptor,
    NamespaceKind,
    OpaqueValue,
    Visibility,
)

log = logging.getLogger(__name__)

_VARIADIC = (ParameterKind.var_positional, ParameterKind.var_keyword)


def _visibility_of(name: str) -> Visibility:
    if name.startswith("__") and not name.endswith("__"):
        return Visibility.PRIVATE
    if name.startswith("_") and not name.startswith("__"):
        return Visibility.PROTECTED
    return Visibility.PUBLIC


def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


def _is_instance_only(attr: griffe.Attribute) -> bool:
    # Plain class-body assignments carry both labels; `self.x = ...` only one.
    return "instance-attribute" in attr.labels and "class-attribute" not in attr.labels


class GriffeModelBuilder:
    """
    Snapshots griffe object trees into NamespaceDescriptor records.

    Python names map onto the stub model as follows: UPPER_CASE attributes are
    constants, other class or module attributes are class variables, nested
    classes and submodules are nested namespaces, module-level functions,
    static methods and class methods are class callables. The first base of a
    class is its superclass, the remaining bases are its mixins.
    """

    def __init__(
        self,
        config: Optional[StubforgeConfig] = None,
        skip_opaque_values: bool = False,
    ):
        self.config = config or StubforgeConfig()
        self.skip_opaque_values = skip_opaque_values
        self.root = NamespaceDescriptor(name="object", kind=NamespaceKind.CLASS)
        self._cache: Dict[str, NamespaceDescriptor] = {}
        self._building: Set[str] = set()

    # --- Entry points ---

    def visit(self, module_name: str, code: str) -> NamespaceDescriptor:
        # Explicit cast to Any to bypass Pyright check if filepath is strict Path
        path_obj = Path(f"{module_name.replace('.', '/')}.py")
        module = griffe.visit(module_name, filepath=cast(Any, path_obj), code=code)
        return self.build(module)

    def load(
        self, objspec: str, search_paths: Optional[Sequence[Union[str, Path]]] = None
    ) -> NamespaceDescriptor:
        obj = griffe.load(objspec, search_paths=search_paths)
        if obj.is_alias:
            obj = cast(griffe.Alias, obj).final_target
        return self.build(cast(griffe.Object, obj))

    def build(self, obj: Any) -> NamespaceDescriptor:
        if not isinstance(obj, griffe.Object) or not (obj.is_module or obj.is_class):
            raise InvalidArgumentError(obj)
        return self._build_object(obj)

    # --- Mapping ---

    def _qualify(self, path: str) -> str:
        return path.replace(".", self.config.namespace_separator)

    def _bare(self, name: str, kind: NamespaceKind) -> NamespaceDescriptor:
        return NamespaceDescriptor(name=self._qualify(name), kind=kind)

    def _build_object(self, obj: griffe.Object) -> NamespaceDescriptor:
        if obj.path in self._cache:
            return self._cache[obj.path]
        kind = NamespaceKind.CLASS if obj.is_class else NamespaceKind.MODULE
        if obj.path in self._building:
            log.warning(f"Cyclic reference to {obj.path}; emitting it by name only")
            return self._bare(obj.path, kind)

        self._building.add(obj.path)
        try:
            if obj.is_class:
                descriptor = self._map_class(cast(griffe.Class, obj))
            else:
                descriptor = self._map_module(cast(griffe.Module, obj))
        finally:
            self._building.discard(obj.path)
        self._cache[obj.path] = descriptor
        return descriptor

    def _map_module(self, gm: griffe.Module) -> NamespaceDescriptor:
        constants, class_variables, class_callables, _ = self._map_members(
            gm, in_class=False
        )
        return NamespaceDescriptor(
            name=self._qualify(gm.path),
            kind=NamespaceKind.MODULE,
            constants=constants,
            class_variables=class_variables,
            class_callables=tuple(class_callables),
        )

    def _map_class(self, gc: griffe.Class) -> NamespaceDescriptor:
        bases = self._map_bases(gc)
        superclass = bases[0] if bases else None
        mixins = tuple(bases[1:])
        constants, class_variables, class_callables, instance_callables = (
            self._map_members(gc, in_class=True)
        )
        return NamespaceDescriptor(
            name=self._qualify(gc.path),
            kind=NamespaceKind.CLASS,
            superclass=superclass,
            mixins=mixins,
            constants=constants,
            class_variables=class_variables,
            class_callables=tuple(class_callables),
            instance_callables=tuple(instance_callables),
        )

    def _map_bases(self, gc: griffe.Class) -> List[NamespaceDescriptor]:
        bases = []
        for base in gc.bases:
            base_path = base if isinstance(base, str) else getattr(
                base, "canonical_path", str(base)
            )
            if base_path in ("object", "builtins.object"):
                continue
            resolved = self._resolve_class(gc, base_path)
            if resolved is not None:
                bases.append(self._build_object(resolved))
            else:
                log.debug(f"Base {base_path} of {gc.path} is external")
                bases.append(self._bare(str(base), NamespaceKind.CLASS))
        return bases

    def _resolve_class(self, gc: griffe.Class, path: str) -> Optional[griffe.Object]:
        # Look in the class's own package first: objects built with
        # griffe.visit are not registered in any modules collection.
        resolved: Any = None
        package = gc.package
        parts = path.split(".")
        try:
            if parts[0] == package.name:
                resolved = package
                for part in parts[1:]:
                    resolved = resolved.members.get(part)
                    if resolved is None:
                        break
            if resolved is None:
                resolved = gc.modules_collection.get_member(path)
            if resolved.is_alias:
                resolved = resolved.final_target
        except (AliasResolutionError, CyclicAliasError, KeyError, ValueError):
            return None
        return resolved if resolved.is_class else None

    def _map_members(
        self, obj: griffe.Object, in_class: bool
    ) -> Tuple[Dict[str, Any], Dict[str, Any], List[CallableMember], List[CallableMember]]:
        constants: Dict[str, Any] = {}
        class_variables: Dict[str, Any] = {}
        class_callables: List[CallableMember] = []
        instance_callables: List[CallableMember] = []

        for name, member in obj.members.items():
            if member.is_alias:
                # Imports are not declarations of this namespace.
                log.debug(f"Skipping alias {obj.path}.{name}")
                continue
            if member.is_class or member.is_module:
                constants[name] = self._build_object(cast(griffe.Object, member))
            elif member.is_function:
                func = cast(griffe.Function, member)
                if not in_class or {"staticmethod", "classmethod"} & func.labels:
                    class_callables.append(self._map_function(func, in_class))
                else:
                    instance_callables.append(self._map_function(func, in_class))
            elif member.is_attribute:
                attr = cast(griffe.Attribute, member)
                if _is_dunder(name) or _is_instance_only(attr):
                    continue
                if attr.value is None:
                    continue
                value = self._map_value(attr)
                if isinstance(value, OpaqueValue) and self.skip_opaque_values:
                    log.debug(f"Skipping non-literal attribute {attr.path}")
                    continue
                if name.isupper():
                    constants[name] = value
                else:
                    class_variables[name] = value

        return constants, class_variables, class_callables, instance_callables

    def _map_value(self, attr: griffe.Attribute) -> Any:
        source = str(attr.value)
        try:
            return ast.literal_eval(source)
        except (ValueError, SyntaxError, TypeError, MemoryError, RecursionError):
            return OpaqueValue(source)

    def _map_function(self, gf: griffe.Function, in_class: bool) -> CallableMember:
        params = list(gf.parameters)
        bound = in_class and "staticmethod" not in gf.labels
        if bound and params:
            # Drop the receiver (self / cls).
            params = params[1:]

        visibility = _visibility_of(gf.name) if in_class else Visibility.PUBLIC
        if any(p.kind in _VARIADIC or p.default is not None for p in params):
            return CallableMember(gf.name, ArityKind.VARIABLE, 0, visibility)
        return CallableMember(gf.name, ArityKind.FIXED, len(params), visibility)
