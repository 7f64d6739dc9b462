import logging
from typing import Any, Dict, List, Optional, Tuple

import networkx as nx
import yaml

from stubforge.spec import (
    CallableMember,
    ModelLoadError,
    NamespaceDescriptor,
    NamespaceKind,
    OpaqueValue,
    SourceLiteral,
    Symbol,
    Visibility,
)

log = logging.getLogger(__name__)


class ModelLoader(yaml.SafeLoader):
    pass


class ModelDumper(yaml.SafeDumper):
    pass


ModelLoader.add_constructor(
    "!symbol", lambda loader, node: Symbol(str(loader.construct_scalar(node)))
)
ModelLoader.add_constructor(
    "!literal", lambda loader, node: SourceLiteral(str(loader.construct_scalar(node)))
)
ModelLoader.add_constructor(
    "!opaque", lambda loader, node: OpaqueValue(str(loader.construct_scalar(node)))
)
ModelDumper.add_representer(
    Symbol, lambda dumper, data: dumper.represent_scalar("!symbol", data.name)
)
ModelDumper.add_representer(
    SourceLiteral, lambda dumper, data: dumper.represent_scalar("!literal", data.text)
)
ModelDumper.add_representer(
    OpaqueValue, lambda dumper, data: dumper.represent_scalar("!opaque", data.source)
)

_METHOD_SECTIONS = {
    "methods": Visibility.PUBLIC,
    "protected": Visibility.PROTECTED,
    "private": Visibility.PRIVATE,
}


class YamlModelAdapter:
    """
    Builds NamespaceDescriptor graphs from a declarative YAML document.

    Nested entries under `namespaces` become constants of their parent.
    `superclass` and `includes` refer to other namespaces by name, looked up
    from the innermost enclosing scope outwards; names that are not declared
    in the document become bare external namespaces.
    """

    def __init__(self, separator: str = "::"):
        self.separator = separator

    # --- Loading ---

    def loads(self, text: str) -> Dict[str, NamespaceDescriptor]:
        try:
            data = yaml.load(text, Loader=ModelLoader)
        except yaml.YAMLError as e:
            raise ModelLoadError(f"Invalid YAML model: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict) or not isinstance(data.get("namespaces"), list):
            raise ModelLoadError("A model document needs a top-level 'namespaces' list")

        specs: Dict[str, Tuple[str, Dict[str, Any]]] = {}
        self._collect(data["namespaces"], "", specs)

        graph = nx.DiGraph()
        graph.add_nodes_from(specs)
        for qualified, (parent, entry) in specs.items():
            for ref in self._references(entry):
                target = self._resolve(ref, parent, specs)
                # Enclosing namespaces are built after their children; those
                # references are bound once everything exists.
                if target is not None and not self._encloses(target, qualified):
                    graph.add_edge(target, qualified)
            if parent:
                # Children are built before the namespace that holds them.
                graph.add_edge(qualified, parent)

        try:
            order = list(nx.topological_sort(graph))
        except nx.NetworkXUnfeasible as e:
            cycle = " -> ".join(edge[0] for edge in nx.find_cycle(graph))
            raise ModelLoadError(f"Cyclic namespace references: {cycle}") from e

        built: Dict[str, NamespaceDescriptor] = {}
        externals: Dict[str, NamespaceDescriptor] = {}
        pending: Dict[str, NamespaceDescriptor] = {}
        for qualified in order:
            parent, entry = specs[qualified]
            built[qualified] = self._build(
                qualified, parent, entry, specs, built, externals, pending
            )
        if pending:
            self._bind_pending(built, pending)

        # Document order, not build order.
        return {qualified: built[qualified] for qualified in specs}

    def _collect(
        self,
        entries: Any,
        parent: str,
        specs: Dict[str, Tuple[str, Dict[str, Any]]],
    ) -> None:
        if not isinstance(entries, list):
            raise ModelLoadError(f"'namespaces' of '{parent}' must be a list")
        for entry in entries:
            if not isinstance(entry, dict) or "name" not in entry:
                raise ModelLoadError(f"Every namespace in '{parent or '<root>'}' needs a name")
            short = str(entry["name"])
            qualified = f"{parent}{self.separator}{short}" if parent else short
            if qualified in specs:
                raise ModelLoadError(f"Namespace '{qualified}' is declared twice")
            specs[qualified] = (parent, entry)
            self._collect(entry.get("namespaces") or [], qualified, specs)

    def _references(self, entry: Dict[str, Any]) -> List[str]:
        refs = [str(ref) for ref in entry.get("includes") or []]
        if entry.get("superclass"):
            refs.append(str(entry["superclass"]))
        return refs

    def _resolve(
        self, ref: str, scope: str, specs: Dict[str, Tuple[str, Dict[str, Any]]]
    ) -> Optional[str]:
        while scope:
            candidate = f"{scope}{self.separator}{ref}"
            if candidate in specs:
                return candidate
            scope = specs[scope][0]
        return ref if ref in specs else None

    def _encloses(self, outer: str, inner: str) -> bool:
        return inner.startswith(outer + self.separator)

    def _bind_pending(
        self,
        built: Dict[str, NamespaceDescriptor],
        pending: Dict[str, NamespaceDescriptor],
    ) -> None:
        placeholders = {id(p): built[name] for name, p in pending.items()}

        def bound(ns: NamespaceDescriptor) -> NamespaceDescriptor:
            return placeholders.get(id(ns), ns)

        for ns in built.values():
            if ns.superclass is not None:
                # Descriptors are frozen; this is the only post-construction write.
                object.__setattr__(ns, "superclass", bound(ns.superclass))
            object.__setattr__(ns, "mixins", tuple(bound(m) for m in ns.mixins))
        log.debug(f"Bound enclosing references to {', '.join(pending)}")

    def _lookup(
        self,
        ref: str,
        scope: str,
        kind: NamespaceKind,
        specs: Dict[str, Tuple[str, Dict[str, Any]]],
        built: Dict[str, NamespaceDescriptor],
        externals: Dict[str, NamespaceDescriptor],
        pending: Dict[str, NamespaceDescriptor],
    ) -> NamespaceDescriptor:
        target = self._resolve(ref, scope, specs)
        if target is not None:
            if target in built:
                return built[target]
            # An enclosing namespace that is still being assembled.
            if target not in pending:
                pending[target] = NamespaceDescriptor(name=target, kind=kind)
            return pending[target]
        if ref not in externals:
            log.debug(f"'{ref}' is not declared in the model; treating it as external")
            externals[ref] = NamespaceDescriptor(name=ref, kind=kind)
        return externals[ref]

    def _members(
        self, qualified: str, section: str, entry: Dict[str, Any], visibility: Visibility
    ) -> List[CallableMember]:
        raw = entry.get(section) or {}
        if not isinstance(raw, dict):
            raise ModelLoadError(f"'{section}' of '{qualified}' must map names to arities")
        members = []
        for name, arity in raw.items():
            if isinstance(arity, bool) or not isinstance(arity, int):
                raise ModelLoadError(
                    f"Arity of '{qualified}.{name}' must be an integer, got {arity!r}"
                )
            members.append(CallableMember.from_arity(str(name), arity, visibility))
        return members

    def _build(
        self,
        qualified: str,
        parent: str,
        entry: Dict[str, Any],
        specs: Dict[str, Tuple[str, Dict[str, Any]]],
        built: Dict[str, NamespaceDescriptor],
        externals: Dict[str, NamespaceDescriptor],
        pending: Dict[str, NamespaceDescriptor],
    ) -> NamespaceDescriptor:
        try:
            kind = NamespaceKind(entry.get("kind", "module"))
        except ValueError as e:
            raise ModelLoadError(f"Unknown kind of '{qualified}': {entry['kind']!r}") from e
        if kind == NamespaceKind.MODULE and entry.get("superclass"):
            raise ModelLoadError(f"Module '{qualified}' cannot have a superclass")

        superclass = None
        if entry.get("superclass"):
            superclass = self._lookup(
                str(entry["superclass"]),
                parent,
                NamespaceKind.CLASS,
                specs,
                built,
                externals,
                pending,
            )
        mixins = tuple(
            self._lookup(
                str(ref), parent, NamespaceKind.MODULE, specs, built, externals, pending
            )
            for ref in entry.get("includes") or []
        )

        constants = {str(k): v for k, v in (entry.get("constants") or {}).items()}
        for child in entry.get("namespaces") or []:
            constants[str(child["name"])] = built[f"{qualified}{self.separator}{child['name']}"]
        class_variables = {
            str(k): v for k, v in (entry.get("class_variables") or {}).items()
        }

        instance_callables: List[CallableMember] = []
        for section, visibility in _METHOD_SECTIONS.items():
            instance_callables.extend(self._members(qualified, section, entry, visibility))

        return NamespaceDescriptor(
            name=qualified,
            kind=kind,
            superclass=superclass,
            mixins=mixins,
            constants=constants,
            class_variables=class_variables,
            class_callables=tuple(
                self._members(qualified, "class_methods", entry, Visibility.PUBLIC)
            ),
            instance_callables=tuple(instance_callables),
        )

    # --- Dumping ---

    def dumps(self, descriptor: NamespaceDescriptor) -> str:
        data = {"namespaces": [self._to_data(descriptor, parent="")]}
        return yaml.dump(
            data,
            Dumper=ModelDumper,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
        )

    def _to_data(self, ns: NamespaceDescriptor, parent: str) -> Dict[str, Any]:
        short = ns.name
        if parent and ns.name.startswith(parent + self.separator):
            short = ns.name[len(parent + self.separator) :]
        data: Dict[str, Any] = {"name": short, "kind": ns.kind.value}
        if ns.superclass is not None:
            data["superclass"] = ns.superclass.name
        if ns.mixins:
            data["includes"] = [m.name for m in ns.mixins]

        constants: Dict[str, Any] = {}
        nested: List[Dict[str, Any]] = []
        for name, value in ns.constants.items():
            if isinstance(value, NamespaceDescriptor):
                if value.name == f"{ns.name}{self.separator}{name}":
                    nested.append(self._to_data(value, parent=ns.name))
                else:
                    constants[name] = SourceLiteral(value.name)
            else:
                constants[name] = value
        if constants:
            data["constants"] = constants
        if ns.class_variables:
            data["class_variables"] = dict(ns.class_variables)
        if ns.class_callables:
            data["class_methods"] = {m.name: m.arity for m in ns.class_callables}
        for section, visibility in _METHOD_SECTIONS.items():
            members = ns.callables_for(visibility)
            if members:
                data[section] = {m.name: m.arity for m in members}
        if nested:
            data["namespaces"] = nested
        return data
