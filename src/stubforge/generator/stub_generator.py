import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from stubforge.config import StubforgeConfig
from stubforge.reflection import DescriptorReflector
from stubforge.spec import (
    ArityKind,
    CallableMember,
    InvalidArgumentError,
    LiteralError,
    NamespaceKind,
    ReflectionProtocol,
    StubGeneratorProtocol,
    ValueRenderError,
    Visibility,
)
from .literals import render_literal
from .ordering import order_by_superclass

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TraversalFrame:
    level: int = 0
    prefix: str = ""  # Qualified name of the enclosing namespace

    def enter(self) -> "TraversalFrame":
        return replace(self, level=self.level + 1)

    def nested_in(self, qualified_name: str) -> "TraversalFrame":
        return replace(self, prefix=qualified_name)


@dataclass
class _Exclusions:
    constants: Set[str]
    class_callables: Set[str]
    instance_callables: Set[str]


class StubGenerator(StubGeneratorProtocol):
    def __init__(
        self,
        reflector: Optional[ReflectionProtocol] = None,
        config: Optional[StubforgeConfig] = None,
    ):
        self.config = config or StubforgeConfig()
        self.reflector: ReflectionProtocol = reflector or DescriptorReflector(
            root_name=self.config.root_name
        )

    def generate(self, entity: Any) -> str:
        if not self.reflector.is_namespace(entity):
            raise InvalidArgumentError(entity)

        lines: List[str] = []
        self._dump_namespace(entity, TraversalFrame(), lines)
        return "\n".join(lines)

    # --- Formatting helpers ---

    def _add_line(self, lines: List[str], frame: TraversalFrame, text: str = ""):
        if text:
            lines.append(f"{self.config.indent * frame.level}{text}")
        else:
            lines.append("")

    def _display_name(self, qualified_name: str, prefix: str) -> str:
        lead = prefix + self.config.namespace_separator
        if prefix and qualified_name.startswith(lead):
            return qualified_name[len(lead) :]
        return qualified_name

    def _format_params(self, member: CallableMember) -> str:
        if member.arity_kind == ArityKind.VARIABLE:
            return f"({self.config.catch_all_parameter})"
        if member.arity_kind == ArityKind.FIXED:
            prefix = self.config.parameter_prefix
            return "(" + ", ".join(f"{prefix}{i}" for i in range(member.arity_count)) + ")"
        return ""

    def _render_value(self, owner: str, name: str, value: Any) -> str:
        # Namespaces bound under a foreign name are aliases, not declarations.
        if self.reflector.is_namespace(value):
            return self.reflector.qualified_name(value)
        try:
            return render_literal(value)
        except LiteralError as e:
            raise ValueRenderError(owner, name, value, e.reason) from e

    # --- Reflection helpers ---

    def _instance_names(self, entity: Any) -> Set[str]:
        names: Set[str] = set()
        for visibility in Visibility:
            names.update(
                m.name for m in self.reflector.instance_callables(entity, visibility)
            )
        return names

    def _is_root(self, entity: Any) -> bool:
        root = self.reflector.root()
        if root is None:
            return False
        return self.reflector.qualified_name(entity) == self.reflector.qualified_name(
            root
        )

    def _direct_mixins(
        self, entity: Any, superclass: Optional[Any], enclosing: str
    ) -> List[Any]:
        r = self.reflector
        inherited: Set[str] = set()
        if superclass is not None:
            inherited = {r.qualified_name(m) for m in r.mixins(superclass)}
        return [
            m
            for m in r.mixins(entity)
            if r.qualified_name(m) not in inherited and r.qualified_name(m) != enclosing
        ]

    def _root_exclusions(self) -> Tuple[Set[str], Set[str]]:
        root = self.reflector.root()
        if root is None:
            return set(), set()
        class_names = {m.name for m in self.reflector.class_callables(root)}
        return class_names, self._instance_names(root)

    # --- Traversal ---

    def _dump_includes(
        self, lines: List[str], frame: TraversalFrame, included: List[Any]
    ) -> _Exclusions:
        r = self.reflector
        exclusions = _Exclusions(set(), set(), set())
        if not included:
            return exclusions

        # Reverse lookup order: the first-checked mixin is printed last.
        for mixin in reversed(included):
            self._add_line(lines, frame, f"include {r.qualified_name(mixin)}")
            exclusions.constants.update(r.constants(mixin))
            exclusions.class_callables.update(m.name for m in r.class_callables(mixin))
            exclusions.instance_callables.update(self._instance_names(mixin))
        self._add_line(lines, frame)
        return exclusions

    def _dump_assignments(
        self,
        lines: List[str],
        frame: TraversalFrame,
        header: str,
        assignments: List[str],
    ):
        if not assignments:
            return
        self._add_line(lines, frame, header)
        for assignment in assignments:
            self._add_line(lines, frame, assignment)
        self._add_line(lines, frame)

    def _dump_methods(
        self,
        lines: List[str],
        frame: TraversalFrame,
        header: str,
        members: Iterable[CallableMember],
        excluded: Optional[Set[str]] = None,
        receiver: str = "",
        marker: str = "",
    ):
        unique: Dict[str, CallableMember] = {
            m.name: m for m in members if m.name not in (excluded or set())
        }
        if not unique:
            return
        self._add_line(lines, frame, header)
        for name in sorted(unique):
            member = unique[name]
            self._add_line(
                lines, frame, f"def {receiver}{name}{self._format_params(member)}"
            )
            # The body is unknown, and so is the return value.
            self._add_line(lines, frame, "end")
            if marker:
                self._add_line(lines, frame, f"{marker} :{name}")
            self._add_line(lines, frame)

    def _dump_namespace(self, entity: Any, frame: TraversalFrame, lines: List[str]):
        r = self.reflector
        sep = self.config.namespace_separator
        qualified = r.qualified_name(entity)
        display = self._display_name(qualified, frame.prefix)
        kind = r.kind(entity)
        log.debug(f"Generating stub for {kind.value} {qualified}")

        # 1. Declaration
        superclass = r.superclass(entity) if kind == NamespaceKind.CLASS else None
        if kind == NamespaceKind.CLASS:
            clause = ""
            if superclass is not None and not self._is_root(superclass):
                clause = f" < {r.qualified_name(superclass)}"
            self._add_line(lines, frame, f"class {display}{clause}")
        else:
            self._add_line(lines, frame, f"module {display}")

        body = frame.enter()
        self._add_line(lines, body)

        # 2. Includes, collecting what they contribute so it is not re-declared.
        included = self._direct_mixins(entity, superclass, frame.prefix)
        exclusions = self._dump_includes(lines, body, included)

        # 3. Constants, deferring nested namespaces
        constant_lines: List[str] = []
        nested: List[Any] = []
        for name in sorted(set(r.constants(entity)) - exclusions.constants):
            value = r.constant_value(entity, name)
            if r.is_namespace(value) and r.qualified_name(value) == f"{qualified}{sep}{name}":
                nested.append(value)
            else:
                constant_lines.append(
                    f"{name} = {self._render_value(qualified, name, value)}"
                )
        self._dump_assignments(lines, body, "# Constants", constant_lines)

        # 4. Class variables
        variable_lines = []
        for name in sorted(set(r.class_variables(entity))):
            value = r.class_variable_value(entity, name)
            sigil = "" if name.startswith("@@") else "@@"
            variable_lines.append(
                f"{sigil}{name} = {self._render_value(qualified, name, value)}"
            )
        self._dump_assignments(lines, body, "# Class variables", variable_lines)

        # 5. Callables
        root_class, root_instance = self._root_exclusions()
        self._dump_methods(
            lines,
            body,
            "# Class methods",
            r.class_callables(entity),
            excluded=exclusions.class_callables | root_class,
            receiver="self.",
        )
        self._dump_methods(
            lines,
            body,
            "# Instance methods",
            r.instance_callables(entity, Visibility.PUBLIC),
        )
        self._dump_methods(
            lines,
            body,
            "# Protected instance methods",
            r.instance_callables(entity, Visibility.PROTECTED),
            excluded=exclusions.instance_callables | root_instance,
            marker="protected",
        )
        self._dump_methods(
            lines,
            body,
            "# Private instance methods",
            r.instance_callables(entity, Visibility.PRIVATE),
            excluded=exclusions.instance_callables | root_instance,
            marker="private",
        )

        # 6. Nested namespaces, superclasses first
        def parent_of(ns: Any) -> Optional[str]:
            if r.kind(ns) != NamespaceKind.CLASS:
                return None
            parent = r.superclass(ns)
            return r.qualified_name(parent) if parent is not None else None

        child_frame = body.nested_in(qualified)
        for ns in order_by_superclass(nested, r.qualified_name, parent_of):
            self._dump_namespace(ns, child_frame, lines)
            self._add_line(lines, body)

        # 7. Terminator
        self._add_line(lines, frame, f"end # {kind.value} {display}")


def generate(
    entity: Any,
    reflector: Optional[ReflectionProtocol] = None,
    config: Optional[StubforgeConfig] = None,
) -> str:
    return StubGenerator(reflector=reflector, config=config).generate(entity)
