import json
import math
from typing import Any

from stubforge.spec import (
    LiteralError,
    NamespaceDescriptor,
    OpaqueValue,
    SourceLiteral,
    Symbol,
)


def _render_str(value: str) -> str:
    # JSON string escapes are valid in double-quoted stub strings; only
    # interpolation openers need extra escaping.
    text = json.dumps(value, ensure_ascii=False)
    for opener in ("#{", "#@", "#$"):
        text = text.replace(opener, "\\" + opener)
    return text


def _render_float(value: float) -> str:
    if math.isnan(value):
        return "Float::NAN"
    if math.isinf(value):
        return "Float::INFINITY" if value > 0 else "-Float::INFINITY"
    return repr(value)


def render_literal(value: Any) -> str:
    """
    Renders a plain value as a literal of the stub language.

    Raises LiteralError for values without a literal form.
    """
    if value is None:
        return "nil"
    # bool before int: bool is an int subclass.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _render_float(value)
    if isinstance(value, str):
        return _render_str(value)
    if isinstance(value, Symbol):
        return f":{value.name}"
    if isinstance(value, SourceLiteral):
        return value.text
    if isinstance(value, NamespaceDescriptor):
        return value.name
    if isinstance(value, OpaqueValue):
        raise LiteralError(value, f"expression '{value.source}' has no literal form")
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_literal(item) for item in value) + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        pairs = [f"{render_literal(k)} => {render_literal(v)}" for k, v in value.items()]
        return "{" + ", ".join(pairs) + "}"
    if isinstance(value, range):
        if value.step != 1:
            raise LiteralError(value, "only ranges with a step of 1 have a literal form")
        return f"({value.start}...{value.stop})"
    raise LiteralError(value)
