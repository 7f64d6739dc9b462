from .literals import render_literal
from .ordering import order_by_superclass
from .stub_generator import StubGenerator, TraversalFrame, generate

__all__ = [
    "StubGenerator",
    "TraversalFrame",
    "generate",
    "order_by_superclass",
    "render_literal",
]
