from textwrap import dedent

import pytest

from stubforge.config import StubforgeConfig
from stubforge.generator import StubGenerator, generate
from stubforge.reflection import DescriptorReflector
from stubforge.spec import (
    InvalidArgumentError,
    NamespaceDescriptor,
    NamespaceKind,
    OpaqueValue,
    StubGeneratorProtocol,
    ValueRenderError,
)
from stubforge.test_utils import NamespaceFactory, SpyReflector


@pytest.fixture
def generator():
    return StubGenerator()


def test_generate_sample_module(generator):
    sample = (
        NamespaceFactory.module("Sample")
        .with_constant("MAX", 5)
        .with_method("run", 0)
        .build()
    )

    expected = dedent("""
        module Sample

          # Constants
          MAX = 5

          # Instance methods
          def run
          end

        end # module Sample
    """).strip()

    assert generator.generate(sample) == expected


def test_generate_empty_namespaces():
    assert generate(NamespaceFactory.module("Empty").build()) == (
        "module Empty\n\nend # module Empty"
    )
    assert generate(NamespaceFactory.klass("Blank").build()) == (
        "class Blank\n\nend # class Blank"
    )


def test_generate_class_with_every_section(generator):
    # 1. Arrange: a superclass, a mixin, and members that overlap the mixin.
    shape = NamespaceFactory.klass("Geom::Shape").with_method("area").build()
    comparable = (
        NamespaceFactory.module("Comparable")
        .with_constant("EPSILON", 0.001)
        .with_class_method("compare", 2)
        .with_method("clamp", 2)
        .build()
    )
    point = (
        NamespaceFactory.klass("Geom::Point")
        .with_superclass(shape)
        .with_mixin(comparable)
        .with_constant("ORIGIN", [0, 0])
        .with_constant("EPSILON", 0.001)
        .with_class_variable("count", 0)
        .with_class_method("from_polar", 2)
        .with_class_method("compare", 2)
        .with_method("x")
        .with_method("move", 2)
        .with_method("each", -1)
        .with_protected("coords")
        .with_private("reset", -1)
        .with_private("clamp", 2)
        .build()
    )

    # 2. Arrange: the golden stub.
    expected = dedent("""
        class Geom::Point < Geom::Shape

          include Comparable

          # Constants
          ORIGIN = [0, 0]

          # Class variables
          @@count = 0

          # Class methods
          def self.from_polar(arg0, arg1)
          end

          # Instance methods
          def each(*args)
          end

          def move(arg0, arg1)
          end

          def x
          end

          # Protected instance methods
          def coords
          end
          protected :coords

          # Private instance methods
          def reset(*args)
          end
          private :reset

        end # class Geom::Point
    """).strip()

    # 3. Act & Assert
    assert generator.generate(point) == expected


def test_nested_namespaces_follow_their_superclass(generator):
    shape = NamespaceFactory.klass("Geom::Shape").build()
    point = NamespaceFactory.klass("Geom::Point").with_superclass(shape).build()
    util = NamespaceFactory.module("Geom::Util").build()
    geom = (
        NamespaceFactory.module("Geom")
        .with_constant("VERSION", "1.0")
        .with_nested(point)
        .with_nested(shape)
        .with_nested(util)
        .build()
    )

    expected = dedent("""
        module Geom

          # Constants
          VERSION = "1.0"

          class Shape

          end # class Shape

          class Point < Geom::Shape

          end # class Point

          module Util

          end # module Util

        end # module Geom
    """).strip()

    assert generator.generate(geom) == expected


def test_root_superclass_is_not_printed(generator):
    root = NamespaceDescriptor(name="Object", kind=NamespaceKind.CLASS)
    widget = NamespaceFactory.klass("Widget").with_superclass(root).build()

    assert generator.generate(widget).splitlines()[0] == "class Widget"


def test_root_members_are_excluded_except_public_ones():
    root = (
        NamespaceFactory.klass("Object")
        .with_class_method("new", -1)
        .with_method("to_s")
        .with_private("initialize", -1)
        .build()
    )
    widget = (
        NamespaceFactory.klass("Widget")
        .with_class_method("new", -1)
        .with_class_method("build", 1)
        .with_method("to_s")
        .with_private("initialize", -1)
        .build()
    )
    generator = StubGenerator(reflector=DescriptorReflector(root=root))

    output = generator.generate(widget)

    assert "def self.build(arg0)" in output
    assert "def self.new" not in output
    assert "def to_s" in output
    assert "initialize" not in output


def test_mixins_of_superclass_are_not_included_again(generator):
    enumerable = NamespaceFactory.module("Enumerable").with_method("map", -1).build()
    base = NamespaceFactory.klass("Base").with_mixin(enumerable).build()
    child = NamespaceFactory.klass("Child").with_superclass(base).build()

    assert generator.generate(base).splitlines()[2] == "  include Enumerable"
    assert generator.generate(child) == "class Child < Base\n\nend # class Child"


def test_includes_are_printed_in_reverse_lookup_order(generator):
    first = NamespaceFactory.module("First").build()
    second = NamespaceFactory.module("Second").build()
    host = NamespaceFactory.module("Host").with_mixin(first).with_mixin(second).build()

    lines = generator.generate(host).splitlines()

    assert lines[2:4] == ["  include Second", "  include First"]


def test_enclosing_namespace_is_not_included(generator):
    outer_mixin = NamespaceFactory.module("Outer").build()
    inner = NamespaceFactory.module("Outer::Inner").with_mixin(outer_mixin).build()
    outer = NamespaceFactory.module("Outer").with_nested(inner).build()

    output = generator.generate(outer)

    assert "include" not in output
    assert "  module Inner" in output


def test_namespace_alias_renders_as_value_line(generator):
    other = NamespaceFactory.klass("Other").with_method("run").build()
    host = NamespaceFactory.module("Host").with_constant("Alias", other).build()

    output = generator.generate(host)

    assert "  Alias = Other" in output
    assert "class" not in output


def test_arity_rendering(generator):
    host = (
        NamespaceFactory.module("Host")
        .with_method("none", 0)
        .with_method("three", 3)
        .with_method("splat", -2)
        .build()
    )

    output = generator.generate(host)

    assert "  def none\n" in output
    assert "  def three(arg0, arg1, arg2)\n" in output
    assert "  def splat(*args)\n" in output


def test_generator_honours_config():
    config = StubforgeConfig(
        indent_width=4,
        namespace_separator=".",
        parameter_prefix="a",
        catch_all_parameter="*rest",
    )
    inner = (
        NamespaceFactory.klass("pkg.Inner")
        .with_method("call", 2)
        .with_method("any", -1)
        .build()
    )
    outer = NamespaceFactory.module("pkg").with_constant("Inner", inner).build()

    output = StubGenerator(config=config).generate(outer)

    assert "    class Inner\n" in output
    assert "        def call(a0, a1)\n" in output
    assert "        def any(*rest)\n" in output


@pytest.mark.parametrize("value", [5, "Sample", None, [NamespaceKind.CLASS]])
def test_non_namespace_is_rejected(generator, value):
    with pytest.raises(InvalidArgumentError) as exc_info:
        generator.generate(value)
    assert exc_info.value.value is value


def test_invalid_argument_produces_no_reflection_reads():
    spy = SpyReflector()

    with pytest.raises(InvalidArgumentError):
        StubGenerator(reflector=spy).generate(42)

    assert [call["method"] for call in spy.calls] == ["is_namespace"]
    spy.assert_not_called("qualified_name")


def test_unrenderable_constant_raises_value_render_error(generator):
    host = NamespaceFactory.module("Host").with_constant("HANDLE", object()).build()

    with pytest.raises(ValueRenderError) as exc_info:
        generator.generate(host)

    assert exc_info.value.owner == "Host"
    assert exc_info.value.name == "HANDLE"


def test_opaque_class_variable_raises_value_render_error(generator):
    inner = (
        NamespaceFactory.klass("Host::Inner")
        .with_class_variable("timeout", OpaqueValue("compute()"))
        .build()
    )
    host = NamespaceFactory.module("Host").with_nested(inner).build()

    with pytest.raises(ValueRenderError) as exc_info:
        generator.generate(host)

    assert exc_info.value.owner == "Host::Inner"
    assert "compute()" in str(exc_info.value)


def test_generator_implements_the_generator_protocol():
    assert StubGeneratorProtocol in StubGenerator.__mro__
