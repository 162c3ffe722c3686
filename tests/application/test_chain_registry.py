"""Tests for registry-driven decorator chain construction."""

from prf_engine.application.feedback.chain import ChainRegistry
from prf_engine.domain.errors import ConfigurationError


class Base:
    def __init__(self, deps: str) -> None:
        self.deps = deps

    def describe(self) -> str:
        return f"base({self.deps})"


class Wrap:
    def __init__(self, inner, tag: str) -> None:  # type: ignore[no-untyped-def]
        self.inner = inner
        self.tag = tag

    def describe(self) -> str:
        return f"{self.tag}[{self.inner.describe()}]"


def make_registry() -> ChainRegistry:
    reg: ChainRegistry = ChainRegistry("widget")
    reg.register_base("Base", Base)
    reg.register_wrapper("Outer", lambda inner: Wrap(inner, "outer"))
    reg.register_wrapper("Inner", lambda inner: Wrap(inner, "inner"))
    return reg


def test_last_name_is_innermost_and_first_is_outermost():
    result = make_registry().build(["Outer", "Inner", "Base"], "deps")
    assert result.ok
    assert result.value.describe() == "outer[inner[base(deps)]]"


def test_single_base_name():
    result = make_registry().build(["Base"], "d")
    assert result.value.describe() == "base(d)"


def test_on_node_sees_every_node_innermost_first():
    built: list[str] = []
    make_registry().build(["Outer", "Base"], "d", on_node=lambda n: built.append(n.describe()))
    assert built == ["base(d)", "outer[base(d)]"]


def test_unknown_name_fails_with_that_name():
    result = make_registry().build(["Outer", "Missing"], "d")
    assert not result.ok
    assert isinstance(result.error, ConfigurationError)
    assert result.error.name == "Missing"


def test_wrapper_cannot_terminate_chain():
    result = make_registry().build(["Base", "Outer"], "d")
    assert not result.ok
    assert result.error.name == "Outer"


def test_base_cannot_wrap():
    result = make_registry().build(["Base", "Base"], "d")
    assert not result.ok
    assert "cannot wrap" in result.error.detail


def test_empty_chain_is_configuration_error():
    result = make_registry().build([], "d")
    assert not result.ok
    assert result.error.name == "widget"


def test_construction_failure_is_reported_not_raised():
    reg = make_registry()

    def boom(_deps):  # type: ignore[no-untyped-def]
        raise RuntimeError("broken")

    reg.register_base("Broken", boom)
    result = reg.build(["Broken"], "d")
    assert not result.ok
    assert result.error.name == "Broken"
    assert "broken" in result.error.detail


def test_names_and_membership():
    reg = make_registry()
    assert reg.names() == ["Base", "Inner", "Outer"]
    assert "Base" in reg
    assert "Nope" not in reg
