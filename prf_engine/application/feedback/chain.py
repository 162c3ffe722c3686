"""Registry-driven construction of decorator chains.

Why: Selectors and collectors are configured as ordered name lists such as
"RelevantOnlyFeedbackSelector,PseudoRelevanceFeedbackSelector". The last name
is built first from the base dependencies; every earlier name wraps the node
built before it, so the first name ends up outermost.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from prf_engine.domain.errors import ConfigurationError
from prf_engine.domain.types import Result

N = TypeVar("N")
D = TypeVar("D")


@dataclass(frozen=True)
class ChainEntry(Generic[N, D]):
    """Factories for one name; a name may support either shape or both."""

    base: Callable[[D], N] | None = None
    wrapper: Callable[[N], N] | None = None


class ChainRegistry(Generic[N, D]):
    """Maps implementation names to node factories and assembles chains."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._entries: dict[str, ChainEntry[N, D]] = {}

    def register_base(self, name: str, factory: Callable[[D], N]) -> None:
        current = self._entries.get(name, ChainEntry())
        self._entries[name] = ChainEntry(base=factory, wrapper=current.wrapper)

    def register_wrapper(self, name: str, factory: Callable[[N], N]) -> None:
        current = self._entries.get(name, ChainEntry())
        self._entries[name] = ChainEntry(base=current.base, wrapper=factory)

    def names(self) -> list[str]:
        return sorted(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def build(
        self,
        names: Sequence[str],
        deps: D,
        on_node: Callable[[N], None] | None = None,
    ) -> Result[N, ConfigurationError]:
        """Assemble the chain for names (outermost first).

        Args:
            names: Implementation names; the last one terminates the chain
            deps: Base dependencies handed to the terminal node's factory
            on_node: Called on every node right after construction

        Returns:
            Result with the outermost node, or the ConfigurationError naming
            the offending entry.
        """
        if not names:
            return Result.failure(ConfigurationError(self.kind, "no implementation configured"))

        node: N | None = None
        for name in reversed(names):
            entry = self._entries.get(name)
            if entry is None:
                return Result.failure(ConfigurationError(name, f"unknown {self.kind}"))
            try:
                if node is None:
                    if entry.base is None:
                        return Result.failure(
                            ConfigurationError(name, f"{self.kind} cannot terminate a chain")
                        )
                    node = entry.base(deps)
                else:
                    if entry.wrapper is None:
                        return Result.failure(
                            ConfigurationError(name, f"{self.kind} cannot wrap another")
                        )
                    node = entry.wrapper(node)
            except ConfigurationError as ex:
                return Result.failure(ex)
            except Exception as ex:
                return Result.failure(ConfigurationError(name, f"construction failed: {ex}"))
            if on_node is not None:
                on_node(node)
        return Result.success(node)
