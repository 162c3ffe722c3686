"""Process-wide registry of expansion models.

Why: Models are stateless once built, so one instance per fully-resolved name
can serve every request. The composition root owns a single registry and
hands it to every engine it builds.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from importlib import import_module

import structlog

from prf_engine.domain.errors import ConfigurationError
from prf_engine.domain.services.expansion_models import Bo1, Bo2, KL, ExpansionModel
from prf_engine.domain.types import Result

logger = structlog.get_logger(__name__)

NAMESPACE_QEMODEL = "prf_engine.domain.services.expansion_models"

# Bound on distinct failing names remembered for log-once reporting
MAX_REPORTED = 1024


@dataclass(frozen=True)
class ModelParameters:
    """Tunables handed to every model the registry constructs."""

    rocchio_beta: float = 0.4
    parameter_free: bool = True


class ModelRegistry:
    """Resolve model names to shared ExpansionModel instances.

    Short names ("Bo1") resolve against NAMESPACE_QEMODEL; dotted names are
    taken as fully qualified ("my_pkg.models.MyModel"). A qualified name with
    no registered factory is imported on first use, but only from a module
    listed in allowed_modules (or a submodule of one). Every successful
    resolution is memoised by fully-resolved name.
    """

    def __init__(
        self,
        parameters: ModelParameters | None = None,
        factories: dict[str, Callable[..., ExpansionModel]] | None = None,
        allowed_modules: tuple[str, ...] = (),
    ) -> None:
        self.parameters = parameters or ModelParameters()
        self.allowed_modules = tuple(m.strip() for m in allowed_modules if m.strip())
        self._factories: dict[str, Callable[..., ExpansionModel]] = {
            f"{NAMESPACE_QEMODEL}.Bo1": Bo1,
            f"{NAMESPACE_QEMODEL}.Bo2": Bo2,
            f"{NAMESPACE_QEMODEL}.KL": KL,
        }
        if factories:
            for name, factory in factories.items():
                self._factories[self.qualify(name)] = factory
        self._cache: dict[str, ExpansionModel] = {}
        self._reported: set[str] = set()
        self._lock = threading.Lock()

    @staticmethod
    def qualify(name: str) -> str:
        if "." not in name:
            return f"{NAMESPACE_QEMODEL}.{name}"
        return name

    def register(self, name: str, factory: Callable[..., ExpansionModel]) -> None:
        with self._lock:
            self._factories[self.qualify(name)] = factory

    def resolve(self, name: str) -> Result[ExpansionModel, ConfigurationError]:
        """Return the cached model for name, building it on first use.

        Returns:
            Result with the shared instance, or a ConfigurationError (logged
            once per offending name).
        """
        qualified = self.qualify(name.strip())
        with self._lock:
            cached = self._cache.get(qualified)
            factory = self._factories.get(qualified)
        if cached is not None:
            return Result.success(cached)

        # Construction runs outside the lock; a concurrent duplicate is discarded below.
        try:
            if factory is None:
                factory = self._load(qualified)
            model = factory(
                rocchio_beta=self.parameters.rocchio_beta,
                parameter_free=self.parameters.parameter_free,
            )
            if not isinstance(model, ExpansionModel):
                raise TypeError(f"{type(model).__name__} is not an ExpansionModel")
        except Exception as ex:
            err = ConfigurationError(qualified, f"cannot load expansion model: {ex}")
            self._report(qualified, err)
            return Result.failure(err)

        with self._lock:
            model = self._cache.setdefault(qualified, model)
        return Result.success(model)

    def _load(self, qualified: str) -> Callable[..., ExpansionModel]:
        module_name, _, attr = qualified.rpartition(".")
        if not self._importable(module_name):
            raise LookupError(f"not registered and {module_name!r} is not an allowed model module")
        return getattr(import_module(module_name), attr)

    def _importable(self, module_name: str) -> bool:
        return any(
            module_name == allowed or module_name.startswith(allowed + ".")
            for allowed in self.allowed_modules
        )

    def _report(self, qualified: str, err: ConfigurationError) -> None:
        with self._lock:
            first = qualified not in self._reported
            if first:
                if len(self._reported) >= MAX_REPORTED:
                    self._reported.clear()
                self._reported.add(qualified)
        if first:
            logger.error("expansion_model_unavailable", model=qualified, detail=err.detail)
