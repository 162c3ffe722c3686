"""Tests for the process-wide expansion model registry."""

import threading
import types

from structlog.testing import capture_logs

from prf_engine.application import model_registry
from prf_engine.application.model_registry import (
    NAMESPACE_QEMODEL,
    ModelParameters,
    ModelRegistry,
)
from prf_engine.domain.errors import ConfigurationError
from prf_engine.domain.services.expansion_models import KL, Bo1, ExpansionModel


class ConstantModel(ExpansionModel):
    def score(self, term, feedback):  # type: ignore[no-untyped-def]
        return 1.0


def test_same_name_resolves_to_same_instance():
    reg = ModelRegistry()
    first = reg.resolve("Bo1")
    second = reg.resolve("Bo1")
    assert first.ok and second.ok
    assert first.value is second.value
    assert isinstance(first.value, Bo1)


def test_short_and_qualified_names_share_cache_entry():
    reg = ModelRegistry()
    short = reg.resolve("KL").value
    qualified = reg.resolve(f"{NAMESPACE_QEMODEL}.KL").value
    assert short is qualified


def test_parameters_are_passed_to_models():
    reg = ModelRegistry(ModelParameters(rocchio_beta=0.7, parameter_free=False))
    model = reg.resolve("Bo2").value
    assert model.rocchio_beta == 0.7
    assert model.parameter_free is False
    assert model.get_info() == "Bo2b0.7"


def test_registered_factory_is_used():
    reg = ModelRegistry(factories={"Constant": ConstantModel})
    model = reg.resolve("Constant").value
    assert isinstance(model, ConstantModel)


def test_fully_qualified_name_is_imported_from_allowed_module():
    reg = ModelRegistry(factories={}, allowed_modules=(__name__,))
    reg_name = f"{__name__}.ConstantModel"
    result = reg.resolve(reg_name)
    assert result.ok
    assert type(result.value).__name__ == "ConstantModel"


def test_unknown_model_fails_and_is_logged_once():
    reg = ModelRegistry()
    with capture_logs() as logs:
        first = reg.resolve("NoSuchModel")
        second = reg.resolve("NoSuchModel")
    assert not first.ok and not second.ok
    assert isinstance(first.error, ConfigurationError)
    assert first.error.name == f"{NAMESPACE_QEMODEL}.NoSuchModel"
    events = [e for e in logs if e["event"] == "expansion_model_unavailable"]
    assert len(events) == 1


def test_non_model_class_is_rejected():
    reg = ModelRegistry(factories={"NotAModel": lambda **kw: object()})
    result = reg.resolve("NotAModel")
    assert not result.ok
    assert "not an ExpansionModel" in result.error.detail


def test_concurrent_resolution_keeps_names_apart():
    reg = ModelRegistry()
    seen: dict[str, list[object]] = {"Bo1": [], "KL": []}
    lock = threading.Lock()
    start = threading.Barrier(8)

    def worker(name: str) -> None:
        start.wait()
        for _ in range(50):
            model = reg.resolve(name).value
            with lock:
                seen[name].append(model)

    threads = [threading.Thread(target=worker, args=(n,)) for n in ("Bo1", "KL") * 4]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    bo1 = {id(m) for m in seen["Bo1"]}
    kl = {id(m) for m in seen["KL"]}
    assert len(bo1) == 1 and len(kl) == 1
    assert isinstance(seen["Bo1"][0], Bo1)
    assert isinstance(seen["KL"][0], KL)


def test_dotted_name_outside_allowed_modules_is_not_imported(monkeypatch):
    imported: list[str] = []
    monkeypatch.setattr(model_registry, "import_module", lambda name: imported.append(name))
    reg = ModelRegistry(allowed_modules=("plugins",))

    for name in ("this.Anything", "pluginsx.models.Custom", "os.system"):
        result = reg.resolve(name)
        assert not result.ok
        assert isinstance(result.error, ConfigurationError)
        assert "not an allowed model module" in result.error.detail
    assert imported == []


def test_submodule_of_allowed_module_is_imported(monkeypatch):
    fake = types.SimpleNamespace(Custom=ConstantModel)
    imported: list[str] = []

    def import_module(name):  # type: ignore[no-untyped-def]
        imported.append(name)
        return fake

    monkeypatch.setattr(model_registry, "import_module", import_module)
    reg = ModelRegistry(allowed_modules=("plugins",))
    result = reg.resolve("plugins.models.Custom")
    assert result.ok
    assert isinstance(result.value, ConstantModel)
    assert imported == ["plugins.models"]


def test_reported_names_are_bounded(monkeypatch):
    monkeypatch.setattr(model_registry, "MAX_REPORTED", 1)
    reg = ModelRegistry()
    with capture_logs() as logs:
        for name in ("NoSuchA", "NoSuchB", "NoSuchA"):
            reg.resolve(name)
    events = [e for e in logs if e["event"] == "expansion_model_unavailable"]
    # the set was full, so "NoSuchA" was forgotten and reported again
    assert len(events) == 3
