"""Store registry: auto-discovers trust store adapters and orders them."""

from __future__ import annotations

import importlib
import logging
import pkgutil
from typing import TYPE_CHECKING

from trust_sync import stores as stores_pkg
from trust_sync.core.base import BaseStore, StoreTarget
from trust_sync.core.errors import NotSupportedError

if TYPE_CHECKING:
    from pathlib import Path

    from cryptography import x509

    from trust_sync.core.config import InstallConfig

logger = logging.getLogger(__name__)


_registry: dict[StoreTarget, BaseStore] = {}
_discovered = False


class UnavailableStore(BaseStore):
    """Stands in for a selected store whose package could not be imported."""

    def __init__(self, target: StoreTarget) -> None:
        self.target = target
        self.display_name = f"{target} store"

    def _fail(self) -> NotSupportedError:
        return NotSupportedError(f"{self.target} store is not available in this installation")

    def is_present(self, cert: x509.Certificate, config: InstallConfig) -> bool:
        raise self._fail()

    def install(self, path: Path, cert: x509.Certificate, config: InstallConfig) -> None:
        raise self._fail()

    def uninstall(self, path: Path, cert: x509.Certificate, config: InstallConfig) -> bool:
        raise self._fail()


def _discover_stores() -> None:
    """Walk trust_sync.stores.* and instantiate every BaseStore subclass."""
    global _discovered
    if _discovered:
        return

    for _importer, modname, ispkg in pkgutil.iter_modules(
        stores_pkg.__path__, stores_pkg.__name__ + "."
    ):
        if not ispkg:
            continue
        # Import the store.py inside each sub-package
        try:
            mod = importlib.import_module(f"{modname}.store")
        except ModuleNotFoundError as e:
            logger.debug("cannot load store %s: %s", modname, e)
            continue

        for attr_name in dir(mod):
            attr = getattr(mod, attr_name)
            if (
                isinstance(attr, type)
                and issubclass(attr, BaseStore)
                and attr is not BaseStore
                and attr.__module__ == mod.__name__
            ):
                instance = attr()
                _registry[instance.target] = instance

    _discovered = True


def get_store(target: StoreTarget) -> BaseStore | None:
    """Get a store adapter by target."""
    _discover_stores()
    return _registry.get(target)


def get_all_stores() -> dict[StoreTarget, BaseStore]:
    """Return all discovered store adapters."""
    _discover_stores()
    return dict(_registry)


def resolve_stores(config: InstallConfig) -> list[BaseStore]:
    """Return the adapters selected by the config, in execution order.

    A selected target with no registered adapter gets an UnavailableStore, so
    it shows up as failed instead of vanishing from the report.
    """
    _discover_stores()
    return [_registry.get(t) or UnavailableStore(t) for t in config.targets()]
