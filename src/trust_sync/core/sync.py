"""Install or remove one certificate across the selected trust stores.

This is the library entry point. Stores run one after another in a fixed
order (NSS, Java, then the system store). A failing store never stops the
others; once all ran, any failures are raised together as SyncError with the
full SyncReport attached. A store that does not exist on the host is
reported as skipped and is not a failure.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from cryptography import x509

from trust_sync.core.base import (
    BaseStore,
    Operation,
    StoreAction,
    StoreResult,
    SyncReport,
)
from trust_sync.core.certificate import read_certificate, staged_certificate, trust_alias
from trust_sync.core.config import InstallConfig
from trust_sync.core.errors import StoreNotApplicable, TrustStoreError
from trust_sync.core.registry import resolve_stores

logger = logging.getLogger(__name__)


def _install_one(
    store: BaseStore, path: Path, cert: x509.Certificate, config: InstallConfig
) -> StoreResult:
    if store.skip_when_present and store.is_present(cert, config):
        return StoreResult(
            target=store.target, action=StoreAction.UNCHANGED, detail="already trusted"
        )
    store.install(path, cert, config)
    return StoreResult(target=store.target, action=StoreAction.INSTALLED)


def _uninstall_one(
    store: BaseStore, path: Path, cert: x509.Certificate, config: InstallConfig
) -> StoreResult:
    if store.uninstall(path, cert, config):
        return StoreResult(target=store.target, action=StoreAction.UNINSTALLED)
    return StoreResult(target=store.target, action=StoreAction.UNCHANGED, detail="not installed")


def _run(
    operation: Operation, path: Path, cert: x509.Certificate, config: InstallConfig | None
) -> SyncReport:
    if config is None:
        config = InstallConfig.load()

    report = SyncReport(operation=operation, alias=trust_alias(cert, config.prefix))
    apply = _install_one if operation == Operation.INSTALL else _uninstall_one

    for store in resolve_stores(config):
        try:
            result = apply(store, path, cert, config)
        except StoreNotApplicable as e:
            logger.debug("skipping %s: %s", store.display_name, e.reason)
            result = StoreResult(target=store.target, action=StoreAction.SKIPPED, detail=e.reason)
        except (TrustStoreError, OSError) as e:
            logger.debug("%s failed: %s", store.display_name, e)
            result = StoreResult(
                target=store.target, action=StoreAction.FAILED, detail=str(e), error=e
            )
        report.results.append(result)

    report.raise_for_errors()
    return report


def install(cert: x509.Certificate, config: InstallConfig | None = None) -> SyncReport:
    """Trust ``cert`` in every store selected by ``config``."""
    with staged_certificate(cert) as path:
        return _run(Operation.INSTALL, path, cert, config)


def install_file(
    filename: str | os.PathLike[str], config: InstallConfig | None = None
) -> SyncReport:
    """Read the certificate in ``filename`` and trust it in the selected stores."""
    cert = read_certificate(filename)
    return _run(Operation.INSTALL, Path(filename), cert, config)


def uninstall(cert: x509.Certificate, config: InstallConfig | None = None) -> SyncReport:
    """Remove ``cert`` from every store selected by ``config``."""
    with staged_certificate(cert) as path:
        return _run(Operation.UNINSTALL, path, cert, config)


def uninstall_file(
    filename: str | os.PathLike[str], config: InstallConfig | None = None
) -> SyncReport:
    """Read the certificate in ``filename`` and remove it from the selected stores."""
    cert = read_certificate(filename)
    return _run(Operation.UNINSTALL, Path(filename), cert, config)
