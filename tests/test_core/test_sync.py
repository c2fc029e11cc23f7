"""Tests for the orchestrator using in-memory stores."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from trust_sync.core.base import BaseStore, Operation, StoreAction, StoreTarget
from trust_sync.core.certificate import certificate_pem, trust_alias
from trust_sync.core.config import InstallConfig
from trust_sync.core.errors import (
    CommandExecutionError,
    InvalidCertificateError,
    NotSupportedError,
    StoreNotApplicable,
    SyncError,
)
from trust_sync.core.sync import install, install_file, uninstall, uninstall_file


class MemoryStore(BaseStore):
    """Store that keeps aliases in a set and records calls."""

    display_name = "memory"

    def __init__(self, target: StoreTarget, skip_when_present: bool = True) -> None:
        self.target = target
        self.skip_when_present = skip_when_present
        self.aliases: set[str] = set()
        self.calls: list[tuple[str, Path]] = []

    def is_present(self, cert, config):
        return trust_alias(cert, config.prefix) in self.aliases

    def install(self, path, cert, config):
        self.calls.append(("install", path))
        assert path.read_bytes()  # the file must exist while the store runs
        self.aliases.add(trust_alias(cert, config.prefix))

    def uninstall(self, path, cert, config):
        self.calls.append(("uninstall", path))
        alias = trust_alias(cert, config.prefix)
        if alias not in self.aliases:
            return False
        self.aliases.discard(alias)
        return True


class RaisingStore(MemoryStore):
    def __init__(self, target: StoreTarget, error: Exception) -> None:
        super().__init__(target)
        self.error = error

    def is_present(self, cert, config):
        if isinstance(self.error, StoreNotApplicable):
            raise self.error
        return False

    def install(self, path, cert, config):
        raise self.error

    def uninstall(self, path, cert, config):
        raise self.error


def _patch_stores(*stores: BaseStore):
    return patch("trust_sync.core.sync.resolve_stores", return_value=list(stores))


def test_install_twice_is_idempotent(cert, config: InstallConfig):
    store = MemoryStore(StoreTarget.NSS)
    with _patch_stores(store):
        first = install(cert, config)
        second = install(cert, config)

    assert first.get(StoreTarget.NSS).action == StoreAction.INSTALLED
    assert second.get(StoreTarget.NSS).action == StoreAction.UNCHANGED
    assert store.aliases == {trust_alias(cert, config.prefix)}
    assert len(store.calls) == 1


def test_install_reapplies_stores_that_never_short_circuit(cert, config: InstallConfig):
    store = MemoryStore(StoreTarget.SYSTEM, skip_when_present=False)
    with _patch_stores(store):
        install(cert, config)
        report = install(cert, config)

    assert report.get(StoreTarget.SYSTEM).action == StoreAction.INSTALLED
    assert len(store.calls) == 2


def test_uninstall_never_installed_is_noop(cert, config: InstallConfig):
    store = MemoryStore(StoreTarget.JAVA)
    with _patch_stores(store):
        report = uninstall(cert, config)

    assert report.ok
    assert report.operation == Operation.UNINSTALL
    assert report.get(StoreTarget.JAVA).action == StoreAction.UNCHANGED


def test_install_then_uninstall(cert, config: InstallConfig):
    store = MemoryStore(StoreTarget.NSS)
    with _patch_stores(store):
        install(cert, config)
        report = uninstall(cert, config)

    assert report.get(StoreTarget.NSS).action == StoreAction.UNINSTALLED
    assert store.aliases == set()


def test_staged_file_removed_after_install(cert, config: InstallConfig):
    store = MemoryStore(StoreTarget.NSS)
    with _patch_stores(store):
        install(cert, config)

    _, staged = store.calls[0]
    assert not staged.exists()


def test_staged_file_removed_after_failure(cert, config: InstallConfig):
    store = RaisingStore(StoreTarget.NSS, CommandExecutionError(["certutil"], "boom", 1))
    seen: list[Path] = []
    original = store.install

    def install_and_record(path, cert_, config_):
        seen.append(path)
        original(path, cert_, config_)

    store.install = install_and_record
    with _patch_stores(store), pytest.raises(SyncError):
        install(cert, config)

    assert seen and not seen[0].exists()


def test_install_file_uses_given_path(cert, cert_file: Path, config: InstallConfig):
    store = MemoryStore(StoreTarget.NSS)
    with _patch_stores(store):
        report = install_file(cert_file, config)

    assert store.calls == [("install", cert_file)]
    assert report.alias == trust_alias(cert, config.prefix)


def test_uninstall_file(cert, cert_file: Path, config: InstallConfig):
    store = MemoryStore(StoreTarget.NSS)
    store.aliases.add(trust_alias(cert, config.prefix))
    with _patch_stores(store):
        report = uninstall_file(cert_file, config)

    assert report.get(StoreTarget.NSS).action == StoreAction.UNINSTALLED


def test_skipped_store_is_not_an_error(cert, config: InstallConfig):
    """System succeeds and an absent Java runtime is skipped: overall success."""
    java = RaisingStore(StoreTarget.JAVA, StoreNotApplicable(StoreTarget.JAVA, "no JAVA_HOME"))
    system = MemoryStore(StoreTarget.SYSTEM, skip_when_present=False)
    with _patch_stores(java, system):
        report = install(cert, config)

    assert report.ok
    assert report.get(StoreTarget.JAVA).action == StoreAction.SKIPPED
    assert report.get(StoreTarget.JAVA).detail == "no JAVA_HOME"
    assert report.get(StoreTarget.SYSTEM).action == StoreAction.INSTALLED
    assert java.calls == []


def test_failure_does_not_stop_other_stores(cert, config: InstallConfig):
    nss = RaisingStore(StoreTarget.NSS, CommandExecutionError(["certutil", "-A"], "bad db", 255))
    system = MemoryStore(StoreTarget.SYSTEM, skip_when_present=False)
    with _patch_stores(nss, system), pytest.raises(SyncError) as exc_info:
        install(cert, config)

    err = exc_info.value
    assert set(err.errors) == {StoreTarget.NSS}
    assert isinstance(err.errors[StoreTarget.NSS], CommandExecutionError)
    assert err.report.get(StoreTarget.SYSTEM).action == StoreAction.INSTALLED
    assert err.report.get(StoreTarget.NSS).action == StoreAction.FAILED
    assert len(system.calls) == 1


def test_not_supported_is_reported(cert, config: InstallConfig):
    system = RaisingStore(StoreTarget.SYSTEM, NotSupportedError())
    with _patch_stores(system), pytest.raises(SyncError) as exc_info:
        uninstall(cert, config)

    assert isinstance(exc_info.value.errors[StoreTarget.SYSTEM], NotSupportedError)


def test_install_file_invalid_certificate(tmp_path: Path, config: InstallConfig):
    bad = tmp_path / "bad.pem"
    bad.write_bytes(b"garbage")
    with _patch_stores(MemoryStore(StoreTarget.NSS)), pytest.raises(InvalidCertificateError):
        install_file(bad, config)


def test_install_file_accepts_str_path(tmp_path: Path, cert, config: InstallConfig):
    path = tmp_path / "root.pem"
    path.write_bytes(certificate_pem(cert))
    store = MemoryStore(StoreTarget.NSS)
    with _patch_stores(store):
        install_file(str(path), config)
    assert store.calls[0][1] == path
