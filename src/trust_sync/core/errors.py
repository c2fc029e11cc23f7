"""Error taxonomy shared by every trust store."""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trust_sync.core.base import StoreTarget, SyncReport


class TrustStoreError(Exception):
    """Base class for all trust store failures."""


class NotSupportedError(TrustStoreError):
    """The requested store or operation cannot be performed on this host."""

    def __init__(self, message: str = "install is not supported on this system") -> None:
        super().__init__(message)


class NotFoundError(TrustStoreError):
    """An expected certificate or entry is absent."""


class CertificateNotInstalledError(NotFoundError):
    """The certificate is still missing after an install attempt."""

    def __init__(self, store_name: str) -> None:
        self.store_name = store_name
        super().__init__(f"certificate cannot be installed in {store_name}")


class NoProfilesError(TrustStoreError):
    """No certificate database was discovered for a profile-based store."""

    def __init__(self, store_name: str) -> None:
        self.store_name = store_name
        super().__init__(f"no {store_name} security databases found")


class InvalidCertificateError(TrustStoreError):
    """Input bytes are neither a PEM-wrapped nor a DER X.509 certificate."""

    def __init__(self, source: str, reason: str = "invalid PEM data") -> None:
        self.source = source
        super().__init__(f"error parsing {source}: {reason}")


class CommandExecutionError(TrustStoreError):
    """An external command could not be spawned or exited non-zero."""

    def __init__(
        self,
        args: Sequence[str],
        output: str = "",
        returncode: int | None = None,
        reason: str | None = None,
    ) -> None:
        self.command = shlex.join(args)
        self.output = output
        self.returncode = returncode
        if reason is None:
            reason = f"exit status {returncode}"
        super().__init__(f'failed to execute "{self.command}": {reason}\n\n{output}'.rstrip())


class StoreNotApplicable(TrustStoreError):
    """Raised when a store does not exist on this host and is skipped."""

    def __init__(self, target: StoreTarget, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"{target}: {reason}")


class SyncError(TrustStoreError):
    """One or more stores failed during a sync operation."""

    def __init__(self, report: SyncReport, errors: dict[StoreTarget, Exception]) -> None:
        self.report = report
        self.errors = errors
        details = "\n".join(f"{target}: {err}" for target, err in errors.items())
        super().__init__(f"{len(errors)} trust store(s) failed:\n{details}")
