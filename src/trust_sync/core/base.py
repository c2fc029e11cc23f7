"""Base store contract: every trust store implements this interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from cryptography import x509
from pydantic import BaseModel, ConfigDict, Field

from trust_sync.core.errors import SyncError

if TYPE_CHECKING:
    from trust_sync.core.config import InstallConfig


class StoreTarget(StrEnum):
    """Store kinds, declared in execution order (least to most global)."""

    NSS = "nss"
    JAVA = "java"
    SYSTEM = "system"


class Operation(StrEnum):
    INSTALL = "install"
    UNINSTALL = "uninstall"


class StoreAction(StrEnum):
    INSTALLED = "installed"
    UNINSTALLED = "uninstalled"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


class StoreResult(BaseModel):
    """Outcome of one operation against one store."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    target: StoreTarget
    action: StoreAction
    detail: str = ""
    error: Exception | None = Field(default=None, exclude=True)


class SyncReport(BaseModel):
    """Result of running an install or uninstall across the selected stores."""

    operation: Operation
    alias: str
    results: list[StoreResult] = Field(default_factory=list)

    @property
    def failed(self) -> list[StoreResult]:
        return [r for r in self.results if r.action == StoreAction.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failed

    def get(self, target: StoreTarget) -> StoreResult | None:
        for result in self.results:
            if result.target == target:
                return result
        return None

    def raise_for_errors(self) -> None:
        """Raise SyncError if any store failed."""
        errors = {r.target: r.error for r in self.failed if r.error is not None}
        if errors:
            raise SyncError(self, errors)


class BaseStore(ABC):
    """Abstract base class for trust store adapters.

    Adapters must be idempotent: installing a present certificate or removing
    an absent one succeeds. A store that does not exist on the host raises
    StoreNotApplicable instead of failing.
    """

    target: StoreTarget
    display_name: str

    # When False the orchestrator re-applies install even if is_present() holds.
    skip_when_present: bool = True

    @abstractmethod
    def is_present(self, cert: x509.Certificate, config: InstallConfig) -> bool:
        """Read-only check whether the certificate is trusted by this store."""
        ...

    @abstractmethod
    def install(self, path: Path, cert: x509.Certificate, config: InstallConfig) -> None:
        """Add the certificate. ``path`` points to a file holding it."""
        ...

    @abstractmethod
    def uninstall(self, path: Path, cert: x509.Certificate, config: InstallConfig) -> bool:
        """Remove the certificate. Returns False when there was nothing to remove."""
        ...
