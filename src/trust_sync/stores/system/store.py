"""System-wide CA bundle store."""

from __future__ import annotations

import logging
from pathlib import Path

from cryptography import x509

from trust_sync.core.base import BaseStore, StoreTarget
from trust_sync.core.certificate import certificate_pem, filesystem_name, trust_alias
from trust_sync.core.config import InstallConfig
from trust_sync.core.runner import run_privileged
from trust_sync.stores.system.locator import PlatformProfile, PlatformTrustLocator

logger = logging.getLogger(__name__)


class SystemStore(BaseStore):
    """Copies a PEM anchor into the OS trust directory and rebuilds the bundle.

    Writes and the rebuild run through sudo unless the process is root. A
    rebuild failure after a successful write or remove is raised as is; the
    anchor directory and the compiled bundle may then disagree.
    """

    target = StoreTarget.SYSTEM
    display_name = "system trust store"
    # install always rewrites the anchor and rebuilds
    skip_when_present = False

    def __init__(self, locator: PlatformTrustLocator | None = None) -> None:
        self.locator = locator or PlatformTrustLocator()

    def _anchor_path(
        self, cert: x509.Certificate, config: InstallConfig
    ) -> tuple[PlatformProfile, Path]:
        profile = self.locator.resolve(config.environment)
        name = filesystem_name(trust_alias(cert, config.prefix))
        return profile, profile.anchor_path(name)

    def is_present(self, cert: x509.Certificate, config: InstallConfig) -> bool:
        profile = self.locator.find()
        if profile is None:
            return False
        anchor = profile.anchor_path(filesystem_name(trust_alias(cert, config.prefix)))
        try:
            return anchor.read_bytes() == certificate_pem(cert)
        except OSError:
            return False

    def install(self, path: Path, cert: x509.Certificate, config: InstallConfig) -> None:
        profile, anchor = self._anchor_path(cert, config)

        run_privileged(["tee", str(anchor)], stdin=certificate_pem(cert)).check()
        run_privileged(list(profile.rebuild_command)).check()

        logger.debug("certificate installed properly in %s", anchor)

    def uninstall(self, path: Path, cert: x509.Certificate, config: InstallConfig) -> bool:
        profile, anchor = self._anchor_path(cert, config)
        existed = anchor.exists()

        run_privileged(["rm", "-f", str(anchor)]).check()
        run_privileged(list(profile.rebuild_command)).check()

        logger.debug("certificate uninstalled properly from %s", anchor)
        return existed
