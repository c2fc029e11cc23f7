"""Firefox/NSS certificate database store."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from cryptography import x509

from trust_sync.core.base import BaseStore, StoreTarget
from trust_sync.core.certificate import trust_alias
from trust_sync.core.config import InstallConfig
from trust_sync.core.errors import (
    CertificateNotInstalledError,
    CommandExecutionError,
    NoProfilesError,
    StoreNotApplicable,
)
from trust_sync.core.runner import run_command
from trust_sync.stores.nss.profiles import (
    CERTUTIL,
    CERTUTIL_INSTALL_HELP,
    NSSProfile,
    find_certutil,
    has_certificate,
    iter_profiles,
)

logger = logging.getLogger(__name__)

NSS_BROWSERS = "Firefox/NSS"


def best_effort(profiles: Iterable[NSSProfile], action: Callable[[NSSProfile], None]) -> int:
    """Apply ``action`` to every profile, logging failures instead of raising.

    Returns the number of profiles visited.
    """
    count = 0
    for profile in profiles:
        count += 1
        try:
            action(profile)
        except CommandExecutionError as e:
            logger.debug("%s: %s", profile.spec, e)
    return count


def fail_fast(profiles: Iterable[NSSProfile], action: Callable[[NSSProfile], bool]) -> int:
    """Apply ``action`` to each profile; the first error stops the fan-out.

    Returns how many profiles reported a change.
    """
    changed = 0
    for profile in profiles:
        if action(profile):
            changed += 1
    return changed


class NSSStore(BaseStore):
    """Trust in every NSS database: Firefox profiles and ~/.pki/nssdb.

    Install is best effort per profile and verified afterwards; uninstall
    stops at the first profile it cannot clean.
    """

    target = StoreTarget.NSS
    display_name = NSS_BROWSERS

    def _certutil(self, config: InstallConfig) -> str:
        certutil = find_certutil(config.environment)
        if certutil is None:
            logger.warning(
                '"%s" is not available, so the certificate can\'t be automatically '
                'installed in %s! Install "%s" with "%s" and try again',
                CERTUTIL,
                NSS_BROWSERS,
                CERTUTIL,
                CERTUTIL_INSTALL_HELP,
            )
            raise StoreNotApplicable(
                self.target, f"{CERTUTIL} not found, unsupported for this store"
            )
        return certutil

    def _is_present(self, certutil: str, alias: str, config: InstallConfig) -> bool:
        found = False
        for profile in iter_profiles(config):
            found = True
            if not has_certificate(certutil, profile, alias):
                return False
        return found

    def is_present(self, cert: x509.Certificate, config: InstallConfig) -> bool:
        certutil = self._certutil(config)
        return self._is_present(certutil, trust_alias(cert, config.prefix), config)

    def install(self, path: Path, cert: x509.Certificate, config: InstallConfig) -> None:
        certutil = self._certutil(config)
        alias = trust_alias(cert, config.prefix)

        def add(profile: NSSProfile) -> None:
            run_command(
                [certutil, "-A", "-d", profile.spec, "-t", "C,,", "-n", alias, "-i", str(path)]
            ).check()

        if best_effort(iter_profiles(config), add) == 0:
            raise NoProfilesError(NSS_BROWSERS)

        if not self._is_present(certutil, alias, config):
            raise CertificateNotInstalledError(NSS_BROWSERS)
        logger.debug("certificate installed properly in %s", NSS_BROWSERS)

    def uninstall(self, path: Path, cert: x509.Certificate, config: InstallConfig) -> bool:
        certutil = self._certutil(config)
        alias = trust_alias(cert, config.prefix)

        def delete(profile: NSSProfile) -> bool:
            if not has_certificate(certutil, profile, alias):
                return False
            run_command([certutil, "-D", "-d", profile.spec, "-n", alias]).check()
            return True

        return fail_fast(iter_profiles(config), delete) > 0
