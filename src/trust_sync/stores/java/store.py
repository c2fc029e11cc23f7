"""Java cacerts keystore store."""

from __future__ import annotations

import logging
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes

from trust_sync.core.base import BaseStore, StoreTarget
from trust_sync.core.certificate import fingerprint_hex, trust_alias
from trust_sync.core.config import InstallConfig
from trust_sync.core.errors import CommandExecutionError, StoreNotApplicable
from trust_sync.core.runner import CommandResult, run_command, run_with_escalation
from trust_sync.stores.java.location import JavaStoreLocation, locate_java

logger = logging.getLogger(__name__)

STORE_PASS = "changeit"

# keytool reports a write to a root-owned cacerts this way
PERMISSION_SIGNATURE = "java.io.FileNotFoundException"
NOT_FOUND_SIGNATURE = "does not exist"


class JavaStore(BaseStore):
    """The cacerts keystore of the Java runtime under JAVA_HOME."""

    target = StoreTarget.JAVA
    display_name = "Java keystore"

    def _location(self, config: InstallConfig) -> JavaStoreLocation:
        location = locate_java(config.environment)
        if location is None:
            raise StoreNotApplicable(self.target, "no keytool or cacerts found under JAVA_HOME")
        return location

    def _keytool(
        self, config: InstallConfig, location: JavaStoreLocation, args: list[str]
    ) -> CommandResult:
        """Run keytool, retrying under sudo if cacerts is not writable."""
        return run_with_escalation(
            [str(location.keytool), *args],
            signature=PERMISSION_SIGNATURE,
            env_keep=("JAVA_HOME",),
            environ={"JAVA_HOME": str(location.java_home)},
            system=config.environment.system,
        )

    def is_present(self, cert: x509.Certificate, config: InstallConfig) -> bool:
        location = self._location(config)
        try:
            result = run_command(
                [
                    str(location.keytool),
                    "-list",
                    "-keystore",
                    str(location.cacerts),
                    "-storepass",
                    STORE_PASS,
                ]
            )
        except CommandExecutionError as e:
            logger.debug("%s", e)
            return False
        if not result.ok:
            logger.debug('failed to execute "keytool -list": %s', result.output)
            return False

        # keytool prints SHA1 (pre Java 9) or SHA-256 fingerprints as
        # colon-separated uppercase hex
        listing = result.output.replace(":", "")
        return any(
            fingerprint_hex(cert, algorithm) in listing
            for algorithm in (hashes.SHA1(), hashes.SHA256())
        )

    def install(self, path: Path, cert: x509.Certificate, config: InstallConfig) -> None:
        location = self._location(config)
        self._keytool(
            config,
            location,
            [
                "-importcert",
                "-noprompt",
                "-keystore",
                str(location.cacerts),
                "-storepass",
                STORE_PASS,
                "-file",
                str(path),
                "-alias",
                trust_alias(cert, config.prefix),
            ],
        ).check()
        logger.debug("certificate installed properly in %s", location.cacerts)

    def uninstall(self, path: Path, cert: x509.Certificate, config: InstallConfig) -> bool:
        location = self._location(config)
        result = self._keytool(
            config,
            location,
            [
                "-delete",
                "-alias",
                trust_alias(cert, config.prefix),
                "-keystore",
                str(location.cacerts),
                "-storepass",
                STORE_PASS,
            ],
        )
        if NOT_FOUND_SIGNATURE in result.output:
            return False
        result.check()
        logger.debug("certificate uninstalled properly from %s", location.cacerts)
        return True
