"""Configuration: optional TOML file, environment, and the InstallConfig record."""

from __future__ import annotations

import os
import platform
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from trust_sync.core.base import StoreTarget

DEFAULT_PREFIX = "Truststore Development CA "

DEFAULT_CONFIG_PATHS = [
    Path.home() / ".config" / "trust-sync" / "config.toml",
    Path("trust-sync.toml"),
]

ENV_NSS_LOCATION = "TRUSTSTORE_NSS_LOCATION"
ENV_INSTALL_CA_PACKAGE = "TRUSTSTORE_INSTALL_CA_PACKAGE"
ENV_IGNORE_PACKAGE_CERTS = "TRUSTSTORE_IGNORE_PACKAGE_CERTS"
ENV_PREFIX = "TRUSTSTORE_PREFIX"


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from a TOML file.

    Searches default paths if no explicit path is given.
    Returns an empty dict if no config file is found.
    """
    paths = [path] if path is not None else DEFAULT_CONFIG_PATHS

    for p in paths:
        if p.exists():
            with open(p, "rb") as f:
                return tomllib.load(f)

    return {}


class HostEnvironment(BaseModel):
    """Host inputs read once from the process environment.

    Tests build this directly instead of mutating os.environ.
    """

    home: Path
    system: str = "Linux"
    java_home: Path | None = None
    nss_location: str | None = None
    install_ca_package: bool = False
    ignore_package_certs: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> HostEnvironment:
        env = os.environ if environ is None else environ
        home = env.get("HOME")
        java_home = env.get("JAVA_HOME")
        return cls(
            home=Path(home) if home else Path.home(),
            system=platform.system(),
            java_home=Path(java_home) if java_home else None,
            nss_location=env.get(ENV_NSS_LOCATION) or None,
            install_ca_package=env.get(ENV_INSTALL_CA_PACKAGE) == "true",
            ignore_package_certs=env.get(ENV_IGNORE_PACKAGE_CERTS) == "true",
        )


class InstallConfig(BaseModel):
    """Which stores to touch and how to name the certificate in them."""

    with_java: bool = False
    with_firefox: bool = False
    with_no_system: bool = False
    verbose: bool = False
    prefix: str = DEFAULT_PREFIX
    nss_location_override: str | None = None
    environment: HostEnvironment = Field(default_factory=HostEnvironment.from_env)

    def targets(self) -> list[StoreTarget]:
        """Selected stores, in execution order."""
        selected: set[StoreTarget] = set()
        if self.with_firefox:
            selected.add(StoreTarget.NSS)
        if self.with_java:
            selected.add(StoreTarget.JAVA)
        if not self.with_no_system:
            selected.add(StoreTarget.SYSTEM)
        return [t for t in StoreTarget if t in selected]

    @property
    def nss_location(self) -> str | None:
        return self.nss_location_override or self.environment.nss_location

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> InstallConfig:
        """Merge defaults, TOML file, environment and explicit overrides.

        Overrides set to None are ignored; boolean store switches from the file
        are combined with the overrides so a flag can only add stores.
        """
        env = os.environ if environ is None else environ
        file_config = load_config(config_path)

        values: dict[str, Any] = {
            "with_java": bool(file_config.get("java", False)),
            "with_firefox": bool(file_config.get("firefox", False)),
            "with_no_system": bool(file_config.get("no_system", False)),
            "prefix": env.get(ENV_PREFIX) or file_config.get("prefix", DEFAULT_PREFIX),
            "nss_location_override": (
                None if env.get(ENV_NSS_LOCATION) else file_config.get("nss_location")
            ),
        }
        for key, value in overrides.items():
            if value is None:
                continue
            if isinstance(value, bool) and key.startswith("with_"):
                values[key] = values.get(key, False) or value
            else:
                values[key] = value

        values["environment"] = HostEnvironment.from_env(env)
        return cls(**values)
