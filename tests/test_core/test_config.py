"""Tests for configuration loading and target selection."""

from __future__ import annotations

from pathlib import Path

from trust_sync.core.base import StoreTarget
from trust_sync.core.config import (
    DEFAULT_PREFIX,
    HostEnvironment,
    InstallConfig,
    load_config,
)


def test_default_targets_is_system_only(config: InstallConfig):
    assert config.targets() == [StoreTarget.SYSTEM]


def test_targets_order(environment):
    """NSS and Java run before the system store."""
    config = InstallConfig(with_java=True, with_firefox=True, environment=environment)
    assert config.targets() == [StoreTarget.NSS, StoreTarget.JAVA, StoreTarget.SYSTEM]


def test_no_system(environment):
    config = InstallConfig(with_java=True, with_no_system=True, environment=environment)
    assert config.targets() == [StoreTarget.JAVA]


def test_host_environment_from_env():
    env = HostEnvironment.from_env(
        {
            "HOME": "/home/alice",
            "JAVA_HOME": "/opt/jdk",
            "TRUSTSTORE_NSS_LOCATION": "/srv/nssdb",
            "TRUSTSTORE_INSTALL_CA_PACKAGE": "true",
            "TRUSTSTORE_IGNORE_PACKAGE_CERTS": "yes",
        }
    )
    assert env.home == Path("/home/alice")
    assert env.java_home == Path("/opt/jdk")
    assert env.nss_location == "/srv/nssdb"
    assert env.install_ca_package is True
    # only the literal "true" enables it
    assert env.ignore_package_certs is False


def test_host_environment_defaults():
    env = HostEnvironment.from_env({"HOME": "/root"})
    assert env.java_home is None
    assert env.nss_location is None
    assert env.install_ca_package is False


def test_load_config_missing_returns_empty(tmp_path: Path):
    assert load_config(tmp_path / "nope.toml") == {}


def test_load_merges_file_env_and_overrides(tmp_path: Path):
    path = tmp_path / "trust-sync.toml"
    path.write_text('prefix = "Dev CA "\nfirefox = true\nnss_location = "/tmp/nss"\n')

    config = InstallConfig.load(
        config_path=path, environ={"HOME": str(tmp_path)}, with_java=True, with_firefox=False
    )

    assert config.prefix == "Dev CA "
    # a False flag does not switch off a store enabled in the file
    assert config.with_firefox is True
    assert config.with_java is True
    assert config.nss_location == "/tmp/nss"


def test_load_env_prefix_beats_file(tmp_path: Path):
    path = tmp_path / "trust-sync.toml"
    path.write_text('prefix = "File CA "\n')

    config = InstallConfig.load(
        config_path=path, environ={"HOME": str(tmp_path), "TRUSTSTORE_PREFIX": "Env CA "}
    )
    assert config.prefix == "Env CA "

    config = InstallConfig.load(
        config_path=path,
        environ={"HOME": str(tmp_path), "TRUSTSTORE_PREFIX": "Env CA "},
        prefix="Flag CA ",
    )
    assert config.prefix == "Flag CA "


def test_load_env_nss_location_beats_file(tmp_path: Path):
    path = tmp_path / "trust-sync.toml"
    path.write_text('nss_location = "/from/file"\n')

    config = InstallConfig.load(
        config_path=path,
        environ={"HOME": str(tmp_path), "TRUSTSTORE_NSS_LOCATION": "/from/env"},
    )
    assert config.nss_location == "/from/env"


def test_load_defaults(tmp_path: Path):
    config = InstallConfig.load(config_path=tmp_path / "none.toml", environ={"HOME": str(tmp_path)})
    assert config.prefix == DEFAULT_PREFIX
    assert config.targets() == [StoreTarget.SYSTEM]
