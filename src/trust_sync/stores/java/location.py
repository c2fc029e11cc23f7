"""Java keystore and keytool discovery."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from trust_sync.core.config import HostEnvironment

# JRE layout first (Java 8 JDKs), then the modular JDK layout.
CACERTS_CANDIDATES = [
    Path("jre") / "lib" / "security" / "cacerts",
    Path("lib") / "security" / "cacerts",
]


class JavaStoreLocation(BaseModel):
    java_home: Path
    keytool: Path
    cacerts: Path


def keytool_name(system: str) -> str:
    return "keytool.exe" if system == "Windows" else "keytool"


def locate_java(environment: HostEnvironment) -> JavaStoreLocation | None:
    """Resolve keytool and cacerts under JAVA_HOME, or None if either is missing."""
    java_home = environment.java_home
    if java_home is None:
        return None

    keytool = java_home / "bin" / keytool_name(environment.system)
    if not keytool.is_file():
        return None

    for candidate in CACERTS_CANDIDATES:
        cacerts = java_home / candidate
        if cacerts.is_file():
            return JavaStoreLocation(java_home=java_home, keytool=keytool, cacerts=cacerts)
    return None
