"""NSS certificate database discovery and the certutil lookup."""

from __future__ import annotations

import glob
import logging
import shutil
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from trust_sync.core.config import HostEnvironment, InstallConfig
from trust_sync.core.errors import CommandExecutionError
from trust_sync.core.runner import run_command

logger = logging.getLogger(__name__)

CERTUTIL = "certutil"
CERTUTIL_INSTALL_HELP = 'apt install libnss3-tools" or "yum install nss-tools'


class DatabaseFormat(StrEnum):
    SQL = "sql"  # cert9.db
    DBM = "dbm"  # legacy cert8.db


@dataclass(frozen=True)
class NSSProfile:
    """A certificate database directory and its on-disk format."""

    path: Path
    db_format: DatabaseFormat

    @property
    def spec(self) -> str:
        """Database argument for certutil -d, e.g. 'sql:/home/me/.pki/nssdb'."""
        return f"{self.db_format}:{self.path}"


def profile_patterns(environment: HostEnvironment) -> list[str]:
    """Glob patterns for browser profiles plus the shared per-user database."""
    home = environment.home
    patterns = [
        str(home / ".mozilla" / "firefox" / "*"),
        str(home / "snap" / "firefox" / "common" / ".mozilla" / "firefox" / "*"),
    ]
    if environment.system == "Darwin":
        firefox = home / "Library" / "Application Support" / "Firefox"
        patterns.append(str(firefox / "Profiles" / "*"))
    patterns.append(str(home / ".pki" / "nssdb"))
    return patterns


def classify(directory: Path) -> NSSProfile | None:
    """Tag a directory with its database format, or None if it holds no database."""
    if not directory.is_dir():
        return None
    if (directory / "cert9.db").exists():
        return NSSProfile(directory, DatabaseFormat.SQL)
    if (directory / "cert8.db").exists():
        return NSSProfile(directory, DatabaseFormat.DBM)
    return None


def iter_profiles(config: InstallConfig) -> Iterator[NSSProfile]:
    """Yield every NSS database found on the host.

    A configured NSS location (glob allowed) replaces the default search. Each
    call starts a fresh scan.
    """
    override = config.nss_location
    patterns = [override] if override else profile_patterns(config.environment)

    seen: set[Path] = set()
    for pattern in patterns:
        for match in sorted(glob.glob(pattern)):
            directory = Path(match)
            if directory in seen:
                continue
            seen.add(directory)
            profile = classify(directory)
            if profile is not None:
                yield profile


def find_certutil(environment: HostEnvironment) -> str | None:
    """Locate certutil on PATH, or via Homebrew's nss formula on macOS."""
    path = shutil.which(CERTUTIL)
    if path is not None:
        return path
    if environment.system != "Darwin":
        return None

    try:
        result = run_command(["brew", "--prefix", "nss"])
    except CommandExecutionError:
        return None
    if not result.ok:
        return None
    candidate = Path(result.output.strip()) / "bin" / CERTUTIL
    return str(candidate) if candidate.exists() else None


def has_certificate(certutil: str, profile: NSSProfile, alias: str) -> bool:
    """Whether ``alias`` is a valid CA entry in the profile's database.

    A database certutil cannot open counts as not having the certificate.
    """
    try:
        result = run_command([certutil, "-V", "-d", profile.spec, "-u", "L", "-n", alias])
    except CommandExecutionError as e:
        logger.debug("%s", e)
        return False
    return result.ok
