# ABOUTME: Railway CLI version detection, caching, comparison and feature gating
# ABOUTME: Decides which CLI flags are safe to emit for the installed CLI version

"""
Railway CLI version detection and feature gating.

Newer Railway CLI releases added flags the server wants to use:

    4.9.0   railway logs --lines N / --filter TEXT
    4.10.0  railway deployment list

Sending an unknown flag to an older CLI makes the whole command fail, so the
server runs `railway --version`, caches the answer for a few minutes, and
only emits a flag when the detected version is at or above its threshold.

An undetectable version is represented as None, never as a placeholder
string. Every gate treats None as "not supported".
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from packaging.version import Version

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = structlog.get_logger(__name__)

# Minimum CLI versions per feature. Updated independently as the CLI evolves.
LOG_FEATURES_MIN_VERSION = "4.9.0"
DEPLOYMENT_LIST_MIN_VERSION = "4.10.0"

# First run of digits shaped like MAJOR[.MINOR[.PATCH]], not glued to other digits.
# Matches "railway 4.9.0", "railway version 4.9.0", "v4.9.0" and bare "4.9.0".
_VERSION_TOKEN = re.compile(r"(?<!\d)(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def coerce_version(text: str) -> str | None:
    """
    Extract the first version-shaped token from free text.

    Missing minor or patch components are filled with zero, so "railway 4.9"
    becomes "4.9.0". Pre-release and build suffixes are dropped.

    Returns:
        Normalized "MAJOR.MINOR.PATCH" string, or None if no digits are found.

    Example:
        >>> coerce_version("railway version 4.10.2")
        '4.10.2'
        >>> coerce_version("garbage") is None
        True
    """
    match = _VERSION_TOKEN.search(text)
    if not match:
        return None
    major, minor, patch = (int(part) if part else 0 for part in match.groups())
    return f"{major}.{minor}.{patch}"


def _release(version: str) -> tuple[int, int, int]:
    # Semver suffixes such as "-alpha.beta" are not PEP 440; strip them first
    coerced = coerce_version(version)
    if coerced is None:
        raise ValueError(f"No version number in {version!r}")
    parsed = Version(coerced)
    major, minor, patch = (tuple(parsed.release) + (0, 0, 0))[:3]
    return major, minor, patch


def compare_versions(version1: str, version2: str) -> int:
    """
    Compare two semantic versions by major, minor, then patch.

    Pre-release and build metadata are ignored, so "4.10.0-alpha.beta"
    equals "4.10.0".

    Returns:
        1 if version1 > version2, -1 if version1 < version2, 0 if equal.

    Raises:
        ValueError: If either string contains no digits at all.
    """
    left = _release(version1)
    right = _release(version2)
    if left > right:
        return 1
    if left < right:
        return -1
    return 0


def is_at_least(version: str | None, minimum: str) -> bool:
    """Check a possibly-unknown version against a threshold."""
    if version is None:
        return False
    try:
        return compare_versions(version, minimum) >= 0
    except ValueError:
        logger.warning("Unparseable CLI version", version=version)
        return False


@dataclass(frozen=True)
class FeatureSupport:
    """CLI capabilities derived from the detected version."""

    supports_lines: bool = False
    supports_filter: bool = False
    supports_deployment_list: bool = False


def feature_support_for(version: str | None) -> FeatureSupport:
    """
    Compute feature support for a version.

    Unknown versions and versions below a threshold disable the feature.
    """
    log_features = is_at_least(version, LOG_FEATURES_MIN_VERSION)
    return FeatureSupport(
        supports_lines=log_features,
        supports_filter=log_features,
        supports_deployment_list=is_at_least(version, DEPLOYMENT_LIST_MIN_VERSION),
    )


@dataclass
class VersionInfo:
    """Cached version lookup. Both fields are None or both are set."""

    version: str | None = None
    fetched_at: float | None = None

    def is_fresh(self, now: float, ttl: float) -> bool:
        return (
            self.version is not None
            and self.fetched_at is not None
            and now - self.fetched_at < ttl
        )


class VersionCache:
    """
    Memoized Railway CLI version.

    The fetcher is any coroutine returning the raw `railway --version` output;
    it may raise. Failed fetches and unparseable output are not cached, so the
    next call retries.

    Each RailwayCli owns one VersionCache. Tests build a fresh cache with a
    fake fetcher and clock instead of resetting shared state.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[str]],
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self._ttl = ttl_seconds
        self._clock = clock
        self._info = VersionInfo()

    @property
    def info(self) -> VersionInfo:
        return self._info

    async def get_version(self) -> str | None:
        """Return the cached version, asking the CLI when stale or empty."""
        if self._info.is_fresh(self._clock(), self._ttl):
            return self._info.version

        try:
            output = await self._fetch()
        except Exception as e:
            # Callers treat None as "capabilities unknown"
            logger.debug("Railway CLI version lookup failed", error=str(e))
            return None

        version = coerce_version(output)
        if version is None:
            logger.debug("No version found in CLI output", output=output[:100])
            return None

        self._info = VersionInfo(version=version, fetched_at=self._clock())
        logger.debug("Detected Railway CLI version", version=version)
        return version

    def clear(self) -> None:
        """Forget the cached version."""
        self._info = VersionInfo()

    async def refresh(self) -> str | None:
        """Force a fresh lookup."""
        self.clear()
        return await self.get_version()

    async def get_feature_support(self) -> FeatureSupport:
        """Feature support for the current version; never cached itself."""
        return feature_support_for(await self.get_version())
