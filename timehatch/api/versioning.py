"""
API versioning and build metadata.

Routes are versioned by URL path; the build metadata reported by
``/api/version`` comes from ``BUILD_*`` settings injected at deploy time.
"""

from enum import Enum
from typing import Any, Dict, Optional

from ..core.config import TimeHatchConfig, get_config

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}


class APIVersion(str, Enum):
    """Supported API versions."""

    V1 = "v1"


def api_prefix(version: APIVersion = APIVersion.V1) -> str:
    return f"/api/{version.value}"


def get_version_meta(config: Optional[TimeHatchConfig] = None) -> Dict[str, Any]:
    """
    Describe the running build.

    The version is the short commit sha when known, otherwise the configured
    release version.

    Returns:
        Dictionary with name, version, branch, commit, buildTime, buildId, env
    """
    config = config or get_config()
    build = config.build
    version = build.git_sha[:8] if build.git_sha else build.app_version

    return {
        "name": "TimeHatch",
        "version": version or "dev",
        "branch": build.git_branch,
        "commit": build.git_sha,
        "buildTime": build.build_time,
        "buildId": build.build_id,
        "env": config.environment.value,
    }
