"""SELinux policy packages for clusters enabling ``selinux: true``."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from ...utils.download import DEFAULT_TIMEOUT, download_file
from .models import distribution_for

logger = logging.getLogger("edgek8s.kubernetes.selinux")

RANCHER_SIGNING_KEY_URL = "https://rpm.rancher.io/public.key"
RANCHER_SIGNING_KEY_FILE = "rancher-public.key"

POLICY_CHANNEL = "stable"
POLICY_REPOSITORY_URL = "https://rpm.rancher.io/{distribution}/{channel}/common/slemicro/noarch"
POLICY_REPOSITORY_PRIORITY = 99


@dataclass(frozen=True)
class SELinuxPolicy:
    """Where to install the SELinux policy of a distribution from."""
    package_name: str
    repository: str
    priority: int = POLICY_REPOSITORY_PRIORITY


def resolve_policy(version: str, sources: Optional[Mapping[str, str]] = None) -> SELinuxPolicy:
    """Resolve the SELinux policy package for a Kubernetes version.

    Args:
        version: Kubernetes version, e.g. ``v1.30.3+rke2r1``
        sources: Optional repository URL per distribution overriding the defaults

    Raises:
        UnknownDistributionError: If the version matches neither rke2 nor k3s
    """
    distribution = distribution_for(version)

    repository = (sources or {}).get(distribution) or POLICY_REPOSITORY_URL.format(
        distribution=distribution, channel=POLICY_CHANNEL
    )

    return SELinuxPolicy(package_name=f"{distribution}-selinux", repository=repository)


def download_signing_key(directory: Union[str, Path], timeout: int = DEFAULT_TIMEOUT) -> Path:
    """Store the Rancher RPM signing key in ``directory``.

    Raises:
        ArtefactDownloadError: If the key cannot be downloaded
    """
    path = Path(directory) / RANCHER_SIGNING_KEY_FILE
    download_file(RANCHER_SIGNING_KEY_URL, path, timeout=timeout, progress=False)
    logger.debug(f"Stored Rancher signing key at {path}")
    return path
