"""Selection and download of the RKE2 release artefacts embedded in the image."""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ... import audit
from ...errors import ArtefactDownloadError, CNIFormatError, UnknownDistributionError, UnsupportedPlatformError
from ...utils import copy_file, make_executable
from ...utils.cache import ArtefactCache
from ...utils.download import DEFAULT_TIMEOUT, download_file
from .models import DISTRO_K3S, DISTRO_RKE2, Arch, CNIType

logger = logging.getLogger("edgek8s.kubernetes.artefacts")

KUBERNETES_DIR = 'kubernetes'
INSTALL_DIR = 'install'
IMAGES_DIR = 'images'

RKE2_RELEASE_URL = "https://github.com/rancher/rke2/releases/download/{version}/{artefact}"

RKE2_BINARY = "rke2.linux-{arch}.tar.gz"
RKE2_CHECKSUMS = "sha256sum-{arch}.txt"
RKE2_CORE_IMAGES = "rke2-images-core.linux-{arch}.tar.zst"
RKE2_CNI_IMAGES = "rke2-images-{cni}.linux-{arch}.tar.zst"
RKE2_MULTUS_IMAGES = "rke2-images-multus.linux-{arch}.tar.zst"

INSTALL_SCRIPT_URLS = {
    DISTRO_RKE2: "https://get.rke2.io",
    DISTRO_K3S: "https://get.k3s.io",
}

# CNIs whose images are only published for the primary architecture
X86_ONLY_CNIS = (CNIType.CALICO.value, CNIType.CILIUM.value)


def select_artefacts(arch: Arch, cni: str, multus_enabled: bool) -> List[str]:
    """Return the container image bundles required for the given CNI selection.

    Raises:
        CNIFormatError: If the CNI is empty or unknown
        UnsupportedPlatformError: If the CNI or multus is not available on ``arch``
    """
    arch = Arch(arch)
    artefacts = [RKE2_CORE_IMAGES.format(arch=arch.short)]

    if not cni:
        raise CNIFormatError("CNI not specified")

    if cni == CNIType.NONE.value:
        pass
    elif cni == CNIType.CANAL.value or cni in X86_ONLY_CNIS:
        if cni in X86_ONLY_CNIS and arch == Arch.AARCH64:
            raise UnsupportedPlatformError(f"{cni} is not supported on {arch.value} platforms")
        artefacts.append(RKE2_CNI_IMAGES.format(cni=cni, arch=arch.short))
    else:
        raise CNIFormatError(f"unsupported CNI: {cni}")

    if multus_enabled:
        if arch == Arch.AARCH64:
            raise UnsupportedPlatformError(f"multus is not supported on {arch.value} platforms")
        artefacts.append(RKE2_MULTUS_IMAGES.format(arch=arch.short))

    return artefacts


def installer_artefacts(arch: Arch) -> List[str]:
    """Return the installer tarball and its checksum file for ``arch``."""
    arch = Arch(arch)
    return [
        RKE2_BINARY.format(arch=arch.short),
        RKE2_CHECKSUMS.format(arch=arch.short),
    ]


class ArtefactDownloader:
    """Fetches release artefacts one at a time, optionally through a cache."""

    def __init__(
        self,
        cache: Optional[ArtefactCache] = None,
        release_url: str = RKE2_RELEASE_URL,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.cache = cache
        self.release_url = release_url
        self.timeout = timeout

    def download_artefacts(
        self,
        arch: Arch,
        version: str,
        cni: str,
        multus_enabled: bool,
        destination: Union[str, Path],
    ) -> Tuple[str, str]:
        """Download the images and installer artefacts of an RKE2 release.

        Images are stored under ``kubernetes/images`` and the installer under
        ``kubernetes/install`` of ``destination``.

        Returns:
            tuple: (install_path, images_path) relative to ``destination``

        Raises:
            UnknownDistributionError: If the version is not an RKE2 release
            CNIFormatError: If the CNI selection is invalid
            UnsupportedPlatformError: If the CNI selection is not available on ``arch``
            ArtefactDownloadError: If any artefact cannot be retrieved
        """
        if DISTRO_RKE2 not in version:
            raise UnknownDistributionError(f"kubernetes version '{version}' is not supported")

        arch = Arch(arch)
        if arch == Arch.AARCH64:
            audit.audit("WARNING: RKE2 support for aarch64 platforms is limited and experimental")

        # Resolve everything before touching the network
        image_artefacts = select_artefacts(arch, cni, multus_enabled)
        install_artefacts = installer_artefacts(arch)

        destination = Path(destination)
        images_path = Path(KUBERNETES_DIR, IMAGES_DIR)
        install_path = Path(KUBERNETES_DIR, INSTALL_DIR)

        try:
            (destination / images_path).mkdir(parents=True, exist_ok=True)
            (destination / install_path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArtefactDownloadError(f"creating kubernetes artefact directories: {e}") from e

        try:
            self._download_all(image_artefacts, version, destination / images_path)
        except ArtefactDownloadError as e:
            raise ArtefactDownloadError(f"downloading RKE2 image artefacts: {e}") from e

        try:
            self._download_all(install_artefacts, version, destination / install_path)
        except ArtefactDownloadError as e:
            raise ArtefactDownloadError(f"downloading RKE2 install artefacts: {e}") from e

        return str(install_path), str(images_path)

    def _download_all(self, artefacts: List[str], version: str, directory: Path) -> None:
        for artefact in artefacts:
            url = self.release_url.format(version=version, artefact=artefact)
            path = directory / artefact

            if self._copy_from_cache(artefact, path):
                continue

            try:
                download_file(url, path, timeout=self.timeout)
            except ArtefactDownloadError as e:
                raise ArtefactDownloadError(f"artefact '{artefact}': {e}") from e

            if self.cache is not None:
                self._store_in_cache(artefact, path)

    def _copy_from_cache(self, artefact: str, path: Path) -> bool:
        if self.cache is None:
            return False

        cached = self.cache.get(artefact)
        if cached is None:
            return False

        logger.info(f"Copying artefact '{artefact}' from cache")
        try:
            copy_file(cached, path)
        except OSError as e:
            raise ArtefactDownloadError(f"retrieving artefact '{artefact}' from cache: {e}") from e
        return True

    def _store_in_cache(self, artefact: str, path: Path) -> None:
        try:
            with open(path, 'rb') as f:
                self.cache.put(artefact, f)
        except OSError as e:
            raise ArtefactDownloadError(f"caching artefact '{artefact}': {e}") from e


def download_install_script(distribution: str, destination: Union[str, Path],
                            timeout: int = DEFAULT_TIMEOUT) -> str:
    """Download the upstream install script of a distribution.

    Returns:
        str: File name of the script inside ``destination``

    Raises:
        UnknownDistributionError: If the distribution has no install script
        ArtefactDownloadError: If the download fails
    """
    url = INSTALL_SCRIPT_URLS.get(distribution)
    if url is None:
        raise UnknownDistributionError(f"unsupported distribution: {distribution}")

    installer = f"{distribution}_installer.sh"
    path = Path(destination) / installer

    download_file(url, path, timeout=timeout, progress=False)
    make_executable(path)
    return installer
