"""Kubernetes component of the combustion (first boot) configuration.

This is the only place in the package that talks to the user: derivation
functions return values or raise, and ``configure_kubernetes`` turns the
outcome into audit messages.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ... import audit
from ...errors import KubernetesError
from ...utils import make_executable
from .artefacts import ArtefactDownloader, download_install_script, select_artefacts
from .cluster import AGENT_CONFIG_FILE, SERVER_CONFIG_FILE, new_cluster
from .cni import extract_cni
from .document import SELINUX_KEY
from .installer import (
    INITIALISER_CONFIG_FILE,
    VIP_MANIFEST_FILE,
    installer_values,
    render_installer_script,
    render_template,
    render_vip_manifest,
)
from .models import DISTRO_RKE2, Arch, Cluster, KubernetesDefinition
from .selinux import RANCHER_SIGNING_KEY_FILE, download_signing_key, resolve_policy

logger = logging.getLogger("edgek8s.kubernetes.combustion")

COMPONENT_NAME = 'kubernetes'
INSTALL_SCRIPT = '20-k8s-install.sh'
SELINUX_REPO_TEMPLATE = 'selinux.repo.j2'
GPG_KEYS_DIR = 'gpg-keys'
SIGNING_KEY_INSTALL_DIR = '/etc/pki/rpm-gpg'


@dataclass
class BuildContext:
    """Inputs of a single image build as far as Kubernetes is concerned.

    Attributes:
        definition: The Kubernetes definition of the image
        config_dir: Directory holding the user's ``server.yaml`` / ``agent.yaml``
        combustion_dir: Output directory consumed by combustion on first boot
        arch: Target architecture of the image
        downloader: Fetches the RKE2 release artefacts
        skip_download: Derive and render everything without network access
    """
    definition: KubernetesDefinition
    config_dir: Optional[Path]
    combustion_dir: Path
    arch: Arch = Arch.X86_64
    downloader: ArtefactDownloader = field(default_factory=ArtefactDownloader)
    skip_download: bool = False


def configure_kubernetes(ctx: BuildContext) -> List[str]:
    """Write the Kubernetes configuration of an image into the combustion directory.

    Returns:
        list: Names of the combustion scripts that were produced

    Raises:
        KubernetesError: If any stage fails; the build must be aborted
        OSError: If the combustion directory cannot be written
    """
    if not ctx.definition.version:
        audit.component_skipped(COMPONENT_NAME)
        return []

    try:
        script = _configure(ctx)
    except (KubernetesError, OSError):
        audit.component_failed(COMPONENT_NAME)
        raise

    audit.component_successful(COMPONENT_NAME)
    return [script]


def _configure(ctx: BuildContext) -> str:
    definition = ctx.definition
    distribution = definition.distribution
    combustion_dir = Path(ctx.combustion_dir)
    combustion_dir.mkdir(parents=True, exist_ok=True)

    cluster = new_cluster(definition, ctx.config_dir)
    for notice in cluster.notices:
        audit.audit(notice)

    install_path, images_path = '', ''
    if distribution == DISTRO_RKE2:
        cni, multus_enabled = extract_cni(cluster.server_config)
        logger.info(f"Using CNI '{cni}' (multus enabled: {multus_enabled})")

        if ctx.skip_download:
            select_artefacts(ctx.arch, cni, multus_enabled)
        else:
            install_path, images_path = ctx.downloader.download_artefacts(
                ctx.arch, definition.version, cni, multus_enabled, combustion_dir
            )

    if not ctx.skip_download:
        download_install_script(distribution, combustion_dir, timeout=ctx.downloader.timeout)

    if cluster.server_config.get(SELINUX_KEY) is True:
        _configure_selinux(ctx, combustion_dir)

    _write_configs(cluster, combustion_dir)

    vip_manifest = None
    if len(definition.nodes) > 1 and (definition.network.api_vip or definition.network.api_vip6):
        (combustion_dir / VIP_MANIFEST_FILE).write_text(render_vip_manifest(definition), encoding='utf-8')
        vip_manifest = VIP_MANIFEST_FILE

    values = installer_values(definition, cluster, install_path, images_path, vip_manifest)
    script_path = combustion_dir / INSTALL_SCRIPT
    script_path.write_text(render_installer_script(values), encoding='utf-8')
    make_executable(script_path)

    logger.info(f"Kubernetes installer written to {script_path}")
    return INSTALL_SCRIPT


def _write_configs(cluster: Cluster, combustion_dir: Path) -> None:
    cluster.server_config.write(combustion_dir / SERVER_CONFIG_FILE)

    if cluster.initialiser_config is not None:
        cluster.initialiser_config.write(combustion_dir / INITIALISER_CONFIG_FILE)
    if cluster.agent_config is not None:
        cluster.agent_config.write(combustion_dir / AGENT_CONFIG_FILE)


def _configure_selinux(ctx: BuildContext, combustion_dir: Path) -> None:
    policy = resolve_policy(ctx.definition.version)
    audit.audit_info(f"SELinux is enabled in the Kubernetes configuration. "
                     f"The necessary RPM packages ({policy.package_name}) will be downloaded.")

    if not ctx.skip_download:
        download_signing_key(combustion_dir / GPG_KEYS_DIR, timeout=ctx.downloader.timeout)

    repo = render_template(
        SELINUX_REPO_TEMPLATE,
        package_name=policy.package_name,
        repository=policy.repository,
        priority=policy.priority,
        signing_key=f"{SIGNING_KEY_INSTALL_DIR}/{RANCHER_SIGNING_KEY_FILE}",
    )
    (combustion_dir / f"{policy.package_name}.repo").write_text(repo, encoding='utf-8')
