"""
Kubernetes bootstrap configuration

This package derives everything a node needs to join a cluster on its first
boot from the image definition.

Key Features:
- Single node and multi node (initialiser, servers, agents) topologies
- Pass-through of user supplied server and agent configuration
- CNI and multus selection with per architecture artefact resolution
- Sequential, cache aware download of RKE2 release artefacts
- SELinux policy repository resolution
- Installer script and VIP manifest rendering
"""

from .artefacts import ArtefactDownloader, download_install_script, installer_artefacts, select_artefacts
from .cluster import build_cluster, identify_initialiser, new_cluster
from .cni import extract_cni
from .combustion import BuildContext, configure_kubernetes
from .document import KubernetesConfig, load_config
from .installer import installer_values, render_installer_script, render_vip_manifest, select_template
from .models import Arch, Cluster, KubernetesDefinition, Network, Node, NodeType, load_definition
from .selinux import SELinuxPolicy, download_signing_key, resolve_policy
from .tls_san import append_disabled_service, append_tls_san

__all__ = [
    # Models
    'Arch',
    'Cluster',
    'KubernetesConfig',
    'KubernetesDefinition',
    'Network',
    'Node',
    'NodeType',
    'SELinuxPolicy',
    'load_config',
    'load_definition',

    # Derivation
    'append_disabled_service',
    'append_tls_san',
    'build_cluster',
    'extract_cni',
    'identify_initialiser',
    'new_cluster',
    'resolve_policy',
    'select_artefacts',
    'installer_artefacts',
    'select_template',
    'installer_values',

    # Side effects
    'ArtefactDownloader',
    'BuildContext',
    'configure_kubernetes',
    'download_install_script',
    'download_signing_key',
    'render_installer_script',
    'render_vip_manifest',
]
