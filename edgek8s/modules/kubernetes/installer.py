"""Selection and rendering of the first boot Kubernetes installer script.

Templates live in the ``templates`` directory next to this module and are
rendered with Jinja2. The single node script installs a plain server from
``server.yaml``; the multi node script picks the initialiser, server or
agent configuration by comparing the node's hostname with the cluster
topology.
"""

import logging
import os
from dataclasses import asdict, dataclass, field
from typing import List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound, TemplateSyntaxError, UndefinedError

from ...errors import RenderError
from .cluster import AGENT_CONFIG_FILE, SERVER_CONFIG_FILE
from .models import Cluster, KubernetesDefinition

logger = logging.getLogger("edgek8s.kubernetes.installer")

SINGLE_NODE_TEMPLATE = 'single-node-installer.sh.j2'
MULTI_NODE_TEMPLATE = 'multi-node-installer.sh.j2'
VIP_MANIFEST_TEMPLATE = 'k8s-vip.yaml.j2'

INITIALISER_CONFIG_FILE = 'init_server.yaml'
VIP_MANIFEST_FILE = 'k8s-vip.yaml'
INSTALL_SCRIPT_NAME = '{distribution}_installer.sh'


@dataclass
class InstallerValues:
    """Values handed to the installer script template."""
    distribution: str
    install_script: str
    config_file: str = SERVER_CONFIG_FILE
    install_path: str = ''
    images_path: str = ''
    initialiser: str = ''
    initialiser_config_file: str = ''
    agent_config_file: str = ''
    nodes: List[Tuple[str, str]] = field(default_factory=list)
    vip_manifest: str = ''
    api_vip: str = ''
    api_host: str = ''


def get_template_path() -> str:
    """Get the absolute path to the templates directory."""
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(get_template_path()),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined
    )


def render_template(name: str, **values) -> str:
    """Render a template, translating Jinja2 failures into :class:`RenderError`."""
    try:
        template = _environment().get_template(name)
        return template.render(**values)
    except TemplateNotFound as e:
        raise RenderError(f"template not found: {e}") from e
    except TemplateSyntaxError as e:
        raise RenderError(f"template syntax error in {name}: {e}") from e
    except UndefinedError as e:
        raise RenderError(f"missing required template variable in {name}: {e}") from e


def select_template(node_count: int) -> str:
    """Pick the installer variant for a cluster of ``node_count`` nodes."""
    return MULTI_NODE_TEMPLATE if node_count > 1 else SINGLE_NODE_TEMPLATE


def installer_values(
    definition: KubernetesDefinition,
    cluster: Cluster,
    install_path: str = '',
    images_path: str = '',
    vip_manifest: Optional[str] = None,
) -> InstallerValues:
    """Assemble the values for the installer template of ``cluster``.

    ``install_path`` and ``images_path`` are the artefact directories relative
    to the combustion directory; both are empty when the distribution is
    installed online through its install script.
    """
    distribution = definition.distribution
    values = InstallerValues(
        distribution=distribution,
        install_script=INSTALL_SCRIPT_NAME.format(distribution=distribution),
        install_path=install_path,
        images_path=images_path,
        api_vip=definition.network.api_vip,
        api_host=definition.network.api_host,
    )

    if len(definition.nodes) > 1:
        values.initialiser = cluster.initialiser
        values.initialiser_config_file = INITIALISER_CONFIG_FILE
        values.agent_config_file = AGENT_CONFIG_FILE
        values.nodes = [(node.hostname, node.type.value) for node in definition.nodes]
        values.vip_manifest = vip_manifest or ''

    return values


def render_installer_script(values: InstallerValues) -> str:
    """Render the installer script for the given values."""
    template = select_template(len(values.nodes))
    logger.debug(f"Rendering {template} for {values.distribution}")
    return render_template(template, **asdict(values))


def render_vip_manifest(definition: KubernetesDefinition) -> str:
    """Render the manifest exposing the API server on the configured VIPs."""
    return render_template(
        VIP_MANIFEST_TEMPLATE,
        api_vip=definition.network.api_vip,
        api_vip6=definition.network.api_vip6,
        distribution=definition.distribution,
    )
