"""Data models for the Kubernetes bootstrap configuration."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ...errors import ConfigParseError, UnknownDistributionError
from .document import KubernetesConfig

DISTRO_RKE2 = 'rke2'
DISTRO_K3S = 'k3s'


class Arch(str, Enum):
    """Target image architectures."""
    X86_64 = 'x86_64'
    AARCH64 = 'aarch64'

    @property
    def short(self) -> str:
        """Architecture name as used in release artefact file names."""
        return {Arch.X86_64: 'amd64', Arch.AARCH64: 'arm64'}[self]


class NodeType(str, Enum):
    """Node roles in the cluster."""
    SERVER = 'server'
    AGENT = 'agent'


class CNIType(str, Enum):
    """Primary CNI plugins understood by the artefact selection."""
    NONE = 'none'
    CILIUM = 'cilium'
    CANAL = 'canal'
    CALICO = 'calico'


class Network(BaseModel):
    """Addresses the cluster API is reachable on."""
    model_config = ConfigDict(populate_by_name=True)

    api_host: str = Field(default='', alias='apiHost')
    api_vip: str = Field(default='', alias='apiVIP')
    api_vip6: str = Field(default='', alias='apiVIP6')


class Node(BaseModel):
    """A single node of the cluster as declared by the user."""
    model_config = ConfigDict(populate_by_name=True)

    hostname: str
    type: NodeType = NodeType.SERVER
    initialiser: bool = Field(default=False, alias='initializer')


class KubernetesDefinition(BaseModel):
    """The ``kubernetes`` section of an image definition."""
    version: str = ''
    network: Network = Field(default_factory=Network)
    nodes: List[Node] = Field(default_factory=list)

    @property
    def distribution(self) -> str:
        """Distribution embedded in the version string, e.g. ``rke2``."""
        return distribution_for(self.version)

    @property
    def is_multi_node(self) -> bool:
        return len(self.nodes) > 1


def distribution_for(version: str) -> str:
    """Return the Kubernetes distribution a version string refers to.

    Raises:
        UnknownDistributionError: If neither ``rke2`` nor ``k3s`` is present
    """
    if DISTRO_RKE2 in version:
        return DISTRO_RKE2
    if DISTRO_K3S in version:
        return DISTRO_K3S
    raise UnknownDistributionError(f"unknown kubernetes distribution in version '{version}'")


def load_definition(path: Union[str, Path]) -> KubernetesDefinition:
    """Load a Kubernetes definition from a YAML file.

    The file may either contain the definition itself or a full image
    definition with a top level ``kubernetes`` section.

    Raises:
        ConfigParseError: If the file is not valid YAML or does not describe a definition
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigParseError(f"reading definition file '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigParseError(f"parsing definition file '{path}': {e}") from e

    if not isinstance(data, dict):
        raise ConfigParseError(f"definition file '{path}' does not contain a mapping")

    if isinstance(data.get('kubernetes'), dict):
        data = data['kubernetes']

    try:
        return KubernetesDefinition.model_validate(data)
    except ValidationError as e:
        raise ConfigParseError(f"invalid definition in '{path}': {e}") from e


@dataclass(frozen=True)
class Cluster:
    """Derived bootstrap configuration of a cluster.

    Immutability is shallow: fields cannot be reassigned after construction,
    but the configuration documents are mutable mappings.

    Attributes:
        initialiser: Hostname of the node initialising a multi node cluster
        initialiser_config: Server configuration for the initialiser node
        server_config: Configuration of a single node cluster, or of the
            additional servers in a multi node cluster
        agent_config: Configuration of the agents in a multi node cluster
        notices: User facing messages about defaults applied while deriving
    """
    server_config: KubernetesConfig
    initialiser: str = ''
    initialiser_config: Optional[KubernetesConfig] = None
    agent_config: Optional[KubernetesConfig] = None
    notices: Tuple[str, ...] = ()

    @property
    def is_multi_node(self) -> bool:
        return self.agent_config is not None
