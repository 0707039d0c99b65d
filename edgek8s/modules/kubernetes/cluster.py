"""Derivation of the role specific cluster configuration documents.

A cluster with fewer than two nodes is bootstrapped from a single server
configuration. Multi node clusters additionally get an initialiser
configuration (the server document without a join address) and an agent
configuration sharing the join details of the servers.
"""

import copy
import ipaddress
import logging
from pathlib import Path
from typing import Callable, List, Optional, Union

from ...errors import ConfigParseError, InitialiserAmbiguityError
from ...utils import generate_token
from .document import (
    CLUSTER_INIT_KEY,
    CNI_KEY,
    SELINUX_KEY,
    SERVER_KEY,
    TLS_SAN_KEY,
    TOKEN_KEY,
    KubernetesConfig,
    load_config,
)
from .models import DISTRO_K3S, Cluster, CNIType, KubernetesDefinition, Node, NodeType
from .tls_san import append_disabled_service, append_tls_san

logger = logging.getLogger("edgek8s.kubernetes.cluster")

SERVER_CONFIG_FILE = 'server.yaml'
AGENT_CONFIG_FILE = 'agent.yaml'

CNI_DEFAULT = CNIType.CILIUM.value

RKE2_SERVER_PORT = 9345
K3S_SERVER_PORT = 6443

AGENT_SHARED_KEYS = (TOKEN_KEY, CNI_KEY, SERVER_KEY, TLS_SAN_KEY, SELINUX_KEY)

PathLike = Union[str, Path]


def new_cluster(definition: KubernetesDefinition, config_dir: Optional[PathLike],
                token_factory: Callable[[], str] = generate_token) -> Cluster:
    """Build a cluster from the ``server.yaml`` / ``agent.yaml`` in ``config_dir``."""
    if config_dir is None:
        return build_cluster(definition, None, None, token_factory)

    config_dir = Path(config_dir)
    return build_cluster(
        definition,
        config_dir / SERVER_CONFIG_FILE,
        config_dir / AGENT_CONFIG_FILE,
        token_factory,
    )


def build_cluster(
    definition: KubernetesDefinition,
    server_config_path: Optional[PathLike],
    agent_config_path: Optional[PathLike],
    token_factory: Callable[[], str] = generate_token,
) -> Cluster:
    """Derive the configuration documents for every node role of a cluster.

    Args:
        definition: The Kubernetes definition of the image
        server_config_path: User supplied partial server configuration, may not exist
        agent_config_path: User supplied partial agent configuration, may not exist
        token_factory: Produces the cluster token when the user did not set one

    Returns:
        Cluster: The derived configuration

    Raises:
        ConfigParseError: If a partial configuration or a VIP cannot be parsed
        InitialiserAmbiguityError: If a multi node cluster has no server node
    """
    try:
        server_config = load_config(server_config_path)
    except ConfigParseError as e:
        raise ConfigParseError(f"parsing server config: {e}") from e

    notices: List[str] = []

    if len(definition.nodes) < 2:
        _set_single_node_defaults(definition, server_config, notices)
        return Cluster(server_config=server_config, notices=tuple(notices))

    initialiser = identify_initialiser(definition.nodes)

    _set_multi_node_defaults(definition, server_config, token_factory, notices)

    try:
        agent_config = load_config(agent_config_path)
    except ConfigParseError as e:
        raise ConfigParseError(f"parsing agent config: {e}") from e

    # Agents must join with exactly the values the servers were configured with
    for key in AGENT_SHARED_KEYS:
        if key in server_config:
            agent_config[key] = copy.copy(server_config[key])
        else:
            agent_config.pop(key, None)

    initialiser_config = server_config.copy()
    initialiser_config.pop(SERVER_KEY, None)
    if _is_k3s(definition):
        initialiser_config[CLUSTER_INIT_KEY] = True

    return Cluster(
        server_config=server_config,
        initialiser=initialiser,
        initialiser_config=initialiser_config,
        agent_config=agent_config,
        notices=tuple(notices),
    )


def identify_initialiser(nodes: List[Node]) -> str:
    """Return the hostname of the node initialising the cluster.

    The node explicitly flagged as initialiser wins, regardless of its type.
    Otherwise the first server in list order is used.

    Raises:
        InitialiserAmbiguityError: If no node is flagged and there is no server
    """
    for node in nodes:
        if node.initialiser:
            return node.hostname

    for node in nodes:
        if node.type == NodeType.SERVER:
            logger.info(f"Using '{node.hostname}' as the cluster initialiser, as one wasn't explicitly selected")
            return node.hostname

    raise InitialiserAmbiguityError("failed to determine cluster initialiser: no server nodes configured")


def is_ipv6_priority(server_config: KubernetesConfig) -> bool:
    """Whether the first configured cluster CIDR is an IPv6 range."""
    cluster_cidr = server_config.get('cluster-cidr')
    if isinstance(cluster_cidr, str):
        return '::' in cluster_cidr.split(',')[0]
    return False


def _is_k3s(definition: KubernetesDefinition) -> bool:
    return DISTRO_K3S in definition.version


def _set_cni(config: KubernetesConfig, notices: List[str]) -> None:
    if CNI_KEY in config:
        return

    notices.append(f"The Kubernetes CNI is not explicitly set, defaulting to '{CNI_DEFAULT}'.")
    logger.info(f"CNI not set in config file, proceeding with CNI: {CNI_DEFAULT}")
    config[CNI_KEY] = CNI_DEFAULT


def _set_token(config: KubernetesConfig, token_factory: Callable[[], str]) -> None:
    if config.token is not None:
        return

    config.token = token_factory()
    logger.info("Generated cluster token")


def _set_selinux(config: KubernetesConfig) -> None:
    if not isinstance(config.get(SELINUX_KEY), bool):
        config[SELINUX_KEY] = False


def _parse_vip(address: str, version: int) -> Optional[Union[ipaddress.IPv4Address, ipaddress.IPv6Address]]:
    if not address:
        return None
    try:
        ip = ipaddress.ip_address(address)
    except ValueError as e:
        raise ConfigParseError(f"parsing kubernetes ipv{version} address: {e}") from e
    if ip.version != version:
        raise ConfigParseError(f"parsing kubernetes ipv{version} address: '{address}' is not an IPv{version} address")
    return ip


def _set_server_address(definition: KubernetesDefinition, config: KubernetesConfig) -> None:
    ip4 = _parse_vip(definition.network.api_vip, 4)
    ip6 = _parse_vip(definition.network.api_vip6, 6)
    port = K3S_SERVER_PORT if _is_k3s(definition) else RKE2_SERVER_PORT

    if ip6 is not None and (ip4 is None or is_ipv6_priority(config)):
        config.server = f"https://[{ip6}]:{port}"
    elif ip4 is not None:
        config.server = f"https://{ip4}:{port}"
    else:
        logger.warning("No API VIP configured, nodes will not be given a server address to join")


def _append_api_addresses(definition: KubernetesDefinition, config: KubernetesConfig) -> None:
    network = definition.network
    for address in (network.api_vip, network.api_vip6, network.api_host):
        if address:
            append_tls_san(config, address)


def _set_single_node_defaults(definition: KubernetesDefinition, config: KubernetesConfig,
                              notices: List[str]) -> None:
    _set_cni(config, notices)
    _append_api_addresses(definition, config)

    if _is_k3s(definition) and (definition.network.api_vip or definition.network.api_vip6):
        append_disabled_service(config, 'servicelb')

    # There is no remote control plane to join
    config.pop(SERVER_KEY, None)


def _set_multi_node_defaults(definition: KubernetesDefinition, config: KubernetesConfig,
                             token_factory: Callable[[], str], notices: List[str]) -> None:
    _set_cni(config, notices)
    _set_token(config, token_factory)
    _set_server_address(definition, config)
    _append_api_addresses(definition, config)
    _set_selinux(config)

    if _is_k3s(definition):
        append_disabled_service(config, 'servicelb')
