import pytest

from edgek8s.modules.kubernetes.models import KubernetesDefinition


@pytest.fixture
def rke2_multi_node():
    return KubernetesDefinition.model_validate({
        "version": "v1.30.3+rke2r1",
        "network": {"apiHost": "api.cluster01.hosted.on.edge.suse.com", "apiVIP": "192.168.122.100"},
        "nodes": [
            {"hostname": "node1.suse.com", "type": "server", "initializer": True},
            {"hostname": "node2.suse.com", "type": "server"},
            {"hostname": "node3.suse.com", "type": "agent"},
        ],
    })


@pytest.fixture
def rke2_single_node():
    return KubernetesDefinition.model_validate({
        "version": "v1.30.3+rke2r1",
        "network": {"apiHost": "api.cluster01.hosted.on.edge.suse.com", "apiVIP": "192.168.122.100"},
        "nodes": [{"hostname": "node1.suse.com", "type": "server"}],
    })
