import os

import pytest
import yaml

from edgek8s.errors import CNIFormatError, UnsupportedPlatformError
from edgek8s.modules.kubernetes.combustion import BuildContext, configure_kubernetes
from edgek8s.modules.kubernetes.models import Arch, KubernetesDefinition

VERSION = "v1.30.3+rke2r1"
RELEASE = f"https://github.com/rancher/rke2/releases/download/{VERSION}"


def read_yaml(path):
    with open(path) as f:
        return yaml.safe_load(f)


def test_skipped_without_version(tmp_path, capsys):
    ctx = BuildContext(definition=KubernetesDefinition(), config_dir=None, combustion_dir=tmp_path)

    assert configure_kubernetes(ctx) == []
    assert "[SKIPPED]" in capsys.readouterr().out
    assert list(tmp_path.iterdir()) == []


def test_multi_node_without_download(rke2_multi_node, tmp_path, capsys):
    ctx = BuildContext(definition=rke2_multi_node, config_dir=tmp_path / "config",
                       combustion_dir=tmp_path / "combustion", skip_download=True)

    scripts = configure_kubernetes(ctx)

    combustion = tmp_path / "combustion"
    assert scripts == ["20-k8s-install.sh"]
    assert sorted(os.listdir(combustion)) == [
        "20-k8s-install.sh", "agent.yaml", "init_server.yaml", "k8s-vip.yaml", "server.yaml",
    ]

    server = read_yaml(combustion / "server.yaml")
    agent = read_yaml(combustion / "agent.yaml")
    init = read_yaml(combustion / "init_server.yaml")
    assert server["cni"] == "cilium"
    assert server["server"] == "https://192.168.122.100:9345"
    assert agent["token"] == server["token"] == init["token"]
    assert "server" not in init

    out = capsys.readouterr().out
    assert "defaulting to 'cilium'" in out
    assert "[SUCCESS]" in out


def test_single_node_with_selinux(rke2_single_node, tmp_path):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "server.yaml").write_text("cni: canal\nselinux: true\n")
    ctx = BuildContext(definition=rke2_single_node, config_dir=config_dir,
                       combustion_dir=tmp_path / "combustion", skip_download=True)

    configure_kubernetes(ctx)

    combustion = tmp_path / "combustion"
    assert not (combustion / "k8s-vip.yaml").exists()
    assert not (combustion / "agent.yaml").exists()
    repo = (combustion / "rke2-selinux.repo").read_text()
    assert "baseurl=https://rpm.rancher.io/rke2/stable/common/slemicro/noarch" in repo
    assert "priority=99" in repo


def test_invalid_cni_fails_build(rke2_single_node, tmp_path, capsys):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "server.yaml").write_text("cni: multus\n")
    ctx = BuildContext(definition=rke2_single_node, config_dir=config_dir,
                       combustion_dir=tmp_path / "combustion", skip_download=True)

    with pytest.raises(CNIFormatError):
        configure_kubernetes(ctx)
    assert "[FAILED ]" in capsys.readouterr().out
    assert not (tmp_path / "combustion" / "server.yaml").exists()


def test_unsupported_platform_fails_before_download(rke2_single_node, tmp_path, requests_mock):
    ctx = BuildContext(definition=rke2_single_node, config_dir=None,
                       combustion_dir=tmp_path, arch=Arch.AARCH64)

    with pytest.raises(UnsupportedPlatformError):
        configure_kubernetes(ctx)
    assert requests_mock.call_count == 0
    assert not (tmp_path / "server.yaml").exists()


def test_single_node_with_download(rke2_single_node, tmp_path, requests_mock):
    for name in ("rke2-images-core.linux-amd64.tar.zst", "rke2-images-cilium.linux-amd64.tar.zst",
                 "rke2.linux-amd64.tar.gz", "sha256sum-amd64.txt"):
        requests_mock.get(f"{RELEASE}/{name}", content=b"artefact")
    requests_mock.get("https://get.rke2.io", text="#!/bin/sh\n")

    ctx = BuildContext(definition=rke2_single_node, config_dir=None, combustion_dir=tmp_path)

    configure_kubernetes(ctx)

    assert (tmp_path / "rke2_installer.sh").exists()
    assert (tmp_path / "kubernetes" / "install" / "rke2.linux-amd64.tar.gz").exists()
    script = (tmp_path / "20-k8s-install.sh").read_text()
    assert "INSTALL_RKE2_ARTIFACT_PATH=kubernetes/install" in script
