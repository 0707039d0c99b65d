import pytest

from edgek8s.errors import ArtefactDownloadError, UnknownDistributionError
from edgek8s.modules.kubernetes.selinux import download_signing_key, resolve_policy


def test_resolve_policy_rke2():
    policy = resolve_policy("v1.30.3+rke2r1")

    assert policy.package_name == "rke2-selinux"
    assert policy.repository == "https://rpm.rancher.io/rke2/stable/common/slemicro/noarch"
    assert policy.priority == 99


def test_resolve_policy_k3s():
    policy = resolve_policy("v1.30.3+k3s1")

    assert policy.package_name == "k3s-selinux"
    assert policy.repository == "https://rpm.rancher.io/k3s/stable/common/slemicro/noarch"


def test_resolve_policy_source_override():
    policy = resolve_policy("v1.30.3+k3s1", sources={"k3s": "https://mirror.local/k3s"})
    assert policy.repository == "https://mirror.local/k3s"


def test_resolve_policy_unknown_distribution():
    with pytest.raises(UnknownDistributionError):
        resolve_policy("v1.30.3")


def test_download_signing_key(tmp_path, requests_mock):
    requests_mock.get("https://rpm.rancher.io/public.key", text="-----BEGIN PGP PUBLIC KEY BLOCK-----\n")

    path = download_signing_key(tmp_path / "gpg-keys")

    assert path == tmp_path / "gpg-keys" / "rancher-public.key"
    assert path.read_text().startswith("-----BEGIN PGP")


def test_download_signing_key_failure(tmp_path, requests_mock):
    requests_mock.get("https://rpm.rancher.io/public.key", status_code=500)

    with pytest.raises(ArtefactDownloadError, match="unexpected status code: 500"):
        download_signing_key(tmp_path)
    assert not (tmp_path / "rancher-public.key").exists()
