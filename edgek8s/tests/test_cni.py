import re

import pytest

from edgek8s.errors import CNIFormatError
from edgek8s.modules.kubernetes.cni import extract_cni


@pytest.mark.parametrize("value, expected", [
    ("calico", ("calico", False)),
    (["calico"], ("calico", False)),
    ("multus,calico", ("calico", True)),
    ("multus, calico", ("calico", True)),
    (["multus", "calico"], ("calico", True)),
    ([" multus", "cilium "], ("cilium", True)),
])
def test_extract_cni(value, expected):
    assert extract_cni({"cni": value}) == expected


@pytest.mark.parametrize("value, message", [
    (None, "invalid cni: None"),
    ("", "cni not configured"),
    ([], "invalid cni value: []"),
    (["canal", "calico", "cilium"], "invalid cni value"),
    ("multus", "multus must be used alongside another primary cni selection"),
    (["multus"], "multus must be used alongside another primary cni selection"),
    ("cilium, multus", "multiple cni values are only allowed if multus is the first one"),
    (["multus", 5], "invalid cni value: 5"),
    (6, "invalid cni: 6"),
])
def test_extract_cni_invalid(value, message):
    with pytest.raises(CNIFormatError, match=re.escape(message)):
        extract_cni({"cni": value})


def test_extract_cni_missing_key():
    with pytest.raises(CNIFormatError):
        extract_cni({})


def test_extract_cni_leaves_config_untouched():
    config = {"cni": "multus, canal"}
    extract_cni(config)
    assert config == {"cni": "multus, canal"}
