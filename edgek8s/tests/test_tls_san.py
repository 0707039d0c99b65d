import logging

from edgek8s.modules.kubernetes.document import KubernetesConfig
from edgek8s.modules.kubernetes.tls_san import append_disabled_service, append_tls_san


def test_append_tls_san_to_empty_config():
    config = {}
    append_tls_san(config, "X")
    assert config["tls-san"] == ["X"]


def test_append_tls_san_splits_comma_separated_string():
    config = {"tls-san": "A, B"}
    append_tls_san(config, "X")
    assert config["tls-san"] == ["A", "B", "X"]


def test_append_tls_san_to_string_list():
    config = {"tls-san": ["A", "B"]}
    append_tls_san(config, "X")
    assert config["tls-san"] == ["A", "B", "X"]


def test_append_tls_san_to_untyped_list():
    config = {"tls-san": ["A", 10]}
    append_tls_san(config, "X")
    assert config["tls-san"] == ["A", 10, "X"]


def test_append_tls_san_replaces_invalid_value(caplog):
    config = {"tls-san": 42}
    with caplog.at_level(logging.WARNING):
        append_tls_san(config, "X")
    assert config["tls-san"] == ["X"]
    assert "Ignoring invalid 'tls-san' value" in caplog.text


def test_append_tls_san_empty_address_is_noop(caplog):
    config = {"tls-san": ["A"]}
    with caplog.at_level(logging.WARNING):
        append_tls_san(config, "")
    assert config["tls-san"] == ["A"]
    assert "empty address" in caplog.text


def test_append_tls_san_is_not_idempotent():
    config = {}
    append_tls_san(config, "X")
    append_tls_san(config, "X")
    assert config["tls-san"] == ["X", "X"]


def test_append_tls_san_unique():
    config = {"tls-san": "X"}
    append_tls_san(config, "X", unique=True)
    append_tls_san(config, "Y", unique=True)
    assert config["tls-san"] == ["X", "Y"]


def test_append_tls_san_on_document():
    config = KubernetesConfig({"tls-san": "A"})
    append_tls_san(config, "X")
    assert config.tls_san.items == ["A", "X"]


def test_append_disabled_service():
    config = {"disable": "rke2-ingress-nginx"}
    append_disabled_service(config, "servicelb")
    assert config["disable"] == ["rke2-ingress-nginx", "servicelb"]

    config = {}
    append_disabled_service(config, "servicelb")
    assert config["disable"] == ["servicelb"]

    append_disabled_service(config, "")
    assert config["disable"] == ["servicelb"]
