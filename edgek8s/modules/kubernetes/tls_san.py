"""Merging of addresses and services into list-valued configuration keys."""

import logging
from typing import MutableMapping

from .document import DISABLE_KEY, TLS_SAN_KEY, ValueShape, parse_list_value

logger = logging.getLogger("edgek8s.kubernetes.tls_san")


def _append_list_value(config: MutableMapping, key: str, value: str, unique: bool = False) -> None:
    existing = parse_list_value(config.get(key))

    if existing.shape == ValueShape.ABSENT:
        config[key] = [value]
        return

    if existing.shape == ValueShape.OTHER:
        logger.warning(f"Ignoring invalid '{key}' value: {existing.raw!r}")
        config[key] = [value]
        return

    items = existing.items
    if unique and value in items:
        logger.debug(f"'{value}' is already present in '{key}'")
    else:
        items.append(value)

    config[key] = items


def append_tls_san(config: MutableMapping, address: str, unique: bool = False) -> None:
    """Append an address to the ``tls-san`` list of a configuration document.

    Existing values may be a comma separated string or a list; anything else
    is discarded with a warning. Appending is not idempotent unless ``unique``
    is set: the same address added twice ends up in the list twice.
    """
    if not address:
        logger.warning("Attempted to append TLS SAN with an empty address")
        return

    _append_list_value(config, TLS_SAN_KEY, address, unique)


def append_disabled_service(config: MutableMapping, service: str) -> None:
    """Append a service to the ``disable`` list of a configuration document."""
    if not service:
        logger.warning("Attempted to disable an empty service")
        return

    _append_list_value(config, DISABLE_KEY, service)
