"""Normalisation of the ``cni`` server configuration value."""

from typing import List, Mapping, Tuple

from ...errors import CNIFormatError
from .document import CNI_KEY, ValueShape, parse_list_value

MULTUS_PLUGIN = 'multus'


def extract_cni(server_config: Mapping) -> Tuple[str, bool]:
    """Return the primary CNI plugin and whether multus is enabled.

    The ``cni`` value may be a string (comma separated when multus is
    involved) or a list of strings, e.g. ``"multus, calico"`` or
    ``["multus", "calico"]`` both yield ``("calico", True)``.

    Raises:
        CNIFormatError: If the value is missing, malformed or combines plugins incorrectly
    """
    value = parse_list_value(server_config.get(CNI_KEY))

    if value.shape == ValueShape.SINGLE:
        if value.raw == '':
            raise CNIFormatError("cni not configured")
        return _parse_cnis(value.items)

    if value.shape == ValueShape.LIST:
        if value.invalid:
            raise CNIFormatError(f"invalid cni value: {value.invalid[0]!r}")
        return _parse_cnis([v.strip() for v in value.items])

    raise CNIFormatError(f"invalid cni: {value.raw!r}")


def _parse_cnis(cnis: List[str]) -> Tuple[str, bool]:
    if len(cnis) == 1:
        if cnis[0] == MULTUS_PLUGIN:
            raise CNIFormatError("multus must be used alongside another primary cni selection")
        return cnis[0], False

    if len(cnis) == 2:
        if cnis[0] != MULTUS_PLUGIN:
            raise CNIFormatError("multiple cni values are only allowed if multus is the first one")
        return cnis[1], True

    raise CNIFormatError(f"invalid cni value: {cnis}")
