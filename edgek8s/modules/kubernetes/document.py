"""Kubernetes configuration documents (``server.yaml`` / ``agent.yaml``).

Documents are passed straight through to the distribution, so any key the
user sets is preserved verbatim. Only the reserved keys below are understood
and rewritten while deriving the cluster configuration.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, MutableMapping, Optional, Union

import yaml

from ...errors import ConfigParseError

logger = logging.getLogger("edgek8s.kubernetes.document")

TOKEN_KEY = 'token'
CNI_KEY = 'cni'
SERVER_KEY = 'server'
TLS_SAN_KEY = 'tls-san'
DISABLE_KEY = 'disable'
CLUSTER_INIT_KEY = 'cluster-init'
SELINUX_KEY = 'selinux'

RESERVED_KEYS = (TOKEN_KEY, CNI_KEY, SERVER_KEY, TLS_SAN_KEY)


class ValueShape(str, Enum):
    """Encodings accepted for list-like configuration values."""
    ABSENT = 'absent'
    SINGLE = 'single'
    LIST = 'list'
    OTHER = 'other'


@dataclass
class ListValue:
    """A list-like configuration value resolved to its canonical form.

    ``items`` is populated for ``SINGLE`` (comma separated, trimmed) and
    ``LIST`` values. ``invalid`` holds the list elements that are not
    strings, ``raw`` the original value.
    """
    shape: ValueShape
    items: List[Any] = field(default_factory=list)
    raw: Any = None
    invalid: List[Any] = field(default_factory=list)


def parse_list_value(value: Any) -> ListValue:
    """Resolve a string / list / absent value into a :class:`ListValue`."""
    if value is None:
        return ListValue(ValueShape.ABSENT)

    if isinstance(value, str):
        return ListValue(ValueShape.SINGLE, [v.strip() for v in value.split(',')], raw=value)

    if isinstance(value, (list, tuple)):
        invalid = [v for v in value if not isinstance(v, str)]
        return ListValue(ValueShape.LIST, list(value), raw=value, invalid=invalid)

    return ListValue(ValueShape.OTHER, raw=value)


class KubernetesConfig(MutableMapping):
    """An ordered configuration document with typed access to reserved keys."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(data or {})

    # Mapping protocol

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, KubernetesConfig):
            return self._data == other._data
        if isinstance(other, dict):
            return self._data == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"KubernetesConfig({self._data!r})"

    # Reserved keys

    @property
    def token(self) -> Optional[str]:
        value = self._data.get(TOKEN_KEY)
        return value if isinstance(value, str) else None

    @token.setter
    def token(self, value: str) -> None:
        self._data[TOKEN_KEY] = value

    @property
    def cni(self) -> ListValue:
        """The configured CNI, resolved but not validated."""
        return parse_list_value(self._data.get(CNI_KEY))

    @property
    def server(self) -> Optional[str]:
        return self._data.get(SERVER_KEY)

    @server.setter
    def server(self, value: str) -> None:
        self._data[SERVER_KEY] = value

    @property
    def tls_san(self) -> ListValue:
        return parse_list_value(self._data.get(TLS_SAN_KEY))

    @property
    def extras(self) -> Dict[str, Any]:
        """Every non-reserved key, in document order."""
        return {k: v for k, v in self._data.items() if k not in RESERVED_KEYS}

    def copy(self) -> 'KubernetesConfig':
        """Shallow copy, list values are shared with the original."""
        return KubernetesConfig(self._data)

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def dump(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def write(self, path: Union[str, Path]) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.dump(), encoding='utf-8')
        logger.debug(f"Wrote kubernetes config to {path}")


def load_config(path: Optional[Union[str, Path]]) -> KubernetesConfig:
    """Load a configuration document, or an empty one when the file is absent.

    Raises:
        ConfigParseError: If the file exists but cannot be read or parsed
    """
    if path is None:
        return KubernetesConfig()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning(f"Kubernetes config file '{path}' was not provided")
        return KubernetesConfig()
    except OSError as e:
        raise ConfigParseError(f"reading kubernetes config file '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigParseError(f"parsing kubernetes config file '{path}': {e}") from e

    if data is None:
        return KubernetesConfig()
    if not isinstance(data, dict):
        raise ConfigParseError(
            f"parsing kubernetes config file '{path}': expected a mapping, got {type(data).__name__}"
        )

    return KubernetesConfig(data)
