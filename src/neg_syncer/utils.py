import re
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Set, Tuple, TypeVar

from .types import NetworkEndpointSet

# Reserved between encoded fields. IPs, node names and ports never contain it,
# and no escaping is done, so callers must keep it that way.
SEPARATOR = '||'

S = TypeVar('S')


def encode_endpoint(ip: str, instance: str, port: str) -> str:
    """Encodes ip, instance and port into a single string key."""
    return SEPARATOR.join([ip, instance, port])


def decode_endpoint(encoded: str) -> Tuple[str, str, str]:
    """Reverses encode_endpoint. Input must come from encode_endpoint."""
    ip, instance, port = encoded.split(SEPARATOR)
    return ip, instance, port


def key_func(namespace: str, name: str) -> str:
    return f'{namespace}/{name}'


def _calculate_zone_difference(target_map: Mapping[str, S], current_map: Mapping[str, S],
                               empty: Callable[[], S]) -> Tuple[Dict[str, S], Dict[str, S]]:
    add: Dict[str, S] = {}
    remove: Dict[str, S] = {}
    for zone, endpoints in target_map.items():
        diff = endpoints.difference(current_map.get(zone, empty()))
        if len(diff) > 0:
            add[zone] = diff
    for zone, endpoints in current_map.items():
        diff = endpoints.difference(target_map.get(zone, empty()))
        if len(diff) > 0:
            remove[zone] = diff
    return add, remove


def calculate_difference(target_map: Mapping[str, Set[str]], current_map: Mapping[str, Set[str]]
                         ) -> Tuple[Dict[str, Set[str]], Dict[str, Set[str]]]:
    """Returns (add, remove) per zone to move encoded-endpoint sets from current to target."""
    return _calculate_zone_difference(target_map, current_map, set)


def calculate_network_endpoint_difference(
        target_map: Mapping[str, NetworkEndpointSet], current_map: Mapping[str, NetworkEndpointSet]
) -> Tuple[Dict[str, NetworkEndpointSet], Dict[str, NetworkEndpointSet]]:
    """Returns (add, remove) per zone to move current NetworkEndpointSets to target."""
    return _calculate_zone_difference(target_map, current_map, NetworkEndpointSet)


_RESOURCE_PATH = re.compile(
    r'^(?:https?://[^/]+/compute/[^/]+/)?'
    r'projects/(?P<project>[^/]+)/'
    r'(?:(?P<scope_type>regions|zones)/(?P<scope>[^/]+)|global)/'
    r'(?P<resource>[^/]+)/(?P<name>[^/]+)$'
)


def _parse_resource_id(url: str) -> Optional[dict]:
    m = _RESOURCE_PATH.match(url)
    if m:
        return m.groupdict()
    if '/' not in url:
        return {'project': None, 'scope_type': None, 'scope': None, 'resource': None, 'name': url}
    return None


def equal_resource_ids(a: Optional[str], b: Optional[str]) -> bool:
    """Compares two compute resource references, tolerating short names and full URLs."""
    a = a or ''
    b = b or ''
    if not a or not b:
        return a == b
    id_a = _parse_resource_id(a)
    id_b = _parse_resource_id(b)
    if id_a is None or id_b is None:
        return a == b
    if id_a['name'] != id_b['name']:
        return False
    # a bare short name carries nothing else to compare
    if id_a['project'] is None or id_b['project'] is None:
        return True
    return all(id_a[f] == id_b[f] for f in ('resource', 'project', 'scope_type', 'scope'))


@dataclass(frozen=True)
class Backoff:
    """Retry budget for a failed reconciliation pass."""
    max_retries: int = 15
    min_delay: float = 5.0
    max_delay: float = 600.0

    def delay(self, attempt: int) -> float:
        """Seconds to wait after the given 0-based failed attempt."""
        return min(self.max_delay, self.min_delay * (2 ** attempt))
