from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional

# NEG endpoint types understood by the compute API.
GCE_VM_IP_PORT_ENDPOINT_TYPE = 'GCE_VM_IP_PORT'
NON_GCP_PRIVATE_IP_PORT_ENDPOINT_TYPE = 'NON_GCP_PRIVATE_IP_PORT'


@dataclass(frozen=True)
class NetworkEndpoint:
    """A single routable endpoint. Port is kept in its string form."""
    ip: str
    port: str
    node: str

    def __str__(self) -> str:
        return f'{self.ip}:{self.port}@{self.node}'


@dataclass(frozen=True)
class NamespacedName:
    namespace: str
    name: str

    def __str__(self) -> str:
        return f'{self.namespace}/{self.name}'


class NetworkEndpointSet:
    """Mutable set of NetworkEndpoint with a destructive pop_any().

    Backed by an insertion-ordered dict so that popping does not depend on
    hash iteration order. Callers must not rely on which element pops.
    """

    def __init__(self, endpoints: Optional[Iterable[NetworkEndpoint]] = None):
        self._items: Dict[NetworkEndpoint, None] = {}
        if endpoints:
            self.insert(*endpoints)

    def insert(self, *endpoints: NetworkEndpoint) -> 'NetworkEndpointSet':
        for ep in endpoints:
            self._items[ep] = None
        return self

    def delete(self, *endpoints: NetworkEndpoint) -> 'NetworkEndpointSet':
        for ep in endpoints:
            self._items.pop(ep, None)
        return self

    def has(self, endpoint: NetworkEndpoint) -> bool:
        return endpoint in self._items

    def difference(self, other: Optional['NetworkEndpointSet']) -> 'NetworkEndpointSet':
        """Returns the endpoints in self that are not in other. None is empty."""
        if other is None:
            return NetworkEndpointSet(self._items)
        return NetworkEndpointSet(ep for ep in self._items if ep not in other)

    def union(self, other: Optional['NetworkEndpointSet']) -> 'NetworkEndpointSet':
        result = NetworkEndpointSet(self._items)
        if other is not None:
            result.insert(*other)
        return result

    def pop_any(self) -> Optional[NetworkEndpoint]:
        """Removes and returns an arbitrary endpoint, or None when empty."""
        if not self._items:
            return None
        ep, _ = self._items.popitem()
        return ep

    def copy(self) -> 'NetworkEndpointSet':
        return NetworkEndpointSet(self._items)

    def __contains__(self, endpoint: object) -> bool:
        return endpoint in self._items

    def __iter__(self) -> Iterator[NetworkEndpoint]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NetworkEndpointSet):
            return self._items.keys() == other._items.keys()
        if isinstance(other, (set, frozenset)):
            return set(self._items) == other
        return NotImplemented

    def __repr__(self) -> str:
        return f'NetworkEndpointSet({sorted(str(ep) for ep in self._items)})'


# Maps an endpoint to the pod that backs it. Duplicate endpoints overwrite.
EndpointPodMap = Dict[NetworkEndpoint, NamespacedName]
