from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from .exceptions import ZoneLookupError
from .logging_ import get_logger
from .utils import key_func

LEGACY_ZONE_LABEL = 'failure-domain.beta.kubernetes.io/zone'


def _not_found(e: ApiException) -> bool:
    return getattr(e, 'status', None) == 404


class KubeClient:
    """Lightweight wrapper around CoreV1Api for the objects a NEG sync reads.

    Instantiate with an injected CoreV1Api for tests, or with no arg to load
    in-cluster config, falling back to the local kubeconfig.
    Reads return None when the object does not exist.
    """
    def __init__(self, namespace: str, api: Optional[object] = None):
        self.namespace = namespace
        self.v1 = api
        if self.v1 is None:
            try:
                config.load_incluster_config()
            except ConfigException:
                config.load_kube_config()
            self.v1 = client.CoreV1Api()

    def _read(self, fn: Callable, **kwargs):
        try:
            return fn(**kwargs)
        except ApiException as e:
            if _not_found(e):
                return None
            raise

    def read_endpoints(self, name: str, namespace: Optional[str] = None):
        return self._read(self.v1.read_namespaced_endpoints, name=name, namespace=namespace or self.namespace)

    def read_pod(self, name: str, namespace: Optional[str] = None):
        return self._read(self.v1.read_namespaced_pod, name=name, namespace=namespace or self.namespace)

    def read_service(self, name: str, namespace: Optional[str] = None):
        return self._read(self.v1.read_namespaced_service, name=name, namespace=namespace or self.namespace)

    def read_node(self, name: str):
        return self._read(self.v1.read_node, name=name)

    def list_nodes(self) -> List[object]:
        return list(self.v1.list_node().items or [])

    def create_event(self, namespace: str, body: dict):
        return self.v1.create_namespaced_event(namespace=namespace, body=body)

    def pod_store(self) -> 'KubeObjectStore':
        return KubeObjectStore(self.read_pod)

    def service_store(self) -> 'KubeObjectStore':
        return KubeObjectStore(self.read_service)


class KubeObjectStore:
    """Keyed "namespace/name" lookup that reads through the API server."""
    def __init__(self, reader: Callable):
        self.reader = reader

    def get_by_key(self, key: str):
        namespace, _, name = key.partition('/')
        return self.reader(name, namespace=namespace)


class DictStore:
    """In-memory keyed store of namespaced objects, e.g. fed by a watch."""
    def __init__(self, objects=None):
        self._items: Dict[str, object] = {}
        for obj in objects or []:
            self.add(obj)

    @staticmethod
    def key_of(obj) -> str:
        return key_func(obj.metadata.namespace, obj.metadata.name)

    def add(self, obj):
        self._items[self.key_of(obj)] = obj

    def delete(self, obj):
        self._items.pop(self.key_of(obj), None)

    def get_by_key(self, key: str):
        return self._items.get(key)


def _node_zone(node, zone_label: str) -> Optional[str]:
    node_labels = (node.metadata.labels if node.metadata else None) or {}
    return node_labels.get(zone_label) or node_labels.get(LEGACY_ZONE_LABEL)


def _node_ready(node) -> bool:
    if node.spec is not None and node.spec.unschedulable:
        return False
    conditions = (node.status.conditions if node.status else None) or []
    return any(c.type == 'Ready' and c.status == 'True' for c in conditions)


class KubeZoneGetter:
    """Maps nodes to zones from their topology labels."""
    def __init__(self, kube: KubeClient, zone_label: str = 'topology.kubernetes.io/zone'):
        self.kube = kube
        self.zone_label = zone_label
        self.logger = get_logger('zone-getter')

    def get_zone_for_node(self, name: str) -> str:
        try:
            node = self.kube.read_node(name)
        except ApiException as e:
            raise ZoneLookupError(f'failed to read node {name!r}: {e.reason}') from e
        if node is None:
            raise ZoneLookupError(f'node {name!r} not found')
        zone = _node_zone(node, self.zone_label)
        if not zone:
            raise ZoneLookupError(f'node {name!r} has no zone label {self.zone_label!r}')
        return zone

    def list_zones(self) -> List[str]:
        """Returns the zones of all ready, schedulable nodes."""
        try:
            nodes = self.kube.list_nodes()
        except ApiException as e:
            raise ZoneLookupError(f'failed to list nodes: {e.reason}') from e
        zones = set()
        for node in nodes:
            if not _node_ready(node):
                continue
            zone = _node_zone(node, self.zone_label)
            if zone:
                zones.add(zone)
            else:
                self.logger.debug("Node has no zone label", node=node.metadata.name)
        return sorted(zones)


class KubeEventRecorder:
    """Posts core/v1 Events. Failures are logged, never raised."""
    def __init__(self, kube: KubeClient, component: str = 'neg-controller'):
        self.kube = kube
        self.component = component
        self.logger = get_logger('event-recorder')

    def build_event(self, obj, event_type: str, reason: str, message: str) -> dict:
        now = datetime.now(timezone.utc).isoformat()
        meta = obj.metadata
        return {
            'metadata': {'generateName': f'{meta.name}.', 'namespace': meta.namespace},
            'involvedObject': {
                'apiVersion': getattr(obj, 'api_version', None) or 'v1',
                'kind': getattr(obj, 'kind', None) or 'Service',
                'namespace': meta.namespace,
                'name': meta.name,
                'uid': meta.uid,
            },
            'type': event_type,
            'reason': reason,
            'message': message,
            'source': {'component': self.component},
            'firstTimestamp': now,
            'lastTimestamp': now,
            'count': 1,
        }

    def eventf(self, obj, event_type: str, reason: str, fmt: str, *args):
        message = fmt % args if args else fmt
        body = self.build_event(obj, event_type, reason, message)
        try:
            self.kube.create_event(obj.metadata.namespace, body)
        except ApiException as e:
            self.logger.error("Failed to record event", reason=reason, event_message=message,
                              object=key_func(obj.metadata.namespace, obj.metadata.name),
                              error=str(e), error_type=type(e).__name__)
