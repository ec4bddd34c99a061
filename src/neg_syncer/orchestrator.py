import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import structlog

from .batch import make_endpoint_batch
from .cloud import GCENetworkEndpointGroupCloud
from .config import load_from_env
from .ensurer import ensure_network_endpoint_group
from .kube import KubeClient, KubeEventRecorder, KubeZoneGetter
from .logging_ import get_logger
from .mapper import retrieve_existing_zone_network_endpoint_map, to_zone_network_endpoint_map
from .types import EndpointPodMap, NetworkEndpointSet
from .utils import calculate_network_endpoint_difference


@dataclass(frozen=True)
class SyncKey:
    """Identifies the NEG of one service port."""
    namespace: str
    service: str
    neg_name: str
    target_port: str
    port_name: str = ''
    subset_labels: str = ''

    @property
    def port_label(self) -> str:
        return self.port_name or f'{self.namespace}/{self.service}:{self.target_port}'


@dataclass
class SyncResult:
    zones: List[str]
    added: int = 0
    removed: int = 0
    endpoint_pods: EndpointPodMap = field(default_factory=dict)


class Orchestrator:
    def __init__(self, cfg=None, kube=None, cloud=None, zone_getter=None, recorder=None,
                 pod_store=None, service_store=None, logger=None,
                 sleep: Callable[[float], None] = time.sleep):
        self.cfg = cfg or load_from_env()
        self.logger = logger or get_logger('neg-syncer')
        self.kube = kube or KubeClient(self.cfg.namespace)
        self.cloud = cloud or GCENetworkEndpointGroupCloud(self.cfg.project, self.cfg.network_url,
                                                           self.cfg.subnetwork_url)
        self.zone_getter = zone_getter or KubeZoneGetter(self.kube, self.cfg.zone_label)
        self.recorder = recorder or KubeEventRecorder(self.kube, self.cfg.event_component)
        self.pod_store = pod_store or self.kube.pod_store()
        self.service_store = service_store or self.kube.service_store()
        self.sleep = sleep
        self.last_error: Optional[Exception] = None

    def _ensure(self, key: SyncKey, zone: str) -> str:
        return ensure_network_endpoint_group(
            key.namespace, key.service, key.neg_name, zone, key.port_label, self.cloud,
            service_store=self.service_store, recorder=self.recorder, hybrid=self.cfg.create_hybrid_neg)

    def _drain(self, key: SyncKey, zone: str, endpoints: NetworkEndpointSet, apply: Callable) -> int:
        """Applies the set in batches until it is empty. Returns the count applied."""
        applied = 0
        while len(endpoints) > 0:
            batch = make_endpoint_batch(endpoints, hybrid=self.cfg.create_hybrid_neg,
                                        limit=self.cfg.max_endpoints_per_batch)
            if not batch:
                raise ValueError(f'batch limit must be at least 1, got {self.cfg.max_endpoints_per_batch}')
            apply(key.neg_name, zone, list(batch.values()))
            applied += len(batch)
        return applied

    def _apply_zone(self, key: SyncKey, zone: str, add: Optional[NetworkEndpointSet],
                    remove: Optional[NetworkEndpointSet]) -> tuple:
        added = self._drain(key, zone, add, self.cloud.attach_network_endpoints) if add else 0
        removed = self._drain(key, zone, remove, self.cloud.detach_network_endpoints) if remove else 0
        return added, removed

    def sync(self, key: SyncKey) -> SyncResult:
        """Runs one reconciliation pass for the NEG. Any failure propagates.

        NEGs are ensured and listed in every known zone plus every zone that
        holds a desired endpoint, even when its nodes are cordoned or not ready.
        """
        with structlog.contextvars.bound_contextvars(neg=key.neg_name, service=f'{key.namespace}/{key.service}'):
            return self._sync(key)

    def _sync(self, key: SyncKey) -> SyncResult:
        hybrid = self.cfg.create_hybrid_neg
        endpoints = self.kube.read_endpoints(key.service, namespace=key.namespace)
        target, endpoint_pods = to_zone_network_endpoint_map(
            endpoints, self.zone_getter, key.target_port, self.pod_store, key.subset_labels, hybrid=hybrid)

        zones = sorted(set(self.zone_getter.list_zones()) | set(target))
        self.logger.info("Syncing NEG", zones=zones)

        with ThreadPoolExecutor(max_workers=self.cfg.max_workers) as executor:
            for zone, outcome in zip(zones, executor.map(lambda z: self._ensure(key, z), zones)):
                self.logger.debug("Ensured NEG", zone=zone, outcome=outcome)

        current = retrieve_existing_zone_network_endpoint_map(key.neg_name, self.zone_getter, self.cloud,
                                                              extra_zones=target)
        add, remove = calculate_network_endpoint_difference(target, current)

        result = SyncResult(zones=zones, endpoint_pods=endpoint_pods)
        changed_zones = sorted(set(add) | set(remove))
        if not changed_zones:
            self.logger.info("NEG already in sync")
            return result

        # each zone's sets are drained by exactly one worker
        with ThreadPoolExecutor(max_workers=self.cfg.max_workers) as executor:
            counts: Dict[str, tuple] = dict(zip(changed_zones, executor.map(
                lambda z: self._apply_zone(key, z, add.get(z), remove.get(z)), changed_zones)))

        result.added = sum(a for a, _ in counts.values())
        result.removed = sum(r for _, r in counts.values())
        self.logger.info("NEG synced", added=result.added, removed=result.removed,
                         zones=changed_zones)
        return result

    def run(self, key: SyncKey) -> bool:
        """Runs sync with bounded exponential backoff. Returns False once the budget is spent."""
        backoff = self.cfg.backoff
        for attempt in range(backoff.max_retries):
            try:
                self.sync(key)
                self.last_error = None
                return True
            except Exception as e:
                self.last_error = e
                if attempt == backoff.max_retries - 1:
                    break
                delay = backoff.delay(attempt)
                self.logger.warning("NEG sync failed, retrying", neg=key.neg_name, attempt=attempt + 1,
                                    retry_in=delay, error=str(e), error_type=type(e).__name__)
                self.sleep(delay)

        self.logger.error("Dropping NEG out of the sync queue after too many retries",
                          neg=key.neg_name, attempts=backoff.max_retries,
                          error=str(self.last_error), error_type=type(self.last_error).__name__)
        return False
