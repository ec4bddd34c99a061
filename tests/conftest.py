"""Pytest fixtures and in-memory collaborators."""

from datetime import datetime, timezone

import pytest
from kubernetes import client

from neg_syncer.config import Config
from neg_syncer.exceptions import NotFoundError, ZoneLookupError
from neg_syncer.kube import DictStore

NETWORK_URL = 'https://www.googleapis.com/compute/v1/projects/test-project/global/networks/default'
SUBNETWORK_URL = ('https://www.googleapis.com/compute/v1/projects/test-project/'
                  'regions/us-central1/subnetworks/default')


class FakeZoneGetter:
    def __init__(self, node_zones, extra_zones=(), listed_zones=None):
        self.node_zones = dict(node_zones)
        self.extra_zones = list(extra_zones)
        # when set, list_zones reports only these, as if other nodes were cordoned
        self.listed_zones = listed_zones

    def get_zone_for_node(self, name):
        if name not in self.node_zones:
            raise ZoneLookupError(f'node {name!r} not found')
        return self.node_zones[name]

    def list_zones(self):
        if self.listed_zones is not None:
            return sorted(self.listed_zones)
        return sorted(set(self.node_zones.values()) | set(self.extra_zones))


class FakeCloud:
    """Keeps NEGs and their endpoints in memory and records every mutation."""

    def __init__(self, network_url=NETWORK_URL, subnetwork_url=SUBNETWORK_URL):
        self._network_url = network_url
        self._subnetwork_url = subnetwork_url
        self.negs = {}
        self.endpoints = {}
        self.calls = []

    def network_url(self):
        return self._network_url

    def subnetwork_url(self):
        return self._subnetwork_url

    def get_network_endpoint_group(self, name, zone):
        if (name, zone) not in self.negs:
            raise NotFoundError(f'NEG {name} in {zone}')
        return dict(self.negs[(name, zone)])

    def create_network_endpoint_group(self, neg, zone):
        self.calls.append(('create', neg['name'], zone))
        self.negs[(neg['name'], zone)] = dict(neg)
        self.endpoints[(neg['name'], zone)] = []

    def delete_network_endpoint_group(self, name, zone):
        self.calls.append(('delete', name, zone))
        if (name, zone) not in self.negs:
            raise NotFoundError(f'NEG {name} in {zone}')
        del self.negs[(name, zone)]
        self.endpoints.pop((name, zone), None)

    def list_network_endpoints(self, name, zone, show_health):
        return [{'networkEndpoint': dict(ep), 'healths': []} for ep in self.endpoints.get((name, zone), [])]

    def attach_network_endpoints(self, name, zone, endpoints):
        self.calls.append(('attach', name, zone, len(endpoints)))
        self.endpoints.setdefault((name, zone), []).extend(endpoints)

    def detach_network_endpoints(self, name, zone, endpoints):
        self.calls.append(('detach', name, zone, len(endpoints)))
        remaining = self.endpoints.get((name, zone), [])
        self.endpoints[(name, zone)] = [ep for ep in remaining if ep not in endpoints]


def make_pod(name, namespace='default', labels=None, terminating=False):
    return client.V1Pod(metadata=client.V1ObjectMeta(
        name=name,
        namespace=namespace,
        labels=labels or {},
        deletion_timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc) if terminating else None,
    ))


def make_address(ip, node=None, pod=None, namespace='default', kind='Pod'):
    target_ref = client.V1ObjectReference(kind=kind, namespace=namespace, name=pod) if pod else None
    return client.V1EndpointAddress(ip=ip, node_name=node, target_ref=target_ref)


def make_endpoints(subsets, name='web', namespace='default'):
    return client.V1Endpoints(metadata=client.V1ObjectMeta(name=name, namespace=namespace), subsets=subsets)


def make_subset(ports, addresses=None, not_ready=None):
    return client.V1EndpointSubset(
        ports=[client.CoreV1EndpointPort(name=name, port=port) for name, port in ports],
        addresses=addresses,
        not_ready_addresses=not_ready,
    )


def make_service(name='web', namespace='default'):
    return client.V1Service(metadata=client.V1ObjectMeta(name=name, namespace=namespace, uid='uid-1'))


@pytest.fixture
def cfg():
    return Config(
        namespace='default',
        project='test-project',
        network_url=NETWORK_URL,
        subnetwork_url=SUBNETWORK_URL,
        create_hybrid_neg=False,
        zone_label='topology.kubernetes.io/zone',
        max_endpoints_per_batch=500,
        max_retries=15,
        min_retry_delay=5.0,
        max_retry_delay=600.0,
        max_workers=2,
        event_component='neg-controller',
    )


@pytest.fixture
def cloud():
    return FakeCloud()


@pytest.fixture
def zone_getter():
    return FakeZoneGetter({'n1': 'us-central1-a', 'n2': 'us-central1-b'})


@pytest.fixture
def pod_store():
    return DictStore()


@pytest.fixture
def service_store():
    return DictStore([make_service()])
