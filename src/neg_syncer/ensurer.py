from typing import Optional

from .logging_ import get_logger
from .types import GCE_VM_IP_PORT_ENDPOINT_TYPE, NON_GCP_PRIVATE_IP_PORT_ENDPOINT_TYPE
from .utils import equal_resource_ids, key_func

logger = get_logger('neg-syncer.ensurer')

EVENT_TYPE_NORMAL = 'Normal'

# outcomes of ensure_network_endpoint_group
NOOP = 'noop'
CREATED = 'created'
RECREATED = 'recreated'


def get_service(service_store, namespace: str, name: str) -> Optional[object]:
    """Returns the service from the store, or None when absent or unreadable."""
    if service_store is None:
        return None
    key = key_func(namespace, name)
    try:
        return service_store.get_by_key(key)
    except Exception as e:
        logger.error("Failed to retrieve service from store", service=key, error=str(e), error_type=type(e).__name__)
        return None


def _record(recorder, service_store, svc_namespace, svc_name, reason, fmt, *args):
    if recorder is None or service_store is None:
        return
    svc = get_service(service_store, svc_namespace, svc_name)
    if svc is not None:
        recorder.eventf(svc, EVENT_TYPE_NORMAL, reason, fmt, *args)


def ensure_network_endpoint_group(svc_namespace: str, svc_name: str, neg_name: str, zone: str,
                                  neg_service_port_name: str, cloud, service_store=None,
                                  recorder=None, hybrid: bool = False) -> str:
    """Ensures the NEG exists in the zone with the cluster's network and subnetwork.

    A NEG with a drifted network or subnetwork is deleted and created again.
    Returns NOOP, CREATED or RECREATED. Cloud delete/create failures propagate.
    """
    try:
        neg = cloud.get_network_endpoint_group(neg_name, zone)
    except Exception as e:
        # most likely the NEG does not exist yet
        logger.debug("Error while retrieving NEG", neg=neg_name, zone=zone, error=str(e))
        neg = None

    expected_subnetwork = '' if hybrid else cloud.subnetwork_url()
    outcome = NOOP
    if neg is None:
        outcome = CREATED
    elif not equal_resource_ids(neg.get('network'), cloud.network_url()) or \
            not equal_resource_ids(neg.get('subnetwork'), expected_subnetwork):
        outcome = RECREATED
        logger.info("NEG does not match network and subnetwork of the cluster, deleting",
                    neg=neg_name, zone=zone, network=neg.get('network'), subnetwork=neg.get('subnetwork'))
        cloud.delete_network_endpoint_group(neg_name, zone)
        _record(recorder, service_store, svc_namespace, svc_name, 'Delete',
                'Deleted NEG %r for %s in %r.', neg_name, neg_service_port_name, zone)

    if outcome == NOOP:
        return outcome

    logger.info("Creating NEG", neg=neg_name, port=neg_service_port_name, zone=zone, hybrid=hybrid)
    cloud.create_network_endpoint_group({
        'name': neg_name,
        'networkEndpointType': NON_GCP_PRIVATE_IP_PORT_ENDPOINT_TYPE if hybrid else GCE_VM_IP_PORT_ENDPOINT_TYPE,
        'network': cloud.network_url(),
        'subnetwork': expected_subnetwork,
    }, zone)
    _record(recorder, service_store, svc_namespace, svc_name, 'Create',
            'Created NEG %r for %s in %r.', neg_name, neg_service_port_name, zone)
    return outcome
