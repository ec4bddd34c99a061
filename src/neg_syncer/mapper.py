from typing import Dict, Iterable, List, Optional, Tuple

from .exceptions import ZoneLookupError
from .logging_ import get_logger
from .pods import should_pod_be_in_destination_rule_subset, should_pod_be_in_neg
from .types import EndpointPodMap, NamespacedName, NetworkEndpoint, NetworkEndpointSet

logger = get_logger('neg-syncer.mapper')


def _parse_target_port(target_port: str) -> int:
    try:
        return int(target_port)
    except (TypeError, ValueError):
        return 0


def _match_port(ports: Optional[List[object]], target_port: str) -> Optional[str]:
    """Resolves the target port against a subset's ports.

    A numeric target port matches by number, anything else matches by name.
    Returns the port in string form, or None if the subset does not expose it.
    """
    target_port_num = _parse_target_port(target_port)
    for port in ports or []:
        if target_port_num != 0:
            if port.port == target_port_num:
                return str(target_port_num)
        elif port.name == target_port:
            return str(port.port)
    return None


def to_zone_network_endpoint_map(endpoints, zone_getter, target_port: str, pod_store,
                                 subset_labels: str = '', hybrid: bool = False
                                 ) -> Tuple[Dict[str, NetworkEndpointSet], EndpointPodMap]:
    """Translates an Endpoints object into zone -> endpoints and endpoint -> pod maps.

    Ready addresses are always included. Not-ready addresses are only kept while
    their pod is not terminating. When subset_labels is set, only addresses
    whose pod matches that selector are considered. Addresses without a node
    name (missing or empty) cannot be zoned and are skipped.

    Hybrid NEGs do not track the instance, so in hybrid mode endpoints are
    built with an empty node to compare equal to what the cloud lists.

    Raises ZoneLookupError if any address's node cannot be zoned.
    """
    zone_map: Dict[str, NetworkEndpointSet] = {}
    pod_map: EndpointPodMap = {}
    if endpoints is None:
        logger.error("Endpoints object is missing")
        return zone_map, pod_map

    ep_namespace = endpoints.metadata.namespace if endpoints.metadata else None
    ep_name = endpoints.metadata.name if endpoints.metadata else None

    def process_addresses(addresses, match_port: str, include_all: bool):
        for address in addresses or []:
            target_ref = address.target_ref
            if subset_labels:
                if target_ref is None or target_ref.kind != 'Pod':
                    logger.debug("Endpoint does not have a Pod as the target ref, skipping",
                                 ip=address.ip, endpoints=f'{ep_namespace}/{ep_name}')
                    continue
                if not should_pod_be_in_destination_rule_subset(pod_store, target_ref.namespace,
                                                                target_ref.name, subset_labels):
                    continue
            if not address.node_name:
                logger.debug("Endpoint does not have an associated node, skipping",
                             ip=address.ip, endpoints=f'{ep_namespace}/{ep_name}')
                continue
            if target_ref is None:
                logger.debug("Endpoint does not have an associated pod, skipping",
                             ip=address.ip, endpoints=f'{ep_namespace}/{ep_name}')
                continue
            try:
                zone = zone_getter.get_zone_for_node(address.node_name)
            except ZoneLookupError:
                raise
            except Exception as e:
                raise ZoneLookupError(f'failed to retrieve associated zone of node {address.node_name!r}: {e}') from e
            zone_map.setdefault(zone, NetworkEndpointSet())

            if include_all or should_pod_be_in_neg(pod_store, target_ref.namespace, target_ref.name):
                endpoint = NetworkEndpoint(ip=address.ip, port=match_port,
                                           node='' if hybrid else address.node_name)
                zone_map[zone].insert(endpoint)
                pod_map[endpoint] = NamespacedName(target_ref.namespace, target_ref.name)

    for subset in endpoints.subsets or []:
        match_port = _match_port(subset.ports, target_port)
        if match_port is None:
            continue
        process_addresses(subset.addresses, match_port, include_all=True)
        process_addresses(subset.not_ready_addresses, match_port, include_all=False)

    return zone_map, pod_map


def retrieve_existing_zone_network_endpoint_map(neg_name: str, zone_getter, cloud,
                                                extra_zones: Iterable[str] = ()) -> Dict[str, NetworkEndpointSet]:
    """Lists the endpoints attached to the NEG in every known zone.

    Every zone gets an entry, even when it holds no endpoints. extra_zones are
    listed too, for zones that hold desired endpoints but no listed node.
    """
    zones = sorted(set(zone_getter.list_zones()) | set(extra_zones))
    zone_map: Dict[str, NetworkEndpointSet] = {}
    for zone in zones:
        zone_map[zone] = NetworkEndpointSet()
        for item in cloud.list_network_endpoints(neg_name, zone, False):
            ne = item['networkEndpoint']
            zone_map[zone].insert(NetworkEndpoint(ip=ne.get('ipAddress', ''),
                                                  port=str(ne.get('port', 0)),
                                                  node=ne.get('instance', '')))
    return zone_map
