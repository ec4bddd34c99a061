from .logging_ import get_logger
from .orchestrator import Orchestrator, SyncKey, SyncResult
from .config import Config, load_from_env
from .types import NamespacedName, NetworkEndpoint, NetworkEndpointSet
from .utils import (calculate_difference, calculate_network_endpoint_difference, decode_endpoint,
                    encode_endpoint)
from .mapper import retrieve_existing_zone_network_endpoint_map, to_zone_network_endpoint_map
from .ensurer import ensure_network_endpoint_group
from .batch import make_endpoint_batch, MAX_NETWORK_ENDPOINTS_PER_BATCH


def setup_logging(name: str = __name__):
    """Returns a configured structured logger."""
    return get_logger(name)


__all__ = [
    'Orchestrator', 'SyncKey', 'SyncResult', 'Config', 'load_from_env', 'setup_logging',
    'NamespacedName', 'NetworkEndpoint', 'NetworkEndpointSet',
    'encode_endpoint', 'decode_endpoint', 'calculate_difference', 'calculate_network_endpoint_difference',
    'to_zone_network_endpoint_map', 'retrieve_existing_zone_network_endpoint_map',
    'ensure_network_endpoint_group', 'make_endpoint_batch', 'MAX_NETWORK_ENDPOINTS_PER_BATCH',
]
