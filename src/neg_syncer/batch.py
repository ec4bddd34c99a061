from typing import Dict

from .exceptions import EndpointEncodingError
from .types import NetworkEndpoint, NetworkEndpointSet

MAX_NETWORK_ENDPOINTS_PER_BATCH = 500


def make_endpoint_batch(endpoints: NetworkEndpointSet, hybrid: bool = False,
                        limit: int = MAX_NETWORK_ENDPOINTS_PER_BATCH) -> Dict[NetworkEndpoint, dict]:
    """Pops up to limit endpoints off the set and returns them in compute API form.

    The returned dict maps each endpoint to its networkEndpoint body. The input
    set keeps only what was not batched. Hybrid NEGs carry no instance.
    """
    batch: Dict[NetworkEndpoint, dict] = {}
    for _ in range(limit):
        endpoint = endpoints.pop_any()
        if endpoint is None:
            break
        try:
            port = int(endpoint.port)
        except (TypeError, ValueError) as e:
            raise EndpointEncodingError(f'failed to decode endpoint port {endpoint}: {e}') from e

        body = {'ipAddress': endpoint.ip, 'port': port}
        if not hybrid:
            body['instance'] = endpoint.node
        batch[endpoint] = body
    return batch
