import time
from typing import Callable, List, Optional

from googleapiclient import discovery
from googleapiclient.errors import HttpError

from .exceptions import CloudError, NotFoundError
from .logging_ import get_logger


def _http_status(e: HttpError) -> Optional[int]:
    return getattr(getattr(e, 'resp', None), 'status', None)


class GCENetworkEndpointGroupCloud:
    """Zonal NEG operations against the compute v1 API.

    Inject a discovery-built compute resource for tests, or leave it out to
    build one with application default credentials.
    """
    def __init__(self, project: str, network_url: str, subnetwork_url: str, compute=None,
                 operation_timeout: float = 300.0, poll_interval: float = 2.0,
                 sleep: Callable[[float], None] = time.sleep):
        self.project = project
        self._network_url = network_url
        self._subnetwork_url = subnetwork_url
        self.compute = compute or discovery.build('compute', 'v1', cache_discovery=False)
        self.operation_timeout = operation_timeout
        self.poll_interval = poll_interval
        self.sleep = sleep
        self.logger = get_logger('neg-cloud')

    def network_url(self) -> str:
        return self._network_url

    def subnetwork_url(self) -> str:
        return self._subnetwork_url

    def _execute(self, request, what: str):
        try:
            return request.execute()
        except HttpError as e:
            status = _http_status(e)
            if status == 404:
                raise NotFoundError(f'{what}: not found') from e
            raise CloudError(f'{what}: {e}', status=status) from e

    def _wait_for_zone_operation(self, operation: dict, zone: str, what: str):
        deadline = time.monotonic() + self.operation_timeout
        while operation.get('status') != 'DONE':
            if time.monotonic() > deadline:
                raise CloudError(f'{what}: timed out waiting for operation {operation.get("name")}')
            self.sleep(self.poll_interval)
            operation = self._execute(
                self.compute.zoneOperations().get(project=self.project, zone=zone, operation=operation['name']),
                what)
        errors = (operation.get('error') or {}).get('errors') or []
        if errors:
            raise CloudError(f'{what}: {errors[0].get("code")}: {errors[0].get("message")}')
        return operation

    def get_network_endpoint_group(self, name: str, zone: str) -> dict:
        return self._execute(
            self.compute.networkEndpointGroups().get(project=self.project, zone=zone, networkEndpointGroup=name),
            f'get NEG {name} in {zone}')

    def create_network_endpoint_group(self, neg: dict, zone: str):
        what = f'create NEG {neg["name"]} in {zone}'
        body = {k: v for k, v in neg.items() if v}
        op = self._execute(
            self.compute.networkEndpointGroups().insert(project=self.project, zone=zone, body=body), what)
        self._wait_for_zone_operation(op, zone, what)

    def delete_network_endpoint_group(self, name: str, zone: str):
        what = f'delete NEG {name} in {zone}'
        op = self._execute(
            self.compute.networkEndpointGroups().delete(project=self.project, zone=zone,
                                                        networkEndpointGroup=name), what)
        self._wait_for_zone_operation(op, zone, what)

    def list_network_endpoints(self, name: str, zone: str, show_health: bool) -> List[dict]:
        what = f'list endpoints of NEG {name} in {zone}'
        body = {'healthStatus': 'SHOW' if show_health else 'SKIP'}
        items: List[dict] = []
        page_token = None
        while True:
            response = self._execute(
                self.compute.networkEndpointGroups().listNetworkEndpoints(
                    project=self.project, zone=zone, networkEndpointGroup=name,
                    body=body, pageToken=page_token),
                what)
            items.extend(response.get('items', []))
            page_token = response.get('nextPageToken')
            if not page_token:
                return items

    def attach_network_endpoints(self, name: str, zone: str, endpoints: List[dict]):
        what = f'attach {len(endpoints)} endpoints to NEG {name} in {zone}'
        op = self._execute(
            self.compute.networkEndpointGroups().attachNetworkEndpoints(
                project=self.project, zone=zone, networkEndpointGroup=name,
                body={'networkEndpoints': endpoints}),
            what)
        self._wait_for_zone_operation(op, zone, what)
        self.logger.info("Attached network endpoints", neg=name, zone=zone, count=len(endpoints))

    def detach_network_endpoints(self, name: str, zone: str, endpoints: List[dict]):
        what = f'detach {len(endpoints)} endpoints from NEG {name} in {zone}'
        op = self._execute(
            self.compute.networkEndpointGroups().detachNetworkEndpoints(
                project=self.project, zone=zone, networkEndpointGroup=name,
                body={'networkEndpoints': endpoints}),
            what)
        self._wait_for_zone_operation(op, zone, what)
        self.logger.info("Detached network endpoints", neg=name, zone=zone, count=len(endpoints))
