from dataclasses import dataclass
import os

from .utils import Backoff

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


@dataclass
class Config:
    namespace: str
    project: str
    network_url: str
    subnetwork_url: str
    create_hybrid_neg: bool
    zone_label: str
    max_endpoints_per_batch: int
    max_retries: int
    min_retry_delay: float
    max_retry_delay: float
    max_workers: int
    event_component: str

    def __post_init__(self):
        for name in ('max_endpoints_per_batch', 'max_retries', 'max_workers'):
            if getattr(self, name) < 1:
                raise ValueError(f'{name} must be at least 1, got {getattr(self, name)}')
        if self.min_retry_delay < 0 or self.max_retry_delay < self.min_retry_delay:
            raise ValueError(
                f'retry delays must satisfy 0 <= min <= max, got {self.min_retry_delay} and {self.max_retry_delay}')

    @property
    def backoff(self) -> Backoff:
        return Backoff(max_retries=self.max_retries,
                       min_delay=self.min_retry_delay,
                       max_delay=self.max_retry_delay)


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.environ.get(name, default).strip().lower() in _TRUE_VALUES


def load_from_env() -> Config:
    """Load configuration from environment variables with sensible defaults."""
    return Config(
        namespace=os.environ.get('NAMESPACE') or os.environ.get('DEFAULT_NAMESPACE', 'default'),
        project=os.environ.get('GCE_PROJECT', ''),
        network_url=os.environ.get('NETWORK_URL', ''),
        subnetwork_url=os.environ.get('SUBNETWORK_URL', ''),
        create_hybrid_neg=_env_bool('CREATE_HYBRID_NEG'),
        zone_label=os.environ.get('ZONE_LABEL', 'topology.kubernetes.io/zone'),
        max_endpoints_per_batch=int(os.environ.get('MAX_NETWORK_ENDPOINTS_PER_BATCH', '500')),
        # retry budget for one NEG, same convention as kube-controller-manager
        max_retries=int(os.environ.get('MAX_RETRIES', '15')),
        min_retry_delay=float(os.environ.get('MIN_RETRY_DELAY', '5')),
        max_retry_delay=float(os.environ.get('MAX_RETRY_DELAY', '600')),
        max_workers=int(os.environ.get('MAX_WORKERS', '3')),
        event_component=os.environ.get('EVENT_COMPONENT', 'neg-controller'),
    )
