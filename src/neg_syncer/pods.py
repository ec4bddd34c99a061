from typing import Optional

from . import labels
from .exceptions import SelectorParseError
from .logging_ import get_logger
from .utils import key_func

logger = get_logger('neg-syncer.pods')


def _get_pod(pod_store, namespace: str, name: str) -> Optional[object]:
    """Looks a pod up in the store. Every failure resolves to None."""
    if pod_store is None:
        return None
    key = key_func(namespace, name)
    try:
        pod = pod_store.get_by_key(key)
    except Exception as e:
        logger.error("Failed to retrieve pod from pod store", pod=key, error=str(e), error_type=type(e).__name__)
        return None
    if pod is None:
        return None
    if getattr(pod, 'metadata', None) is None:
        logger.error("Object in pod store is not a pod", pod=key, object_type=type(pod).__name__)
        return None
    return pod


def should_pod_be_in_neg(pod_store, namespace: str, name: str) -> bool:
    """Returns True if the pod exists and is not in graceful termination."""
    pod = _get_pod(pod_store, namespace, name)
    if pod is None:
        return False
    # a deletion timestamp means the pod is terminating
    return pod.metadata.deletion_timestamp is None


def should_pod_be_in_destination_rule_subset(pod_store, namespace: str, name: str, subset_labels: str) -> bool:
    """Returns True if the pod's labels satisfy the subset selector expression."""
    pod = _get_pod(pod_store, namespace, name)
    if pod is None:
        return False
    try:
        selector = labels.parse(subset_labels)
    except SelectorParseError as e:
        logger.error("Failed to parse the subset selector", selector=subset_labels, error=str(e))
        return False
    return selector.matches(pod.metadata.labels)
