"""Tests for pod eligibility and subset matching."""

from unittest.mock import Mock

from conftest import make_pod
from neg_syncer.kube import DictStore
from neg_syncer.pods import should_pod_be_in_destination_rule_subset, should_pod_be_in_neg


class TestShouldPodBeInNeg:
    def test_running_pod(self):
        store = DictStore([make_pod('web-0')])
        assert should_pod_be_in_neg(store, 'default', 'web-0')

    def test_terminating_pod(self):
        store = DictStore([make_pod('web-0', terminating=True)])
        assert not should_pod_be_in_neg(store, 'default', 'web-0')

    def test_missing_pod(self):
        assert not should_pod_be_in_neg(DictStore(), 'default', 'web-0')

    def test_namespace_is_part_of_key(self):
        store = DictStore([make_pod('web-0', namespace='other')])
        assert not should_pod_be_in_neg(store, 'default', 'web-0')

    def test_store_error_fails_closed(self):
        store = Mock()
        store.get_by_key.side_effect = RuntimeError('cache unavailable')
        assert not should_pod_be_in_neg(store, 'default', 'web-0')

    def test_no_store(self):
        assert not should_pod_be_in_neg(None, 'default', 'web-0')

    def test_non_pod_object(self):
        store = Mock()
        store.get_by_key.return_value = 'not-a-pod'
        assert not should_pod_be_in_neg(store, 'default', 'web-0')


class TestShouldPodBeInDestinationRuleSubset:
    def test_matching_labels(self):
        store = DictStore([make_pod('web-0', labels={'track': 'canary'})])
        assert should_pod_be_in_destination_rule_subset(store, 'default', 'web-0', 'track=canary')

    def test_missing_label(self):
        store = DictStore([make_pod('web-0', labels={'app': 'web'})])
        assert not should_pod_be_in_destination_rule_subset(store, 'default', 'web-0', 'track=canary')

    def test_malformed_selector_fails_closed(self):
        store = DictStore([make_pod('web-0', labels={'track': 'canary'})])
        assert not should_pod_be_in_destination_rule_subset(store, 'default', 'web-0', 'track in (canary')

    def test_missing_pod(self):
        assert not should_pod_be_in_destination_rule_subset(DictStore(), 'default', 'web-0', 'track=canary')

    def test_terminating_pod_can_still_match(self):
        store = DictStore([make_pod('web-0', labels={'track': 'canary'}, terminating=True)])
        assert should_pod_be_in_destination_rule_subset(store, 'default', 'web-0', 'track=canary')
