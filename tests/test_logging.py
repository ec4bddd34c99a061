"""Tests for the structlog configuration."""

import structlog

from neg_syncer import logging_


def test_neg_fields_lead_the_line():
    event = {'event': 'NEG synced', 'added': 2, 'zone': 'us-central1-a', 'neg': 'neg-1',
             'service': 'default/web'}
    ordered = logging_._order_keys(None, 'info', event)
    assert list(ordered) == ['neg', 'zone', 'service', 'event', 'added']


def test_missing_neg_fields_are_left_alone():
    assert list(logging_._order_keys(None, 'info', {'event': 'x', 'level': 'info'})) == ['event', 'level']


def test_json_format_uses_json_renderer():
    assert isinstance(logging_._renderer('json'), structlog.processors.JSONRenderer)
    assert isinstance(logging_._renderer('console'), structlog.dev.ConsoleRenderer)


def test_bound_context_is_merged():
    logging_.configure(level_name='DEBUG', log_format='json')
    processors = structlog.get_config()['processors']
    assert processors[0] is structlog.contextvars.merge_contextvars
    assert processors[-2] is logging_._order_keys

    with structlog.contextvars.bound_contextvars(neg='neg-1', service='default/web'):
        merged = structlog.contextvars.merge_contextvars(None, 'info', {'event': 'x'})
    assert merged == {'neg': 'neg-1', 'service': 'default/web', 'event': 'x'}
    assert structlog.contextvars.merge_contextvars(None, 'info', {}) == {}
