"""Kubernetes label selector parsing and matching.

Supports the string form accepted by ``kubectl -l``::

    track=canary,tier!=frontend,env in (prod,staging),!legacy,release
"""
import re
from dataclasses import dataclass
from typing import FrozenSet, List, Mapping, Optional

from .exceptions import SelectorParseError

_NAME = r'[A-Za-z0-9](?:[-A-Za-z0-9_.]{0,61}[A-Za-z0-9])?'
_KEY = r'(?:[a-z0-9](?:[-a-z0-9.]{0,251}[a-z0-9])?/)?' + _NAME
_VALUE_RE = re.compile(r'^(?:' + _NAME + r')?$')

_NOT_EXISTS_RE = re.compile(r'^!\s*(?P<key>' + _KEY + r')$')
_EXISTS_RE = re.compile(r'^(?P<key>' + _KEY + r')$')
_SET_RE = re.compile(r'^(?P<key>' + _KEY + r')\s+(?P<op>in|notin)\s*\((?P<values>[^()]*)\)$')
_EQUALITY_RE = re.compile(r'^(?P<key>' + _KEY + r')\s*(?P<op>==|!=|=)\s*(?P<value>[^\s,()=!]*)$')

EQUALS = '='
NOT_EQUALS = '!='
IN = 'in'
NOT_IN = 'notin'
EXISTS = 'exists'
DOES_NOT_EXIST = '!'


@dataclass(frozen=True)
class Requirement:
    key: str
    operator: str
    values: FrozenSet[str] = frozenset()

    def matches(self, labels: Mapping[str, str]) -> bool:
        present = self.key in labels
        value = labels.get(self.key)
        if self.operator in (EQUALS, IN):
            return present and value in self.values
        if self.operator in (NOT_EQUALS, NOT_IN):
            return not present or value not in self.values
        if self.operator == EXISTS:
            return present
        return not present


@dataclass(frozen=True)
class Selector:
    requirements: tuple = ()

    def matches(self, labels: Optional[Mapping[str, str]]) -> bool:
        labels = labels or {}
        return all(r.matches(labels) for r in self.requirements)

    def empty(self) -> bool:
        return not self.requirements


def _split_requirements(expression: str) -> List[str]:
    parts = []
    depth = 0
    current = []
    for ch in expression:
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth < 0:
                raise SelectorParseError(f'unbalanced parenthesis in selector {expression!r}')
        if ch == ',' and depth == 0:
            parts.append(''.join(current))
            current = []
        else:
            current.append(ch)
    if depth != 0:
        raise SelectorParseError(f'unbalanced parenthesis in selector {expression!r}')
    parts.append(''.join(current))
    return parts


def _check_value(value: str, expression: str) -> str:
    if not _VALUE_RE.match(value):
        raise SelectorParseError(f'invalid label value {value!r} in selector {expression!r}')
    return value


def _parse_requirement(text: str, expression: str) -> Requirement:
    text = text.strip()
    if not text:
        raise SelectorParseError(f'empty requirement in selector {expression!r}')

    m = _NOT_EXISTS_RE.match(text)
    if m:
        return Requirement(m.group('key'), DOES_NOT_EXIST)

    m = _SET_RE.match(text)
    if m:
        values = [v.strip() for v in m.group('values').split(',')]
        if values == ['']:
            raise SelectorParseError(f'{m.group("op")} requires at least one value in {expression!r}')
        return Requirement(m.group('key'), m.group('op'),
                           frozenset(_check_value(v, expression) for v in values))

    m = _EQUALITY_RE.match(text)
    if m:
        op = NOT_EQUALS if m.group('op') == '!=' else EQUALS
        return Requirement(m.group('key'), op, frozenset([_check_value(m.group('value'), expression)]))

    m = _EXISTS_RE.match(text)
    if m:
        return Requirement(m.group('key'), EXISTS)

    raise SelectorParseError(f'unable to parse requirement {text!r} in selector {expression!r}')


def parse(expression: str) -> Selector:
    """Parses a selector expression. The empty expression selects everything.

    Raises SelectorParseError on malformed input.
    """
    if expression is None or not expression.strip():
        return Selector()
    return Selector(tuple(_parse_requirement(part, expression)
                          for part in _split_requirements(expression)))
