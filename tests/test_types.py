"""Tests for NetworkEndpoint and NetworkEndpointSet."""

from neg_syncer.types import NamespacedName, NetworkEndpoint, NetworkEndpointSet


class TestNetworkEndpoint:
    def test_structural_equality_and_hash(self):
        a = NetworkEndpoint(ip='10.0.0.1', port='80', node='n1')
        b = NetworkEndpoint(ip='10.0.0.1', port='80', node='n1')
        assert a == b
        assert len({a, b}) == 1

    def test_every_field_is_part_of_identity(self):
        base = NetworkEndpoint(ip='10.0.0.1', port='80', node='n1')
        assert base != NetworkEndpoint(ip='10.0.0.2', port='80', node='n1')
        assert base != NetworkEndpoint(ip='10.0.0.1', port='81', node='n1')
        assert base != NetworkEndpoint(ip='10.0.0.1', port='80', node='n2')

    def test_namespaced_name_str(self):
        assert str(NamespacedName('default', 'web-0')) == 'default/web-0'


class TestNetworkEndpointSet:
    def setup_method(self):
        self.e1 = NetworkEndpoint('10.0.0.1', '80', 'n1')
        self.e2 = NetworkEndpoint('10.0.0.2', '80', 'n1')
        self.e3 = NetworkEndpoint('10.0.0.3', '80', 'n2')

    def test_insert_is_idempotent(self):
        s = NetworkEndpointSet().insert(self.e1, self.e1, self.e2)
        assert len(s) == 2
        assert s.has(self.e1)
        assert self.e2 in s

    def test_difference_with_none(self):
        s = NetworkEndpointSet([self.e1])
        diff = s.difference(None)
        assert diff == s
        assert diff is not s

    def test_difference(self):
        s = NetworkEndpointSet([self.e1, self.e2, self.e3])
        assert s.difference(NetworkEndpointSet([self.e2])) == {self.e1, self.e3}

    def test_pop_any_drains(self):
        s = NetworkEndpointSet([self.e1, self.e2, self.e3])
        popped = {s.pop_any() for _ in range(3)}
        assert popped == {self.e1, self.e2, self.e3}
        assert len(s) == 0
        assert s.pop_any() is None

    def test_delete_and_copy(self):
        s = NetworkEndpointSet([self.e1, self.e2])
        c = s.copy()
        s.delete(self.e1)
        assert s == {self.e2}
        assert c == {self.e1, self.e2}
