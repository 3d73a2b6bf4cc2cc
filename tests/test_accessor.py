import unittest
from unittest.mock import MagicMock, call

from lazybind import Registry, ServiceAccessor


class Db:
    def __init__(self, dsn: str = "sqlite://"):
        self.dsn = dsn


class TestServiceAccessor(unittest.TestCase):
    registry: Registry

    def setUp(self):
        self.registry = Registry()
        self.registry.register_type("Db", Db)

    def test_get_loads_capitalized_name(self):
        accessor = self.registry.accessor()
        db = accessor.get("db")
        assert isinstance(db, Db)
        assert db is self.registry.load("Db")

    def test_get_caches_per_accessor(self):
        self.registry.load = MagicMock(wraps=self.registry.load)
        accessor = ServiceAccessor(self.registry)

        first = accessor.get("db")
        second = accessor.get("db")

        assert first is second
        assert self.registry.load.call_args_list == [call("Db")]
        assert "db" in accessor
        assert "cache" not in accessor

    def test_accessors_share_registry_instances(self):
        a = self.registry.accessor()
        b = self.registry.accessor()
        assert a.get("db") is b.get("db")

    def test_get_uses_prepared_arguments(self):
        self.registry.prepare("Db", "postgres://app")
        assert self.registry.accessor().get("db").dsn == "postgres://app"
