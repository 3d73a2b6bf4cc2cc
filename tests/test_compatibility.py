import unittest
from collections import Counter, OrderedDict
from typing import Protocol

import pytest

from lazybind import InstanceConflict, Registry


class Base: ...


class Derived(Base): ...


class Unrelated: ...


class RepoProtocol(Protocol):
    def get(self) -> int: ...


class GoodRepo:
    def get(self) -> int:
        return 42


class BadRepo:
    def other(self) -> str:
        return "nope"


class KeyedRepoProtocol(Protocol):
    def get(self, key) -> int: ...


class TestInstanceConflict(unittest.TestCase):
    registry: Registry

    def setUp(self):
        self.registry = Registry()
        for name, cls in (
            ("Base", Base),
            ("Derived", Derived),
            ("Unrelated", Unrelated),
            ("Repo", RepoProtocol),
            ("GoodRepo", GoodRepo),
            ("BadRepo", BadRepo),
            ("KeyedRepo", KeyedRepoProtocol),
        ):
            self.registry.register_type(name, cls)

    def test_incompatible_type_raises_and_keeps_original(self):
        original = self.registry.load("Base")

        with pytest.raises(InstanceConflict) as ctx:
            self.registry.load("Unrelated:base")

        assert ctx.value.instance_name == "base"
        assert ctx.value.existing_type == "lazybind.Base"
        assert ctx.value.requested_type == "lazybind.Unrelated"
        assert self.registry.load("Base") is original

    def test_supertype_request_returns_subtype_instance(self):
        derived = self.registry.load("Derived:svc")
        assert self.registry.load("Base:svc") is derived

    def test_subtype_request_for_supertype_instance_conflicts(self):
        self.registry.load("Base:svc")
        with pytest.raises(InstanceConflict):
            self.registry.load("Derived:svc")

    def test_unknown_type_name_conflicts(self):
        self.registry.load("Base:svc")
        with pytest.raises(InstanceConflict):
            self.registry.load("Nowhere:svc")

    def test_structural_protocol_request_is_compatible(self):
        repo = self.registry.load("GoodRepo:repo")
        assert self.registry.load("Repo:repo") is repo

    def test_non_conforming_protocol_request_conflicts(self):
        self.registry.load("BadRepo:repo")
        with pytest.raises(InstanceConflict):
            self.registry.load("Repo:repo")

    def test_protocol_arity_mismatch_conflicts(self):
        self.registry.load("GoodRepo:repo")
        with pytest.raises(InstanceConflict):
            self.registry.load("KeyedRepo:repo")


def test_factory_built_instance_matches_its_class():
    registry = Registry()
    registry.register_type("Base", Base)
    registry.register_type("MakeBase", lambda: Base())
    registry.register_type("OtherFactory", lambda: Base())

    made = registry.load("MakeBase:x")
    assert registry.load("Base:x") is made
    with pytest.raises(InstanceConflict):
        registry.load("OtherFactory:x")


def test_conflict_does_not_consume_prepared_record():
    registry = Registry()
    registry.register_type("Base", Base)
    registry.register_type("Unrelated", Unrelated)
    registry.load("Base:svc")
    registry.prepare("Unrelated:svc")

    with pytest.raises(InstanceConflict):
        registry.load("Base:svc")
    assert registry.is_prepared("Base:svc")


def test_autoimported_supertypes_are_compatible():
    registry = Registry(autoimport=True)
    d = registry.load(".collections.OrderedDict:d")
    assert registry.load(".builtins.dict:d") is d
    assert isinstance(d, OrderedDict)
    with pytest.raises(InstanceConflict):
        registry.load(".collections.Counter:d")
    assert not isinstance(d, Counter)


def test_unimportable_requested_type_conflicts(tmp_path, monkeypatch):
    (tmp_path / "lazybind_broken_compat.py").write_text("raise RuntimeError('bad module')\n")
    monkeypatch.syspath_prepend(str(tmp_path))
    registry = Registry(autoimport=True)
    d = registry.load(".collections.OrderedDict:d")

    with pytest.raises(InstanceConflict):
        registry.load(".lazybind_broken_compat.Thing:d")
    assert registry.load(".builtins.dict:d") is d
