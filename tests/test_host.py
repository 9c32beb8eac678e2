"""Tests for the host collaborators and the in-memory host."""

import pytest

from hubtrigger.host import (
    ChildToManyParentsRelation,
    ChildToOneParentRelation,
    Entity,
    HostError,
    InMemoryHost,
    LoadSpec,
    MemberNotLoadedError,
    PersistenceError,
)
from hubtrigger.schemas import SetParent, SetParents, SetProperty


class TestEntity:
    """Tests for Entity member access."""

    def test_unloaded_property_raises(self):
        entity = Entity(1)
        with pytest.raises(MemberNotLoadedError, match="FileName"):
            entity.get_property_value("FileName")

    def test_unloaded_relation_raises(self):
        entity = Entity(1)
        with pytest.raises(MemberNotLoadedError, match="MasterFile"):
            entity.get_relation("MasterFile")

    def test_require_relation_missing(self):
        entity = Entity(1, relations={"MasterFile": None})
        assert entity.get_relation("MasterFile") is None
        with pytest.raises(HostError, match="no relation"):
            entity.require_relation("MasterFile")


class TestRelations:
    """Tests for relation types."""

    def test_set_ids_replaces(self):
        relation = ChildToManyParentsRelation("UserGroupToUser", [1, 2])
        relation.set_ids([3])
        assert relation.parents == [3]

    def test_set_ids_dedupes_in_order(self):
        relation = ChildToManyParentsRelation("UserGroupToUser")
        relation.set_ids([5, 3, 5, 1])
        assert relation.parent_ids == [5, 3, 1]

    def test_single_parent_ids(self):
        assert ChildToOneParentRelation("AssetTypeToAsset", 7).parent_ids == [7]
        assert ChildToOneParentRelation("AssetTypeToAsset").parent_ids == []


class TestInMemoryHost:
    """Tests for InMemoryHost."""

    def test_get_unknown_returns_none(self, host):
        assert host.get(999) is None

    def test_get_loads_only_requested(self, host):
        entity = host.get(1001, LoadSpec(properties=("FileName",)))
        assert entity.get_property_value("FileName") == "photo.jpg"
        assert not entity.is_loaded("AssetTypeToAsset")

    def test_load_members_is_idempotent(self, host):
        entity = host.reference(1001)
        host.load_members(entity, LoadSpec(properties=("FileName",)))
        entity.set_property_value("FileName", "changed.png")
        host.load_members(entity, LoadSpec(properties=("FileName",)))
        assert entity.get_property_value("FileName") == "changed.png"

    def test_copies_are_isolated(self, host):
        entity = host.get(42, LoadSpec(relations=("UserGroupToUser",)))
        entity.get_relation("UserGroupToUser").set_ids([99])
        assert host.record(42).get_relation("UserGroupToUser").parent_ids == [1]

    def test_save_persists_loaded_members(self, host):
        entity = host.get(1001, LoadSpec(properties=("FileName",)))
        entity.set_property_value("FileName", "renamed.png")
        host.save(entity)
        assert host.record(1001).get_property_value("FileName") == "renamed.png"
        assert host.saved == [1001]

    def test_save_failure(self, host):
        host.fail_saves = True
        with pytest.raises(PersistenceError):
            host.save(host.reference(1001))

    def test_save_unknown_entity(self, host):
        with pytest.raises(PersistenceError):
            host.save(Entity(31337))

    def test_apply_loads_relations_and_saves(self, host):
        entity = host.reference(1001)
        host.apply(entity, [SetParent("AssetTypeToAsset", 500), SetProperty("Title", "Hero")])

        record = host.record(1001)
        assert record.get_relation("AssetTypeToAsset").parent == 500
        assert record.get_property_value("Title") == "Hero"

    def test_apply_set_parents(self, host):
        host.apply(host.reference(42), [SetParents("UserGroupToUser", (10, 11))])
        assert host.record(42).get_relation("UserGroupToUser").parent_ids == [10, 11]

    def test_apply_missing_relation(self, host):
        with pytest.raises(HostError):
            host.apply(host.reference(500), [SetParent("AssetTypeToAsset", 1)])

    def test_group_lookup(self, host):
        assert host.get_group_by_name("Editors").id == 11
        assert host.get_group_by_name("Nobody") is None

    def test_group_ids_partial(self, host):
        assert host.get_group_ids(["Editors", "Nobody", "Everyone"]) == {"Editors": 11, "Everyone": 1}

    def test_find_single_id(self, host):
        assert host.find_single_id_by_identifier("M.AssetType.Web") == 500
        assert host.find_single_id_by_identifier("M.AssetType.None") is None

    def test_find_single_id_ambiguous(self, host):
        host.add_entity(502, definition="M.AssetType", identifier="M.AssetType.Web")
        with pytest.raises(HostError, match="more than one"):
            host.find_single_id_by_identifier("M.AssetType.Web")


class TestSnapshots:
    """Tests for YAML snapshot loading and dumping."""

    def test_from_dict(self):
        hub = InMemoryHost.from_dict({
            "entities": [
                {
                    "id": 1,
                    "identifier": "asset-1",
                    "properties": {"FileName": "a.png"},
                    "relations": {
                        "AssetTypeToAsset": {"parent": 5},
                        "MasterFile": {"parents": [1]},
                    },
                },
            ],
            "groups": [{"id": 3, "name": "Everyone"}],
        })

        record = hub.record(1)
        assert record.definition == "M.Asset"
        assert isinstance(record.get_relation("AssetTypeToAsset"), ChildToOneParentRelation)
        assert record.get_relation("MasterFile").parent_ids == [1]
        assert hub.get_group_ids(["Everyone"]) == {"Everyone": 3}

    def test_invalid_relation(self):
        with pytest.raises(HostError, match="parent"):
            InMemoryHost.from_dict({"entities": [{"id": 1, "relations": {"X": {}}}]})

    def test_dump_and_load(self, host, tmp_path):
        path = tmp_path / "hub.yaml"
        host.dump(path)

        loaded = InMemoryHost.load(path)

        assert loaded.to_dict() == host.to_dict()

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            InMemoryHost.load(tmp_path / "missing.yaml")

    def test_entity_without_id(self):
        with pytest.raises(HostError, match="missing 'id'"):
            InMemoryHost.from_dict({"entities": [{"definition": "M.Asset"}]})

    @pytest.mark.parametrize("entity", [{"id": "abc"}, {"id": None}, "1001", {"id": 1, "properties": [1]}])
    def test_malformed_entity(self, entity):
        with pytest.raises(HostError, match="invalid snapshot entity"):
            InMemoryHost.from_dict({"entities": [entity]})

    def test_group_without_name(self):
        with pytest.raises(HostError, match="missing 'name'"):
            InMemoryHost.from_dict({"groups": [{"id": 1}]})

    def test_entities_not_a_list(self):
        with pytest.raises(HostError, match="must be a list"):
            InMemoryHost.from_dict({"entities": {"id": 1}})

    def test_load_invalid_yaml(self, tmp_path):
        path = tmp_path / "hub.yaml"
        path.write_text("entities: [")

        with pytest.raises(HostError, match="invalid YAML"):
            InMemoryHost.load(path)
