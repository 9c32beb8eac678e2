# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Host collaborators - the boundary between handlers and the asset hub.

Handlers only see the protocols defined here:
- EntityStore: get / load_members / save / apply
- GroupResolver: get_group_by_name / get_group_ids
- QueryClient: find_single_id_by_identifier

Members are never fetched implicitly. A handler asks for them with
load_members() and reading an unloaded member raises MemberNotLoadedError.

InMemoryHost implements all three on top of plain dicts. The CLI uses it
with YAML snapshot files and the tests use it directly.
"""

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

import yaml

from hubtrigger.schemas.outcome import Mutation

logger = logging.getLogger(__name__)


class HostError(Exception):
    """Raised when the host cannot serve a request."""

    pass


class PersistenceError(HostError):
    """Raised when the host fails to save an entity."""

    pass


class MemberNotLoadedError(HostError):
    """Raised when a handler reads a member it never loaded."""

    pass


class ConfigurationError(Exception):
    """Raised when a prerequisite object is missing from the deployment."""

    pass


# =============================================================================
# Entities and relations
# =============================================================================

@dataclass
class ChildToOneParentRelation:
    """Relation with a single settable parent reference."""
    name: str
    parent: Optional[int] = None

    @property
    def parent_ids(self) -> List[int]:
        return [self.parent] if self.parent is not None else []


@dataclass
class ChildToManyParentsRelation:
    """Relation with a set of parent references, replaced wholesale."""
    name: str
    parents: List[int] = field(default_factory=list)

    @property
    def parent_ids(self) -> List[int]:
        return list(self.parents)

    def set_ids(self, ids: Iterable[int]) -> None:
        seen = set()
        parents = []
        for parent_id in ids:
            if parent_id not in seen:
                seen.add(parent_id)
                parents.append(parent_id)
        self.parents = parents


Relation = Union[ChildToOneParentRelation, ChildToManyParentsRelation]


@dataclass(frozen=True)
class LoadSpec:
    """Which members to load along with an entity."""
    properties: Tuple[str, ...] = ()
    relations: Tuple[str, ...] = ()

    @classmethod
    def none(cls) -> "LoadSpec":
        return cls()


@dataclass(frozen=True)
class Group:
    """A user group."""
    id: int
    name: str


class Entity:
    """A host record with explicitly loaded properties and relations."""

    def __init__(
        self,
        id: int,
        definition: str = "M.Asset",
        identifier: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
        relations: Optional[Dict[str, Optional[Relation]]] = None,
    ):
        self.id = id
        self.definition = definition
        self.identifier = identifier
        self._properties: Dict[str, Any] = dict(properties or {})
        self._relations: Dict[str, Optional[Relation]] = dict(relations or {})

    def __repr__(self) -> str:
        return f"Entity(id={self.id!r}, definition={self.definition!r})"

    @property
    def loaded_properties(self) -> Dict[str, Any]:
        return dict(self._properties)

    @property
    def loaded_relations(self) -> Dict[str, Optional[Relation]]:
        return dict(self._relations)

    def is_loaded(self, name: str) -> bool:
        return name in self._properties or name in self._relations

    def get_property_value(self, name: str) -> Any:
        if name not in self._properties:
            raise MemberNotLoadedError(f"property '{name}' is not loaded on entity {self.id}")
        return self._properties[name]

    def set_property_value(self, name: str, value: Any) -> None:
        self._properties[name] = value

    def get_relation(self, name: str) -> Optional[Relation]:
        """Return the relation, or None if the entity has no such relation."""
        if name not in self._relations:
            raise MemberNotLoadedError(f"relation '{name}' is not loaded on entity {self.id}")
        return self._relations[name]

    def require_relation(self, name: str) -> Relation:
        relation = self.get_relation(name)
        if relation is None:
            raise HostError(f"entity {self.id} has no relation '{name}'")
        return relation


# =============================================================================
# Collaborator protocols
# =============================================================================

class EntityStore(Protocol):
    def get(self, entity_id: int, load_spec: Optional[LoadSpec] = None) -> Optional[Entity]: ...

    def load_members(self, entity: Entity, load_spec: LoadSpec) -> None: ...

    def save(self, entity: Entity) -> None: ...

    def apply(self, entity: Entity, mutations: Sequence[Mutation]) -> None: ...


class GroupResolver(Protocol):
    def get_group_by_name(self, name: str) -> Optional[Group]: ...

    def get_group_ids(self, names: Sequence[str]) -> Dict[str, int]: ...


class QueryClient(Protocol):
    def find_single_id_by_identifier(self, identifier: str) -> Optional[int]: ...


class Host(Protocol):
    entities: EntityStore
    groups: GroupResolver
    querying: QueryClient


# =============================================================================
# In-memory host
# =============================================================================

class InMemoryHost:
    """Dict-backed host used by the CLI and the tests.

    Records are stored fully loaded. get() hands out copies that only carry
    the members asked for, so handlers must load what they read.
    """

    def __init__(self):
        self._records: Dict[int, Entity] = {}
        self._groups: Dict[str, Group] = {}
        self.saved: List[int] = []
        self.fail_saves = False

    @property
    def entities(self) -> "InMemoryHost":
        return self

    @property
    def groups(self) -> "InMemoryHost":
        return self

    @property
    def querying(self) -> "InMemoryHost":
        return self

    # -- seeding ------------------------------------------------------------

    def add_entity(
        self,
        entity_id: int,
        definition: str = "M.Asset",
        identifier: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
        relations: Optional[Dict[str, Relation]] = None,
    ) -> None:
        self._records[entity_id] = Entity(
            entity_id,
            definition=definition,
            identifier=identifier,
            properties=properties,
            relations=relations,
        )

    def add_group(self, group_id: int, name: str) -> Group:
        group = Group(id=group_id, name=name)
        self._groups[name] = group
        return group

    def record(self, entity_id: int) -> Entity:
        """Return the stored record itself (fully loaded)."""
        return self._records[entity_id]

    # -- EntityStore --------------------------------------------------------

    def get(self, entity_id: int, load_spec: Optional[LoadSpec] = None) -> Optional[Entity]:
        if entity_id not in self._records:
            return None
        stored = self._records[entity_id]
        entity = Entity(entity_id, definition=stored.definition, identifier=stored.identifier)
        if load_spec is not None:
            self.load_members(entity, load_spec)
        return entity

    def reference(self, entity_id: int) -> Optional[Entity]:
        """Return an entity with no members loaded."""
        return self.get(entity_id)

    def load_members(self, entity: Entity, load_spec: LoadSpec) -> None:
        stored = self._records.get(entity.id)
        if stored is None:
            raise HostError(f"entity {entity.id} does not exist")
        for name in load_spec.properties:
            if not entity.is_loaded(name):
                entity.set_property_value(name, copy.deepcopy(stored._properties.get(name)))
        for name in load_spec.relations:
            if not entity.is_loaded(name):
                entity._relations[name] = copy.deepcopy(stored._relations.get(name))

    def save(self, entity: Entity) -> None:
        if self.fail_saves:
            raise PersistenceError(f"failed to save entity {entity.id}")
        stored = self._records.get(entity.id)
        if stored is None:
            raise PersistenceError(f"cannot save unknown entity {entity.id}")
        for name, value in entity.loaded_properties.items():
            stored._properties[name] = copy.deepcopy(value)
        for name, relation in entity.loaded_relations.items():
            if relation is not None:
                stored._relations[name] = copy.deepcopy(relation)
        self.saved.append(entity.id)
        logger.debug(f"Saved entity {entity.id}")

    def apply(self, entity: Entity, mutations: Sequence[Mutation]) -> None:
        """Apply mutations to the entity and persist them in one save."""
        relations = tuple(m.member[1] for m in mutations if m.member[0] == "relation")
        self.load_members(entity, LoadSpec(relations=relations))
        for mutation in mutations:
            mutation.apply_to(entity)
        self.save(entity)

    # -- GroupResolver ------------------------------------------------------

    def get_group_by_name(self, name: str) -> Optional[Group]:
        return self._groups.get(name)

    def get_group_ids(self, names: Sequence[str]) -> Dict[str, int]:
        return {name: self._groups[name].id for name in names if name in self._groups}

    # -- QueryClient --------------------------------------------------------

    def find_single_id_by_identifier(self, identifier: str) -> Optional[int]:
        matches = [e.id for e in self._records.values() if e.identifier == identifier]
        if len(matches) > 1:
            raise HostError(f"more than one entity has identifier '{identifier}'")
        return matches[0] if matches else None

    # -- snapshots ----------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryHost":
        """Build a host from a snapshot mapping.

        Format:
            entities:
              - id: 1001
                definition: M.Asset
                identifier: asset-1001
                properties: {FileName: photo.jpg}
                relations:
                  AssetTypeToAsset: {parent: 5}
                  MasterFile: {parents: [1001]}
            groups:
              - {id: 1, name: Everyone}
        """
        for section in ("entities", "groups"):
            if not isinstance(data.get(section) or [], list):
                raise HostError(f"snapshot '{section}' must be a list")
        host = cls()
        for item in data.get("entities") or []:
            try:
                relations = {
                    name: _relation_from_dict(name, spec)
                    for name, spec in (item.get("relations") or {}).items()
                }
                host.add_entity(
                    int(item["id"]),
                    definition=item.get("definition", "M.Asset"),
                    identifier=item.get("identifier"),
                    properties=dict(item.get("properties") or {}),
                    relations=relations,
                )
            except KeyError as e:
                raise HostError(f"snapshot entity is missing {e}: {item}")
            except (AttributeError, TypeError, ValueError) as e:
                raise HostError(f"invalid snapshot entity {item}: {e}")
        for item in data.get("groups") or []:
            try:
                host.add_group(int(item["id"]), str(item["name"]))
            except KeyError as e:
                raise HostError(f"snapshot group is missing {e}: {item}")
            except (TypeError, ValueError) as e:
                raise HostError(f"invalid snapshot group {item}: {e}")
        return host

    @classmethod
    def load(cls, path: Path) -> "InMemoryHost":
        path = Path(path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Host snapshot not found: {path}")
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise HostError(f"invalid YAML in host snapshot {path}: {e}")
        if not isinstance(data, dict):
            raise HostError(f"host snapshot {path} must contain a YAML mapping")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        entities = []
        for entity in self._records.values():
            item: Dict[str, Any] = {"id": entity.id, "definition": entity.definition}
            if entity.identifier is not None:
                item["identifier"] = entity.identifier
            if entity._properties:
                item["properties"] = dict(entity._properties)
            relations = {
                name: _relation_to_dict(relation)
                for name, relation in entity._relations.items()
                if relation is not None
            }
            if relations:
                item["relations"] = relations
            entities.append(item)
        groups = [{"id": g.id, "name": g.name} for g in self._groups.values()]
        return {"entities": entities, "groups": groups}

    def dump(self, path: Path) -> None:
        path = Path(path).expanduser()
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)


def _relation_from_dict(name: str, spec: Any) -> Relation:
    if not isinstance(spec, dict):
        raise HostError(f"relation '{name}' must be a mapping with 'parent' or 'parents'")
    if "parents" in spec:
        return ChildToManyParentsRelation(name, [int(p) for p in spec["parents"] or []])
    if "parent" in spec:
        parent = spec["parent"]
        return ChildToOneParentRelation(name, int(parent) if parent is not None else None)
    raise HostError(f"relation '{name}' must define 'parent' or 'parents'")


def _relation_to_dict(relation: Relation) -> Dict[str, Any]:
    if isinstance(relation, ChildToManyParentsRelation):
        return {"parents": list(relation.parents)}
    return {"parent": relation.parent}
