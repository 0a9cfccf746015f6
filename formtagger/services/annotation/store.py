"""
Annotation Store

Owns every Section, Label and Input and keeps the hierarchy consistent.

Entities live in a single ID-keyed map; a parent -> children index backs
cascading deletes and per-parent listings. Insertion order is preserved
within each kind.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Type

from .errors import NotFoundError, ParentReferenceError, ValidationError
from .ids import IdGenerator
from .models import (
    DEFAULT_INPUT_TYPE,
    BoundingBox,
    Entity,
    EntityKind,
    Input,
    Label,
    Section,
)

logger = logging.getLogger(__name__)

# Fields update_entity() may change, per kind
UPDATABLE_FIELDS: Dict[EntityKind, tuple] = {
    EntityKind.SECTION: ("name",),
    EntityKind.LABEL: ("text", "parent_section_id"),
    EntityKind.INPUT: ("name", "type", "lang", "value", "parent_label_id"),
}


def _require_text(value: Optional[str], field_name: str, message: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(message, field_name=field_name)
    return value


def _optional_text(value: Optional[str]) -> Optional[str]:
    """Normalize empty optional strings to None"""
    if value is None or not str(value).strip():
        return None
    return value


class AnnotationStore:
    """
    In-memory store for the annotation hierarchy

    Guarantees after every public call:
    - every Label's parent_section_id names a live Section
    - every Input's parent_label_id names a live Label
    - IDs are unique across all kinds and never reused
    """

    def __init__(self, id_generator: Optional[IdGenerator] = None):
        """
        Initialize an empty store

        Args:
            id_generator: Shared ID source (default: a new IdGenerator)
        """
        self.id_generator = id_generator if id_generator is not None else IdGenerator()
        self._entities: Dict[str, Entity] = {}
        self._sequence: Dict[str, int] = {}
        self._children: Dict[str, List[str]] = {}
        self._counter = 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._entities

    @property
    def is_empty(self) -> bool:
        return not self._entities

    def find_by_id(self, entity_id: str) -> Optional[Entity]:
        """Get an entity by ID, or None"""
        return self._entities.get(entity_id)

    def get(self, entity_id: str) -> Entity:
        """Get an entity by ID, raising NotFoundError if absent"""
        entity = self._entities.get(entity_id)
        if entity is None:
            raise NotFoundError(entity_id)
        return entity

    def kind_of(self, entity_id: str) -> Optional[EntityKind]:
        entity = self._entities.get(entity_id)
        return entity.kind if entity is not None else None

    def _of_type(self, cls: Type) -> List:
        return [e for e in self._entities.values() if isinstance(e, cls)]

    def sections(self) -> List[Section]:
        return self._of_type(Section)

    def labels(self) -> List[Label]:
        return self._of_type(Label)

    def inputs(self) -> List[Input]:
        return self._of_type(Input)

    def entities(self) -> List[Entity]:
        """All entities: Sections, then Labels, then Inputs"""
        return self.sections() + self.labels() + self.inputs()

    def children_of(self, entity_id: str) -> List[Entity]:
        """Direct children of a Section (Labels) or Label (Inputs), in insertion order"""
        return [self._entities[cid] for cid in self._children.get(entity_id, [])]

    def labels_of(self, section_id: str) -> List[Label]:
        return self.children_of(section_id)

    def inputs_of(self, label_id: str) -> List[Input]:
        return self.children_of(label_id)

    def find_section_by_name(self, name: str) -> Optional[Section]:
        """First Section whose name equals `name`"""
        for section in self.sections():
            if section.name == name:
                return section
        return None

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def _insert(self, entity: Entity, parent_id: Optional[str] = None) -> None:
        self._entities[entity.id] = entity
        self._sequence[entity.id] = self._counter
        self._counter += 1
        self._children[entity.id] = []
        if parent_id is not None:
            self._children[parent_id].append(entity.id)
        logger.debug(f"Created {entity.kind.value} {entity.id}")

    def _resolve_parent(self, parent_id: Optional[str], cls: Type, field_name: str) -> str:
        parent = self._entities.get(parent_id) if parent_id else None
        if not isinstance(parent, cls):
            kind = cls.kind.value
            raise ParentReferenceError(
                f"Parent {kind} '{parent_id}' does not exist" if parent_id else f"Please select a parent {kind}",
                parent_id=parent_id,
                field_name=field_name,
            )
        return parent_id

    def create_section(self, name: str, bbox: BoundingBox) -> Section:
        """
        Create a Section

        Args:
            name: Section name (required)
            bbox: Region on the image

        Returns:
            The new Section

        Raises:
            ValidationError: if name is empty
        """
        _require_text(name, "name", "Please enter a section name")
        section = Section(id=self.id_generator.next_id(), name=name, bounding_box=bbox)
        self._insert(section)
        return section

    def create_label(self, parent_section_id: str, text: str, bbox: BoundingBox) -> Label:
        """
        Create a Label under an existing Section

        Raises:
            ValidationError: if text is empty
            ParentReferenceError: if parent_section_id is not a live Section
        """
        _require_text(text, "text", "Please enter label text")
        self._resolve_parent(parent_section_id, Section, "parent_section_id")
        label = Label(
            id=self.id_generator.next_id(),
            parent_section_id=parent_section_id,
            text=text,
            bounding_box=bbox,
        )
        self._insert(label, parent_section_id)
        return label

    def create_input(
        self,
        parent_label_id: str,
        name: str,
        bbox: BoundingBox,
        type: Optional[str] = None,
        lang: Optional[str] = None,
        value: Optional[str] = None,
    ) -> Input:
        """
        Create an Input under an existing Label

        Args:
            parent_label_id: ID of the owning Label
            name: Input name (required)
            bbox: Region on the image
            type: Input type code (default "text")
            lang: Language code; empty becomes None
            value: Prefilled value; empty becomes None

        Raises:
            ValidationError: if name is empty
            ParentReferenceError: if parent_label_id is not a live Label
        """
        _require_text(name, "name", "Please enter an input name")
        self._resolve_parent(parent_label_id, Label, "parent_label_id")
        input_ = Input(
            id=self.id_generator.next_id(),
            parent_label_id=parent_label_id,
            name=name,
            position=bbox,
            type=_optional_text(type) or DEFAULT_INPUT_TYPE,
            lang=_optional_text(lang),
            value=_optional_text(value),
        )
        self._insert(input_, parent_label_id)
        return input_

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_entity(self, entity_id: str, patch: Mapping[str, Any]) -> Entity:
        """
        Apply a partial update to an entity

        Only the fields valid for the entity's kind are considered; missing
        or None fields are left unchanged. For an Input, an explicit empty
        `lang` or `value` clears it. The patch is validated as a whole before
        anything is applied.

        Args:
            entity_id: ID of the entity to update
            patch: Field name -> new value

        Returns:
            The updated entity

        Raises:
            NotFoundError: if entity_id is not in the store
            ValidationError: if a required text field is empty
            ParentReferenceError: if a new parent does not resolve
        """
        entity = self.get(entity_id)
        allowed = UPDATABLE_FIELDS[entity.kind]
        changes: Dict[str, Any] = {}

        for field_name in allowed:
            if field_name not in patch:
                continue
            value = patch[field_name]
            if field_name in ("lang", "value"):
                changes[field_name] = _optional_text(value)
            elif value is None:
                continue
            elif field_name == "type":
                changes[field_name] = _optional_text(value) or DEFAULT_INPUT_TYPE
            elif field_name == "parent_section_id":
                changes[field_name] = self._resolve_parent(value, Section, field_name)
            elif field_name == "parent_label_id":
                changes[field_name] = self._resolve_parent(value, Label, field_name)
            else:
                changes[field_name] = _require_text(value, field_name, f"{entity.kind.title} {field_name} cannot be empty")

        for field_name in ("parent_section_id", "parent_label_id"):
            if field_name in changes and changes[field_name] != getattr(entity, field_name):
                self._reparent(entity.id, getattr(entity, field_name), changes[field_name])

        for field_name, value in changes.items():
            setattr(entity, field_name, value)

        logger.debug(f"Updated {entity.kind.value} {entity_id}: {sorted(changes)}")
        return entity

    def _reparent(self, entity_id: str, old_parent_id: str, new_parent_id: str) -> None:
        self._children[old_parent_id].remove(entity_id)
        siblings = self._children[new_parent_id]
        siblings.append(entity_id)
        siblings.sort(key=self._sequence.__getitem__)

    def update_bounding_box(self, entity_id: str, bbox: BoundingBox) -> Entity:
        """
        Replace an entity's geometry

        Raises:
            NotFoundError: if entity_id is not in the store
        """
        entity = self.get(entity_id)
        if isinstance(entity, Input):
            entity.position = bbox
        else:
            entity.bounding_box = bbox
        logger.debug(f"Moved {entity.kind.value} {entity_id} to {bbox.to_list()}")
        return entity

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_entity(self, entity_id: str) -> List[str]:
        """
        Delete an entity and everything beneath it

        Deleting an unknown ID is a no-op.

        Returns:
            IDs of every removed entity, the target first
        """
        entity = self._entities.get(entity_id)
        if entity is None:
            return []

        parent_id = getattr(entity, "parent_id", None)
        if parent_id is not None:
            self._children[parent_id].remove(entity_id)

        removed = []
        pending = [entity_id]
        while pending:
            current = pending.pop(0)
            pending.extend(self._children.pop(current, []))
            del self._entities[current]
            del self._sequence[current]
            removed.append(current)

        logger.debug(f"Deleted {entity.kind.value} {entity_id} ({len(removed)} entities removed)")
        return removed

    def clear(self) -> None:
        """Remove every entity (issued IDs stay retired)"""
        self._entities = {}
        self._sequence = {}
        self._children = {}
        logger.info("Cleared all annotations")

    def replace_with(self, other: "AnnotationStore") -> None:
        """Adopt the full contents of another store in one step"""
        self._entities = other._entities
        self._sequence = other._sequence
        self._children = other._children
        self._counter = other._counter
        if other.id_generator is not self.id_generator:
            for entity_id in self._entities:
                self.id_generator.reserve(entity_id)
