"""
Edit-Session Controller

Routes UI events to the annotation store. The session is a single value:
Idle, Editing one entity, or Selected one entity, so editing and selection
can never coexist.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .models import BoundingBox, Entity, EntityKind, Label, Section
from .store import AnnotationStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    """Nothing is being edited or selected"""


@dataclass(frozen=True)
class Editing:
    """
    One entity is under edit

    Attributes:
        entity_id: ID of the entity being edited
        kind: Its kind
        pending_box: Box drawn during the edit, applied on commit
    """
    entity_id: str
    kind: EntityKind
    pending_box: Optional[BoundingBox] = None


@dataclass(frozen=True)
class Selected:
    """One entity is highlighted"""
    entity_id: str


SessionState = Union[Idle, Editing, Selected]


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


@dataclass
class FormValues:
    """Values of the per-kind entry forms, as collected by the UI"""
    section_name: str = ""
    parent_section_id: Optional[str] = None
    label_text: str = ""
    parent_label_id: Optional[str] = None
    input_name: str = ""
    input_type: str = "text"
    input_lang: Optional[str] = None
    input_value: str = ""

    @classmethod
    def from_entity(cls, entity: Entity) -> "FormValues":
        """Prefill the form for editing an existing entity"""
        if isinstance(entity, Section):
            return cls(section_name=entity.name)
        if isinstance(entity, Label):
            return cls(label_text=entity.text, parent_section_id=entity.parent_section_id)
        return cls(
            input_name=entity.name,
            parent_label_id=entity.parent_label_id,
            input_type=entity.type,
            input_lang=entity.lang,
            input_value=entity.value or "",
        )

    def has_required(self, kind: EntityKind) -> bool:
        """Whether the required text field for `kind` is filled in"""
        required = {
            EntityKind.SECTION: self.section_name,
            EntityKind.LABEL: self.label_text,
            EntityKind.INPUT: self.input_name,
        }[kind]
        return bool(_clean(required))

    def patch_for(self, kind: EntityKind) -> Dict[str, Any]:
        """Update patch containing only the fields of `kind`"""
        if kind is EntityKind.SECTION:
            return {"name": _clean(self.section_name)}
        if kind is EntityKind.LABEL:
            return {
                "text": _clean(self.label_text),
                "parent_section_id": self.parent_section_id or None,
            }
        return {
            "name": _clean(self.input_name),
            "type": self.input_type,
            "lang": self.input_lang,
            "value": _clean(self.input_value),
            "parent_label_id": self.parent_label_id or None,
        }


class EditSessionController:
    """
    Mediates between UI events and the AnnotationStore

    A drawn box creates a new entity of the current mode while idle, and is
    staged as replacement geometry while an entity is being edited.
    """

    def __init__(self, store: AnnotationStore, mode: Union[EntityKind, str] = EntityKind.SECTION):
        self.store = store
        self.mode = EntityKind.parse(mode)
        self.status = ""
        self._state: SessionState = Idle()

    def _reconcile(self) -> SessionState:
        """Drop the session if its entity no longer exists"""
        entity_id = getattr(self._state, "entity_id", None)
        if entity_id is not None and entity_id not in self.store:
            self._state = Idle()
        return self._state

    @property
    def state(self) -> SessionState:
        return self._reconcile()

    @property
    def is_editing(self) -> bool:
        return isinstance(self.state, Editing)

    @property
    def editing_id(self) -> Optional[str]:
        state = self.state
        return state.entity_id if isinstance(state, Editing) else None

    @property
    def selected_id(self) -> Optional[str]:
        state = self.state
        return state.entity_id if isinstance(state, Selected) else None

    def mode_changed(self, kind: Union[EntityKind, str]) -> EntityKind:
        self.mode = EntityKind.parse(kind)
        return self.mode

    def bbox_drawn(self, bbox: BoundingBox, form: FormValues) -> Entity:
        """
        Handle a finished rectangle

        Args:
            bbox: Drawn box in image coordinates
            form: Current form values, used when creating

        Returns:
            The created entity, or the entity under edit

        Raises:
            ValidationError: if a required field is empty when creating
            ParentReferenceError: if the chosen parent does not exist
        """
        state = self.state
        if isinstance(state, Editing):
            self._state = Editing(state.entity_id, state.kind, pending_box=bbox)
            self.status = f"New box staged for {state.kind.value}; press Update to apply it"
            return self.store.get(state.entity_id)

        entity = self._create(bbox, form)
        self.status = f"Added {entity.kind.value} '{_describe(entity)}'"
        return entity

    def _create(self, bbox: BoundingBox, form: FormValues) -> Entity:
        if self.mode is EntityKind.SECTION:
            return self.store.create_section(_clean(form.section_name), bbox)
        if self.mode is EntityKind.LABEL:
            return self.store.create_label(form.parent_section_id, _clean(form.label_text), bbox)
        return self.store.create_input(
            form.parent_label_id,
            _clean(form.input_name),
            bbox,
            type=form.input_type,
            lang=form.input_lang,
            value=_clean(form.input_value),
        )

    def edit_requested(self, entity_id: str) -> Editing:
        """
        Start editing an entity

        Raises:
            NotFoundError: if entity_id is not in the store
        """
        entity = self.store.get(entity_id)
        self._state = Editing(entity_id, entity.kind)
        self.status = f"Editing {entity.kind.value} '{_describe(entity)}'"
        return self._state

    def update_committed(self, form: FormValues) -> Optional[Entity]:
        """
        Commit the current edit and return to Idle

        The field update runs first and the staged box, if any, is applied
        only once it succeeded, so a rejected commit changes nothing. The
        field update is skipped when the kind's required field is blank.

        Returns:
            The edited entity, or None when nothing was being edited
        """
        state = self.state
        if not isinstance(state, Editing):
            return None

        try:
            if form.has_required(state.kind):
                self.store.update_entity(state.entity_id, form.patch_for(state.kind))
                self.status = f"Updated {state.kind.value}"
            else:
                logger.debug(f"Skipped field update for {state.entity_id}: required field blank")
                self.status = f"Updated {state.kind.value} geometry" if state.pending_box else ""
            if state.pending_box is not None:
                self.store.update_bounding_box(state.entity_id, state.pending_box)
        finally:
            self._state = Idle()
        return self.store.get(state.entity_id)

    def cancel_edit_requested(self) -> None:
        if isinstance(self.state, Editing):
            self.status = "Edit cancelled"
        self._state = Idle()

    def select_requested(self, entity_id: str) -> Optional[str]:
        """
        Toggle selection of an entity (ignored while editing)

        Returns:
            The selected ID after the call

        Raises:
            NotFoundError: if entity_id is not in the store
        """
        state = self.state
        if isinstance(state, Editing):
            return None
        self.store.get(entity_id)
        if isinstance(state, Selected) and state.entity_id == entity_id:
            self._state = Idle()
            return None
        self._state = Selected(entity_id)
        return entity_id

    def delete_requested(self, entity_id: str) -> List[str]:
        """Delete an entity and its descendants; unknown IDs are ignored"""
        removed = self.store.delete_entity(entity_id)
        if removed:
            self.status = f"Deleted {len(removed)} annotation(s)"
        self._reconcile()
        return removed

    def clear_all_requested(self) -> None:
        self.store.clear()
        self._state = Idle()
        self.status = "All annotations cleared"


def _describe(entity: Entity) -> str:
    return entity.text if isinstance(entity, Label) else entity.name
