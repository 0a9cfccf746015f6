"""
Hierarchy Projector

Builds the view models the UI renders from the store: the annotation list,
the parent dropdowns, and the highlight state.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .models import INPUT_TYPES, LANGUAGES, BoundingBox, Entity, EntityKind, Label, Section
from .session import Editing, SessionState, Selected
from .store import AnnotationStore

UNKNOWN_PARENT = "Unknown"


def type_display(code: Optional[str]) -> str:
    """Display name for an input type code (unknown codes pass through)"""
    return INPUT_TYPES.get(code, code or "")


def lang_display(code: Optional[str]) -> str:
    """Display name for a language code (unknown codes pass through)"""
    return LANGUAGES.get(code, code or "")


def format_coords(bbox: BoundingBox) -> str:
    """Rounded corner coordinates, e.g. "[10, 10] → [200, 50]" """
    return f"[{round(bbox.x0)}, {round(bbox.y0)}] → [{round(bbox.x1)}, {round(bbox.y1)}]"


@dataclass
class ListRow:
    """One row of the annotation list"""
    id: str
    kind: EntityKind
    name: str
    coords: str
    selected: bool = False
    editing: bool = False

    @property
    def kind_title(self) -> str:
        return self.kind.title


@dataclass
class HierarchyView:
    """Everything the UI needs to redraw after a change"""
    rows: List[ListRow] = field(default_factory=list)
    section_options: List[Dict[str, str]] = field(default_factory=list)
    label_options: List[Dict[str, str]] = field(default_factory=list)
    editing_id: Optional[str] = None
    selected_id: Optional[str] = None


def row_name(store: AnnotationStore, entity: Entity) -> str:
    """Human-readable list label for an entity"""
    if isinstance(entity, Section):
        return entity.name

    if isinstance(entity, Label):
        section = store.find_by_id(entity.parent_section_id)
        parent = section.name if isinstance(section, Section) else UNKNOWN_PARENT
        return f"{entity.text} ({parent})"

    label = store.find_by_id(entity.parent_label_id)
    parent = label.text if isinstance(label, Label) else UNKNOWN_PARENT
    details = type_display(entity.type)
    if entity.lang:
        details += f", {lang_display(entity.lang)}"
    return f"{entity.name} ({details}) - ({parent})"


def list_rows(store: AnnotationStore, session: Optional[SessionState] = None) -> List[ListRow]:
    """
    Rows for every entity: Sections, then Labels, then Inputs

    Args:
        store: Annotation store
        session: Current session, used to flag the selected/edited row

    Returns:
        List of ListRow in display order
    """
    editing_id = session.entity_id if isinstance(session, Editing) else None
    selected_id = session.entity_id if isinstance(session, Selected) else None

    return [
        ListRow(
            id=entity.id,
            kind=entity.kind,
            name=row_name(store, entity),
            coords=format_coords(entity.geometry),
            selected=entity.id == selected_id,
            editing=entity.id == editing_id,
        )
        for entity in store.entities()
    ]


def section_options(store: AnnotationStore) -> List[Dict[str, str]]:
    """Parent choices for a new Label"""
    return [{"id": s.id, "name": s.name} for s in store.sections()]


def label_options(store: AnnotationStore) -> List[Dict[str, str]]:
    """Parent choices for a new Input"""
    return [{"id": l.id, "text": l.text} for l in store.labels()]


def build_view(store: AnnotationStore, session: Optional[SessionState] = None) -> HierarchyView:
    return HierarchyView(
        rows=list_rows(store, session),
        section_options=section_options(store),
        label_options=label_options(store),
        editing_id=session.entity_id if isinstance(session, Editing) else None,
        selected_id=session.entity_id if isinstance(session, Selected) else None,
    )
