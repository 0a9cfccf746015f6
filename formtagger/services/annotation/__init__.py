"""
Annotation Service

Provides the Section → Label → Input data model, the store that keeps it
consistent, the edit-session controller, list/dropdown projections, and the
form layout JSON export/import.

Usage:
    from formtagger.services.annotation import (
        AnnotationStore, BoundingBox, EditSessionController, FormValues,
    )

    store = AnnotationStore()
    controller = EditSessionController(store)

    # Draw a section
    controller.bbox_drawn(BoundingBox(10, 10, 200, 50), FormValues(section_name="Personal Info"))

    # Switch mode and draw a label under it
    section_id = store.sections()[0].id
    controller.mode_changed("label")
    controller.bbox_drawn(
        BoundingBox(15, 60, 190, 90),
        FormValues(parent_section_id=section_id, label_text="Full Name"),
    )

    # List rows and dropdowns for the UI
    from formtagger.services.annotation import build_view
    view = build_view(store, controller.state)

    # Export / import
    from formtagger.services.annotation import export_document, import_document
    document = export_document(store, form_type="W2", page_number=1)
    import_document(store, document.to_json())

    # Save to disk
    from formtagger.services.annotation import FormLayoutExporter
    path = FormLayoutExporter().export_to_file(store, "W2", 1)

    # Draw boxes over the reference image
    from formtagger.services.annotation import draw_annotations
    preview = draw_annotations(pil_image, store, highlighted_id=controller.selected_id)
"""
from .errors import (
    AnnotationError,
    ValidationError,
    ParentReferenceError,
    NotFoundError,
    ParseError,
)
from .ids import IdGenerator
from .models import (
    BoundingBox,
    EntityKind,
    Section,
    Label,
    Input,
    INPUT_TYPES,
    LANGUAGES,
)
from .store import AnnotationStore
from .session import (
    EditSessionController,
    FormValues,
    Idle,
    Editing,
    Selected,
)
from .projector import (
    ListRow,
    HierarchyView,
    build_view,
    list_rows,
    section_options,
    label_options,
    type_display,
    lang_display,
)
from .serializer import (
    ExportDocument,
    FormField,
    FormInput,
    export_document,
    import_document,
)
from .exporter import FormLayoutExporter

# Lazy imports for drawing helpers (avoid loading PIL in headless export/import)
_canvas_module = None


def __getattr__(name):
    """Lazy load the PIL canvas helpers."""
    global _canvas_module
    if name in ("draw_annotations", "draw_box"):
        if _canvas_module is None:
            from . import canvas as _canvas_module
        return getattr(_canvas_module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "AnnotationError",
    "ValidationError",
    "ParentReferenceError",
    "NotFoundError",
    "ParseError",
    "IdGenerator",
    "BoundingBox",
    "EntityKind",
    "Section",
    "Label",
    "Input",
    "INPUT_TYPES",
    "LANGUAGES",
    "AnnotationStore",
    "EditSessionController",
    "FormValues",
    "Idle",
    "Editing",
    "Selected",
    "ListRow",
    "HierarchyView",
    "build_view",
    "list_rows",
    "section_options",
    "label_options",
    "type_display",
    "lang_display",
    "ExportDocument",
    "FormField",
    "FormInput",
    "export_document",
    "import_document",
    "FormLayoutExporter",
    "draw_annotations",
    "draw_box",
]
