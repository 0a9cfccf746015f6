"""
Annotation Page - Tag form regions into Sections, Labels and Inputs

Features:
- Reference image upload with annotation overlay
- Section / Label / Input drawing modes
- Box entry in image coordinates (boxes under the minimum size are ignored)
- Annotation list with select, edit and delete
- Edit mode: replace geometry and fields, then Update or Cancel
- Form layout JSON export (download) and import
- Clear all annotations
"""
import logging
from typing import Any, Callable, Optional

import streamlit as st
from PIL import Image

from formtagger.state import AnnotationState
from formtagger.services.annotation import (
    INPUT_TYPES,
    LANGUAGES,
    AnnotationError,
    BoundingBox,
    EntityKind,
    FormLayoutExporter,
    FormValues,
    HierarchyView,
    build_view,
    draw_annotations,
    import_document,
    lang_display,
    type_display,
)

logger = logging.getLogger(__name__)

MODE_OPTIONS = [kind.value for kind in EntityKind]
LANG_OPTIONS = [""] + list(LANGUAGES)
# Widget keys of the new-entity text fields, cleared after a successful add
ENTRY_FORM_KEYS = ("section_name_new", "label_text_new", "input_name_new", "input_value_new")


def get_annotation_state() -> AnnotationState:
    """Get annotation state from session state"""
    return st.session_state.annotation_state


def run_action(action: Callable, *args, **kwargs) -> Optional[Any]:
    """Run a controller action, reporting annotation errors instead of raising"""
    try:
        return action(*args, **kwargs)
    except AnnotationError as e:
        logger.warning(f"{action.__name__} failed: {e}")
        st.error(str(e))
        return None


def render_settings_sidebar(state: AnnotationState):
    """Render image upload, form metadata and drawing mode in sidebar"""
    st.sidebar.header("Form")

    uploaded = st.sidebar.file_uploader(
        "Reference image",
        type=["png", "jpg", "jpeg"],
        key="reference_image",
    )
    if uploaded is not None and uploaded.name != state.image_name:
        state.image = Image.open(uploaded)
        state.image_name = uploaded.name

    state.form_type = st.sidebar.text_input("Form Type", value=state.form_type, key="form_type")
    state.page_number = int(
        st.sidebar.number_input(
            "Page Number",
            min_value=1,
            step=1,
            value=state.page_number,
            key="page_number",
        )
    )

    st.sidebar.divider()
    st.sidebar.header("Mode")
    controller = state.controller
    mode = st.sidebar.radio(
        "Drawing Mode",
        MODE_OPTIONS,
        index=MODE_OPTIONS.index(controller.mode.value),
        format_func=lambda value: EntityKind(value).title,
        disabled=controller.is_editing,
        key="drawing_mode",
    )
    if mode and mode != controller.mode.value:
        run_action(controller.mode_changed, mode)


def render_entity_form(state: AnnotationState, view: HierarchyView) -> FormValues:
    """
    Render the form for the active kind and collect its values

    While editing, the form shows the edited entity's kind prefilled with its
    current values; otherwise it shows the current drawing mode.
    """
    controller = state.controller
    editing_id = controller.editing_id
    if editing_id is not None:
        entity = state.store.get(editing_id)
        kind = entity.kind
        defaults = FormValues.from_entity(entity)
        key_suffix = f"edit_{editing_id}"
    else:
        kind = controller.mode
        defaults = FormValues()
        key_suffix = "new"

    st.subheader(f"{kind.title} Details")
    form = FormValues()

    if kind is EntityKind.SECTION:
        form.section_name = st.text_input(
            "Section Name", value=defaults.section_name, key=f"section_name_{key_suffix}"
        )

    elif kind is EntityKind.LABEL:
        section_names = {o["id"]: o["name"] for o in view.section_options}
        options = list(section_names)
        form.parent_section_id = st.selectbox(
            "Parent Section",
            options,
            index=options.index(defaults.parent_section_id) if defaults.parent_section_id in options else None,
            format_func=lambda sid: section_names.get(sid, sid),
            placeholder="Select parent section",
            key=f"parent_section_{key_suffix}",
        )
        form.label_text = st.text_input(
            "Label Text", value=defaults.label_text, key=f"label_text_{key_suffix}"
        )

    else:
        label_texts = {o["id"]: o["text"] for o in view.label_options}
        options = list(label_texts)
        type_options = list(INPUT_TYPES)
        if defaults.input_type not in type_options:
            type_options.append(defaults.input_type)
        lang_options = list(LANG_OPTIONS)
        if defaults.input_lang and defaults.input_lang not in lang_options:
            lang_options.append(defaults.input_lang)

        form.parent_label_id = st.selectbox(
            "Parent Label",
            options,
            index=options.index(defaults.parent_label_id) if defaults.parent_label_id in options else None,
            format_func=lambda lid: label_texts.get(lid, lid),
            placeholder="Select parent label",
            key=f"parent_label_{key_suffix}",
        )
        form.input_name = st.text_input(
            "Input Name", value=defaults.input_name, key=f"input_name_{key_suffix}"
        )
        form.input_type = st.selectbox(
            "Input Type",
            type_options,
            index=type_options.index(defaults.input_type),
            format_func=type_display,
            key=f"input_type_{key_suffix}",
        )
        form.input_lang = st.selectbox(
            "Language",
            lang_options,
            index=lang_options.index(defaults.input_lang or ""),
            format_func=lambda code: lang_display(code) or "None",
            key=f"input_lang_{key_suffix}",
        ) or None
        form.input_value = st.text_input(
            "Value", value=defaults.input_value, key=f"input_value_{key_suffix}"
        )

    return form


def clear_entry_form():
    """Reset the text fields of the new-entity form"""
    for key in ENTRY_FORM_KEYS:
        st.session_state.pop(key, None)


def render_box_entry(state: AnnotationState, form: FormValues):
    """Render box coordinate inputs and hand finished boxes to the controller"""
    controller = state.controller
    st.markdown("### Box")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        x0 = st.number_input("Left", min_value=0, step=1, key="box_x0")
    with col2:
        y0 = st.number_input("Top", min_value=0, step=1, key="box_y0")
    with col3:
        x1 = st.number_input("Right", min_value=0, step=1, key="box_x1")
    with col4:
        y1 = st.number_input("Bottom", min_value=0, step=1, key="box_y1")

    label = "Replace Box" if controller.is_editing else f"Add {controller.mode.title}"
    if not st.button(label, type="primary", key="draw_box"):
        return

    bbox = BoundingBox.from_corners((x0, y0), (x1, y1))
    if not bbox.meets_minimum(state.min_box_size):
        st.warning(f"Boxes must be at least {state.min_box_size} pixels on each side")
        return

    creating = not controller.is_editing
    if run_action(controller.bbox_drawn, bbox, form) is not None:
        if creating:
            clear_entry_form()
        st.rerun()


def render_edit_controls(state: AnnotationState, form: FormValues):
    """Render Update / Cancel while an entity is being edited"""
    controller = state.controller
    if not controller.is_editing:
        return

    st.info(controller.status or "Editing")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Update", type="primary", key="commit_edit"):
            run_action(controller.update_committed, form)
            st.rerun()
    with col2:
        if st.button("Cancel", key="cancel_edit"):
            controller.cancel_edit_requested()
            st.rerun()


def render_annotation_list(state: AnnotationState, view: HierarchyView):
    """Render the annotation list with select, edit and delete buttons"""
    controller = state.controller
    st.sidebar.divider()
    st.sidebar.header("Annotations")

    if not view.rows:
        st.sidebar.info("No annotations yet. Enter a box to add one.")
        return

    for row in view.rows:
        marker = "> " if row.selected or row.editing else ""
        st.sidebar.markdown(f"**{row.kind_title}** {marker}{row.name}")
        st.sidebar.caption(row.coords)

        col1, col2, col3 = st.sidebar.columns(3)
        with col1:
            if st.button("Select", key=f"select_{row.id}", disabled=controller.is_editing):
                run_action(controller.select_requested, row.id)
                st.rerun()
        with col2:
            if st.button("Edit", key=f"edit_{row.id}"):
                run_action(controller.edit_requested, row.id)
                st.rerun()
        with col3:
            if st.button("Delete", key=f"delete_{row.id}"):
                controller.delete_requested(row.id)
                st.rerun()


def render_export_import(state: AnnotationState):
    """Render export download, import upload and clear-all controls"""
    st.sidebar.divider()
    st.sidebar.header("Export / Import")

    exporter = FormLayoutExporter(state.exports_dir)
    try:
        data = exporter.export_bytes(state.store, state.form_type, state.page_number)
    except AnnotationError as e:
        st.sidebar.error(str(e))
    else:
        st.sidebar.download_button(
            label="Export JSON",
            data=data,
            file_name=exporter.default_filename(),
            mime="application/json",
            use_container_width=True,
        )

    uploaded = st.sidebar.file_uploader("Import JSON", type=["json"], key="import_json")
    if uploaded is not None and uploaded.file_id != state.last_import_id:
        state.last_import_id = uploaded.file_id
        document = run_action(import_document, state.store, uploaded.getvalue())
        if document is not None:
            state.form_type = document.form_type
            state.page_number = document.page_number
            state.controller.status = f"Imported {len(document.fields)} field(s)"
            st.rerun()

    confirm = st.sidebar.checkbox("Confirm clear", key="confirm_clear")
    if st.sidebar.button("Clear All", disabled=not confirm, key="clear_all"):
        state.controller.clear_all_requested()
        st.rerun()


def render_canvas(state: AnnotationState):
    """Render the reference image with the annotation overlay"""
    if state.image is None:
        st.info("Upload a reference image to see the annotations drawn over it.")
        return

    controller = state.controller
    highlighted = controller.editing_id or controller.selected_id
    st.image(draw_annotations(state.image, state.store, highlighted_id=highlighted), use_container_width=True)


def render_annotation_page():
    """Main annotation page render function"""
    state = get_annotation_state()
    controller = state.controller

    render_settings_sidebar(state)
    view = build_view(state.store, controller.state)

    if controller.status and not controller.is_editing:
        st.caption(controller.status)

    col_canvas, col_form = st.columns([2, 1])
    with col_canvas:
        render_canvas(state)
    with col_form:
        form = render_entity_form(state, view)
        render_box_entry(state, form)
        render_edit_controls(state, form)

    render_annotation_list(state, view)
    render_export_import(state)
