"""
Tests for Annotation page UI rendering functions.

Tests the Streamlit UI components in formtagger/pages/annotate.py
"""
import io
import json
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from formtagger.services.annotation import BoundingBox, EntityKind, FormValues, build_view

PAGE = "formtagger.pages.annotate.st"


class FakeUpload:
    """Minimal stand-in for a Streamlit UploadedFile"""

    def __init__(self, name, data: bytes, file_id="upload-1"):
        self.name = name
        self.file_id = file_id
        self._data = data

    def getvalue(self):
        return self._data


def box_inputs(x0, y0, x1, y1):
    """number_input side effect returning box coordinates by widget key"""
    values = {"box_x0": x0, "box_y0": y0, "box_x1": x1, "box_y1": y1}

    def _number_input(label, *args, key=None, **kwargs):
        return values.get(key, 0)
    return _number_input


def button_keys(mock_button):
    return [c.kwargs.get("key") for c in mock_button.call_args_list]


class TestRunAction:
    """Tests for run_action()"""

    def test_returns_result(self, mock_streamlit):
        from formtagger.pages.annotate import run_action

        with patch(PAGE, mock_streamlit):
            assert run_action(lambda x: x * 2, 3) == 6
            mock_streamlit.error.assert_not_called()

    def test_reports_annotation_error(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import run_action

        with patch(PAGE, mock_streamlit):
            result = run_action(annotation_state_with_data.controller.edit_requested, "missing")

            assert result is None
            mock_streamlit.error.assert_called_once()


class TestRenderSettingsSidebar:
    """Tests for render_settings_sidebar()"""

    def test_renders_headers(self, mock_streamlit, annotation_state_empty):
        from formtagger.pages.annotate import render_settings_sidebar

        with patch(PAGE, mock_streamlit):
            render_settings_sidebar(annotation_state_empty)

            mock_streamlit.sidebar.header.assert_any_call("Form")
            mock_streamlit.sidebar.header.assert_any_call("Mode")

    def test_updates_form_metadata(self, mock_streamlit, annotation_state_empty):
        from formtagger.pages.annotate import render_settings_sidebar

        mock_streamlit.sidebar.text_input.return_value = "1099"
        mock_streamlit.sidebar.number_input.return_value = 3

        with patch(PAGE, mock_streamlit):
            render_settings_sidebar(annotation_state_empty)

        assert annotation_state_empty.form_type == "1099"
        assert annotation_state_empty.page_number == 3

    def test_mode_change(self, mock_streamlit, annotation_state_empty):
        from formtagger.pages.annotate import render_settings_sidebar

        mock_streamlit.sidebar.radio.return_value = "label"

        with patch(PAGE, mock_streamlit):
            render_settings_sidebar(annotation_state_empty)

        assert annotation_state_empty.controller.mode is EntityKind.LABEL

    def test_mode_radio_disabled_while_editing(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import render_settings_sidebar

        annotation_state_with_data.controller.edit_requested("id1")

        with patch(PAGE, mock_streamlit):
            render_settings_sidebar(annotation_state_with_data)

            assert mock_streamlit.sidebar.radio.call_args.kwargs["disabled"] is True

    def test_image_upload(self, mock_streamlit, annotation_state_empty):
        from formtagger.pages.annotate import render_settings_sidebar

        upload = io.BytesIO()
        Image.new("RGB", (40, 60), color="white").save(upload, format="PNG")
        upload.seek(0)
        upload.name = "form.png"
        mock_streamlit.sidebar.file_uploader.return_value = upload

        with patch(PAGE, mock_streamlit):
            render_settings_sidebar(annotation_state_empty)

        assert annotation_state_empty.image_name == "form.png"
        assert annotation_state_empty.image.size == (40, 60)


class TestRenderEntityForm:
    """Tests for render_entity_form()"""

    def test_section_form(self, mock_streamlit, annotation_state_empty):
        from formtagger.pages.annotate import render_entity_form

        mock_streamlit.text_input.return_value = "Personal Info"

        with patch(PAGE, mock_streamlit):
            form = render_entity_form(annotation_state_empty, build_view(annotation_state_empty.store))

            mock_streamlit.subheader.assert_called_once_with("Section Details")

        assert form.section_name == "Personal Info"

    def test_label_form_lists_sections(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import render_entity_form

        state = annotation_state_with_data
        state.controller.mode_changed("label")
        mock_streamlit.selectbox.return_value = "id6"

        with patch(PAGE, mock_streamlit):
            form = render_entity_form(state, build_view(state.store))

            args = mock_streamlit.selectbox.call_args
            assert args.args[1] == ["id1", "id6", "id10"]
            assert args.kwargs["index"] is None

        assert form.parent_section_id == "id6"

    def test_input_form_widgets(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import render_entity_form

        state = annotation_state_with_data
        state.controller.mode_changed("input")

        with patch(PAGE, mock_streamlit):
            render_entity_form(state, build_view(state.store))

            keys = [c.kwargs["key"] for c in mock_streamlit.selectbox.call_args_list]
            assert keys == ["parent_label_new", "input_type_new", "input_lang_new"]

    def test_edit_prefills(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import render_entity_form

        state = annotation_state_with_data
        state.controller.edit_requested("id5")

        with patch(PAGE, mock_streamlit):
            render_entity_form(state, build_view(state.store, state.controller.state))

            mock_streamlit.subheader.assert_called_once_with("Input Details")
            name_call = mock_streamlit.text_input.call_args_list[0]
            assert name_call.kwargs["value"] == "dob"
            assert name_call.kwargs["key"] == "input_name_edit_id5"
            parent_call = mock_streamlit.selectbox.call_args_list[0]
            assert parent_call.kwargs["index"] == 1


class TestRenderBoxEntry:
    """Tests for render_box_entry()"""

    def test_no_click_does_nothing(self, mock_streamlit, annotation_state_empty):
        from formtagger.pages.annotate import render_box_entry

        with patch(PAGE, mock_streamlit):
            render_box_entry(annotation_state_empty, FormValues(section_name="A"))

            mock_streamlit.rerun.assert_not_called()

        assert annotation_state_empty.store.is_empty

    def test_creates_section(self, mock_streamlit, pressed, annotation_state_empty):
        from formtagger.pages.annotate import render_box_entry

        mock_streamlit.number_input = MagicMock(side_effect=box_inputs(200, 50, 10, 10))
        mock_streamlit.button = pressed("draw_box")

        with patch(PAGE, mock_streamlit):
            render_box_entry(annotation_state_empty, FormValues(section_name="Personal Info"))

            mock_streamlit.rerun.assert_called_once()

        section = annotation_state_empty.store.sections()[0]
        assert section.bounding_box == BoundingBox(10, 10, 200, 50)

    def test_add_clears_entry_form(self, mock_streamlit, pressed, annotation_state_empty):
        """Test the new-entity text fields are reset after a successful add"""
        from formtagger.pages.annotate import ENTRY_FORM_KEYS, render_box_entry

        mock_streamlit.number_input = MagicMock(side_effect=box_inputs(0, 0, 100, 100))
        mock_streamlit.button = pressed("draw_box")

        with patch(PAGE, mock_streamlit):
            render_box_entry(annotation_state_empty, FormValues(section_name="Personal Info"))

            popped = [c.args[0] for c in mock_streamlit.session_state.pop.call_args_list]
            assert popped == list(ENTRY_FORM_KEYS)

    def test_failed_add_keeps_entry_form(self, mock_streamlit, pressed, annotation_state_with_data):
        from formtagger.pages.annotate import render_box_entry

        state = annotation_state_with_data
        state.controller.mode_changed("label")
        mock_streamlit.number_input = MagicMock(side_effect=box_inputs(0, 0, 100, 100))
        mock_streamlit.button = pressed("draw_box")

        with patch(PAGE, mock_streamlit):
            render_box_entry(state, FormValues(label_text="Phone"))

            mock_streamlit.session_state.pop.assert_not_called()
            mock_streamlit.error.assert_called_once()

    def test_small_box_ignored(self, mock_streamlit, pressed, annotation_state_empty):
        from formtagger.pages.annotate import render_box_entry

        mock_streamlit.number_input = MagicMock(side_effect=box_inputs(10, 10, 15, 200))
        mock_streamlit.button = pressed("draw_box")

        with patch(PAGE, mock_streamlit):
            render_box_entry(annotation_state_empty, FormValues(section_name="Personal Info"))

            mock_streamlit.warning.assert_called_once()

        assert annotation_state_empty.store.is_empty

    def test_missing_name_shows_error(self, mock_streamlit, pressed, annotation_state_empty):
        from formtagger.pages.annotate import render_box_entry

        mock_streamlit.number_input = MagicMock(side_effect=box_inputs(0, 0, 100, 100))
        mock_streamlit.button = pressed("draw_box")

        with patch(PAGE, mock_streamlit):
            render_box_entry(annotation_state_empty, FormValues())

            mock_streamlit.error.assert_called_once_with("Please enter a section name")
            mock_streamlit.rerun.assert_not_called()

    def test_stages_box_while_editing(self, mock_streamlit, pressed, annotation_state_with_data):
        from formtagger.pages.annotate import render_box_entry

        state = annotation_state_with_data
        original = state.store.get("id1").bounding_box
        state.controller.edit_requested("id1")
        mock_streamlit.number_input = MagicMock(side_effect=box_inputs(0, 0, 100, 100))
        mock_streamlit.button = pressed("draw_box")

        with patch(PAGE, mock_streamlit):
            render_box_entry(state, FormValues())

        assert state.store.get("id1").bounding_box == original
        assert state.controller.state.pending_box == BoundingBox(0, 0, 100, 100)
        assert len(state.store) == 10
        mock_streamlit.session_state.pop.assert_not_called()


class TestRenderEditControls:
    """Tests for render_edit_controls()"""

    def test_hidden_when_idle(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import render_edit_controls

        with patch(PAGE, mock_streamlit):
            render_edit_controls(annotation_state_with_data, FormValues())

            mock_streamlit.button.assert_not_called()

    def test_commit(self, mock_streamlit, pressed, annotation_state_with_data):
        from formtagger.pages.annotate import render_edit_controls

        state = annotation_state_with_data
        state.controller.edit_requested("id1")
        mock_streamlit.button = pressed("commit_edit")

        with patch(PAGE, mock_streamlit):
            render_edit_controls(state, FormValues(section_name="Applicant"))

            mock_streamlit.rerun.assert_called_once()

        assert state.store.get("id1").name == "Applicant"
        assert not state.controller.is_editing

    def test_cancel(self, mock_streamlit, pressed, annotation_state_with_data):
        from formtagger.pages.annotate import render_edit_controls

        state = annotation_state_with_data
        state.controller.edit_requested("id1")
        mock_streamlit.button = pressed("cancel_edit")

        with patch(PAGE, mock_streamlit):
            render_edit_controls(state, FormValues(section_name="Applicant"))

        assert state.store.get("id1").name == "Personal Info"
        assert not state.controller.is_editing


class TestRenderAnnotationList:
    """Tests for render_annotation_list()"""

    def test_empty(self, mock_streamlit, annotation_state_empty):
        from formtagger.pages.annotate import render_annotation_list

        state = annotation_state_empty
        with patch(PAGE, mock_streamlit):
            render_annotation_list(state, build_view(state.store))

            mock_streamlit.sidebar.header.assert_called_with("Annotations")
            mock_streamlit.sidebar.info.assert_called_once()

    def test_rows_rendered(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import render_annotation_list

        state = annotation_state_with_data
        with patch(PAGE, mock_streamlit):
            render_annotation_list(state, build_view(state.store))

            assert mock_streamlit.sidebar.markdown.call_count == 10
            mock_streamlit.sidebar.caption.assert_any_call("[10, 10] → [200, 50]")
            keys = button_keys(mock_streamlit.button)
            assert "select_id1" in keys
            assert "edit_id3" in keys
            assert "delete_id10" in keys

    def test_delete_cascades(self, mock_streamlit, pressed, annotation_state_with_data):
        from formtagger.pages.annotate import render_annotation_list

        state = annotation_state_with_data
        mock_streamlit.button = pressed("delete_id6")

        with patch(PAGE, mock_streamlit):
            render_annotation_list(state, build_view(state.store))

        assert {e.id for e in state.store.entities()} == {"id1", "id2", "id3", "id4", "id5", "id10"}

    def test_edit_button(self, mock_streamlit, pressed, annotation_state_with_data):
        from formtagger.pages.annotate import render_annotation_list

        state = annotation_state_with_data
        mock_streamlit.button = pressed("edit_id4")

        with patch(PAGE, mock_streamlit):
            render_annotation_list(state, build_view(state.store))

        assert state.controller.editing_id == "id4"

    def test_select_button(self, mock_streamlit, pressed, annotation_state_with_data):
        from formtagger.pages.annotate import render_annotation_list

        state = annotation_state_with_data
        mock_streamlit.button = pressed("select_id7")

        with patch(PAGE, mock_streamlit):
            render_annotation_list(state, build_view(state.store))

        assert state.controller.selected_id == "id7"

    def test_select_disabled_while_editing(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import render_annotation_list

        state = annotation_state_with_data
        state.controller.edit_requested("id2")

        with patch(PAGE, mock_streamlit):
            render_annotation_list(state, build_view(state.store, state.controller.state))

            select_calls = [
                c for c in mock_streamlit.button.call_args_list
                if c.kwargs.get("key", "").startswith("select_")
            ]
            assert all(c.kwargs["disabled"] is True for c in select_calls)


class TestRenderExportImport:
    """Tests for render_export_import()"""

    def test_download_button(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import render_export_import

        with patch(PAGE, mock_streamlit):
            render_export_import(annotation_state_with_data)

            kwargs = mock_streamlit.sidebar.download_button.call_args.kwargs
            assert kwargs["mime"] == "application/json"
            assert kwargs["file_name"].startswith("annotation_")
            assert json.loads(kwargs["data"])["formType"] == "W2"

    def test_import(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import render_export_import

        state = annotation_state_with_data
        document = {
            "formType": "1040",
            "pageNumber": 2,
            "fields": [{
                "section": "Income",
                "label": "Wages",
                "boundingBox": [[0, 0], [50, 20]],
                "inputs": [],
            }],
        }
        mock_streamlit.sidebar.file_uploader.return_value = FakeUpload(
            "layout.json", json.dumps(document).encode("utf-8")
        )

        with patch(PAGE, mock_streamlit):
            render_export_import(state)

            mock_streamlit.rerun.assert_called_once()

        assert state.form_type == "1040"
        assert state.page_number == 2
        assert [s.name for s in state.store.sections()] == ["Income"]
        assert state.last_import_id == "upload-1"

    def test_same_upload_not_imported_twice(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import render_export_import

        state = annotation_state_with_data
        state.last_import_id = "upload-1"
        mock_streamlit.sidebar.file_uploader.return_value = FakeUpload("layout.json", b"{}")

        with patch(PAGE, mock_streamlit):
            render_export_import(state)

        assert len(state.store) == 10

    def test_same_file_uploaded_again_is_imported(self, mock_streamlit, annotation_state_with_data):
        """Test re-uploading a file with the same name imports it again"""
        from formtagger.pages.annotate import render_export_import

        state = annotation_state_with_data
        state.last_import_id = "upload-1"
        document = {"fields": [{"section": "A", "label": "L", "boundingBox": [[0, 0], [50, 20]]}]}
        mock_streamlit.sidebar.file_uploader.return_value = FakeUpload(
            "layout.json", json.dumps(document).encode("utf-8"), file_id="upload-2"
        )

        with patch(PAGE, mock_streamlit):
            render_export_import(state)

        assert [s.name for s in state.store.sections()] == ["A"]
        assert state.last_import_id == "upload-2"

    def test_invalid_import_keeps_store(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import render_export_import

        state = annotation_state_with_data
        mock_streamlit.sidebar.file_uploader.return_value = FakeUpload("bad.json", b"{not json")

        with patch(PAGE, mock_streamlit):
            render_export_import(state)

            mock_streamlit.error.assert_called_once()
            mock_streamlit.rerun.assert_not_called()

        assert len(state.store) == 10
        assert state.form_type == "W2"

    def test_clear_requires_confirmation(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import render_export_import

        with patch(PAGE, mock_streamlit):
            render_export_import(annotation_state_with_data)

            assert mock_streamlit.sidebar.button.call_args.kwargs["disabled"] is True

    def test_clear_all(self, mock_streamlit, annotation_state_with_data):
        from formtagger.pages.annotate import render_export_import

        state = annotation_state_with_data
        mock_streamlit.sidebar.checkbox.return_value = True
        mock_streamlit.sidebar.button.return_value = True

        with patch(PAGE, mock_streamlit):
            render_export_import(state)

            mock_streamlit.rerun.assert_called_once()

        assert state.store.is_empty


class TestRenderCanvas:
    """Tests for render_canvas()"""

    def test_no_image(self, mock_streamlit, annotation_state_empty):
        from formtagger.pages.annotate import render_canvas

        with patch(PAGE, mock_streamlit):
            render_canvas(annotation_state_empty)

            mock_streamlit.info.assert_called_once()
            mock_streamlit.image.assert_not_called()

    def test_draws_overlay(self, mock_streamlit, annotation_state_with_data, sample_image):
        from formtagger.pages.annotate import render_canvas

        annotation_state_with_data.image = sample_image

        with patch(PAGE, mock_streamlit):
            render_canvas(annotation_state_with_data)

            rendered = mock_streamlit.image.call_args.args[0]
            assert rendered.mode == "RGBA"
            assert rendered.size == sample_image.size


class TestRenderAnnotationPage:
    """Tests for render_annotation_page()"""

    @pytest.mark.parametrize("mode", ["section", "label", "input"])
    def test_full_render(self, mock_streamlit, annotation_state_with_data, mode):
        from formtagger.pages.annotate import render_annotation_page

        mock_streamlit.session_state.annotation_state = annotation_state_with_data
        mock_streamlit.sidebar.radio.return_value = mode

        with patch(PAGE, mock_streamlit):
            render_annotation_page()

            mock_streamlit.columns.assert_any_call([2, 1])
            mock_streamlit.sidebar.download_button.assert_called_once()

        assert annotation_state_with_data.controller.mode is EntityKind(mode)
