"""
Shared pytest fixtures for Formtagger tests
"""
import itertools
import pytest
from unittest.mock import MagicMock, Mock
from PIL import Image

from formtagger.services.annotation import (
    AnnotationStore,
    BoundingBox,
    EditSessionController,
    IdGenerator,
)
from formtagger.state import AnnotationState


# Boxes from the worked W2 example
SECTION_BOX = BoundingBox(10, 10, 200, 50)
LABEL_BOX = BoundingBox(15, 60, 190, 90)
INPUT_BOX = BoundingBox(20, 65, 180, 85)


@pytest.fixture
def id_generator():
    """IdGenerator producing id1, id2, ..."""
    counter = itertools.count(1)
    return IdGenerator(factory=lambda: f"id{next(counter)}")


@pytest.fixture
def store(id_generator):
    """Empty AnnotationStore with predictable IDs"""
    return AnnotationStore(id_generator=id_generator)


@pytest.fixture
def populated_store(store):
    """Store holding the worked example: one Section, Label and Input"""
    section = store.create_section("Personal Info", SECTION_BOX)
    label = store.create_label(section.id, "Full Name", LABEL_BOX)
    store.create_input(label.id, "fullName", INPUT_BOX, type="name", lang="en")
    return store


@pytest.fixture
def form_store(store):
    """
    Store with a fuller hierarchy

    Personal Info (id1)
        Full Name (id2): fullName (id3)
        Date of Birth (id4): dob (id5)
    Address (id6)
        Street (id7): street (id8), street2 (id9)
    Signature (id10) - no labels
    """
    s1 = store.create_section("Personal Info", BoundingBox(10, 10, 200, 50))
    l1 = store.create_label(s1.id, "Full Name", BoundingBox(15, 60, 190, 90))
    store.create_input(l1.id, "fullName", BoundingBox(20, 65, 180, 85), type="name", lang="en")
    l2 = store.create_label(s1.id, "Date of Birth", BoundingBox(15, 100, 190, 130))
    store.create_input(l2.id, "dob", BoundingBox(20, 105, 180, 125), type="date", value="1990-01-01")
    s2 = store.create_section("Address", BoundingBox(10, 200, 300, 400))
    l3 = store.create_label(s2.id, "Street", BoundingBox(15, 210, 290, 240))
    store.create_input(l3.id, "street", BoundingBox(20, 215, 150, 235), type="address", lang="ar")
    store.create_input(l3.id, "street2", BoundingBox(155, 215, 285, 235))
    store.create_section("Signature", BoundingBox(10, 450, 300, 500))
    return store


@pytest.fixture
def controller(store):
    """EditSessionController over the empty store"""
    return EditSessionController(store)


@pytest.fixture
def form_controller(form_store):
    """EditSessionController over form_store"""
    return EditSessionController(form_store)


@pytest.fixture
def sample_image():
    """Create a simple test PIL image"""
    return Image.new("RGB", (400, 600), color="white")


@pytest.fixture
def annotation_state_empty(store, tmp_path):
    """AnnotationState with an empty store"""
    return AnnotationState(store=store, exports_dir=tmp_path / "exports")


@pytest.fixture
def annotation_state_with_data(form_store, tmp_path):
    """AnnotationState with form_store loaded"""
    return AnnotationState(
        store=form_store,
        form_type="W2",
        page_number=1,
        exports_dir=tmp_path / "exports",
    )


@pytest.fixture
def mock_streamlit():
    """Mock Streamlit module for UI testing."""
    mock_st = MagicMock()

    def _columns(spec):
        count = spec if isinstance(spec, int) else len(spec)
        return [MagicMock() for _ in range(count)]

    # Mock sidebar
    mock_st.sidebar = MagicMock()
    mock_st.sidebar.header = MagicMock()
    mock_st.sidebar.radio = MagicMock(return_value="section")
    mock_st.sidebar.file_uploader = MagicMock(return_value=None)
    mock_st.sidebar.text_input = MagicMock(return_value="")
    mock_st.sidebar.number_input = MagicMock(return_value=1)
    mock_st.sidebar.checkbox = MagicMock(return_value=False)
    mock_st.sidebar.button = MagicMock(return_value=False)
    mock_st.sidebar.columns = MagicMock(side_effect=_columns)
    mock_st.sidebar.info = MagicMock()
    mock_st.sidebar.error = MagicMock()
    mock_st.sidebar.divider = MagicMock()
    mock_st.sidebar.markdown = MagicMock()
    mock_st.sidebar.caption = MagicMock()
    mock_st.sidebar.download_button = MagicMock()

    # Mock main UI elements
    mock_st.button = MagicMock(return_value=False)
    mock_st.text_input = MagicMock(return_value="")
    mock_st.selectbox = MagicMock(return_value=None)
    mock_st.number_input = MagicMock(return_value=0)
    mock_st.columns = MagicMock(side_effect=_columns)
    mock_st.info = MagicMock()
    mock_st.error = MagicMock()
    mock_st.warning = MagicMock()
    mock_st.caption = MagicMock()
    mock_st.markdown = MagicMock()
    mock_st.subheader = MagicMock()
    mock_st.image = MagicMock()
    mock_st.rerun = MagicMock()

    # Mock session state
    mock_st.session_state = MagicMock()

    return mock_st


@pytest.fixture
def pressed():
    """Factory for st.button mocks that return True only for the given widget keys"""
    def _pressed(*keys):
        def _button(label, *args, key=None, **kwargs):
            return key in keys
        return Mock(side_effect=_button)
    return _pressed
