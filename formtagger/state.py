"""
Application state management for Formtagger

Contains dataclasses for session state that persists across Streamlit reruns.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image

from formtagger import config
from formtagger.services.annotation import AnnotationStore, EditSessionController


@dataclass
class AnnotationState:
    """Application state for the annotation page"""
    store: AnnotationStore = field(default_factory=AnnotationStore)
    controller: Optional[EditSessionController] = None
    form_type: str = config.DEFAULT_FORM_TYPE
    page_number: int = config.DEFAULT_PAGE_NUMBER
    min_box_size: int = config.MIN_BOX_SIZE
    exports_dir: Path = config.EXPORTS_DIR
    image: Optional[Image.Image] = None
    image_name: Optional[str] = None
    # File ID of the last imported upload, so a rerun does not import it twice
    last_import_id: Optional[str] = None

    def __post_init__(self):
        if self.controller is None:
            self.controller = EditSessionController(self.store)


def init_session_state(settings: Optional[Dict[str, Any]] = None):
    """Initialize session state if not already done"""
    import streamlit as st

    if "annotation_state" not in st.session_state:
        settings = settings or config.get_settings()
        st.session_state.annotation_state = AnnotationState(
            form_type=settings["default_form_type"],
            page_number=settings["default_page_number"],
            min_box_size=settings["min_box_size"],
            exports_dir=Path(settings["exports_dir"]),
        )
