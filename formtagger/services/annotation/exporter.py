"""
Form Layout Exporter

Writes the form layout document as:
- JSON text
- bytes (for browser download)
- a JSON file in the exports directory

and loads a previously exported file back into a store.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from formtagger import config

from .errors import ParseError
from .serializer import ExportDocument, export_document, import_document
from .store import AnnotationStore

logger = logging.getLogger(__name__)


class FormLayoutExporter:
    """
    Export the annotation hierarchy as form layout JSON
    """

    def __init__(self, output_dir: Path = None):
        """
        Initialize exporter

        Args:
            output_dir: Output directory for exports (default: data/exports)
        """
        if output_dir is None:
            output_dir = config.EXPORTS_DIR
        self.output_dir = Path(output_dir)

    @staticmethod
    def default_filename() -> str:
        """Timestamped filename, e.g. annotation_1718000000000.json"""
        millis = int(datetime.now().timestamp() * 1000)
        return f"{config.EXPORT_FILENAME_PREFIX}_{millis}.json"

    def export_json(
        self,
        store: AnnotationStore,
        form_type: str = config.DEFAULT_FORM_TYPE,
        page_number: int = config.DEFAULT_PAGE_NUMBER,
        indent: int = 2,
    ) -> str:
        """
        Export the store as a JSON string

        Args:
            store: Annotation store to export
            form_type: Form identifier
            page_number: Page number (>= 1)
            indent: JSON indentation

        Returns:
            JSON text of the form layout document
        """
        return export_document(store, form_type, page_number).to_json(indent=indent)

    def export_bytes(
        self,
        store: AnnotationStore,
        form_type: str = config.DEFAULT_FORM_TYPE,
        page_number: int = config.DEFAULT_PAGE_NUMBER,
    ) -> bytes:
        """Export the store as UTF-8 JSON bytes (for browser download)"""
        return self.export_json(store, form_type, page_number).encode("utf-8")

    def export_to_file(
        self,
        store: AnnotationStore,
        form_type: str = config.DEFAULT_FORM_TYPE,
        page_number: int = config.DEFAULT_PAGE_NUMBER,
        output_name: Optional[str] = None,
    ) -> Path:
        """
        Export the store to a JSON file in the output directory

        Args:
            store: Annotation store to export
            form_type: Form identifier
            page_number: Page number (>= 1)
            output_name: Output filename (default: annotation_<timestamp>.json)

        Returns:
            Path to the written file
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)

        output_name = output_name or self.default_filename()
        if not output_name.endswith(".json"):
            output_name = f"{output_name}.json"
        file_path = self.output_dir / output_name

        with open(file_path, "w", encoding="utf-8") as f:
            f.write(self.export_json(store, form_type, page_number))

        logger.info(f"Wrote form layout to {file_path}")
        return file_path

    def load_file(self, file_path: Union[str, Path], store: AnnotationStore) -> ExportDocument:
        """
        Import a form layout JSON file into a store

        Args:
            file_path: Path to the JSON file
            store: Store whose contents are replaced

        Returns:
            The parsed document

        Raises:
            ParseError: if the file cannot be read or is not a valid document
        """
        file_path = Path(file_path)
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise ParseError(f"Cannot read {file_path}: {e}") from e

        return import_document(store, text)
