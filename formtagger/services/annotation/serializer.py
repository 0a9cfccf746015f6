"""
Form Layout Serializer

Converts the annotation hierarchy to and from the nested form-description
JSON document:

    {
      "formType": "W2",
      "pageNumber": 1,
      "boundingBox": [[minX, minY], [maxX, maxY]],
      "fields": [
        {
          "section": "Personal Info",
          "sectionBoundingBox": [[x0, y0], [x1, y1]],
          "label": "Full Name",
          "boundingBox": [[x0, y0], [x1, y1]],
          "inputs": [
            {"name": "fullName", "type": "name", "lang": "en",
             "position": [[x0, y0], [x1, y1]], "value": null}
          ]
        }
      ]
    }

There is one field per (Section, Label) pair. On import Sections are merged
by name while every field produces its own Label.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .errors import ParseError, ValidationError
from .models import DEFAULT_INPUT_TYPE, BoundingBox
from .store import AnnotationStore

logger = logging.getLogger(__name__)

# Used when an imported field has no sectionBoundingBox
DEFAULT_SECTION_BOX = BoundingBox(0, 0, 100, 100)


def _expect(data: Dict[str, Any], key: str, types, where: str, required: bool = True, default=None):
    """Fetch a key from a parsed JSON object, checking its type"""
    if key not in data or data[key] is None:
        if required:
            raise ParseError(f"{where}: missing '{key}'")
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, types):
        raise ParseError(f"{where}: '{key}' has invalid type {type(value).__name__}")
    return value


def _parse_box(data: Dict[str, Any], key: str, where: str, required: bool = True) -> Optional[BoundingBox]:
    raw = _expect(data, key, (list, tuple), where, required=required)
    if raw is None:
        return None
    try:
        return BoundingBox.from_list(raw)
    except ValidationError as e:
        raise ParseError(f"{where}: invalid '{key}': {e}") from e


def _check_object(data: Any, where: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ParseError(f"{where}: expected an object, got {type(data).__name__}")
    return data


@dataclass
class FormInput:
    """One input entry of a field"""
    name: str
    position: BoundingBox
    type: str = DEFAULT_INPUT_TYPE
    lang: Optional[str] = None
    value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "lang": self.lang,
            "position": self.position.to_list(),
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, data: Any, where: str = "input") -> "FormInput":
        data = _check_object(data, where)
        return cls(
            name=_expect(data, "name", str, where),
            position=_parse_box(data, "position", where),
            type=_expect(data, "type", str, where, required=False, default=DEFAULT_INPUT_TYPE),
            lang=_expect(data, "lang", str, where, required=False),
            value=_expect(data, "value", str, where, required=False),
        )


@dataclass
class FormField:
    """
    A (Section, Label) pair with the Label's inputs

    Attributes:
        section: Section name
        label: Label text
        bounding_box: Label region
        section_bounding_box: Section region (optional on import)
        inputs: Inputs of the Label, in order
    """
    section: str
    label: str
    bounding_box: BoundingBox
    section_bounding_box: Optional[BoundingBox] = None
    inputs: List[FormInput] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"section": self.section}
        if self.section_bounding_box is not None:
            data["sectionBoundingBox"] = self.section_bounding_box.to_list()
        data["label"] = self.label
        data["boundingBox"] = self.bounding_box.to_list()
        data["inputs"] = [i.to_dict() for i in self.inputs]
        return data

    @classmethod
    def from_dict(cls, data: Any, where: str = "field") -> "FormField":
        data = _check_object(data, where)
        raw_inputs = _expect(data, "inputs", list, where, required=False, default=[])
        return cls(
            section=_expect(data, "section", str, where),
            label=_expect(data, "label", str, where),
            bounding_box=_parse_box(data, "boundingBox", where),
            section_bounding_box=_parse_box(data, "sectionBoundingBox", where, required=False),
            inputs=[
                FormInput.from_dict(item, where=f"{where}.inputs[{i}]")
                for i, item in enumerate(raw_inputs)
            ],
        )


@dataclass
class ExportDocument:
    """
    Form layout document

    Attributes:
        form_type: Free-form form identifier (e.g. "W2")
        page_number: 1-based page number
        bounding_box: Union of every annotated region
        fields: One entry per (Section, Label) pair
    """
    form_type: str = ""
    page_number: int = 1
    bounding_box: BoundingBox = field(default_factory=BoundingBox.origin)
    fields: List[FormField] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formType": self.form_type,
            "pageNumber": self.page_number,
            "boundingBox": self.bounding_box.to_list(),
            "fields": [f.to_dict() for f in self.fields],
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string"""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any) -> "ExportDocument":
        """
        Parse a decoded JSON document

        Raises:
            ParseError: if the document is malformed
        """
        data = _check_object(data, "document")
        page_number = _expect(data, "pageNumber", int, "document", required=False, default=1)
        if page_number < 1:
            raise ParseError(f"document: 'pageNumber' must be at least 1, got {page_number}")
        raw_fields = _expect(data, "fields", list, "document")
        return cls(
            form_type=_expect(data, "formType", str, "document", required=False, default=""),
            page_number=page_number,
            bounding_box=_parse_box(data, "boundingBox", "document", required=False) or BoundingBox.origin(),
            fields=[FormField.from_dict(item, where=f"fields[{i}]") for i, item in enumerate(raw_fields)],
        )

    @classmethod
    def from_json(cls, json_str: Union[str, bytes]) -> "ExportDocument":
        """
        Deserialize from JSON string

        Raises:
            ParseError: if the text is not valid JSON or not a valid document
        """
        try:
            data = json.loads(json_str)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ParseError(f"Invalid JSON: {e}") from e
        return cls.from_dict(data)


def export_document(store: AnnotationStore, form_type: str = "", page_number: int = 1) -> ExportDocument:
    """
    Build the form layout document for the store's hierarchy

    Args:
        store: Annotation store (not modified)
        form_type: Form identifier written to "formType"
        page_number: Page number written to "pageNumber" (>= 1)

    Returns:
        ExportDocument

    Raises:
        ValidationError: if page_number is not a positive integer
    """
    if isinstance(page_number, bool) or not isinstance(page_number, int) or page_number < 1:
        raise ValidationError(f"Page number must be a positive integer, got {page_number!r}", field_name="page_number")

    fields = []
    for section in store.sections():
        for label in store.labels_of(section.id):
            fields.append(
                FormField(
                    section=section.name,
                    section_bounding_box=section.bounding_box,
                    label=label.text,
                    bounding_box=label.bounding_box,
                    inputs=[
                        FormInput(
                            name=i.name,
                            type=i.type,
                            lang=i.lang,
                            position=i.position,
                            value=i.value,
                        )
                        for i in store.inputs_of(label.id)
                    ],
                )
            )

    document = ExportDocument(
        form_type=form_type or "",
        page_number=page_number,
        bounding_box=BoundingBox.union(e.geometry for e in store.entities()),
        fields=fields,
    )
    logger.info(f"Exported {len(fields)} field(s) from {len(store)} annotation(s)")
    return document


def import_document(
    store: AnnotationStore,
    document: Union[ExportDocument, Dict[str, Any], str, bytes],
) -> ExportDocument:
    """
    Replace the store's contents with the hierarchy described by a document

    The whole document is parsed and rebuilt in a staging store first; the
    target store is only replaced once that succeeded.

    Args:
        store: Store to load into
        document: ExportDocument, decoded JSON dict, or JSON text

    Returns:
        The parsed ExportDocument (for formType / pageNumber)

    Raises:
        ParseError: if the document is malformed; the store is left unchanged
    """
    if isinstance(document, (str, bytes)):
        document = ExportDocument.from_json(document)
    elif not isinstance(document, ExportDocument):
        document = ExportDocument.from_dict(document)

    staging = AnnotationStore(id_generator=store.id_generator)
    try:
        for index, form_field in enumerate(document.fields):
            section = staging.find_section_by_name(form_field.section)
            if section is None:
                section = staging.create_section(
                    form_field.section,
                    form_field.section_bounding_box or DEFAULT_SECTION_BOX,
                )
            label = staging.create_label(section.id, form_field.label, form_field.bounding_box)
            for form_input in form_field.inputs:
                staging.create_input(
                    label.id,
                    form_input.name,
                    form_input.position,
                    type=form_input.type,
                    lang=form_input.lang,
                    value=form_input.value,
                )
    except ValidationError as e:
        logger.warning(f"Rejected import at fields[{index}]: {e}")
        raise ParseError(f"fields[{index}]: {e}") from e

    store.replace_with(staging)
    logger.info(
        f"Imported {len(staging.sections())} section(s), {len(staging.labels())} label(s), "
        f"{len(staging.inputs())} input(s)"
    )
    return document
