"""
Annotation Data Models

Dataclasses for the Section → Label → Input hierarchy drawn over a form image.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, Iterable, List, Optional, Sequence, Union

from .errors import ValidationError

Number = Union[int, float]


class EntityKind(str, Enum):
    """Tag identifying which tier of the hierarchy an entity belongs to"""
    SECTION = "section"
    LABEL = "label"
    INPUT = "input"

    @classmethod
    def parse(cls, value: Union["EntityKind", str]) -> "EntityKind":
        """Accept an EntityKind or its string value"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValidationError(f"Unknown annotation kind: {value!r}", field_name="kind") from None

    @property
    def title(self) -> str:
        return self.value.capitalize()


# Input type code -> display name
INPUT_TYPES: Dict[str, str] = {
    "text": "Text",
    "textarea": "Text Area",
    "address": "Address",
    "name": "Name",
    "number": "Number",
    "date": "Date",
    "email": "Email",
    "phone": "Phone",
    "checkbox": "Checkbox",
    "radio": "Radio Button",
    "select": "Dropdown",
    "currency": "Currency",
    "percentage": "Percentage",
    "id": "ID Number",
    "signature": "Signature",
}

# Language code -> display name
LANGUAGES: Dict[str, str] = {
    "en": "English",
    "ar": "Arabic",
}

DEFAULT_INPUT_TYPE = "text"


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned rectangle in image-pixel space

    Stored as top-left (x0, y0) and bottom-right (x1, y1) corners.
    """
    x0: Number
    y0: Number
    x1: Number
    y1: Number

    def __post_init__(self):
        for name in ("x0", "y0", "x1", "y1"):
            if not _is_number(getattr(self, name)):
                raise ValidationError(f"Coordinate {name} must be a finite number", field_name=name)
        if self.x0 > self.x1 or self.y0 > self.y1:
            raise ValidationError(
                f"Bounding box corners are inverted: {self.to_list()}",
                field_name="bounding_box",
            )

    @classmethod
    def from_corners(cls, start: Sequence[Number], end: Sequence[Number]) -> "BoundingBox":
        """Create a box from two arbitrary drag corners"""
        return cls(
            x0=min(start[0], end[0]),
            y0=min(start[1], end[1]),
            x1=max(start[0], end[0]),
            y1=max(start[1], end[1]),
        )

    @classmethod
    def from_list(cls, data: Sequence[Sequence[Number]]) -> "BoundingBox":
        """Create a box from the [[x0, y0], [x1, y1]] wire form"""
        if not isinstance(data, (list, tuple)) or len(data) != 2:
            raise ValidationError(f"Bounding box must be a pair of points, got {data!r}", field_name="bounding_box")
        for point in data:
            if not isinstance(point, (list, tuple)) or len(point) != 2:
                raise ValidationError(f"Bounding box point must be [x, y], got {point!r}", field_name="bounding_box")
        (x0, y0), (x1, y1) = data
        return cls(x0=x0, y0=y0, x1=x1, y1=y1)

    @classmethod
    def origin(cls) -> "BoundingBox":
        """Degenerate box at (0, 0)"""
        return cls(0, 0, 0, 0)

    @classmethod
    def union(cls, boxes: Iterable["BoundingBox"]) -> "BoundingBox":
        """Smallest box covering every given box (origin box when empty)"""
        boxes = list(boxes)
        if not boxes:
            return cls.origin()
        return cls(
            x0=min(b.x0 for b in boxes),
            y0=min(b.y0 for b in boxes),
            x1=max(b.x1 for b in boxes),
            y1=max(b.y1 for b in boxes),
        )

    def to_list(self) -> List[List[Number]]:
        return [[self.x0, self.y0], [self.x1, self.y1]]

    @property
    def width(self) -> Number:
        return self.x1 - self.x0

    @property
    def height(self) -> Number:
        return self.y1 - self.y0

    def meets_minimum(self, size: Number) -> bool:
        """Whether both sides are at least `size` pixels long"""
        return self.width >= size and self.height >= size


@dataclass
class Section:
    """
    Top-level region grouping Labels

    Attributes:
        id: Unique identifier
        name: Section name shown in the form description
        bounding_box: Region on the image
    """
    kind: ClassVar[EntityKind] = EntityKind.SECTION

    id: str
    name: str
    bounding_box: BoundingBox

    @property
    def geometry(self) -> BoundingBox:
        return self.bounding_box


@dataclass
class Label:
    """
    Field caption region belonging to one Section

    Attributes:
        id: Unique identifier
        parent_section_id: ID of the owning Section
        text: Caption text
        bounding_box: Region on the image
    """
    kind: ClassVar[EntityKind] = EntityKind.LABEL

    id: str
    parent_section_id: str
    text: str
    bounding_box: BoundingBox

    @property
    def parent_id(self) -> str:
        return self.parent_section_id

    @property
    def geometry(self) -> BoundingBox:
        return self.bounding_box


@dataclass
class Input:
    """
    Data-entry region belonging to one Label

    Attributes:
        id: Unique identifier
        parent_label_id: ID of the owning Label
        name: Field name used by consumers of the export
        position: Region on the image
        type: Input type code (see INPUT_TYPES)
        lang: Language code ("en", "ar") or None
        value: Optional prefilled value
    """
    kind: ClassVar[EntityKind] = EntityKind.INPUT

    id: str
    parent_label_id: str
    name: str
    position: BoundingBox
    type: str = DEFAULT_INPUT_TYPE
    lang: Optional[str] = None
    value: Optional[str] = None

    @property
    def parent_id(self) -> str:
        return self.parent_label_id

    @property
    def geometry(self) -> BoundingBox:
        return self.position


Entity = Union[Section, Label, Input]
