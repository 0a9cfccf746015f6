"""
Annotation Errors

Exceptions raised by the annotation store, session controller and serializer.
All of them are recoverable: the UI reports the message and stays usable.
"""
from typing import Optional


class AnnotationError(Exception):
    """Base class for all annotation errors"""


class ValidationError(AnnotationError, ValueError):
    """
    A value was rejected before any state changed

    Attributes:
        field_name: Name of the offending field, if known
    """

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message)
        self.field_name = field_name


class ParentReferenceError(ValidationError):
    """A parent ID does not resolve to a live entity of the expected kind"""

    def __init__(self, message: str, parent_id: Optional[str] = None, field_name: Optional[str] = None):
        super().__init__(message, field_name=field_name)
        self.parent_id = parent_id


class NotFoundError(AnnotationError, LookupError):
    """An operation targeted an ID that is not in the store"""

    def __init__(self, entity_id: str):
        super().__init__(f"No annotation with id '{entity_id}'")
        self.entity_id = entity_id


class ParseError(AnnotationError, ValueError):
    """An import document could not be parsed"""
