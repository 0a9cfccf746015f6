"""
Annotation Canvas - draws annotation boxes over the reference image

Used by the Streamlit page to show the hierarchy on top of the form image.
"""
from typing import Dict, Optional

from PIL import Image, ImageDraw

from .models import BoundingBox, EntityKind
from .store import AnnotationStore

# Per-kind outline color, fill color (RGBA) and outline width
BOX_STYLES: Dict[EntityKind, Dict] = {
    EntityKind.SECTION: {"stroke": "#ff6b35", "fill": (255, 107, 53, 26), "width": 3},
    EntityKind.LABEL: {"stroke": "#4ecdc4", "fill": (78, 205, 196, 26), "width": 2},
    EntityKind.INPUT: {"stroke": "#45b7d1", "fill": (69, 183, 209, 26), "width": 2},
}

HIGHLIGHT_EXTRA_WIDTH = 2


def draw_box(
    draw: ImageDraw.ImageDraw,
    bbox: BoundingBox,
    kind: EntityKind,
    highlighted: bool = False,
) -> None:
    """Draw one styled rectangle"""
    style = BOX_STYLES[kind]
    width = style["width"] + (HIGHLIGHT_EXTRA_WIDTH if highlighted else 0)
    draw.rectangle(
        [bbox.x0, bbox.y0, bbox.x1, bbox.y1],
        fill=style["fill"],
        outline=style["stroke"],
        width=width,
    )


def draw_annotations(
    image: Image.Image,
    store: AnnotationStore,
    highlighted_id: Optional[str] = None,
) -> Image.Image:
    """
    Render every annotation over a copy of the image

    Sections are drawn first, then Labels, then Inputs, so children stay
    visible on top of their parents.

    Args:
        image: Reference image (not modified)
        store: Annotation store
        highlighted_id: ID of the selected or edited entity, drawn thicker

    Returns:
        New RGBA image with the overlay
    """
    base = image.convert("RGBA")
    overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)

    for entity in store.entities():
        draw_box(draw, entity.geometry, entity.kind, highlighted=entity.id == highlighted_id)

    return Image.alpha_composite(base, overlay)
