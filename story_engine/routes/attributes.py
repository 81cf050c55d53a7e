"""Parse/render endpoints used by the authoring forms."""

from typing import get_args

from fastapi import APIRouter, HTTPException

from story_engine.models import AttributeType
from story_engine.parser import attribute_to_text, parse_attribute_text

from .models import ParseBody, RenderBody

router = APIRouter()

ATTRIBUTE_TYPES = set(get_args(AttributeType))


@router.post("/parse/{attribute_type}")
async def parse_text(attribute_type: str, body: ParseBody):
    """Structure free text into a namespaced attribute map."""
    if attribute_type not in ATTRIBUTE_TYPES:
        raise HTTPException(404, f"Unknown attribute type '{attribute_type}'")
    return parse_attribute_text(body.text, attribute_type)


@router.post("/render")
async def render_text(body: RenderBody):
    """Render an attribute map back to editable text."""
    return {"text": attribute_to_text(body.data)}
