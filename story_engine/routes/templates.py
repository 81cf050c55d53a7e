"""Character template endpoints. Free-text form fields are structured on save."""

from fastapi import APIRouter, Depends, HTTPException, Request

from story_engine.models import CharacterTemplate
from story_engine.parser import (
    attribute_to_text,
    parse_appearance_text,
    parse_personality_text,
    parse_scents_text,
)
from story_engine.storage import NotFoundError
from story_engine.tags import parse_tags_from_string

from .deps import require_user
from .models import CreateTemplate, UpdateTemplate

router = APIRouter()

_TEXT_FIELDS = (
    ("appearance_text", "appearance", parse_appearance_text),
    ("personality_text", "personality", parse_personality_text),
    ("scents_text", "scents_aromas", parse_scents_text),
)


def _template_view(template: CharacterTemplate) -> dict:
    """Template plus rendered text for pre-populating the edit form."""
    view = template.model_dump()
    for text_field, field, _ in _TEXT_FIELDS:
        view[text_field] = attribute_to_text(getattr(template, field))
    return view


def _structured_fields(body: CreateTemplate | UpdateTemplate) -> dict:
    fields = body.model_dump(exclude_none=True)
    for text_field, field, parse in _TEXT_FIELDS:
        if text_field in fields:
            fields[field] = parse(fields.pop(text_field))
    if "tags" in fields:
        fields["tags"] = parse_tags_from_string(fields["tags"])
    return fields


@router.post("/templates", status_code=201)
async def create_template(body: CreateTemplate, request: Request, user_id: str = Depends(require_user)):
    """Create a character template from form text."""
    fields = _structured_fields(body)
    name = fields.pop("name")
    template = request.app.state.storage.create_template(user_id, name, **fields)
    return _template_view(template)


@router.get("/templates/{template_id}")
async def get_template(template_id: str, request: Request, user_id: str = Depends(require_user)):
    template = request.app.state.storage.get_template(template_id, user_id)
    if template is None:
        raise HTTPException(404, "Template not found")
    return _template_view(template)


@router.patch("/templates/{template_id}")
async def update_template(
    template_id: str, body: UpdateTemplate, request: Request, user_id: str = Depends(require_user)
):
    """Update a template. Adventures already started keep their own copy."""
    try:
        template = request.app.state.storage.update_template(
            template_id, user_id, _structured_fields(body)
        )
    except NotFoundError:
        raise HTTPException(404, "Template not found")
    return _template_view(template)


@router.delete("/templates/{template_id}")
async def delete_template(template_id: str, request: Request, user_id: str = Depends(require_user)):
    if not request.app.state.storage.delete_template(template_id, user_id):
        raise HTTPException(404, "Template not found")
    return {"ok": True}
