"""Adventure endpoints: start, state updates, character context, chat."""

from fastapi import APIRouter, Depends, HTTPException, Request

from story_engine.chat import run_chat_turn
from story_engine.llm import LLMError
from story_engine.storage import NotFoundError

from .deps import require_user
from .models import ChatBody, StartAdventure, StateUpdateBody

router = APIRouter()


def _require_adventure(request: Request, adventure_id: str, user_id: str):
    adventure = request.app.state.storage.get_adventure(adventure_id, user_id)
    if adventure is None:
        raise HTTPException(404, "Adventure not found")
    return adventure


@router.post("/adventures", status_code=201)
async def start_adventure(body: StartAdventure, request: Request, user_id: str = Depends(require_user)):
    """Start an adventure with a copy of the template's character."""
    try:
        return request.app.state.storage.start_adventure(
            user_id, body.template_id, body.title, body.system_prompt
        )
    except NotFoundError:
        raise HTTPException(404, "Template not found")


@router.get("/adventures/{adventure_id}")
async def get_adventure(adventure_id: str, request: Request, user_id: str = Depends(require_user)):
    return _require_adventure(request, adventure_id, user_id)


@router.delete("/adventures/{adventure_id}")
async def delete_adventure(adventure_id: str, request: Request, user_id: str = Depends(require_user)):
    """Delete an adventure, its character instance and its history."""
    if not request.app.state.storage.delete_adventure(adventure_id, user_id):
        raise HTTPException(404, "Adventure not found")
    request.app.state.assembler.invalidate(adventure_id)
    return {"ok": True}


@router.get("/adventures/{adventure_id}/messages")
async def get_messages(adventure_id: str, request: Request, user_id: str = Depends(require_user)):
    _require_adventure(request, adventure_id, user_id)
    return request.app.state.storage.get_messages(adventure_id)


@router.get("/adventures/{adventure_id}/state")
async def get_state(adventure_id: str, request: Request, user_id: str = Depends(require_user)):
    """Current character instance including its state updates."""
    try:
        return request.app.state.state_service.get_character_state(adventure_id, user_id)
    except NotFoundError as e:
        raise HTTPException(404, str(e))


@router.patch("/adventures/{adventure_id}/state")
async def update_state(
    adventure_id: str, body: StateUpdateBody, request: Request, user_id: str = Depends(require_user)
):
    """Apply natural-language field updates to the adventure's character."""
    try:
        result = request.app.state.state_service.update_character_state_from_text(
            adventure_id, user_id, body.updates, body.context
        )
    except NotFoundError as e:
        raise HTTPException(404, str(e))
    return {"success": result.success, "updates": result.updates}


@router.get("/adventures/{adventure_id}/context")
async def get_context(adventure_id: str, request: Request, user_id: str = Depends(require_user)):
    """Assembled character context, as the LLM would receive it."""
    _require_adventure(request, adventure_id, user_id)
    return {"context": request.app.state.assembler.build_character_context(adventure_id)}


@router.post("/adventures/{adventure_id}/chat")
async def chat(adventure_id: str, body: ChatBody, request: Request, user_id: str = Depends(require_user)):
    """Send a message and get the character's reply."""
    state = request.app.state
    try:
        return await run_chat_turn(
            storage=state.storage,
            assembler=state.assembler,
            llm=state.llm,
            adventure_id=adventure_id,
            user_id=user_id,
            message=body.message,
            model=state.settings.ollama_model,
            history_window=state.settings.chat_history_window,
        )
    except NotFoundError:
        raise HTTPException(404, "Adventure not found")
    except LLMError as e:
        raise HTTPException(502, str(e))
