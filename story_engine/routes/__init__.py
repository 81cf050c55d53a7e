"""FastAPI API endpoints under /api.

Endpoint groups: attribute parse/render, character templates, adventures
(state updates, character context, chat). The caller's identity arrives
in the X-User-Id header.
"""

from fastapi import APIRouter

from .adventures import router as adventures_router
from .attributes import router as attributes_router
from .templates import router as templates_router

router = APIRouter()
router.include_router(attributes_router)
router.include_router(templates_router)
router.include_router(adventures_router)
