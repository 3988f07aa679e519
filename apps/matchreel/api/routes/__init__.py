"""
Admin API routes - combined router from all domain modules.

Shared infrastructure (limiter, helpers) lives here; every sub-router
imports what it needs from this package.
"""

import os

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from matchreel.models.schemas import ActionResult

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
if IS_TEST_ENV:
    limiter = Limiter(key_func=get_remote_address)

    def no_op_limit(*args, **kwargs):
        """No-op decorator for test mode - doesn't apply any rate limiting."""
        def decorator(func):
            return func
        return decorator

    limiter.limit = lambda *args, **kwargs: no_op_limit()
else:
    limiter = Limiter(key_func=get_remote_address)


def action_response(result: ActionResult) -> JSONResponse:
    """Serialize an action result with the HTTP status it carries."""
    return JSONResponse(status_code=result.status_code, content=result.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from matchreel.api.auth_dependencies import require_admin
from matchreel.api.routes.players import router as players_router
from matchreel.api.routes.videos import router as videos_router
from matchreel.api.routes.uploads import router as uploads_router

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])
# uploads first: its static /videos/bulk/... paths must win over /videos/{video_id}
router.include_router(uploads_router)
router.include_router(players_router)
router.include_router(videos_router)
