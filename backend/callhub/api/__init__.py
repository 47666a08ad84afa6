from fastapi import APIRouter

from callhub.api import auth
from callhub.api import users
from callhub.api import groups
from callhub.api import dms
from callhub.api import calls
from callhub.api import messages

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok"}


# Include auth, users, groups, dms, calls, messages routers
router.include_router(auth.router)
router.include_router(users.router)
router.include_router(groups.router)
router.include_router(dms.router)
router.include_router(calls.router)
router.include_router(messages.router)
