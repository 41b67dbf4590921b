"""
api/routes/admin.py -- Development-only maintenance endpoints.

Routes:
  POST /admin/reset -- delete every user, refresh token, and chirp

Enabled only when PLATFORM=dev. This purge is the only code path that
deletes refresh-token rows.
"""

import logging

from fastapi import APIRouter, HTTPException, Request

logger = logging.getLogger("chirpy.api.admin")

router = APIRouter()


@router.post("/reset")
async def reset(request: Request) -> dict:
    if request.app.state.settings.platform != "dev":
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "Reset is only available in the dev platform."},
        )
    chirps_removed = request.app.state.chirp_store.delete_all_chirps()
    users_removed = request.app.state.auth_store.delete_all_users()
    logger.warning("Reset: removed %d users and %d chirps", users_removed, chirps_removed)
    return {"users_removed": users_removed, "chirps_removed": chirps_removed}
