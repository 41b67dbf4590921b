"""
api/routes/v1/chirps.py -- Chirp REST endpoints.

Routes:
  POST   /api/chirps             -- create (access token); owner = token subject
  GET    /api/chirps             -- list; ?author_id=<uuid>&sort=asc|desc
  GET    /api/chirps/{chirp_id}  -- detail
  DELETE /api/chirps/{chirp_id}  -- delete (access token + ownership)

Ownership: DELETE loads the chirp from the store first and passes the stored
user_id to auth.guard.authorize(). Nothing in the request can name an owner.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import ChirpCreate, ChirpResponse, SortEnum
from auth.dependencies import get_current_user_id
from auth.guard import authorize
from chirps.models import Chirp
from chirps.profanity import clean_body
from chirps.store import ChirpStore

router = APIRouter()


@router.post("/chirps", response_model=ChirpResponse, status_code=201)
async def create_chirp(
    request: Request,
    body: ChirpCreate,
    user_id: UUID = Depends(get_current_user_id),
) -> ChirpResponse:
    store: ChirpStore = request.app.state.chirp_store
    chirp = store.create_chirp(clean_body(body.body), user_id)
    return _chirp_to_response(chirp)


@router.get("/chirps", response_model=list[ChirpResponse])
async def list_chirps(
    request: Request,
    author_id: UUID | None = None,
    sort: SortEnum = SortEnum.asc,
) -> list[ChirpResponse]:
    store: ChirpStore = request.app.state.chirp_store
    chirps = store.list_chirps(author_id=author_id, descending=sort is SortEnum.desc)
    return [_chirp_to_response(c) for c in chirps]


@router.get("/chirps/{chirp_id}", response_model=ChirpResponse)
async def get_chirp(request: Request, chirp_id: UUID) -> ChirpResponse:
    store: ChirpStore = request.app.state.chirp_store
    return _chirp_to_response(_load_or_404(store, chirp_id))


@router.delete("/chirps/{chirp_id}", status_code=204)
async def delete_chirp(
    request: Request,
    chirp_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
) -> Response:
    """Delete a chirp. 404 if unknown, 403 if the caller is not its author."""
    store: ChirpStore = request.app.state.chirp_store
    chirp = _load_or_404(store, chirp_id)
    authorize(user_id, chirp.user_id)
    store.delete_chirp(chirp_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_or_404(store: ChirpStore, chirp_id: UUID) -> Chirp:
    chirp = store.get_chirp(chirp_id)
    if chirp is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "Chirp not found."},
        )
    return chirp


def _chirp_to_response(chirp: Chirp) -> ChirpResponse:
    return ChirpResponse(
        id=chirp.id,
        body=chirp.body,
        user_id=chirp.user_id,
        created_at=chirp.created_at,
        updated_at=chirp.updated_at,
    )
