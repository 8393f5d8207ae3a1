from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.db.session import get_db
from stylesquare.schemas.documents import ImportOut, RelationshipsImport, SquarePostsImport
from stylesquare.services import documents
from stylesquare.services.auth import AuthUser, get_current_user

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("/square-posts", response_model=ImportOut)
async def import_square_posts(
    payload: SquarePostsImport,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> ImportOut:
    return ImportOut(posts=await documents.import_square_posts(db, payload.document))


@router.get("/square-posts")
async def export_square_posts(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> Response:
    return Response(content=await documents.export_square_posts(db), media_type="application/json")


@router.post("/relationships", response_model=ImportOut)
async def import_relationships(
    payload: RelationshipsImport,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> ImportOut:
    counts = await documents.import_relationships(
        db,
        user_id=current_user.user_id,
        friends_raw=payload.friends,
        following_raw=payload.following,
    )
    return ImportOut(friends=counts["friends"], following=counts["following"])
