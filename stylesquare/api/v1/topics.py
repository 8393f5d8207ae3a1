from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.api.v1.deps import as_iso, post_out
from stylesquare.core.errors import TopicNotFound
from stylesquare.db.session import get_db
from stylesquare.models.topic import Topic
from stylesquare.schemas.post import PostOut
from stylesquare.schemas.topic import TopicCreate, TopicCreateOut, TopicFollowOut, TopicOut
from stylesquare.services import feed, topics
from stylesquare.services.auth import AuthUser, get_current_user

router = APIRouter(prefix="/topics", tags=["topics"])


def topic_out(row: Topic, *, following: bool = False) -> TopicOut:
    return TopicOut(
        id=row.id,
        name=row.name,
        name_with_hash=f"#{row.name}",
        description=row.description,
        category=row.category,
        posts_count=row.posts_count,
        participants_count=row.participants_count,
        views_count=row.views_count,
        followers_count=row.followers_count,
        is_official=row.is_official,
        is_hot=row.is_hot,
        is_following=following,
        created_at=as_iso(row.created_at),
        updated_at=as_iso(row.updated_at),
    )


async def _topics_out(db: AsyncSession, rows: list[Topic], user_id: str) -> list[TopicOut]:
    followed = set(await topics.followed_topic_ids(db, user_id))
    return [topic_out(row, following=row.id in followed) for row in rows]


@router.get("", response_model=list[TopicOut])
async def list_topics(
    hot: bool = Query(default=False),
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[TopicOut]:
    rows = await topics.hot_topics(db) if hot else await topics.list_topics(db)
    return await _topics_out(db, rows, current_user.user_id)


@router.get("/search", response_model=list[TopicOut])
async def search_topics(
    q: str = Query(default="", max_length=80),
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[TopicOut]:
    return await _topics_out(db, await topics.search_topics(db, q), current_user.user_id)


@router.get("/following", response_model=list[TopicOut])
async def followed_topics(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[TopicOut]:
    rows = await topics.list_followed_topics(db, current_user.user_id)
    return [topic_out(row, following=True) for row in rows]


@router.get("/by-name/{name}", response_model=TopicOut)
async def topic_by_name(
    name: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> TopicOut:
    row = await topics.get_topic_by_name(db, name)
    if row is None:
        raise TopicNotFound()
    following = await topics.is_following_topic(db, user_id=current_user.user_id, topic_id=row.id)
    return topic_out(row, following=following)


@router.post("", response_model=TopicCreateOut)
async def create_topic(
    payload: TopicCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> TopicCreateOut:
    row, created = await topics.create_topic(db, name=payload.name, category=payload.category)
    following = await topics.is_following_topic(db, user_id=current_user.user_id, topic_id=row.id)
    return TopicCreateOut(topic=topic_out(row, following=following), created=created)


@router.get("/{topic_id}", response_model=TopicOut)
async def get_topic(
    topic_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> TopicOut:
    row = await topics.get_topic(db, topic_id)
    following = await topics.is_following_topic(db, user_id=current_user.user_id, topic_id=topic_id)
    return topic_out(row, following=following)


@router.post("/{topic_id}/view", response_model=TopicOut)
async def view_topic(
    topic_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> TopicOut:
    row = await topics.increment_views(db, topic_id)
    following = await topics.is_following_topic(db, user_id=current_user.user_id, topic_id=topic_id)
    return topic_out(row, following=following)


@router.get("/{topic_id}/posts", response_model=list[PostOut])
async def topic_posts(
    topic_id: str,
    limit: int = Query(default=30, ge=1, le=100),
    cursor: int | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[PostOut]:
    row = await topics.get_topic(db, topic_id)
    posts = await feed.list_posts(db, limit=limit, cursor=cursor, topic=row.name)
    details = await feed.load_post_details(db, posts)
    return [post_out(d, viewer_id=current_user.user_id) for d in details]


async def _follow_state(db: AsyncSession, topic_id: str, following: bool) -> TopicFollowOut:
    row = await topics.get_topic(db, topic_id)
    return TopicFollowOut(topic_id=topic_id, following=following, followers_count=row.followers_count)


@router.post("/{topic_id}/follow", response_model=TopicFollowOut)
async def follow_topic(
    topic_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> TopicFollowOut:
    await topics.follow_topic(db, user_id=current_user.user_id, topic_id=topic_id)
    return await _follow_state(db, topic_id, True)


@router.delete("/{topic_id}/follow", response_model=TopicFollowOut)
async def unfollow_topic(
    topic_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> TopicFollowOut:
    await topics.unfollow_topic(db, user_id=current_user.user_id, topic_id=topic_id)
    return await _follow_state(db, topic_id, False)
