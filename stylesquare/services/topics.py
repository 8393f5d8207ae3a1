"""Topic store: named hashtags that users can follow and that count the posts using them.

Official topics are seeded once. Any user may create a topic; creating one that
already exists (case-insensitively) returns the existing topic. Publishing a
post bumps ``posts_count`` on every known topic whose name appears among the
post's hashtags, and ``participants_count`` the first time an author uses it.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import and_, case, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.core.errors import EmptyTopicName, InvalidTopicCategory, TopicNotFound
from stylesquare.models.common import utcnow
from stylesquare.models.topic import Topic, TopicFollow, TopicParticipant

logger = logging.getLogger(__name__)

TOPIC_CATEGORIES = ("style", "scene", "challenge", "seasonal", "event", "other")

OFFICIAL_TOPICS = (
    {"name": "职场通勤", "category": "scene", "is_hot": True, "description": "职场穿搭灵感聚集地"},
    {"name": "约会穿搭", "category": "scene", "is_hot": True, "description": "浪漫约会造型分享"},
    {"name": "优雅淑女", "category": "style", "is_hot": True, "description": "温柔优雅的女性魅力"},
    {"name": "酷飒女孩", "category": "style", "is_hot": True, "description": "个性帅气的酷女孩风"},
    {"name": "休闲日常", "category": "scene", "is_hot": False, "description": "舒适随性的日常穿搭"},
    {"name": "复古港风", "category": "style", "is_hot": True, "description": "80-90年代经典港风"},
    {"name": "夏日清新", "category": "seasonal", "is_hot": True, "description": "清爽夏日穿搭灵感"},
    {"name": "反差萌挑战", "category": "challenge", "is_hot": True, "description": "一张脸，两种人生"},
    {"name": "一周七套Look", "category": "challenge", "is_hot": False, "description": "一周不重样穿搭挑战"},
    {"name": "时尚街拍", "category": "other", "is_hot": False, "description": "街头时尚摄影分享"},
)

SEARCH_LIMIT = 10
HOT_LIMIT = 20


def clean_topic_name(name: str | None) -> str:
    return str(name or "").strip().lstrip("#").strip()


def topic_key(name: str | None) -> str:
    return clean_topic_name(name).lower()


async def seed_official_topics(db: AsyncSession) -> int:
    """Insert the official topics that are not there yet; returns how many were added."""
    rows = (await db.execute(select(Topic.id, Topic.name_key))).all()
    taken_ids = {row.id for row in rows}
    taken_keys = {row.name_key for row in rows}
    added = 0
    for index, entry in enumerate(OFFICIAL_TOPICS, start=1):
        topic_id = f"topic_{index}"
        if topic_id in taken_ids or topic_key(entry["name"]) in taken_keys:
            continue
        db.add(
            Topic(
                id=topic_id,
                name=entry["name"],
                name_key=topic_key(entry["name"]),
                description=entry["description"],
                category=entry["category"],
                is_official=True,
                is_hot=entry["is_hot"],
            )
        )
        added += 1
    if added:
        await db.commit()
        logger.info("Seeded %s official topics", added)
    return added


async def get_topic(db: AsyncSession, topic_id: str) -> Topic:
    topic = (
        await db.execute(select(Topic).where(Topic.id == topic_id).execution_options(populate_existing=True))
    ).scalar_one_or_none()
    if topic is None:
        raise TopicNotFound()
    return topic


async def get_topic_by_name(db: AsyncSession, name: str) -> Topic | None:
    key = topic_key(name)
    if not key:
        return None
    return (
        await db.execute(select(Topic).where(Topic.name_key == key).execution_options(populate_existing=True))
    ).scalar_one_or_none()


async def create_topic(db: AsyncSession, *, name: str, category: str = "other") -> tuple[Topic, bool]:
    cleaned = clean_topic_name(name)
    if not cleaned:
        raise EmptyTopicName()
    if category not in TOPIC_CATEGORIES:
        raise InvalidTopicCategory()

    existing = await get_topic_by_name(db, cleaned)
    if existing is not None:
        return existing, False

    topic = Topic(
        id=f"topic_{uuid.uuid4().hex[:12]}",
        name=cleaned,
        name_key=cleaned.lower(),
        category=category,
        is_official=False,
        is_hot=False,
    )
    db.add(topic)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        existing = await get_topic_by_name(db, cleaned)
        if existing is None:
            raise
        return existing, False

    await db.refresh(topic)
    logger.info("Topic %s created as %s", cleaned, topic.id)
    return topic, True


async def list_topics(db: AsyncSession) -> list[Topic]:
    return list(
        (
            await db.execute(
                select(Topic).order_by(Topic.is_official.desc(), Topic.posts_count.desc(), Topic.created_at.asc())
            )
        ).scalars().all()
    )


async def hot_topics(db: AsyncSession, *, limit: int = HOT_LIMIT) -> list[Topic]:
    return list(
        (
            await db.execute(
                select(Topic)
                .where(Topic.is_hot.is_(True))
                .order_by(Topic.posts_count.desc(), Topic.id.asc())
                .limit(limit)
            )
        ).scalars().all()
    )


async def search_topics(db: AsyncSession, keyword: str, *, limit: int = SEARCH_LIMIT) -> list[Topic]:
    key = topic_key(keyword)
    if not key:
        return []
    return list(
        (
            await db.execute(
                select(Topic)
                .where(Topic.name_key.contains(key, autoescape=True))
                .order_by(Topic.posts_count.desc(), Topic.id.asc())
                .limit(limit)
            )
        ).scalars().all()
    )


async def is_following_topic(db: AsyncSession, *, user_id: str, topic_id: str) -> bool:
    row = (
        await db.execute(
            select(TopicFollow.id).where(and_(TopicFollow.topic_id == topic_id, TopicFollow.user_id == user_id))
        )
    ).scalar_one_or_none()
    return row is not None


async def followed_topic_ids(db: AsyncSession, user_id: str) -> list[str]:
    return list(
        (
            await db.execute(
                select(TopicFollow.topic_id)
                .where(TopicFollow.user_id == user_id)
                .order_by(TopicFollow.created_at.asc(), TopicFollow.id.asc())
            )
        ).scalars().all()
    )


async def list_followed_topics(db: AsyncSession, user_id: str) -> list[Topic]:
    return list(
        (
            await db.execute(
                select(Topic)
                .join(TopicFollow, TopicFollow.topic_id == Topic.id)
                .where(TopicFollow.user_id == user_id)
                .order_by(TopicFollow.created_at.asc(), TopicFollow.id.asc())
            )
        ).scalars().all()
    )


def _bump(*where, **values):
    # counters are read back through get_topic, which always reloads the row
    return update(Topic).where(*where).values(**values).execution_options(synchronize_session=False)


async def follow_topic(db: AsyncSession, *, user_id: str, topic_id: str) -> bool:
    """Returns False when the user already follows the topic."""
    await get_topic(db, topic_id)
    if await is_following_topic(db, user_id=user_id, topic_id=topic_id):
        return False

    db.add(TopicFollow(topic_id=topic_id, user_id=user_id))
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        return False
    await db.execute(_bump(Topic.id == topic_id, followers_count=Topic.followers_count + 1))
    await db.commit()
    return True


async def unfollow_topic(db: AsyncSession, *, user_id: str, topic_id: str) -> bool:
    await get_topic(db, topic_id)
    result = await db.execute(
        delete(TopicFollow).where(and_(TopicFollow.topic_id == topic_id, TopicFollow.user_id == user_id))
    )
    if not result.rowcount:
        return False
    await db.execute(
        _bump(
            Topic.id == topic_id,
            followers_count=case((Topic.followers_count > 0, Topic.followers_count - 1), else_=0),
        )
    )
    await db.commit()
    return True


async def increment_views(db: AsyncSession, topic_id: str) -> Topic:
    await get_topic(db, topic_id)
    await db.execute(_bump(Topic.id == topic_id, views_count=Topic.views_count + 1))
    await db.commit()
    return await get_topic(db, topic_id)


async def record_post(db: AsyncSession, *, user_id: str, hashtags: list[str]) -> list[str]:
    """Count a new post against the known topics named by its hashtags.

    Runs inside the caller's transaction and does not commit.
    """
    if not hashtags:
        return []
    ids = list((await db.execute(select(Topic.id).where(Topic.name_key.in_(hashtags)))).scalars().all())
    if not ids:
        return []

    now = utcnow()
    await db.execute(_bump(Topic.id.in_(ids), posts_count=Topic.posts_count + 1, updated_at=now))

    seen = set(
        (
            await db.execute(
                select(TopicParticipant.topic_id).where(
                    and_(TopicParticipant.topic_id.in_(ids), TopicParticipant.user_id == user_id)
                )
            )
        ).scalars().all()
    )
    new_ids = [topic_id for topic_id in ids if topic_id not in seen]
    for topic_id in new_ids:
        db.add(TopicParticipant(topic_id=topic_id, user_id=user_id, created_at=now))
    if new_ids:
        await db.flush()
        await db.execute(_bump(Topic.id.in_(new_ids), participants_count=Topic.participants_count + 1))
    return ids
