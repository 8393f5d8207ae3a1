"""Import and export of the single-blob JSON documents kept by the mobile client.

The client stored every store as one JSON document per key (``square_posts``,
``friends_<id>``, ``following_<id>``). Those documents are frequently damaged
on device, so parsing is forgiving: anything that does not look like a JSON
array/object is treated as an empty document and logged, never raised.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import orjson
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.models.common import as_utc, utcnow
from stylesquare.models.social import Post, PostComment, PostLike, PostRating
from stylesquare.models.user import Follow, Friendship
from stylesquare.services import directory, feed
from stylesquare.services.relationships import normalize_pair

logger = logging.getLogger(__name__)

_LEGACY_POST_TYPES = {"outfitChange": "outfit_change"}
_EXPORT_POST_TYPES = {v: k for k, v in _LEGACY_POST_TYPES.items()}


def parse_document(raw: str | bytes | None, *, expect: type | tuple[type, ...] | None = list) -> Any | None:
    if raw is None:
        return None
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("Document is not valid UTF-8, ignoring it")
            return None
    if not isinstance(raw, str):
        logger.warning("Document is not text, ignoring it")
        return None

    text = raw.strip()
    if not text or text in {"undefined", "null"}:
        return None
    if "[object Object]" in text:
        logger.warning("Detected [object Object] in document, ignoring it")
        return None
    if len(text) < 2:
        logger.warning("Document too short, ignoring it")
        return None
    if text[0] not in "[{":
        logger.warning("Invalid document format, ignoring it")
        return None

    try:
        parsed = orjson.loads(text)
    except orjson.JSONDecodeError:
        logger.warning("Document is corrupted, ignoring it")
        return None

    if expect is not None and not isinstance(parsed, expect):
        logger.warning("Document has unexpected top-level type %s", type(parsed).__name__)
        return None
    return parsed


def _opt_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _timestamp(value: Any) -> datetime:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            logger.warning("Timestamp %r is out of range, using the current time", value)
            return utcnow()
    if isinstance(value, str) and value.strip():
        try:
            return as_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
        except ValueError:
            pass
    return utcnow()


def _millis(value: datetime) -> int:
    return int(as_utc(value).timestamp() * 1000)


def normalize_comment(raw: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": _opt_str(raw.get("id")),
        "user_id": str(raw.get("userId") or ""),
        "user_nickname": str(raw.get("userNickname") or ""),
        "user_avatar": _opt_str(raw.get("userAvatar")),
        "content": str(raw.get("content") or ""),
        "created_at": _timestamp(raw.get("createdAt")),
        "reply_to_comment_id": _opt_str(raw.get("replyToCommentId")),
        "reply_to_user_id": _opt_str(raw.get("replyToUserId")),
        "reply_to_nickname": _opt_str(raw.get("replyToNickname")),
    }


def normalize_post(raw: dict[str, Any]) -> dict[str, Any]:
    likes = raw.get("likes") if isinstance(raw.get("likes"), list) else []
    comments = raw.get("comments") if isinstance(raw.get("comments"), list) else []
    ratings = raw.get("userRatings") if isinstance(raw.get("userRatings"), list) else []
    images = raw.get("customOutfitImages") if isinstance(raw.get("customOutfitImages"), list) else []

    user_ratings = []
    for rating in ratings:
        if not isinstance(rating, dict):
            continue
        user_id = str(rating.get("userId") or "")
        if not user_id:
            continue
        score = rating.get("score")
        user_ratings.append(
            {
                "user_id": user_id,
                "score": float(score) if isinstance(score, (int, float)) and not isinstance(score, bool) else 0.0,
                "created_at": _timestamp(rating.get("createdAt")),
            }
        )

    raw_type = str(raw.get("postType") or "outfitChange")
    return {
        "id": _opt_str(raw.get("id")),
        "user_id": str(raw.get("userId") or ""),
        "user_nickname": str(raw.get("userNickname") or ""),
        "user_avatar": _opt_str(raw.get("userAvatar")),
        "post_type": _LEGACY_POST_TYPES.get(raw_type, raw_type),
        "outfit_change_id": _opt_str(raw.get("outfitChangeId")),
        "original_image_uri": _opt_str(raw.get("originalImageUri")),
        "result_image_uri": _opt_str(raw.get("resultImageUri")),
        "template_name": _opt_str(raw.get("templateName")),
        "custom_outfit_images": [str(x) for x in images if isinstance(x, str)],
        "show_original": bool(raw.get("showOriginal") or False),
        "description": _opt_str(raw.get("description")),
        "created_at": _timestamp(raw.get("createdAt")),
        "likes": [x for x in likes if isinstance(x, str)],
        "comments": [normalize_comment(c) for c in comments if isinstance(c, dict)],
        "pinned_comment_id": _opt_str(raw.get("pinnedCommentId")),
        "user_ratings": user_ratings,
    }


async def _import_post(db: AsyncSession, data: dict[str, Any]) -> bool:
    post, created = await feed.publish_post(
        db,
        user_id=data["user_id"],
        user_nickname=data["user_nickname"] or data["user_id"],
        user_avatar=data["user_avatar"],
        post_type=data["post_type"],
        outfit_change_id=data["outfit_change_id"],
        original_image_uri=data["original_image_uri"],
        result_image_uri=data["result_image_uri"],
        template_name=data["template_name"],
        custom_outfit_images=data["custom_outfit_images"],
        show_original=data["show_original"],
        description=data["description"],
    )
    if not created:
        return False

    post.created_at = data["created_at"]
    for user_id in dict.fromkeys(data["likes"]):
        db.add(PostLike(post_id=post.id, user_id=user_id, created_at=data["created_at"]))

    comment_ids: dict[str, int] = {}
    for comment in data["comments"]:
        row = PostComment(
            post_id=post.id,
            user_id=comment["user_id"],
            user_nickname=comment["user_nickname"],
            user_avatar=comment["user_avatar"],
            content=comment["content"],
            reply_to_comment_id=comment_ids.get(comment["reply_to_comment_id"] or ""),
            reply_to_user_id=comment["reply_to_user_id"],
            reply_to_nickname=comment["reply_to_nickname"],
            created_at=comment["created_at"],
        )
        db.add(row)
        await db.flush()
        if comment["id"]:
            comment_ids[comment["id"]] = row.id

    if data["pinned_comment_id"]:
        post.pinned_comment_id = comment_ids.get(data["pinned_comment_id"])

    latest: dict[str, dict[str, Any]] = {}
    for rating in data["user_ratings"]:
        latest[rating["user_id"]] = rating
    for rating in latest.values():
        db.add(
            PostRating(
                post_id=post.id,
                user_id=rating["user_id"],
                score=rating["score"],
                created_at=rating["created_at"],
            )
        )

    await db.commit()
    return True


async def import_square_posts(db: AsyncSession, raw: str | bytes | None) -> int:
    """Load a legacy ``square_posts`` document; returns the number of posts created."""
    parsed = parse_document(raw, expect=list)
    if parsed is None:
        return 0

    created = 0
    # the document is newest first; insert oldest first so ids follow time
    for item in reversed(parsed):
        if not isinstance(item, dict):
            continue
        data = normalize_post(item)
        if not data["user_id"]:
            continue
        if await _import_post(db, data):
            created += 1
    logger.info("Imported %s square posts", created)
    return created


async def import_relationships(
    db: AsyncSession,
    *,
    user_id: str,
    friends_raw: str | bytes | None = None,
    following_raw: str | bytes | None = None,
) -> dict[str, int]:
    counts = {"friends": 0, "following": 0}

    for entry in parse_document(friends_raw, expect=list) or []:
        if not isinstance(entry, dict) or not entry.get("userId"):
            continue
        other_id = str(entry["userId"])
        if other_id == user_id:
            continue
        await directory.upsert_user(
            db,
            user_id=other_id,
            nickname=_opt_str(entry.get("nickname")),
            avatar_url=_opt_str(entry.get("avatar")),
            commit=False,
        )
        low, high = normalize_pair(user_id, other_id)
        exists = (
            await db.execute(
                select(Friendship.id).where(Friendship.user_low_id == low, Friendship.user_high_id == high)
            )
        ).scalar_one_or_none()
        if exists is None:
            db.add(Friendship(user_low_id=low, user_high_id=high, created_at=_timestamp(entry.get("addedAt"))))
            await db.flush()
            counts["friends"] += 1

    for entry in parse_document(following_raw, expect=list) or []:
        if not isinstance(entry, dict) or not entry.get("userId"):
            continue
        other_id = str(entry["userId"])
        if other_id == user_id:
            continue
        await directory.upsert_user(
            db,
            user_id=other_id,
            nickname=_opt_str(entry.get("nickname")),
            avatar_url=_opt_str(entry.get("avatar")),
            commit=False,
        )
        exists = (
            await db.execute(
                select(Follow.id).where(Follow.follower_user_id == user_id, Follow.followee_user_id == other_id)
            )
        ).scalar_one_or_none()
        if exists is None:
            db.add(
                Follow(
                    follower_user_id=user_id,
                    followee_user_id=other_id,
                    created_at=_timestamp(entry.get("followedAt")),
                )
            )
            await db.flush()
            counts["following"] += 1

    await db.commit()
    logger.info("Imported relationships for %s: %s", user_id, counts)
    return counts


def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


def _export_post(details: feed.PostDetails) -> dict[str, Any]:
    post = details.post
    return _drop_none(
        {
            "id": str(post.id),
            "userId": post.user_id,
            "userNickname": post.user_nickname,
            "userAvatar": post.user_avatar,
            "postType": _EXPORT_POST_TYPES.get(post.post_type, post.post_type),
            "outfitChangeId": post.outfit_change_id,
            "originalImageUri": post.original_image_uri,
            "resultImageUri": post.result_image_uri,
            "templateName": post.template_name,
            "customOutfitImages": list(post.custom_outfit_images or []),
            "showOriginal": post.show_original,
            "description": post.description,
            "createdAt": _millis(post.created_at),
            "likes": list(details.likes),
            "comments": [
                _drop_none(
                    {
                        "id": str(c.id),
                        "userId": c.user_id,
                        "userNickname": c.user_nickname,
                        "userAvatar": c.user_avatar,
                        "content": c.content,
                        "createdAt": _millis(c.created_at),
                        "replyToCommentId": str(c.reply_to_comment_id) if c.reply_to_comment_id else None,
                        "replyToUserId": c.reply_to_user_id,
                        "replyToNickname": c.reply_to_nickname,
                    }
                )
                for c in details.comments
            ],
            "pinnedCommentId": str(post.pinned_comment_id) if post.pinned_comment_id else None,
            "userRatings": [
                {"userId": r.user_id, "score": r.score, "createdAt": _millis(r.created_at)}
                for r in details.ratings
            ],
        }
    )


async def export_square_posts(db: AsyncSession) -> str:
    posts = (await db.execute(select(Post).order_by(Post.created_at.desc(), Post.id.desc()))).scalars().all()
    details = await feed.load_post_details(db, posts)
    return orjson.dumps([_export_post(d) for d in details]).decode("utf-8")
