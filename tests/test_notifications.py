import logging

import pytest

from stylesquare.core.config import settings
from stylesquare.core.errors import NotificationNotFound
from stylesquare.services import notifications


async def test_notifications_are_capped_per_user(db, monkeypatch) -> None:
    monkeypatch.setattr(settings, "notifications_max_per_user", 3)
    for i in range(5):
        await notifications.create_notification(db, user_id="u1", kind="system", message=f"m{i}")
    await notifications.create_notification(db, user_id="u2", kind="system", message="other")

    rows = await notifications.list_notifications(db, "u1")
    assert [r.message for r in rows] == ["m4", "m3", "m2"]
    assert len(await notifications.list_notifications(db, "u2")) == 1


async def test_like_and_comment_skip_self(db) -> None:
    assert (
        await notifications.notify_like(db, user_id="u1", from_user_id="u1", from_nickname="Alice", post_id=1)
        is None
    )
    assert (
        await notifications.notify_comment(
            db, user_id="u1", from_user_id="u1", from_nickname="Alice", post_id=1, comment_content="hi"
        )
        is None
    )
    assert await notifications.list_notifications(db, "u1") == []


async def test_comment_preview_is_truncated(db) -> None:
    row = await notifications.notify_comment(
        db,
        user_id="u1",
        from_user_id="u2",
        from_nickname="Bob",
        post_id=7,
        comment_content="y" * 120,
    )
    assert row.kind == "comment"
    assert row.target_id == "7"
    assert row.target_preview == "y" * 50


async def test_new_post_fans_out_to_followers_but_not_author(db) -> None:
    sent = await notifications.notify_new_post(
        db,
        user_ids=["u2", "u3", "u1"],
        from_user_id="u1",
        from_nickname="Alice",
        post_id=3,
        post_preview="hello",
    )
    assert sent == 2
    assert [r.kind for r in await notifications.list_notifications(db, "u2")] == ["new_post"]
    assert await notifications.list_notifications(db, "u1") == []


async def test_read_state_and_removal(db) -> None:
    first = await notifications.notify_follow(db, user_id="u1", from_user_id="u2", from_nickname="Bob")
    await notifications.notify_follow(db, user_id="u1", from_user_id="u3", from_nickname="Cara")
    assert await notifications.unread_count(db, "u1") == 2

    with pytest.raises(NotificationNotFound):
        await notifications.mark_read(db, user_id="u2", notification_id=first.id)

    read = await notifications.mark_read(db, user_id="u1", notification_id=first.id)
    assert read.is_read is True
    assert await notifications.unread_count(db, "u1") == 1
    assert await notifications.mark_all_read(db, "u1") == 1
    assert await notifications.unread_count(db, "u1") == 0

    await notifications.delete_notification(db, user_id="u1", notification_id=first.id)
    assert len(await notifications.list_notifications(db, "u1")) == 1
    assert await notifications.clear_notifications(db, "u1") == 1


async def test_publish_failure_does_not_fail_the_write(db, monkeypatch, caplog) -> None:
    async def broken_publish(*args, **kwargs):
        raise ConnectionError("redis down")

    monkeypatch.setattr(settings, "realtime_enabled", True)
    monkeypatch.setattr(notifications.redis_client, "publish", broken_publish)

    with caplog.at_level(logging.ERROR, logger="stylesquare.services.notifications"):
        row = await notifications.create_notification(db, user_id="u1", kind="system", message="hello")

    assert row.id is not None
    assert "Failed to publish notification" in caplog.text
    assert await notifications.unread_count(db, "u1") == 1


async def test_publish_goes_to_the_user_channel(db, monkeypatch) -> None:
    published = []

    async def fake_publish(channel, message):
        published.append((channel, message))

    monkeypatch.setattr(settings, "realtime_enabled", True)
    monkeypatch.setattr(notifications.redis_client, "publish", fake_publish)

    await notifications.notify_follow(db, user_id="u9", from_user_id="u2", from_nickname="Bob")
    assert [channel for channel, _ in published] == ["notif:u9"]
    assert '"kind": "follow"' in published[0][1]
