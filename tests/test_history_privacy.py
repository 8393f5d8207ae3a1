from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from stylesquare.core.config import settings
from stylesquare.core.errors import HistoryItemNotFound
from stylesquare.models.common import utcnow
from stylesquare.models.user import PrivacySettings
from stylesquare.services import history, relationships


def _privacy(visibility: str, allow_friends: bool = True) -> PrivacySettings:
    return PrivacySettings(
        user_id="target",
        history_visibility=visibility,
        allow_friends_view_history=allow_friends,
        history_time_range="all",
    )


@pytest.mark.parametrize(
    ("visibility", "allow_friends", "is_self", "are_friends", "expected"),
    [
        ("none", True, True, False, True),
        ("everyone", True, True, False, True),
        ("friends_only", False, True, False, True),
        ("none", True, False, True, False),
        ("everyone", True, False, True, True),
        ("friends_only", True, False, True, True),
        ("friends_only", False, False, True, False),
        ("none", True, False, False, False),
        ("everyone", True, False, False, True),
        ("friends_only", True, False, False, False),
    ],
)
def test_history_visibility_table(visibility, allow_friends, is_self, are_friends, expected) -> None:
    row = _privacy(visibility, allow_friends)
    assert relationships.history_visible(row, is_self=is_self, are_friends=are_friends) is expected


def test_time_range_filter() -> None:
    now = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
    items = [
        SimpleNamespace(name="yesterday", created_at=now - timedelta(days=1)),
        SimpleNamespace(name="last_week", created_at=now - timedelta(days=10)),
        SimpleNamespace(name="last_year", created_at=now - timedelta(days=200)),
    ]

    def names(time_range: str) -> list[str]:
        return [i.name for i in relationships.filter_history_by_range(items, time_range, now=now)]

    assert names("three_days") == ["yesterday"]
    assert names("six_months") == ["yesterday", "last_week"]
    assert names("all") == ["yesterday", "last_week", "last_year"]


def test_time_range_filter_accepts_naive_timestamps() -> None:
    now = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
    item = SimpleNamespace(created_at=datetime(2025, 5, 31, 12, 0))
    assert relationships.filter_history_by_range([item], "three_days", now=now) == [item]


async def _add(db, user_id: str, template: str = "t1"):
    return await history.add_history_item(
        db,
        user_id=user_id,
        original_image_uri="file:///in.png",
        result_image_uri="file:///out.png",
        template_id=template,
        template_name=template.upper(),
    )


async def test_can_view_history_follows_privacy(db) -> None:
    # default is friends only
    assert await relationships.can_view_history(db, viewer_user_id="u2", target_user_id="u1") is False
    assert await relationships.can_view_history(db, viewer_user_id="u1", target_user_id="u1") is True

    req = await relationships.send_friend_request(db, from_user_id="u2", to_user_id="u1")
    await relationships.accept_friend_request(db, request_id=req.id, user_id="u1")
    assert await relationships.can_view_history(db, viewer_user_id="u2", target_user_id="u1") is True

    await relationships.update_privacy_settings(db, "u1", allow_friends_view_history=False)
    assert await relationships.can_view_history(db, viewer_user_id="u2", target_user_id="u1") is False

    await relationships.update_privacy_settings(db, "u1", history_visibility="everyone")
    assert await relationships.can_view_history(db, viewer_user_id="u3", target_user_id="u1") is True

    await relationships.update_privacy_settings(db, "u1", history_visibility="none")
    assert await relationships.can_view_history(db, viewer_user_id="u2", target_user_id="u1") is False
    assert await relationships.can_view_history(db, viewer_user_id="u1", target_user_id="u1") is True


async def test_visible_history_applies_time_window_to_others(db) -> None:
    recent = await _add(db, "u1", "recent")
    old = await _add(db, "u1", "old")
    old.created_at = utcnow() - timedelta(days=5)
    await db.commit()

    await relationships.update_privacy_settings(db, "u1", history_visibility="everyone", history_time_range="three_days")

    seen_by_other = await history.get_visible_history(db, viewer_user_id="u2", target_user_id="u1")
    assert [i.id for i in seen_by_other] == [recent.id]

    seen_by_self = await history.get_visible_history(db, viewer_user_id="u1", target_user_id="u1")
    assert [i.id for i in seen_by_self] == [recent.id, old.id]

    await relationships.update_privacy_settings(db, "u1", history_visibility="none")
    assert await history.get_visible_history(db, viewer_user_id="u2", target_user_id="u1") is None


async def test_history_is_capped_per_user(db, monkeypatch) -> None:
    monkeypatch.setattr(settings, "history_max_items", 2)
    first = await _add(db, "u1", "a")
    second = await _add(db, "u1", "b")
    third = await _add(db, "u1", "c")
    await _add(db, "u2", "z")

    items = await history.list_history(db, "u1")
    assert [i.id for i in items] == [third.id, second.id]
    assert first.id.startswith("outfit_")
    assert len(await history.list_history(db, "u2")) == 1


async def test_history_item_lifecycle(db) -> None:
    item = await _add(db, "u1")
    assert item.allow_square_publish is True
    assert item.is_published_to_square is False

    updated = await history.set_square_publish_permission(db, user_id="u1", item_id=item.id, allow_square_publish=False)
    assert updated.allow_square_publish is False

    assert await history.mark_published(db, user_id="u1", item_id=item.id) is True
    assert (await history.get_history_item(db, user_id="u1", item_id=item.id)).is_published_to_square is True
    assert await history.mark_published(db, user_id="u2", item_id=item.id) is False

    with pytest.raises(HistoryItemNotFound):
        await history.delete_history_item(db, user_id="u2", item_id=item.id)
    await history.delete_history_item(db, user_id="u1", item_id=item.id)
    assert await history.list_history(db, "u1") == []

    await _add(db, "u1")
    await _add(db, "u1")
    assert await history.clear_history(db, "u1") == 2
