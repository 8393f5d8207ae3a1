import pytest

from stylesquare.core.errors import (
    AlreadyFollowing,
    AlreadyFriends,
    CannotAddSelf,
    CannotFollowSelf,
    IncomingRequestPending,
    InvalidSetting,
    NotYourRequest,
    RequestAlreadyProcessed,
    RequestAlreadySent,
    RequestNotFound,
)
from stylesquare.services import directory, feed, relationships


async def _make_friends(db, a: str, b: str) -> None:
    req = await relationships.send_friend_request(db, from_user_id=a, to_user_id=b)
    await relationships.accept_friend_request(db, request_id=req.id, user_id=b)


async def test_accepting_a_request_makes_both_users_friends(db) -> None:
    await directory.upsert_user(db, user_id="u1", nickname="Alice", phone="111")
    await directory.upsert_user(db, user_id="u2", nickname="Bob", phone="222")

    req = await relationships.send_friend_request(db, from_user_id="u1", to_user_id="u2", from_nickname="Alice")
    assert req.status == "pending"
    assert req.from_user_nickname == "Alice"
    assert await relationships.has_pending_request(db, "u1", "u2")
    assert await relationships.pending_requests_count(db, "u2") == 1

    accepted = await relationships.accept_friend_request(db, request_id=req.id, user_id="u2")
    assert accepted.status == "accepted"
    assert await relationships.is_friend(db, "u1", "u2")
    assert await relationships.is_friend(db, "u2", "u1")
    assert not await relationships.has_pending_request(db, "u1", "u2")

    alice_friends = await relationships.list_friends(db, "u1")
    bob_friends = await relationships.list_friends(db, "u2")
    assert [(f.user_id, f.nickname, f.phone) for f in alice_friends] == [("u2", "Bob", "222")]
    assert [(f.user_id, f.nickname, f.phone) for f in bob_friends] == [("u1", "Alice", "111")]


async def test_friend_request_guards(db) -> None:
    with pytest.raises(CannotAddSelf, match="Cannot add yourself"):
        await relationships.send_friend_request(db, from_user_id="u1", to_user_id="u1")

    await relationships.send_friend_request(db, from_user_id="u1", to_user_id="u2")
    with pytest.raises(RequestAlreadySent, match="Request already sent"):
        await relationships.send_friend_request(db, from_user_id="u1", to_user_id="u2")
    with pytest.raises(IncomingRequestPending):
        await relationships.send_friend_request(db, from_user_id="u2", to_user_id="u1")

    await _make_friends(db, "u3", "u4")
    with pytest.raises(AlreadyFriends, match="Already friends"):
        await relationships.send_friend_request(db, from_user_id="u4", to_user_id="u3")


async def test_only_the_recipient_can_answer_and_only_once(db) -> None:
    req = await relationships.send_friend_request(db, from_user_id="u1", to_user_id="u2")

    with pytest.raises(NotYourRequest):
        await relationships.accept_friend_request(db, request_id=req.id, user_id="u1")
    with pytest.raises(RequestNotFound):
        await relationships.accept_friend_request(db, request_id=req.id + 100, user_id="u2")

    rejected = await relationships.reject_friend_request(db, request_id=req.id, user_id="u2")
    assert rejected.status == "rejected"
    assert not await relationships.is_friend(db, "u1", "u2")

    with pytest.raises(RequestAlreadyProcessed):
        await relationships.accept_friend_request(db, request_id=req.id, user_id="u2")


async def test_sender_can_cancel_a_pending_request(db) -> None:
    req = await relationships.send_friend_request(db, from_user_id="u1", to_user_id="u2")

    with pytest.raises(NotYourRequest):
        await relationships.cancel_friend_request(db, request_id=req.id, user_id="u2")

    cancelled = await relationships.cancel_friend_request(db, request_id=req.id, user_id="u1")
    assert cancelled.status == "cancelled"
    assert await relationships.list_sent_requests(db, "u1") == []
    assert await relationships.list_incoming_requests(db, "u2") == []

    # a fresh request is allowed once the previous one is closed
    again = await relationships.send_friend_request(db, from_user_id="u1", to_user_id="u2")
    assert again.status == "pending"


async def test_remove_friend_clears_both_sides(db) -> None:
    await _make_friends(db, "u1", "u2")

    assert await relationships.remove_friend(db, user_id="u2", friend_user_id="u1") is True
    assert await relationships.list_friends(db, "u1") == []
    assert await relationships.list_friends(db, "u2") == []
    assert await relationships.remove_friend(db, user_id="u2", friend_user_id="u1") is False

    # requests between the two were dropped, so they can start over
    req = await relationships.send_friend_request(db, from_user_id="u2", to_user_id="u1")
    assert req.status == "pending"


async def test_follow_edges_and_counts(db) -> None:
    with pytest.raises(CannotFollowSelf, match="Cannot follow yourself"):
        await relationships.follow_user(db, follower_user_id="u1", followee_user_id="u1")

    await relationships.follow_user(db, follower_user_id="u1", followee_user_id="u2", followee_nickname="Bob")
    with pytest.raises(AlreadyFollowing):
        await relationships.follow_user(db, follower_user_id="u1", followee_user_id="u2")

    await relationships.follow_user(db, follower_user_id="u3", followee_user_id="u2")

    assert await relationships.is_following(db, "u1", "u2")
    assert not await relationships.is_following(db, "u2", "u1")
    assert not await relationships.is_mutual_follow(db, "u1", "u2")
    assert await relationships.get_followers_count(db, "u2") == 2
    assert await relationships.get_following_count(db, "u1") == 1

    following = await relationships.get_following_list(db, "u1")
    assert [(f.user_id, f.nickname) for f in following] == [("u2", "Bob")]
    followers = await relationships.get_followers_list(db, "u2")
    assert [f.user_id for f in followers] == ["u1", "u3"]

    await relationships.follow_user(db, follower_user_id="u2", followee_user_id="u1")
    assert await relationships.is_mutual_follow(db, "u1", "u2")

    assert await relationships.unfollow_user(db, follower_user_id="u1", followee_user_id="u2") is True
    assert await relationships.unfollow_user(db, follower_user_id="u1", followee_user_id="u2") is False
    assert await relationships.get_followers_count(db, "u2") == 1


async def test_user_stats_sum_likes_over_posts(db) -> None:
    first, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_1")
    second, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_2")
    await feed.like_post(db, post_id=first.id, user_id="u2")
    await feed.like_post(db, post_id=first.id, user_id="u3")
    await feed.like_post(db, post_id=second.id, user_id="u2")
    await relationships.follow_user(db, follower_user_id="u2", followee_user_id="u1")

    stats = await relationships.get_user_stats(db, "u1")
    assert stats.posts_count == 2
    assert stats.total_likes == 3
    assert stats.followers_count == 1
    assert stats.following_count == 0


async def test_privacy_settings_defaults_and_update(db) -> None:
    defaults = await relationships.get_privacy_settings(db, "u1")
    assert defaults.allow_friends_view_history is True
    assert defaults.history_visibility == "friends_only"
    assert defaults.history_time_range == "all"

    updated = await relationships.update_privacy_settings(db, "u1", history_time_range="three_days")
    assert updated.history_time_range == "three_days"
    assert updated.history_visibility == "friends_only"

    updated = await relationships.update_privacy_settings(db, "u1", allow_friends_view_history=False)
    assert updated.allow_friends_view_history is False
    assert updated.history_time_range == "three_days"

    with pytest.raises(InvalidSetting):
        await relationships.update_privacy_settings(db, "u1", history_visibility="strangers")
