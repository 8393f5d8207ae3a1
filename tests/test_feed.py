import pytest

from stylesquare.core.errors import CommentNotFound, EmptyContent, NotPostAuthor, PostNotFound
from stylesquare.services import directory, feed


async def test_publish_is_idempotent_per_outfit_change(db) -> None:
    post, created = await feed.publish_post(
        db,
        user_id="u1",
        user_nickname="Alice",
        outfit_change_id="oc_42",
        result_image_uri="file:///result.png",
        description="New fit #OOTD #summer",
    )
    assert created is True
    assert post.hashtags == ["ootd", "summer"]

    again, created_again = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_42")
    assert created_again is False
    assert again.id == post.id
    assert len(await feed.list_posts(db)) == 1
    assert await feed.is_published(db, "oc_42")
    assert not await feed.is_published(db, "oc_43")

    details = await feed.get_post_details(db, post.id)
    assert details.likes == []
    assert details.comments == []
    assert details.ratings == []
    assert details.average_rating is None


async def test_publish_records_author_in_directory(db) -> None:
    await feed.publish_post(db, user_id="u1", user_nickname="Alice", user_avatar="https://cdn/a.png")
    user = await directory.get_user(db, "u1")
    assert user is not None
    assert user.nickname == "Alice"
    assert user.avatar_url == "https://cdn/a.png"


async def test_like_toggles(db) -> None:
    post, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_1")

    liked, likes = await feed.like_post(db, post_id=post.id, user_id="u2")
    assert liked is True
    assert likes == ["u2"]

    liked, likes = await feed.like_post(db, post_id=post.id, user_id="u3")
    assert likes == ["u2", "u3"]

    liked, likes = await feed.like_post(db, post_id=post.id, user_id="u2")
    assert liked is False
    assert likes == ["u3"]

    with pytest.raises(PostNotFound):
        await feed.like_post(db, post_id=post.id + 1, user_id="u2")


async def test_rating_is_upserted_and_averaged(db) -> None:
    post, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_1")

    await feed.rate_post(db, post_id=post.id, user_id="u2", score=8)
    await feed.rate_post(db, post_id=post.id, user_id="u3", score=6)
    assert await feed.get_average_user_rating(db, post.id) == pytest.approx(7.0)

    await feed.rate_post(db, post_id=post.id, user_id="u2", score=10)
    assert len(await feed.list_ratings(db, post.id)) == 2
    assert await feed.get_user_rating(db, post_id=post.id, user_id="u2") == 10.0
    assert await feed.get_average_user_rating(db, post.id) == pytest.approx(8.0)

    assert await feed.remove_rating(db, post_id=post.id, user_id="u2") is True
    assert await feed.remove_rating(db, post_id=post.id, user_id="u2") is False
    assert await feed.get_user_rating(db, post_id=post.id, user_id="u2") is None
    assert await feed.get_average_user_rating(db, post.id) == pytest.approx(6.0)


async def test_comments_and_replies(db) -> None:
    post, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_1")

    with pytest.raises(EmptyContent, match="Comment content required"):
        await feed.add_comment(db, post_id=post.id, user_id="u2", user_nickname="Bob", content="   ")

    first = await feed.add_comment(db, post_id=post.id, user_id="u2", user_nickname="Bob", content="Love it")
    reply = await feed.add_comment(
        db,
        post_id=post.id,
        user_id="u1",
        user_nickname="Alice",
        content="Thanks!",
        reply_to_comment_id=first.id,
    )
    assert reply.reply_to_user_id == "u2"
    assert reply.reply_to_nickname == "Bob"
    assert [c.id for c in await feed.list_comments(db, post.id)] == [first.id, reply.id]

    with pytest.raises(NotPostAuthor):
        await feed.delete_comment(db, post_id=post.id, comment_id=reply.id, user_id="u3")

    # the post author may delete any comment on the post
    await feed.delete_comment(db, post_id=post.id, comment_id=first.id, user_id="u1")
    assert [c.id for c in await feed.list_comments(db, post.id)] == [reply.id]


async def test_pin_toggles_and_is_cleared_with_the_comment(db) -> None:
    post, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_1")
    other, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_2")
    comment = await feed.add_comment(db, post_id=post.id, user_id="u2", user_nickname="Bob", content="nice")
    foreign = await feed.add_comment(db, post_id=other.id, user_id="u2", user_nickname="Bob", content="cool")

    assert await feed.pin_comment(db, post_id=post.id, comment_id=comment.id) == comment.id
    assert await feed.pin_comment(db, post_id=post.id, comment_id=comment.id) is None
    assert await feed.pin_comment(db, post_id=post.id, comment_id=comment.id) == comment.id

    with pytest.raises(CommentNotFound):
        await feed.pin_comment(db, post_id=post.id, comment_id=foreign.id)
    with pytest.raises(NotPostAuthor):
        await feed.pin_comment(db, post_id=post.id, comment_id=comment.id, user_id="u2")

    await feed.delete_comment(db, post_id=post.id, comment_id=comment.id)
    refreshed = await feed.get_post(db, post.id)
    assert refreshed.pinned_comment_id is None


async def test_deleting_another_comment_keeps_the_pin(db) -> None:
    post, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_1")
    pinned = await feed.add_comment(db, post_id=post.id, user_id="u2", user_nickname="Bob", content="love it")
    other = await feed.add_comment(db, post_id=post.id, user_id="u3", user_nickname="Cara", content="meh")

    assert await feed.pin_comment(db, post_id=post.id, comment_id=pinned.id) == pinned.id
    await feed.delete_comment(db, post_id=post.id, comment_id=other.id)

    refreshed = await feed.get_post(db, post.id)
    assert refreshed.pinned_comment_id == pinned.id
    assert [c.id for c in await feed.list_comments(db, post.id)] == [pinned.id]


async def test_topic_filter_is_not_crowded_out_by_longer_tags(db) -> None:
    match, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", description="#street look")
    for n in range(5):
        await feed.publish_post(db, user_id="u1", user_nickname="Alice", description=f"#streetwear {n}")

    posts = await feed.list_posts(db, topic="street", limit=2)
    assert [p.id for p in posts] == [match.id]

    posts = await feed.list_posts(db, topic="#STREETWEAR", limit=2)
    assert len(posts) == 2
    assert all("streetwear" in p.hashtags for p in posts)


async def test_nickname_change_propagates_everywhere(db) -> None:
    post, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_1")
    own = await feed.add_comment(db, post_id=post.id, user_id="u1", user_nickname="Alice", content="first!")
    reply = await feed.add_comment(
        db,
        post_id=post.id,
        user_id="u2",
        user_nickname="Bob",
        content="welcome",
        reply_to_comment_id=own.id,
    )

    counts = await feed.update_user_nickname(db, user_id="u1", new_nickname="Alice2")
    assert counts == {"posts": 1, "comments": 1, "replies": 1}

    details = await feed.get_post_details(db, post.id)
    assert details.post.user_nickname == "Alice2"
    by_id = {c.id: c for c in details.comments}
    assert by_id[own.id].user_nickname == "Alice2"
    assert by_id[reply.id].user_nickname == "Bob"
    assert by_id[reply.id].reply_to_nickname == "Alice2"
    assert (await directory.get_user(db, "u1")).nickname == "Alice2"

    with pytest.raises(EmptyContent):
        await feed.update_user_nickname(db, user_id="u1", new_nickname=" ")


async def test_delete_post_removes_children_and_checks_author(db) -> None:
    post, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_1")
    await feed.like_post(db, post_id=post.id, user_id="u2")
    await feed.add_comment(db, post_id=post.id, user_id="u2", user_nickname="Bob", content="wow")
    await feed.rate_post(db, post_id=post.id, user_id="u2", score=9)

    with pytest.raises(NotPostAuthor):
        await feed.delete_post(db, post_id=post.id, user_id="u2")

    await feed.delete_post(db, post_id=post.id, user_id="u1")
    with pytest.raises(PostNotFound):
        await feed.get_post(db, post.id)
    assert await feed.get_likes(db, post.id) == []
    assert await feed.list_ratings(db, post.id) == []

    # the source can be published again once its post is gone
    _, created = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_1")
    assert created is True


async def test_delete_by_outfit_change_id(db) -> None:
    await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_9")

    assert await feed.delete_post_by_outfit_change_id(db, outfit_change_id="oc_9", user_id="u2") is False
    assert await feed.delete_post_by_outfit_change_id(db, outfit_change_id="oc_9", user_id="u1") is True
    assert await feed.delete_post_by_outfit_change_id(db, outfit_change_id="oc_9", user_id="u1") is False
    assert not await feed.is_published(db, "oc_9")


async def test_list_posts_newest_first_with_filters(db) -> None:
    a, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", description="#street look")
    b, _ = await feed.publish_post(db, user_id="u2", user_nickname="Bob", description="#streetwear only")
    c, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", description="plain")

    assert [p.id for p in await feed.list_posts(db)] == [c.id, b.id, a.id]
    assert [p.id for p in await feed.list_posts(db, user_id="u1")] == [c.id, a.id]
    assert [p.id for p in await feed.list_posts(db, topic="#Street")] == [a.id]
    assert [p.id for p in await feed.list_posts(db, cursor=c.id, limit=1)] == [b.id]

    await feed.update_post_description(db, post_id=c.id, description="now #street too", user_id="u1")
    assert [p.id for p in await feed.list_posts(db, topic="street")] == [c.id, a.id]


async def test_example_scenario(db) -> None:
    first, _ = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_42")
    second, created = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_42")
    assert second.id == first.id
    assert created is False

    _, likes = await feed.like_post(db, post_id=first.id, user_id="u2")
    assert likes == ["u2"]
    _, likes = await feed.like_post(db, post_id=first.id, user_id="u2")
    assert likes == []

    await feed.update_user_nickname(db, user_id="u1", new_nickname="Alice2")
    assert (await feed.get_post(db, first.id)).user_nickname == "Alice2"
