import logging

import orjson
import pytest

from stylesquare.services import documents, feed, relationships

LEGACY_POSTS = [
    {
        "id": "1717000000000",
        "userId": "u1",
        "userNickname": "Alice",
        "userAvatar": "https://cdn/a.png",
        "postType": "outfitChange",
        "outfitChangeId": "oc_2",
        "resultImageUri": "file:///r2.png",
        "templateName": "Street",
        "description": "second #ootd",
        "createdAt": 1717000600000,
        "likes": ["u2", "u3", "u2"],
        "comments": [
            {"id": "c1", "userId": "u2", "userNickname": "Bob", "content": "nice", "createdAt": 1717000700000},
            {
                "id": "c2",
                "userId": "u1",
                "userNickname": "Alice",
                "content": "thanks",
                "createdAt": 1717000800000,
                "replyToCommentId": "c1",
                "replyToUserId": "u2",
                "replyToNickname": "Bob",
            },
        ],
        "pinnedCommentId": "c1",
        "userRatings": [
            {"userId": "u2", "score": 8, "createdAt": 1717000900000},
            {"score": 3},
            {"userId": "u3", "score": 6},
        ],
    },
    {
        "id": "1716000000000",
        "userId": "u1",
        "userNickname": "Alice",
        "outfitChangeId": "oc_1",
        "createdAt": 1716000000000,
        "likes": [],
        "comments": [],
    },
]


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "   ",
        "undefined",
        "null",
        "[object Object]",
        '[{"userId": "[object Object]"}]',
        "x",
        "abc",
        "[1, 2",
        '{"userId": "u1"}',
        b"\xff\xfe",
    ],
)
def test_parse_document_rejects_damaged_input(raw) -> None:
    assert documents.parse_document(raw) is None


def test_parse_document_accepts_arrays_and_objects() -> None:
    assert documents.parse_document("[]") == []
    assert documents.parse_document(' [{"a": 1}] ') == [{"a": 1}]
    assert documents.parse_document('{"a": 1}', expect=dict) == {"a": 1}


def test_parse_document_logs_corruption(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="stylesquare.services.documents"):
        assert documents.parse_document("[{broken") is None
    assert "corrupted" in caplog.text


def test_normalize_post_drops_ratings_without_user() -> None:
    data = documents.normalize_post(LEGACY_POSTS[0])
    assert data["post_type"] == "outfit_change"
    assert [r["user_id"] for r in data["user_ratings"]] == ["u2", "u3"]
    assert data["created_at"].year == 2024
    assert data["comments"][1]["reply_to_comment_id"] == "c1"


async def test_corrupt_document_imports_nothing_and_store_stays_usable(db) -> None:
    assert await documents.import_square_posts(db, "[object Object]") == 0
    assert await documents.import_square_posts(db, '[{"id": "1", "userId": ') == 0
    assert await feed.list_posts(db) == []

    _, created = await feed.publish_post(db, user_id="u1", user_nickname="Alice", outfit_change_id="oc_1")
    assert created is True


async def test_import_square_posts_restores_children(db) -> None:
    raw = orjson.dumps(LEGACY_POSTS).decode()
    assert await documents.import_square_posts(db, raw) == 2

    posts = await feed.list_posts(db)
    assert [p.outfit_change_id for p in posts] == ["oc_2", "oc_1"]

    details = await feed.get_post_details(db, posts[0].id)
    assert details.likes == ["u2", "u3"]
    assert [c.content for c in details.comments] == ["nice", "thanks"]
    nice, thanks = details.comments
    assert thanks.reply_to_comment_id == nice.id
    assert details.post.pinned_comment_id == nice.id
    assert details.post.hashtags == ["ootd"]
    assert details.average_rating == pytest.approx(7.0)

    # importing the same document again creates nothing new
    assert await documents.import_square_posts(db, raw) == 0
    assert len(await feed.list_posts(db)) == 2


async def test_out_of_range_timestamps_fall_back_to_now(db, caplog) -> None:
    raw = orjson.dumps(
        [
            {
                "userId": "u1",
                "userNickname": "Alice",
                "outfitChangeId": "oc_2",
                "createdAt": 10**16,
                "comments": [{"id": "c1", "userId": "u2", "content": "hi", "createdAt": -(10**18)}],
            },
            {"userId": "u1", "userNickname": "Alice", "outfitChangeId": "oc_1", "createdAt": 1700000000000},
        ]
    ).decode()

    with caplog.at_level(logging.WARNING, logger="stylesquare.services.documents"):
        assert await documents.import_square_posts(db, raw) == 2
    assert "out of range" in caplog.text

    posts = await feed.list_posts(db)
    assert [p.outfit_change_id for p in posts] == ["oc_2", "oc_1"]
    details = await feed.get_post_details(db, posts[0].id)
    assert [c.content for c in details.comments] == ["hi"]


async def test_export_uses_the_legacy_shape(db) -> None:
    await documents.import_square_posts(db, orjson.dumps(LEGACY_POSTS).decode())

    exported = orjson.loads(await documents.export_square_posts(db))
    assert [p["outfitChangeId"] for p in exported] == ["oc_2", "oc_1"]
    newest = exported[0]
    assert newest["postType"] == "outfitChange"
    assert newest["userId"] == "u1"
    assert newest["createdAt"] == 1717000600000
    assert newest["likes"] == ["u2", "u3"]
    assert newest["pinnedCommentId"] == newest["comments"][0]["id"]
    assert {r["userId"] for r in newest["userRatings"]} == {"u2", "u3"}
    assert "pinnedCommentId" not in exported[1]


async def test_import_relationships(db) -> None:
    friends_raw = orjson.dumps(
        [
            {"userId": "u2", "nickname": "Bob", "phone": "222", "addedAt": "2024-05-01T10:00:00.000Z"},
            {"userId": "u1"},
            {"nickname": "nobody"},
        ]
    ).decode()
    following_raw = orjson.dumps([{"userId": "u3", "nickname": "Cara", "followedAt": "2024-05-02T10:00:00Z"}]).decode()

    counts = await documents.import_relationships(
        db, user_id="u1", friends_raw=friends_raw, following_raw=following_raw
    )
    assert counts == {"friends": 1, "following": 1}
    assert await relationships.is_friend(db, "u1", "u2")
    assert [(f.user_id, f.nickname) for f in await relationships.get_following_list(db, "u1")] == [("u3", "Cara")]

    again = await documents.import_relationships(db, user_id="u1", friends_raw=friends_raw, following_raw="undefined")
    assert again == {"friends": 0, "following": 0}
