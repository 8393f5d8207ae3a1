from __future__ import annotations


class StoreError(Exception):
    """Base class for store failures that callers can map to a user-facing message."""

    status_code = 400
    code = "store_error"
    detail = "Store operation failed"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class NotFoundError(StoreError):
    status_code = 404
    code = "not_found"
    detail = "Not found"


class ForbiddenError(StoreError):
    status_code = 403
    code = "forbidden"
    detail = "Forbidden"


class ConflictError(StoreError):
    status_code = 409
    code = "conflict"
    detail = "Conflict"


class UserNotFound(NotFoundError):
    code = "user_not_found"
    detail = "User not found"


class PostNotFound(NotFoundError):
    code = "post_not_found"
    detail = "Post not found"


class CommentNotFound(NotFoundError):
    code = "comment_not_found"
    detail = "Comment not found"


class RequestNotFound(NotFoundError):
    code = "request_not_found"
    detail = "Request not found"


class HistoryItemNotFound(NotFoundError):
    code = "history_item_not_found"
    detail = "History item not found"


class NotificationNotFound(NotFoundError):
    code = "notification_not_found"
    detail = "Notification not found"


class CannotAddSelf(StoreError):
    code = "cannot_add_self"
    detail = "Cannot add yourself"


class AlreadyFriends(ConflictError):
    code = "already_friends"
    detail = "Already friends"


class RequestAlreadySent(ConflictError):
    code = "request_already_sent"
    detail = "Request already sent"


class IncomingRequestPending(ConflictError):
    code = "incoming_request_pending"
    detail = "Incoming friend request pending: accept it"


class RequestAlreadyProcessed(StoreError):
    code = "request_already_processed"
    detail = "Request already processed"


class NotYourRequest(ForbiddenError):
    code = "not_your_request"
    detail = "Not your request"


class CannotFollowSelf(StoreError):
    code = "cannot_follow_self"
    detail = "Cannot follow yourself"


class AlreadyFollowing(ConflictError):
    code = "already_following"
    detail = "Already following"


class NotPostAuthor(ForbiddenError):
    code = "not_post_author"
    detail = "Only the author can do this"


class EmptyContent(StoreError):
    code = "empty_content"
    detail = "Content is required"


class InvalidSetting(StoreError):
    code = "invalid_setting"
    detail = "Invalid setting value"


class TopicNotFound(NotFoundError):
    code = "topic_not_found"
    detail = "Topic not found"


class EmptyTopicName(StoreError):
    code = "empty_topic_name"
    detail = "Topic name is required"


class InvalidTopicCategory(StoreError):
    code = "invalid_topic_category"
    detail = "Unknown topic category"
