from stylesquare.models.history import OutfitChangeHistory
from stylesquare.models.notification import Notification
from stylesquare.models.social import Post, PostComment, PostLike, PostRating
from stylesquare.models.topic import Topic, TopicFollow, TopicParticipant
from stylesquare.models.user import DirectoryUser, Follow, FriendRequest, Friendship, PrivacySettings

__all__ = [
    "DirectoryUser",
    "Follow",
    "FriendRequest",
    "Friendship",
    "Notification",
    "OutfitChangeHistory",
    "Post",
    "PostComment",
    "PostLike",
    "PostRating",
    "PrivacySettings",
    "Topic",
    "TopicFollow",
    "TopicParticipant",
]
