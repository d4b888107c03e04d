"""Edge kinds and the table/columns each one is keyed on."""

from dataclasses import dataclass
from enum import Enum

from vidshare.db.models import Like, Subscription


class EdgeKind(str, Enum):
    LIKE_VIDEO = "like:video"
    LIKE_COMMENT = "like:comment"
    LIKE_TWEET = "like:tweet"
    SUBSCRIPTION = "subscription"


@dataclass(frozen=True)
class EdgeSpec:
    """Where an edge kind lives: its model, actor column and target column."""

    model: type
    actor_field: str
    target_field: str


EDGE_SPECS: dict[EdgeKind, EdgeSpec] = {
    EdgeKind.LIKE_VIDEO: EdgeSpec(Like, "liked_by", "video_id"),
    EdgeKind.LIKE_COMMENT: EdgeSpec(Like, "liked_by", "comment_id"),
    EdgeKind.LIKE_TWEET: EdgeSpec(Like, "liked_by", "tweet_id"),
    EdgeKind.SUBSCRIPTION: EdgeSpec(Subscription, "subscriber_id", "channel_id"),
}


def spec_for(kind: EdgeKind | str) -> EdgeSpec:
    """Return the EdgeSpec for ``kind`` (enum member or its string value)."""
    return EDGE_SPECS[EdgeKind(kind)]
