from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class _Wire(BaseModel):
    # Backend adds fields over time; unknown keys are not an error.
    model_config = ConfigDict(extra="ignore")


# --- auth ---


class CurrentUser(_Wire):
    id: str
    login_name: str
    display_name: str
    email: Optional[str] = None
    email_verified_at: Optional[str] = None
    banner_id: Optional[str] = None
    preferred_language: Optional[str] = None


class LoginResponse(_Wire):
    success: bool
    user: Optional[CurrentUser] = None
    error: Optional[str] = None


class SignupResponse(_Wire):
    success: bool
    user: Optional[CurrentUser] = None
    error: Optional[str] = None


class LogoutResponse(_Wire):
    success: bool


class DeleteAccountResponse(_Wire):
    success: bool
    error: Optional[str] = None


# --- search ---


class SearchUserResult(_Wire):
    id: str
    login_name: str
    display_name: str


class SearchPostResult(_Wire):
    id: str
    image_url: str
    image_width: Optional[int] = None
    image_height: Optional[int] = None
    is_sensitive: bool = False


class SearchResponse(_Wire):
    users: list[SearchUserResult] = []
    posts: list[SearchPostResult] = []


# --- notifications ---


class NotificationType(str, Enum):
    COMMENT = "Comment"
    COMMENT_REPLY = "CommentReply"
    REACTION = "Reaction"
    FOLLOW = "Follow"
    GUESTBOOK_ENTRY = "GuestbookEntry"
    GUESTBOOK_REPLY = "GuestbookReply"
    MENTION = "Mention"
    POST_REPLY = "PostReply"


class NotificationItem(_Wire):
    id: str
    recipient_id: str
    actor_id: str
    actor_name: str
    actor_handle: str
    notification_type: Optional[NotificationType] = None
    post_id: Optional[str] = None
    comment_id: Optional[str] = None
    reaction_iri: Optional[str] = None
    reaction_emoji: Optional[str] = None
    guestbook_entry_id: Optional[str] = None
    read_at: Optional[datetime] = None
    created_at: datetime
    post_title: Optional[str] = None
    post_author_login_name: Optional[str] = None
    post_image_filename: Optional[str] = None
    post_image_url: Optional[str] = None
    post_image_width: Optional[int] = None
    post_image_height: Optional[int] = None
    comment_content: Optional[str] = None
    comment_content_html: Optional[str] = None
    guestbook_content: Optional[str] = None

    @field_validator("notification_type", mode="before")
    @classmethod
    def _unknown_type_as_none(cls, v: object) -> object:
        known = {t.value for t in NotificationType}
        return v if isinstance(v, str) and v in known else None

    @property
    def is_read(self) -> bool:
        return self.read_at is not None


class NotificationsResponse(_Wire):
    notifications: list[NotificationItem] = []
    total: int = 0
    has_more: bool = False

    @field_validator("notifications")
    @classmethod
    def _drop_unknown_types(cls, v: list[NotificationItem]) -> list[NotificationItem]:
        # Types added server-side after this build are skipped, not fatal.
        return [n for n in v if n.notification_type is not None]


class UnreadCountResponse(_Wire):
    count: int


class MarkAllReadResponse(_Wire):
    count: int


class MarkNotificationReadResponse(_Wire):
    notification: Optional[NotificationItem] = None


class DeleteNotificationResponse(_Wire):
    success: bool
    error: Optional[str] = None


# --- devices / push ---


class RegisterDeviceResponse(_Wire):
    id: str
    device_token: str
    platform: str
    created_at: str


class DeleteDeviceResponse(_Wire):
    success: bool


class RegisterPushTokenResponse(_Wire):
    id: str
    device_token: str
    platform: str
    created_at: str


class DeletePushTokenResponse(_Wire):
    success: bool


# --- drafts ---


class DraftPost(_Wire):
    id: str
    title: Optional[str] = None
    image_url: str
    created_at: str
    community_id: Optional[str] = None
    width: int
    height: int


class DraftPostsResponse(_Wire):
    drafts: list[DraftPost] = []
