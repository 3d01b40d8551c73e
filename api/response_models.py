"""
Response bodies for the notification and settings endpoints.

Each route declares one of these as its response_model, so responses are
validated on the way out and show up with real fields in /docs.
"""

from typing import Any

from pydantic import BaseModel, Field

# ==== Notifications ====


class NotificationModel(BaseModel):
    """One entry of the notification log."""

    id: str
    type: str = Field(description="deadline, buffer, unscheduled or weekly_review")
    message: str
    read: bool
    created_at: str = Field(description="ISO timestamp")


class NotificationListResponse(BaseModel):
    """Notification log, newest first."""

    items: list[NotificationModel] = Field(default_factory=list)
    total: int = Field(description="Number of items returned")
    unread: int = Field(description="Unread notifications in the whole log")


class UnreadCountResponse(BaseModel):
    unread: int


class SyncResponse(BaseModel):
    """Result of one notification sync."""

    emitted: list[NotificationModel] = Field(default_factory=list)
    total: int = Field(description="Notifications in the log after the sync")


# ==== Mutation Result ====
# Used by POST/PATCH/DELETE endpoints that return {success: bool, ...}.


class MutationResponse(BaseModel):
    """Standard mutation result."""

    success: bool = Field(description="Whether the operation succeeded")

    model_config = {"extra": "allow"}


# ==== Settings ====


class SettingsResponse(BaseModel):
    """Planning settings; shape mirrors krocs.models.Settings."""

    model_config = {"extra": "allow"}

    weekly_available_time: int
    monthly_available_time: int
    weekly_global_buffer: int
    monthly_global_buffer: int
    global_buffer_policy: str
    notifications: dict[str, Any]


# ==== Health Check ====


class HealthResponse(BaseModel):
    """Health check result."""

    status: str = Field(description="healthy or error")
    version: str = Field(description="Storage format version")
    timestamp: str = Field(description="ISO timestamp")
