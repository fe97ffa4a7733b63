"""
Extraction job data models

This module defines the Pydantic models persisted by the job store:
- ExtractionJob: one harvesting run over a source list, with its checkpoint
- Category: the grouping leads are filed under (owned by the record store)
- Lead: one harvested identifier within a category

Field aliases are camelCase, matching the JSON exposed to API clients.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED})

_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.RUNNING}),
    JobStatus.RUNNING: TERMINAL_STATUSES,
}


class SourceType(str, Enum):
    FOLLOWERS = "followers"
    COMMENTS = "comments"
    LIKES = "likes"
    HASHTAG = "hashtag"


class JobOverrides(BaseModel):
    """Optional per-job overrides of the source type's scroll profile."""

    model_config = ConfigDict(populate_by_name=True)

    iterations: int | None = Field(default=None, ge=1)
    scroll_amount: int | None = Field(default=None, alias="scrollAmount")
    delay: int | None = Field(default=None, ge=0, description="Inter-round delay in ms")


class ExtractionJob(BaseModel):
    """
    One extraction run and its last checkpoint.

    Attributes:
        collected: identifiers seen so far (snapshot at the last checkpoint)
        total_extracted: size of ``collected`` at the last checkpoint
        saved_to_store: set once the identifiers were materialized as leads
        error: fault text of a failed run, verbatim
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    category_id: str = Field(alias="categoryId")
    source_type: SourceType = Field(alias="sourceType")
    source_url: str = Field(alias="sourceUrl", min_length=1)
    status: JobStatus = JobStatus.PENDING
    config: JobOverrides = Field(default_factory=JobOverrides)

    collected: list[str] = Field(default_factory=list)
    total_extracted: int = Field(default=0, alias="totalExtracted")
    saved_to_store: bool = Field(default=False, alias="savedToStore")
    total_saved: int = Field(default=0, alias="totalSaved")
    duplicates_skipped: int = Field(default=0, alias="duplicatesSkipped")

    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    started_at: datetime | None = Field(default=None, alias="startedAt")
    completed_at: datetime | None = Field(default=None, alias="completedAt")
    error: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def can_transition(self, status: JobStatus) -> bool:
        return status in _TRANSITIONS.get(self.status, frozenset())

    def to_public_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Category(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    name: str = Field(min_length=1)
    description: str = ""
    source_type: str = Field(default="followers", alias="sourceType")
    source_url: str = Field(default="", alias="sourceUrl")
    is_active: bool = Field(default=True, alias="isActive")


class Lead(BaseModel):
    """A harvested identifier. Unique per (category_id, username)."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    id: str = Field(default_factory=_new_id)
    username: str = Field(min_length=1)
    category_id: str = Field(alias="categoryId")
    extracted_at: datetime = Field(default_factory=_utcnow, alias="extractedAt")
    status: str = "new"
