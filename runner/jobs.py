"""
Extraction job lifecycle.

A job moves pending -> running -> {completed, failed, cancelled}. Each running
job is one asyncio task with its own browser session; it drives the
scroll-collect rounds itself so it can checkpoint the collected identifiers
and observe cancellation between rounds.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from core.models import Category, ExtractionJob, JobOverrides, JobStatus, Lead, SourceType
from core.settings_manager import settings
from core.store import JobStore
from harvester.exceptions import (
    AlreadyMaterializedError,
    ErrorContext,
    InvalidArgumentError,
    InvalidJobStateError,
    NothingToMaterializeError,
    NotFoundError,
)
from harvester.executor.browser_manager import BrowserSession
from harvester.executor.scroll_collect import ScrollCollectEngine
from harvester.models.collect import CollectedSet, ScrollCollectConfig
from runner.registry import JobHandle, JobRegistry

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50

# Pause after navigation so the lazily rendered list has its first rows
JOB_SETTLE_MS = 3000

_LIST_PROFILE: dict[str, Any] = {
    "extract_selector": "main a span[dir='auto']",
    "selector": "html",
    "attribute": "text",
    "scroll_amount": 500,
    "iterations": 25,
    "delay_ms": 1000,
}

SOURCE_PROFILES: dict[SourceType, dict[str, Any]] = {
    SourceType.FOLLOWERS: _LIST_PROFILE,
    SourceType.LIKES: _LIST_PROFILE,
    SourceType.HASHTAG: _LIST_PROFILE,
    SourceType.COMMENTS: {
        "extract_selector": "main a[role='link'][href^='/']",
        "coordinates": (105, 260),
        "attribute": "href",
        "scroll_amount": 1000,
        "iterations": 25,
        "delay_ms": 2000,
    },
}

SessionFactory = Callable[[], Any]


def build_collect_config(source_type: SourceType, overrides: JobOverrides | None = None) -> ScrollCollectConfig:
    """Scroll-collect settings for a source type, with per-job overrides applied."""
    profile = dict(SOURCE_PROFILES[SourceType(source_type)])
    if overrides is not None:
        if overrides.iterations is not None:
            profile["iterations"] = overrides.iterations
        if overrides.scroll_amount is not None:
            profile["scroll_amount"] = overrides.scroll_amount
        if overrides.delay is not None:
            profile["delay_ms"] = overrides.delay
    return ScrollCollectConfig(**profile)


def default_session_factory() -> BrowserSession:
    return BrowserSession(
        headless=settings.headless,
        storage_state=settings.storage_state,
        navigation_timeout_ms=settings.navigation_timeout_ms,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobLifecycleManager:
    """Creates, runs, cancels and materializes extraction jobs."""

    def __init__(
        self,
        store: JobStore,
        registry: JobRegistry | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self.store = store
        self.registry = registry or JobRegistry()
        self.session_factory = session_factory or default_session_factory

    def _require(self, job_id: str) -> ExtractionJob:
        job = self.store.get_job(job_id)
        if job is None:
            raise NotFoundError(f"Job not found: {job_id}", context=ErrorContext(job_id=job_id))
        return job

    def create(
        self,
        category_id: str | None,
        source_type: str | None,
        source_url: str | None,
        overrides: JobOverrides | dict | None = None,
    ) -> ExtractionJob:
        if not category_id or not source_type or not source_url:
            raise InvalidArgumentError("categoryId, sourceType and sourceUrl are required")

        try:
            job = ExtractionJob(
                category_id=category_id,
                source_type=source_type,
                source_url=source_url,
                config=overrides or JobOverrides(),
            )
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid extraction job: {e.errors()[0]['msg']}") from e

        if self.store.get_category(category_id) is None:
            raise NotFoundError(f"Category not found: {category_id}")

        self.store.save_job(job)
        logger.info(
            f"Created extraction job {job.id} for {job.source_url}",
            extra={"job_id": job.id, "source_type": job.source_type.value},
        )
        return job

    def start(self, job_id: str) -> JobHandle:
        """
        Mark the job running and spawn its run on the current event loop.

        Returns:
            The job's handle; ``handle.task`` completes when the job reaches a terminal state

        Raises:
            NotFoundError: unknown job
            InvalidJobStateError: job is not pending
        """
        job = self._require(job_id)
        if job.status != JobStatus.PENDING or job_id in self.registry:
            raise InvalidJobStateError(
                f"Job {job_id} cannot be started from status '{job.status.value}'",
                context=ErrorContext(job_id=job_id),
            )

        handle = self.registry.register(job_id)
        job.status = JobStatus.RUNNING
        job.started_at = _utcnow()
        self.store.save_job(job)

        handle.task = asyncio.get_running_loop().create_task(self._run(job, handle))
        return handle

    def _checkpoint(self, job_id: str, collected: CollectedSet) -> None:
        job = self._require(job_id)
        job.collected = collected.to_list()
        job.total_extracted = len(collected)
        self.store.save_job(job)

    def _finish(self, job_id: str, status: JobStatus, error: str = "") -> None:
        job = self._require(job_id)
        if not job.can_transition(status):
            logger.warning(f"Job {job_id} is already {job.status.value}, not moving to {status.value}")
            return
        job.status = status
        job.completed_at = _utcnow()
        job.error = error
        self.store.save_job(job)

    async def _collect(self, job: ExtractionJob, handle: JobHandle, session: Any, extra: dict[str, Any]) -> JobStatus:
        """Open the source and run the checkpointed rounds. Returns the terminal status."""
        config = build_collect_config(job.source_type, job.config)
        collected = CollectedSet(config.attribute, job.collected)

        if handle.cancel_requested:
            return JobStatus.CANCELLED

        await session.open()
        await session.goto(job.source_url, settle_ms=JOB_SETTLE_MS)
        engine = ScrollCollectEngine(session.page, config, collected)

        for round_no in range(1, config.iterations + 1):
            if handle.cancel_requested:
                return JobStatus.CANCELLED

            await engine.extract_round()
            self._checkpoint(job.id, engine.collected)
            logger.info(
                f"Round {round_no}/{config.iterations} - Collected: {len(engine.collected)}",
                extra={**extra, "round": round_no},
            )

            if handle.cancel_requested:
                return JobStatus.CANCELLED

            await engine.advance()
            await engine.settle()

        return JobStatus.COMPLETED

    async def _run(self, job: ExtractionJob, handle: JobHandle) -> None:
        extra = {"job_id": job.id, "source_type": job.source_type.value}
        handle.running = True
        session = None
        status = JobStatus.FAILED
        error = ""

        try:
            session = self.session_factory()
            handle.session = session
            status = await self._collect(job, handle, session, extra)
        except asyncio.CancelledError:
            status = JobStatus.CANCELLED
            raise
        except Exception as e:
            if handle.cancel_requested:
                logger.info(f"Job {job.id} interrupted by cancellation: {e}", extra=extra)
                status = JobStatus.CANCELLED
            else:
                logger.exception(f"Extraction job {job.id} failed: {e}", extra=extra)
                status = JobStatus.FAILED
                error = str(e)
        finally:
            handle.running = False
            if session is not None:
                try:
                    await session.close()
                except Exception as e:
                    logger.warning(f"Error closing session for job {job.id}: {e}", extra=extra)
            try:
                self._finish(job.id, status, error)
            finally:
                self.registry.remove(job.id)
            logger.info(f"Extraction job {job.id} finished: {status.value}", extra=extra)

    async def cancel(self, job_id: str) -> JobHandle:
        """Request cancellation and close the job's session so blocked steps return.

        Raises:
            NotFoundError: the job has no active handle
        """
        handle = self.registry.request_cancel(job_id)
        if handle is None:
            raise NotFoundError(f"No active extraction for job {job_id}", context=ErrorContext(job_id=job_id))

        logger.info(f"Cancellation requested for job {job_id}", extra={"job_id": job_id})
        if handle.session is not None:
            try:
                await handle.session.close()
            except Exception as e:
                logger.warning(f"Error closing session for job {job_id}: {e}", extra={"job_id": job_id})
        return handle

    def materialize(self, job_id: str) -> ExtractionJob:
        """Save the job's identifiers as leads in its category, skipping existing ones."""
        job = self._require(job_id)
        if not job.is_terminal:
            raise InvalidJobStateError(
                f"Job {job_id} is still {job.status.value}",
                context=ErrorContext(job_id=job_id),
            )
        if job.saved_to_store:
            raise AlreadyMaterializedError(f"Job {job_id} was already saved", context=ErrorContext(job_id=job_id))
        if not job.collected:
            raise NothingToMaterializeError(f"Job {job_id} has no data to save", context=ErrorContext(job_id=job_id))

        saved = 0
        duplicates = 0
        for username in job.collected:
            if self.store.insert_lead(Lead(username=username, category_id=job.category_id)):
                saved += 1
            else:
                duplicates += 1

        job.saved_to_store = True
        job.total_saved = saved
        job.duplicates_skipped = duplicates
        self.store.save_job(job)
        logger.info(
            f"Saved {saved} leads from job {job_id} ({duplicates} duplicates skipped)",
            extra={"job_id": job_id, "source_type": job.source_type.value},
        )
        return job

    def get(self, job_id: str) -> ExtractionJob:
        return self._require(job_id)

    def list(self, limit: int = DEFAULT_LIST_LIMIT) -> list[ExtractionJob]:
        return self.store.list_jobs(limit)

    def active(self) -> list[str]:
        return self.registry.active_ids()

    def create_category(self, name: str, **fields: Any) -> Category:
        try:
            category = Category(name=name, **fields)
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid category: {e.errors()[0]['msg']}") from e
        self.store.save_category(category)
        return category

    def leads(self, category_id: str) -> list[Lead]:
        if self.store.get_category(category_id) is None:
            raise NotFoundError(f"Category not found: {category_id}")
        return self.store.list_leads(category_id)
