"""
Job and record persistence.

Two implementations of the same interface:
- MemoryStore: process-local, used by the API server default and tests
- JsonFileStore: one JSON document per job under a data directory, plus
  ``categories.json`` and ``leads.json`` for the record store side

Stores return copies; mutating a returned model never changes stored state.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Protocol

from core.models import Category, ExtractionJob, Lead

logger = logging.getLogger(__name__)


class JobStore(Protocol):
    def get_job(self, job_id: str) -> ExtractionJob | None: ...

    def save_job(self, job: ExtractionJob) -> None: ...

    def list_jobs(self, limit: int = 50) -> list[ExtractionJob]: ...

    def get_category(self, category_id: str) -> Category | None: ...

    def save_category(self, category: Category) -> None: ...

    def insert_lead(self, lead: Lead) -> bool: ...

    def list_leads(self, category_id: str | None = None) -> list[Lead]: ...


def _newest_first(jobs: list[ExtractionJob], limit: int) -> list[ExtractionJob]:
    # Reversed first so equal timestamps still list the later insert first
    jobs.reverse()
    jobs.sort(key=lambda j: j.created_at, reverse=True)
    return jobs[:limit]


class MemoryStore:
    """In-memory store guarded by a lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._jobs: dict[str, ExtractionJob] = {}
        self._categories: dict[str, Category] = {}
        self._leads: dict[tuple[str, str], Lead] = {}

    def get_job(self, job_id: str) -> ExtractionJob | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    def save_job(self, job: ExtractionJob) -> None:
        with self._lock:
            self._jobs[job.id] = job.model_copy(deep=True)

    def list_jobs(self, limit: int = 50) -> list[ExtractionJob]:
        with self._lock:
            jobs = [job.model_copy(deep=True) for job in self._jobs.values()]
        return _newest_first(jobs, limit)

    def get_category(self, category_id: str) -> Category | None:
        with self._lock:
            category = self._categories.get(category_id)
            return category.model_copy() if category else None

    def save_category(self, category: Category) -> None:
        with self._lock:
            self._categories[category.id] = category.model_copy()

    def insert_lead(self, lead: Lead) -> bool:
        """Insert unless (category, username) already exists. Returns True if inserted."""
        key = (lead.category_id, lead.username)
        with self._lock:
            if key in self._leads:
                return False
            self._leads[key] = lead.model_copy()
            return True

    def list_leads(self, category_id: str | None = None) -> list[Lead]:
        with self._lock:
            return [
                lead.model_copy()
                for lead in self._leads.values()
                if category_id is None or lead.category_id == category_id
            ]


class JsonFileStore:
    """Directory-backed store. Writes go to a temp file and are renamed into place."""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.jobs_dir = self.data_dir / "jobs"
        self.jobs_dir.mkdir(parents=True, exist_ok=True)
        self._categories_path = self.data_dir / "categories.json"
        self._leads_path = self.data_dir / "leads.json"
        self._lock = threading.Lock()

    def _write_json(self, path: Path, data: Any) -> None:
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)
        os.replace(tmp_path, path)

    def _read_json(self, path: Path, default: Any) -> Any:
        if not path.exists():
            return default
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read {path}: {e}")
            return default

    def _job_path(self, job_id: str) -> Path:
        return self.jobs_dir / f"{job_id}.json"

    def get_job(self, job_id: str) -> ExtractionJob | None:
        path = self._job_path(job_id)
        with self._lock:
            data = self._read_json(path, None)
        return ExtractionJob.model_validate(data) if data else None

    def save_job(self, job: ExtractionJob) -> None:
        with self._lock:
            self._write_json(self._job_path(job.id), job.model_dump(mode="json", by_alias=True))

    def list_jobs(self, limit: int = 50) -> list[ExtractionJob]:
        jobs: list[ExtractionJob] = []
        with self._lock:
            for path in self.jobs_dir.glob("*.json"):
                data = self._read_json(path, None)
                if data:
                    jobs.append(ExtractionJob.model_validate(data))
        return _newest_first(jobs, limit)

    def get_category(self, category_id: str) -> Category | None:
        with self._lock:
            categories = self._read_json(self._categories_path, {})
        data = categories.get(category_id)
        return Category.model_validate(data) if data else None

    def save_category(self, category: Category) -> None:
        with self._lock:
            categories = self._read_json(self._categories_path, {})
            categories[category.id] = category.model_dump(mode="json", by_alias=True)
            self._write_json(self._categories_path, categories)

    def insert_lead(self, lead: Lead) -> bool:
        with self._lock:
            leads = self._read_json(self._leads_path, [])
            for existing in leads:
                if existing.get("categoryId") == lead.category_id and existing.get("username") == lead.username:
                    return False
            leads.append(lead.model_dump(mode="json", by_alias=True))
            self._write_json(self._leads_path, leads)
            return True

    def list_leads(self, category_id: str | None = None) -> list[Lead]:
        with self._lock:
            leads = self._read_json(self._leads_path, [])
        return [
            Lead.model_validate(data)
            for data in leads
            if category_id is None or data.get("categoryId") == category_id
        ]
