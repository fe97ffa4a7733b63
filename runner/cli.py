from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from core.models import ExtractionJob, JobOverrides
from core.settings_manager import settings
from core.store import JsonFileStore
from harvester.exceptions import HarvesterError
from harvester.executor.browser_manager import BrowserSession
from runner.jobs import JobLifecycleManager
from runner.task_mode import load_task_file, run_task_file
from utils.logger import setup_logging

logger = logging.getLogger(__name__)

console = Console()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="lead-harvester", description="Harvest identifiers from scrolling lists")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--data-dir", help="Job store directory (or set HARVESTER_DATA_DIR)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a task file against one browser session")
    run_parser.add_argument("task_file", help="YAML or JSON task file")
    run_parser.add_argument("--output-dir", help="Directory for saveTo files (or set HARVESTER_OUTPUT_DIR)")
    run_parser.add_argument("--headless", action="store_true", help="Run the browser headless")

    job_parser = subparsers.add_parser("job", help="Manage extraction jobs in the local store")
    job_sub = job_parser.add_subparsers(dest="job_command", required=True)

    create = job_sub.add_parser("create", help="Create a pending extraction job")
    create.add_argument("--category", dest="category_id", help="Category id")
    create.add_argument("--category-name", help="Create a new category with this name")
    create.add_argument("--source-type", required=True, choices=["followers", "comments", "likes", "hashtag"])
    create.add_argument("--source-url", required=True)
    create.add_argument("--iterations", type=int)
    create.add_argument("--scroll-amount", type=int)
    create.add_argument("--delay", type=int, help="Delay between rounds in ms")

    start = job_sub.add_parser("start", help="Run a pending job to completion")
    start.add_argument("job_id")

    status = job_sub.add_parser("status", help="Show one job, or the most recent jobs")
    status.add_argument("job_id", nargs="?")
    status.add_argument("--limit", type=int, default=20)

    cancel = job_sub.add_parser("cancel", help="Cancel a job running in this process")
    cancel.add_argument("job_id")

    save = job_sub.add_parser("save", help="Save a finished job's identifiers as leads")
    save.add_argument("job_id")

    serve = subparsers.add_parser("serve", help="Start the extraction API server")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser.parse_args(argv)


def _print_jobs(jobs: list[ExtractionJob]) -> None:
    table = Table(title="Extraction jobs")
    table.add_column("ID", style="cyan")
    table.add_column("Source")
    table.add_column("Status")
    table.add_column("Extracted", justify="right")
    table.add_column("Saved", justify="right")
    table.add_column("Error", style="red")
    for job in jobs:
        table.add_row(
            job.id,
            f"{job.source_type.value} {job.source_url}",
            job.status.value,
            str(job.total_extracted),
            str(job.total_saved) if job.saved_to_store else "-",
            job.error,
        )
    console.print(table)


async def _run_task_file(args: argparse.Namespace) -> int:
    task_path = Path(args.task_file)
    task_file = load_task_file(task_path)

    session = BrowserSession(
        headless=args.headless or settings.headless,
        user_data_dir=settings.user_data_dir,
        navigation_timeout_ms=settings.navigation_timeout_ms,
    )
    await session.open()
    try:
        result = await run_task_file(
            task_file,
            session,
            output_dir=args.output_dir or settings.output_dir,
            base_dir=task_path.parent,
        )
    finally:
        await session.close()

    return 0 if result.ok else 1


async def _start_job(manager: JobLifecycleManager, job_id: str) -> ExtractionJob:
    handle = manager.start(job_id)
    try:
        await handle.task
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Interrupted, cancelling job...")
        await manager.cancel(job_id)
        raise
    return manager.get(job_id)


def _job_command(args: argparse.Namespace, manager: JobLifecycleManager) -> int:
    if args.job_command == "create":
        category_id = args.category_id
        if args.category_name:
            category_id = manager.create_category(
                args.category_name, source_type=args.source_type, source_url=args.source_url
            ).id
        overrides = JobOverrides(iterations=args.iterations, scroll_amount=args.scroll_amount, delay=args.delay)
        job = manager.create(category_id, args.source_type, args.source_url, overrides)
        console.print(f"[green]Created job[/green] {job.id} (category {job.category_id})")
        return 0

    if args.job_command == "start":
        job = asyncio.run(_start_job(manager, args.job_id))
        _print_jobs([job])
        return 0 if job.status.value == "completed" else 1

    if args.job_command == "status":
        if args.job_id:
            console.print_json(json.dumps(manager.get(args.job_id).to_public_dict()))
        else:
            _print_jobs(manager.list(args.limit))
        return 0

    if args.job_command == "cancel":
        # Jobs only run inside the process that started them
        job = manager.get(args.job_id)
        if args.job_id not in manager.active():
            console.print(f"Job {job.id} is not running in this process (status: {job.status.value})")
            return 1
        asyncio.run(manager.cancel(args.job_id))
        return 0

    if args.job_command == "save":
        job = manager.materialize(args.job_id)
        console.print(f"Saved {job.total_saved} leads, {job.duplicates_skipped} duplicates skipped")
        return 0

    return 2


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    settings.reload()
    args = parse_args(argv)
    setup_logging(debug_mode=args.debug)

    if args.command == "serve":
        import uvicorn

        from api.server import app

        host = args.host or settings.get("api_host")
        port = args.port or int(settings.get("api_port"))
        uvicorn.run(app, host=host, port=port)
        return

    try:
        if args.command == "run":
            sys.exit(asyncio.run(_run_task_file(args)))

        store = JsonFileStore(args.data_dir or settings.data_dir)
        sys.exit(_job_command(args, JobLifecycleManager(store)))
    except HarvesterError as e:
        logger.error(f"{type(e).__name__}: {e.message}", extra=e.context.to_dict())
        sys.exit(1)


if __name__ == "__main__":
    main()
