"""Dedicated scheduler process for maintenance jobs.

Runs separately from the WSGI workers (``flask scheduler run``). Jobs are
discovered from ``jobs.py`` through the metadata set by the ``@job``
decorator and persisted in an APScheduler ``SQLAlchemyJobStore``.
"""
from __future__ import annotations

import importlib
import logging
import time
from logging.handlers import RotatingFileHandler
from types import FunctionType, ModuleType

from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from flask import Flask

from . import create_app

logger = logging.getLogger("scheduler")

INTERVAL_KEYS = ("weeks", "days", "hours", "minutes", "seconds")


def setup_logging(app: Flask) -> None:
    path = app.config.get("SCHEDULER_LOG_FILE")
    if not path or any(getattr(h, "baseFilename", None) == path for h in logger.handlers):
        return
    handler = RotatingFileHandler(path, maxBytes=10 * 1024 * 1024, backupCount=3)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def get_scheduler(app: Flask) -> BackgroundScheduler:
    jobstores = {"default": SQLAlchemyJobStore(url=app.config.get("SQLALCHEMY_DATABASE_URI"))}
    return BackgroundScheduler(jobstores=jobstores)


def run_job_in_app_context(module_name: str, func_name: str, *a, **kw):
    """Run ``module_name.func_name`` inside a fresh application context.

    Scheduled by textual reference so the persisted job survives restarts.
    """
    app = create_app()
    fn = getattr(importlib.import_module(module_name), func_name)
    try:
        with app.app_context():
            return fn(*a, **kw)
    except Exception:
        logger.exception("Job %s.%s failed", module_name, func_name)
        raise


def discover_jobs(module: ModuleType) -> list:
    """Callables in ``module`` carrying ``job_meta``, in name order."""
    return [
        fn for _, fn in sorted(vars(module).items())
        if isinstance(fn, FunctionType) and getattr(fn, "job_meta", None)
    ]


def register_jobs(scheduler: BackgroundScheduler, module: ModuleType | None = None) -> int:
    """Register every ``@job`` function with ``scheduler``; returns how many were added."""
    if module is None:
        from . import jobs as module

    # persisted jobs from an older deploy may reference callables that no longer exist
    scheduler.remove_all_jobs()

    registered = 0
    for fn in discover_jobs(module):
        meta = fn.job_meta
        job_id = meta.get("id", fn.__name__)
        schedule = meta.get("schedule", "interval")
        if schedule != "interval":
            logger.warning("Unsupported schedule type %s for job %s", schedule, job_id)
            continue
        interval = {k: meta[k] for k in INTERVAL_KEYS if k in meta} or {"minutes": 15}
        scheduler.add_job(
            f"{__name__}:run_job_in_app_context",
            "interval",
            args=[fn.__module__, fn.__name__],
            id=job_id,
            replace_existing=True,
            **interval,
        )
        registered += 1
        logger.info("Registered job %s with %s", job_id, interval)
    if not registered:
        logger.info("No decorated jobs found in %s", module.__name__)
    return registered


def run() -> None:
    app = create_app()
    setup_logging(app)
    scheduler = get_scheduler(app)
    register_jobs(scheduler)

    scheduler.start()
    logger.info("Scheduler started")
    try:
        while True:
            time.sleep(60)
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down scheduler")
        scheduler.shutdown()
