#!/usr/bin/env python3
"""
Run one background job once and print its result.

Usage:
    python -m script.run_job expire_orders
    python -m script.run_job sync_payments

Meant for cron / Kubernetes CronJob when the API runs with JOBS_ENABLED=false.
"""

import argparse
import sys

import anyio
import orjson

from src.platform.config.di import container, setup
from src.platform.database.orm_db_setting import dispose_engines
from src.platform.logging.loguru_io import Logger
from src.service.resale.driving_adapter.job.job_runner import JobName, JobRunner


async def _run(job: JobName) -> dict:
    setup()
    try:
        return await JobRunner(container=container).run(job)
    finally:
        await dispose_engines()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description='Run one marketplace job once')
    parser.add_argument('job', choices=[job.value for job in JobName])
    args = parser.parse_args(argv)

    try:
        result = anyio.run(_run, JobName(args.job))
    except Exception as e:
        Logger.base.error(f'🕒 [JOB] {args.job} failed: {e}')
        return 1

    print(orjson.dumps({'job': args.job, 'result': result}, option=orjson.OPT_INDENT_2).decode())
    return 0


if __name__ == '__main__':
    sys.exit(main())
