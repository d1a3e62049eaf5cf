#!/usr/bin/env python3
# backend/run_celery_worker.py
"""
Development Celery worker runner.

Consumes the attendance and payroll queues plus the default queue.
"""
import os
from pathlib import Path
import subprocess
import sys

backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

if __name__ == "__main__":
    queues = os.getenv("CELERY_QUEUES") or "attendance,payroll,celery"
    print(f"Starting Celery worker, consuming queues: {queues}")

    cmd = [
        sys.executable,
        "-m",
        "celery",
        "-A",
        "tutorbook.tasks.celery_app",
        "worker",
        "--loglevel=info",
        "--concurrency=2",
        "--max-tasks-per-child=100",
        "--pool=prefork",
        "-Q",
        queues,
    ]

    subprocess.run(cmd)
