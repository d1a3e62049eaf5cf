#!/usr/bin/env python3
# backend/run_celery_beat.py
"""
Development Celery beat runner.

Run exactly one beat process; the attendance check relies on a single
scheduler plus its Redis tick lock.
"""
import os
from pathlib import Path
import subprocess
import sys

backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

if __name__ == "__main__":
    print("Starting Celery beat (attendance check + optional weekly disbursement)")

    cmd = [
        sys.executable,
        "-m",
        "celery",
        "-A",
        "tutorbook.tasks.celery_app",
        "beat",
        "--loglevel=info",
    ]

    subprocess.run(cmd)
