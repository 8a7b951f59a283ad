"""
joblog_logger.py

Operator-facing progress log for the dispatch ingestion commands. Every message
is echoed to the console and appended, timestamped, to a daily file under
logs/ (joblog-YYYY-MM-DD.log). The same text also goes to the "joblog"
logger so it lands wherever Django's LOGGING config sends it.

Usage:
    from joblog_logger import log_console
    log_console("Fetched 12 messages")
"""

import logging
import os
from datetime import datetime

LOG_DIR = os.getenv("DISPATCH_LOG_DIR", os.path.join(os.path.dirname(__file__), "logs"))

logger = logging.getLogger("joblog")


def log_console(message, level=logging.INFO):
    """Write a timestamped message to today's log file and the console."""
    os.makedirs(LOG_DIR, exist_ok=True)
    now = datetime.now()
    ts = now.strftime("%Y-%m-%d %H:%M:%S")
    # File name is computed per call so a run crossing midnight rolls over
    log_path = os.path.join(LOG_DIR, f"joblog-{now.strftime('%Y-%m-%d')}.log")
    entry = f"[{ts}] {message}\n"
    with open(log_path, "a", encoding="utf-8") as f:
        f.write(entry)
    print(entry, end="")
    logger.log(level, message)
