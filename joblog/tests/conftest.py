from datetime import datetime

import pytest
from django.utils.timezone import make_aware

from dispatch_config import DEFAULT_CONFIG


@pytest.fixture
def dispatch_config():
    config = dict(DEFAULT_CONFIG)
    config["allowed_senders"] = ["@example-logistics.co.uk"]
    return config


@pytest.fixture
def dispatch_metadata():
    return {
        "msg_id": "m1",
        "thread_id": "t1",
        "subject": "Moves for Wednesday",
        "sender": "Dispatch Desk <ops@example-logistics.co.uk>",
        "sender_email": "ops@example-logistics.co.uk",
        "timestamp": make_aware(datetime(2025, 3, 4, 16, 20)),
        "body": "Wed 5th Mar 09:00\nFrom: Warehouse 1\nTo: Client Site\n2 vans\n",
        "parser_version": "1.0",
    }


@pytest.fixture(autouse=True)
def quiet_log_dir(tmp_path, monkeypatch):
    monkeypatch.setattr("joblog_logger.LOG_DIR", str(tmp_path / "logs"))
