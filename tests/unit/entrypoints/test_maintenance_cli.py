"""Tests for the operator maintenance script."""

import importlib.util
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from src.db.config import get_document_store

SCRIPT_PATH = Path(__file__).resolve().parents[3] / "scripts" / "database_maintenance.py"


@pytest.fixture
def cli(memory_backend_env):
    spec = importlib.util.spec_from_file_location("database_maintenance", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestMaintenanceCli:
    def test_health_check(self, cli, capsys):
        assert cli.main(["--backend", "memory", "health-check"]) == 0

        assert "Database health report" in capsys.readouterr().out

    def test_cleanup_dry_run_then_execute(self, cli, capsys):
        store = get_document_store()
        old = datetime.now(timezone.utc) - timedelta(days=45)
        store.set_document("emails", "e1", {"processed": True, "processingAt": old})

        assert cli.main(["cleanup", "emails", "--days", "30"]) == 0
        assert '"wouldDeleteCount": 1' in capsys.readouterr().out
        assert "e1" in store.documents("emails")

        assert cli.main(["cleanup", "emails", "--days", "30", "--execute"]) == 0
        assert store.documents("emails") == {}

    def test_invalid_days(self, cli):
        assert cli.main(["cleanup", "emails", "--days", "400"]) == 1

    def test_unknown_collection_rejected_by_parser(self, cli):
        with pytest.raises(SystemExit):
            cli.main(["cleanup", "userProfiles"])
