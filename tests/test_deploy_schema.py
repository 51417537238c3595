# ============================================================================
# DEPLOY SCRIPT TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Tests - Command-line reconciliation
# PURPOSE: Verify dry run, execution and exit codes of scripts/deploy_schema.py
# CREATED: 18 OCT 2026
# ============================================================================
"""
Deploy Script Tests

Run with:
    pytest tests/test_deploy_schema.py -v
"""

import importlib.util
import logging
from pathlib import Path

import pytest

from infrastructure.db_access import SqliteDbAccess

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "deploy_schema.py"


@pytest.fixture
def deploy():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level

    spec = importlib.util.spec_from_file_location("deploy_schema", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    yield module

    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DATABASE_CONFIG", "DATABASE_MODE", "DATABASE_CONNECTION", "SCHEMA_MAX_WORKERS"):
        monkeypatch.delenv(name, raising=False)


class TestDeploySchema:
    def test_dry_run_prints_plan(self, deploy, capsys):
        assert deploy.main(["--dry-run", "--connection", ":memory:"]) == 0

        out = capsys.readouterr().out
        assert "DRY RUN" in out
        assert "Guilds: create" in out
        assert 'CREATE TABLE "Guilds"' in out

    def test_execute_then_rerun(self, deploy, tmp_path, capsys):
        database = str(tmp_path / "atheon.db")

        assert deploy.main(["--connection", database]) == 0
        first = capsys.readouterr().out
        assert 'CREATE TABLE "ClanMembers"' in first

        assert deploy.main(["--connection", database]) == 0
        second = capsys.readouterr().out
        assert "CREATE TABLE" not in second
        assert "Deployment completed successfully" in second

    def test_configuration_error_exit_code(self, deploy, tmp_path):
        assert deploy.main(["--config", str(tmp_path / "missing.yaml")]) == 2

    def test_ddl_failure_exit_code(self, deploy, tmp_path, capsys):
        database = tmp_path / "atheon.db"
        config = tmp_path / "database.yaml"
        config.write_text(
            "database:\n"
            "  tables:\n"
            "    Widgets:\n"
            "      columns:\n"
            "        - name: Id\n"
            "          type: {sqlite: INTEGER}\n"
            "          primaryKey: true\n"
        )
        assert deploy.main(["--config", str(config), "--connection", str(database)]) == 0

        # SQLite only refuses a NOT NULL column without a default on a populated table
        with SqliteDbAccess(str(database)) as db:
            db.execute('INSERT INTO "Widgets" ("Id") VALUES (1)')

        config.write_text(config.read_text() + (
            "        - name: Required\n"
            "          type: {sqlite: TEXT}\n"
            "          notNull: true\n"
        ))
        capsys.readouterr()

        assert deploy.main(["--config", str(config), "--connection", str(database)]) == 1
        out = capsys.readouterr().out
        assert "DdlExecutionError" in out
        assert 'ADD COLUMN "Required" TEXT NOT NULL' in out
