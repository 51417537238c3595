# ============================================================================
# DATABASE CONFIGURATION TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Tests - YAML binding and environment overrides
# PURPOSE: Verify the `database` section loads, validates and overrides
# CREATED: 18 OCT 2026
# ============================================================================
"""
Database Configuration Tests

Run with:
    pytest tests/test_config.py -v
"""

import pytest

from core.config.database import DEFAULT_CONFIG_PATH, DatabaseOptions, load_database_options
from core.contracts import Dialect
from core.errors import ConfigurationError


@pytest.fixture
def write_config(tmp_path):
    def _write(text: str):
        path = tmp_path / "database.yaml"
        path.write_text(text)
        return path
    return _write


# ============================================================================
# LOADING
# ============================================================================

class TestLoadDatabaseOptions:
    def test_shipped_configuration(self):
        options = load_database_options(DEFAULT_CONFIG_PATH, environ={})

        assert options.dialect is Dialect.SQLITE
        assert options.max_workers == 1
        settings = options.tables["Settings"]
        assert [c.name for c in settings.columns] == ["Key", "Value"]
        assert settings.columns[0].primary_key
        assert settings.columns[0].not_null
        assert settings.columns[1].type == {"sqlite": "TEXT", "postgres": "TEXT"}

    def test_camel_case_keys(self, write_config):
        path = write_config(
            "database:\n"
            "  currentMode: Postgres\n"
            "  connectionString: postgresql://localhost/atheon\n"
            "  maxWorkers: 3\n"
        )
        options = load_database_options(path, environ={})

        assert options.dialect is Dialect.POSTGRES
        assert options.connection_string == "postgresql://localhost/atheon"
        assert options.max_workers == 3

    def test_section_may_be_top_level(self, write_config):
        path = write_config("current_mode: sqlite\nconnection_string: other.db\n")
        assert load_database_options(path, environ={}).connection_string == "other.db"

    def test_empty_file_gives_defaults(self, write_config):
        options = load_database_options(write_config(""), environ={})
        assert options == DatabaseOptions()

    def test_config_path_from_environment(self, write_config):
        path = write_config("database:\n  connection_string: from-env.db\n")
        options = load_database_options(environ={"DATABASE_CONFIG": str(path)})
        assert options.connection_string == "from-env.db"

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_database_options(tmp_path / "nope.yaml", environ={})


# ============================================================================
# VALIDATION
# ============================================================================

class TestValidation:
    def test_unknown_mode(self, write_config):
        with pytest.raises(ConfigurationError):
            load_database_options(write_config("database:\n  current_mode: oracle\n"), environ={})

    def test_worker_bounds(self, write_config):
        with pytest.raises(ConfigurationError):
            load_database_options(write_config("database:\n  max_workers: 0\n"), environ={})

    def test_malformed_yaml(self, write_config):
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_database_options(write_config("database: [unclosed\n"), environ={})

    def test_non_mapping_document(self, write_config):
        with pytest.raises(ConfigurationError, match="mapping"):
            load_database_options(write_config("- a\n- b\n"), environ={})


# ============================================================================
# ENVIRONMENT OVERRIDES
# ============================================================================

class TestEnvironmentOverrides:
    def test_overrides_applied(self):
        options = DatabaseOptions().with_env_overrides({
            "DATABASE_MODE": "postgresql",
            "DATABASE_CONNECTION": "postgresql://db/atheon",
            "SCHEMA_MAX_WORKERS": "4",
        })

        assert options.dialect is Dialect.POSTGRES
        assert options.connection_string == "postgresql://db/atheon"
        assert options.max_workers == 4

    def test_no_overrides_returns_same_object(self):
        options = DatabaseOptions()
        assert options.with_env_overrides({}) is options

    def test_invalid_mode(self):
        with pytest.raises(ConfigurationError, match="DATABASE_MODE"):
            DatabaseOptions().with_env_overrides({"DATABASE_MODE": "mysql"})

    def test_invalid_worker_count(self):
        with pytest.raises(ConfigurationError, match="SCHEMA_MAX_WORKERS"):
            DatabaseOptions().with_env_overrides({"SCHEMA_MAX_WORKERS": "many"})

    @pytest.mark.parametrize("workers", ["0", "500", "-3"])
    def test_worker_count_out_of_bounds(self, workers):
        with pytest.raises(ConfigurationError, match="max_workers"):
            DatabaseOptions().with_env_overrides({"SCHEMA_MAX_WORKERS": workers})

    def test_tables_survive_override(self):
        options = load_database_options(DEFAULT_CONFIG_PATH, environ={"SCHEMA_MAX_WORKERS": "2"})

        assert options.max_workers == 2
        assert [c.name for c in options.tables["Settings"].columns] == ["Key", "Value"]
        assert options.tables["Settings"].columns[0].primary_key
