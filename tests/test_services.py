"""Tests for ``timespine.services``: wiring and startup validation."""

from __future__ import annotations

import pytest

from timespine.core.connection import SqliteConnectionFactory
from timespine.core.enums import SchemaValidationStatus
from timespine.core.errors import ConfigError
from timespine.core.settings import TimespineSettings
from timespine.services import create_database_services, initialize_capabilities


class TestCreateDatabaseServices:
    def test_repositories_share_one_matrix(self, core_db):
        services = create_database_services(factory=SqliteConnectionFactory(core_db))
        repositories = (
            services.timelines,
            services.activities,
            services.usage,
            services.correlation,
            services.environment,
        )
        for repo in repositories:
            assert repo.capabilities is services.capabilities
            assert repo.factory is services.factory

    def test_factory_from_settings(self, core_db):
        services = create_database_services(TimespineSettings(database_path=core_db, busy_timeout_s=2.0))
        assert services.factory.database_path == str(core_db)

    def test_missing_path_is_config_error(self, monkeypatch, tmp_path):
        monkeypatch.delenv("TIMESPINE_DATABASE_PATH", raising=False)
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigError):
            create_database_services(TimespineSettings())

    def test_starts_fully_degraded(self, full_db):
        services = create_database_services(factory=SqliteConnectionFactory(full_db))
        assert not services.capabilities.has_common_group


class TestInitializeCapabilities:
    def test_full_database(self, full_db):
        services = create_database_services(factory=SqliteConnectionFactory(full_db))
        result = initialize_capabilities(services)
        assert result.status == SchemaValidationStatus.VALID
        assert services.capabilities.get_degraded_capabilities() == []

    def test_core_only_database(self, core_db):
        services = create_database_services(factory=SqliteConnectionFactory(core_db))
        result = initialize_capabilities(services)
        assert result.status == SchemaValidationStatus.VALID_WITH_WARNINGS
        assert not services.capabilities.has_pre_aggregated_app_usage

    def test_unopenable_database_is_not_checked(self, tmp_path):
        services = create_database_services(factory=SqliteConnectionFactory(tmp_path / "gone.db"))
        result = initialize_capabilities(services)
        assert result.status == SchemaValidationStatus.NOT_CHECKED
        assert not result.is_usable
        assert services.capabilities.table_presence
        assert not any(services.capabilities.table_presence.values())

    def test_invalid_database_still_populates(self, fixture_db):
        fixture_db.create_full_with_missing_column("Ar_Activity", "Name")
        services = create_database_services(factory=SqliteConnectionFactory(fixture_db.path))
        result = initialize_capabilities(services)
        assert result.status == SchemaValidationStatus.INVALID
        assert services.capabilities.has_common_group

    def test_revalidate_picks_up_new_tables(self, fixture_db):
        fixture_db.create_core_only()
        services = create_database_services(factory=SqliteConnectionFactory(fixture_db.path))
        initialize_capabilities(services)
        assert not services.capabilities.has_environment

        fixture_db.create_tables(["Ar_Environment"])
        result = services.revalidate()

        assert services.capabilities.has_environment
        assert "Ar_Environment" in result.validated_tables

    def test_file_that_is_not_a_database_is_not_checked(self, tmp_path):
        path = tmp_path / "reports.db"
        path.write_bytes(b"this is not a sqlite database" * 200)
        services = create_database_services(factory=SqliteConnectionFactory(path))

        result = initialize_capabilities(services)

        assert result.status == SchemaValidationStatus.NOT_CHECKED
        assert not any(services.capabilities.table_presence.values())

    def test_revalidate_degrades_when_schema_unreadable(self, fixture_db):
        fixture_db.create_full()
        services = create_database_services(factory=SqliteConnectionFactory(fixture_db.path))
        initialize_capabilities(services)
        assert services.capabilities.has_common_group

        fixture_db.path.unlink()
        fixture_db.path.write_bytes(b"\x00garbage" * 512)
        result = services.revalidate()

        assert result.status == SchemaValidationStatus.NOT_CHECKED
        assert not services.capabilities.has_common_group
