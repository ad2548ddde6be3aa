import pytest

import migrate
from core.migrations import MigrationError


@pytest.fixture
def pool(mocker):
    return {
        "init": mocker.patch("core.db.init_pool", new_callable=mocker.AsyncMock),
        "close": mocker.patch("core.db.close_pool", new_callable=mocker.AsyncMock),
    }


def test_up_applies_pending_versions(pool, mocker, capsys, migrations_dir):
    run = mocker.patch(
        "core.migrations.run_migrations",
        new_callable=mocker.AsyncMock,
        return_value=["000001_create_groups", "000002_create_songs"],
    )

    assert migrate.main(["up", "--path", migrations_dir]) == 0

    run.assert_awaited_once_with(migrations_dir)
    pool["init"].assert_awaited_once()
    pool["close"].assert_awaited_once()
    assert "000001_create_groups, 000002_create_songs" in capsys.readouterr().out


def test_down_reverts_latest_version(pool, mocker, capsys, migrations_dir):
    rollback = mocker.patch(
        "core.migrations.rollback_migration",
        new_callable=mocker.AsyncMock,
        return_value="000002_create_songs",
    )

    assert migrate.main(["down", "--path", migrations_dir]) == 0

    rollback.assert_awaited_once_with(migrations_dir)
    assert "reverted: 000002_create_songs" in capsys.readouterr().out


def test_down_with_nothing_applied(pool, mocker, capsys):
    mocker.patch("core.migrations.rollback_migration", new_callable=mocker.AsyncMock, return_value=None)

    assert migrate.main(["down"]) == 0
    assert "nothing" in capsys.readouterr().out


def test_failure_exits_non_zero_and_closes_pool(pool, mocker, capsys):
    mocker.patch(
        "core.migrations.run_migrations",
        new_callable=mocker.AsyncMock,
        side_effect=MigrationError("Migration 000002_create_songs failed: boom"),
    )

    assert migrate.main(["up"]) == 1

    pool["close"].assert_awaited_once()
    assert "boom" in capsys.readouterr().err


def test_missing_command_is_a_usage_error():
    with pytest.raises(SystemExit) as excinfo:
        migrate.main([])
    assert excinfo.value.code == 2
