"""Tests for the mongodump producer."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from backup_service.backup.dump import (
    REDACTED,
    build_mongodump_command,
    redact_command,
    run_mongodump,
)
from backup_service.core.exceptions import ConfigError, DumpError
from backup_service.core.settings import MongoSettings


def _mongo(**overrides) -> MongoSettings:
    values = {
        "db": "app",
        "host": "mongo.internal",
        "port": 27018,
        "user": "backup",
        "password": "s3cret",
    }
    values.update(overrides)
    return MongoSettings(**values)


def _process(returncode: int, stdout: bytes = b"", stderr: bytes = b"") -> MagicMock:
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    return proc


def _spawn_writing(proc: MagicMock, data: bytes = b"\x1f\x8b archive") -> AsyncMock:
    """Fake spawn that writes ``data`` to the --archive path like mongodump."""

    async def spawn(*args, **kwargs):
        archive = next(a for a in args if a.startswith("--archive="))
        Path(archive.removeprefix("--archive=")).write_bytes(data)
        return proc

    return AsyncMock(side_effect=spawn)


@pytest.mark.unit
class TestBuildMongodumpCommand:
    """Tests for build_mongodump_command."""

    def test_builds_full_argument_vector(self) -> None:
        cmd = build_mongodump_command(_mongo(), Path("/tmp/backups/backup-2024-03-05.gz"))

        assert cmd == [
            "mongodump",
            "--db",
            "app",
            "--host",
            "mongo.internal",
            "--port",
            "27018",
            "--username",
            "backup",
            "--password",
            "s3cret",
            "--gzip",
            "--archive=/tmp/backups/backup-2024-03-05.gz",
        ]

    def test_adds_authentication_database(self) -> None:
        cmd = build_mongodump_command(_mongo(auth_db="admin"), Path("/tmp/x.gz"))

        idx = cmd.index("--authenticationDatabase")
        assert cmd[idx + 1] == "admin"
        assert cmd[-2:] == ["--gzip", "--archive=/tmp/x.gz"]

    def test_uses_configured_binary(self) -> None:
        cmd = build_mongodump_command(
            _mongo(mongodump_path="/opt/mongo/bin/mongodump"), Path("/tmp/x.gz")
        )

        assert cmd[0] == "/opt/mongo/bin/mongodump"

    def test_missing_settings_raise_config_error(self) -> None:
        with pytest.raises(ConfigError) as exc:
            build_mongodump_command(MongoSettings(db="app"), Path("/tmp/x.gz"))

        assert exc.value.missing == ["MONGO_HOST", "MONGO_PORT", "MONGO_USER", "MONGO_PASSWORD"]


@pytest.mark.unit
def test_redact_command_masks_password() -> None:
    cmd = build_mongodump_command(_mongo(), Path("/tmp/x.gz"))

    rendered = redact_command(cmd)

    assert "s3cret" not in rendered
    assert f"--password {REDACTED}" in rendered
    assert "--username backup" in rendered


@pytest.mark.unit
class TestRunMongodump:
    """Tests for run_mongodump."""

    @pytest.mark.asyncio
    async def test_returns_archive_path_on_success(self, tmp_path: Path) -> None:
        output = tmp_path / "nested" / "backup-2024-03-05.gz"
        proc = _process(0)

        with patch("asyncio.create_subprocess_exec", _spawn_writing(proc)) as spawn:
            result = await run_mongodump(_mongo(), output)

        assert result == output
        assert output.parent.is_dir()
        args = spawn.call_args.args
        assert args[0] == "mongodump"
        assert f"--archive={output}" in args

    @pytest.mark.asyncio
    async def test_zero_exit_without_archive_raises(self, tmp_path: Path) -> None:
        proc = _process(0)

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(DumpError, match="wrote no data") as exc:
                await run_mongodump(_mongo(), tmp_path / "backup.gz")

        assert exc.value.returncode == 0

    @pytest.mark.asyncio
    async def test_zero_exit_with_empty_archive_raises(self, tmp_path: Path) -> None:
        output = tmp_path / "backup.gz"
        proc = _process(0, stderr=b"done dumping app (0 documents)")

        with patch("asyncio.create_subprocess_exec", _spawn_writing(proc, data=b"")):
            with pytest.raises(DumpError) as exc:
                await run_mongodump(_mongo(), output)

        assert exc.value.stderr == "done dumping app (0 documents)"

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises_with_stderr(self, tmp_path: Path) -> None:
        proc = _process(1, stderr=b"connection refused\n")

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(DumpError) as exc:
                await run_mongodump(_mongo(), tmp_path / "backup.gz")

        error = exc.value
        assert error.returncode == 1
        assert error.stderr == "connection refused"
        assert "connection refused" in error.message
        assert "s3cret" not in error.command
        assert error.code == "DUMP_FAILED"

    @pytest.mark.asyncio
    async def test_nonzero_exit_without_output(self, tmp_path: Path) -> None:
        proc = _process(3)

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(DumpError, match="no diagnostic output"):
                await run_mongodump(_mongo(), tmp_path / "backup.gz")

    @pytest.mark.asyncio
    async def test_spawn_failure_raises_dump_error(self, tmp_path: Path) -> None:
        spawn = AsyncMock(side_effect=FileNotFoundError("mongodump"))

        with patch("asyncio.create_subprocess_exec", spawn):
            with pytest.raises(DumpError) as exc:
                await run_mongodump(_mongo(), tmp_path / "backup.gz")

        assert exc.value.returncode is None
        assert isinstance(exc.value.__cause__, FileNotFoundError)

    @pytest.mark.asyncio
    async def test_incomplete_settings_never_spawn(self, tmp_path: Path) -> None:
        spawn = AsyncMock()

        with patch("asyncio.create_subprocess_exec", spawn):
            with pytest.raises(ConfigError):
                await run_mongodump(MongoSettings(), tmp_path / "backup.gz")

        spawn.assert_not_called()
