"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest

from rabbitry import cli, rabbit_commands, record_commands, task_commands, user_commands
from rabbitry.backends import MemoryStorage
from rabbitry.errors import PermissionDeniedError, RabbitryError
from rabbitry.farm import Farm
from rabbitry.models import Collection


@pytest.fixture
def wired(monkeypatch: pytest.MonkeyPatch) -> Farm:
    """Route every command to one in-memory farm."""
    storage = MemoryStorage()
    farm = Farm(storage)
    farm.ensure_default_admin()
    monkeypatch.setattr(cli, "get_storage", lambda: storage)
    monkeypatch.setattr(cli, "get_farm", lambda: farm)
    return farm


def test_rabbit_add_and_list(wired: Farm, capsys: pytest.CaptureFixture[str]) -> None:
    """Test adding and listing rabbits."""
    rabbit_commands.add("R-1", "Rex", "female", acquired="2024-01-05", cage="C-2")
    rabbit_commands.list_rabbits()

    out = capsys.readouterr().out
    assert "Added rabbit 1: R-1" in out
    assert "Found 1 rabbit(s)" in out
    assert "R-1: Rex, female, active cage C-2" in out


def test_rabbit_update_and_deceased(wired: Farm) -> None:
    """Test updating and retiring a rabbit by tag id."""
    rabbit_commands.add("R-1", "Rex", "female")
    rabbit_commands.update("R-1", weight=2100, health="sick")
    rabbit_commands.deceased("R-1")

    rabbit = wired.rabbit_by_tag("R-1")
    assert rabbit.weight == 2100
    assert rabbit.health_status == "sick"
    assert rabbit.status == "deceased"


def test_rabbit_show_unknown(wired: Farm) -> None:
    """Test showing an unknown tag id raises."""
    with pytest.raises(RabbitryError, match="No rabbit"):
        rabbit_commands.show("R-404")


def test_rabbit_show_uses_one_farm(
    wired: Farm, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test the detail view reads the rabbit and its health history from the same farm."""
    rabbit_commands.add("R-1", "Rex", "female", acquired="2024-01-05")
    record_commands.health("R-1", "checkup", on="2024-02-01")

    calls = []

    def counted_farm() -> Farm:
        calls.append(1)
        return wired

    monkeypatch.setattr(cli, "get_farm", counted_farm)
    rabbit_commands.show("R-1")

    assert len(calls) == 1
    assert "2024-02-01 checkup" in capsys.readouterr().out


def test_rabbit_show(wired: Farm, capsys: pytest.CaptureFixture[str]) -> None:
    """Test the detail view includes health history."""
    rabbit_commands.add("R-1", "Rex", "female", acquired="2024-01-05", birth="2023-10-01")
    record_commands.health("R-1", "vaccination", on="2024-02-01", treatment="RHDV2")
    rabbit_commands.show("R-1")

    out = capsys.readouterr().out
    assert "Born: 2023-10-01" in out
    assert "2024-02-01 vaccination RHDV2" in out


def test_record_commands(wired: Farm) -> None:
    """Test breeding, birth, feed and consumption records."""
    record_commands.breeding("R-2", "R-1", mated="2024-03-01")
    record_commands.birth(1, litter_size=6, alive=5, on="2024-04-01")
    record_commands.feed("pellets", 10000)
    record_commands.consume(1, 400, group="C-1")

    record = wired.breeding_records.get(1)
    assert record.status == "successful"
    assert record.litter_alive == 5
    assert wired.feed_inventory.get(1).quantity == 9600
    assert wired.feed_consumption.get(1).group_id == "C-1"


def test_birth_validates_counts(wired: Farm) -> None:
    """Test more survivors than births is rejected."""
    record_commands.breeding("R-2", "R-1")
    with pytest.raises(ValueError):
        record_commands.birth(1, litter_size=3, alive=4)


def test_record_list_hides_passwords(wired: Farm, capsys: pytest.CaptureFixture[str]) -> None:
    """Test listing users never prints passwords."""
    record_commands.list_records("users")
    out = capsys.readouterr().out
    assert "admin" in out
    assert "admin123" not in out


def test_task_commands(wired: Farm, capsys: pytest.CaptureFixture[str]) -> None:
    """Test adding, listing and completing tasks."""
    task_commands.add("Clean cages", due="2024-05-01", assign=1)
    task_commands.complete(1)
    task_commands.list_tasks(assignee=1)

    assert wired.tasks.get(1).completed_at is not None
    assert "Clean cages [completed] (due 2024-05-01)" in capsys.readouterr().out

    with pytest.raises(ValueError):
        task_commands.status(1, "done")


def test_user_commands(wired: Farm, capsys: pytest.CaptureFixture[str]) -> None:
    """Test adding a worker and logging in."""
    user_commands.add("sam", "Sam Doe", "pw", assign="R-1, R-2")
    user_commands.login("sam", "pw")

    assert wired.user_by_username("sam").assigned_rabbits == ["R-1", "R-2"]
    assert "Logged in as Sam Doe (worker)" in capsys.readouterr().out

    with pytest.raises(ValueError):
        user_commands.add("x", "X", "pw", role="owner")


def test_export_import_merge(wired: Farm, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test the data exchange commands end to end."""
    rabbit_commands.add("R-1", "Rex", "female")
    cli.export(directory=tmp_path, prefix="backup")
    exported = next(tmp_path.glob("backup_*.json"))
    document = json.loads(exported.read_text(encoding="utf-8"))
    assert all("password" not in user for user in document[Collection.USERS.key])

    document[Collection.RABBITS.key][0]["tagId"] = "R-1-CHANGED"
    changed = tmp_path / "changed.json"
    changed.write_text(json.dumps(document), encoding="utf-8")

    cli.merge(changed)
    assert wired.rabbit_by_tag("R-1") is not None

    cli.import_(changed)
    assert wired.rabbit_by_tag("R-1-CHANGED") is not None
    assert wired.authenticate("admin", "admin123").username == "admin"

    out = capsys.readouterr().out
    assert "Merged 0 new record(s)" in out
    assert "1 existing kept" in out


def test_export_csv_command(wired: Farm, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test exporting a single collection as CSV."""
    cli.export_csv_command("users", directory=tmp_path)
    exported = next(tmp_path.glob("users_*.csv"))
    content = exported.read_text(encoding="utf-8")
    assert "admin" in content
    assert "admin123" not in content
    assert "Exported 1 record(s)" in capsys.readouterr().out


def test_worker_task_commands(wired: Farm, capsys: pytest.CaptureFixture[str]) -> None:
    """Test a worker lists only their tasks and cannot add tasks."""
    worker = wired.add_user(username="sam", full_name="Sam", password="pw")
    task_commands.add("Feed", assign=worker.id)
    task_commands.add("Clean")
    capsys.readouterr()

    wired.acting_user_id = worker.id
    task_commands.list_tasks()
    out = capsys.readouterr().out
    assert "Found 1 task(s)" in out
    assert "Feed [pending]" in out

    task_commands.status(1, "in_progress")
    assert wired.tasks.get(1).status == "in_progress"

    with pytest.raises(PermissionDeniedError):
        task_commands.add("Sweep")
    with pytest.raises(PermissionDeniedError):
        task_commands.complete(2)
