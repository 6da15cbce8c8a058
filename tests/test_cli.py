"""
Tests for the Typer CLI.
"""

import json

import pendulum
from typer.testing import CliRunner

from studyplanner import __version__
from studyplanner.cli.app import app
from studyplanner.domain.timeutil import to_minutes

runner = CliRunner()

CLASS_EVENT = {"id": "evt-1", "type": "EVENTO", "event_start_at": "2024-03-10T08:00:00"}


def _config(tmp_path, posts=None, trails=None, extra=""):
    feed = {"posts": posts if posts is not None else [CLASS_EVENT], "trails": trails or {}}
    (tmp_path / "feed.json").write_text(json.dumps(feed), encoding="utf-8")
    path = tmp_path / "config.yaml"
    path.write_text(
        "snapshot_file: planner.json\n"
        "feed_file: feed.json\n"
        f"{extra}"
        "preferences:\n"
        "  block_size: 60\n"
        "  preferred_window: morning\n",
        encoding="utf-8",
    )
    return path


def _saved_blocks(tmp_path):
    return json.loads((tmp_path / "planner.json").read_text(encoding="utf-8"))["blocks"]


def _add(config, date, start, end):
    result = runner.invoke(app, ["add", date, start, end, "--config", str(config)])
    assert result.exit_code == 0, result.output
    return _saved_blocks(config.parent)[-1]["id"]


def test_add_persists_block(tmp_path):
    config = _config(tmp_path)

    result = runner.invoke(app, ["add", "2024-03-10", "10:00", "11:00", "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert "Added" in result.output
    saved = _saved_blocks(tmp_path)
    assert [b["start_time"] for b in saved] == ["10:00"]


def test_add_rejects_inverted_range(tmp_path):
    config = _config(tmp_path)

    result = runner.invoke(app, ["add", "2024-03-10", "11:00", "10:00", "--config", str(config)])

    assert result.exit_code == 1
    assert "must be before" in result.output
    assert not (tmp_path / "planner.json").exists()


def test_strict_add_refuses_class_event(tmp_path):
    config = _config(tmp_path, extra="validation: strict\n")

    result = runner.invoke(app, ["add", "2024-03-10", "08:30", "09:30", "--config", str(config)])

    assert result.exit_code == 1
    assert "overlaps" in result.output
    assert not (tmp_path / "planner.json").exists()


def test_slots_skip_class_event_and_blocks(tmp_path):
    config = _config(tmp_path)
    _add(config, "2024-03-10", "10:00", "11:00")

    result = runner.invoke(app, ["slots", "2024-03-10", "--duration", "60", "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert "09:00 - 10:00" in result.output
    assert "11:00 - 12:00" in result.output
    assert "08:00 - 09:00" not in result.output


def test_check_reports_conflict(tmp_path):
    config = _config(tmp_path)

    result = runner.invoke(app, ["check", "2024-03-10", "08:30", "09:30", "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert "Conflicts found" in result.output


def test_remove_deletes_block(tmp_path):
    config = _config(tmp_path)
    keep = _add(config, "2024-03-10", "09:00", "10:00")
    drop = _add(config, "2024-03-10", "10:00", "11:00")

    result = runner.invoke(app, ["remove", drop, "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert "Removed" in result.output
    assert [b["id"] for b in _saved_blocks(tmp_path)] == [keep]


def test_complete_and_skip(tmp_path):
    config = _config(tmp_path)
    done = _add(config, "2024-03-10", "09:00", "10:00")
    skipped = _add(config, "2024-03-10", "10:00", "11:00")

    completed = runner.invoke(app, ["complete", done, "--config", str(config)])
    result = runner.invoke(app, ["complete", skipped, "--skip", "--config", str(config)])

    assert completed.exit_code == 0, completed.output
    assert result.exit_code == 0, result.output
    assert "marked skipped" in result.output
    statuses = {b["id"]: b["status"] for b in _saved_blocks(tmp_path)}
    assert statuses == {done: "completed", skipped: "skipped"}


def test_move_next_uses_next_free_slot(tmp_path):
    config = _config(tmp_path)
    block_id = _add(config, "2024-03-10", "09:00", "10:00")

    result = runner.invoke(app, ["move-next", block_id, "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert "Moved to 10.03.2024 10:00 - 11:00" in result.output
    saved = _saved_blocks(tmp_path)[0]
    assert (saved["date"], saved["start_time"], saved["end_time"]) == ("2024-03-10", "10:00", "11:00")


def test_move_next_without_free_slot(tmp_path):
    config = _config(tmp_path)
    block_id = _add(config, "2024-03-10", "08:00", "12:00")
    _add(config, "2024-03-11", "08:00", "12:00")

    result = runner.invoke(app, ["move-next", block_id, "--config", str(config)])

    assert result.exit_code == 1
    assert "Could not find an alternative slot" in result.output
    assert _saved_blocks(tmp_path)[0]["start_time"] == "08:00"


def test_snooze_respects_due_date(tmp_path):
    config = _config(tmp_path)
    block_id = _add(config, "2024-03-10", "09:00", "10:00")

    refused = runner.invoke(app, ["snooze", block_id, "--due", "2024-03-10", "--config", str(config)])
    result = runner.invoke(app, ["snooze", block_id, "--due", "2024-03-12", "--config", str(config)])

    assert refused.exit_code == 1
    assert "No later slot before the due date" in refused.output
    assert result.exit_code == 0, result.output
    assert "Snoozed to 11.03.2024 08:00 - 09:00" in result.output
    assert _saved_blocks(tmp_path)[0]["date"] == "2024-03-11"


def test_plan_save_persists_suggestions(tmp_path):
    due = pendulum.now("Europe/Berlin").add(days=10).start_of("day")
    config = _config(
        tmp_path,
        posts=[{"id": "act-1", "type": "PROVA", "due_at": due.to_iso8601_string()}],
        trails={"act-1": [{"id": "s1", "estimated_minutes": 60}]},
    )

    result = runner.invoke(app, ["plan", "act-1", "--save", "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert "Study plan for act-1" in result.output
    saved = _saved_blocks(tmp_path)
    assert [b["activity_id"] for b in saved] == ["act-1", "act-1"]
    assert sum(to_minutes(b["end_time"]) - to_minutes(b["start_time"]) for b in saved) == 60


def test_plan_without_save_stores_nothing(tmp_path):
    due = pendulum.now("Europe/Berlin").add(days=10).start_of("day")
    config = _config(
        tmp_path,
        posts=[{"id": "act-1", "type": "PROVA", "due_at": due.to_iso8601_string()}],
        trails={"act-1": [{"id": "s1", "estimated_minutes": 60}]},
    )

    result = runner.invoke(app, ["plan", "act-1", "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert not (tmp_path / "planner.json").exists()


def test_week_without_activities(tmp_path):
    config = _config(tmp_path)

    result = runner.invoke(app, ["week", "--save", "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert "No suggestions for this week." in result.output
    assert not (tmp_path / "planner.json").exists()


def test_list_week_filters_blocks(tmp_path):
    config = _config(tmp_path)
    _add(config, "2024-03-10", "09:00", "10:00")
    _add(config, "2024-03-20", "09:00", "10:00")

    result = runner.invoke(app, ["list", "--week", "2024-03-09", "--config", str(config)])
    empty = runner.invoke(app, ["list", "--week", "2024-04-01", "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert "Planned blocks" in result.output
    assert "10.03.2024" in result.output
    assert "20.03.2024" not in result.output
    assert empty.exit_code == 0, empty.output
    assert "No planned blocks." in empty.output


def test_missing_config(tmp_path):
    result = runner.invoke(app, ["slots", "2024-03-10", "--config", str(tmp_path / "nope.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output
