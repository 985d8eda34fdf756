from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from lgc_cli.__main__ import app
from lgc_cli.core.constants import CHECKIN_KIND, WORKOUT_KIND
from lgc_cli.core.extract import build_workout_record
from lgc_cli.core.formulas import calculate_age

BENCH_CSV = """
Date,Exercise Name,Set Order,Weight,Reps
2026-02-12 07:00:00,Bench Press (Barbell),1,320,1
"""


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LGC_CONFIG_FILE", str(tmp_path / "missing.toml"))
    for name in ("SUPABASE_URL", "SUPABASE_KEY", "SUPABASE_ACCESS_TOKEN", "LGC_USER_ID"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def use_gateway(monkeypatch: pytest.MonkeyPatch):
    def _use(gateway):
        for module in ("imports", "log", "analyze"):
            monkeypatch.setattr(f"lgc_cli.commands.{module}.connect", lambda state: (gateway, "u1"))
        return gateway

    return _use


def _stored_bench(e1rm: int):
    return build_workout_record("u1", "2026-02-12", "bench", "Bench Press (Barbell)", [(e1rm, 1, None)]).to_row()


def test_import_json_output(runner, make_gateway, use_gateway, write_temp_csv, strong_workout_csv) -> None:
    gateway = use_gateway(make_gateway())
    path = write_temp_csv("strong.csv", strong_workout_csv)

    result = runner.invoke(app, ["--json", "import", str(path)])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["kind"] == "workout"
    assert payload["status"] == "completed"
    assert payload["imported"] == 5
    assert payload["events"][0]["message"] == "Reading strong.csv..."
    assert gateway.stored(WORKOUT_KIND, "u1", "2026-02-10", "squat")["e1rm"] == 238


def test_import_plain_output_streams_events(
    runner, make_gateway, use_gateway, write_temp_csv, strong_measurement_csv
) -> None:
    use_gateway(make_gateway())
    path = write_temp_csv("measurements.csv", strong_measurement_csv)

    result = runner.invoke(app, ["--plain", "import", str(path)])

    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[0] == "info\t0\tReading measurements.csv..."
    assert "format_detected\t10\tDetected measurement file" in lines
    assert lines[-1] == "completed\t100\tImported 2 check-in entries"


def test_import_confirmed_replaces_better_entry(runner, make_gateway, use_gateway, write_temp_csv) -> None:
    gateway = use_gateway(make_gateway(workouts=[_stored_bench(300)]))
    path = write_temp_csv("bench.csv", BENCH_CSV)

    result = runner.invoke(app, ["import", str(path)], input="y\n")

    assert result.exit_code == 0
    assert "Existing entries (1)" in result.stdout
    assert "Imported 1 workout entries" in result.stdout
    assert gateway.stored(WORKOUT_KIND, "u1", "2026-02-12", "bench")["e1rm"] == 320


def test_import_declined_writes_nothing(runner, make_gateway, use_gateway, write_temp_csv) -> None:
    gateway = use_gateway(make_gateway(workouts=[_stored_bench(300)]))
    path = write_temp_csv("bench.csv", BENCH_CSV)

    result = runner.invoke(app, ["import", str(path)], input="n\n")

    assert result.exit_code == 0
    assert "Import cancelled" in result.stdout
    assert gateway.batches == []
    assert gateway.stored(WORKOUT_KIND, "u1", "2026-02-12", "bench")["e1rm"] == 300


def test_import_json_without_yes_cancels_on_conflict(runner, make_gateway, use_gateway, write_temp_csv) -> None:
    gateway = use_gateway(make_gateway(workouts=[_stored_bench(300)]))
    path = write_temp_csv("bench.csv", BENCH_CSV)

    result = runner.invoke(app, ["--json", "import", str(path)])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["status"] == "cancelled"
    assert payload["conflicts"][0]["action"] == "replace"
    assert gateway.batches == []


def test_import_yes_skips_prompt(runner, make_gateway, use_gateway, write_temp_csv) -> None:
    gateway = use_gateway(make_gateway(workouts=[_stored_bench(300)]))
    path = write_temp_csv("bench.csv", BENCH_CSV)

    result = runner.invoke(app, ["--json", "import", str(path), "--yes"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["imported"] == 1
    assert gateway.stored(WORKOUT_KIND, "u1", "2026-02-12", "bench")["e1rm"] == 320


def test_import_failed_batch_exits_nonzero(
    runner, make_gateway, use_gateway, write_temp_csv, strong_workout_csv
) -> None:
    gateway = use_gateway(make_gateway(fail_batches=[2]))
    path = write_temp_csv("strong.csv", strong_workout_csv)

    result = runner.invoke(app, ["--plain", "import", str(path), "--batch-size", "2"])

    assert result.exit_code == 1
    assert gateway.batches == [(WORKOUT_KIND, 2), (WORKOUT_KIND, 2), (WORKOUT_KIND, 1)]
    assert any(line.startswith("batch_failed\t") for line in result.stdout.splitlines())
    assert "Imported 3 workout entries" in result.stdout


def test_import_unknown_format_is_skipped(runner, make_gateway, use_gateway, write_temp_csv) -> None:
    gateway = use_gateway(make_gateway())
    path = write_temp_csv("calories.csv", "Date,Calories\n2026-02-10,2500")

    result = runner.invoke(app, ["--plain", "import", str(path)])

    assert result.exit_code == 0
    assert "Unknown file format" in result.stdout
    assert gateway.batches == []


def test_import_dry_run(runner, make_gateway, use_gateway, write_temp_csv, strong_workout_csv) -> None:
    gateway = use_gateway(make_gateway())
    path = write_temp_csv("strong.csv", strong_workout_csv)

    result = runner.invoke(app, ["--json", "import", str(path), "--dry-run"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["status"] == "dry-run"
    assert gateway.batches == []


def test_import_without_store_config_exits_2(runner, write_temp_csv, strong_workout_csv) -> None:
    path = write_temp_csv("strong.csv", strong_workout_csv)
    result = runner.invoke(app, ["import", str(path)])
    assert result.exit_code == 2
    assert "Store not configured" in result.stdout


def test_log_command_plain_output(runner, make_gateway, use_gateway) -> None:
    gateway = use_gateway(make_gateway())

    result = runner.invoke(
        app,
        ["--plain", "log", "squat", "--set", "185x8@7", "--set", "205x6@9", "--date", "2026-02-10"],
    )

    assert result.exit_code == 0
    assert "status\tsaved" in result.stdout
    assert "best\t205x6" in result.stdout
    assert "e1rm\t238" in result.stdout
    row = gateway.stored(WORKOUT_KIND, "u1", "2026-02-10", "squat")
    assert row["exercise_name"] == "Squat (Barbell)"
    assert [item["set_number"] for item in row["sets"]] == [1, 2]


def test_log_command_maps_exercise_name(runner, make_gateway, use_gateway) -> None:
    gateway = use_gateway(make_gateway())

    result = runner.invoke(
        app,
        ["--json", "log", "Pendlay Row (Barbell)", "--set", "135x10", "--date", "2026-02-12"],
    )

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["workout"]["exercise"] == "row"
    assert payload["workout"]["e1rm"] == 180
    assert gateway.stored(WORKOUT_KIND, "u1", "2026-02-12", "row")["exercise_name"] == "Pendlay Row (Barbell)"


def test_log_command_rejects_bad_input(runner, make_gateway, use_gateway) -> None:
    gateway = use_gateway(make_gateway())

    assert runner.invoke(app, ["log", "squat", "--set", "heavy"]).exit_code == 2
    assert runner.invoke(app, ["log", "bicep curl", "--set", "30x10"]).exit_code == 2
    assert runner.invoke(app, ["log", "squat", "--set", "185x5", "--date", "2026-13-01"]).exit_code == 2
    assert gateway.batches == []


def test_log_command_save_failure_exits_1(runner, make_gateway, use_gateway) -> None:
    use_gateway(make_gateway(fail_batches=[1]))
    result = runner.invoke(app, ["log", "bench", "--set", "135x8"])
    assert result.exit_code == 1
    assert "Save failed" in result.stdout


def test_checkin_merges_with_existing(runner, make_gateway, use_gateway) -> None:
    gateway = use_gateway(
        make_gateway(checkins=[{"user_id": "u1", "date": "2026-02-10", "weight": 180.0, "notes": "felt good"}])
    )

    result = runner.invoke(app, ["--json", "checkin", "--date", "2026-02-10", "--waist", "33", "--sleep", "8"])

    assert result.exit_code == 0
    checkin = json.loads(result.stdout)["checkin"]
    assert (checkin["weight"], checkin["waist"], checkin["sleep_quality"]) == (180.0, 33.0, 8)
    assert gateway.stored(CHECKIN_KIND, "u1", "2026-02-10")["notes"] == "felt good"


def test_checkin_requires_weight_or_waist(runner, make_gateway, use_gateway) -> None:
    gateway = use_gateway(make_gateway())
    assert runner.invoke(app, ["checkin", "--neck", "15"]).exit_code == 2
    assert runner.invoke(app, ["checkin", "--weight", "180", "--sleep", "11"]).exit_code == 2
    assert gateway.batches == []


def test_summary_json(runner, make_gateway, use_gateway) -> None:
    use_gateway(
        make_gateway(
            workouts=[
                build_workout_record("u1", "2026-01-10", "squat", "Squat", [(300, 1, None)]).to_row(),
                build_workout_record("u1", "2026-01-10", "bench", "Bench", [(200, 1, None)]).to_row(),
                build_workout_record("u1", "2026-01-12", "deadlift", "Deadlift", [(400, 1, None)]).to_row(),
            ],
            checkins=[{"user_id": "u1", "date": "2026-01-10", "waist": 34.5}],
        )
    )

    result = runner.invoke(app, ["--json", "summary"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["lifts"] == {"squat": 300, "bench": 200, "deadlift": 400}
    assert payload["total"] == 900
    assert payload["lgc_score"] == 260.9


def test_summary_rich_output(runner, make_gateway, use_gateway) -> None:
    use_gateway(make_gateway())
    result = runner.invoke(app, ["summary"])
    assert result.exit_code == 0
    assert "LGC Score: —" in result.stdout
    assert "Best e1RM" in result.stdout


def test_summary_load_failure_exits_1(runner, make_gateway, use_gateway) -> None:
    use_gateway(make_gateway(fail_fetch=True))
    result = runner.invoke(app, ["summary"])
    assert result.exit_code == 1
    assert "Load failed" in result.stdout


def test_history_plain(runner, make_gateway, use_gateway) -> None:
    use_gateway(
        make_gateway(
            workouts=[
                build_workout_record("u1", "2026-01-10", "squat", "Squat", [(300, 1, None)]).to_row(),
                build_workout_record("u1", "2026-01-10", "bench", "Bench", [(200, 1, None)]).to_row(),
                build_workout_record("u1", "2026-01-12", "deadlift", "Deadlift", [(400, 1, None)]).to_row(),
            ],
            checkins=[
                {"user_id": "u1", "date": "2026-01-10", "waist": 34.5},
                {"user_id": "u1", "date": "2026-02-10", "waist": 34},
            ],
        )
    )

    result = runner.invoke(app, ["--plain", "history"])

    assert result.exit_code == 0
    assert result.stdout.splitlines() == [
        "month\tsquat\tbench\tdeadlift\twaist\tscore",
        "2026-02\t300\t200\t400\t34\t264.7",
        "2026-01\t300\t200\t400\t34.5\t260.9",
    ]


def test_history_empty_message(runner, make_gateway, use_gateway) -> None:
    use_gateway(make_gateway())
    result = runner.invoke(app, ["history"])
    assert result.exit_code == 0
    assert "No score history yet" in result.stdout


def _big_three_rows():
    return [
        build_workout_record("u1", "2026-01-10", "squat", "Squat", [(300, 1, None)]).to_row(),
        build_workout_record("u1", "2026-01-10", "bench", "Bench", [(200, 1, None)]).to_row(),
        build_workout_record("u1", "2026-01-12", "deadlift", "Deadlift", [(400, 1, None)]).to_row(),
    ]


def test_summary_lists_recent_wins(runner, make_gateway, use_gateway) -> None:
    use_gateway(
        make_gateway(
            workouts=[
                build_workout_record("u1", "2026-01-10", "squat", "Squat", [(405, 1, None)]).to_row(),
                build_workout_record("u1", "2026-01-10", "bench", "Bench", [(275, 1, None)]).to_row(),
                build_workout_record("u1", "2026-01-12", "deadlift", "Deadlift", [(500, 1, None)]).to_row(),
            ],
            checkins=[{"user_id": "u1", "date": "2026-01-10", "waist": 32.5}],
        )
    )

    plain = runner.invoke(app, ["--plain", "summary"])
    assert plain.exit_code == 0
    assert [line for line in plain.stdout.splitlines() if line.startswith("win\t")] == [
        "win\t1,000 lb Club member",
        "win\tWaist under 33 inches",
        "win\tLGC Score over 300",
    ]

    rich = runner.invoke(app, ["summary"])
    assert rich.exit_code == 0
    assert "Recent wins:" in rich.stdout
    assert "1,000 lb Club member" in rich.stdout


def test_summary_shows_age_from_config_birthday(runner, make_gateway, use_gateway, write_temp_toml) -> None:
    use_gateway(make_gateway(workouts=_big_three_rows()))
    path = write_temp_toml("config.toml", "[user]\nbirthday = 1990-06-15\n")

    result = runner.invoke(app, ["--config", str(path), "--json", "summary"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["age"] == calculate_age(date(1990, 6, 15), date.today())
    assert payload["wins"] == []


def test_summary_rejects_malformed_birthday(runner, make_gateway, use_gateway, write_temp_toml) -> None:
    use_gateway(make_gateway())
    path = write_temp_toml("config.toml", '[user]\nbirthday = "June 1990"\n')

    result = runner.invoke(app, ["--config", str(path), "summary"])

    assert result.exit_code == 2
    assert "Config error" in result.stdout


def test_history_workouts_view_plain(runner, make_gateway, use_gateway) -> None:
    use_gateway(make_gateway(workouts=_big_three_rows()))

    result = runner.invoke(app, ["--plain", "history", "--view", "workouts"])

    assert result.exit_code == 0
    assert result.stdout.splitlines() == [
        "date\texercise\tbest_weight\tbest_reps\te1rm",
        "2026-01-12\tdeadlift\t400\t1\t400",
        "2026-01-10\tsquat\t300\t1\t300",
        "2026-01-10\tbench\t200\t1\t200",
    ]


def test_history_workouts_view_json_groups_by_day(runner, make_gateway, use_gateway) -> None:
    use_gateway(make_gateway(workouts=_big_three_rows()))

    result = runner.invoke(app, ["--json", "history", "--view", "workouts", "--limit", "1"])

    assert result.exit_code == 0
    days = json.loads(result.stdout)["workouts"]
    assert [day["date"] for day in days] == ["2026-01-12"]
    assert days[0]["entries"][0]["exercise_name"] == "Deadlift"


def test_history_checkins_view(runner, make_gateway, use_gateway) -> None:
    use_gateway(
        make_gateway(
            checkins=[
                {"user_id": "u1", "date": "2026-01-10", "waist": 34.5, "weight": 182.4},
                {"user_id": "u1", "date": "2026-01-11", "weight": 181.8},
            ]
        )
    )

    plain = runner.invoke(app, ["--plain", "history", "--view", "checkins"])
    assert plain.exit_code == 0
    assert plain.stdout.splitlines() == [
        "date\tweight\twaist",
        "2026-01-11\t181.8\t-",
        "2026-01-10\t182.4\t34.5",
    ]

    rich = runner.invoke(app, ["history", "--view", "checkins"])
    assert rich.exit_code == 0
    assert "182.4 lb" in rich.stdout
    assert '34.5"' in rich.stdout


def test_history_log_views_empty_messages(runner, make_gateway, use_gateway) -> None:
    use_gateway(make_gateway())
    assert "No workouts logged yet" in runner.invoke(app, ["history", "--view", "workouts"]).stdout
    assert "No check-ins logged yet" in runner.invoke(app, ["history", "--view", "checkins"]).stdout


def test_history_rejects_unknown_view(runner, make_gateway, use_gateway) -> None:
    use_gateway(make_gateway())
    result = runner.invoke(app, ["history", "--view", "sets"])
    assert result.exit_code == 2



def test_calc_commands(runner) -> None:
    assert runner.invoke(app, ["--plain", "calc", "e1rm", "100", "8"]).stdout.strip() == "124"
    assert runner.invoke(app, ["--plain", "calc", "score", "300", "200", "400", "34.5"]).stdout.strip() == "260.9"

    result = runner.invoke(app, ["calc", "e1rm", "205", "6"])
    assert result.exit_code == 0
    assert "e1RM: 238" in result.stdout


def test_calc_bodyfat(runner, write_temp_toml) -> None:
    result = runner.invoke(
        app, ["--plain", "calc", "bodyfat", "--sex", "male", "--waist", "34", "--neck", "15", "--height", "70"]
    )
    assert result.exit_code == 0
    assert result.stdout.strip() == "17.5"

    config = write_temp_toml("config.toml", '[user]\nsex = "female"\nheight = 65')
    result = runner.invoke(
        app,
        ["--config", str(config), "--json", "calc", "bodyfat", "--waist", "30", "--neck", "13", "--hips", "38"],
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"sex": "female", "body_fat": 28.6}

    missing_hips = runner.invoke(
        app, ["calc", "bodyfat", "--sex", "female", "--waist", "30", "--neck", "13", "--height", "65"]
    )
    assert missing_hips.exit_code == 2
