"""Tests for the lead-engine command line."""

import json
import pytest
import tempfile
from pathlib import Path
from click.testing import CliRunner

from lead_engine.cli.main import cli


@pytest.fixture
def temp_data_dir():
    """Create temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def files(temp_data_dir):
    """Write leads, roster and config paths."""
    leads = [
        {"id": "l1", "source": "contact_form", "status": "new", "zip_code": "43215"},
        {"id": "l2", "source": "event_signup", "status": "spam"},
        {"id": "l3", "source": "medical_request", "status": "qualified", "contact_count": 3},
    ]
    roster = {"roster": [
        {"id": "A", "full_name": "Alice", "roles": ["sales_rep"], "territories": ["432"]},
        {"id": "B", "full_name": "Ben", "roles": ["sales_rep"]},
        {"id": "M", "full_name": "Maya", "roles": ["sales_manager"]},
    ]}
    open_leads = [
        {"id": "o1", "assigned_to": "A", "status": "contacted"},
        {"id": "o2", "assigned_to": "A", "status": "new"},
    ]
    managers = [{"id": "M", "role": "sales_manager"}]

    paths = {
        "leads": temp_data_dir / "leads.json",
        "roster": temp_data_dir / "roster.json",
        "open": temp_data_dir / "open.json",
        "managers": temp_data_dir / "managers.json",
        "config": temp_data_dir / "config.json",
    }
    paths["leads"].write_text(json.dumps(leads))
    paths["roster"].write_text(json.dumps(roster))
    paths["open"].write_text(json.dumps({"leads": open_leads}))
    paths["managers"].write_text(json.dumps(managers))
    return {k: str(v) for k, v in paths.items()}


class TestScoreCommand:
    """Tests for `lead-engine score`."""

    def test_score_json(self, runner, files):
        result = runner.invoke(cli, ["--config", files["config"], "score", files["leads"], "--json"])
        assert result.exit_code == 0, result.output

        rows = {r["id"]: r for r in json.loads(result.output)}
        assert rows["l1"]["score"] == 65
        assert rows["l1"]["priority"] == "warm"
        assert rows["l2"]["score"] <= 10
        assert rows["l3"]["priority"] == "hot"
        assert rows["l3"]["next_action"] == "Send personalized pricing and close"
        assert rows["l1"]["source"] == "contact_form"
        assert rows["l3"]["conversion_probability"] == rows["l3"]["score"]

    def test_score_table(self, runner, files):
        result = runner.invoke(cli, ["--config", files["config"], "score", files["leads"]])
        assert result.exit_code == 0, result.output
        assert "l3" in result.output

    def test_score_explain(self, runner, files):
        result = runner.invoke(cli, ["--config", files["config"], "score", files["leads"], "--explain"])
        assert result.exit_code == 0, result.output
        assert "Total Score" in result.output


class TestAssignCommand:
    """Tests for `lead-engine assign`."""

    def test_round_robin_json(self, runner, files):
        result = runner.invoke(cli, [
            "--config", files["config"], "assign", files["leads"], files["roster"], "--json",
        ])
        assert result.exit_code == 0, result.output

        data = json.loads(result.output)
        assert data["assignments"] == {"l1": "A", "l2": "B", "l3": "M"}
        assert data["success"] == 3
        assert data["failed"] == 0
        assert data["next_cursor"] == 2

    def test_workload_with_open_leads(self, runner, files):
        result = runner.invoke(cli, [
            "--config", files["config"], "assign", files["leads"], files["roster"],
            "--strategy", "workload", "--exclude-managers", "--open-leads", files["open"], "--json",
        ])
        assert result.exit_code == 0, result.output

        data = json.loads(result.output)
        assert data["assignments"] == {"l1": "B", "l2": "B", "l3": "A"}
        assert data["workloads"] == {"A": 3, "B": 2}

    def test_priority_order(self, runner, files):
        result = runner.invoke(cli, [
            "--config", files["config"], "assign", files["leads"], files["roster"],
            "--priority-order", "--exclude-managers", "--json",
        ])
        assert result.exit_code == 0, result.output

        data = json.loads(result.output)
        assert list(data["assignments"]) == ["l3", "l1", "l2"]
        assert data["scores"]["l3"]["priority"] == "hot"

    def test_no_eligible_assignees_exits_nonzero(self, runner, files):
        result = runner.invoke(cli, [
            "--config", files["config"], "assign", files["leads"], files["managers"],
            "--exclude-managers",
        ])
        assert result.exit_code == 1
        assert "no eligible assignees" in result.output

    def test_table_output(self, runner, files):
        result = runner.invoke(cli, [
            "--config", files["config"], "assign", files["leads"], files["roster"],
            "--strategy", "territory",
        ])
        assert result.exit_code == 0, result.output
        assert "Assigned:" in result.output

    def test_bad_roster(self, runner, files, temp_data_dir):
        bad = temp_data_dir / "bad.json"
        bad.write_text(json.dumps([{"name": "no id"}]))
        result = runner.invoke(cli, ["--config", files["config"], "assign", files["leads"], str(bad)])
        assert result.exit_code != 0
        assert "Invalid roster entry" in result.output

    def test_non_object_roster_entry(self, runner, files, temp_data_dir):
        bad = temp_data_dir / "strings.json"
        bad.write_text(json.dumps(["A"]))
        result = runner.invoke(cli, ["--config", files["config"], "assign", files["leads"], str(bad)])
        assert result.exit_code == 1
        assert "Invalid roster entry #0" in result.output
        assert "Traceback" not in result.output


class TestConfigCommands:
    """Tests for `lead-engine config`."""

    def test_set_thresholds(self, runner, files):
        result = runner.invoke(cli, [
            "--config", files["config"], "config", "set-thresholds", "--hot", "80", "--warm", "50",
        ])
        assert result.exit_code == 0, result.output
        assert json.loads(Path(files["config"]).read_text())["hot_threshold"] == 80

    def test_invalid_thresholds(self, runner, files):
        result = runner.invoke(cli, [
            "--config", files["config"], "config", "set-thresholds", "--hot", "30", "--warm", "50",
        ])
        assert result.exit_code != 0
        assert not Path(files["config"]).exists()

    def test_set_source_prior_and_show(self, runner, files):
        result = runner.invoke(cli, [
            "--config", files["config"], "config", "set-source-prior", "referral", "50",
        ])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["--config", files["config"], "config", "show"])
        assert result.exit_code == 0, result.output
        assert "referral" in result.output
