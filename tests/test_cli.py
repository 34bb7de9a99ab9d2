"""Tests for the command line interface."""

import json
import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from mlflow_cli import cli
from mlflow_cli.exceptions import NotFoundError, TrackingError
from mlflow_cli.models import FileFailure, UploadResult
from mlflow_cli.models.run import RunInfo, RunStatus


@pytest.fixture
def tracking_client(monkeypatch):
    """Replace TrackingClient in the CLI with a mock and record its configs."""
    client = MagicMock()
    client.configs = []

    def factory(config):
        client.configs.append(config)
        return client

    monkeypatch.setattr(cli, "TrackingClient", factory)
    return client


@pytest.fixture
def artifact_router(monkeypatch, tracking_client):
    router = MagicMock()
    monkeypatch.setattr(cli, "ArtifactRouter", lambda client: router)
    return router


def test_process_escape_sequences():
    assert cli.process_escape_sequences("line1\\nline2\\tcol\\\\n") == "line1\nline2\tcol\\n"


class TestParser:
    """Tests for argument parsing."""

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 2
        assert "usage: mlflow-cli" in capsys.readouterr().out

    def test_group_without_subcommand_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["log"])
        assert exc_info.value.code == 2

    def test_verbose_enables_debug(self, monkeypatch, tracking_client):
        levels = []
        monkeypatch.setattr(cli, "set_level", levels.append)

        cli.main(["--verbose", "run", "end", "--run-id", "r1"])

        assert levels == [logging.DEBUG]

    def test_invalid_end_status_rejected(self):
        with pytest.raises(SystemExit):
            cli.main(["run", "end", "--run-id", "r1", "--status", "RUNNING"])

    def test_invalid_time_resolution_rejected(self):
        with pytest.raises(SystemExit):
            cli.main(["log", "metrics", "--run-id", "r1", "--from-file", "m.json", "--time-resolution", "30s"])


class TestRunCommands:
    """Tests for run start / run end."""

    def test_run_start_prints_only_run_id(self, tracking_client, capsys):
        tracking_client.create_run.return_value = RunInfo(run_id="abc123", experiment_id="1")

        cli.main(
            [
                "--tracking-uri",
                "http://mlflow.test:5000",
                "run",
                "start",
                "--experiment-id",
                "1",
                "--run-name",
                "baseline",
                "--tag",
                "team=ml",
                "--tag",
                "query=a=b",
                "--description",
                "first\\nrun",
            ]
        )

        assert capsys.readouterr().out == "abc123\n"
        run_config = tracking_client.create_run.call_args.args[0]
        assert run_config.experiment_id == "1"
        assert run_config.run_name == "baseline"
        assert run_config.tags == {"team": "ml", "query": "a=b"}
        assert run_config.description == "first\nrun"
        assert tracking_client.configs[0].tracking_uri == "http://mlflow.test:5000"

    def test_run_start_experiment_from_env(self, monkeypatch, tracking_client, capsys):
        monkeypatch.setenv("MLFLOW_EXPERIMENT_ID", "99")
        tracking_client.create_run.return_value = RunInfo(run_id="abc123", experiment_id="99")

        cli.main(["run", "start"])

        assert tracking_client.create_run.call_args.args[0].experiment_id == "99"

    def test_run_start_requires_experiment(self, tracking_client):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["run", "start"])
        assert exc_info.value.code == 1
        tracking_client.create_run.assert_not_called()

    def test_run_start_invalid_tag(self, tracking_client):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["run", "start", "--experiment-id", "1", "--tag", "novalue"])
        assert exc_info.value.code == 1

    def test_run_end_default_status(self, tracking_client, capsys):
        cli.main(["run", "end", "--run-id", "abc123"])

        tracking_client.update_run.assert_called_once_with("abc123", RunStatus.FINISHED)
        out = capsys.readouterr().out
        assert "Run ID: abc123" in out
        assert "Status: FINISHED" in out

    def test_run_end_failed(self, tracking_client):
        cli.main(["run", "end", "--run-id", "abc123", "--status", "FAILED"])

        tracking_client.update_run.assert_called_once_with("abc123", RunStatus.FAILED)

    def test_tracking_error_exits_1(self, tracking_client):
        tracking_client.update_run.side_effect = TrackingError("runs/update request failed", status_code=404, body="missing")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["run", "end", "--run-id", "abc123"])
        assert exc_info.value.code == 1


class TestLogCommands:
    """Tests for log params / metric / metrics."""

    def test_log_params_from_flags(self, tracking_client, capsys):
        cli.main(["log", "params", "--run-id", "r1", "--param", "lr=0.01", "--param", "epochs=10"])

        tracking_client.log_params.assert_called_once_with("r1", {"lr": "0.01", "epochs": "10"})
        assert "Successfully logged 2 parameters" in capsys.readouterr().out

    def test_log_params_from_file(self, tracking_client, tmp_path):
        path = tmp_path / "params.json"
        path.write_text(json.dumps({"parameters": {"optimizer": "adam"}}))

        cli.main(["log", "params", "--run-id", "r1", "--from-file", str(path)])

        tracking_client.log_params.assert_called_once_with("r1", {"optimizer": "adam"})

    def test_log_params_requires_source(self, tracking_client):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["log", "params", "--run-id", "r1"])
        assert exc_info.value.code == 1

    def test_log_params_invalid_format(self, tracking_client):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["log", "params", "--run-id", "r1", "--param", "lr"])
        assert exc_info.value.code == 1
        tracking_client.log_params.assert_not_called()

    def test_log_metric(self, tracking_client, capsys):
        cli.main(
            [
                "log",
                "metric",
                "--run-id",
                "r1",
                "--name",
                "accuracy",
                "--value",
                "0.95",
                "--step",
                "3",
                "--timestamp",
                "2024-01-15T10:00:00Z",
            ]
        )

        tracking_client.log_metric.assert_called_once_with(
            "r1",
            "accuracy",
            0.95,
            timestamp=datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc),
            step=3,
        )
        out = capsys.readouterr().out
        assert "accuracy = 0.950000" in out
        assert "(step: 3)" in out

    def test_log_metric_negative_step_is_unset(self, tracking_client):
        cli.main(["log", "metric", "--run-id", "r1", "--name", "loss", "--value", "0.1", "--step", "-1"])

        assert tracking_client.log_metric.call_args.kwargs == {"timestamp": None, "step": None}

    def test_log_metric_invalid_timestamp(self, tracking_client):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["log", "metric", "--run-id", "r1", "--name", "loss", "--value", "0.1", "--timestamp", "noon"])
        assert exc_info.value.code == 1
        tracking_client.log_metric.assert_not_called()

    def test_log_metrics_from_file(self, tracking_client, tmp_path, capsys):
        path = tmp_path / "metrics.json"
        path.write_text(
            json.dumps(
                {
                    "metrics": [
                        {"timestamp": "2024-01-15T10:00:00Z", "execution_time": 1.5, "error_count": 2},
                        {"timestamp": "2024-01-15T10:01:30Z", "execution_time": 1.3, "error_count": 1},
                    ]
                }
            )
        )

        cli.main(["log", "metrics", "--run-id", "r1", "--from-file", str(path), "--step-mode", "timestamp"])

        run_id, metrics = tracking_client.log_batch_metrics.call_args.args
        assert run_id == "r1"
        assert [(m.key, m.value, m.step) for m in metrics] == [
            ("execution_time", 1.5, 0),
            ("error_count", 2.0, 0),
            ("execution_time", 1.3, 1),
            ("error_count", 1.0, 1),
        ]
        out = capsys.readouterr().out
        assert "Successfully logged 4 metrics" in out
        assert "resolution=1m, alignment=floor, step_mode=timestamp" in out
        assert "execution_time: 2 data points" in out

    def test_log_metrics_time_settings_from_env(self, monkeypatch, tracking_client, tmp_path):
        monkeypatch.setenv("MLFLOW_TIME_RESOLUTION", "1h")
        monkeypatch.setenv("MLFLOW_TIME_ALIGNMENT", "ceil")
        path = tmp_path / "metrics.yaml"
        path.write_text("metrics:\n  - timestamp: '2024-01-15T10:20:00Z'\n    error_count: 1\n")

        cli.main(["log", "metrics", "--run-id", "r1", "--from-file", str(path)])

        metrics = tracking_client.log_batch_metrics.call_args.args[1]
        assert metrics[0].timestamp == datetime(2024, 1, 15, 11, 0, 0, tzinfo=timezone.utc)

    def test_log_metrics_invalid_env_setting(self, monkeypatch, tmp_path):
        """The real client rejects the configuration before any request."""
        monkeypatch.setenv("MLFLOW_TIME_ALIGNMENT", "nearest")
        path = tmp_path / "metrics.json"
        path.write_text(json.dumps({"metrics": []}))

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["log", "metrics", "--run-id", "r1", "--from-file", str(path)])
        assert exc_info.value.code == 1

    def test_log_metrics_parse_error(self, tracking_client, tmp_path):
        path = tmp_path / "metrics.txt"
        path.write_text("")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["log", "metrics", "--run-id", "r1", "--from-file", str(path)])
        assert exc_info.value.code == 1
        tracking_client.log_batch_metrics.assert_not_called()


class TestLogArtifact:
    """Tests for log artifact."""

    def test_single_file(self, artifact_router, capsys):
        artifact_router.upload_many.return_value = UploadResult(succeeded=["/tmp/model.pkl"])

        cli.main(["log", "artifact", "--run-id", "r1", "--file", "/tmp/model.pkl", "--artifact-path", "models/m.pkl"])

        artifact_router.upload_many.assert_called_once_with("r1", ["/tmp/model.pkl"], "models/m.pkl")
        out = capsys.readouterr().out
        assert "Successfully uploaded artifact: /tmp/model.pkl" in out
        assert "Artifact path: models/m.pkl" in out

    def test_partial_success(self, artifact_router, capsys):
        artifact_router.upload_many.return_value = UploadResult(
            succeeded=["a.txt", "c.txt"],
            failed=[FileFailure(path="b.txt", error=NotFoundError("b.txt"))],
        )

        cli.main(["log", "artifact", "--run-id", "r1", "--file", "a.txt", "--file", "b.txt", "--file", "c.txt"])

        assert "Successfully uploaded 2/3 artifacts" in capsys.readouterr().out

    def test_all_failed_exits_1(self, artifact_router):
        artifact_router.upload_many.return_value = UploadResult(
            failed=[FileFailure(path="a.txt", error=NotFoundError("a.txt"))],
        )

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["log", "artifact", "--run-id", "r1", "--file", "a.txt"])
        assert exc_info.value.code == 1

    def test_artifact_path_with_multiple_files(self, artifact_router):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["log", "artifact", "--run-id", "r1", "--file", "a", "--file", "b", "--artifact-path", "x"])
        assert exc_info.value.code == 1
        artifact_router.upload_many.assert_not_called()
