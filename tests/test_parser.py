"""Tests for parameter and metric file parsing."""

import json
from datetime import datetime, timezone

import pytest

from mlflow_cli.exceptions import ParseError
from mlflow_cli.parser import load_document, parse_metrics_file, parse_params_file


class TestParseParamsFile:
    """Tests for parse_params_file function."""

    def test_json(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text(json.dumps({"parameters": {"learning_rate": "0.01", "optimizer": "adam"}}))

        assert parse_params_file(path) == {"learning_rate": "0.01", "optimizer": "adam"}

    @pytest.mark.parametrize("suffix", [".yaml", ".yml", ".YAML"])
    def test_yaml(self, tmp_path, suffix):
        path = tmp_path / f"params{suffix}"
        path.write_text("parameters:\n  learning_rate: 0.01\n  epochs: 10\n  shuffle: true\n  name: resnet\n")

        assert parse_params_file(path) == {
            "learning_rate": "0.01",
            "epochs": "10",
            "shuffle": "True",
            "name": "resnet",
        }

    def test_empty_file(self, tmp_path):
        path = tmp_path / "params.yaml"
        path.write_text("")

        assert parse_params_file(path) == {}

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "params.toml"
        path.write_text("[parameters]\n")

        with pytest.raises(ParseError, match="unsupported file format: .toml"):
            parse_params_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ParseError, match="failed to open file"):
            parse_params_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text("{not json")

        with pytest.raises(ParseError, match="failed to parse JSON file"):
            parse_params_file(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "params.yaml"
        path.write_text("parameters: [unclosed\n")

        with pytest.raises(ParseError, match="failed to parse YAML file"):
            parse_params_file(path)

    def test_wrong_layout(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text(json.dumps({"parameters": ["a", "b"]}))

        with pytest.raises(ParseError, match="failed to parse parameters file"):
            parse_params_file(path)


class TestParseMetricsFile:
    """Tests for parse_metrics_file function."""

    def test_json(self, tmp_path):
        path = tmp_path / "metrics.json"
        path.write_text(
            json.dumps(
                {
                    "metrics": [
                        {"timestamp": "2024-01-15T10:00:00Z", "execution_time": 1.5, "error_count": 2},
                        {"step": 4, "success_rate": 0.98, "gpu_util": 0.7},
                    ]
                }
            )
        )

        metrics_file = parse_metrics_file(path)

        first, second = metrics_file.metrics
        assert first.timestamp == datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)
        assert first.execution_time == 1.5
        assert first.error_count == 2.0
        assert second.timestamp is None
        assert second.step == 4
        assert second.extra_fields() == {"gpu_util": 0.7}

    def test_yaml(self, tmp_path):
        path = tmp_path / "metrics.yaml"
        path.write_text(
            "metrics:\n"
            "  - timestamp: '2024-01-15T10:01:30+00:00'\n"
            "    execution_time: 1.3\n"
            "    error_count: 1\n"
        )

        metrics_file = parse_metrics_file(path)

        assert len(metrics_file.metrics) == 1
        assert metrics_file.metrics[0].timestamp == datetime(2024, 1, 15, 10, 1, 30, tzinfo=timezone.utc)

    def test_yaml_native_timestamp(self, tmp_path):
        """Unquoted YAML timestamps are decoded to datetimes before validation."""
        path = tmp_path / "metrics.yml"
        path.write_text("metrics:\n  - timestamp: 2024-01-15 10:00:00\n    error_count: 0\n")

        metrics_file = parse_metrics_file(path)

        assert metrics_file.metrics[0].timestamp == datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)

    def test_non_numeric_field(self, tmp_path):
        path = tmp_path / "metrics.json"
        path.write_text(json.dumps({"metrics": [{"error_count": 1, "host": "gpu-01"}]}))

        with pytest.raises(ParseError, match="failed to parse metrics file"):
            parse_metrics_file(path)

    def test_invalid_timestamp(self, tmp_path):
        path = tmp_path / "metrics.json"
        path.write_text(json.dumps({"metrics": [{"timestamp": "last tuesday"}]}))

        with pytest.raises(ParseError):
            parse_metrics_file(path)

    def test_empty_metrics(self, tmp_path):
        path = tmp_path / "metrics.json"
        path.write_text(json.dumps({"metrics": []}))

        assert parse_metrics_file(path).metrics == []


def test_load_document_without_extension(tmp_path):
    path = tmp_path / "metrics"
    path.write_text("{}")

    with pytest.raises(ParseError, match=r"unsupported file format: \(none\)"):
        load_document(path)
