"""Tests for metric log lines."""

import json
from unittest.mock import patch

import pytest

from app.core.observability.metrics import (
    log_counter_increment,
    log_gauge_set,
    log_metric,
    log_presence_change,
    log_side_effect_failure,
    timed,
)


def logged_lines(mock_logger):
    return [json.loads(call.args[0]) for call in mock_logger.info.call_args_list]


class TestMetricLines:
    def test_log_metric_envelope(self, monkeypatch):
        monkeypatch.setenv("INSTANCE_ID", "api-2")
        with patch("app.core.observability.metrics.logger") as mock_logger:
            log_metric("test_event", value=42.5, labels={"key": "value"})

        (line,) = logged_lines(mock_logger)
        assert line["event_type"] == "test_event"
        assert line["value"] == 42.5
        assert line["labels"] == {"key": "value"}
        assert line["service"] == "sayarti-messaging"
        assert line["instance_id"] == "api-2"
        assert line["timestamp"].endswith("+00:00")

    def test_counter_omits_empty_labels(self):
        with patch("app.core.observability.metrics.logger") as mock_logger:
            log_counter_increment("messages_sent")

        (line,) = logged_lines(mock_logger)
        assert line["counter_name"] == "messages_sent"
        assert "labels" not in line
        assert "value" not in line

    def test_gauge(self):
        with patch("app.core.observability.metrics.logger") as mock_logger:
            log_gauge_set("realtime_online_users", 3)

        (line,) = logged_lines(mock_logger)
        assert line["gauge_name"] == "realtime_online_users"
        assert line["value"] == 3

    def test_presence_change_emits_event_and_gauge(self):
        with patch("app.core.observability.metrics.logger") as mock_logger:
            log_presence_change("registered", 9, 4)

        event, gauge = logged_lines(mock_logger)
        assert event["connection_event"] == "registered"
        assert event["user_id"] == 9
        assert gauge["gauge_name"] == "realtime_online_users"
        assert gauge["value"] == 4

    def test_side_effect_failure(self):
        with patch("app.core.observability.metrics.logger") as mock_logger:
            log_side_effect_failure("realtime_push", 301, "broken pipe")

        (line,) = logged_lines(mock_logger)
        assert line["counter_name"] == "send_side_effect_failed"
        assert line["labels"] == {"side_effect": "realtime_push"}
        assert line["message_id"] == 301
        assert line["error"] == "broken pipe"


class TestTimed:
    def test_records_duration(self):
        with patch("app.core.observability.metrics.logger") as mock_logger:
            with timed("message_commit_seconds"):
                pass

        (line,) = logged_lines(mock_logger)
        assert line["histogram_name"] == "message_commit_seconds"
        assert line["value"] >= 0

    def test_nothing_recorded_on_error(self):
        with patch("app.core.observability.metrics.logger") as mock_logger:
            with pytest.raises(RuntimeError):
                with timed("message_commit_seconds"):
                    raise RuntimeError("boom")

        mock_logger.info.assert_not_called()
