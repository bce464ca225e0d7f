"""Structured Logging — verifies JSON output and surfaced extra fields."""

import json
import logging

from domain_settings.infrastructure.observability import JSONFormatter


def test_json_formatter_includes_known_extras():
    record = logging.LogRecord(
        "domain_settings.test", logging.WARNING, __file__, 1, "skipped %s", ("key",), None,
    )
    record.key_path = "audio_env.attenuation_per_doubling_in_distance"
    record.schema_version = 1.5

    payload = json.loads(JSONFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["message"] == "skipped key"
    assert payload["key_path"] == "audio_env.attenuation_per_doubling_in_distance"
    assert payload["schema_version"] == 1.5
    assert "group_id" not in payload
