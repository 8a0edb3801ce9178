"""Tests for settings validation and structured logging."""

import logging

import pytest
from pydantic import ValidationError

from app.core.logging import StructuredFormatter
from tests.fakes.fake_chat import make_settings


def test_defaults():
    settings = make_settings()

    assert settings.CHUNK_SIZE == 1400
    assert settings.CHUNK_OVERLAP == 200
    assert settings.MAX_CHUNKS == 400
    assert settings.MAX_SELECTED_CHUNKS == 6
    assert settings.MAX_SELECTED_CHARS == 9000
    assert settings.MAX_PROMPT_CHARS == 12000
    assert settings.MAX_HISTORY_MESSAGES == 8


def test_overlap_must_be_smaller_than_chunk_size():
    with pytest.raises(ValidationError, match="CHUNK_OVERLAP"):
        make_settings(CHUNK_SIZE=100, CHUNK_OVERLAP=100)


def test_structured_formatter_includes_context():
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "turn started", None, None)
    record.conversation_id = "c1"
    record.extra_data = {"model": "m"}

    line = StructuredFormatter().format(record)

    assert "level=INFO" in line
    assert "message=turn started" in line
    assert "conversation_id=c1" in line
    assert "model=m" in line
