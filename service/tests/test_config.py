"""
Tests for settings validation.
"""

import pytest
from pydantic import ValidationError

from app.config import Settings


class TestDisplayTimezone:
    def test_default_is_tokyo(self):
        assert Settings().display_timezone == "Asia/Tokyo"

    def test_valid_zone_accepted(self):
        assert Settings(display_timezone="UTC").display_timezone == "UTC"

    def test_unknown_zone_rejected(self):
        with pytest.raises(ValidationError, match="Unknown timezone"):
            Settings(display_timezone="Mars/Base")
