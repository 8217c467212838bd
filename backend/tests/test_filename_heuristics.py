"""
Tests for filename heuristics: source classification and embedded timestamps.

Pure functions; no filesystem access.
"""

from datetime import datetime, timedelta, timezone

import pytest

from videostitch.metadata.filename import (
    SOURCE_PATTERNS,
    TIMESTAMP_PATTERNS,
    classify_source,
    extract_filename_timestamp,
)
from videostitch.metadata.models import SourceCategory


class TestClassifySource:
    """Tests for classify_source()."""

    @pytest.mark.parametrize("filename,expected", [
        ("VID_20230514_183012.mp4", SourceCategory.ANDROID),
        ("vid_20230514_183012.mp4", SourceCategory.ANDROID),
        ("IMG_1234.MOV", SourceCategory.IPHONE),
        ("GH010123.MP4", SourceCategory.GOPRO),
        ("GX012345.mp4", SourceCategory.GOPRO),
        ("GO123456.mp4", SourceCategory.GOPRO),
        ("DJI_0001.MP4", SourceCategory.DJI),
        ("VID-20230514-WA0003.mp4", SourceCategory.WHATSAPP),
        ("holiday.mp4", SourceCategory.OTHER),
        ("", SourceCategory.OTHER),
    ])
    def test_known_patterns(self, filename, expected):
        assert classify_source(filename) == expected

    def test_patterns_are_anchored_at_start(self):
        """
        GIVEN: A device prefix that appears mid-name
        WHEN: The name is classified
        THEN: It is not recognised
        """
        assert classify_source("copy of IMG_1234.mov") == SourceCategory.OTHER
        assert classify_source("my_DJI_0001.mp4") == SourceCategory.OTHER

    def test_whatsapp_is_not_android(self):
        """VID- with a hyphen is WhatsApp; only VID_ with underscore is Android."""
        assert classify_source("VID-20230514-WA0003.mp4") == SourceCategory.WHATSAPP

    def test_gopro_requires_six_digits(self):
        assert classify_source("GH01.mp4") == SourceCategory.OTHER

    def test_table_order_is_fixed(self):
        categories = [category for _, category in SOURCE_PATTERNS]
        assert categories == [
            SourceCategory.ANDROID,
            SourceCategory.IPHONE,
            SourceCategory.GOPRO,
            SourceCategory.DJI,
            SourceCategory.WHATSAPP,
        ]


class TestExtractFilenameTimestamp:
    """Tests for extract_filename_timestamp()."""

    def test_android_pattern(self):
        result = extract_filename_timestamp("VID_20230514_183012.mp4")
        assert result == datetime(2023, 5, 14, 18, 30, 12, tzinfo=timezone.utc)

    def test_dji_pattern(self):
        result = extract_filename_timestamp("DJI_20230514183012_0001.MP4")
        assert result == datetime(2023, 5, 14, 18, 30, 12, tzinfo=timezone.utc)

    @pytest.mark.parametrize("filename", [
        "2023-05-14_18-30-12.mp4",
        "2023_05_14_18_30_12.mov",
        "Screen Recording 2023-05-14 18-30-12.mp4",
    ])
    def test_generic_separated_pattern(self, filename):
        result = extract_filename_timestamp(filename)
        assert result == datetime(2023, 5, 14, 18, 30, 12, tzinfo=timezone.utc)

    def test_generic_compact_pattern(self):
        result = extract_filename_timestamp("PXL_20230514_183012345.mp4")
        assert result == datetime(2023, 5, 14, 18, 30, 12, tzinfo=timezone.utc)

    def test_whatsapp_pattern_is_date_only(self):
        result = extract_filename_timestamp("VID-20230514-WA0003.mp4")
        assert result == datetime(2023, 5, 14, 0, 0, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("filename", [
        "holiday.mp4",
        "IMG_1234.MOV",
        "DJI_0001.MP4",
        "",
    ])
    def test_no_match_returns_none(self, filename):
        assert extract_filename_timestamp(filename) is None

    @pytest.mark.parametrize("filename", [
        "VID_20231301_120000.mp4",  # month 13
        "VID_20230230_120000.mp4",  # Feb 30
        "VID_20230514_250000.mp4",  # hour 25
    ])
    def test_invalid_calendar_date_returns_none(self, filename):
        """
        GIVEN: A name that matches a pattern but is not a real date
        WHEN: The timestamp is extracted
        THEN: None is returned and nothing is raised
        """
        assert extract_filename_timestamp(filename) is None

    def test_invalid_match_falls_through_to_next_pattern(self):
        """
        GIVEN: An invalid Android timestamp followed by a valid separated one
        WHEN: The timestamp is extracted
        THEN: The later pattern supplies the result
        """
        result = extract_filename_timestamp("VID_20231301_120000 2023-05-14_18-30-12.mp4")
        assert result == datetime(2023, 5, 14, 18, 30, 12, tzinfo=timezone.utc)

    def test_result_is_timezone_aware(self):
        result = extract_filename_timestamp("VID_20230514_183012.mp4")
        assert result.tzinfo is not None

    def test_custom_zone(self):
        cet = timezone(timedelta(hours=2))
        result = extract_filename_timestamp("VID_20230514_183012.mp4", tz=cet)
        assert result == datetime(2023, 5, 14, 16, 30, 12, tzinfo=timezone.utc)

    def test_table_has_five_entries(self):
        assert len(TIMESTAMP_PATTERNS) == 5
