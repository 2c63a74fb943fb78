"""Tests for the epoch / ISO-8601 timestamp codec."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from esa.models import Invitation
from esa.timestamps import format_timestamp, from_epoch, parse_timestamp

_JST = timezone(timedelta(hours=9))


class TestFromEpoch:
    def test_decodes_seconds(self):
        assert from_epoch(1372700873) == datetime(
            2013, 7, 1, 17, 47, 53, tzinfo=timezone.utc
        )

    def test_decodes_string(self):
        assert from_epoch("1372700873") == datetime(
            2013, 7, 1, 17, 47, 53, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize("value", [0, "0", None, "", "soon"])
    def test_unknown_reset(self, value):
        assert from_epoch(value) is None


class TestParseTimestamp:
    def test_iso_with_offset(self):
        assert parse_timestamp("2017-08-17T12:00:41+09:00") == datetime(
            2017, 8, 17, 12, 0, 41, tzinfo=_JST
        )

    def test_zulu_suffix(self):
        assert parse_timestamp("2013-07-01T17:47:53Z") == datetime(
            2013, 7, 1, 17, 47, 53, tzinfo=timezone.utc
        )

    def test_epoch_int(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_datetime_passthrough(self):
        dt = datetime(2020, 1, 1, tzinfo=timezone.utc)
        assert parse_timestamp(dt) is dt

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_timestamp(["nope"])


class TestFormatTimestamp:
    def test_keeps_offset(self):
        dt = datetime(2017, 8, 17, 12, 0, 41, tzinfo=_JST)
        assert format_timestamp(dt) == "2017-08-17T12:00:41+09:00"

    def test_naive_treated_as_utc(self):
        assert format_timestamp(datetime(2013, 7, 1, 17, 47, 53)) == (
            "2013-07-01T17:47:53+00:00"
        )

    def test_round_trip(self):
        text = "2017-08-17T12:00:44+09:00"
        assert format_timestamp(parse_timestamp(text)) == text


class TestModelField:
    def test_invitation_expires_at(self):
        inv = Invitation.model_validate({
            "email": "foo@example.com",
            "code": "abc",
            "expires_at": "2017-08-17T12:00:41+09:00",
        })
        assert inv.expires_at == datetime(2017, 8, 17, 12, 0, 41, tzinfo=_JST)
        assert inv.model_dump(mode="json")["expires_at"] == "2017-08-17T12:00:41+09:00"
