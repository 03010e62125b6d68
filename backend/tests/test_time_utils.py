from datetime import datetime, timezone, timedelta
from zoneinfo import ZoneInfo

from tabstock.time_utils import month_key, to_utc_z


def test_month_key_february_2026():
    assert month_key(datetime(2026, 2, 14, 12, 0, tzinfo=timezone.utc)) == "2026-02"


def test_month_key_is_zero_padded():
    assert month_key(datetime(2026, 9, 3, 8, 0, tzinfo=timezone.utc)) == "2026-09"


def test_month_key_uses_reference_timezone_not_utc():
    # 23:30 UTC on Jan 31 is already Feb 1 in Paris (UTC+1 in winter)
    late_january_utc = datetime(2026, 1, 31, 23, 30, tzinfo=timezone.utc)
    assert month_key(late_january_utc, "Europe/Paris") == "2026-02"
    assert month_key(late_january_utc, "UTC") == "2026-01"


def test_month_key_ignores_caller_timezone():
    instant = datetime(2026, 2, 28, 23, 30, tzinfo=ZoneInfo("Europe/Paris"))
    same_in_new_york = instant.astimezone(ZoneInfo("America/New_York"))
    same_in_tokyo = instant.astimezone(ZoneInfo("Asia/Tokyo"))

    assert month_key(instant) == "2026-02"
    assert month_key(same_in_new_york) == "2026-02"
    assert month_key(same_in_tokyo) == "2026-02"


def test_month_key_year_rollover():
    assert month_key(datetime(2026, 12, 31, 23, 30, tzinfo=timezone.utc)) == "2027-01"


def test_month_key_naive_is_utc():
    assert month_key(datetime(2026, 3, 31, 21, 0)) == "2026-03"
    assert month_key(datetime(2026, 3, 31, 22, 30)) == "2026-04"


def test_month_key_defaults_to_now():
    key = month_key()
    assert len(key) == 7 and key[4] == "-"


def test_to_utc_z():
    assert to_utc_z(None) is None
    assert to_utc_z(datetime(2026, 1, 5, 10, 0, 0, 123456)) == "2026-01-05T10:00:00Z"
    paris = datetime(2026, 1, 5, 11, 0, tzinfo=timezone(timedelta(hours=1)))
    assert to_utc_z(paris) == "2026-01-05T10:00:00Z"
