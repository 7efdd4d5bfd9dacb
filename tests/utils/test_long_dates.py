from datetime import date

from reviewcrawl.utils.datetime_utils import parse_long_date, utc_now


def test_parse_long_date():
    assert parse_long_date("2 September 2022") == date(2022, 9, 2)
    assert parse_long_date(" 14  March   2019 ") == date(2019, 3, 14)


def test_parse_long_date_rejects_other_formats():
    assert parse_long_date("2022-09-02") is None
    assert parse_long_date("") is None
    assert parse_long_date(None) is None


def test_utc_now_is_naive():
    assert utc_now().tzinfo is None
