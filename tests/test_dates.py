import datetime

from toughfeed.dates import parse_freeform, parse_iso8601, parse_rfc2822, resolve

UTC = datetime.timezone.utc


def test_structured_timestamp():
    expected = datetime.datetime(2003, 6, 10, 9, 41, 1, tzinfo=UTC)
    assert parse_iso8601("2003-06-10T09:41:01Z") == expected
    assert resolve("2003-06-10T09:41:01Z") == expected


def test_mail_timestamp_is_not_structured():
    assert parse_iso8601("Tue, 10 Jun 2003 09:41:01 GMT") is None
    assert parse_rfc2822("Tue, 10 Jun 2003 09:41:01 GMT") == datetime.datetime(
        2003, 6, 10, 9, 41, 1, tzinfo=UTC
    )


def test_both_formats_resolve_to_same_instant():
    assert resolve("2003-06-10T09:41:01Z") == resolve("Tue, 10 Jun 2003 09:41:01 GMT")


def test_offsets_are_preserved():
    iso = resolve("2003-06-10T09:41:01-05:00")
    assert iso.utcoffset() == datetime.timedelta(hours=-5)
    mail = resolve("Tue, 10 Jun 2003 09:41:01 +0200")
    assert mail.utcoffset() == datetime.timedelta(hours=2)
    compact = resolve("2003-06-10T09:41:01+0530")
    assert compact.utcoffset() == datetime.timedelta(hours=5, minutes=30)


def test_date_only_and_space_separated_iso():
    assert resolve("2003-06-10") == datetime.datetime(2003, 6, 10)
    assert resolve("2003-06-10 09:41:01 UTC") == datetime.datetime(
        2003, 6, 10, 9, 41, 1, tzinfo=UTC
    )


def test_freeform_fallback():
    assert parse_iso8601("2003/06/10 09:41:01") is None
    assert parse_rfc2822("2003/06/10 09:41:01") is None
    assert resolve("2003/06/10 09:41:01") == datetime.datetime(2003, 6, 10, 9, 41, 1)


def test_freeform_understands_zone_abbreviations():
    parsed = parse_freeform("10 Jun 2003 09:41:01 EST")
    assert parsed.utcoffset() == datetime.timedelta(hours=-5)


def test_unparseable_and_empty_input_resolve_to_none():
    assert resolve("not a date") is None
    assert resolve("") is None
    assert resolve("   \n") is None
    assert resolve(None) is None


def test_impossible_dates_are_repaired():
    assert resolve("2023-02-29T10:00:00Z") == datetime.datetime(
        2023, 2, 28, 10, 0, 0, tzinfo=UTC
    )
    assert resolve("2024-01-15T24:00:00Z") == datetime.datetime(
        2024, 1, 16, 0, 0, 0, tzinfo=UTC
    )


def test_surrounding_whitespace_is_ignored():
    assert resolve("\n   2003-06-10T09:41:01Z \n") == datetime.datetime(
        2003, 6, 10, 9, 41, 1, tzinfo=UTC
    )
