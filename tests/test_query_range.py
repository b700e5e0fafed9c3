import datetime as dt

import pytest

from clanboard.query_range import DateRange, RangeError, normalize_range, range_from_query

UTC = dt.timezone.utc
NOW = dt.datetime(2025, 3, 15, 12, 30, tzinfo=UTC)


def test_defaults_to_thirty_days_ending_now():
    rng = normalize_range(now=NOW)
    assert rng.end == NOW
    assert rng.start == dt.datetime(2025, 2, 13, 12, 30, tzinfo=UTC)


def test_default_start_crosses_month_and_year_boundaries():
    rng = normalize_range(end="2024-03-01T12:00:00Z", now=NOW)
    assert rng.start == dt.datetime(2024, 1, 31, 12, 0, tzinfo=UTC)

    rng = normalize_range(end="2025-01-10T00:00:00Z", now=NOW)
    assert rng.start == dt.datetime(2024, 12, 11, 0, 0, tzinfo=UTC)


def test_real_clock_default_window():
    before = dt.datetime.now(UTC)
    rng = normalize_range()
    after = dt.datetime.now(UTC)
    assert before <= rng.end <= after
    assert rng.end - rng.start == dt.timedelta(days=30)


def test_given_start_is_parsed_independently_of_end():
    rng = normalize_range(start="2025-03-01T00:00:00Z", now=NOW)
    assert rng.start == dt.datetime(2025, 3, 1, tzinfo=UTC)
    assert rng.end == NOW


def test_offset_and_local_timestamps():
    rng = normalize_range(start="2025-03-01T02:00:00+02:00", end="2025-03-02T00:00:00", now=NOW)
    assert rng.start == dt.datetime(2025, 3, 1, 0, 0, tzinfo=UTC)
    assert rng.end == dt.datetime(2025, 3, 2, 0, 0, tzinfo=UTC)

    rng = normalize_range(start="2025-03-01T00:00:00+0200", end="2025-03-01T05:00:00-05", now=NOW)
    assert rng.start == dt.datetime(2025, 2, 28, 22, 0, tzinfo=UTC)
    assert rng.end == dt.datetime(2025, 3, 1, 10, 0, tzinfo=UTC)


def test_fractional_seconds_accepted():
    rng = normalize_range(start="2025-03-01T00:00:00.123Z", end="2025-03-01T00:00:01.5Z", now=NOW)
    assert rng.start.microsecond == 123000


@pytest.mark.parametrize("field", ["start", "end"])
@pytest.mark.parametrize("raw", ["2025-03-01", "yesterday", "2025-13-01T00:00:00Z", "2025-03-01T25:00:00Z"])
def test_invalid_bound_names_field(field, raw):
    with pytest.raises(RangeError) as exc_info:
        normalize_range(**{field: raw}, now=NOW)
    assert exc_info.value.field == field
    assert exc_info.value.message == f"Invalid {field} date."


def test_both_bounds_invalid_reports_start():
    with pytest.raises(RangeError) as exc_info:
        normalize_range(start="bad", end="bad", now=NOW)
    assert exc_info.value.field == "start"


def test_start_after_end_fails():
    with pytest.raises(RangeError) as exc_info:
        normalize_range(start="2025-03-10T00:00:00Z", end="2025-03-01T00:00:00Z", now=NOW)
    assert exc_info.value.field == "start"
    assert exc_info.value.message == "Query start must be before end."


def test_start_in_future_without_end_fails():
    with pytest.raises(RangeError):
        normalize_range(start="2025-04-01T00:00:00Z", now=NOW)


def test_equal_bounds_allowed():
    rng = normalize_range(start="2025-03-01T00:00:00Z", end="2025-03-01T00:00:00Z", now=NOW)
    assert rng.start == rng.end


def test_to_query_renders_utc_millis():
    rng = DateRange(
        start=dt.datetime(2025, 3, 1, 0, 0, 0, 123456, tzinfo=UTC),
        end=dt.datetime(2025, 3, 2, 1, 2, 3, tzinfo=UTC),
    )
    assert rng.to_query() == {"start": "2025-03-01T00:00:00.123Z", "end": "2025-03-02T01:02:03.000Z"}


def test_range_from_query_treats_blank_as_absent():
    rng = range_from_query({"start": "", "end": "2025-03-01T00:00:00Z"})
    assert rng.end - rng.start == dt.timedelta(days=30)
