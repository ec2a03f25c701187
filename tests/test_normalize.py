from __future__ import annotations

from datetime import date, datetime

import pandas as pd
import pytest

from pivot_engine.clean.normalize import (
    GENERIC_SCHEMA,
    LEADS_SCHEMA,
    PAYROLL_SCHEMA,
    SALES_SCHEMA,
    UNKNOWN,
    RecordSchema,
    coerce_number,
    field_equals,
    field_truthy,
    normalize,
    normalize_dimension,
    parse_timestamp,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-01-05", date(2024, 1, 5)),
        ("2024-1-5", date(2024, 1, 5)),
        ("2024-01-31T23:30:00Z", date(2024, 1, 31)),
        ("2024-01-31 23:30:00", date(2024, 1, 31)),
        ("05/02/2024", date(2024, 2, 5)),
        ("5/2/2024", date(2024, 2, 5)),
        ("03/2024", date(2024, 3, 1)),
        ("2024-03", date(2024, 3, 1)),
        ("Jan 2024", date(2024, 1, 1)),
        ("Sept-2024", date(2024, 9, 1)),
        ("december 2023", date(2023, 12, 1)),
        (datetime(2024, 6, 30, 22, 0), date(2024, 6, 30)),
        (pd.Timestamp("2024-07-01 08:00"), date(2024, 7, 1)),
        (date(2024, 8, 9), date(2024, 8, 9)),
    ],
)
def test_parse_timestamp_accepted_dialects(raw: object, expected: date) -> None:
    assert parse_timestamp(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [None, "", "   ", "-", "not a date", "31/02/2024", "2024-13-01", "Foo 2024",
     float("nan"), pd.NaT, 20240105, ["2024-01-05"]],
)
def test_parse_timestamp_rejects_unparsable(raw: object) -> None:
    assert parse_timestamp(raw) is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 0.0),
        ("", 0.0),
        ("abc", 0.0),
        ("1,250.50", 1250.5),
        (" 42 ", 42.0),
        (3, 3.0),
        (2.5, 2.5),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        ("-inf", 0.0),
        ({"a": 1}, 0.0),
    ],
)
def test_coerce_number(raw: object, expected: float) -> None:
    assert coerce_number(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", float("nan")])
def test_missing_dimension_becomes_unknown(raw: object) -> None:
    assert normalize_dimension(raw) == UNKNOWN


def test_dimension_is_trimmed() -> None:
    assert normalize_dimension("  Google ") == "Google"
    assert normalize_dimension(7) == "7"


def test_field_truthy_accepts_common_encodings() -> None:
    pred = field_truthy("converted")
    assert pred({"converted": True})
    assert pred({"converted": "Yes"})
    assert pred({"converted": 1})
    assert not pred({"converted": False})
    assert not pred({"converted": "no"})
    assert not pred({"converted": 0})
    assert not pred({})


def test_field_equals_compares_trimmed_strings() -> None:
    pred = field_equals("stage", "Trial Completed")
    assert pred({"stage": " Trial Completed "})
    assert not pred({"stage": "trial completed"})
    assert not pred({"stage": None})


def test_normalize_lead_record() -> None:
    rec = {
        "createdAt": "12/03/2024",
        "source": "Instagram",
        "stage": "Trial Completed",
        "conversionStatus": "Converted",
        "ltv": "15,000",
    }
    snapshot = dict(rec)
    n = normalize(rec, "source", LEADS_SCHEMA)
    assert n.timestamp == date(2024, 3, 12)
    assert n.dimension == "Instagram"
    assert n.amount == 15000.0
    assert n.trial and n.converted and not n.lost
    assert rec == snapshot


def test_normalize_lost_lead_by_stage_or_status() -> None:
    by_stage = normalize({"createdAt": "2024-01-01", "stage": "Lost"}, "source", LEADS_SCHEMA)
    by_status = normalize(
        {"createdAt": "2024-01-01", "conversionStatus": "Lost"}, "source", LEADS_SCHEMA
    )
    assert by_stage.lost and by_status.lost
    assert by_stage.dimension == UNKNOWN


def test_normalize_sales_record_reads_vat() -> None:
    rec = {"paymentDate": "2024-05-02", "paymentMethod": "Card", "paymentValue": 1180, "paymentVAT": 180}
    n = normalize(rec, "paymentMethod", SALES_SCHEMA)
    assert (n.amount, n.vat) == (1180.0, 180.0)
    assert not (n.converted or n.trial or n.lost)


def test_normalize_keeps_undated_records() -> None:
    n = normalize({"date": "garbage", "source": "Google", "amount": "x"}, "source", GENERIC_SCHEMA)
    assert n.timestamp is None
    assert not n.bucketable
    assert n.amount == 0.0
    assert n.dimension == "Google"


def test_normalize_with_callable_dimension_and_counters() -> None:
    schema = RecordSchema(counters={"vip": field_truthy("vip"), "walkin": field_truthy("walkin")})
    rec = {"date": "2024-02-01", "trainer": {"name": "Asha"}, "vip": True}
    n = normalize(rec, lambda r: r["trainer"]["name"], schema)
    assert n.dimension == "Asha"
    assert n.counters == ("vip",)


def test_normalize_applies_validity_window() -> None:
    schema = GENERIC_SCHEMA.with_window(date(2020, 1, 1), date(2025, 6, 30))
    assert normalize({"date": "2019-12-31"}, "source", schema).timestamp is None
    assert normalize({"date": "2025-07-01"}, "source", schema).timestamp is None
    assert normalize({"date": "2025-06-30"}, "source", schema).timestamp == date(2025, 6, 30)


@pytest.mark.parametrize(
    "rec",
    [
        {"createdAt": "2024-01-01", "stage": "Trial Completed"},
        {"createdAt": "2024-01-01", "stage": "Trial Booked", "trialStatus": "Completed"},
    ],
)
def test_normalize_trial_lead_by_stage_or_trial_status(rec: dict[str, str]) -> None:
    assert normalize(rec, "source", LEADS_SCHEMA).trial


def test_normalize_trial_status_other_than_completed_is_not_a_trial() -> None:
    rec = {"createdAt": "2024-01-01", "stage": "Trial Booked", "trialStatus": "Scheduled"}
    assert not normalize(rec, "source", LEADS_SCHEMA).trial


def test_normalize_payroll_record_reads_named_sums() -> None:
    rec = {
        "monthYear": "Mar 2024",
        "teacherName": "Asha",
        "totalPaid": "12,500",
        "totalSessions": 20,
        "totalEmptySessions": "4",
        "totalNonEmptySessions": 16,
        "totalCustomers": None,
    }
    n = normalize(rec, "teacherName", PAYROLL_SCHEMA)
    assert n.timestamp == date(2024, 3, 1)
    assert n.amount == 12500.0
    assert dict(n.sums) == {
        "sessions": 20.0,
        "emptySessions": 4.0,
        "nonEmptySessions": 16.0,
        "customers": 0.0,
    }
