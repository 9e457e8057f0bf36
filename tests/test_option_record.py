from datetime import datetime

import pytest

from quickoption.errors import FieldFormatError
from quickoption.models.option_record import OPTION_COLUMNS, OptionRecord


def make_record(**info):
    node = {"OptionNumber": 1, "OptionSequence": 2, "Information": dict(info)}
    return OptionRecord(node)


def test_construction_rejects_missing_backing_object():
    with pytest.raises(TypeError):
        OptionRecord(None)
    with pytest.raises(TypeError):
        OptionRecord(["not", "an", "object"])


def test_getters_degrade_to_zero_values():
    record = make_record(Numeric="", Boolean="yes", Long="12", Text=None)
    assert record.numeric_value == 0.0
    assert record.boolean_value is False
    assert record.long_value == 0
    assert record.text_value == ""


def test_setters_write_into_the_json_and_notify_after_write():
    record = make_record()
    seen = []

    def listener(rec, field):
        # 通知時点で書き込みは終わっている
        seen.append((field, rec.clone_node()["Information"]["Text"]))

    record.subscribe(listener)
    record.text_value = "Hello"

    assert seen == [("text_value", "Hello")]
    assert record.clone_node()["Information"]["Text"] == "Hello"


def test_notifications_fire_in_subscription_order():
    record = make_record()
    calls = []
    record.subscribe(lambda rec, field: calls.append(("first", field)))
    record.subscribe(lambda rec, field: calls.append(("second", field)))

    record.option_number = 9
    record.sequence = 3

    assert calls == [
        ("first", "option_number"),
        ("second", "option_number"),
        ("first", "sequence"),
        ("second", "sequence"),
    ]


def test_unsubscribe_stops_notifications():
    record = make_record()
    calls = []

    def listener(rec, field):
        calls.append(field)

    record.subscribe(listener)
    record.unsubscribe(listener)
    record.boolean_value = True
    assert calls == []


def test_typed_setters_round_trip():
    record = make_record()
    record.option_number = 10
    record.sequence = 20
    record.ascii_value = "Y"
    record.boolean_value = True
    record.numeric_value = 12.5
    record.long_value = 2 ** 40

    node = record.clone_node()
    assert node["OptionNumber"] == 10
    assert node["OptionSequence"] == 20
    assert node["Information"]["AsciiFlag"] == "Y"
    assert node["Information"]["Boolean"] is True
    assert node["Information"]["Numeric"] == 12.5
    assert node["Information"]["Long"] == 2 ** 40


def test_date_then_time_and_time_then_date_commute():
    first = make_record()
    first.date_value = ""
    first.time_value = "14:30"

    second = make_record()
    second.time_value = "14:30"
    second.date_value = ""

    assert first.date_time == second.date_time == datetime(1900, 1, 1, 14, 30, 0)
    assert first.date_value == ""
    assert first.time_value == "14:30:00"


def test_editing_date_keeps_previous_time():
    record = make_record(DateTime="2020-01-02T08:15:30")
    record.date_value = "2024-05-01"
    assert record.date_time == datetime(2024, 5, 1, 8, 15, 30)

    record.time_value = ""
    assert record.date_time == datetime(2024, 5, 1)
    assert record.date_value == "2024-05-01"
    assert record.time_value == "00:00:00"


def test_rejected_edit_keeps_prior_value_and_does_not_notify():
    record = make_record(DateTime="2024-05-01T10:00:00")
    calls = []
    record.subscribe(lambda rec, field: calls.append(field))

    with pytest.raises(FieldFormatError):
        record.date_value = "05/01/2024"
    with pytest.raises(FieldFormatError):
        record.set_text("option_number", "abc")

    assert record.date_value == "2024-05-01"
    assert record.option_number == 1
    assert calls == []


def test_huge_stored_numeric_reads_as_zero():
    record = make_record(Numeric=10 ** 400)
    assert record.numeric_value == 0.0
    assert record.display_text("numeric_value") == "0"


@pytest.mark.parametrize(
    "attr, value",
    [
        ("option_number", 2 ** 40),
        ("sequence", -(2 ** 31) - 1),
        ("long_value", 2 ** 63),
        ("numeric_value", float("nan")),
        ("numeric_value", float("inf")),
    ],
)
def test_out_of_range_assignment_is_rejected_without_notifying(attr, value):
    record = make_record(Long=9, Numeric=2.5)
    before = getattr(record, attr)
    calls = []
    record.subscribe(lambda rec, field: calls.append(field))

    with pytest.raises(FieldFormatError):
        setattr(record, attr, value)

    assert getattr(record, attr) == before
    assert calls == []


def test_set_text_parses_by_column_kind():
    record = make_record()
    record.set_text("option_number", " 7 ")
    record.set_text("numeric_value", "3.25")
    record.set_text("long_value", "9000000000")
    record.set_text("boolean_value", "true")
    record.set_text("text_value", "abc")
    record.set_text("date_value", "2024-05-01")
    record.set_text("time_value", "09:05")

    assert record.option_number == 7
    assert record.numeric_value == 3.25
    assert record.long_value == 9000000000
    assert record.boolean_value is True
    assert record.text_value == "abc"
    assert record.date_time == datetime(2024, 5, 1, 9, 5)


def test_display_text():
    record = make_record(Numeric=3.0, Boolean=True)
    assert record.display_text("numeric_value") == "3"
    assert record.display_text("boolean_value") == "true"
    assert record.display_text("sequence") == "2"
    assert record.display_text("date_value") == ""

    record.numeric_value = 0.1
    assert record.display_text("numeric_value") == "0.1"


def test_unknown_column_is_rejected():
    with pytest.raises(KeyError):
        make_record().set_text("nope", "1")


def test_columns_follow_grid_order():
    assert [c.header for c in OPTION_COLUMNS] == [
        "Option Number",
        "Sequence",
        "Text Value",
        "Time Value",
        "Numeric Value",
        "Long Value",
        "Date Value",
        "Boolean Value",
        "Ascii Value",
    ]


def test_clone_node_is_independent():
    record = make_record(Text="A")
    clone = record.clone_node()
    clone["Information"]["Text"] = "changed"
    clone["Extra"] = True

    assert record.text_value == "A"
    assert "Extra" not in record.clone_node()
