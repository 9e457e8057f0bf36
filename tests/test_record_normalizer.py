import pytest

from quickoption.logic.record_normalizer import normalize_option_node


def test_fills_missing_fields():
    node = {"OptionNumber": 1, "Information": {"Text": "A"}}
    normalize_option_node(node)

    assert node == {
        "OptionNumber": 1,
        "Information": {
            "Text": "A",
            "AsciiFlag": "",
            "Boolean": False,
            "Long": 0,
            "Numeric": 0.0,
            "DateTime": "1900-01-01T00:00:00",
        },
        "OptionSequence": 0,
    }


def test_replaces_non_object_information():
    node = {"Information": "broken"}
    normalize_option_node(node)
    assert isinstance(node["Information"], dict)
    assert node["Information"]["Text"] == ""


def test_null_values_are_filled_but_wrong_types_are_kept():
    node = {"OptionNumber": None, "Information": {"Numeric": "", "Boolean": None}}
    normalize_option_node(node)

    assert node["OptionNumber"] == 0
    assert node["Information"]["Numeric"] == ""
    assert node["Information"]["Boolean"] is False


def test_is_idempotent_and_keeps_key_order():
    node = {"Zeta": 1, "OptionSequence": 5, "Information": {"DateTime": "2024-05-01T10:00:00"}, "Alpha": [1, 2]}
    normalize_option_node(node)
    once = {k: v for k, v in node.items()}
    keys_once = list(node.keys())
    info_keys_once = list(node["Information"].keys())

    normalize_option_node(node)

    assert node == once
    assert list(node.keys()) == keys_once
    assert list(node["Information"].keys()) == info_keys_once
    assert node["OptionSequence"] == 5
    assert node["Information"]["DateTime"] == "2024-05-01T10:00:00"


def test_rejects_non_objects():
    with pytest.raises(TypeError):
        normalize_option_node([1, 2])
