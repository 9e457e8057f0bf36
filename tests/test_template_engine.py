from quickoption.logic.field_codec import parse_stored_datetime
from quickoption.logic.template_engine import TemplateEngine, create_default_template


def test_default_template_has_legacy_envelope_and_editable_fields():
    node = create_default_template()

    assert list(node.keys())[:4] == ["_IsModified", "OptionNumber", "OptionSequence", "SystemAudit"]
    assert node["Information"] == {
        "Text": "",
        "AsciiFlag": "",
        "Boolean": False,
        "Long": 0,
        "Numeric": 0.0,
        "DateTime": "1900-01-01T00:00:00",
    }
    assert node["SystemAudit"]["CompareResults"]["m_MaxCapacity"] == 2147483647
    assert node["SystemAudit"]["Db"] is None
    assert node["Obsolete"]["LastReadDate"] == {"DateTime": "1900-01-01T00:00:00"}
    assert node["Db"]["Bt"] == {"CompanyCode": "", "OverrideLock": False, "SuppressBTErrorUI": False}
    assert parse_stored_datetime(node["SystemAudit"]["LastChange"]["_DateTime"]) is not None


def test_default_template_is_fresh_on_every_call():
    engine = TemplateEngine()
    a = engine.create()
    b = engine.create()

    a["Information"]["Text"] = "changed"
    a["Db"]["Bt"]["CompanyCode"] = "X"

    assert b["Information"]["Text"] == ""
    assert b["Db"]["Bt"]["CompanyCode"] == ""
    assert a["CompareResults"] is not a["SystemAudit"]["CompareResults"]


def test_seed_from_copies_the_node():
    engine = TemplateEngine()
    source = {"OptionNumber": 5, "Custom": {"Nested": [1, 2]}, "Information": {"Text": "T"}}
    engine.seed_from(source)

    source["Custom"]["Nested"].append(3)
    created = engine.create()
    assert created["Custom"]["Nested"] == [1, 2]
    assert not engine.is_default

    created["Information"]["Text"] = "mutated"
    assert engine.create()["Information"]["Text"] == "T"
    assert engine.snapshot()["Information"]["Text"] == "T"


def test_reset_returns_to_default():
    engine = TemplateEngine()
    engine.seed_from({"OptionNumber": 5})
    engine.reset()

    assert engine.is_default
    assert engine.snapshot() is None
    assert "SystemAudit" in engine.create()
