from datetime import datetime

import pytest

from app.caldenon.exceptions import CaldenonParseException
from app.caldenon.utils import parse_api_datetime, safe_int, safe_number, text_or_none, to_bool
from app.caldenon.xml_parser import (
    as_list, dig, extract_records, first_present, is_html, parse_payload, xml_to_dict,
)

CLOSURES_XML = """<?xml version="1.0" encoding="utf-8"?>
<ArrayOfCierreTurno xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
                    xmlns="http://tempuri.org/">
  <CierreTurno>
    <IdCierreTurno>101</IdCierreTurno>
    <Fecha>5/3/2024 6:00:00</Fecha>
    <Caja>PLAYA 1</Caja>
    <IdCierreCajaTesoreria xsi:nil="true" />
  </CierreTurno>
  <CierreTurno>
    <IdCierreTurno>102</IdCierreTurno>
    <Fecha>5/3/2024 14:00:00</Fecha>
    <Caja>SHOP</Caja>
  </CierreTurno>
</ArrayOfCierreTurno>
"""


# ===================== XML parsing =====================

def test_xml_to_dict_strips_namespaces_and_groups_repeated_children():
    parsed = xml_to_dict(CLOSURES_XML)
    closures = parsed["ArrayOfCierreTurno"]["CierreTurno"]
    assert isinstance(closures, list)
    assert [c["IdCierreTurno"] for c in closures] == ["101", "102"]


def test_xml_to_dict_nil_elements_are_none():
    parsed = xml_to_dict(CLOSURES_XML)
    assert parsed["ArrayOfCierreTurno"]["CierreTurno"][0]["IdCierreCajaTesoreria"] is None


def test_xml_to_dict_single_child_is_not_a_list():
    parsed = xml_to_dict("<Estaciones><Estacion><IdEstacion>1</IdEstacion></Estacion></Estaciones>")
    assert parsed["Estaciones"]["Estacion"] == {"IdEstacion": "1"}


def test_xml_to_dict_rejects_malformed_documents():
    with pytest.raises(CaldenonParseException):
        xml_to_dict("<Estaciones><Estacion></Estaciones>")


def test_xml_to_dict_ignores_byte_order_mark():
    assert xml_to_dict("\ufeff<Ok>si</Ok>") == {"Ok": "si"}


def test_parse_payload_prefers_json():
    assert parse_payload('[{"IdEstacion": 1}]') == [{"IdEstacion": 1}]
    assert parse_payload("<Ok>1</Ok>") == {"Ok": "1"}
    assert parse_payload("   ") == {}


def test_parse_payload_invalid_json():
    with pytest.raises(CaldenonParseException):
        parse_payload("{not json")


def test_is_html():
    assert is_html("<!DOCTYPE html><html></html>")
    assert is_html("  <html><body>Error</body></html>")
    assert not is_html("<ArrayOfFacturaVenta />")
    assert not is_html("")


def test_extract_records_tries_paths_in_order():
    parsed = {"Estacion": [{"IdEstacion": "1"}, {"IdEstacion": "2"}]}
    assert len(extract_records(parsed, "Estaciones.Estacion", "Estacion")) == 2
    assert extract_records({"Estaciones": {"Estacion": {"IdEstacion": "1"}}}, "Estaciones.Estacion") == [
        {"IdEstacion": "1"}
    ]
    assert extract_records({"Otra": {}}, "Estaciones.Estacion") == []


def test_extract_records_returns_json_arrays_as_is():
    assert extract_records([{"a": 1}], "whatever") == [{"a": 1}]


def test_small_helpers():
    assert as_list(None) == []
    assert as_list("") == []
    assert as_list({"a": 1}) == [{"a": 1}]
    assert dig({"a": {"b": "c"}}, "a.b") == "c"
    assert dig({"a": "b"}, "a.b") is None
    assert first_present({"a": "", "b": None, "c": 3}, "a", "b", "c") == 3
    assert first_present({}, "a", default="x") == "x"


# ===================== Value conversion =====================

@pytest.mark.parametrize(
    "value,decimals,expected",
    [
        ("12.345", 2, 12.35),
        ("1.23456", 4, 1.2346),
        ("", 2, 0.0),
        (None, 2, 0.0),
        ("abc", 2, 0.0),
        ("nan", 2, 0.0),
        (7, 2, 7.0),
    ],
)
def test_safe_number(value, decimals, expected):
    assert safe_number(value, decimals) == expected


def test_safe_int_and_text():
    assert safe_int("15") == 15
    assert safe_int("0") is None
    assert safe_int("") is None
    assert text_or_none("  hola ") == "hola"
    assert text_or_none({}) is None
    assert text_or_none("") is None
    assert to_bool("true") and to_bool("1") and not to_bool("false")


@pytest.mark.parametrize(
    "value,expected",
    [
        ("5/3/2024 6:07:09", datetime(2024, 3, 5, 6, 7, 9)),
        ("05/03/2024 16:07:09", datetime(2024, 3, 5, 16, 7, 9)),
        ("5/3/2024", datetime(2024, 3, 5, 0, 0, 0)),
        ("2024-03-05T06:07:09", datetime(2024, 3, 5, 6, 7, 9)),
        ("2024-03-05T06:07:09Z", datetime(2024, 3, 5, 6, 7, 9)),
    ],
)
def test_parse_api_datetime(value, expected):
    assert parse_api_datetime(value) == expected


def test_parse_api_datetime_falls_back_to_now():
    before = datetime.now()
    assert parse_api_datetime("99/99/2024") >= before
    assert parse_api_datetime(None) >= before
