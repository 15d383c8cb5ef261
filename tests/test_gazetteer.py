import json

import pytest

from taxigeo.core.gazetteer import GAZETTEER_CONFIDENCE, Gazetteer, entry_from_record, normalize
from taxigeo.core.models import Coordinate, Provenance


@pytest.fixture
def gazetteer():
    return Gazetteer.default()


def test_normalize_collapses_case_and_spaces():
    assert normalize("  Forum   TEPIC \t") == "forum tepic"


def test_lookup_known_place_inside_sentence(gazetteer):
    location = gazetteer.lookup("Llévame al Forum Tepic por favor")

    assert location.provenance is Provenance.GAZETTEER
    assert location.raw_confidence == GAZETTEER_CONFIDENCE
    assert location.coordinate == Coordinate(21.492075, -104.865812)
    assert location.alternative_addresses == ()
    assert location.address_components["city"] == "Tepic"


def test_partial_input_contained_in_key(gazetteer):
    location = gazetteer.lookup("walm")
    assert location.formatted_address.startswith("Walmart")


def test_unknown_and_empty_inputs(gazetteer):
    assert gazetteer.lookup("Calle Zaragoza 45") is None
    assert gazetteer.lookup("   ") is None
    assert gazetteer.lookup("") is None


def test_longest_contained_key_wins():
    gazetteer = Gazetteer(
        [
            entry_from_record({"keys": ["centro"], "lat": 21.50, "lon": -104.89, "address": "Centro"}),
            entry_from_record({"keys": ["centro tepic"], "lat": 21.51, "lon": -104.88, "address": "Centro Tepic"}),
        ]
    )
    assert gazetteer.match("centro tepic norte").formatted_address == "Centro Tepic"
    assert gazetteer.match("centro").formatted_address == "Centro"


def test_key_inside_input_beats_input_inside_key():
    gazetteer = Gazetteer(
        [
            entry_from_record({"keys": ["plaza principal del centro"], "lat": 21.50, "lon": -104.89, "address": "B"}),
            entry_from_record({"keys": ["plaza"], "lat": 21.51, "lon": -104.88, "address": "A"}),
        ]
    )
    assert gazetteer.match("Plaza").formatted_address == "A"


def test_table_order_breaks_remaining_ties():
    gazetteer = Gazetteer(
        [
            entry_from_record({"keys": ["mercado"], "lat": 21.50, "lon": -104.89, "address": "first"}),
            entry_from_record({"keys": ["mercado"], "lat": 21.51, "lon": -104.88, "address": "second"}),
        ]
    )
    assert gazetteer.match("mercado").formatted_address == "first"


def test_from_json_file(tmp_path):
    path = tmp_path / "places.json"
    path.write_text(
        json.dumps(
            [{"keys": ["Mirador del Águila"], "lat": 21.55, "lon": -104.96, "address": "Mirador", "components": {"city": "Tepic"}}]
        ),
        encoding="utf-8",
    )
    gazetteer = Gazetteer.from_json_file(path)

    assert len(gazetteer) == 1
    assert gazetteer.entries[0].match_keys == ("mirador del águila",)
    assert gazetteer.lookup("MIRADOR DEL ÁGUILA").address_components == {"city": "Tepic"}


def test_record_without_keys_is_rejected():
    with pytest.raises(ValueError):
        entry_from_record({"keys": ["  "], "lat": 21.5, "lon": -104.9, "address": "x"})
