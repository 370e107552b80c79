from __future__ import annotations

import json
from pathlib import Path
from typing import Dict

import pytest
from bs4 import BeautifulSoup

import villagerdb
from catalog import HI_RES, PRIMARY, IdRegistry, SchemaDrift, make_names
from neighbours import (
    Neighbour,
    enrich,
    fetch_all,
    parse_birthday,
    parse_details,
    parse_gender,
    parse_neighbours,
    with_villagerdb,
)
from wiki_client import WikiClient, parse_html

OVERVIEW = """
<h2>Alligatoren</h2>
<table class="inline">
 <tr><th>Bild</th><th>Name</th><th>Persönlichkeit</th><th>Neu</th></tr>
 <tr><td><img src="/_media/acnh/nachbarn/alfonso.png?w=40"/></td><td>Alfonso<br/>Alfonso</td><td>Gelassen</td><td></td></tr>
 <tr><td><img src="/_media/acnh/nachbarn/marcel.png?w=40"/></td><td>Marcel<br/>Marrcel</td><td>Schnöselig</td><td>x</td></tr>
 <tr><td>ohne Bild</td><td>Niemand<br/>Nobody</td></tr>
</table>
<h2>Bären</h2>
<table class="inline">
 <tr><td><img src="/_media/acnh/nachbarn/teddy.png"/></td><td>Teddy<br/>Teddy</td></tr>
</table>
"""


def profile(rows: str) -> str:
    return f"""
    <div class="wrap_nachbarntabelle"><table>
     <tr><th colspan="2">Alfonso</th></tr>
     <tr><td colspan="2"><img src="/_media/acnh/nachbarn/alfonso.png"/></td></tr>
     {rows}
    </table></div>
    """


ALFONSO_PROFILE = profile(
    """
    <tr><th>Tierart</th><td>Alligator</td></tr>
    <tr><th>Geschlecht</th><td>Männlich</td></tr>
    <tr><th>Persönlichkeit</th><td>Gelassen</td></tr>
    <tr><th>Geburtstag</th><td>9. Juni</td></tr>
    <tr><th>Floskel</th><td>„Kroko“</td></tr>
    """
)


class PagesClient(WikiClient):
    def __init__(self, pages: Dict[str, str]) -> None:
        super().__init__()
        self.pages = pages

    def german_page(self, path: str) -> BeautifulSoup:
        return parse_html(self.pages[path])


def write_villager(data_dir: Path, slug: str, data: dict) -> None:
    folder = data_dir / "data" / "villagers"
    folder.mkdir(parents=True, exist_ok=True)
    (folder / f"{slug}.json").write_text(json.dumps(data), encoding="utf-8")


def test_parse_neighbours_per_species_table() -> None:
    alfonso, marcel, teddy = parse_neighbours(parse_html(OVERVIEW), IdRegistry())

    assert alfonso.kind == "Alligatoren"
    assert alfonso.species == {"deu": "Alligatoren"}
    assert not alfonso.is_new
    assert alfonso.asset_urls == {
        PRIMARY: "https://animalcrossingwiki.de/_media/acnh/nachbarn/alfonso.png",
        HI_RES: "https://villagerdb.com/images/villagers/full/alfonso.png",
    }
    assert [f.target_name for f in alfonso.files()] == ["nb0.png", "nb0_hi.png"]

    assert marcel.names == {"eng": "Marcel", "deu": "Marcel"}
    assert marcel.is_new
    assert teddy.kind == "Bären"
    assert teddy.id == 2


def test_parse_details() -> None:
    details = parse_details(parse_html(ALFONSO_PROFILE))

    assert details == {
        "gender": "male",
        "personality": "Gelassen",
        "birthday": [9, 6],
        "phrase": "Kroko",
    }


def test_unknown_profile_field_is_schema_drift() -> None:
    page = parse_html(profile("<tr><th>Lieblingsfarbe</th><td>Blau</td></tr>"))

    with pytest.raises(SchemaDrift, match="lieblingsfarbe"):
        parse_details(page)


def test_unknown_gender_and_month_are_schema_drift() -> None:
    assert parse_gender("Weiblich") == "female"
    assert parse_birthday("1. Januar") == [1, 1]
    with pytest.raises(SchemaDrift):
        parse_gender("divers")
    with pytest.raises(SchemaDrift):
        parse_birthday("1. Smarch")
    with pytest.raises(SchemaDrift):
        parse_birthday("irgendwann")


def test_villager_slug() -> None:
    assert villagerdb.villager_slug("Renée") == "renee"
    assert villagerdb.villager_slug("O'Hare") == "ohare"
    assert villagerdb.villager_slug("Sally") == "sally2"
    assert villagerdb.villager_slug("Wart Jr.") == "wart-jr"


def test_get_villager_reads_new_horizons_data(tmp_path: Path) -> None:
    write_villager(
        tmp_path,
        "alfonso",
        {"name": "Alfonso", "species": "Alligator", "games": {"nh": {"personality": "Lazy", "phrase": "it'sa me", "song": "K.K. Calypso"}}},
    )
    write_villager(tmp_path, "oldie", {"name": "Oldie", "species": "Cat", "games": {"gc": {}}})

    entry = villagerdb.get_villager("Alfonso", str(tmp_path))

    assert entry == villagerdb.VillagerDbEntry("Alfonso", "Alligator", "Lazy", "it'sa me")
    assert not hasattr(entry, "song")
    with pytest.raises(ValueError):
        villagerdb.get_villager("Oldie", str(tmp_path))


def test_with_villagerdb_adds_english_fields() -> None:
    neighbour = Neighbour(id=0, names=make_names("Alfonso", "Alfonso"), species={"deu": "Alligatoren"})
    entry = villagerdb.VillagerDbEntry("Alfonso", "Alligator", "Lazy", "it'sa me")

    merged = with_villagerdb(neighbour, entry)

    assert merged.species == {"deu": "Alligatoren", "eng": "Alligator"}
    assert merged.personalities == {"eng": "Lazy"}
    assert merged.to_dict()["phrase"] == {"eng": "it'sa me"}


def test_with_villagerdb_name_mismatch_is_schema_drift() -> None:
    neighbour = Neighbour(id=0, names=make_names("Alfonso", "Alfonso"))

    with pytest.raises(SchemaDrift):
        with_villagerdb(neighbour, villagerdb.VillagerDbEntry("Alli", "Alligator", "Snooty", "graaagh"))


def test_enrich_reads_villager_pages() -> None:
    client = PagesClient({"/nachbarn/alfonso": ALFONSO_PROFILE})
    neighbour = Neighbour(id=0, names=make_names("Alfonso", "Alfonso"))

    [enriched] = enrich(client, [neighbour], workers=2)

    assert enriched.gender == "male"
    assert enriched.birthday == [9, 6]
    assert enriched.personalities == {"deu": "Gelassen"}
    assert enriched.phrases == {"deu": "Kroko"}


def test_fetch_all_with_villagerdb_and_details(tmp_path: Path) -> None:
    page = """
    <h2>Alligatoren</h2>
    <table class="inline">
     <tr><td><img src="/_media/acnh/nachbarn/alfonso.png"/></td><td>Alfonso<br/>Alfonso</td></tr>
    </table>
    """
    client = PagesClient({"/acnh/nachbarn": page, "/nachbarn/alfonso": ALFONSO_PROFILE})
    write_villager(
        tmp_path,
        "alfonso",
        {"name": "Alfonso", "species": "Alligator", "games": {"nh": {"personality": "Lazy", "phrase": "it'sa me"}}},
    )

    [alfonso] = fetch_all(client, IdRegistry(), details=True, workers=1, villagerdb_dir=str(tmp_path))

    assert alfonso.personalities == {"deu": "Gelassen", "eng": "Lazy"}
    assert alfonso.species == {"deu": "Alligatoren", "eng": "Alligator"}
    assert alfonso.gender == "male"
