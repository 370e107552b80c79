from __future__ import annotations

import pytest

from catalog import PRIMARY, IdRegistry, SchemaDrift
from creatures import Fish, Shadow, parse_creatures, parse_price, parse_shadow, parse_time_slots
from wiki_client import parse_html

MONTHS_NORTH = "<td>✓</td>" * 3 + "<td>-</td>" * 9
MONTHS_SOUTH = "<td>-</td>" * 9 + "<td>✓</td>" * 3

BUG_PAGE = f"""
<div class="mw-parser-output">
<table class="sortable">
 <tr><th>Name</th><th>Image</th><th>Price</th><th>Location</th><th>Time</th></tr>
 <tr><td>Common butterfly</td><td><img src="data:image/gif;base64,R0lGOD" data-src="https://static.wikia.nocookie.net/ac/images/Butterfly.png/revision/latest/scale-to-width-down/64?cb=1"/></td>
     <td>160 Bells</td><td>Flying</td><td>4 AM - 7 PM</td>{MONTHS_NORTH}</tr>
 <tr><td>Tarantula</td><td></td><td>8,000</td><td>On the ground</td><td>7 PM - 4 AM</td>{MONTHS_NORTH}</tr>
</table>
<table class="sortable">
 <tr><th>Name</th></tr>
 <tr><td>Common butterfly</td><td></td><td>160</td><td>Flying</td><td>4 AM - 7 PM</td>{MONTHS_SOUTH}</tr>
 <tr><td>Tarantula</td><td></td><td>8,000</td><td>On the ground</td><td>7 PM - 4 AM</td>{MONTHS_SOUTH}</tr>
</table>
</div>
"""

FISH_PAGE = f"""
<table class="sortable">
 <tr><td>Sea bass</td><td><img data-src="https://static.wikia.nocookie.net/ac/images/Bass.png"/></td><td>400</td>
     <td>Sea</td><td>Very large (5)</td><td>All day</td>{MONTHS_NORTH}</tr>
</table>
<table class="sortable">
 <tr><td>Sea bass</td><td></td><td>400</td><td>Sea</td><td>Very large (5)</td><td>All day</td>{MONTHS_SOUTH}</tr>
</table>
"""


def test_parse_price() -> None:
    assert parse_price("1,000 Bells") == 1000
    assert parse_price("160") == 160
    assert parse_price("?") == -1


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("All day", [[0, 24]]),
        ("4 AM - 8 AM & 5 PM - 7 PM", [[4, 8], [17, 19]]),
        ("9 PM – 4 AM", [[21, 4]]),
        ("12 AM - 12 PM", [[0, 12]]),
        ("", []),
    ],
)
def test_parse_time_slots(text: str, expected: list) -> None:
    assert parse_time_slots(text) == expected


@pytest.mark.parametrize("text", ["4 AM to 8 PM", "13 PM - 2 AM", "noon - 4 PM"])
def test_unknown_time_is_schema_drift(text: str) -> None:
    with pytest.raises(SchemaDrift):
        parse_time_slots(text)


def test_parse_shadow() -> None:
    assert parse_shadow("Narrow") == Shadow(size=-1, is_narrow=True, has_fin=False)
    assert parse_shadow("Huge (6) w/Fin") == Shadow(size=6, is_narrow=False, has_fin=True)


def test_parse_bugs_zips_hemispheres() -> None:
    bugs = parse_creatures(parse_html(BUG_PAGE), "bugs", IdRegistry(), with_shadow=False)

    butterfly, tarantula = bugs
    assert butterfly.id == 0 and tarantula.id == 1
    assert butterfly.names == {"eng": "Common butterfly", "deu": "TBD"}
    assert butterfly.price == 160
    assert butterfly.location == "Flying"
    assert butterfly.time == [[4, 19]]
    assert butterfly.months_north == [True] * 3 + [False] * 9
    assert butterfly.months_south == [False] * 9 + [True] * 3
    assert butterfly.asset_urls[PRIMARY] == (
        "https://static.wikia.nocookie.net/ac/images/Butterfly.png/revision/latest?cb=1"
    )
    assert tarantula.price == 8000
    assert tarantula.asset_urls[PRIMARY] is None
    assert [f.target_name for f in butterfly.files()] == ["b0.png"]


def test_parse_fish_reads_shadow_column() -> None:
    [bass] = parse_creatures(parse_html(FISH_PAGE), "fish", IdRegistry(), with_shadow=True)

    assert isinstance(bass, Fish)
    assert bass.shadow == Shadow(size=5)
    assert bass.time == [[0, 24]]
    assert bass.months_north[:3] == [True, True, True]
    assert [f.target_name for f in bass.files()] == ["f0.png"]
    assert bass.to_dict()["shadow"] == {"size": 5, "is_narrow": False, "has_fin": False}


def test_missing_hemisphere_table_is_schema_drift() -> None:
    with pytest.raises(SchemaDrift):
        parse_creatures(parse_html('<table class="sortable"></table>'), "bugs", IdRegistry(), with_shadow=False)


def test_short_month_rows_are_padded() -> None:
    page = parse_html(
        '<table class="sortable"><tr><td>Moth</td><td></td><td>130</td><td>Lights</td><td>All day</td><td>✓</td></tr></table>'
        '<table class="sortable"><tr><td>Moth</td></tr></table>'
    )

    [moth] = parse_creatures(page, "bugs", IdRegistry(), with_shadow=False)

    assert moth.months_north == [True] + [False] * 11
    assert moth.months_south == [False] * 12


def test_hemisphere_row_count_mismatch_is_schema_drift() -> None:
    page = parse_html(
        '<table class="sortable"><tr><td>Moth</td></tr><tr><td>Tarantula</td></tr></table>'
        '<table class="sortable"><tr><td>Moth</td></tr></table>'
    )

    with pytest.raises(SchemaDrift, match="2 northern rows but 1 southern"):
        parse_creatures(page, "bugs", IdRegistry(), with_shadow=False)


def test_hemisphere_rows_out_of_step_are_schema_drift() -> None:
    page = parse_html(
        '<table class="sortable"><tr><td>Moth</td></tr><tr><td>Tarantula</td></tr></table>'
        '<table class="sortable"><tr><td>Tarantula</td></tr><tr><td>Moth</td></tr></table>'
    )

    with pytest.raises(SchemaDrift, match="out of step"):
        parse_creatures(page, "bugs", IdRegistry(), with_shadow=False)
