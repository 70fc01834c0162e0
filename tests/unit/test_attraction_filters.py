import json

import pytest

from voyage_engine.core.attraction_filters import (
    ExclusionRules,
    diversify_religious_sites,
    estimate_duration,
    map_osm_type_to_activity_type,
)


@pytest.fixture(scope="module")
def rules():
    return ExclusionRules.load()


@pytest.mark.parametrize(
    "name, tags",
    [
        ("Hôtel Lutetia", {"tourism": "hotel"}),
        ("Tombe de Napoléon", {"historic": "tomb"}),
        ("Madame Tussauds London", {"tourism": "attraction"}),
        ("Hard Rock Cafe Paris", {"tourism": "attraction"}),
        ("Cimetière du Père-Lachaise", {"tourism": "attraction"}),
        ("Ailurus fulgens", {"tourism": "attraction"}),
        ("Statue of a poet", {"historic": "memorial"}),
        ("Street mural", {"historic": "artwork"}),
    ],
)
def test_noise_is_excluded(rules, name, tags):
    assert rules.should_exclude(name, tags)


@pytest.mark.parametrize(
    "name, tags",
    [
        ("Musée du Louvre", {"tourism": "museum"}),
        ("Eiffel Tower", {"tourism": "attraction"}),
        ("Holocaust Memorial", {"historic": "memorial"}),
        ("Vietnam Veterans Memorial", {"historic": "memorial", "tourism": "attraction"}),
        ("Jardin du Luxembourg", {"leisure": "park"}),
    ],
)
def test_real_sights_are_kept(rules, name, tags):
    assert not rules.should_exclude(name, tags)


def test_religious_detection(rules):
    assert rules.is_religious("Sacré-Cœur", {"building": "basilica"})
    assert rules.is_religious("Somewhere", {"amenity": "place_of_worship"})
    assert rules.is_religious("Cathédrale Notre-Dame", {})
    assert not rules.is_religious("Musée d'Orsay", {"tourism": "museum"})


def test_rules_load_from_custom_file(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(
        json.dumps({"excluded_name_patterns": ["^souvenir"], "max_religious_sites": 1}),
        encoding="utf-8",
    )
    custom = ExclusionRules.load(path)

    assert custom.should_exclude("Souvenir shop", {})
    assert not custom.should_exclude("Madame Tussauds", {})
    assert custom.max_religious_sites == 1
    assert custom.min_religious_popularity == 80


def test_activity_type_mapping():
    assert map_osm_type_to_activity_type({"tourism": "museum"}) == "culture"
    assert map_osm_type_to_activity_type({"tourism": "viewpoint"}) == "nature"
    assert map_osm_type_to_activity_type({"tourism": "theme_park"}) == "adventure"
    assert map_osm_type_to_activity_type({"leisure": "garden"}) == "nature"
    assert map_osm_type_to_activity_type({"amenity": "marketplace"}) == "shopping"
    assert map_osm_type_to_activity_type({}) == "culture"


def test_duration_estimates():
    assert estimate_duration({"tourism": "museum"}) == 120
    assert estimate_duration({"building": "church"}) == 30
    assert estimate_duration({"leisure": "park"}) == 90
    assert estimate_duration({"historic": "monument"}) == 20
    assert estimate_duration({}) == 60


def test_religious_sites_capped_at_three(rules):
    ranked = [
        ("notre-dame", 300, True),
        ("louvre", 250, False),
        ("sacre-coeur", 200, True),
        ("sainte-chapelle", 150, True),
        ("saint-sulpice", 120, True),
        ("orsay", 100, False),
        ("small-church", 60, True),
    ]
    kept = diversify_religious_sites(ranked, rules)
    assert kept == ["notre-dame", "louvre", "sacre-coeur", "sainte-chapelle", "orsay"]


def test_religious_sites_need_higher_popularity(rules):
    ranked = [("museum", 50, False), ("chapel", 79, True), ("basilica", 80, True)]
    assert diversify_religious_sites(ranked, rules) == ["museum", "basilica"]


def test_religious_floor_can_be_disabled(rules):
    ranked = [("cathedral", 12, True), ("museum", 9, False), ("chapel", 3, True)]
    assert diversify_religious_sites(ranked, rules, apply_floor=False) == [
        "cathedral",
        "museum",
        "chapel",
    ]

    many = [(f"church-{i}", 5 - i, True) for i in range(5)]
    assert diversify_religious_sites(many, rules, apply_floor=False) == [
        "church-0",
        "church-1",
        "church-2",
    ]
