from models.item import Item
from modules.presenter import item_properties, present_item
from modules.templates import MarkdownEnricher


def test_weapon_qualities_come_first_and_equipped_last(fighter):
    sword = fighter.get_owned_item("sword")
    data = present_item(sword, MarkdownEnricher())
    assert data["properties"] == ["Melee", "Equipped"]


def test_list_qualities_are_joined(fighter):
    bow = fighter.get_owned_item("bow")
    assert present_item(bow, MarkdownEnricher())["properties"] == ["Missile, Two-handed"]


def test_not_equipped_label(fighter):
    club = fighter.get_owned_item("club")
    assert present_item(club, MarkdownEnricher())["properties"] == ["Not Equipped"]


def test_spell_properties_in_order(fighter):
    sleep = fighter.get_owned_item("sleep")
    assert present_item(sleep, MarkdownEnricher())["properties"] == ["Magic-User 1", "240'", "4d4 turns"]


def test_spell_falsy_entries_are_dropped_keeping_order():
    spell = Item(id="light", name="Light", type="spell",
                 data={"class": "Cleric", "lvl": 1, "range": "", "duration": "12 turns", "equipped": False})
    assert item_properties(spell, spell.data) == ["Cleric 1", "12 turns", "Not Equipped"]


def test_item_without_properties():
    rope = Item(id="rope", name="Rope", type="item", data={})
    assert present_item(rope, MarkdownEnricher())["properties"] == []


def test_source_data_is_not_mutated(fighter):
    potion = fighter.get_owned_item("potion")
    before = dict(potion.data)
    data = present_item(potion, MarkdownEnricher())
    assert potion.data == before
    assert "properties" not in potion.data
    assert data["description"] == "Restores **1d6+1** hp."


def test_render_options_reach_the_enricher():
    seen = []

    class SpyEnricher:
        def enrich(self, text, options=None):
            seen.append((text, options))
            return text.upper()

    item = Item(id="x", name="X", data={"description": "shiny"})
    data = present_item(item, SpyEnricher(), {"secrets": False})
    assert data["description"] == "SHINY"
    assert seen == [("shiny", {"secrets": False})]


def test_present_is_deterministic(fighter):
    sleep = fighter.get_owned_item("sleep")
    assert present_item(sleep, MarkdownEnricher()) == present_item(sleep, MarkdownEnricher())
