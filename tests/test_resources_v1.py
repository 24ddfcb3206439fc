from __future__ import annotations

from idle_empire.world.empire import Empire, make_province
from idle_empire.world.resources import ResourceBundle, ResourceKind, normalize_amounts, resource_from_key


def test_normalize_drops_unknown_and_non_positive_entries():
    amounts = normalize_amounts({"gold": 10, "pop": 3, "population": 2, "stone": -5, "unobtainium": 9, "food": "x"})

    assert amounts == {ResourceKind.GOLD: 10, ResourceKind.POPULATION: 5}


def test_resource_keys_accept_enum_names_and_dotted_values():
    assert resource_from_key("GOLD") is ResourceKind.GOLD
    assert resource_from_key("ResourceKind.mana") is ResourceKind.MANA
    assert resource_from_key(ResourceKind.IRON) is ResourceKind.IRON
    assert resource_from_key(42) is None


def test_remove_clamps_at_zero_and_reports_amount_taken():
    stock = ResourceBundle.of(gold=50)

    taken = stock.remove(ResourceKind.GOLD, 80)

    assert taken == 50
    assert stock.get(ResourceKind.GOLD) == 0
    assert not stock


def test_apply_delta_never_goes_negative():
    stock = ResourceBundle.of(food=30)
    stock.apply_delta(ResourceKind.FOOD, -100)
    stock.apply_delta(ResourceKind.IRON, 7)

    assert stock.as_dict() == {"iron": 7}


def test_scaled_floors_each_amount():
    bundle = ResourceBundle.of(gold=150, iron=51)

    assert bundle.scaled(0.5).as_dict() == {"gold": 75, "iron": 25}
    assert not bundle.scaled(0.0)


def test_can_afford_and_apply_cost():
    stock = ResourceBundle.of(gold=200, stone=100)
    cost = ResourceBundle.of(gold=150, stone=100)

    assert stock.can_afford(cost)
    stock.apply_cost(cost)
    assert stock.as_dict() == {"gold": 50}
    assert not stock.can_afford(cost)


def test_empire_deduct_pays_in_province_order():
    empire = Empire(empire_id="e1")
    empire.add_province(make_province("p2", "Second", stock={"gold": 300}))
    empire.add_province(make_province("p1", "First", stock={"gold": 100}))

    assert empire.deduct(ResourceBundle.of(gold=250))
    assert empire.provinces["p1"].stock.get(ResourceKind.GOLD) == 0
    assert empire.provinces["p2"].stock.get(ResourceKind.GOLD) == 150


def test_empire_deduct_refuses_without_touching_stock():
    empire = Empire(empire_id="e1")
    empire.add_province(make_province("p1", "First", stock={"gold": 100}))

    assert not empire.deduct(ResourceBundle.of(gold=500))
    assert empire.total_resources().get(ResourceKind.GOLD) == 100
