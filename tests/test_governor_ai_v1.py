from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from idle_empire.errors import ConfigurationError
from idle_empire.runtime.governor_ai import (
    BuildDecision,
    DecisionKind,
    ResearchDecision,
    WaitDecision,
    affordability_score,
    award_decision_experience,
    decide_governor_action,
    governor_report,
)
from idle_empire.world.balance import BalanceTables, default_tables
from idle_empire.world.buildings import BuildingKind
from idle_empire.world.empire import ConstructionTask, Empire, ResearchTask, make_province
from idle_empire.world.governors import MAX_XP, Governor, Personality
from idle_empire.world.resources import ResourceBundle

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)

PLENTY = {"gold": 50_000, "food": 50_000, "stone": 50_000, "iron": 50_000, "influence": 5_000, "population": 500}


def _seed_empire(stock, *, personality=Personality.CONSERVATIVE, loyalty=80, xp=0, level=1, buildings=None):
    empire = Empire(empire_id="empire:test")
    governor = Governor(name="Aurelia", personality=personality, loyalty=loyalty, xp=xp)
    province = make_province("p1", "Capital", level=level, stock=stock, governor=governor, buildings=buildings)
    empire.add_province(province)
    return empire, province


def test_affordability_score_curve():
    cost = ResourceBundle.of(gold=100)

    assert affordability_score(cost, ResourceBundle.of(gold=100)) == 0.0
    assert affordability_score(cost, ResourceBundle.of(gold=150)) == pytest.approx(50.0)
    assert affordability_score(cost, ResourceBundle.of(gold=200)) == 100.0
    assert affordability_score(cost, ResourceBundle.of(gold=99)) == 0.0
    assert affordability_score(ResourceBundle(), ResourceBundle.of(gold=99)) == 0.0


def test_single_shortfall_zeroes_the_whole_score():
    cost = ResourceBundle.of(gold=100, stone=100)

    assert affordability_score(cost, ResourceBundle.of(gold=10_000, stone=50)) == 0.0


def test_no_governor_waits():
    empire = Empire(empire_id="empire:test")
    province = empire.add_province(make_province("p1", "Capital", stock=PLENTY))

    decision = decide_governor_action(province, empire)

    assert isinstance(decision, WaitDecision)
    assert decision.kind is DecisionKind.WAIT


def test_priority_ten_beats_priority_eight():
    empire, province = _seed_empire(PLENTY)

    decision = decide_governor_action(province, empire)

    assert isinstance(decision, BuildDecision)
    assert decision.building is BuildingKind.FARM
    assert decision.target_level == 1
    assert "Priority: 10" in decision.reason


def test_never_selects_unaffordable_candidate():
    empire, province = _seed_empire({"gold": 200, "food": 100})

    decision = decide_governor_action(province, empire)

    assert isinstance(decision, BuildDecision)
    assert decision.building is BuildingKind.QUARRY
    assert province.stock.can_afford(decision.cost)


def test_buildings_under_construction_are_skipped():
    empire, province = _seed_empire(PLENTY)
    province.constructions.append(
        ConstructionTask("c1", "p1", BuildingKind.FARM, 1, started_at=T0, completes_at=T0)
    )

    decision = decide_governor_action(province, empire)

    assert isinstance(decision, BuildDecision)
    assert decision.building is not BuildingKind.FARM


def test_level_gating_uses_province_level():
    empire, province = _seed_empire(PLENTY, personality=Personality.EXPLORER, level=1)

    decision = decide_governor_action(province, empire)

    assert decision.building is not BuildingKind.ACADEMY


def test_research_when_only_research_is_affordable():
    empire, province = _seed_empire({"gold": 5_000, "influence": 500})

    decision = decide_governor_action(province, empire)

    assert isinstance(decision, ResearchDecision)
    assert decision.tech_key == "AGRICULTURE_1"
    assert decision.hours == 2.0
    assert province.stock.can_afford(decision.cost)


def test_research_in_progress_or_done_is_excluded():
    empire, province = _seed_empire({"gold": 5_000, "influence": 500})
    empire.research.append(ResearchTask("r1", "AGRICULTURE_1", "p1", started_at=T0, completes_at=T0))

    assert isinstance(decide_governor_action(province, empire), WaitDecision)

    empire.research.clear()
    empire.researched.add("AGRICULTURE_1")
    decision = decide_governor_action(province, empire)
    assert not (isinstance(decision, ResearchDecision) and decision.tech_key == "AGRICULTURE_1")


def test_poor_empire_does_not_research():
    empire, province = _seed_empire({"gold": 400, "influence": 50})

    assert isinstance(decide_governor_action(province, empire), WaitDecision)


def test_experience_award_by_decision_kind():
    governor = Governor(name="Aurelia", personality=Personality.MERCHANT)

    build = BuildDecision(building=BuildingKind.MINE, priority_score=7.2, reason="")
    assert award_decision_experience(governor, build) == 100

    research = ResearchDecision(tech_key="TRADE_1", priority_score=3.1, reason="")
    assert award_decision_experience(governor, research) == 170

    assert award_decision_experience(governor, WaitDecision()) == 170


def test_experience_is_capped():
    governor = Governor(name="Aurelia", personality=Personality.MERCHANT, xp=MAX_XP - 5)

    award_decision_experience(governor, BuildDecision(building=BuildingKind.MINE, priority_score=9.0, reason=""))

    assert governor.xp == MAX_XP


def test_loyalty_stays_in_bounds():
    governor = Governor(name="Aurelia", personality=Personality.AGGRESSIVE, loyalty=150)
    assert governor.loyalty == 100

    governor.adjust_loyalty(-500)
    assert governor.loyalty == 0


def test_governor_report_mentions_name_and_loyalty():
    _, province = _seed_empire({"gold": 2_500}, personality=Personality.MERCHANT, loyalty=90)

    report = governor_report(province)

    assert report.startswith("**Aurelia (merchant)**")
    assert "Trade is flourishing" in report
    assert report.endswith("Extremely loyal and motivated.")


def test_unknown_priority_keys_raise_instead_of_being_skipped():
    empire, province = _seed_empire(PLENTY)
    profile = default_tables().personalities[Personality.CONSERVATIVE]

    castles = BalanceTables(personalities={Personality.CONSERVATIVE: replace(profile, building_priorities={"CASTLE": 50})})
    with pytest.raises(ConfigurationError):
        decide_governor_action(province, empire, tables=castles)

    time_travel = BalanceTables(
        personalities={
            Personality.CONSERVATIVE: replace(profile, building_priorities={}, research_priorities={"TIME_TRAVEL": 50})
        }
    )
    with pytest.raises(ConfigurationError):
        decide_governor_action(province, empire, tables=time_travel)
