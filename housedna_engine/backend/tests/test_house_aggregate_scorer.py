# backend/tests/test_house_aggregate_scorer.py
from __future__ import annotations

from datetime import date

import pytest

from house_health.domain.health import (
    Category,
    ComponentSnapshot,
    HouseContext,
    StructureType,
    UnknownCategoryError,
    UnknownStructureTypeError,
    aggregate,
    recompute,
)
from house_health.domain.health.aggregate import age_deduction, structure_bonus

NOW = date(2026, 6, 1)
RECENT = date(2026, 4, 1)


def _c(category: Category, score: int, cid: int | None = None) -> ComponentSnapshot:
    # recent inspection, no decay inputs: component score == condition
    return ComponentSnapshot(category=category, condition_score=score, last_inspection_date=RECENT, component_id=cid)


def test_scenario_c_age_and_wood_adjustments():
    r = aggregate([_c(Category.roof, 80)], HouseContext(built_year=1996, structure_type=StructureType.wood), NOW)
    assert r.base_score == 80
    assert r.age_deduction == 6
    assert r.structure_bonus == -3
    assert r.overall_score == 71


def test_scenario_e_absent_categories_are_not_scored():
    r = aggregate([_c(Category.electrical, 64)], HouseContext(), NOW)
    assert set(r.category_scores) == {Category.electrical}
    assert Category.roof not in r.category_scores
    assert r.base_score == 64
    assert r.overall_score == 64


def test_zero_components_scores_100_with_nothing_to_recommend():
    r = recompute(HouseContext(), [], NOW)
    assert r.overall_score == 100
    assert r.category_scores == {}
    assert r.recommendations == []


def test_zero_components_still_applies_building_context():
    r = aggregate([], HouseContext(built_year=1996, structure_type=StructureType.wood), NOW)
    assert r.overall_score == 91


def test_category_score_is_rounded_mean_of_members():
    comps = [_c(Category.roof, 60), _c(Category.roof, 61), _c(Category.plumbing, 90)]
    r = aggregate(comps, HouseContext(), NOW)
    assert r.category_scores[Category.roof] == 61  # 60.5 rounds half up
    assert r.category_scores[Category.plumbing] == 90
    # base is the mean of categories, not of components
    assert r.base_score == 75.5
    assert r.overall_score == 76


def test_age_deduction_steps_per_decade_and_caps():
    assert age_deduction(None, 2026) == 0
    assert age_deduction(2020, 2026) == 0
    assert age_deduction(2016, 2026) == 2
    assert age_deduction(1996, 2026) == 6
    assert age_deduction(1900, 2026) == 20
    # built "in the future" (bad data) does not add points
    assert age_deduction(2030, 2026) == 0


def test_structure_bonus_table():
    assert structure_bonus(StructureType.rc) == 5
    assert structure_bonus(StructureType.src) == 5
    assert structure_bonus(StructureType.steel) == 0
    assert structure_bonus(StructureType.wood) == -3
    assert structure_bonus(StructureType.unknown) == 0


def test_overall_is_clamped_to_range():
    high = aggregate([_c(Category.roof, 100)], HouseContext(structure_type=StructureType.rc), NOW)
    low = aggregate([_c(Category.roof, 0)], HouseContext(built_year=1900, structure_type=StructureType.wood), NOW)
    assert high.overall_score == 100
    assert low.overall_score == 0


def test_component_scores_are_reported_by_id():
    r = aggregate([_c(Category.roof, 70, cid=11), _c(Category.hvac, 40, cid=12)], HouseContext(), NOW)
    assert r.component_scores == {11: 70, 12: 40}


def test_aggregate_is_deterministic_for_same_now():
    comps = [
        ComponentSnapshot(
            category=Category.exterior_wall,
            condition_score=77,
            installed_date=date(2009, 9, 9),
            expected_lifespan_years=30,
            warranty_expiry_date=date(2019, 9, 9),
            last_inspection_date=None,
        ),
        _c(Category.hvac, 58),
    ]
    ctx = HouseContext(built_year=1988, structure_type=StructureType.steel)
    assert aggregate(comps, ctx, NOW) == aggregate(comps, ctx, NOW)


def test_unknown_category_fails_the_whole_recompute():
    rows = [
        {"id": 1, "category": "roof", "condition_score": 90},
        {"id": 2, "category": "garden", "condition_score": 90},
    ]
    with pytest.raises(UnknownCategoryError):
        recompute({"built_year": 2000, "structure_type": "wood"}, rows, NOW)


def test_unknown_structure_type_is_rejected():
    with pytest.raises(UnknownStructureTypeError):
        recompute({"built_year": 2000, "structure_type": "straw"}, [], NOW)


def test_missing_structure_type_is_unknown():
    r = recompute({"built_year": None, "structure_type": None}, [], NOW)
    assert r.structure_bonus == 0
    assert r.age_deduction == 0
