import json
from datetime import datetime

import pytest

from smart_meter.configs.price_plans import (
    CatalogError,
    PeakTimeMultiplier,
    PricePlan,
    build_catalog,
    load_catalog,
    parse_day_of_week,
)
from smart_meter.configs.settings import DEFAULT_PRICE_PLANS_PATH

MONDAY = datetime(2024, 1, 1, 9, 0)
SATURDAY = datetime(2024, 1, 6, 9, 0)


def make_catalog_data(**overrides):
    data = {
        "pricePlans": [
            {"supplier": "A", "unitRate": 10, "peakTimeMultipliers": []},
            {
                "supplier": "B",
                "unitRate": 2,
                "peakTimeMultipliers": [{"dayOfWeek": "Saturday", "multiplier": 3}],
            },
        ],
        "accounts": {"meter-a": "A", "meter-b": "B"},
    }
    data.update(overrides)
    return data


def test_price_without_multiplier_is_unit_rate():
    plan = PricePlan("A", 10)
    assert plan.price_at(MONDAY) == 10


def test_multiplier_applies_on_matching_day_only():
    plan = PricePlan("B", 2, (PeakTimeMultiplier(5, 3),))
    assert plan.price_at(SATURDAY) == 6
    assert plan.price_at(MONDAY) == 2


def test_first_configured_multiplier_wins():
    plan = PricePlan("B", 2, (PeakTimeMultiplier(0, 4), PeakTimeMultiplier(0, 10)))
    assert plan.price_at(MONDAY) == 8


def test_day_of_week_parsing():
    assert parse_day_of_week("Monday") == 0
    assert parse_day_of_week("sunday") == 6
    assert parse_day_of_week(" Saturday ") == 5
    for bad in ("Funday", 0, 5, 7, True, None):
        with pytest.raises(CatalogError):
            parse_day_of_week(bad)


def test_build_catalog_keeps_file_order():
    catalog = build_catalog(make_catalog_data())
    assert [p.supplier for p in catalog.plans] == ["A", "B"]
    assert catalog.plans[1].price_at(SATURDAY) == 6
    assert catalog.plan_for_meter("meter-b") == "B"
    assert catalog.plan_for_meter("unknown") is None
    assert catalog.meter_ids() == ["meter-a", "meter-b"]


def test_duplicate_day_of_week_rejected():
    data = make_catalog_data(
        pricePlans=[
            {
                "supplier": "A",
                "unitRate": 1,
                "peakTimeMultipliers": [
                    {"dayOfWeek": "Monday", "multiplier": 2},
                    {"dayOfWeek": "monday", "multiplier": 3},
                ],
            }
        ],
        accounts={},
    )
    with pytest.raises(CatalogError, match="repeats a day of week"):
        build_catalog(data)


def test_duplicate_supplier_rejected():
    data = make_catalog_data(
        pricePlans=[{"supplier": "A", "unitRate": 1}, {"supplier": "A", "unitRate": 2}],
        accounts={},
    )
    with pytest.raises(CatalogError, match="Duplicate suppliers"):
        build_catalog(data)


def test_account_with_unknown_supplier_rejected():
    with pytest.raises(CatalogError, match="unknown supplier"):
        build_catalog(make_catalog_data(accounts={"meter-x": "Nobody"}))


def test_negative_or_missing_rate_rejected():
    with pytest.raises(CatalogError):
        build_catalog(make_catalog_data(pricePlans=[{"supplier": "A", "unitRate": -1}], accounts={}))
    with pytest.raises(CatalogError):
        build_catalog(make_catalog_data(pricePlans=[{"supplier": "A"}], accounts={}))


def test_load_catalog_from_file(tmp_path):
    path = tmp_path / "plans.json"
    path.write_text(json.dumps(make_catalog_data()))
    catalog = load_catalog(path)
    assert len(catalog.plans) == 2


def test_load_missing_catalog(tmp_path):
    with pytest.raises(CatalogError, match="not found"):
        load_catalog(tmp_path / "missing.json")


def test_default_catalog_ships_sample_accounts():
    catalog = load_catalog(DEFAULT_PRICE_PLANS_PATH)
    assert [p.supplier for p in catalog.plans] == [
        "Dr Evil's Dark Energy",
        "The Green Eco",
        "Power for Everyone",
    ]
    assert catalog.plan_for_meter("smart-meter-3") == "Power for Everyone"
    assert len(catalog.meter_ids()) == 5


def test_numeric_day_of_week_rejected_in_catalog():
    data = make_catalog_data(
        pricePlans=[
            {
                "supplier": "A",
                "unitRate": 1,
                "peakTimeMultipliers": [{"dayOfWeek": 0, "multiplier": 2}],
            }
        ],
        accounts={},
    )
    with pytest.raises(CatalogError, match="Unrecognised day of week"):
        build_catalog(data)
