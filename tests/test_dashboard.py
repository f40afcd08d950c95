# tests/test_dashboard.py
from datetime import datetime

import pytest

from conftest import make_crop, register
from mazao.mongo import utcnow
from mazao.services.admin.dashboard_service import DashboardService, growth, month_windows


@pytest.mark.parametrize(
    "current,previous,expected",
    [(0, 0, 0), (3, 0, 100), (3, 3, 0), (6, 4, 50), (1, 4, -75)],
)
def test_growth(current, previous, expected):
    assert growth(current, previous) == expected


def test_month_windows_cross_year():
    prev_start, this_start = month_windows(datetime(2024, 1, 15, 9, 30))
    assert this_start == datetime(2024, 1, 1)
    assert prev_start == datetime(2023, 12, 1)


def test_stats(admin, alice, bob):
    make_crop(alice, quantity=10)
    make_crop(bob, quantity=5)

    data = admin.get("/api/dashboard/stats").get_json()["data"]
    assert data["totalFarmers"] == 2
    assert data["totalCrops"] == 2
    assert data["totalYield"] == 15
    assert data["activeRegions"] == 2
    # nothing existed last month
    assert data["farmersGrowth"] == 100
    assert data["cropsGrowth"] == 100


def test_stats_growth_against_last_month(app, store):
    prev_start, _ = month_windows(utcnow())
    store.crops.insert_many([
        {"name": "Old", "type": "CEREAL", "quantity": 10, "farmerId": None, "createdAt": prev_start},
        {"name": "Old2", "type": "CEREAL", "quantity": 10, "farmerId": None, "createdAt": prev_start},
    ])
    store.crops.insert_one(
        {"name": "New", "type": "CEREAL", "quantity": 30, "farmerId": None, "createdAt": utcnow()}
    )

    with app.app_context():
        stats = DashboardService(store).stats()
    assert stats.cropsGrowth == -50
    assert stats.yieldGrowth == 50


def test_crop_distribution(admin, alice):
    make_crop(alice)
    make_crop(alice, name="Rice")
    make_crop(alice, name="Peas", type="LEGUME", quantity=4)

    rows = admin.get("/api/dashboard/crops/distribution").get_json()["data"]
    assert rows[0] == {"type": "CEREAL", "count": 2, "totalQuantity": 100, "percentage": 67}
    assert rows[1]["percentage"] == 33


def test_recent_activity(admin, alice):
    make_crop(alice, name="Sorghum", quantity=12)

    items = admin.get("/api/dashboard/activity/recent").get_json()["data"]
    kinds = {i["type"] for i in items}
    assert kinds == {"farmer_registered", "crop_added"}
    crop_event = next(i for i in items if i["type"] == "crop_added")
    assert crop_event["description"] == "Alice Wanjiru added 12kg of Sorghum"
    assert crop_event["cropType"] == "Sorghum"


def test_recent_activity_is_capped(admin, app):
    # 12 farmers and 12 crops; 10 of each are merged and the newest 15 kept
    clients = []
    for i in range(12):
        c = app.test_client()
        register(c, f"f{i}@farm.test")
        clients.append(c)
    for c in clients:
        make_crop(c)

    items = admin.get("/api/dashboard/activity/recent").get_json()["data"]
    assert len(items) == 15


def test_regions_and_overview(admin, alice, bob):
    make_crop(alice)
    make_crop(alice, name="Beans", type="LEGUME")

    regions = admin.get("/api/dashboard/farmers/regions").get_json()["data"]
    by_region = {r["region"]: r for r in regions}
    assert by_region["Nakuru"] == {"region": "Nakuru", "farmerCount": 1, "cropCount": 2}
    assert by_region["Kisumu"]["cropCount"] == 0

    overview = admin.get("/api/dashboard/overview").get_json()["data"]
    assert overview["stats"]["totalFarmers"] == 2
    assert len(overview["recentActivity"]) == 2
    assert len(overview["regionDistribution"]) == 2
    assert overview["cropDistribution"][0]["type"] == "CEREAL"
