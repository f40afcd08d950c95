# tests/test_profile.py
from conftest import make_crop


def test_profile_roundtrip(alice):
    resp = alice.put("/api/profile/me", json={"fullName": "X"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["profile"]["fullName"] == "X"

    data = alice.get("/api/profile/me").get_json()["data"]
    assert data["user"]["profile"]["fullName"] == "X"
    # untouched fields survive a partial update
    assert data["user"]["profile"]["location"] == "Nakuru"


def test_profile_update_validation(alice):
    resp = alice.put("/api/profile/me", json={"location": "Thika"})
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Full name is required"

    resp = alice.put("/api/profile/me", json={"fullName": "Alice", "contactInfo": "555-1234"})
    assert resp.status_code == 400

    resp = alice.put("/api/profile/me", json={"fullName": "Alice", "contactInfo": "+254 712 345 678"})
    assert resp.status_code == 200


def test_my_profile_stats(alice, bob):
    make_crop(alice, quantity=10)
    make_crop(alice, name="Beans", type="LEGUME", quantity=4)
    make_crop(bob, quantity=99)

    data = alice.get("/api/profile/me").get_json()["data"]
    assert data["stats"]["totalCrops"] == 2
    assert data["stats"]["totalQuantity"] == 14
    assert {row["type"] for row in data["stats"]["cropsByType"]} == {"CEREAL", "LEGUME"}
    assert len(data["user"]["crops"]) == 2
    assert "password" not in data["user"]


def test_role_shaped_stats(alice, bob, admin):
    make_crop(alice, status="SOLD")

    farmer = alice.get("/api/profile/stats").get_json()["data"]
    assert farmer["totalCrops"] == 1
    assert farmer["cropsByStatus"] == [{"status": "SOLD", "count": 1}]

    overview = admin.get("/api/profile/stats").get_json()["data"]
    assert overview["totalFarmers"] == 2
    assert overview["totalCrops"] == 1
    assert {row["location"] for row in overview["farmersByLocation"]} == {"Nakuru", "Kisumu"}
    assert len(overview["recentRegistrations"]) == 2


def test_profile_requires_session(anon):
    assert anon.get("/api/profile/me").status_code == 401
