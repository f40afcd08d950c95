# tests/test_crops.py
from contextlib import contextmanager

from conftest import make_crop, register


def test_register_login_create_crop_scenario(app, store):
    client = app.test_client()
    alice = register(client, "alice@farm.test", full_name="Alice").get_json()["data"]

    resp = client.post(
        "/api/crops",
        json={"name": "Maize", "type": "CEREAL", "quantity": 50, "plantingDate": "2024-03-01"},
    )
    assert resp.status_code == 201
    crop = resp.get_json()["data"]
    assert crop["quantity"] == 50
    assert crop["farmerId"] == alice["id"]
    assert crop["status"] == "PLANTED"
    assert crop["plantingDate"].startswith("2024-03-01")
    assert crop["farmer"]["profile"]["fullName"] == "Alice"
    assert store.crops.count_documents({}) == 1


def test_invalid_crop_is_not_persisted(alice, store):
    bad = [
        {"name": "Maize", "type": "CEREAL", "quantity": 0, "plantingDate": "2024-03-01"},
        {"name": "Maize", "type": "CEREAL", "quantity": -4, "plantingDate": "2024-03-01"},
        {"name": "Maize", "type": "GRAIN", "quantity": 5, "plantingDate": "2024-03-01"},
        {"name": "Maize", "type": "CEREAL", "quantity": 5},
        {"name": "  ", "type": "CEREAL", "quantity": 5, "plantingDate": "2024-03-01"},
        {"name": "Maize", "type": "CEREAL", "quantity": 5, "plantingDate": "2024-03-01", "harvestDate": "2024-02-01"},
    ]
    for body in bad:
        resp = alice.post("/api/crops", json=body)
        assert resp.status_code == 400, body
        assert resp.get_json()["success"] is False
    assert store.crops.count_documents({}) == 0


def test_farmer_cannot_create_for_someone_else(alice, bob, store):
    resp = alice.post(
        "/api/crops",
        json={"name": "Kale", "type": "VEGETABLE", "quantity": 3, "plantingDate": "2024-03-01",
              "farmerId": bob.user["id"]},
    )
    assert resp.status_code == 403
    assert store.crops.count_documents({}) == 0


def test_admin_creates_for_a_farmer(admin, alice):
    crop = make_crop(admin, farmerId=alice.user["id"])
    assert crop["farmerId"] == alice.user["id"]


def test_admin_must_name_an_existing_farmer(admin):
    resp = admin.post(
        "/api/crops",
        json={"name": "Kale", "type": "VEGETABLE", "quantity": 3, "plantingDate": "2024-03-01"},
    )
    assert resp.status_code == 400

    resp = admin.post(
        "/api/crops",
        json={"name": "Kale", "type": "VEGETABLE", "quantity": 3, "plantingDate": "2024-03-01",
              "farmerId": admin.user["id"]},
    )
    assert resp.status_code == 400


def test_farmer_list_is_scoped(alice, bob):
    mine = make_crop(alice, name="Maize")
    make_crop(bob, name="Beans", type="LEGUME")

    resp = alice.get("/api/crops")
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert [c["id"] for c in data["items"]] == [mine["id"]]
    assert data["pagination"]["totalItems"] == 1

    # asking for bob's crops explicitly still only yields alice's
    data = alice.get(f"/api/crops?farmerId={bob.user['id']}").get_json()["data"]
    assert all(c["farmerId"] == alice.user["id"] for c in data["items"])


def test_admin_list_sees_all_with_filters(admin, alice, bob):
    make_crop(alice, name="Maize")
    make_crop(bob, name="Beans", type="LEGUME", status="HARVESTED")
    make_crop(bob, name="Cassava", type="ROOT_TUBER", description="sweet variety")

    data = admin.get("/api/crops").get_json()["data"]
    assert data["pagination"]["totalItems"] == 3
    assert all("farmer" in c for c in data["items"])

    data = admin.get(f"/api/crops?farmerId={bob.user['id']}").get_json()["data"]
    assert {c["name"] for c in data["items"]} == {"Beans", "Cassava"}

    data = admin.get("/api/crops?type=LEGUME").get_json()["data"]
    assert [c["name"] for c in data["items"]] == ["Beans"]

    data = admin.get("/api/crops?status=HARVESTED").get_json()["data"]
    assert [c["name"] for c in data["items"]] == ["Beans"]

    data = admin.get("/api/crops?search=SWEET").get_json()["data"]
    assert [c["name"] for c in data["items"]] == ["Cassava"]


def test_pagination(admin, alice):
    for i in range(5):
        make_crop(alice, name=f"Crop {i}")

    data = admin.get("/api/crops?page=2&limit=2").get_json()["data"]
    assert len(data["items"]) == 2
    assert data["pagination"] == {
        "currentPage": 2,
        "totalPages": 3,
        "totalItems": 5,
        "hasNextPage": True,
        "hasPrevPage": True,
        "limit": 2,
    }
    assert admin.get("/api/crops?limit=0").status_code == 400
    assert admin.get("/api/crops?limit=1001").status_code == 400


def test_farmer_cannot_touch_foreign_crop(alice, bob, store):
    crop = make_crop(bob, name="Beans", type="LEGUME")

    assert alice.get(f"/api/crops/{crop['id']}").status_code == 403
    assert alice.put(f"/api/crops/{crop['id']}", json={"quantity": 1}).status_code == 403
    assert alice.delete(f"/api/crops/{crop['id']}").status_code == 403

    stored = store.crops.find_one()
    assert stored["quantity"] == 50


def test_admin_can_touch_any_crop(admin, bob, store):
    crop = make_crop(bob)

    assert admin.get(f"/api/crops/{crop['id']}").status_code == 200
    resp = admin.put(f"/api/crops/{crop['id']}", json={"quantity": 75, "status": "HARVESTED"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["quantity"] == 75
    assert admin.delete(f"/api/crops/{crop['id']}").status_code == 200
    assert store.crops.count_documents({}) == 0


def test_owner_update_and_delete(alice, store):
    crop = make_crop(alice)
    resp = alice.put(
        f"/api/crops/{crop['id']}",
        json={"harvestDate": "2024-07-01", "status": "HARVESTED", "description": "good season"},
    )
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["status"] == "HARVESTED"
    assert data["harvestDate"].startswith("2024-07-01")
    assert data["name"] == "Maize"

    resp = alice.put(f"/api/crops/{crop['id']}", json={"description": None})
    assert resp.get_json()["data"]["description"] is None

    assert alice.delete(f"/api/crops/{crop['id']}").status_code == 200
    assert alice.get(f"/api/crops/{crop['id']}").status_code == 404


def test_update_checks_merged_dates(alice):
    crop = make_crop(alice, harvestDate="2024-06-01")
    resp = alice.put(f"/api/crops/{crop['id']}", json={"plantingDate": "2024-07-01"})
    assert resp.status_code == 400


def test_update_rejects_bad_values(alice):
    crop = make_crop(alice)
    assert alice.put(f"/api/crops/{crop['id']}", json={"quantity": 0}).status_code == 400
    assert alice.put(f"/api/crops/{crop['id']}", json={"type": "TREE"}).status_code == 400


def test_reassignment(alice, bob, admin, store):
    crop = make_crop(alice)

    resp = alice.put(f"/api/crops/{crop['id']}", json={"farmerId": bob.user["id"]})
    assert resp.status_code == 403

    resp = admin.put(f"/api/crops/{crop['id']}", json={"farmerId": bob.user["id"]})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["farmerId"] == bob.user["id"]

    resp = admin.put(f"/api/crops/{crop['id']}", json={"farmerId": "123"})
    assert resp.status_code == 400


def test_missing_and_malformed_ids(alice):
    assert alice.get("/api/crops/not-an-id").status_code == 404
    assert alice.get("/api/crops/65f000000000000000000000").status_code == 404


def test_crops_require_session(anon):
    assert anon.get("/api/crops").status_code == 401
    assert anon.post("/api/crops", json={}).status_code == 401


def test_stats_summary_scoping(alice, bob, admin):
    make_crop(alice, name="Maize", quantity=10)
    make_crop(alice, name="Beans", type="LEGUME", quantity=5, status="SOLD")
    make_crop(bob, name="Kale", type="VEGETABLE", quantity=7)

    mine = alice.get("/api/crops/stats/summary").get_json()["data"]
    assert mine["summary"] == {"totalCrops": 2, "totalQuantity": 15}
    assert mine["charts"]["byFarmer"] == []
    assert len(mine["recentCrops"]) == 2

    everything = admin.get("/api/crops/stats/summary").get_json()["data"]
    assert everything["summary"] == {"totalCrops": 3, "totalQuantity": 22}
    by_farmer = {row["farmerName"]: row for row in everything["charts"]["byFarmer"]}
    assert by_farmer["Alice Wanjiru"]["cropCount"] == 2
    assert by_farmer["Bob Otieno"]["totalQuantity"] == 7


def test_quantity_must_be_a_real_integer(alice, store):
    for quantity in (True, "5", 2.5, 2**63):
        resp = alice.post(
            "/api/crops",
            json={"name": "Maize", "type": "CEREAL", "quantity": quantity, "plantingDate": "2024-03-01"},
        )
        assert resp.status_code == 400, quantity
    assert store.crops.count_documents({}) == 0

    crop = make_crop(alice)
    assert alice.put(f"/api/crops/{crop['id']}", json={"quantity": True}).status_code == 400
    assert alice.put(f"/api/crops/{crop['id']}", json={"quantity": 10**20}).status_code == 400
    assert store.crops.find_one()["quantity"] == 50


def test_page_is_bounded(alice):
    resp = alice.get(f"/api/crops?page={10**20}")
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_create_runs_in_a_transaction(admin, alice, store, monkeypatch):
    opened = []

    @contextmanager
    def recording_transaction():
        opened.append(True)
        yield None

    monkeypatch.setattr(store, "transaction", recording_transaction)
    make_crop(admin, farmerId=alice.user["id"])
    assert opened == [True]
