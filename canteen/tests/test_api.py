"""
API endpoint tests for all routes.
Uses in-memory SQLite + dependency-overridden FastAPI test client.
"""
from datetime import date, timedelta

import pytest
from httpx import AsyncClient, ASGITransport

from canteen.api.auth import create_session_token
from canteen.database import get_db
from canteen.main import app
from canteen.models.menu import MealType
from canteen.models.notification import NotificationScope, NotificationType
from canteen.models.selection import SelectionStatus
from canteen.services.store import CanteenStore

from conftest import menu_payload, menu_data


# ===================== MENUS =====================


async def test_admin_creates_menu(admin_client):
    r = await admin_client.post("/api/menus/", json=menu_payload())
    assert r.status_code == 200
    menu = r.json()["menu"]
    assert menu["id"]
    assert menu["meal_type"] == "lunch"
    assert menu["date"] == date.today().isoformat()
    assert menu["dishes"][0]["name"] == "Paneer Tikka Bowl"
    assert menu["dishes"][0]["allergens"] == ["Dairy"]
    assert menu["nutritional_info"]["calories"] == 560


@pytest.mark.parametrize("missing", ["date", "meal_type", "dishes", "nutritional_info"])
async def test_create_menu_missing_field(admin_client, missing):
    payload = menu_payload()
    del payload[missing]
    r = await admin_client.post("/api/menus/", json=payload)
    assert r.status_code == 400
    assert missing in r.json()["error"]


async def test_create_menu_rejects_empty_dishes_and_bad_meal_type(admin_client):
    r = await admin_client.post("/api/menus/", json=menu_payload(dishes=[]))
    assert r.status_code == 400

    r = await admin_client.post("/api/menus/", json=menu_payload(meal_type="brunch"))
    assert r.status_code == 400


async def test_employee_cannot_manage_menus(client, upcoming_menu):
    r = await client.post("/api/menus/", json=menu_payload())
    assert r.status_code == 403
    assert r.json() == {"error": "Forbidden"}

    r = await client.put(f"/api/menus/{upcoming_menu.id}", json={"special_notes": "x"})
    assert r.status_code == 403

    r = await client.delete(f"/api/menus/{upcoming_menu.id}")
    assert r.status_code == 403


async def test_list_menus_with_stats(client, store, seed_data, upcoming_menu):
    await store.upsert_selection(seed_data["employee"].id, upcoming_menu.id, SelectionStatus.OPT_IN)
    await store.upsert_selection(seed_data["admin"].id, upcoming_menu.id, SelectionStatus.OPT_OUT)
    await store.add_feedback(seed_data["employee"].id, upcoming_menu.id, 4)
    await store.add_feedback(seed_data["admin"].id, upcoming_menu.id, 5)

    r = await client.get("/api/menus/")
    assert r.status_code == 200
    menus = r.json()["menus"]
    assert len(menus) == 1
    assert menus[0]["stats"] == {
        "opt_ins": 1,
        "opt_outs": 1,
        "feedback_count": 2,
        "average_rating": 4.5,
    }


async def test_list_menus_filters(client, store):
    today = date.today()
    await store.create_menu(menu_data(day=today - timedelta(days=2)))
    await store.create_menu(menu_data(day=today, meal_type=MealType.BREAKFAST))
    await store.create_menu(menu_data(day=today, meal_type=MealType.SNACKS))

    r = await client.get("/api/menus/")
    assert [m["meal_type"] for m in r.json()["menus"]] == ["breakfast", "snacks"]

    r = await client.get("/api/menus/", params={"include_past": "true"})
    assert len(r.json()["menus"]) == 3

    r = await client.get("/api/menus/", params={"date": today.isoformat(), "meal_type": "snacks"})
    menus = r.json()["menus"]
    assert len(menus) == 1
    assert menus[0]["meal_type"] == "snacks"


async def test_get_menu(client, upcoming_menu):
    r = await client.get(f"/api/menus/{upcoming_menu.id}")
    assert r.status_code == 200
    assert r.json()["menu"]["stats"]["opt_ins"] == 0


async def test_get_menu_not_found(client):
    r = await client.get("/api/menus/9999")
    assert r.status_code == 404


async def test_update_menu(admin_client, upcoming_menu):
    r = await admin_client.put(f"/api/menus/{upcoming_menu.id}", json={
        "meal_type": "snacks",
        "special_notes": "Air-fried",
        "dishes": [{"name": "Baked Samosa", "ingredients": ["Potato"], "allergens": ["Gluten"]}],
    })
    assert r.status_code == 200
    menu = r.json()["menu"]
    assert menu["id"] == upcoming_menu.id
    assert menu["meal_type"] == "snacks"
    assert menu["special_notes"] == "Air-fried"
    assert [d["name"] for d in menu["dishes"]] == ["Baked Samosa"]
    # Untouched fields survive
    assert menu["nutritional_info"]["calories"] == 500


async def test_update_menu_clears_notes_with_null(admin_client, upcoming_menu):
    r = await admin_client.put(f"/api/menus/{upcoming_menu.id}", json={"special_notes": "Chef's pick"})
    assert r.json()["menu"]["special_notes"] == "Chef's pick"

    # Omitted fields are left alone
    r = await admin_client.put(f"/api/menus/{upcoming_menu.id}", json={"meal_type": "snacks"})
    assert r.json()["menu"]["special_notes"] == "Chef's pick"

    r = await admin_client.put(f"/api/menus/{upcoming_menu.id}", json={"special_notes": None})
    assert r.status_code == 200
    assert r.json()["menu"]["special_notes"] is None
    assert r.json()["menu"]["meal_type"] == "snacks"


@pytest.mark.parametrize("field", ["date", "meal_type", "dishes", "nutritional_info"])
async def test_update_menu_rejects_null_required_field(admin_client, upcoming_menu, field):
    r = await admin_client.put(f"/api/menus/{upcoming_menu.id}", json={field: None})
    assert r.status_code == 400
    assert r.json() == {"error": f"{field} cannot be null"}


async def test_update_menu_not_found(admin_client):
    r = await admin_client.put("/api/menus/9999", json={"special_notes": "x"})
    assert r.status_code == 404
    assert r.json() == {"error": "Menu not found"}


async def test_delete_menu(admin_client, store, seed_data, upcoming_menu):
    await store.upsert_selection(seed_data["employee"].id, upcoming_menu.id, SelectionStatus.OPT_IN)
    await store.add_feedback(seed_data["employee"].id, upcoming_menu.id, 3)

    r = await admin_client.delete(f"/api/menus/{upcoming_menu.id}")
    assert r.status_code == 200
    assert r.json() == {"success": True}

    assert await store.get_selections(menu_id=upcoming_menu.id) == []
    assert await store.get_feedback(menu_id=upcoming_menu.id) == []

    r = await admin_client.delete(f"/api/menus/{upcoming_menu.id}")
    assert r.status_code == 404


async def test_menus_require_session(unauth_client):
    r = await unauth_client.get("/api/menus/")
    assert r.status_code == 401


# ===================== SELECTIONS =====================


async def test_selection_revote_keeps_one_record(client, upcoming_menu):
    r = await client.post("/api/selections/", json={"menu_id": upcoming_menu.id, "status": "opt-in"})
    assert r.status_code == 200
    first = r.json()["selection"]

    r = await client.post("/api/selections/", json={
        "menu_id": upcoming_menu.id,
        "status": "opt-out",
        "reason": "Working from home",
    })
    assert r.status_code == 200
    second = r.json()["selection"]
    assert second["id"] == first["id"]
    assert second["status"] == "opt-out"
    assert second["updated_at"] >= first["updated_at"]

    r = await client.get("/api/selections/")
    selections = r.json()["selections"]
    assert len(selections) == 1
    assert selections[0]["reason"] == "Working from home"


async def test_selection_bad_status(client, upcoming_menu):
    r = await client.post("/api/selections/", json={"menu_id": upcoming_menu.id, "status": "maybe"})
    assert r.status_code == 400


async def test_selection_missing_fields(client):
    r = await client.post("/api/selections/", json={"status": "opt-in"})
    assert r.status_code == 400


async def test_selection_unknown_menu(client):
    r = await client.post("/api/selections/", json={"menu_id": "9999", "status": "opt-in"})
    assert r.status_code == 404


async def test_selections_only_own(client, store, seed_data, upcoming_menu):
    await store.upsert_selection(seed_data["admin"].id, upcoming_menu.id, SelectionStatus.OPT_IN)
    r = await client.get("/api/selections/")
    assert r.json()["selections"] == []


async def test_aggregate_selections_admin_only(client):
    r = await client.get("/api/selections/", params={"aggregate": "true"})
    assert r.status_code == 403


async def test_aggregate_selections_with_capacity(admin_client, store, seed_data):
    today = date.today()
    with_capacity = await store.create_menu(menu_data(day=today))
    without_capacity = await store.create_menu(menu_data(day=today + timedelta(days=3)))
    await store.create_seating_capacity({"date": today, "capacity": 120})
    await store.upsert_selection(seed_data["employee"].id, with_capacity.id, SelectionStatus.OPT_IN)
    await store.upsert_selection(seed_data["admin"].id, with_capacity.id, SelectionStatus.OPT_OUT)

    r = await admin_client.get("/api/selections/", params={"aggregate": "true"})
    assert r.status_code == 200
    rows = {row["menu"]["id"]: row for row in r.json()["selections"]}

    assert rows[with_capacity.id]["opt_in_count"] == 1
    assert rows[with_capacity.id]["opt_out_count"] == 1
    assert rows[with_capacity.id]["capacity"] == 120
    assert rows[with_capacity.id]["pending_count"] == 119
    assert rows[without_capacity.id]["capacity"] is None
    assert rows[without_capacity.id]["pending_count"] == 0


# ===================== FEEDBACK =====================


@pytest.mark.parametrize("rating", [0, 6])
async def test_feedback_rating_out_of_range(client, upcoming_menu, rating):
    r = await client.post("/api/feedback/", json={"menu_id": upcoming_menu.id, "rating": rating})
    assert r.status_code == 400
    assert "Rating must be 1-5" in r.json()["error"]


@pytest.mark.parametrize("rating", [1, 5])
async def test_feedback_rating_bounds_accepted(client, upcoming_menu, rating):
    r = await client.post("/api/feedback/", json={"menu_id": upcoming_menu.id, "rating": rating})
    assert r.status_code == 200
    assert r.json()["feedback"]["rating"] == rating


async def test_feedback_fractional_rating_rejected(client, upcoming_menu):
    r = await client.post("/api/feedback/", json={"menu_id": upcoming_menu.id, "rating": 4.5})
    assert r.status_code == 400


async def test_feedback_upsert_and_list(client, upcoming_menu):
    await client.post("/api/feedback/", json={"menu_id": upcoming_menu.id, "rating": 2})
    r = await client.post("/api/feedback/", json={
        "menu_id": upcoming_menu.id,
        "rating": 4,
        "comments": "Better today",
    })
    assert r.status_code == 200

    r = await client.get("/api/feedback/", params={"menu_id": upcoming_menu.id})
    assert r.status_code == 200
    data = r.json()
    assert len(data["feedback"]) == 1
    assert data["feedback"][0]["comments"] == "Better today"
    assert data["average_rating"] == 4.0


async def test_feedback_list_requires_menu_id(client):
    r = await client.get("/api/feedback/")
    assert r.status_code == 400


async def test_feedback_unknown_menu(client):
    r = await client.post("/api/feedback/", json={"menu_id": "9999", "rating": 3})
    assert r.status_code == 404


# ===================== INVENTORY =====================


async def test_inventory_crud(admin_client):
    r = await admin_client.post("/api/inventory/", json={
        "name": "Millets Assorted", "quantity": 45, "unit": "kg", "threshold": 25,
    })
    assert r.status_code == 200
    item = r.json()["item"]
    assert item["is_low_stock"] is False

    r = await admin_client.post("/api/inventory/", json={
        "id": item["id"], "name": "Millets Assorted", "quantity": 10, "unit": "kg", "threshold": 25,
        "notes": "Reorder this week",
    })
    assert r.status_code == 200
    assert r.json()["item"]["is_low_stock"] is True
    assert r.json()["item"]["notes"] == "Reorder this week"

    r = await admin_client.get("/api/inventory/")
    assert len(r.json()["items"]) == 1

    r = await admin_client.post("/api/inventory/", json={"action": "delete", "id": item["id"]})
    assert r.json() == {"success": True}
    r = await admin_client.get("/api/inventory/")
    assert r.json()["items"] == []


async def test_inventory_validation(admin_client):
    r = await admin_client.post("/api/inventory/", json={"name": "Rice", "unit": "kg"})
    assert r.status_code == 400

    r = await admin_client.post("/api/inventory/", json={"action": "delete"})
    assert r.status_code == 400
    assert r.json() == {"error": "Inventory ID required."}

    r = await admin_client.post("/api/inventory/", json={
        "name": "Rice", "quantity": -1, "unit": "kg", "threshold": 5,
    })
    assert r.status_code == 400


async def test_inventory_update_unknown_item(admin_client):
    r = await admin_client.post("/api/inventory/", json={
        "id": "9999", "name": "Rice", "quantity": 1, "unit": "kg", "threshold": 5,
    })
    assert r.status_code == 404


async def test_inventory_mutations_admin_only(client):
    r = await client.get("/api/inventory/")
    assert r.status_code == 200

    r = await client.post("/api/inventory/", json={
        "name": "Rice", "quantity": 1, "unit": "kg", "threshold": 5,
    })
    assert r.status_code == 403


# ===================== NOTIFICATIONS =====================


async def test_notifications_default_to_own_scope(client, store):
    for title, scope in [("All", NotificationScope.ALL), ("Staff", NotificationScope.EMPLOYEE),
                         ("Admins", NotificationScope.ADMIN)]:
        await store.add_notification({
            "title": title, "message": "m", "type": NotificationType.INFO, "scope": scope,
        })

    r = await client.get("/api/notifications/")
    data = r.json()
    assert {n["title"] for n in data["notifications"]} == {"All", "Staff"}
    assert data["unread_count"] == 2

    r = await client.get("/api/notifications/", params={"scope": "all"})
    assert {n["title"] for n in r.json()["notifications"]} == {"All"}


async def test_mark_notification_read(client, store, seed_data):
    note = await store.add_notification({
        "title": "Menu change", "message": "m", "type": NotificationType.WARNING,
        "scope": NotificationScope.ALL,
    })

    r = await client.post("/api/notifications/", json={"action": "read", "notification_id": note.id})
    assert r.status_code == 200
    assert r.json() == {"success": True}

    r = await client.get("/api/notifications/")
    data = r.json()
    assert data["notifications"][0]["read_by"] == [seed_data["employee"].id]
    assert data["unread_count"] == 0


async def test_mark_notification_read_validation(client):
    r = await client.post("/api/notifications/", json={"action": "read"})
    assert r.status_code == 400

    r = await client.post("/api/notifications/", json={"action": "read", "notification_id": "9999"})
    assert r.status_code == 404


async def test_create_notification(admin_client):
    r = await admin_client.post("/api/notifications/", json={
        "title": "Weekend Special Menu",
        "message": "Millet and greens on Saturday",
        "type": "success",
        "scope": "employee",
    })
    assert r.status_code == 200
    note = r.json()["notification"]
    assert note["scope"] == "employee"
    assert note["read_by"] == []

    r = await admin_client.post("/api/notifications/", json={"title": "Incomplete"})
    assert r.status_code == 400


async def test_employee_cannot_create_notification(client):
    r = await client.post("/api/notifications/", json={
        "title": "Hello", "message": "m", "type": "info", "scope": "all",
    })
    assert r.status_code == 403


# ===================== SEATING =====================


async def test_seating_capacity(admin_client):
    today = date.today().isoformat()
    r = await admin_client.post("/api/seating/", json={"date": today, "capacity": 120})
    assert r.status_code == 200
    record_id = r.json()["capacity"]["id"]

    # Same date without an id updates the existing record
    r = await admin_client.post("/api/seating/", json={"date": today, "capacity": 90})
    assert r.json()["capacity"]["id"] == record_id

    r = await admin_client.get("/api/seating/")
    capacities = r.json()["capacities"]
    assert len(capacities) == 1
    assert capacities[0]["capacity"] == 90


async def test_seating_capacity_validation(admin_client):
    r = await admin_client.post("/api/seating/", json={"date": date.today().isoformat(), "capacity": -5})
    assert r.status_code == 400

    r = await admin_client.post("/api/seating/", json={
        "id": "9999", "date": date.today().isoformat(), "capacity": 5,
    })
    assert r.status_code == 404


async def test_seating_admin_only(client):
    assert (await client.get("/api/seating/")).status_code == 403
    r = await client.post("/api/seating/", json={"date": date.today().isoformat(), "capacity": 5})
    assert r.status_code == 403


# ===================== ANALYTICS =====================


async def test_analytics_admin_only(client):
    r = await client.get("/api/analytics/")
    assert r.status_code == 403
    assert "metrics" not in r.json()


async def test_analytics(admin_client, store, seed_data):
    today = date.today()
    breakfast = await store.create_menu(menu_data(day=today, meal_type=MealType.BREAKFAST))
    lunch = await store.create_menu(menu_data(day=today, meal_type=MealType.LUNCH))
    employee, admin = seed_data["employee"], seed_data["admin"]

    await store.upsert_selection(employee.id, breakfast.id, SelectionStatus.OPT_IN)
    await store.upsert_selection(admin.id, breakfast.id, SelectionStatus.OPT_IN)
    await store.upsert_selection(employee.id, lunch.id, SelectionStatus.OPT_IN)
    await store.upsert_selection(admin.id, lunch.id, SelectionStatus.OPT_OUT)
    await store.add_feedback(employee.id, breakfast.id, 4)
    await store.add_feedback(admin.id, breakfast.id, 5)
    await store.add_feedback(employee.id, lunch.id, 3)

    r = await admin_client.get("/api/analytics/")
    assert r.status_code == 200
    data = r.json()

    assert data["metrics"] == {
        "total_opt_ins": 3,
        "total_opt_outs": 1,
        "opt_in_rate": 75.0,
        "average_rating": 4.0,
        "waste_estimate_kg": 0.14,
    }
    assert len(data["trend"]) == 1
    assert data["trend"][0]["opt_ins"] == 3
    assert data["trend"][0]["average_rating"] == 4.0
    assert [m["id"] for m in data["top_menus"]] == [breakfast.id, lunch.id]
    assert data["top_menus"][0]["average_rating"] == 4.5


# ===================== END TO END =====================


async def test_admin_publishes_employee_engages(admin_client, client):
    r = await admin_client.post("/api/menus/", json=menu_payload())
    assert r.status_code == 200
    menu_id = r.json()["menu"]["id"]

    r = await client.get("/api/menus/")
    listed = {m["id"]: m for m in r.json()["menus"]}
    assert listed[menu_id]["stats"]["opt_ins"] == 0

    r = await client.post("/api/selections/", json={"menu_id": menu_id, "status": "opt-in"})
    assert r.status_code == 200

    r = await admin_client.get("/api/selections/", params={"aggregate": "true"})
    rows = {row["menu"]["id"]: row for row in r.json()["selections"]}
    assert rows[menu_id]["opt_in_count"] == 1

    r = await client.post("/api/feedback/", json={"menu_id": menu_id, "rating": 4})
    assert r.status_code == 200

    r = await admin_client.get("/api/analytics/")
    assert r.json()["metrics"]["average_rating"] == 4.0


# ===================== ERRORS =====================


async def test_unexpected_error_is_500_without_detail(db_session, seed_data, monkeypatch):
    async def broken_inventory(self):
        raise ValueError("column quantity is corrupt")

    monkeypatch.setattr(CanteenStore, "get_inventory", broken_inventory)

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    token = create_session_token(seed_data["employee"])

    # Let the error handler's response through instead of re-raising
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.get("/api/inventory/", headers={"Authorization": f"Bearer {token}"})

    app.dependency_overrides.clear()

    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error."}
