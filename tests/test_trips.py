import pytest


@pytest.fixture
def start_trip(client, staff):
    def _start(vehicle_id: int, **overrides) -> dict:
        payload = {
            "vehicle": vehicle_id,
            "driver": staff["id"],
            "startDate": "2024-05-01T08:00:00",
            "purpose": "Hospital visit",
        }
        payload.update(overrides)
        response = client.post("/api/trips", json=payload, headers=staff["headers"])
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _start


def vehicle_status(client, headers, vehicle_id):
    return client.get(f"/api/vehicles/{vehicle_id}", headers=headers).json()["data"]


def test_create_trip_takes_vehicle(client, staff, create_vehicle, create_member, start_trip):
    vehicle = create_vehicle()
    passenger = create_member()

    trip = start_trip(vehicle["id"], passengers=[passenger["id"]])

    assert trip["status"] == "scheduled"
    assert trip["startOdometer"] == 1000
    assert trip["vehicle"]["licensePlate"] == vehicle["licensePlate"]
    assert trip["driver"]["id"] == staff["id"]
    assert [p["id"] for p in trip["passengers"]] == [passenger["id"]]
    assert vehicle_status(client, staff["headers"], vehicle["id"])["status"] == "in_use"


def test_create_trip_requires_available_vehicle(client, staff, create_vehicle, start_trip):
    vehicle = create_vehicle()
    start_trip(vehicle["id"])

    response = client.post(
        "/api/trips",
        json={"vehicle": vehicle["id"], "driver": staff["id"], "startDate": "2024-05-02T08:00:00", "purpose": "Second"},
        headers=staff["headers"],
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Vehicle is not currently available"


def test_create_trip_with_unknown_references(client, staff, create_vehicle):
    vehicle = create_vehicle()
    base = {"startDate": "2024-05-01T08:00:00", "purpose": "Errand"}

    missing_vehicle = client.post("/api/trips", json={**base, "vehicle": 999, "driver": staff["id"]}, headers=staff["headers"])
    missing_driver = client.post("/api/trips", json={**base, "vehicle": vehicle["id"], "driver": 999}, headers=staff["headers"])
    missing_passenger = client.post(
        "/api/trips",
        json={**base, "vehicle": vehicle["id"], "driver": staff["id"], "passengers": [999]},
        headers=staff["headers"],
    )

    assert missing_vehicle.status_code == 404
    assert missing_driver.status_code == 404
    assert missing_passenger.status_code == 404
    assert vehicle_status(client, staff["headers"], vehicle["id"])["status"] == "available"


def test_complete_trip_updates_odometer(client, staff, create_vehicle, start_trip):
    vehicle = create_vehicle()
    trip = start_trip(vehicle["id"])

    response = client.put(f"/api/trips/{trip['id']}/complete", json={"endOdometer": 1250}, headers=staff["headers"])

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "completed"
    assert data["endOdometer"] == 1250
    assert data["distance"] == 250
    assert data["endDate"] is not None

    after = vehicle_status(client, staff["headers"], vehicle["id"])
    assert after["status"] == "available"
    assert after["currentOdometer"] == 1250


def test_complete_trip_validation(client, staff, create_vehicle, start_trip):
    vehicle = create_vehicle()
    trip = start_trip(vehicle["id"])
    url = f"/api/trips/{trip['id']}/complete"

    missing = client.put(url, json={}, headers=staff["headers"])
    assert missing.status_code == 400

    backwards = client.put(url, json={"endOdometer": 900}, headers=staff["headers"])
    assert backwards.status_code == 400

    client.put(url, json={"endOdometer": 1100}, headers=staff["headers"])
    again = client.put(url, json={"endOdometer": 1200}, headers=staff["headers"])
    assert again.status_code == 400
    assert again.json()["message"] == "Trip has already been completed"


def test_cancel_trip_frees_vehicle(client, staff, create_vehicle, start_trip):
    vehicle = create_vehicle()
    trip = start_trip(vehicle["id"])

    cancelled = client.put(f"/api/trips/{trip['id']}/cancel", headers=staff["headers"])
    assert cancelled.status_code == 200
    assert cancelled.json()["data"]["status"] == "cancelled"
    assert vehicle_status(client, staff["headers"], vehicle["id"])["status"] == "available"

    twice = client.put(f"/api/trips/{trip['id']}/cancel", headers=staff["headers"])
    assert twice.status_code == 400

    complete = client.put(f"/api/trips/{trip['id']}/complete", json={"endOdometer": 1100}, headers=staff["headers"])
    assert complete.status_code == 400


def test_moving_trip_to_another_vehicle(client, staff, create_vehicle, start_trip):
    first = create_vehicle("AAA-1")
    second = create_vehicle("BBB-2")
    trip = start_trip(first["id"])

    response = client.put(f"/api/trips/{trip['id']}", json={"vehicle": second["id"]}, headers=staff["headers"])

    assert response.status_code == 200
    assert response.json()["data"]["vehicle"]["id"] == second["id"]
    assert vehicle_status(client, staff["headers"], first["id"])["status"] == "available"
    assert vehicle_status(client, staff["headers"], second["id"])["status"] == "in_use"


def test_moving_ended_trip_leaves_old_vehicle_with_its_new_trip(client, staff, create_vehicle, start_trip):
    first = create_vehicle("AAA-1")
    second = create_vehicle("BBB-2")
    done = start_trip(first["id"])
    client.put(f"/api/trips/{done['id']}/complete", json={"endOdometer": 1100}, headers=staff["headers"])
    active = start_trip(first["id"], startDate="2024-05-02T08:00:00")

    response = client.put(f"/api/trips/{done['id']}", json={"vehicle": second["id"]}, headers=staff["headers"])

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "completed"
    assert vehicle_status(client, staff["headers"], first["id"])["status"] == "in_use"
    assert vehicle_status(client, staff["headers"], second["id"])["status"] == "available"
    still_active = client.get(f"/api/trips/{active['id']}", headers=staff["headers"]).json()["data"]
    assert still_active["status"] == "scheduled"
    assert still_active["vehicle"]["id"] == first["id"]


def test_delete_active_trip_frees_vehicle(client, admin, staff, create_vehicle, start_trip):
    vehicle = create_vehicle()
    trip = start_trip(vehicle["id"])

    response = client.delete(f"/api/trips/{trip['id']}", headers=admin["headers"])

    assert response.status_code == 200
    assert vehicle_status(client, staff["headers"], vehicle["id"])["status"] == "available"


def test_list_trips_filters(client, staff, create_vehicle, start_trip):
    first = create_vehicle("AAA-1")
    second = create_vehicle("BBB-2")
    done = start_trip(first["id"], startDate="2024-03-01T08:00:00")
    client.put(f"/api/trips/{done['id']}/complete", json={"endOdometer": 1100}, headers=staff["headers"])
    start_trip(second["id"], startDate="2024-06-01T08:00:00")

    completed = client.get("/api/trips?status=completed", headers=staff["headers"]).json()
    assert [t["id"] for t in completed["data"]] == [done["id"]]

    by_vehicle = client.get(f"/api/trips?vehicle={second['id']}", headers=staff["headers"]).json()
    assert by_vehicle["count"] == 1

    march = client.get("/api/trips?startDate=2024-03-01&endDate=2024-03-31", headers=staff["headers"]).json()
    assert [t["id"] for t in march["data"]] == [done["id"]]


def test_update_moves_trip_between_scheduled_and_in_progress(client, staff, create_vehicle, start_trip):
    vehicle = create_vehicle()
    trip = start_trip(vehicle["id"])
    url = f"/api/trips/{trip['id']}"

    started = client.put(url, json={"status": "in_progress"}, headers=staff["headers"])
    assert started.status_code == 200
    assert started.json()["data"]["status"] == "in_progress"
    assert vehicle_status(client, staff["headers"], vehicle["id"])["status"] == "in_use"

    ended = client.put(url, json={"status": "completed"}, headers=staff["headers"])
    assert ended.status_code == 400
    assert ended.json()["message"] == "Use the complete or cancel endpoints to end a trip"

    unknown = client.put(url, json={"status": "driving"}, headers=staff["headers"])
    assert unknown.status_code == 400
    assert unknown.json()["message"] == "Validation failed"

    complete = client.put(f"{url}/complete", json={"endOdometer": 1200}, headers=staff["headers"])
    assert complete.status_code == 200
    assert vehicle_status(client, staff["headers"], vehicle["id"])["status"] == "available"


def test_ended_trip_status_cannot_be_reopened(client, staff, create_vehicle, start_trip):
    vehicle = create_vehicle()
    trip = start_trip(vehicle["id"])
    client.put(f"/api/trips/{trip['id']}/cancel", headers=staff["headers"])

    response = client.put(f"/api/trips/{trip['id']}", json={"status": "scheduled"}, headers=staff["headers"])

    assert response.status_code == 400
    assert response.json()["message"] == "Trip has already been cancelled"
    assert vehicle_status(client, staff["headers"], vehicle["id"])["status"] == "available"
