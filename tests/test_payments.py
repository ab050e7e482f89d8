from datetime import datetime

from app.models.payment import Payment

from factories import payment_payload


def test_create_payment_generates_receipt_and_collector(client, staff, create_member):
    member = create_member()

    response = client.post("/api/payments", json=payment_payload(member["id"]), headers=staff["headers"])

    assert response.status_code == 201
    data = response.json()["data"]
    year = datetime.utcnow().year
    assert data["receiptNumber"] == f"REC-{year}-00001"
    assert data["amount"] == 150.0
    assert data["isPaid"] is True
    assert data["member"]["nationalId"] == member["nationalId"]
    assert data["collectedBy"]["id"] == staff["id"]


def test_receipt_numbers_are_sequential_per_year(client, staff, create_member):
    member = create_member()
    numbers = [
        client.post("/api/payments", json=payment_payload(member["id"]), headers=staff["headers"]).json()["data"]["receiptNumber"]
        for _ in range(3)
    ]
    older = client.post(
        "/api/payments",
        json=payment_payload(member["id"], paymentDate="2023-03-01T10:00:00"),
        headers=staff["headers"],
    ).json()["data"]

    year = datetime.utcnow().year
    assert numbers == [f"REC-{year}-00001", f"REC-{year}-00002", f"REC-{year}-00003"]
    assert older["receiptNumber"] == "REC-2023-00001"


def test_receipt_numbers_grow_past_five_digits(client, database, staff, create_member):
    member = create_member()
    first = client.post("/api/payments", json=payment_payload(member["id"]), headers=staff["headers"]).json()["data"]
    year = datetime.utcnow().year
    session = database.session()
    try:
        session.query(Payment).filter(Payment.id == first["id"]).update({"receipt_number": f"REC-{year}-99999"})
        session.commit()
    finally:
        session.close()

    numbers = [
        client.post("/api/payments", json=payment_payload(member["id"]), headers=staff["headers"]).json()["data"]["receiptNumber"]
        for _ in range(2)
    ]

    assert numbers == [f"REC-{year}-100000", f"REC-{year}-100001"]


def test_create_payment_for_missing_member(client, staff):
    response = client.post("/api/payments", json=payment_payload(404), headers=staff["headers"])

    assert response.status_code == 404
    assert response.json()["message"] == "Member not found"


def test_create_payment_rejects_non_positive_amount(client, staff, create_member):
    member = create_member()

    response = client.post("/api/payments", json=payment_payload(member["id"], amount=0), headers=staff["headers"])

    assert response.status_code == 400


def test_installment_plan_round_trips_in_camel_case(client, staff, create_member):
    member = create_member()
    plan = {"totalAmount": 1200, "numberOfInstallments": 12, "paidInstallments": 1}

    created = client.post(
        "/api/payments",
        json=payment_payload(member["id"], amount=100, isInstallment=True, installmentPlan=plan),
        headers=staff["headers"],
    ).json()["data"]

    assert created["isInstallment"] is True
    assert created["installmentPlan"] == {"totalAmount": 1200.0, "numberOfInstallments": 12, "paidInstallments": 1}


def test_list_payments_filters(client, staff, create_member):
    first = create_member("1000000001")
    second = create_member("1000000002")
    client.post("/api/payments", json=payment_payload(first["id"]), headers=staff["headers"])
    client.post("/api/payments", json=payment_payload(first["id"], paymentType="donation", isPaid=False), headers=staff["headers"])
    client.post(
        "/api/payments",
        json=payment_payload(second["id"], paymentDate="2024-02-10T09:00:00"),
        headers=staff["headers"],
    )

    by_member = client.get(f"/api/payments?member={first['id']}", headers=staff["headers"]).json()
    assert by_member["count"] == 2

    donations = client.get("/api/payments?paymentType=donation", headers=staff["headers"]).json()
    assert donations["count"] == 1

    unpaid = client.get("/api/payments?isPaid=false", headers=staff["headers"]).json()
    assert unpaid["count"] == 1

    window = client.get("/api/payments?startDate=2024-02-01&endDate=2024-02-29", headers=staff["headers"]).json()
    assert [p["memberId"] for p in window["data"]] == [second["id"]]


def test_member_payment_history(client, staff, create_member):
    member = create_member()
    client.post("/api/payments", json=payment_payload(member["id"]), headers=staff["headers"])
    client.post("/api/payments", json=payment_payload(member["id"], amount=75), headers=staff["headers"])

    response = client.get(f"/api/payments/member/{member['id']}", headers=staff["headers"])

    assert response.status_code == 200
    assert response.json()["count"] == 2


def test_update_payment(client, staff, create_member):
    member = create_member()
    created = client.post("/api/payments", json=payment_payload(member["id"]), headers=staff["headers"]).json()["data"]

    response = client.put(
        f"/api/payments/{created['id']}",
        json={"amount": 300, "notes": "Corrected"},
        headers=staff["headers"],
    )

    data = response.json()["data"]
    assert data["amount"] == 300.0
    assert data["notes"] == "Corrected"
    assert data["receiptNumber"] == created["receiptNumber"]


def test_delete_payment_removes_it_from_member_records(client, admin, staff, create_member):
    member = create_member()
    created = client.post("/api/payments", json=payment_payload(member["id"]), headers=staff["headers"]).json()["data"]

    response = client.delete(f"/api/payments/{created['id']}", headers=admin["headers"])

    assert response.status_code == 200
    detail = client.get(f"/api/members/{member['id']}", headers=admin["headers"]).json()["data"]
    assert detail["paymentRecords"] == []
