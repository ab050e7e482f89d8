import pytest

from app.services.file_storage import (
    MB,
    FileStorageService,
    UploadValidationError,
    generate_unique_filename,
    get_file_extension,
)

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def test_member_photo_upload_and_cleanup(client, admin, staff, create_member, upload_dir):
    member = create_member()

    response = client.put(
        f"/api/members/{member['id']}/photo",
        files={"profilePhoto": ("face.png", PNG, "image/png")},
        headers=staff["headers"],
    )

    assert response.status_code == 200
    url = response.json()["data"]["profilePhoto"]
    assert url.startswith("/uploads/photos/member-")
    stored = upload_dir / "photos" / url.rsplit("/", 1)[-1]
    assert stored.exists()

    client.delete(f"/api/members/{member['id']}", headers=admin["headers"])
    assert not stored.exists()


def test_photo_with_wrong_type_is_rejected(client, staff, create_member, upload_dir):
    member = create_member()

    response = client.put(
        f"/api/members/{member['id']}/photo",
        files={"profilePhoto": ("notes.txt", b"hello", "text/plain")},
        headers=staff["headers"],
    )

    assert response.status_code == 400
    assert response.json()["message"].startswith("File type not allowed")


def test_vehicle_documents_accumulate(client, staff, create_vehicle, upload_dir):
    vehicle = create_vehicle()

    for name in ("registration.pdf", "insurance.pdf"):
        response = client.put(
            f"/api/vehicles/{vehicle['id']}/document",
            files={"document": (name, b"%PDF-1.4", "application/pdf")},
            headers=staff["headers"],
        )
        assert response.status_code == 200

    documents = response.json()["data"]["documents"]
    assert len(documents) == 2
    assert all(url.startswith("/uploads/documents/vehicle-") for url in documents)


def test_payment_receipt_upload(client, staff, create_member, upload_dir):
    member = create_member()
    payment = client.post(
        "/api/payments",
        json={"member": member["id"], "amount": 10, "paymentMethod": "cash", "paymentType": "donation"},
        headers=staff["headers"],
    ).json()["data"]

    response = client.put(
        f"/api/payments/{payment['id']}/receipt",
        files={"receipt": ("receipt.pdf", b"%PDF-1.4", "application/pdf")},
        headers=staff["headers"],
    )

    assert response.status_code == 200
    assert response.json()["data"]["receipt"].startswith("/uploads/receipts/payment-")


def test_validate_rejects_oversized_file(tmp_path):
    storage = FileStorageService(base_dir=str(tmp_path), backend="local")

    with pytest.raises(UploadValidationError, match="File too large"):
        storage.validate("scan.pdf", 5 * MB + 1, "receipt")
    assert storage.validate("scan.pdf", 10 * MB, "document").subdirectory == "documents"


def test_cloud_backend_records_url_only(tmp_path):
    storage = FileStorageService(base_dir=str(tmp_path), backend="cloud", cloud_url="https://files.alkhair.org/")

    url = storage.save(PNG, "face.png", "photo", prefix="member-1")

    assert url.startswith("https://files.alkhair.org/photos/member-1_")
    assert not any(tmp_path.iterdir())
    assert storage.delete(url) is False


def test_filename_helpers():
    assert get_file_extension("Scan.PDF") == "pdf"
    name = generate_unique_filename("photo.JPG", "member-7")
    assert name.startswith("member-7_")
    assert name.endswith(".jpg")
