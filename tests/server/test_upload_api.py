from __future__ import annotations

from google.api_core.exceptions import Forbidden

BUCKET = "spread-quiz-test"


def test_upload_stores_content(client, storage_client) -> None:
    response = client.post(
        "/api/upload",
        json={"name": "progress/taro.json", "content": '{"score": 3}'},
    )

    assert response.status_code == 200
    assert response.get_json() == {
        "message": f"Uploaded to gs://{BUCKET}/progress/taro.json",
        "path": f"{BUCKET}/progress/taro.json",
    }
    upload = storage_client.uploads[0]
    assert upload.bucket == BUCKET
    assert upload.name == "progress/taro.json"
    assert upload.content == '{"score": 3}'
    assert upload.content_type == "application/json"


def test_upload_requires_name_and_content(client, storage_client) -> None:
    bodies = (
        {},
        {"name": "a.json"},
        {"content": "{}"},
        {"name": "", "content": "{}"},
    )
    for body in bodies:
        response = client.post("/api/upload", json=body)
        assert response.status_code == 400
        assert response.get_json() == {
            "error": "name and content are required"
        }
    assert storage_client.uploads == []


def test_upload_without_bucket(app, client) -> None:
    app.config["GCS_BUCKET"] = None

    response = client.post(
        "/api/upload", json={"name": "a.json", "content": "{}"}
    )

    assert response.status_code == 500
    assert response.get_json() == {"error": "GCS_BUCKET is not configured"}


def test_upload_failure_is_reported(client, storage_client) -> None:
    storage_client.error = Forbidden("denied")

    response = client.post(
        "/api/upload", json={"name": "a.json", "content": "{}"}
    )

    assert response.status_code == 500
    assert response.get_json() == {"error": "Upload failed"}
