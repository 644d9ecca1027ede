"""
Unit tests for the files handler and file key generation.
"""

import base64

import pytest
from conftest import ALICE, BOB, api_event, claims_for, response_body

from crud_service.handlers.files_handler import lambda_handler
from crud_service.logic.files import generate_file_key, parse_max_keys

CONTENT = base64.b64encode(b"hello world").decode("ascii")


def upload(lambda_context, caller=ALICE, file_name="notes.txt"):
    event = api_event(
        "POST", "/files",
        body={"fileName": file_name, "fileContent": CONTENT, "contentType": "text/plain"},
        claims=claims_for(caller),
    )
    response = lambda_handler(event, lambda_context)
    assert response["statusCode"] == 201
    return response_body(response)["data"]["file"]


class TestGenerateFileKey:
    """Test cases for the key naming convention."""

    def test_layout(self):
        assert generate_file_key("u1", "report.pdf", timestamp_ms=1700000000000) == "uploads/u1/1700000000000-report.pdf"

    def test_unsafe_characters_replaced(self):
        assert generate_file_key("u1", "my report (v2).pdf", timestamp_ms=1) == "uploads/u1/1-my-report--v2-.pdf"

    def test_basename_truncated(self):
        key = generate_file_key("u1", "a" * 80 + ".txt", timestamp_ms=1)

        assert key == "uploads/u1/1-" + "a" * 50 + ".txt"

    def test_directories_dropped(self):
        assert generate_file_key("u1", "../../etc/passwd", timestamp_ms=1) == "uploads/u1/1-passwd"

    @pytest.mark.parametrize("raw,expected", [(None, 100), ("25", 25), ("5000", 1000), ("abc", 100), ("0", 100)])
    def test_parse_max_keys(self, raw, expected):
        assert parse_max_keys(raw) == expected


class TestFilesHandler:
    """Test cases for file routes."""

    def test_upload(self, runtime, lambda_context):
        """Test an upload lands under the caller's namespace."""
        stored = upload(lambda_context)

        assert stored["key"].startswith("uploads/alice-id/")
        assert stored["key"].endswith("-notes.txt")
        assert stored["size"] == 11
        assert stored["uploadedBy"] == ALICE.user_id
        assert stored["originalName"] == "notes.txt"

    def test_upload_rejects_bad_base64(self, runtime, lambda_context):
        event = api_event("POST", "/files", body={"fileName": "a.txt", "fileContent": "not base64!"},
                          claims=claims_for(ALICE))

        response = lambda_handler(event, lambda_context)

        assert response["statusCode"] == 400
        assert response_body(response)["message"] == "fileContent: must be base64 encoded"

    def test_get_file(self, runtime, lambda_context):
        """Test a stored file reads back with its body and metadata."""
        stored = upload(lambda_context)

        response = lambda_handler(api_event("GET", f"/files/{stored['key']}", claims=claims_for(BOB)), lambda_context)

        data = response_body(response)["data"]
        assert response["statusCode"] == 200
        assert base64.b64decode(data["content"]) == b"hello world"
        assert data["contentType"] == "text/plain"
        assert data["metadata"]["uploadedBy"] == ALICE.user_id

    def test_get_missing_file(self, runtime, lambda_context):
        response = lambda_handler(
            api_event("GET", "/files/uploads/alice-id/missing.txt", claims=claims_for(ALICE)), lambda_context
        )

        assert response["statusCode"] == 404
        assert response_body(response)["message"] == "File not found"

    def test_delete_other_users_file(self, runtime, lambda_context):
        """Test deleting outside the caller's namespace is refused and the file survives."""
        stored = upload(lambda_context)

        response = lambda_handler(
            api_event("DELETE", f"/files/{stored['key']}", claims=claims_for(BOB)), lambda_context
        )

        assert response["statusCode"] == 403
        assert response_body(response)["message"] == "You can only delete your own files"
        assert runtime.object_store.get_file(stored["key"]).body == b"hello world"

    def test_delete_own_file(self, runtime, lambda_context):
        stored = upload(lambda_context)

        deleted = lambda_handler(
            api_event("DELETE", f"/files/{stored['key']}", claims=claims_for(ALICE)), lambda_context
        )
        again = lambda_handler(
            api_event("DELETE", f"/files/{stored['key']}", claims=claims_for(ALICE)), lambda_context
        )

        assert deleted["statusCode"] == 200
        assert response_body(deleted)["data"] == {"message": "File deleted successfully", "key": stored["key"]}
        assert again["statusCode"] == 404

    def test_list_user_only(self, runtime, lambda_context):
        """Test userOnly restricts the listing to the caller's namespace."""
        upload(lambda_context, caller=ALICE)
        upload(lambda_context, caller=BOB)

        mine = lambda_handler(
            api_event("GET", "/files", query={"userOnly": "true"}, claims=claims_for(ALICE)), lambda_context
        )
        everything = lambda_handler(api_event("GET", "/files", claims=claims_for(ALICE)), lambda_context)

        mine_data = response_body(mine)["data"]
        assert mine_data["count"] == 1
        assert mine_data["prefix"] == "uploads/alice-id/"
        assert response_body(everything)["data"]["count"] == 2

    def test_list_max_keys(self, runtime, lambda_context):
        upload(lambda_context, file_name="a.txt")
        upload(lambda_context, file_name="b.txt")

        response = lambda_handler(
            api_event("GET", "/files", query={"maxKeys": "1"}, claims=claims_for(ALICE)), lambda_context
        )

        assert response_body(response)["data"]["count"] == 1

    def test_upload_url(self, runtime, lambda_context):
        """Test a presigned upload URL is issued for a key in the caller's namespace."""
        event = api_event("POST", "/files/upload-url", body={"fileName": "photo.png", "contentType": "image/png"},
                          claims=claims_for(ALICE))

        response = lambda_handler(event, lambda_context)

        data = response_body(response)["data"]
        assert response["statusCode"] == 200
        assert data["key"].startswith("uploads/alice-id/")
        assert data["expiresIn"] == 3600
        assert data["contentType"] == "image/png"
        assert data["uploadUrl"].startswith("http://localhost:3000/mock-s3/")

    def test_requires_credential(self, runtime, lambda_context):
        response = lambda_handler(api_event("GET", "/files"), lambda_context)

        assert response["statusCode"] == 401
