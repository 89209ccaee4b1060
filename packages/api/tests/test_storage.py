# This project was developed with assistance from AI tools.
"""Tests for upload validation and the S3 storage wrapper."""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError
from db.enums import DocumentKind, SubjectType

from stayverify.core.config import Settings
from stayverify.services.storage import StorageService, validate_upload
from stayverify.services.verification import UploadRejected

# ---------------------------------------------------------------------------
# validate_upload
# ---------------------------------------------------------------------------


def _cfg(**overrides) -> Settings:
    return Settings(**{"UPLOAD_MAX_SIZE_MB": 1, **overrides})


@pytest.mark.parametrize("content_type", ["application/pdf", "image/jpeg", "image/png", "image/webp"])
def test_allowed_types_pass(content_type):
    validate_upload(content_type, 1024, _cfg())


@pytest.mark.parametrize("content_type", ["application/zip", "text/html", None])
def test_unsupported_type_is_415(content_type):
    with pytest.raises(UploadRejected, match="Unsupported file type") as exc_info:
        validate_upload(content_type, 1024, _cfg())
    assert exc_info.value.http_status == 415


def test_empty_file_is_422():
    with pytest.raises(UploadRejected, match="empty") as exc_info:
        validate_upload("application/pdf", 0, _cfg())
    assert exc_info.value.http_status == 422


def test_limit_is_inclusive():
    validate_upload("application/pdf", 1024 * 1024, _cfg())
    with pytest.raises(UploadRejected) as exc_info:
        validate_upload("application/pdf", 1024 * 1024 + 1, _cfg())
    assert exc_info.value.http_status == 413


# ---------------------------------------------------------------------------
# Object keys
# ---------------------------------------------------------------------------


def test_object_key_layout():
    key = StorageService.build_object_key(SubjectType.PROPERTY, 10, DocumentKind.TAX, "pan_card", "pan.pdf")
    prefix, _, name = key.rpartition("/")
    assert prefix == "property/10/tax/pan_card"
    assert name.endswith("-pan.pdf")


def test_object_key_strips_path_components():
    key = StorageService.build_object_key(
        SubjectType.PARTNER, 1, DocumentKind.IDENTITY, "front", "../../etc/passwd",
    )
    assert ".." not in key
    assert key.startswith("partner/1/identity/front/")
    assert key.endswith("-passwd")


def test_object_key_falls_back_to_slot_name():
    key = StorageService.build_object_key(SubjectType.PARTNER, 1, DocumentKind.IDENTITY, "front", "")
    assert key.endswith("-front")


def test_each_upload_gets_a_fresh_key():
    args = (SubjectType.PARTNER, 1, DocumentKind.IDENTITY, "front", "id.jpg")
    assert StorageService.build_object_key(*args) != StorageService.build_object_key(*args)


# ---------------------------------------------------------------------------
# StorageService
# ---------------------------------------------------------------------------


@patch("stayverify.services.storage.boto3.client")
def test_missing_bucket_is_created(mock_client_factory):
    client = MagicMock()
    client.head_bucket.side_effect = ClientError({"Error": {"Code": "404"}}, "HeadBucket")
    mock_client_factory.return_value = client

    StorageService("http://minio:9000", "key", "secret", "verification-documents")

    client.create_bucket.assert_called_once_with(Bucket="verification-documents")


@pytest.mark.asyncio
@patch("stayverify.services.storage.boto3.client")
async def test_upload_returns_object_key(mock_client_factory):
    client = MagicMock()
    mock_client_factory.return_value = client
    service = StorageService("http://minio:9000", "key", "secret", "verification-documents")

    ref = await service.upload_file(b"%PDF", "partner/1/identity/front/abc-id.pdf", "application/pdf")

    assert ref == "partner/1/identity/front/abc-id.pdf"
    kwargs = client.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "verification-documents"
    assert kwargs["ContentType"] == "application/pdf"
    client.create_bucket.assert_not_called()


@pytest.mark.asyncio
@patch("stayverify.services.storage.boto3.client")
async def test_download_url_is_presigned_with_ttl(mock_client_factory):
    client = MagicMock()
    client.generate_presigned_url.return_value = "http://minio:9000/signed"
    mock_client_factory.return_value = client
    service = StorageService("http://minio:9000", "key", "secret", "verification-documents")

    url = await service.get_download_url("property/10/tax/pan_card/abc-pan.pdf", expires_in=900)

    assert url == "http://minio:9000/signed"
    assert client.generate_presigned_url.call_args.kwargs["ExpiresIn"] == 900
