import pytest
from unittest.mock import MagicMock

from botocore.exceptions import ClientError

from app.core.config import settings
from app.core.exceptions import DependencyFailureError, InvalidInputError
from app.services.storage import StorageService, validate_upload


@pytest.fixture
def s3_storage():
    config = settings.storage.model_copy(update={
        "provider": "s3",
        "s3_endpoint_url": "https://objects.example.com",
        "s3_bucket_name": "hr-bucket",
    })
    service = StorageService(config)
    service._client = MagicMock()
    return service


def test_local_put_writes_file_and_builds_url(storage, tmp_path):
    stored = storage.put(b"%PDF-1.4", "Receipt.PDF", "application/pdf", "reimbursement_bills", 7)
    assert stored.key.startswith("hrms_documents/reimbursement_bills/7/")
    assert stored.key.endswith(".pdf")
    assert (tmp_path / stored.key).read_bytes() == b"%PDF-1.4"
    assert stored.url.endswith(f"/files/{stored.key}")


def test_local_delete_and_quiet_delete(storage, tmp_path):
    stored = storage.put(b"img", "me.png", "image/png", "profile_pictures", 1)
    storage.delete(stored.key)
    assert not (tmp_path / stored.key).exists()
    assert storage.delete_quietly(stored.key) is True
    assert storage.delete_quietly(None) is True


def test_keys_are_unique_per_upload(storage):
    first = storage.build_key("a.png", "profile_pictures", 3)
    second = storage.build_key("a.png", "profile_pictures", 3)
    assert first != second


def test_url_to_key_for_local_urls(storage):
    stored = storage.put(b"x", "id.jpg", "image/jpeg", "government_ids", 9)
    assert storage.url_to_key(stored.url) == stored.key


def test_url_to_key_strips_bucket_segment(s3_storage):
    url = "https://objects.example.com/hr-bucket/hrms_documents/reimbursement_bills/4/abc.png"
    assert s3_storage.url_to_key(url) == "hrms_documents/reimbursement_bills/4/abc.png"
    assert s3_storage.public_url("hrms_documents/x.png") == "https://objects.example.com/hr-bucket/hrms_documents/x.png"


@pytest.mark.parametrize("url", [None, "", "not a url", "/relative/path.png"])
def test_url_to_key_returns_none_for_unparseable(s3_storage, url):
    assert s3_storage.url_to_key(url) is None


def test_s3_put_uses_public_read(s3_storage):
    stored = s3_storage.put(b"data", "bill.jpg", "image/jpeg", "reimbursement_bills", 2)
    kwargs = s3_storage.client.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "hr-bucket"
    assert kwargs["Key"] == stored.key
    assert kwargs["ACL"] == "public-read"
    assert kwargs["ContentType"] == "image/jpeg"


def test_s3_failures_become_dependency_failures(s3_storage):
    error = ClientError({"Error": {"Code": "500", "Message": "boom"}}, "PutObject")
    s3_storage.client.put_object.side_effect = error
    s3_storage.client.delete_object.side_effect = error
    with pytest.raises(DependencyFailureError):
        s3_storage.put(b"data", "bill.jpg", "image/jpeg", "reimbursement_bills", 2)
    assert s3_storage.delete_quietly("some/key") is False


def test_validate_upload_rules():
    assert validate_upload("bill", "application/pdf", 1024).folder == "reimbursement_bills"
    with pytest.raises(InvalidInputError):
        validate_upload("profile_picture", "application/pdf", 1024)
    with pytest.raises(InvalidInputError):
        validate_upload("bill", "text/plain", 10)
    with pytest.raises(InvalidInputError):
        validate_upload("bill", "image/png", 0)
    with pytest.raises(InvalidInputError):
        validate_upload("bill", "image/png", 5 * 1024 * 1024 + 1)
    assert validate_upload("government_id", "image/png", 9 * 1024 * 1024).folder == "government_ids"
