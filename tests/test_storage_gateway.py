"""Tests for the S3 storage gateway."""
from urllib.parse import parse_qs, urlparse

import pytest
from botocore.stub import Stubber

from app.core.exceptions import StorageFaultError, StorageNotConfiguredError
from app.services.storage_gateway import StorageConfig, StorageGateway

KEY = "uploads/7/1700000000000-model.stl"


@pytest.fixture
def config():
    return StorageConfig(
        endpoint="https://storage.example.com",
        bucket="prints",
        region="us-west-1",
        access_key_id="AKIDEXAMPLE",
        secret_access_key="example-secret",
    )


@pytest.fixture
def gateway(config):
    return StorageGateway(config)


def test_upload_url_is_path_style_and_expires_in_an_hour(gateway):
    url = gateway.issue_upload_url(KEY)

    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert parsed.netloc == "storage.example.com"
    assert parsed.path == f"/prints/{KEY}"
    assert query["X-Amz-Expires"] == ["3600"]
    assert query["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
    assert "X-Amz-Signature" in query


def test_download_url_honours_ttl(gateway):
    url = gateway.issue_download_url(KEY, 120)

    query = parse_qs(urlparse(url).query)
    assert query["X-Amz-Expires"] == ["120"]


def test_upload_and_download_urls_differ(gateway):
    assert gateway.issue_upload_url(KEY) != gateway.issue_download_url(KEY)


def test_exists_true_when_head_succeeds(gateway):
    client = gateway._get_client()
    with Stubber(client) as stubber:
        stubber.add_response("head_object", {"ContentLength": 10000}, {"Bucket": "prints", "Key": KEY})
        assert gateway.exists(KEY) is True


@pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
def test_exists_false_when_object_missing(gateway, code):
    client = gateway._get_client()
    with Stubber(client) as stubber:
        stubber.add_client_error("head_object", service_error_code=code, http_status_code=404)
        assert gateway.exists(KEY) is False


def test_exists_raises_on_other_errors(gateway):
    client = gateway._get_client()
    with Stubber(client) as stubber:
        stubber.add_client_error("head_object", service_error_code="403", http_status_code=403)
        with pytest.raises(StorageFaultError) as exc_info:
            gateway.exists(KEY)

    assert exc_info.value.detail["code"] == "storage_fault"
    assert exc_info.value.detail["retriable"] is True


def test_client_is_built_once(gateway):
    assert gateway._get_client() is gateway._get_client()


@pytest.mark.parametrize("field", ["endpoint", "bucket", "access_key_id", "secret_access_key"])
def test_missing_configuration_is_reported_at_call_time(config, field):
    broken = StorageConfig(**{**config.__dict__, field: ""})
    gateway = StorageGateway(broken)

    assert broken.missing_fields == [field]
    with pytest.raises(StorageNotConfiguredError) as exc_info:
        gateway.issue_upload_url(KEY)
    with pytest.raises(StorageNotConfiguredError):
        gateway.exists(KEY)

    assert exc_info.value.detail["code"] == "storage_not_configured"
    assert field in exc_info.value.message
