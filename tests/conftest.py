import os
import time
import pytest
from moto import mock_aws
from fastapi.testclient import TestClient
from jose import jwt

# Set test environment variables BEFORE importing app modules
os.environ["TESTING"] = "true"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["RATE_LIMITER_BACKEND"] = "memory"
os.environ["CACHE_BACKEND"] = "memory"

# Dummy AWS credentials for moto
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["S3_BUCKET"] = "image-gateway-bucket"
# Clear the AWS_ENDPOINT_URL so moto mocks are used instead of localstack
os.environ.pop("AWS_ENDPOINT_URL", None)

from image_gateway.main import app
from image_gateway.settings import Settings
from image_gateway.storage.s3 import S3ObjectStore

TEST_SECRET = "test-secret"


@pytest.fixture(scope="function")
def aws_credentials():
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"


@pytest.fixture
def make_token():
    """Factory for signed tokens; negative expires_in gives an expired token."""
    def _make(user_id="user-1", expires_in=3600, secret=TEST_SECRET, **claims):
        payload = dict(claims)
        if user_id is not None:
            payload["user_id"] = user_id
        if expires_in is not None:
            payload["exp"] = int(time.time()) + expires_in
        return jwt.encode(payload, secret, algorithm="HS256")
    return _make


@pytest.fixture
def auth_headers(make_token):
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture(scope="function")
def test_client():
    """Client running on the in-memory store, limiters and cache."""
    with TestClient(app) as client:
        yield client


@pytest.fixture(scope="function")
def s3_test_client(aws_credentials):
    """Client whose object store is a moto-mocked S3 bucket."""
    with mock_aws():
        with TestClient(app) as client:
            # Replace the in-memory store with the mocked S3 one
            client.app.state.store = S3ObjectStore(Settings())
            yield client
