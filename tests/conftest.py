import os

# moto needs credentials and a region before any boto3 resource is built
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_SECURITY_TOKEN", "testing")
os.environ.setdefault("AWS_SESSION_TOKEN", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")

from datetime import date

import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from app.core.config import settings
from app.db import dynamo


@pytest.fixture
def aws():
    settings.DYNAMO_ENDPOINT_URL = None
    with mock_aws():
        dynamo.reset_connection()
        dynamo.create_tables()
        yield
        dynamo.reset_connection()


@pytest.fixture
def client(aws):
    from app.main import app

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def this_month():
    """An ISO date inside the current calendar month."""
    return date.today().replace(day=1).isoformat()


@pytest.fixture
def make_user(client):
    counter = {"n": 0}

    def _make_user(**overrides):
        counter["n"] += 1
        payload = {
            "name": f"User {counter['n']}",
            "email": f"user{counter['n']}@finmail.com",
            "password": "s3cret-pass",
            "balance": 1000.0,
        }
        payload.update(overrides)
        response = client.post("/api/users", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make_user


@pytest.fixture
def make_transaction(client, this_month):
    def _make_transaction(user_id, amount, type="debit", category="Food", date=None, merchant="Store"):
        payload = {
            "userId": user_id,
            "amount": amount,
            "category": category,
            "merchant": merchant,
            "date": date or this_month,
            "type": type,
        }
        response = client.post("/api/transactions", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make_transaction
