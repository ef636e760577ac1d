import pathlib
import sys

import pytest
from fastapi.testclient import TestClient

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from lotengo.document_store import DocumentStore
from lotengo.main import create_app
from lotengo.marketplace import Marketplace, marketplace

BOGOTA = {"lat": 4.711, "lng": -74.0721, "address": "Cl. 26 #13-19, Bogotá"}


def as_user(user_id: str) -> dict[str, str]:
    return {"x-user-id": user_id}


@pytest.fixture(autouse=True)
def reset_marketplace(monkeypatch: pytest.MonkeyPatch):
    for name in ("JWT_SHARED_SECRET", "JWT_ISSUER", "JWT_AUDIENCE", "LOTENGO_MAX_FREQUENT_ADDRESSES"):
        monkeypatch.delenv(name, raising=False)
    marketplace.reset()
    yield


@pytest.fixture
def market() -> Marketplace:
    return Marketplace(DocumentStore())


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())
