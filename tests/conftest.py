import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from auto_appraisal.config import Settings
from auto_appraisal.main import create_app
from auto_appraisal.services.geocoding import Coordinates

from fakes import FakeGeocoder, InMemoryStore

ADMIN_TOKEN = "admin-token"
APPRAISER_TOKEN = "appraiser-token"


def make_image(size=(64, 48), color=(200, 30, 30), fmt="PNG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def settings():
    return Settings(
        SUPABASE_URL="https://example.supabase.co",
        SUPABASE_KEY="anon-key",
        LOG_FILE="",
        DISPLAY_TIMEZONE="UTC",
    )


@pytest.fixture
def store():
    s = InMemoryStore()
    s.add_user(ADMIN_TOKEN, "admin-1", role="admin", email="admin@example.com", full_name="Ada Admin")
    s.add_user(APPRAISER_TOKEN, "appr-1", role="appraiser", email="appraiser@example.com", full_name="Abe Appraiser")
    return s


@pytest.fixture
def geocoder():
    return FakeGeocoder({"*": Coordinates(lat=40.7128, lng=-74.006)})


@pytest.fixture
def app(settings, store, geocoder):
    return create_app(settings=settings, store=store, geocoder=geocoder)


@pytest.fixture
def client(app):
    with TestClient(app, headers={"Authorization": f"Bearer {ADMIN_TOKEN}"}) as c:
        yield c


@pytest.fixture
def anonymous_client(app):
    with TestClient(app) as c:
        yield c
