"""Shared pytest fixtures for tracker tests."""

import pytest

from django.conf import settings

# Use local filesystem storage for tests (avoids S3 credential errors)
settings.STORAGES["default"] = {
    "BACKEND": "django.core.files.storage.FileSystemStorage",
}
settings.STORAGES["staticfiles"] = {
    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
}

# Use in-memory cache for tests (avoids Redis connection errors)
settings.CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Use in-memory channel layer for tests (avoids Redis for WS tests)
settings.CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}

# The test communicator connects over plain ws://
settings.SECURE_WEBSOCKET = False


@pytest.fixture(autouse=True)
def _clear_cache():
    """Clear the in-memory cache before each test.

    Prevents rate-limit counters (django_ratelimit) from bleeding
    across tests.
    """
    from django.core.cache import cache

    cache.clear()


@pytest.fixture
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path / "media")
    return settings.MEDIA_ROOT


from inventory.factories import (  # noqa: E402
    AssetFactory,
    CategoryFactory,
    KitFactory,
    LocationFactory,
    QrFactory,
    TagFactory,
    TeamMemberFactory,
    UserFactory,
)

# --- User fixtures ---


@pytest.fixture
def password():
    return "testpass123!"


@pytest.fixture
def user(db, password):
    """Base role user: no custody rights."""
    return UserFactory(
        username="testuser",
        email="test@example.com",
        password=password,
        display_name="Test User",
        role="base",
    )


@pytest.fixture
def admin_user(db, password):
    return UserFactory(
        username="admin",
        email="admin@example.com",
        password=password,
        display_name="Admin User",
        role="admin",
        is_staff=True,
    )


@pytest.fixture
def owner_user(db, password):
    return UserFactory(
        username="owner",
        email="owner@example.com",
        password=password,
        display_name="Owner User",
        role="owner",
        is_staff=True,
        is_superuser=True,
    )


@pytest.fixture
def self_service_user(db, password):
    return UserFactory(
        username="selfservice",
        email="selfservice@example.com",
        password=password,
        display_name="Self Service",
        role="self_service",
    )


@pytest.fixture
def client_logged_in(client, user, password):
    client.login(username=user.username, password=password)
    return client


@pytest.fixture
def admin_client(client, admin_user, password):
    client.login(username=admin_user.username, password=password)
    return client


@pytest.fixture
def self_service_client(client, self_service_user, password):
    client.login(username=self_service_user.username, password=password)
    return client


# --- Core model fixtures ---


@pytest.fixture
def category(db):
    return CategoryFactory(name="Cameras", description="Camera bodies")


@pytest.fixture
def tag(db):
    return TagFactory(name="fragile")


@pytest.fixture
def location(db):
    return LocationFactory(name="Main Store", address="1 Warehouse Rd")


@pytest.fixture
def team_member(db):
    return TeamMemberFactory(name="Jamie Rivers")


@pytest.fixture
def asset(category, location, admin_user):
    asset = AssetFactory(
        title="Canon EOS R5",
        description="Full frame mirrorless body",
        category=category,
        location=location,
        created_by=admin_user,
    )
    QrFactory(id="qr-asset-1", asset=asset)
    return asset


@pytest.fixture
def kit(db, admin_user):
    kit = KitFactory(name="Interview Kit", created_by=admin_user)
    AssetFactory(title="Lav Mic", kit=kit)
    AssetFactory(title="Boom Pole", kit=kit)
    QrFactory(id="qr-kit-1", kit=kit)
    return kit
