"""
Pytest configuration and shared fixtures.

Provides product representations and environment setup for sync testing.
"""

import pytest


# ============================================================================
# Product Fixtures
# ============================================================================

@pytest.fixture
def current_product() -> dict:
    """Product as currently held by the remote API."""
    return {
        "id": "prod-1",
        "version": 7,
        "name": {"en": "Auto"},
        "slug": {"en": "auto"},
        "taxCategory": {"typeId": "tax-category", "id": "tax-std"},
        "masterVariant": {
            "id": 1,
            "sku": "CAR-1",
            "prices": [
                {"id": "price-eur", "value": {"currencyCode": "EUR", "centAmount": 1000}},
            ],
            "attributes": [{"name": "color", "value": "blue"}],
            "images": [
                {"url": "https://img.example.com/a.png"},
                {"url": "https://img.example.com/b.png"},
            ],
        },
        "variants": [
            {"id": 2, "sku": "CAR-2", "prices": []},
            {"id": 3, "sku": "CAR-3"},
        ],
        "categories": [
            {"typeId": "category", "id": "cat-a"},
            {"typeId": "category", "id": "cat-d"},
        ],
    }


@pytest.fixture
def target_product() -> dict:
    """Desired product, differing from current_product in every group."""
    return {
        "id": "prod-1",
        "name": {"en": "Car"},
        "slug": {"en": "auto"},
        "taxCategory": {"typeId": "tax-category", "id": "tax-reduced"},
        "masterVariant": {
            "sku": "CAR-1",
            "prices": [
                {"id": "price-eur", "value": {"currencyCode": "EUR", "centAmount": 1200}},
            ],
            "attributes": [{"name": "color", "value": "red"}],
            "images": [
                {"url": "https://img.example.com/b.png"},
                {"url": "https://img.example.com/a.png"},
            ],
        },
        "variants": [
            {
                "sku": "CAR-2",
                "prices": [{"value": {"currencyCode": "EUR", "centAmount": 500}}],
            },
            {"sku": "CAR-4"},
        ],
        "categories": [
            {"typeId": "category", "id": "cat-a"},
            {"typeId": "category", "id": "cat-b"},
        ],
    }


@pytest.fixture
def full_product() -> dict:
    """A product populating every recognised field."""
    return {
        "id": "prod-9",
        "version": 3,
        "key": "prod-9",
        "name": {"en": "Bike", "de": "Fahrrad"},
        "slug": {"en": "bike", "de": "fahrrad"},
        "description": {"en": "A bike"},
        "metaTitle": {"en": "Bike"},
        "metaDescription": {"en": "Buy a bike"},
        "metaKeywords": {"en": "bike"},
        "searchKeywords": {"en": [{"text": "bicycle"}]},
        "taxCategory": {"typeId": "tax-category", "id": "tax-std"},
        "state": {"typeId": "state", "id": "state-published"},
        "masterVariant": {
            "id": 1,
            "sku": "BIKE-1",
            "prices": [
                {
                    "id": "p-1",
                    "value": {"currencyCode": "EUR", "centAmount": 49900},
                    "country": "DE",
                    "customerGroup": {"typeId": "customer-group", "id": "cg-1"},
                },
            ],
            "attributes": [
                {"name": "color", "value": "green"},
                {"name": "brand", "value": {"typeId": "product", "id": "brand-1"}},
            ],
            "images": [
                {"url": "https://img.example.com/bike.png", "label": "Side"},
            ],
        },
        "variants": [
            {
                "id": 2,
                "sku": "BIKE-2",
                "prices": [
                    {"id": "p-2", "value": {"currencyCode": "EUR", "centAmount": 59900}},
                ],
                "attributes": [{"name": "color", "value": "red"}],
                "images": [{"url": "https://img.example.com/bike-red.png"}],
            },
        ],
        "categories": [
            {"typeId": "category", "id": "cat-bikes"},
            {"typeId": "category", "id": "cat-sale"},
        ],
    }


# ============================================================================
# Environment Fixtures
# ============================================================================

ENV_VARS = (
    "PRODUCTSYNC_PROJECT_KEY",
    "PRODUCTSYNC_CLIENT_ID",
    "PRODUCTSYNC_CLIENT_SECRET",
    "PRODUCTSYNC_API_URL",
    "PRODUCTSYNC_AUTH_URL",
    "PRODUCTSYNC_SCOPE",
    "SYNC_DRY_RUN",
    "SYNC_MAX_RETRIES",
    "SYNC_RETRY_DELAY",
    "SYNC_MAX_WORKERS",
    "SYNC_IGNORED_GROUPS",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove all configuration variables and run from an empty directory."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture
def mock_env(clean_env):
    """Set a valid online configuration."""
    clean_env.setenv("PRODUCTSYNC_PROJECT_KEY", "test-shop")
    clean_env.setenv("PRODUCTSYNC_CLIENT_ID", "test_client")
    clean_env.setenv("PRODUCTSYNC_CLIENT_SECRET", "test_secret")
    clean_env.setenv("PRODUCTSYNC_API_URL", "https://api.test")
    clean_env.setenv("PRODUCTSYNC_AUTH_URL", "https://auth.test")
    return clean_env
