"""Property-based tests for configuration validation.

**Feature: data-marketplace-ledger, Property 7: Configuration Validation**
"""

import os
from collections.abc import Iterator
from contextlib import contextmanager

import pytest
from hypothesis import given, settings, strategies as st
from pydantic import ValidationError

from app.core.config import Settings


# Required parameters that must be present
REQUIRED_PARAMS = [
    "POSTGRES_HOST",
    "POSTGRES_USER",
    "POSTGRES_PASSWORD",
    "POSTGRES_DB",
    "MARKETPLACE_SECRET_KEY",
]

# Variables that change what Settings resolves to
MANAGED_KEYS = REQUIRED_PARAMS + ["POSTGRES_PORT", "REDIS_HOST", "REDIS_PORT", "DATABASE_URL", "DEBUG"]


def make_valid_env() -> dict[str, str]:
    """Create a complete valid environment configuration."""
    return {
        "POSTGRES_HOST": "localhost",
        "POSTGRES_PORT": "5432",
        "POSTGRES_USER": "testuser",
        "POSTGRES_PASSWORD": "testpass",
        "POSTGRES_DB": "testdb",
        "REDIS_HOST": "localhost",
        "REDIS_PORT": "6379",
        "MARKETPLACE_SECRET_KEY": "test-secret-key",
        "DEBUG": "false",
    }


@contextmanager
def environment(env: dict[str, str]) -> Iterator[None]:
    """Replace the managed variables with ``env`` for the duration of the block."""
    original_env = {key: os.environ.pop(key) for key in MANAGED_KEYS if key in os.environ}
    try:
        os.environ.update(env)
        yield
    finally:
        for key in MANAGED_KEYS:
            os.environ.pop(key, None)
        os.environ.update(original_env)


@settings(max_examples=100)
@given(missing_param=st.sampled_from(REQUIRED_PARAMS))
def test_missing_required_param_raises_validation_error(missing_param: str) -> None:
    """
    **Feature: data-marketplace-ledger, Property 7: Configuration Validation**

    *For any* environment missing one required parameter, loading the
    Settings SHALL raise a ValidationError.
    """
    env = make_valid_env()
    del env[missing_param]

    with environment(env):
        # Use _env_file=None to prevent loading from .env file during test
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


# Strategy for valid environment variable values (no null characters, non-empty after strip)
env_value_strategy = st.text(
    alphabet=st.characters(blacklist_characters="\x00", blacklist_categories=("Cs",)),
    min_size=1,
    max_size=50,
).filter(lambda x: x.strip())


@settings(max_examples=100)
@given(
    host=env_value_strategy,
    user=env_value_strategy,
    password=env_value_strategy,
    db=env_value_strategy,
    secret=env_value_strategy,
)
def test_valid_config_loads_successfully(
    host: str, user: str, password: str, db: str, secret: str
) -> None:
    """
    **Feature: data-marketplace-ledger, Property 7: Configuration Validation**

    *For any* complete set of valid environment variables, loading the Settings
    SHALL succeed and build the asyncpg database URL from them.
    """
    env = {
        "POSTGRES_HOST": host,
        "POSTGRES_PORT": "5432",
        "POSTGRES_USER": user,
        "POSTGRES_PASSWORD": password,
        "POSTGRES_DB": db,
        "MARKETPLACE_SECRET_KEY": secret,
    }

    with environment(env):
        loaded = Settings(_env_file=None)

    assert loaded.POSTGRES_HOST == host
    assert loaded.MARKETPLACE_SECRET_KEY == secret
    assert loaded.POSTGRES_PORT == 5432
    assert loaded.database_url == f"postgresql+asyncpg://{user}:{password}@{host}:5432/{db}"


@settings(max_examples=50)
@given(url=st.sampled_from(["sqlite+aiosqlite:///./ledger.db", "postgresql+asyncpg://u:p@db/ledger"]))
def test_database_url_override_wins(url: str) -> None:
    """
    **Feature: data-marketplace-ledger, Property 7: Configuration Validation**

    *For any* DATABASE_URL, the Settings SHALL use it verbatim instead of the
    URL built from the POSTGRES_* parameters.
    """
    env = make_valid_env()
    env["DATABASE_URL"] = url

    with environment(env):
        assert Settings(_env_file=None).database_url == url


# Strategy for valid hostnames (alphanumeric with hyphens and dots)
hostname_strategy = st.from_regex(
    r"[a-zA-Z][a-zA-Z0-9\-\.]{0,49}",
    fullmatch=True
).filter(lambda x: not x.endswith("-") and not x.endswith("."))


@settings(max_examples=100)
@given(redis_host=hostname_strategy, redis_port=st.integers(min_value=1, max_value=65535))
def test_celery_urls_constructed_from_redis_settings(redis_host: str, redis_port: int) -> None:
    """
    **Feature: data-marketplace-ledger, Property 7: Configuration Validation**

    *For any* Redis host and port, the broker and result backend URLs SHALL
    both point at that Redis instance.
    """
    env = make_valid_env()
    env["REDIS_HOST"] = redis_host
    env["REDIS_PORT"] = str(redis_port)

    with environment(env):
        loaded = Settings(_env_file=None)

    expected_url = f"redis://{redis_host}:{redis_port}/0"
    assert loaded.celery_broker_url == expected_url
    assert loaded.celery_result_backend == expected_url
