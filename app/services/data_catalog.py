"""Consumer profiles offered to data brokers, and data point sampling."""

import dataclasses
import random
import time
from dataclasses import dataclass


def source_key(source: str) -> str:
    """Normalize a data source name, e.g. ``"Apple-Music"`` -> ``"applemusic"``."""
    return source.replace("-", "").lower()


@dataclass(frozen=True)
class ConsumerProfile:
    id: str
    full_name: str
    state: str
    email: str
    age: int
    wallet_address: str
    created_at: str
    # Normalized keys of the sources this consumer has data for
    sources: frozenset[str]
    phone_number: str | None = None
    has_opted_out: bool = False
    data_sharing: bool = True

    @property
    def is_shareable(self) -> bool:
        return self.data_sharing and not self.has_opted_out

    def has_source(self, source: str) -> bool:
        return source_key(source) in self.sources


def _sources(*names: str) -> frozenset[str]:
    return frozenset(source_key(name) for name in names)


MOCK_PROFILES: tuple[ConsumerProfile, ...] = (
    ConsumerProfile(
        id="user-001",
        full_name="John Smith",
        state="CA",
        phone_number="(555) 123-4567",
        email="john.smith@example.com",
        age=28,
        sources=_sources("netflix", "spotify", "instagram", "facebook"),
        wallet_address="0x1234567890123456789012345678901234567890",
        created_at="2024-01-15T10:00:00Z",
    ),
    ConsumerProfile(
        id="user-002",
        full_name="Sarah Johnson",
        state="NY",
        phone_number="(555) 987-6543",
        email="sarah.johnson@example.com",
        age=34,
        sources=_sources("netflix", "instagram", "apple-music"),
        wallet_address="0x2345678901234567890123456789012345678901",
        created_at="2024-01-16T14:00:00Z",
    ),
    ConsumerProfile(
        id="user-003",
        full_name="Michael Davis",
        state="TX",
        phone_number="(555) 456-7890",
        email="michael.davis@example.com",
        age=25,
        sources=_sources("spotify", "instagram", "apple-music", "facebook"),
        wallet_address="0x3456789012345678901234567890123456789012",
        created_at="2024-01-17T09:30:00Z",
    ),
    ConsumerProfile(
        id="user-004",
        full_name="Emily Wilson",
        state="FL",
        phone_number="(555) 234-5678",
        email="emily.wilson@example.com",
        age=31,
        sources=_sources("netflix", "spotify", "facebook"),
        wallet_address="0x4567890123456789012345678901234567890123",
        created_at="2024-01-18T16:45:00Z",
    ),
    ConsumerProfile(
        id="user-005",
        full_name="David Brown",
        state="WA",
        phone_number="(555) 345-6789",
        email="david.brown@example.com",
        age=42,
        sources=_sources("netflix", "instagram", "apple-music"),
        wallet_address="0x5678901234567890123456789012345678901234",
        created_at="2024-01-19T11:20:00Z",
    ),
    ConsumerProfile(
        id="user-006",
        full_name="Jessica Garcia",
        state="CO",
        phone_number="(555) 567-8901",
        email="jessica.garcia@example.com",
        age=29,
        sources=_sources("netflix", "spotify", "instagram", "apple-music", "facebook"),
        wallet_address="0x6789012345678901234567890123456789012345",
        created_at="2024-01-20T13:15:00Z",
    ),
)


def available_profiles(
    sources: list[str], profiles: tuple[ConsumerProfile, ...] = MOCK_PROFILES
) -> list[ConsumerProfile]:
    """Shareable profiles holding data for at least one of ``sources``."""
    return [
        profile
        for profile in profiles
        if profile.is_shareable and any(profile.has_source(source) for source in sources)
    ]


def generate_data_points(
    sources: list[str],
    count: int,
    rng: random.Random | None = None,
    profiles: tuple[ConsumerProfile, ...] = MOCK_PROFILES,
) -> list[ConsumerProfile]:
    """Sample ``count`` data points from the profiles matching ``sources``.

    Profiles are drawn with replacement. Each data point gets its own id and
    a plus-addressed email so repeated draws stay distinguishable. Returns an
    empty list when no profile matches.
    """
    candidates = available_profiles(sources, profiles)
    if not candidates:
        return []

    rng = rng or random.Random()
    batch = time.time_ns() // 1_000_000
    points = []
    for index in range(count):
        profile = rng.choice(candidates)
        local, _, domain = profile.email.partition("@")
        points.append(
            dataclasses.replace(
                profile,
                id=f"{profile.id}-{index}-{batch}",
                email=f"{local}+{index}@{domain}",
            )
        )
    return points
