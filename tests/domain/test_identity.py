from __future__ import annotations

from datetime import UTC, datetime

from splitledger.domain.identity import (
    IdentityResolver,
    initials_for,
    is_unusable_password,
    slugify,
)
from splitledger.domain.ports.foreign_ledger import ForeignMember
from tests.helpers.ledger import FakeUserRepository, make_user

FIXED_NOW = datetime(2024, 5, 1, 9, 30, tzinfo=UTC)


def _resolver(repo: FakeUserRepository) -> IdentityResolver:
    return IdentityResolver(repo, clock=lambda: FIXED_NOW)


def test_existing_user_is_matched_case_insensitively() -> None:
    existing = make_user("dana", email="dana@example.com")
    repo = FakeUserRepository([existing])

    resolved = _resolver(repo).resolve(
        ForeignMember(foreign_id=7, email="  Dana@Example.COM ", first_name="Other")
    )

    assert resolved is existing
    assert existing.username == "dana"
    assert len(repo.items) == 1


def test_unknown_member_becomes_ghost() -> None:
    repo = FakeUserRepository()
    resolver = _resolver(repo)

    ghost = resolver.resolve(
        ForeignMember(foreign_id=3, email="Eve@Example.com", first_name="Eve", last_name="Ng")
    )

    assert ghost is not None
    assert ghost.is_ghost
    assert ghost.email == "eve@example.com"
    assert ghost.username == "eveng"
    assert ghost.avatar_initials == "EN"
    assert is_unusable_password(ghost.password_hash)
    assert ghost.created_at == FIXED_NOW
    assert repo.get(ghost.id) is ghost
    assert resolver.ghosts_created == 1


def test_member_without_email_is_unresolvable() -> None:
    repo = FakeUserRepository()

    assert _resolver(repo).resolve(ForeignMember(foreign_id=4, first_name="Nomail")) is None
    assert _resolver(repo).resolve(ForeignMember(foreign_id=4, email="   ")) is None
    assert repo.items == {}


def test_username_collision_gets_time_suffix() -> None:
    repo = FakeUserRepository([make_user("eveng", email="someone@example.com")])

    ghost = _resolver(repo).resolve(
        ForeignMember(foreign_id=3, email="eve@example.com", first_name="Eve", last_name="Ng")
    )

    assert ghost is not None
    assert ghost.username.startswith("eveng")
    assert ghost.username != "eveng"
    assert ghost.username[len("eveng") :].isdigit()


def test_repeated_collisions_still_produce_unique_names() -> None:
    repo = FakeUserRepository()
    resolver = _resolver(repo)

    ghosts = [
        resolver.resolve(
            ForeignMember(foreign_id=index, email=f"sam{index}@example.com", first_name="Sam")
        )
        for index in range(3)
    ]

    assert all(ghost is not None for ghost in ghosts)
    assert len({ghost.username for ghost in ghosts if ghost is not None}) == 3


def test_username_falls_back_to_email_local_part() -> None:
    repo = FakeUserRepository()

    ghost = _resolver(repo).resolve(ForeignMember(foreign_id=9, email="j.doe+sw@example.com"))

    assert ghost is not None
    assert ghost.username == "jdoesw"
    assert ghost.avatar_initials == "J"


def test_slugify_strips_accents_and_symbols() -> None:
    assert slugify("José Ñúñez-Ötzi") == "josenunezotzi"
    assert slugify("!!!") == ""


def test_initials_fall_back_to_username() -> None:
    assert initials_for(None, "  ", fallback="zed") == "Z"
    assert initials_for("ann", "lee", fallback="x") == "AL"
