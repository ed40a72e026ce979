import pytest
from sqlmodel import select

from app.core.config import settings
from app.core.errors import (
    CodeGenerationExhausted,
    NotFound,
    PairingConflict,
    SelfPairingRejected,
)
from app.models.user import User
from app.services import accounts


def test_generated_codes_use_the_invite_alphabet():
    code = accounts.generate_invite_code()
    assert len(code) == settings.INVITE_CODE_LENGTH
    assert set(code) <= set(accounts.CODE_ALPHABET)


def test_every_user_gets_a_distinct_code(make_user):
    users = [make_user(f"user{i}@example.com") for i in range(10)]
    codes = {user.invite_code for user in users}
    assert len(codes) == len(users)


def test_code_collision_is_retried(session, make_user):
    existing = make_user("first@example.com")
    codes = iter([existing.invite_code, "FRESH123"])

    user = accounts.create_user(
        session, email="second@example.com", code_factory=lambda: next(codes)
    )

    assert user.invite_code == "FRESH123"
    assert len(session.exec(select(User)).all()) == 2


def test_code_generation_gives_up_after_retry_cap(session, make_user):
    existing = make_user("first@example.com")

    with pytest.raises(CodeGenerationExhausted):
        accounts.create_user(
            session, email="second@example.com", code_factory=lambda: existing.invite_code
        )
    assert session.exec(select(User).where(User.email == "second@example.com")).first() is None


def test_new_accounts_start_unverified_and_unpaired(make_user):
    user = make_user()
    assert user.email_verified is False
    assert user.partner_id is None


def test_get_profile(session, make_user):
    user = make_user()
    assert accounts.get_profile(session, user.id).email == user.email
    with pytest.raises(NotFound):
        accounts.get_profile(session, user.id + 100)


def test_update_partner_links_both_sides(session, make_user):
    user_a = make_user("a@example.com")
    user_b = make_user("b@example.com")

    accounts.update_partner(session, user_a.id, user_b.id)

    session.refresh(user_a)
    session.refresh(user_b)
    assert user_a.partner_id == user_b.id
    assert user_b.partner_id == user_a.id
    assert user_a.paired_at is not None


def test_update_partner_rejects_self(session, make_user):
    user = make_user()
    with pytest.raises(SelfPairingRejected):
        accounts.update_partner(session, user.id, user.id)


def test_losing_pairing_race_leaves_no_half_pairing(session, make_user):
    user_a = make_user("a@example.com")
    user_b = make_user("b@example.com")
    user_c = make_user("c@example.com")

    # C wins A first; B's attempt was validated against a stale read
    accounts.update_partner(session, user_c.id, user_a.id)
    with pytest.raises(PairingConflict):
        accounts.update_partner(session, user_b.id, user_a.id)

    session.refresh(user_a)
    session.refresh(user_b)
    session.refresh(user_c)
    assert user_a.partner_id == user_c.id
    assert user_c.partner_id == user_a.id
    assert user_b.partner_id is None


def test_clear_partner(session, make_user, pair):
    user_a = make_user("a@example.com")
    user_b = make_user("b@example.com")
    pair(user_a, user_b)

    accounts.clear_partner(session, user_b)

    session.refresh(user_a)
    session.refresh(user_b)
    assert user_a.partner_id is None
    assert user_b.partner_id is None


def test_repairing_after_unpair(session, make_user, pair):
    user_a = make_user("a@example.com")
    user_b = make_user("b@example.com")
    user_c = make_user("c@example.com")
    pair(user_a, user_b)
    accounts.clear_partner(session, user_a)

    accounts.update_partner(session, user_a.id, user_c.id)
    session.refresh(user_a)
    assert user_a.partner_id == user_c.id
