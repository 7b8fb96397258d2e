"""Tests for bearer token decoding and capability derivation."""

from datetime import timedelta

import pytest
from backend.app.core.security import (
    CAPABILITY_ADMIN,
    CAPABILITY_MODERATE,
    CAPABILITY_VOTE,
    capabilities_from_claims,
    create_access_token,
    decode_principal,
)
from backend.app.core.settings import settings
from jose import jwt


class TestCapabilities:
    def test_plain_user_can_only_vote(self) -> None:
        assert capabilities_from_claims({"sub": "u"}) == frozenset({CAPABILITY_VOTE})

    def test_moderator(self) -> None:
        caps = capabilities_from_claims({"sub": "u", "moderator": True})
        assert caps == frozenset({CAPABILITY_VOTE, CAPABILITY_MODERATE})

    def test_admin_implies_moderate(self) -> None:
        caps = capabilities_from_claims({"sub": "u", "admin": True})
        assert caps == frozenset({CAPABILITY_VOTE, CAPABILITY_MODERATE, CAPABILITY_ADMIN})

    @pytest.mark.parametrize("value", ["true", 1, "yes"])
    def test_only_boolean_true_grants_roles(self, value: object) -> None:
        caps = capabilities_from_claims({"sub": "u", "admin": value, "moderator": value})
        assert caps == frozenset({CAPABILITY_VOTE})


class TestDecodePrincipal:
    def test_round_trip_subject_and_roles(self) -> None:
        principal = decode_principal(create_access_token("user-42", moderator=True))
        assert principal is not None
        assert principal.user_id == "user-42"
        assert principal.can(CAPABILITY_MODERATE)
        assert not principal.can(CAPABILITY_ADMIN)

    def test_expired_token_rejected(self) -> None:
        token = create_access_token("user-42", expires_in=timedelta(seconds=-5))
        assert decode_principal(token) is None

    def test_wrong_signature_rejected(self) -> None:
        token = jwt.encode({"sub": "user-42"}, "other-secret", algorithm=settings.jwt_algorithm)
        assert decode_principal(token) is None

    def test_missing_subject_rejected(self) -> None:
        token = jwt.encode(
            {"admin": True}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm,
        )
        assert decode_principal(token) is None

    def test_malformed_token_rejected(self) -> None:
        assert decode_principal("not-a-token") is None
