"""Tests for claim set normalization."""

import pytest

from src.idp_claims.core.claim_filter import (
    EXCLUDED_CLAIMS,
    build_exclusion_set,
    filter_claims,
)


class TestFilterClaims:
    def test_removes_registered_jwt_claims(self, google_claims):
        result = filter_claims(google_claims)

        for name in ("iss", "aud", "exp", "iat", "azp", "nonce", "at_hash"):
            assert name not in result

    def test_removes_null_values(self, google_claims):
        result = filter_claims(google_claims)

        assert "hd" not in result

    def test_passes_through_everything_else(self, google_claims):
        result = filter_claims(google_claims)

        assert result == {
            "sub": "110169484474386276334",
            "email": "jane.doe@example.com",
            "email_verified": True,
            "name": "Jane Doe",
            "picture": "https://lh3.googleusercontent.com/a/photo.jpg",
            "given_name": "Jane",
            "family_name": "Doe",
            "locale": "en",
        }

    def test_removes_microsoft_noise_claims(self):
        claims = {
            "oid": "00000000-0000-0000-66f3-3332eca7ea81",
            "tid": "9188040d-6c67-4c5b-b112-36a304b66dad",
            "aio": "Df2UVXL1ix!lMCWMSOJBcFatzcGfvFGhjKv8q5g0x732dR5MB5BisvGQO7YWByjd8iQDLq!eGbIDakyp5mnOrcdqHeYSnltepQmRp6AIZ8jY",
            "ver": "2.0",
            "rh": "0.AUYAmkq...",
            "uti": "Zv-QFqm2mkC1-WpYY20TAA",
            "ipaddr": "203.0.113.7",
            "sid": "00102faa-2b1c-4c43-a7e3-b1d9c9a7aa9f",
            "preferred_username": "jane@contoso.com",
        }

        result = filter_claims(claims)

        assert result == {
            "oid": "00000000-0000-0000-66f3-3332eca7ea81",
            "tid": "9188040d-6c67-4c5b-b112-36a304b66dad",
            "preferred_username": "jane@contoso.com",
        }

    def test_keeps_falsy_non_null_values(self):
        claims = {"email_verified": False, "login_count": 0, "nickname": ""}

        assert filter_claims(claims) == claims

    def test_does_not_mutate_input(self, google_claims):
        original = dict(google_claims)

        result = filter_claims(google_claims)

        assert google_claims == original
        assert result is not google_claims

    def test_empty_claim_set(self):
        assert filter_claims({}) == {}

    @pytest.mark.parametrize("name", sorted(EXCLUDED_CLAIMS))
    def test_every_excluded_name_is_dropped(self, name):
        assert filter_claims({name: "value", "sub": "u1"}) == {"sub": "u1"}


class TestBuildExclusionSet:
    def test_defaults_to_builtin_set(self):
        assert build_exclusion_set() == EXCLUDED_CLAIMS

    def test_extends_builtin_set(self):
        excluded = build_exclusion_set(["groups", "wids"])

        assert excluded == EXCLUDED_CLAIMS | {"groups", "wids"}
        assert filter_claims({"groups": ["a"], "sub": "u1"}, excluded) == {"sub": "u1"}

    def test_builtin_set_is_immutable(self):
        assert isinstance(EXCLUDED_CLAIMS, frozenset)
        build_exclusion_set(["extra"])
        assert "extra" not in EXCLUDED_CLAIMS
