"""
Tests for bearer token issuing and verification.
"""

import base64
import json
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from exceptions import (
    MalformedTokenError,
    SignatureInvalidError,
    TokenError,
    TokenExpiredError,
)
from tokens import issue_token, verify_token

SECRET = "unit-test-secret-with-plenty-of-bytes-0123456789"


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


class TestIssueAndVerify:
    """Round trips and claim handling."""

    def test_round_trip(self):
        token = issue_token(42, "alice", SECRET)

        claims = verify_token(token, SECRET)

        assert claims.subject_id == 42
        assert claims.username == "alice"
        assert claims.expires_at > datetime.now(timezone.utc)

    def test_default_lifetime_is_a_day(self):
        now = datetime.now(timezone.utc)
        token = issue_token(1, "alice", SECRET, now=now)

        claims = verify_token(token, SECRET)

        expected = now + timedelta(hours=24)
        assert abs((claims.expires_at - expected).total_seconds()) < 2

    def test_issue_requires_secret(self):
        with pytest.raises(TokenError):
            issue_token(1, "alice", "")

    def test_audience_must_match(self):
        token = issue_token(1, "alice", SECRET, audience="user")

        assert verify_token(token, SECRET, audience="user").subject_id == 1
        with pytest.raises(TokenError):
            verify_token(token, SECRET, audience="admin")


class TestRejection:
    """Every way a token can fail verification."""

    def test_expired_token(self):
        issued = datetime.now(timezone.utc) - timedelta(hours=25)
        token = issue_token(1, "alice", SECRET, now=issued)

        with pytest.raises(TokenExpiredError):
            verify_token(token, SECRET)

    def test_wrong_secret(self):
        token = issue_token(1, "alice", SECRET)

        with pytest.raises(SignatureInvalidError):
            verify_token(token, "a-different-secret-with-plenty-of-bytes")

    def test_empty_verification_secret(self):
        token = issue_token(1, "alice", SECRET)

        with pytest.raises(SignatureInvalidError):
            verify_token(token, "")

    def test_alg_none_rejected(self):
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
        token = jwt.encode({"sub": "1", "username": "alice", "exp": exp}, "", algorithm="none")

        with pytest.raises(SignatureInvalidError):
            verify_token(token, SECRET)

    def test_relabelled_algorithm_rejected(self):
        token = issue_token(1, "alice", SECRET)
        _, payload, signature = token.split(".")
        forged = ".".join([_b64({"alg": "RS256", "typ": "JWT"}), payload, signature])

        with pytest.raises(SignatureInvalidError):
            verify_token(forged, SECRET)

    def test_tampered_payload_rejected(self):
        token = issue_token(1, "alice", SECRET)
        header, _, signature = token.split(".")
        exp = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())
        forged = ".".join([header, _b64({"sub": "2", "username": "alice", "exp": exp}), signature])

        with pytest.raises(SignatureInvalidError):
            verify_token(forged, SECRET)

    def test_garbage(self):
        with pytest.raises(MalformedTokenError):
            verify_token("not-a-token", SECRET)

    def test_missing_username_claim(self):
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
        token = jwt.encode({"sub": "1", "exp": exp}, SECRET, algorithm="HS256")

        with pytest.raises(MalformedTokenError):
            verify_token(token, SECRET)

    def test_non_numeric_subject(self):
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
        token = jwt.encode({"sub": "abc", "username": "alice", "exp": exp}, SECRET, algorithm="HS256")

        with pytest.raises(MalformedTokenError):
            verify_token(token, SECRET)
