"""
tests.test_jwt

Credential codec: issue/verify, expiry, tamper rejection and claim projections.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import timedelta

import pytest

from marketplace_auth.auth.jwt import CredentialCodec, JwtConfig, peek_subject
from marketplace_auth.auth.models import Role, TokenKind
from marketplace_auth.errors import InvalidSignatureError, TokenExpiredError

_CFG = JwtConfig(
    alg="HS256",
    issuer="marketplace-auth",
    audience="marketplace-api",
    secret="test-secret-that-is-long-enough-for-hs256-0123456789",
)


@dataclass(frozen=True)
class _Subject:
    id: uuid.UUID
    username: str
    role_set: frozenset[Role]


@pytest.fixture
def alice() -> _Subject:
    return _Subject(id=uuid.uuid4(), username="alice", role_set=frozenset({Role.buyer, Role.seller}))


@pytest.fixture
def codec(clock) -> CredentialCodec:
    return CredentialCodec(_CFG, clock=clock)


def _flip_char(segment: str) -> str:
    # Middle characters of a base64url segment carry only data bits, so a flip
    # always changes the decoded bytes.
    i = len(segment) // 2
    replacement = "A" if segment[i] != "A" else "B"
    return segment[:i] + replacement + segment[i + 1 :]


def test_access_token_round_trip(codec: CredentialCodec, alice: _Subject, clock) -> None:
    token = codec.issue(alice, TokenKind.access, timedelta(hours=1))
    claims = codec.verify(token)

    assert claims.subject == "alice"
    assert claims.user_id == alice.id
    assert claims.kind is TokenKind.access
    assert claims.roles == frozenset({Role.buyer, Role.seller})
    assert claims.expires_at - claims.issued_at == timedelta(hours=1)
    assert claims.issued_at == clock().replace(microsecond=0)


def test_refresh_token_has_no_role_snapshot_and_is_unique(
    codec: CredentialCodec, alice: _Subject
) -> None:
    first = codec.issue(alice, TokenKind.refresh, timedelta(days=7))
    second = codec.issue(alice, TokenKind.refresh, timedelta(days=7))

    assert first != second
    claims = codec.verify(first, expected_kind=TokenKind.refresh)
    assert claims.kind is TokenKind.refresh
    assert claims.roles == frozenset()


def test_expired_token_is_rejected(codec: CredentialCodec, alice: _Subject, clock) -> None:
    token = codec.issue(alice, TokenKind.access, timedelta(hours=1))
    clock.advance(hours=1, seconds=1)

    with pytest.raises(TokenExpiredError):
        codec.verify(token)


def test_token_is_expired_at_exact_expiry_instant(
    codec: CredentialCodec, alice: _Subject, clock
) -> None:
    clock.now = clock.now.replace(microsecond=0)
    token = codec.issue(alice, TokenKind.access, timedelta(seconds=30))
    clock.advance(seconds=29)
    codec.verify(token)

    clock.advance(seconds=1)
    with pytest.raises(TokenExpiredError):
        codec.verify(token)


@pytest.mark.parametrize("segment_index", [0, 1, 2])
def test_tampering_any_segment_is_rejected(
    codec: CredentialCodec, alice: _Subject, segment_index: int
) -> None:
    token = codec.issue(alice, TokenKind.access, timedelta(hours=1))
    segments = token.split(".")
    segments[segment_index] = _flip_char(segments[segment_index])

    with pytest.raises(InvalidSignatureError):
        codec.verify(".".join(segments))


def test_signature_is_checked_before_expiry(alice: _Subject, clock) -> None:
    other = CredentialCodec(
        JwtConfig(alg="HS256", issuer=_CFG.issuer, audience=_CFG.audience, secret="x" * 48),
        clock=clock,
    )
    token = other.issue(alice, TokenKind.access, timedelta(seconds=1))
    clock.advance(hours=2)

    with pytest.raises(InvalidSignatureError):
        CredentialCodec(_CFG, clock=clock).verify(token)


@pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c", "Bearer x.y.z"])
def test_malformed_tokens_normalize_to_invalid_signature(
    codec: CredentialCodec, garbage: str
) -> None:
    with pytest.raises(InvalidSignatureError):
        codec.verify(garbage)


def test_wrong_audience_is_rejected(alice: _Subject, clock) -> None:
    foreign = CredentialCodec(
        JwtConfig(alg="HS256", issuer=_CFG.issuer, audience="someone-else", secret=_CFG.secret),
        clock=clock,
    )
    token = foreign.issue(alice, TokenKind.access, timedelta(hours=1))

    with pytest.raises(InvalidSignatureError):
        CredentialCodec(_CFG, clock=clock).verify(token)


def test_kind_mismatch_is_rejected(codec: CredentialCodec, alice: _Subject) -> None:
    access = codec.issue(alice, TokenKind.access, timedelta(hours=1))
    refresh = codec.issue(alice, TokenKind.refresh, timedelta(days=1))

    with pytest.raises(InvalidSignatureError):
        codec.verify(access, expected_kind=TokenKind.refresh)
    with pytest.raises(InvalidSignatureError):
        codec.verify(refresh, expected_kind=TokenKind.access)


def test_projections(codec: CredentialCodec, alice: _Subject, clock) -> None:
    token = codec.issue(alice, TokenKind.access, timedelta(minutes=5))

    assert codec.extract_subject(token) == "alice"
    assert codec.extract_role_snapshot(token) == frozenset({Role.buyer, Role.seller})
    assert codec.extract_expiry(token) == clock().replace(microsecond=0) + timedelta(minutes=5)


def test_peek_subject_is_best_effort(codec: CredentialCodec, alice: _Subject) -> None:
    token = codec.issue(alice, TokenKind.access, timedelta(minutes=5))

    assert peek_subject(token) == "alice"
    assert peek_subject("garbage") is None
