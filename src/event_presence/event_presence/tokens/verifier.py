from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ..core.constants import PARTICIPANT_TOKEN_TTL_HOURS, STALL_TOKEN_TTL_DAYS
from ..core.enums import TokenKind
from ..core.exceptions import EventMismatch, ExpiredToken, InvalidToken
from .model import ScanIdentity

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

_SUBJECT_CLAIMS = {
    TokenKind.PARTICIPANT: "participantId",
    TokenKind.STALL: "stallId",
}


def _parse_id(value: object, claim: str) -> int:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidToken(f"Invalid QR code: {claim} is not a valid id")
    if parsed <= 0:
        raise InvalidToken(f"Invalid QR code: {claim} is not a valid id")
    return parsed


class ScanTokenVerifier:
    """Check that a scanned QR payload was signed by us and is still valid.

    Pure function of the token, the signing secret and the clock: no storage
    access and no side effects.
    """

    def __init__(self, secret: str, *, leeway_seconds: int = 0):
        if not secret:
            raise ValueError("QR signing secret must not be empty")
        self._secret = secret
        self._leeway = int(leeway_seconds)

    def verify(self, token: str, *, expected_event_id: Optional[int] = None) -> ScanIdentity:
        token = (token or "").strip() if isinstance(token, str) else ""
        if not token:
            raise InvalidToken("QR token is required")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                leeway=self._leeway,
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredToken("QR code has expired. Please generate a new one.")
        except jwt.InvalidTokenError as exc:
            logger.debug("rejected scan token: %s", exc)
            raise InvalidToken("Invalid QR code signature or format")

        try:
            kind = TokenKind(payload.get("type"))
        except ValueError:
            raise InvalidToken(f"Invalid QR code type {payload.get('type')!r}")

        claim = _SUBJECT_CLAIMS[kind]
        subject_id = _parse_id(payload.get(claim), claim)
        event_id = _parse_id(payload.get("eventId"), "eventId")

        if expected_event_id is not None and event_id != int(expected_event_id):
            raise EventMismatch("This QR code was issued for a different event")

        return ScanIdentity(
            kind=kind,
            subject_id=subject_id,
            event_id=event_id,
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        )


class ScanTokenIssuer:
    """Signs QR payloads with the same secret the verifier checks.

    Token issuance belongs to the identity side of the system; it lives here
    so seeding scripts and tests can mint tokens the verifier accepts.
    """

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("QR signing secret must not be empty")
        self._secret = secret

    def _issue(self, claims: dict, *, ttl: timedelta, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = dict(claims)
        payload.update(
            {
                "nonce": secrets.token_hex(16),
                "iat": issued_at,
                "exp": issued_at + ttl,
            }
        )
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def issue_participant_token(
        self,
        participant_id: int,
        event_id: int,
        *,
        ttl: timedelta = timedelta(hours=PARTICIPANT_TOKEN_TTL_HOURS),
        now: Optional[datetime] = None,
    ) -> str:
        return self._issue(
            {"type": TokenKind.PARTICIPANT.value, "participantId": str(participant_id), "eventId": str(event_id)},
            ttl=ttl,
            now=now,
        )

    def issue_stall_token(
        self,
        stall_id: int,
        event_id: int,
        *,
        ttl: timedelta = timedelta(days=STALL_TOKEN_TTL_DAYS),
        now: Optional[datetime] = None,
    ) -> str:
        return self._issue(
            {"type": TokenKind.STALL.value, "stallId": str(stall_id), "eventId": str(event_id)},
            ttl=ttl,
            now=now,
        )
