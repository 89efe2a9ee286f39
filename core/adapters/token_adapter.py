"""Signed credentials (PyJWT, HS256).

Two kinds of token are issued:
- access tokens: ``sub`` = user UUID, ``role`` claim, used as Bearer credentials
- QR challenges: short-lived proof that a given user's QR was scanned, consumed by
  the PIN step of the QR login
"""

from datetime import datetime, timedelta, timezone

import jwt
from django.conf import settings

from core.exceptions import Unauthorized

ACCESS = "access"
QR_CHALLENGE = "qr_challenge"


class TokenAdapter:

	@staticmethod
	def _encode(claims: dict, ttl: timedelta) -> str:
		now = datetime.now(timezone.utc)
		payload = dict(claims, iat=now, exp=now + ttl)
		return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

	@staticmethod
	def _decode(token: str, kind: str) -> dict:
		try:
			claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
		except jwt.ExpiredSignatureError:
			raise Unauthorized("Token expired")
		except jwt.InvalidTokenError:
			raise Unauthorized("Invalid token")
		if claims.get("kind") != kind:
			raise Unauthorized("Invalid token")
		return claims

	@staticmethod
	def issue_access(user_pk, role: str) -> str:
		return TokenAdapter._encode(
			{"sub": str(user_pk), "role": role, "kind": ACCESS},
			timedelta(hours=settings.JWT_TTL_HOURS),
		)

	@staticmethod
	def verify_access(token: str) -> dict:
		return TokenAdapter._decode(token, ACCESS)

	@staticmethod
	def issue_qr_challenge(user_pk, qr_code: str) -> str:
		# Binding to qr_code means re-issuing a user's QR voids pending challenges
		return TokenAdapter._encode(
			{"sub": str(user_pk), "qr": qr_code, "kind": QR_CHALLENGE},
			timedelta(seconds=settings.QR_CHALLENGE_TTL_SECONDS),
		)

	@staticmethod
	def verify_qr_challenge(token: str) -> dict:
		return TokenAdapter._decode(token, QR_CHALLENGE)
