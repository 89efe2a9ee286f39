"""Login flows.

QR login is one interaction in two phases, and the phases are bound together:

    scan(qr_data)              -> IdentityResolved (carries a signed, short-lived challenge)
    verify_pin(resolved, pin)  -> Authenticated    (carries the access token)

The PIN step accepts nothing but a challenge minted by a scan, so a PIN can only be
tried against the identity whose card was actually scanned. Password login is the
single-step path used by demo accounts.
"""

import logging
from dataclasses import dataclass

from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ValidationError

from .adapters.token_adapter import TokenAdapter
from .exceptions import NotFound, TooManyAttempts, Unauthorized
from .models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityResolved:
	user_id: str
	name: str
	challenge: str


@dataclass(frozen=True)
class Authenticated:
	user: User
	token: str


def _authenticated(user: User) -> Authenticated:
	return Authenticated(user=user, token=TokenAdapter.issue_access(user.pk, user.role))


# Failed secret checks per account, kept in the cache for LOGIN_LOCKOUT_SECONDS

def _failures_key(kind: str, ident) -> str:
	return f"login-failures:{kind}:{ident}"


def _ensure_not_locked(key: str) -> None:
	if cache.get(key, 0) >= settings.LOGIN_MAX_ATTEMPTS:
		raise TooManyAttempts("Too many failed attempts, try again later")


def _record_failure(key: str) -> None:
	if not cache.add(key, 1, timeout=settings.LOGIN_LOCKOUT_SECONDS):
		try:
			cache.incr(key)
		except ValueError:
			# expired between add and incr
			cache.add(key, 1, timeout=settings.LOGIN_LOCKOUT_SECONDS)


class QRLogin:

	def __init__(self, using: str = "default"):
		self.using = using

	def scan(self, qr_data: str) -> IdentityResolved:
		"""
		Phase 1: resolve the scanned card to an active user
		"""
		user = User.objects.using(self.using).filter(qr_code=qr_data).first() if qr_data else None
		if user is None or not user.is_active:
			raise NotFound("Invalid QR code or user inactive")
		return IdentityResolved(
			user_id=user.user_id,
			name=user.name,
			challenge=TokenAdapter.issue_qr_challenge(user.pk, user.qr_code),
		)

	def verify_pin(self, resolved, pin: str, user_id: str | None = None) -> Authenticated:
		"""
		Phase 2: check the PIN for the identity bound to the challenge. ``resolved`` is the
		IdentityResolved from phase 1 or its raw challenge string (what an HTTP client
		sends back). ``user_id``, when given, must match the scanned identity.
		"""
		challenge = resolved.challenge if isinstance(resolved, IdentityResolved) else resolved
		if not challenge:
			raise Unauthorized("Scan your QR code first")
		claims = TokenAdapter.verify_qr_challenge(challenge)
		try:
			user = User.objects.using(self.using).filter(pk=claims.get("sub")).first()
		except ValidationError:
			user = None
		if user is None or not user.is_active or user.qr_code != claims.get("qr"):
			raise Unauthorized("QR login expired, scan again")
		if user_id and user_id != user.user_id:
			raise Unauthorized("PIN step does not match the scanned QR")
		key = _failures_key("pin", user.pk)
		_ensure_not_locked(key)
		if not user.check_pin(str(pin or "")):
			_record_failure(key)
			logger.warning("Invalid PIN for user %s", user.user_id)
			raise Unauthorized("Invalid PIN")
		cache.delete(key)
		logger.info("User %s logged in with QR", user.user_id)
		return _authenticated(user)


def password_login(user_id: str, password: str, using: str = "default") -> Authenticated:
	"""
	ID + password login for demo accounts
	"""
	if not user_id or not password:
		raise Unauthorized("ID and password are required")
	key = _failures_key("password", user_id)
	_ensure_not_locked(key)
	user = User.objects.using(using).filter(user_id=user_id).first()
	if user is None or not user.is_active or not user.check_password(password):
		_record_failure(key)
		raise Unauthorized("Invalid credentials")
	cache.delete(key)
	logger.info("User %s logged in with password", user.user_id)
	return _authenticated(user)
