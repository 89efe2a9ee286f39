"""Capability checks.

Every mutating operation states the roles allowed to perform it, and the check is
done here, once, rather than inline in each view or service:

- ensure_role(role, allowed): raise Forbidden unless role is allowed
- authenticate(request): resolve the Bearer token on a request into a Caller
- require_roles(*roles): view decorator combining the two
"""

import functools
from dataclasses import dataclass

from django.core.exceptions import ValidationError

from .adapters.token_adapter import TokenAdapter
from .constants import Role
from .exceptions import Forbidden, Unauthorized
from .models import User

STAFF_ROLES = (Role.STAFF, Role.ADMIN)
ADMIN_ROLES = (Role.ADMIN,)
ANY_ROLE = (Role.USER, Role.STAFF, Role.ADMIN)


@dataclass(frozen=True)
class Caller:
	user: User

	@property
	def role(self) -> str:
		return self.user.role


def ensure_role(role: str, allowed) -> None:
	if role not in allowed:
		raise Forbidden(f"Role {role} may not perform this action")


def authenticate(request) -> Caller:
	"""
	Resolve ``Authorization: Bearer <token>`` into the calling user. The role is re-read
	from the database, so a demoted or deactivated user loses access immediately.
	"""
	header = request.headers.get("Authorization", "")
	scheme, _, token = header.partition(" ")
	if scheme.lower() != "bearer" or not token:
		raise Unauthorized("Access token required")
	claims = TokenAdapter.verify_access(token.strip())
	try:
		user = User.objects.get(pk=claims["sub"])
	except (User.DoesNotExist, KeyError, ValueError, ValidationError):
		raise Unauthorized("Unknown user")
	if not user.is_active:
		raise Unauthorized("User inactive")
	return Caller(user=user)


def require_roles(*roles):
	"""
	Decorate a view so it only runs for an authenticated caller holding one of ``roles``.
	The caller is attached as ``request.caller``.
	"""
	allowed = roles or ANY_ROLE

	def decorator(view):
		@functools.wraps(view)
		def wrapper(request, *args, **kwargs):
			caller = authenticate(request)
			ensure_role(caller.role, allowed)
			request.caller = caller
			return view(request, *args, **kwargs)
		return wrapper
	return decorator
