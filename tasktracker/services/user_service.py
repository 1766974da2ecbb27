"""
User Service: sign-up, demo sign-in lookup and admin role management.
"""

import logging

from email_validator import EmailNotValidError, validate_email

from tasktracker.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from tasktracker.models import db
from tasktracker.models.auth import ROLE_DEVELOPER, USER_ROLES, User
from tasktracker.utils.errors import E
from tasktracker.utils.helpers import parse_optional_int, transaction

logger = logging.getLogger(__name__)


def normalize_email(email) -> str:
    """Validate syntax (no DNS lookup) and return the normalized address."""
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("Email is required", details={"email": "required"}, code=E.VALIDATION_REQUIRED)
    try:
        valid = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {e}", details={"email": "invalid"}, code=E.VALIDATION_INVALID) from e
    return valid.normalized.lower()


# ═══════════════════════════════════════════════════════════════
# Sign-up / sign-in
# ═══════════════════════════════════════════════════════════════
def signup(name, email) -> User:
    """Create an active DEVELOPER account. Duplicate email → ConflictError."""
    email = normalize_email(email)
    name = str(name or "").strip()
    if not name:
        raise ValidationError("Name is required", details={"name": "required"}, code=E.VALIDATION_REQUIRED)

    if User.query.filter_by(email=email).first() is not None:
        raise ConflictError(resource="User", field="email", value=email)

    user = User(email=email, name=name, role=ROLE_DEVELOPER, is_active=True)
    with transaction():
        db.session.add(user)
    logger.info("User %s signed up (%s)", user.id, email)
    return user


def find_user_for_sign_in(email) -> User:
    """Resolve the account behind an email-only demo sign-in."""
    email = normalize_email(email)
    user = User.query.filter_by(email=email).first()
    if user is None:
        raise NotFoundError(resource="User", resource_id=email)
    if not user.is_active:
        logger.warning("Sign-in refused for inactive user=%s", user.id)
        raise ForbiddenError(action="auth.sign_in", user_id=user.id, message="Account is inactive")
    return user


def get_active_user(user_id):
    """Return the active user with this id, or None."""
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


# ═══════════════════════════════════════════════════════════════
# Administration
# ═══════════════════════════════════════════════════════════════
def list_users(principal) -> list[User]:
    """Active users, newest first (ADMIN only)."""
    if not principal.is_admin:
        raise ForbiddenError(action="user.list", user_id=principal.id)
    return User.query.filter_by(is_active=True).order_by(User.created_at.desc(), User.id.desc()).all()


def change_role(user_id, role, principal) -> User:
    """Set a user's role (ADMIN only)."""
    if not principal.is_admin:
        logger.warning("Forbidden user.change_role by user=%s", principal.id)
        raise ForbiddenError(action="user.change_role", user_id=principal.id)

    user_id = parse_optional_int(user_id, "userId")
    if user_id is None or not role:
        details = {}
        if user_id is None:
            details["userId"] = "required"
        if not role:
            details["role"] = "required"
        raise ValidationError("User ID and role are required", details=details, code=E.VALIDATION_REQUIRED)
    if role not in USER_ROLES:
        raise ValidationError(
            f"Invalid role: {role!r}",
            details={"role": f"must be one of {', '.join(USER_ROLES)}"},
            code=E.VALIDATION_INVALID,
        )

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(resource="User", resource_id=user_id)

    old_role = user.role
    with transaction():
        user.role = role
    logger.info("User %s role %s -> %s by admin=%s", user_id, old_role, role, principal.id)
    return user
