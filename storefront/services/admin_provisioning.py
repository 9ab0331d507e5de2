"""Provisioning of privileged (admin / employee) accounts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from storefront.database.collection_store import CollectionStore
from storefront.entities.base import utcnow
from storefront.entities.user import PRIVILEGED_ROLES, ROLE_PERMISSIONS, User, UserRole
from storefront.repositories.user import UserRepository
from storefront.utils.passwords import generate_temporary_password, hash_password

logger = logging.getLogger(__name__)

EMPLOYEE_ID_PREFIXES = {
    UserRole.ADMIN.value: "ADM",
    UserRole.EMPLOYEE.value: "EMP",
}


@dataclass
class ProvisioningResult:
    """Outcome of a provisioning run.

    ``temporary_password`` is only set when the account was created, and is
    the only place the plaintext credential ever exists.
    """

    user: User
    created: bool
    temporary_password: Optional[str] = None


class AdminProvisioningService:
    """Creates admin and employee accounts with one-time credentials.

    Privileged accounts never get an operator-chosen password: a temporary
    one is generated, only its hash is stored, and the account is flagged so
    the first login has to replace it.
    """

    def __init__(self, store: CollectionStore):
        self.store = store
        self.user_repo = UserRepository(store)

    def provision(
        self,
        email: str,
        role: str = UserRole.ADMIN.value,
        first_name: str = "Admin",
        last_name: str = "User",
        username: Optional[str] = None,
        department: Optional[str] = None,
        position: Optional[str] = None,
        phone: Optional[str] = None,
        supervisor: Optional[str] = None,
    ) -> ProvisioningResult:
        """Create the account if absent; leave an existing one untouched."""
        role = UserRole(role).value
        if role not in PRIVILEGED_ROLES:
            raise ValueError(f"Only privileged roles can be provisioned, got {role!r}")

        # Hold the users lock so two runs cannot both see the account as absent
        with self.store.lock(self.user_repo.collection_name):
            existing = self.user_repo.find_by_email(email)
            if existing:
                logger.info(
                    "Privileged account already exists: %s (role=%s)", email, existing.role
                )
                return ProvisioningResult(user=existing, created=False)

            temporary_password = generate_temporary_password()
            user = User(
                email=email,
                username=username or email.split("@", 1)[0],
                first_name=first_name,
                last_name=last_name,
                password=hash_password(temporary_password),
                phone=phone,
                role=role,
                permissions=sorted(ROLE_PERMISSIONS[role], key=lambda p: p.value),
                is_active=True,
                is_email_verified=True,
                must_change_password=True,
                employee_id=self._next_employee_id(role),
                department=department or ("management" if role == UserRole.ADMIN.value else None),
                position=position or ("System Administrator" if role == UserRole.ADMIN.value else None),
                hire_date=utcnow(),
                supervisor=supervisor,
            )
            self.user_repo.insert_one(user)

        logger.info("Created %s account %s (%s)", role, email, user.employee_id)
        return ProvisioningResult(user=user, created=True, temporary_password=temporary_password)

    def _next_employee_id(self, role: str) -> str:
        prefix = EMPLOYEE_ID_PREFIXES[role]
        existing = self.user_repo.count(
            lambda doc: str(doc.get("employeeId") or "").startswith(prefix)
        )
        return f"{prefix}{existing + 1:03d}"
