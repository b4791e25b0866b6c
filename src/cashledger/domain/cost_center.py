"""Cost center registry domain service."""

import logging
from typing import Any, Optional

from cashledger.database.base import Database
from cashledger.domain.entities import CostCenter
from cashledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    cost_center_deactivate_blocked,
    cost_center_not_found,
    duplicate_cost_center_code,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"code", "name", "parent_id", "description"})


def _validate_code(code: Optional[str]) -> str:
    code = (code or "").strip()
    if not code or len(code) > 20:
        raise ValidationError("Cost center code must be between 1 and 20 characters")
    return code


def _validate_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if len(name) < 2 or len(name) > 100:
        raise ValidationError("Cost center name must be between 2 and 100 characters")
    return name


def _validate_description(description: Optional[str]) -> Optional[str]:
    if description is not None and len(description) > 500:
        raise ValidationError("Cost center description cannot exceed 500 characters")
    return description


class CostCenterService:
    """Service for managing cost centers (centros de costo)."""

    def __init__(self, db: Database):
        """Initialize cost center service.

        Args:
            db: Database instance
        """
        self.db = db

    def require_cost_center(self, cost_center_id: int) -> CostCenter:
        """Get cost center by ID or raise NotFoundError."""
        center = self.db.get_cost_center(cost_center_id)
        if center is None:
            raise NotFoundError(cost_center_not_found(cost_center_id))
        return center

    def get_cost_center_by_code(self, code: str) -> Optional[CostCenter]:
        return self.db.get_cost_center_by_code(code)

    def require_assignable(self, cost_center_id: int) -> CostCenter:
        """Return the cost center if movements can be charged to it.

        Raises:
            NotFoundError: If the cost center does not exist
            ValidationError: If it has been deactivated
        """
        center = self.require_cost_center(cost_center_id)
        if not center.active:
            raise ValidationError(f"Cost center '{center.code}' is not active")
        return center

    def _validate_parent(self, parent_id: int, cost_center_id: Optional[int] = None) -> None:
        parent = self.require_cost_center(parent_id)
        if not parent.active:
            raise ValidationError(f"Parent cost center '{parent.code}' is not active")
        if cost_center_id is None:
            return

        # Walk up from the new parent; reaching the edited center means a cycle
        current: Optional[CostCenter] = parent
        while current is not None:
            if current.id == cost_center_id:
                raise ValidationError(
                    f"Moving under '{parent.code}' would make the cost center its own ancestor"
                )
            current = (
                self.db.get_cost_center(current.parent_id)
                if current.parent_id is not None
                else None
            )

    def create_cost_center(
        self,
        code: str,
        name: str,
        parent_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create a cost center.

        Args:
            code: Unique code, 1 to 20 characters
            name: Name, 2 to 100 characters
            parent_id: Optional active parent cost center
            description: Optional description, up to 500 characters

        Returns:
            Cost center ID

        Raises:
            ValidationError: On invalid code, name or description, or an
                inactive parent
            NotFoundError: If the parent does not exist
            ConflictError: If the code already exists
        """
        code = _validate_code(code)
        name = _validate_name(name)
        description = _validate_description(description)
        if parent_id is not None:
            self._validate_parent(parent_id)
        if self.db.get_cost_center_by_code(code) is not None:
            raise ConflictError(duplicate_cost_center_code(code))

        cost_center_id = self.db.create_cost_center(
            code=code, name=name, parent_id=parent_id, description=description
        )
        logger.info("Created cost center %s '%s'", code, name)
        return cost_center_id

    def update_cost_center(self, cost_center_id: int, **fields: Any) -> None:
        """Update cost center fields.

        Passing parent_id=None moves the cost center to the top level.

        Raises:
            NotFoundError: If the cost center or the new parent does not exist
            ValidationError: If a field is not updatable or invalid, or the new
                parent is inactive or would create a cycle
            ConflictError: If the new code already exists
        """
        self.require_cost_center(cost_center_id)

        not_allowed = set(fields) - UPDATABLE_FIELDS
        if not_allowed:
            raise ValidationError(
                f"Cannot update cost center fields: {', '.join(sorted(not_allowed))}"
            )
        if not fields:
            return

        if "code" in fields:
            fields["code"] = _validate_code(fields["code"])
            existing = self.db.get_cost_center_by_code(fields["code"])
            if existing is not None and existing.id != cost_center_id:
                raise ConflictError(duplicate_cost_center_code(fields["code"]))
        if "name" in fields:
            fields["name"] = _validate_name(fields["name"])
        if "description" in fields:
            fields["description"] = _validate_description(fields["description"])
        if fields.get("parent_id") is not None:
            self._validate_parent(fields["parent_id"], cost_center_id)

        self.db.update_cost_center(cost_center_id, **fields)

    def deactivate_cost_center(self, cost_center_id: int) -> None:
        """Deactivate (soft-delete) a cost center.

        Raises:
            NotFoundError: If the cost center does not exist
            ConflictError: If transactions are charged to it or it has active
                children
        """
        center = self.require_cost_center(cost_center_id)
        transaction_count = self.db.count_cost_center_transactions(cost_center_id)
        active_children = self.db.count_active_cost_center_children(cost_center_id)
        if transaction_count > 0 or active_children > 0:
            raise ConflictError(
                cost_center_deactivate_blocked(center.code, transaction_count, active_children)
            )
        self.db.set_cost_center_active(cost_center_id, False)
        logger.info("Deactivated cost center %s", center.code)

    def list_cost_centers(self, include_inactive: bool = False) -> list[CostCenter]:
        """List cost centers ordered by code; active ones only by default."""
        return self.db.list_cost_centers(include_inactive=include_inactive)
