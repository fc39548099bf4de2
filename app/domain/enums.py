from enum import Enum


class AccountKind(str, Enum):
    END_USER = "end_user"
    MERCHANT_STAFF = "merchant_staff"


class StaffRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"


class AssignmentState(str, Enum):
    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"


class AssignmentAction(str, Enum):
    AUTO_ASSIGN_ON_REPLY = "auto_assign_on_reply"
    ASSIGN_BY_MANAGER = "assign_by_manager"
