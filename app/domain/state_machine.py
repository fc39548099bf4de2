from app.domain.enums import AssignmentAction, AssignmentState
from app.domain.exceptions import InvalidAssignmentTransition


class AssignmentLifecycle:
    """One-way assignment state machine: unassigned -> assigned(x) -> assigned(y).

    A conversation never returns to unassigned. Auto-assignment only claims an
    unassigned conversation; moving an assigned one requires an explicit
    assignment by an admin or manager.
    """

    @staticmethod
    def state_of(assigned_to_id: int | None) -> AssignmentState:
        if assigned_to_id is None:
            return AssignmentState.UNASSIGNED
        return AssignmentState.ASSIGNED

    @classmethod
    def transition(
        cls,
        assigned_to_id: int | None,
        action: AssignmentAction,
        staff_id: int | None,
    ) -> int:
        current = cls.state_of(assigned_to_id)
        if staff_id is None:
            raise InvalidAssignmentTransition(current=current, action=action)

        if action == AssignmentAction.AUTO_ASSIGN_ON_REPLY:
            # Idempotent once claimed; no auto-reassignment.
            if current == AssignmentState.ASSIGNED:
                return assigned_to_id  # type: ignore[return-value]
            return staff_id

        return staff_id

    @classmethod
    def should_auto_assign(cls, sender_is_staff: bool, assigned_to_id: int | None) -> bool:
        return sender_is_staff and cls.state_of(assigned_to_id) == AssignmentState.UNASSIGNED
