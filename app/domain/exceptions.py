from app.domain.enums import AssignmentAction, AssignmentState


class InvalidAssignmentTransition(ValueError):
    def __init__(self, current: AssignmentState, action: AssignmentAction) -> None:
        super().__init__(
            f"Cannot apply action '{action.value}' from state '{current.value}' "
            "without a staff member."
        )
        self.current = current
        self.action = action
