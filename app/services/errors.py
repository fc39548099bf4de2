class ConversationNotFoundError(LookupError):
    def __init__(self, conversation_id: int) -> None:
        super().__init__(f"Conversation '{conversation_id}' not found")
        self.conversation_id = conversation_id


class ConversationAccessDeniedError(PermissionError):
    def __init__(self, conversation_id: int, user_id: int) -> None:
        super().__init__(
            f"User '{user_id}' is not a participant of conversation '{conversation_id}'"
        )
        self.conversation_id = conversation_id
        self.user_id = user_id


class CrossTenantAssignmentError(PermissionError):
    def __init__(self, conversation_id: int) -> None:
        super().__init__(
            f"Cannot assign conversation '{conversation_id}' from a different merchant"
        )
        self.conversation_id = conversation_id


class CallerNotAllowedError(PermissionError):
    """Caller's account kind or role does not permit the action."""


class MerchantNotFoundError(LookupError):
    def __init__(self, merchant_id: int) -> None:
        super().__init__(f"Merchant '{merchant_id}' not found")
        self.merchant_id = merchant_id


class StaffNotFoundError(LookupError):
    def __init__(self, staff_id: int) -> None:
        super().__init__(
            f"Staff member '{staff_id}' not found or does not belong to your merchant"
        )
        self.staff_id = staff_id


class EmptyMessageError(ValueError):
    def __init__(self) -> None:
        super().__init__("Message text cannot be empty.")


class EmailAlreadyRegisteredError(ValueError):
    def __init__(self, email: str) -> None:
        super().__init__(f"Email '{email}' is already registered")
        self.email = email


class InvalidRegistrationError(ValueError):
    pass


class SelfDeletionError(ValueError):
    def __init__(self) -> None:
        super().__init__("Cannot delete your own account")


class StaffInUseError(ValueError):
    def __init__(self, staff_id: int) -> None:
        super().__init__(
            f"Staff member '{staff_id}' has conversation history and cannot be deleted"
        )
        self.staff_id = staff_id


class AuthenticationError(Exception):
    def __init__(self, detail: str = "Invalid credentials") -> None:
        super().__init__(detail)
