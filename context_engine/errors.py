class ConversationEngineError(Exception):
    """Base exception for conversation engine errors."""

    pass


class NotFound(ConversationEngineError):
    """Raised when a conversation was expected for a phone number but none exists."""

    def __init__(self, phone_number: str):
        self.phone_number = phone_number
        super().__init__(f"No conversation for {phone_number}")


class DuplicateKey(ConversationEngineError):
    """Raised when creating a conversation for a phone number that already has one."""

    def __init__(self, phone_number: str):
        self.phone_number = phone_number
        super().__init__(f"Conversation already exists for {phone_number}")


class StorageUnavailable(ConversationEngineError):
    """Raised when the document store fails to load or save."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"Document store failed during {operation}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MalformedMessage(ConversationEngineError):
    """Raised when an inbound message lacks a required field."""

    def __init__(self, field: str, reason: str = "missing"):
        self.field = field
        self.reason = reason
        super().__init__(f"Malformed inbound message: '{field}' is {reason}")
