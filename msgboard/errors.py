from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORAGE_FAULT = "storage_fault"


class MessageBoardError(Exception):
    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MessageBoardError):
    kind = ErrorKind.VALIDATION


class NotFound(MessageBoardError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "Message not found") -> None:
        super().__init__(message)


class StorageFault(MessageBoardError):
    kind = ErrorKind.STORAGE_FAULT
