"""Exceptions raised while loading, validating and running tape programs."""


class BFError(Exception):
    pass


class LoadError(BFError):
    def __init__(self, offset, cause=None):
        self.offset = offset
        self.cause = cause
        message = f"failed to read program source at byte {offset}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ValidationError(BFError):
    pass


class UnclosedBeforeOpen(ValidationError):
    def __init__(self, position):
        self.position = position
        super().__init__("Invalid code: ] is before [")


class UnbalancedDelimiters(ValidationError):
    def __init__(self, open_count):
        self.open_count = open_count
        super().__init__("Invalid code: Mismatched []")


class ExecutionError(BFError):
    def __init__(self, message, instruction_pointer=None):
        self.instruction_pointer = instruction_pointer
        super().__init__(message)


class StreamError(ExecutionError):
    """A read or write moved a different number of bytes than requested."""

    def __init__(self, operation, expected=1, actual=0, instruction_pointer=None):
        self.operation = operation
        self.expected = expected
        self.actual = actual
        verb = "read" if operation == "read" else "written"
        super().__init__(
            f"wrong bytes {verb}: expected {expected}, got {actual}",
            instruction_pointer,
        )


class OutOfRange(ExecutionError):
    def __init__(self, pointer, tape_size, instruction_pointer=None):
        self.pointer = pointer
        self.tape_size = tape_size
        super().__init__(
            f"data pointer {pointer} outside tape [0, {tape_size})",
            instruction_pointer,
        )


class UnmatchedLoop(ExecutionError):
    def __init__(self, position):
        self.position = position
        super().__init__(f"no matching bracket for position {position}", position)


class StepLimitExceeded(ExecutionError):
    def __init__(self, max_steps, instruction_pointer=None):
        self.max_steps = max_steps
        super().__init__(f"step limit of {max_steps} exceeded", instruction_pointer)
