# campaigns/exceptions.py
"""
Errors raised inside the campaign creation workflow.
None of these should escape to the user as a crash; callers catch them and
turn them into notifications or fallbacks.
"""


class CompressionError(Exception):
    """An image could not be decoded or re-encoded"""


class StorageQuotaExceeded(Exception):
    """A draft write would push the storage over its capacity"""

    def __init__(self, key, required, capacity):
        self.key = key
        self.required = required
        self.capacity = capacity
        super().__init__(
            f"Storing '{key}' needs {required} bytes but capacity is {capacity} bytes"
        )


class SubmissionError(Exception):
    """The campaign API rejected the create request or could not be reached"""

    DEFAULT_MESSAGE = "Failed to create campaign"

    def __init__(self, message=None, status_code=None):
        self.message = message or self.DEFAULT_MESSAGE
        self.status_code = status_code
        super().__init__(self.message)


class NoPendingDocument(Exception):
    """Confirm was called while no document was staged"""
