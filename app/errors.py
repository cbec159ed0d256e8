class DevOpsError(Exception):
    """Base class for every error raised by the bridge itself"""


class NotFoundError(DevOpsError):
    """Requested pull request, branch, iteration or object does not exist"""


class MalformedPatchError(DevOpsError):
    hunk_index: int | None
    line_number: int | None

    def __init__(
        self,
        message: str,
        hunk_index: int | None = None,
        line_number: int | None = None,
    ) -> None:
        location = list[str]()
        if hunk_index is not None:
            location.append(f"hunk {hunk_index}")
        if line_number is not None:
            location.append(f"line {line_number}")
        if location:
            message = f"{message} ({', '.join(location)})"

        super().__init__(message)
        self.hunk_index = hunk_index
        self.line_number = line_number


class PatchConflictError(DevOpsError):
    """Base content does not match the context the patch expects"""

    hunk_index: int | None
    base_line: int | None
    expected: list[str]

    def __init__(
        self,
        message: str,
        hunk_index: int | None = None,
        base_line: int | None = None,
        expected: list[str] | None = None,
    ) -> None:
        if hunk_index is not None:
            message = f"{message} (hunk {hunk_index}, base line {base_line})"

        super().__init__(message)
        self.hunk_index = hunk_index
        self.base_line = base_line
        self.expected = expected or list()


class UpstreamError(DevOpsError):
    operation: str

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"Failed to {operation}: {message}")
        self.operation = operation
