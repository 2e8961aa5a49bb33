"""
Custom exception classes for the docx_compose package.

The hierarchy separates caller mistakes (bad arguments, detected before any
mutation) from inconsistencies inside the document itself (a numbering id
with no definition, a required part that is missing). Inconsistencies are
always reported; the library never guesses a replacement value.
"""


class DocxComposeError(Exception):
    """Base exception for all docx_compose errors."""

    pass


class InvalidArgumentError(DocxComposeError, ValueError):
    """Raised when a caller passes an argument that can never be valid.

    Examples are an empty identifier or a character offset outside the
    paragraph. Raised before the document is touched, so no partial edit is
    left behind.

    Attributes:
        argument: Name of the offending argument
    """

    def __init__(self, argument: str, message: str) -> None:
        self.argument = argument
        super().__init__(f"{argument}: {message}")


class OffsetOutOfRangeError(InvalidArgumentError):
    """Raised when a character offset falls outside an element.

    Attributes:
        offset: The requested offset
        length: Effective length of the element that was addressed
    """

    def __init__(self, offset: int, length: int, argument: str = "offset") -> None:
        self.offset = offset
        self.length = length
        super().__init__(argument, f"{offset} is outside the valid range [0, {length}]")


class ValidationError(DocxComposeError):
    """Raised when a package cannot be opened or parsed.

    This can occur when:
    - The source is not a ZIP archive
    - A part contains malformed XML
    - The merge plan file is malformed

    Attributes:
        errors: List of specific validation error messages (optional)
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)


class DocumentFormatError(DocxComposeError):
    """Raised when the document contradicts a structural invariant.

    Guessing a fallback here would corrupt the document invisibly, so the
    operation is aborted instead.
    """

    pass


class PartNotFoundError(DocumentFormatError):
    """Raised when a part the operation needs does not exist.

    Attributes:
        part_name: Package part name that was looked up
    """

    def __init__(self, part_name: str, hint: str | None = None) -> None:
        self.part_name = part_name
        msg = f"Part '{part_name}' does not exist in the package"
        if hint:
            msg += f" ({hint})"
        super().__init__(msg)


class NumberingNotFoundError(DocumentFormatError):
    """Raised when a numbering reference cannot be resolved.

    Attributes:
        num_id: The numId that was referenced
        level: The list level that was referenced (None when the numId itself
            is missing)
        available_ids: numIds defined in the numbering part
    """

    def __init__(
        self,
        num_id: int,
        level: int | None = None,
        available_ids: list[int] | None = None,
        reason: str | None = None,
    ) -> None:
        self.num_id = num_id
        self.level = level
        self.available_ids = available_ids or []
        self.reason = reason
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format an error message with the ids that do exist."""
        if self.level is None:
            msg = f"Numbering instance {self.num_id} not found"
        else:
            msg = f"Level {self.level} of numbering instance {self.num_id} not found"
        if self.reason:
            msg += f": {self.reason}"
        if self.available_ids:
            ids_str = ", ".join(str(i) for i in self.available_ids)
            msg += f"\n\nAvailable numIds: {ids_str}"
        return msg
