"""
Exceptions raised while building graph triples from source files.
"""


class ResolutionError(Exception):
    """Raised by a semantic model when a reference cannot be resolved.

    The extractor treats it exactly like an unresolved (`None`) answer: the
    triple that needed the reference is dropped and extraction goes on.
    """


class ExtractionError(Exception):
    """Exception raised when a source file cannot be turned into triples.

    Attributes:
        message: Explanation of the error
        language: The language being analyzed (if available)
        file_path: The file being analyzed (if available)
    """

    def __init__(
        self,
        message: str,
        language: str | None = None,
        file_path: str | None = None,
    ):
        self.message = message
        self.language = language
        self.file_path = file_path

        details = []
        if language:
            details.append(f"language={language}")
        if file_path:
            details.append(f"file={file_path}")

        full_message = message
        if details:
            full_message = f"{message} [{', '.join(details)}]"

        super().__init__(full_message)
