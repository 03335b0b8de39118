"""Domain errors shared by the marking and question-generation adapters."""


class OracleError(Exception):
    """Error talking to the scoring oracle."""

    pass


class OracleUnavailableError(OracleError):
    """The oracle call itself failed (unreachable or non-success response)."""

    pass


class MalformedOracleOutputError(OracleError):
    """The oracle answered, but not with JSON of the expected shape."""

    def __init__(self, message: str, raw_excerpt: str = ""):
        self.raw_excerpt = raw_excerpt
        super().__init__(message)


class ForbiddenError(Exception):
    """Caller is authenticated but lacks the required role."""

    pass


class ProfileValidationError(Exception):
    """Profile fields failed registration validation."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))


class PromptValidationError(Exception):
    """A writing prompt does not fit its task's shape."""

    pass
