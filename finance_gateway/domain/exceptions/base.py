"""Root of the finance gateway exception hierarchy."""


class DomainException(Exception):
    """
    A business rule was violated.

    Carries a human readable `message` and a stable machine `code`
    that the presentation layer renders into error bodies.
    """

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        super().__init__(message)
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"
