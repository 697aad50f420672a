class FractalError(Exception):
    """Base class for errors raised by escapetime."""


class ValidationError(FractalError, ValueError):
    """A parameter value violates an invariant of the fractal model."""

    def __init__(self, field, message):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")

    def within(self, prefix):
        """Return a copy of this error with `prefix` prepended to the field path."""
        field = f"{prefix}.{self.field}" if not self.field.startswith("[") else f"{prefix}{self.field}"
        return ValidationError(field, self.message)


class ParseError(FractalError, ValueError):
    """Parameter text could not be read."""

    def __init__(self, field, message, line=None):
        self.field = field
        self.message = message
        self.line = line
        location = f" (line {line})" if line is not None else ""
        super().__init__(f"{field}{location}: {message}")
