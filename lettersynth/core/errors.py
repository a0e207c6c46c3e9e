from __future__ import annotations


class LetterSynthError(Exception):
    """Base class for every recoverable command-path failure."""

    kind = "error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnknownType(LetterSynthError):
    kind = "unknown_type"

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"Unknown unit type '{type_name}'.")


class UnboundLetter(LetterSynthError):
    kind = "unbound_letter"

    def __init__(self, letter: str) -> None:
        self.letter = letter
        super().__init__(f"Letter '{letter}' is not bound to any unit type.")


class UnknownParameter(LetterSynthError):
    kind = "unknown_parameter"

    def __init__(self, type_name: str, name: str) -> None:
        self.type_name = type_name
        self.name = name
        super().__init__(f"Unit type '{type_name}' has no parameter '{name}'.")


class TypeMismatch(LetterSynthError):
    kind = "type_mismatch"

    def __init__(self, name: str, expected: str, value: object) -> None:
        self.name = name
        self.expected = expected
        self.value = value
        super().__init__(f"Parameter '{name}' expects {expected}, got {value!r}.")


class MalformedCommand(LetterSynthError):
    kind = "malformed_command"


class UnbalancedParentheses(LetterSynthError):
    kind = "unbalanced_parentheses"

    def __init__(self, word: str, position: int) -> None:
        self.word = word
        self.position = position
        super().__init__(f"Unbalanced parentheses in '{word}' at position {position}.")
