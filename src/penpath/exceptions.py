"""Exception hierarchy for penpath."""


class PenpathError(Exception):
    """Base exception for all penpath errors."""

    pass


class GeometryError(PenpathError, ValueError):
    """Invalid input while constructing or evaluating geometry."""

    pass


class ArcAngleRangeError(GeometryError):
    """Arc angle range spans more than one full turn in its direction."""

    def __init__(self, start_angle: float, end_angle: float, anticlockwise: bool) -> None:
        self.start_angle = start_angle
        self.end_angle = end_angle
        self.anticlockwise = anticlockwise
        super().__init__(
            f"Unsupported arc angle range: start={start_angle}, end={end_angle}, "
            f"anticlockwise={anticlockwise} (more than one full turn)"
        )


class SingularMatrixError(PenpathError, ArithmeticError):
    """Matrix with zero determinant cannot be inverted."""

    pass


class LineStylesError(PenpathError, ValueError):
    """Invalid line style parameter."""

    pass


class SvgPathSyntaxError(PenpathError, ValueError):
    """Malformed SVG path data."""

    def __init__(self, message: str, line: int, column: int, character: str) -> None:
        self.line = line
        self.column = column
        self.character = character
        super().__init__(f"{message} at line {line}, column {column} (found {character!r})")


class UnknownPathCommandError(PenpathError, ValueError):
    """Path command record that no Shape method handles."""

    def __init__(self, cmd: str) -> None:
        self.cmd = cmd
        super().__init__(f"Unknown path command '{cmd}'")
