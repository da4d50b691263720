"""Parsing and formatting of SVG path data"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional, Pattern, Tuple

from penpath.consts import SVG_NUMBER_DIGITS
from penpath.exceptions import SvgPathSyntaxError

logger = logging.getLogger(__name__)


def svg_number(value: float) -> str:
    """
    Format a number for SVG path data.

    SVG does not accept exponential notation, so the value is written in fixed-point
    notation with SVG_NUMBER_DIGITS fractional digits; trailing zeros are removed.

    Args:
        value (float): finite number

    Returns:
        str: e.g. "10", "-2.5", "0.00000000000000000001"
    """
    if not math.isfinite(value):
        raise ValueError(f"Cannot write non-finite number to SVG: {value}")
    text = f"{value:.{SVG_NUMBER_DIGITS}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


###############################################################################
# SvgPathCommand
###############################################################################
@dataclass
class SvgPathCommand:
    """
    One parsed path command.

    Attributes:
        cmd (str): name of the Shape construction method, e.g. "moveTo", "lineToRelative", "close"
        args (List[float]): arguments in SVG order (arc flags as 0.0 / 1.0)
    """

    cmd: str
    args: List[float] = field(default_factory=list)


###############################################################################
# SvgPathParser
###############################################################################
class SvgPathParser:
    """
    Parser for SVG path data (the "d" attribute).

    Commands (command : number of values : command-character):
        MoveTo:           2: Mm
        LineTo:           2: Ll   1: Hh(x)   1:Vv(y)
        CubicBezier:      6: Cc   4: Ss
        QuadraticBezier:  4: Qq   2: Tt
        ArcCurve:         7: Aa
        ClosePath:        0: Zz
    Uppercase = absolute coordinates; lowercase = relative.
    Repeated argument groups repeat the command, except for MoveTo where
    further pairs are LineTo commands.
    """

    # Command letters:
    SVG_CMDS: ClassVar[str] = "MmLlHhVvCcSsQqTtAaZz"
    # Definition of a number:
    SVG_ARGS: ClassVar[str] = r"[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?"

    # Command letter -> (argument count, absolute command name, relative command name)
    COMMANDS: ClassVar[Dict[str, Tuple[int, str, str]]] = {
        "M": (2, "moveTo", "moveToRelative"),
        "L": (2, "lineTo", "lineToRelative"),
        "H": (1, "horizontalLineTo", "horizontalLineToRelative"),
        "V": (1, "verticalLineTo", "verticalLineToRelative"),
        "C": (6, "cubicCurveTo", "cubicCurveToRelative"),
        "S": (4, "smoothCubicCurveTo", "smoothCubicCurveToRelative"),
        "Q": (4, "quadraticCurveTo", "quadraticCurveToRelative"),
        "T": (2, "smoothQuadraticCurveTo", "smoothQuadraticCurveToRelative"),
        "A": (7, "ellipticalArcTo", "ellipticalArcToRelative"),
        "Z": (0, "close", "close"),
    }
    # argument positions of the arc flags (large-arc, sweep)
    ARC_FLAG_INDICES: ClassVar[Tuple[int, int]] = (3, 4)

    _NUMBER_RE: ClassVar[Pattern[str]] = re.compile(SVG_ARGS)
    _SEPARATOR_RE: ClassVar[Pattern[str]] = re.compile(r"[\s,]*")

    def __init__(self, path_string: str):
        self._text: str = path_string
        self._pos: int = 0

    @classmethod
    def parse(cls, path_string: str) -> List[SvgPathCommand]:
        """
        Parse SVG path data into a list of commands.

        Args:
            path_string (str): SVG path data, e.g. "M0 0 L10 0 Z"

        Raises:
            SvgPathSyntaxError: on any malformed input, with line/column of the offending character

        Returns:
            List[SvgPathCommand]: the commands in order
        """
        commands = cls(path_string)._parse()
        logger.debug("Parsed %d SVG path commands", len(commands))
        return commands

    ###########################################################################
    # Scanner
    ###########################################################################
    def _location(self, pos: int) -> Tuple[int, int]:
        line = self._text.count("\n", 0, pos) + 1
        column = pos - (self._text.rfind("\n", 0, pos) + 1) + 1
        return line, column

    def _error(self, message: str, pos: Optional[int] = None) -> SvgPathSyntaxError:
        pos = self._pos if pos is None else pos
        line, column = self._location(pos)
        character = self._text[pos] if pos < len(self._text) else "end of input"
        return SvgPathSyntaxError(message, line, column, character)

    def _skip_separators(self) -> None:
        match = self._SEPARATOR_RE.match(self._text, self._pos)
        if match:
            self._pos = match.end()

    def _at_end(self) -> bool:
        return self._pos >= len(self._text)

    def _peek_number(self) -> bool:
        return self._NUMBER_RE.match(self._text, self._pos) is not None

    def _read_number(self) -> float:
        match = self._NUMBER_RE.match(self._text, self._pos)
        if match is None:
            raise self._error("Expected number")
        self._pos = match.end()
        return float(match.group(0))

    def _read_flag(self) -> float:
        # flags may be written without separators, e.g. "a1 1 0 00 10 10"
        if self._at_end() or self._text[self._pos] not in "01":
            raise self._error("Expected arc flag 0 or 1")
        value = float(self._text[self._pos])
        self._pos += 1
        return value

    ###########################################################################
    # Grammar
    ###########################################################################
    def _parse(self) -> List[SvgPathCommand]:
        commands: List[SvgPathCommand] = []
        self._skip_separators()
        first = True
        while not self._at_end():
            letter = self._text[self._pos]
            if letter not in self.SVG_CMDS:
                raise self._error("Expected path command")
            if first and letter not in "Mm":
                raise self._error("Path data must start with a moveto command")
            first = False
            self._pos += 1
            self._skip_separators()
            commands.extend(self._parse_command(letter))
            self._skip_separators()
        return commands

    def _parse_command(self, letter: str) -> List[SvgPathCommand]:
        arg_count, absolute_name, relative_name = self.COMMANDS[letter.upper()]
        name = relative_name if letter.islower() else absolute_name
        if arg_count == 0:
            return [SvgPathCommand(name)]

        result: List[SvgPathCommand] = []
        while True:
            result.append(SvgPathCommand(name, self._parse_arguments(letter.upper(), arg_count)))
            if letter in "Mm":
                # implicit lineto for additional coordinate pairs
                name = "lineToRelative" if letter == "m" else "lineTo"
            self._skip_separators()
            if self._at_end() or not self._peek_number():
                break
        return result

    def _parse_arguments(self, letter: str, arg_count: int) -> List[float]:
        args: List[float] = []
        for index in range(arg_count):
            if index > 0:
                self._skip_separators()
            if letter == "A" and index in self.ARC_FLAG_INDICES:
                args.append(self._read_flag())
            else:
                args.append(self._read_number())
        return args


def main():
    """Main"""
    for command in SvgPathParser.parse("M 1 2 L 3 4 a5,5 0 01 10 10 z"):
        print(command.cmd, command.args)


if __name__ == "__main__":
    main()
