"""
Program loading and delimiter validation.

The eight instructions are:
    +   Increment the cell at the data pointer (255 wraps to 0)
    -   Decrement the cell at the data pointer (0 wraps to 255)
    >   Move the data pointer right
    <   Move the data pointer left
    .   Write the current cell to the output stream
    ,   Read one byte from the input stream into the current cell
    [   Jump past the matching ] if the current cell is 0
    ]   Jump back past the matching [ if the current cell is not 0

Every other character is kept in the sequence and skipped at run time.
"""

import logging

from bf_errors import LoadError, UnclosedBeforeOpen, UnbalancedDelimiters

logger = logging.getLogger(__name__)

PLUS = '+'
MINUS = '-'
RIGHT = '>'
LEFT = '<'
PUT_CHAR = '.'
READ_CHAR = ','
JUMP_IF_ZERO = '['
JUMP_IF_NOT_ZERO = ']'

INSTRUCTIONS = frozenset(
    [PLUS, MINUS, RIGHT, LEFT, PUT_CHAR, READ_CHAR, JUMP_IF_ZERO, JUMP_IF_NOT_ZERO]
)


class InstructionSequence:
    __slots__ = ('_text',)

    def __init__(self, text=''):
        object.__setattr__(self, '_text', str(text))

    def __setattr__(self, name, value):
        raise AttributeError("InstructionSequence is immutable")

    def __len__(self):
        return len(self._text)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return InstructionSequence(self._text[index])
        return self._text[index]

    def __iter__(self):
        return iter(self._text)

    def __bool__(self):
        return bool(self._text)

    def __eq__(self, other):
        if isinstance(other, InstructionSequence):
            return self._text == other._text
        return NotImplemented

    def __hash__(self):
        return hash(self._text)

    def __str__(self):
        return self._text

    def __repr__(self):
        if len(self._text) > 40:
            return f"InstructionSequence({self._text[:37] + '...'!r})"
        return f"InstructionSequence({self._text!r})"

    def code_only(self):
        """Return a copy with every non-instruction character removed."""
        return InstructionSequence(''.join(c for c in self._text if c in INSTRUCTIONS))


class ProgramLoader:
    """
    Reads a program source once and caches the result.

    The source is read one byte at a time until end-of-stream. Once a
    non-empty sequence has been cached, later calls to load() return it
    without touching the source again.
    """

    def __init__(self):
        self.sequence = InstructionSequence()

    def load(self, source):
        if self.sequence:
            return self.sequence

        chars = []
        while True:
            try:
                chunk = source.read(1)
            except (OSError, ValueError) as e:
                raise LoadError(len(chars), e) from e
            if not chunk:
                break
            if isinstance(chunk, bytes):
                chunk = chunk.decode('latin-1')
            chars.append(chunk)

        self.sequence = InstructionSequence(''.join(chars))
        logger.debug("Loaded %d characters", len(self.sequence))
        return self.sequence


def load(source):
    return ProgramLoader().load(source)


def load_string(text):
    return InstructionSequence(text)


def load_file(path):
    with open(path, 'rb') as f:
        return load(f)


def validate(sequence):
    """
    Check that every ] closes an earlier [ and every [ is closed.

    Raises UnclosedBeforeOpen at the first ] with nothing open, or
    UnbalancedDelimiters if brackets are still open at the end.
    """
    depth = 0
    for position, op in enumerate(sequence):
        if op == JUMP_IF_ZERO:
            depth += 1
        elif op == JUMP_IF_NOT_ZERO:
            depth -= 1
            if depth < 0:
                raise UnclosedBeforeOpen(position)

    if depth > 0:
        raise UnbalancedDelimiters(depth)

    logger.debug("Validated %d characters", len(sequence))


def is_valid(sequence):
    try:
        validate(sequence)
    except (UnclosedBeforeOpen, UnbalancedDelimiters):
        return False
    return True
