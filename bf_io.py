"""Single-byte transfers between the tape and external byte streams."""

from bf_errors import StreamError


def read_byte(stream):
    try:
        data = stream.read(1)
    except OSError as e:
        raise StreamError('read', expected=1, actual=0) from e
    n = len(data) if data else 0
    if n != 1:
        raise StreamError('read', expected=1, actual=n)
    return data[0]


def write_byte(stream, value):
    try:
        n = stream.write(bytes([value]))
    except OSError as e:
        raise StreamError('write', expected=1, actual=0) from e
    if n != 1:
        raise StreamError('write', expected=1, actual=n or 0)
