"""Error and position model.

Provides Mark, Location and Path, and the Error hierarchy raised by every
public entry point of yamlbridge.
"""

import enum

import yaml.error


class Mark(yaml.error.Mark):
    """A PyYAML mark that also reports its Location.

    Lines and columns are 0-indexed, as in PyYAML.
    """

    @property
    def location(self):
        """The Location (byte offset, 1-based line and column) of this mark."""
        return Location.from_mark(self)


class Location:
    """Byte offset plus 1-based line and column of a node or failure."""

    __slots__ = ('index', 'line', 'column')

    def __init__(self, index, line, column):
        self.index = index
        self.line = line
        self.column = column

    @classmethod
    def from_mark(cls, mark):
        index = mark.index
        if mark.buffer is not None and mark.pointer is not None:
            index = len(mark.buffer[:mark.pointer].encode('utf-8', 'surrogatepass'))
        return cls(index, mark.line + 1, mark.column + 1)

    def __eq__(self, other):
        if not isinstance(other, Location):
            return NotImplemented
        return (self.index, self.line, self.column) == \
            (other.index, other.line, other.column)

    def __hash__(self):
        return hash((self.index, self.line, self.column))

    def __repr__(self):
        return 'Location(index=%d, line=%d, column=%d)' % (
            self.index, self.line, self.column)

    def __str__(self):
        return 'line %d column %d' % (self.line, self.column)


class Path:
    """Route from the document root to a node, for error messages.

    Paths are immutable linked segments: ``Path.ROOT.key('a').index(0)``
    renders as ``a[0]``.
    """

    __slots__ = ('parent', 'segment', 'kind')

    def __init__(self, parent=None, segment=None, kind='root'):
        self.parent = parent
        self.segment = segment
        self.kind = kind

    def key(self, key):
        return Path(self, key, 'key')

    def index(self, index):
        return Path(self, index, 'index')

    def alias(self):
        return Path(self, None, 'alias')

    def unknown(self):
        return Path(self, None, 'unknown')

    def is_root(self):
        return not self._text()

    def _text(self):
        if self.kind == 'root':
            return ''
        parent = self.parent._text()
        if self.kind == 'alias':
            return parent
        if self.kind == 'index':
            return '%s[%d]' % (parent, self.segment)
        if parent:
            parent += '.'
        if self.kind == 'key':
            return parent + str(self.segment)
        return parent + '?'

    def __str__(self):
        return self._text() or '.'

    def __repr__(self):
        return 'Path(%r)' % str(self)


Path.ROOT = Path()


class ErrorKind(enum.Enum):
    PARSE_SYNTAX = 'parse_syntax'
    UNEXPECTED_SHAPE = 'unexpected_shape'
    MISSING_FIELD = 'missing_field'
    UNKNOWN_FIELD = 'unknown_field'
    UNKNOWN_VARIANT = 'unknown_variant'
    AMBIGUOUS_VARIANT_REPRESENTATION = 'ambiguous_variant_representation'
    NUMERIC_RANGE = 'numeric_range'
    NON_FINITE_NUMBER = 'non_finite_number'
    IO = 'io'
    UTF8 = 'utf8'
    END_OF_STREAM = 'end_of_stream'
    MORE_THAN_ONE_DOCUMENT = 'more_than_one_document'
    RECURSION_LIMIT_EXCEEDED = 'recursion_limit_exceeded'
    REPETITION_LIMIT_EXCEEDED = 'repetition_limit_exceeded'
    UNKNOWN_ANCHOR = 'unknown_anchor'
    DUPLICATE_KEY = 'duplicate_key'
    CUSTOM = 'custom'
    EMITTER = 'emitter'


# Longest token text quoted verbatim in a message.
MAX_TOKEN_LENGTH = 64


def shorten(text, limit=MAX_TOKEN_LENGTH):
    """Bound token text quoted in messages."""
    if len(text) <= limit:
        return text
    return text[:limit - 3] + '...'


class Error(yaml.error.MarkedYAMLError):
    """A failure raised by parsing, deserialization or serialization.

    The kind, message, mark and path are fixed once the error has been
    located; the deserializer attaches the mark and the path of the
    innermost failing node, each independently, and leaves already set
    ones untouched.
    """

    kind = None

    def __init__(self, message, mark=None, path=None, context=None, context_mark=None):
        super().__init__(context=context, context_mark=context_mark,
                         problem=message, problem_mark=mark)
        self._path = path
        self.args = (message,)

    @property
    def message(self):
        return self.problem

    @property
    def mark(self):
        return self.problem_mark

    @property
    def location(self):
        if self.problem_mark is None:
            return None
        return Location.from_mark(self.problem_mark)

    @property
    def path(self):
        return self._path

    def _locate(self, mark, path=None):
        if self.problem_mark is None and mark is not None:
            self.problem_mark = mark
        if self._path is None and path is not None:
            self._path = path
        return self

    def __str__(self):
        text = self.problem
        if self.context is not None:
            text = '%s %s' % (self.context, text)
        if self._path is not None and not self._path.is_root():
            text = '%s: %s' % (self._path, text)
        location = self.location
        if location is not None:
            text = '%s at %s' % (text, location)
        return text

    def __repr__(self):
        return '%s(%r)' % (type(self).__name__, str(self))


class ParseSyntaxError(Error):
    kind = ErrorKind.PARSE_SYNTAX


class UnexpectedShapeError(Error):
    kind = ErrorKind.UNEXPECTED_SHAPE


class MissingFieldError(Error):
    kind = ErrorKind.MISSING_FIELD


class UnknownFieldError(Error):
    kind = ErrorKind.UNKNOWN_FIELD


class UnknownVariantError(Error):
    kind = ErrorKind.UNKNOWN_VARIANT


class AmbiguousVariantError(Error):
    kind = ErrorKind.AMBIGUOUS_VARIANT_REPRESENTATION


class NumericRangeError(Error):
    kind = ErrorKind.NUMERIC_RANGE


class NonFiniteNumberError(Error):
    kind = ErrorKind.NON_FINITE_NUMBER


class StreamError(Error):
    """Reading from or writing to the underlying stream failed."""
    kind = ErrorKind.IO


class Utf8Error(Error):
    kind = ErrorKind.UTF8


class EndOfStreamError(Error):
    kind = ErrorKind.END_OF_STREAM


class MoreThanOneDocumentError(Error):
    kind = ErrorKind.MORE_THAN_ONE_DOCUMENT


class RecursionLimitError(Error):
    kind = ErrorKind.RECURSION_LIMIT_EXCEEDED


class RepetitionLimitError(Error):
    kind = ErrorKind.REPETITION_LIMIT_EXCEEDED


class UnknownAnchorError(Error):
    kind = ErrorKind.UNKNOWN_ANCHOR


class DuplicateKeyError(Error):
    kind = ErrorKind.DUPLICATE_KEY


class CustomError(Error):
    kind = ErrorKind.CUSTOM


class EmitterError(Error):
    kind = ErrorKind.EMITTER


def custom(message):
    """Build an error for user hooks (custom variant callbacks, factories)."""
    return CustomError(str(message))


def locate(error, mark, path=None):
    """Attach mark and path to error unless it already has a position."""
    if isinstance(error, Error):
        error._locate(mark, path)
    return error
