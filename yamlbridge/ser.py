"""Serializer writing YAML events to an Emitter.

The Serializer is the sink shapes produce into. Sinks implement:

- ``write_null()``, ``write_bool(value)``, ``write_int(value)``,
  ``write_float(value)``, ``write_str(value)``
- ``write_tagged(tag, shape, value, mode)``: tag the next node
- ``begin_sequence(length)`` returning a writer with
  ``element(shape, value, mode)`` and ``end()``
- ``begin_mapping(length)`` returning a writer with
  ``entry(key_shape, key, value_shape, value, mode)`` and ``end()``

yamlbridge.value_ser.ValueSerializer implements the same methods to
build a Value tree instead of text.
"""

import logging
import math

import yaml

from .de import DEFAULT_RECURSION_LIMIT
from .error import (
    EmitterError, NonFiniteNumberError, RecursionLimitError, StreamError, UnexpectedShapeError,
)
from .events import (
    DocumentEndEvent, DocumentStartEvent, Emitter, MappingEndEvent,
    MappingStartEvent, ScalarEvent, SequenceEndEvent, SequenceStartEvent,
    StreamEndEvent, StreamStartEvent,
)
from .resolver import ambiguous_string, format_float
from .value import Tag

logger = logging.getLogger(__name__)

UNLIMITED_WIDTH = float('inf')


class Serializer:
    """Serialize values as YAML documents onto a stream.

    Args:
        stream: Text stream, or binary stream when encoding is given
        indent: Indentation width (default 2)
        width: Preferred line width (default unlimited)
        allow_unicode: Write non-ASCII characters unescaped
        line_break: Line break to use ('\\n', '\\r' or '\\r\\n')
        encoding: Encode the output, for binary streams
        explicit_start: Always write the '---' document start marker
        explicit_end: Always write the '...' document end marker
        allow_non_finite: Write NaN and infinities as .nan/.inf instead of
            failing with NonFiniteNumberError
        recursion_limit: Maximum nesting of collections
    """

    def __init__(self, stream, indent=None, width=None, allow_unicode=True,
                 line_break=None, encoding=None, explicit_start=None,
                 explicit_end=None, allow_non_finite=False,
                 recursion_limit=DEFAULT_RECURSION_LIMIT):
        self.emitter = Emitter(stream, indent=indent,
                               width=UNLIMITED_WIDTH if width is None else width,
                               allow_unicode=allow_unicode, line_break=line_break)
        self.encoding = encoding
        self.explicit_start = explicit_start
        self.explicit_end = explicit_end
        self.allow_non_finite = allow_non_finite
        self.recursion_limit = recursion_limit
        self.depth = 0
        self.pending_tag = None
        self.documents = 0
        self._opened = False
        self._closed = False

    def emit(self, event):
        try:
            self.emitter.emit(event)
        except yaml.emitter.EmitterError as exc:
            raise EmitterError(str(exc)) from exc
        except OSError as exc:
            raise StreamError(str(exc)) from exc

    def open(self):
        if self._closed:
            raise EmitterError("serializer is closed")
        if self._opened:
            raise EmitterError("serializer is already opened")
        self._opened = True
        self.emit(StreamStartEvent(encoding=self.encoding))

    def close(self):
        if self._closed:
            raise EmitterError("serializer is closed")
        if not self._opened:
            self.open()
        self.emit(StreamEndEvent())
        self._closed = True
        logger.debug("closed serializer after %d document(s)", self.documents)

    def serialize(self, value, shape, mode=None):
        """Write value as one document, described by shape."""
        if self._closed:
            raise EmitterError("serializer is closed")
        if not self._opened:
            self.open()
        self.emit(DocumentStartEvent(explicit=self.explicit_start))
        self.pending_tag = None
        self.depth = 0
        shape.produce(value, self, mode)
        self.emit(DocumentEndEvent(explicit=self.explicit_end))
        self.documents += 1

    def _take_tag(self):
        tag = self.pending_tag
        self.pending_tag = None
        return tag

    def _scalar(self, value, style=None):
        tag = self._take_tag()
        implicit = (True, True) if tag is None else (False, False)
        self.emit(ScalarEvent(None, tag, implicit, value, style=style))

    def write_null(self):
        self._scalar('null')

    def write_bool(self, value):
        self._scalar('true' if value else 'false')

    def write_int(self, value):
        self._scalar(str(int(value)))

    def write_float(self, value):
        if not math.isfinite(value) and not self.allow_non_finite:
            raise NonFiniteNumberError(
                "cannot serialize non-finite float %s" % format_float(value))
        self._scalar(format_float(value))

    def write_str(self, value):
        if '\n' in value:
            style = '|'
        elif ambiguous_string(value):
            style = "'"
        else:
            style = None
        self._scalar(value, style)

    def write_tagged(self, tag, shape, value, mode=None):
        if self.pending_tag is not None:
            raise UnexpectedShapeError("serializing nested enums in YAML is not supported yet")
        self.pending_tag = str(Tag(tag))
        shape.produce(value, self, mode)

    def _enter(self):
        if self.depth >= self.recursion_limit:
            raise RecursionLimitError("recursion limit exceeded")
        self.depth += 1

    def begin_sequence(self, length=None):
        self._enter()
        tag = self._take_tag()
        self.emit(SequenceStartEvent(None, tag, tag is None, flow_style=False))
        return SequenceWriter(self)

    def begin_mapping(self, length=None):
        self._enter()
        tag = self._take_tag()
        self.emit(MappingStartEvent(None, tag, tag is None, flow_style=False))
        return MappingWriter(self)


class SequenceWriter:

    def __init__(self, serializer):
        self.serializer = serializer

    def element(self, shape, value, mode=None):
        shape.produce(value, self.serializer, mode)

    def end(self):
        self.serializer.emit(SequenceEndEvent())
        self.serializer.depth -= 1


class MappingWriter:

    def __init__(self, serializer):
        self.serializer = serializer

    def entry(self, key_shape, key, value_shape, value, mode=None):
        key_shape.produce(key, self.serializer, mode)
        value_shape.produce(value, self.serializer, mode)

    def end(self):
        self.serializer.emit(MappingEndEvent())
        self.serializer.depth -= 1
