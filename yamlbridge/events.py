"""Structural event protocol, backed by PyYAML.

EventParser pulls parse events out of YAML text and pairs each one with a
yamlbridge Mark. Emitter is the PyYAML emitter that turns write events
back into text.
"""

import yaml
from yaml.events import (
    Event, NodeEvent, CollectionStartEvent, CollectionEndEvent,
    StreamStartEvent, StreamEndEvent, DocumentStartEvent, DocumentEndEvent,
    AliasEvent, ScalarEvent, SequenceStartEvent, SequenceEndEvent,
    MappingStartEvent, MappingEndEvent,
)
from yaml.parser import Parser
from yaml.reader import Reader, ReaderError
from yaml.scanner import Scanner

from .error import Mark, ParseSyntaxError

__all__ = [
    'Event', 'NodeEvent', 'CollectionStartEvent', 'CollectionEndEvent',
    'StreamStartEvent', 'StreamEndEvent', 'DocumentStartEvent',
    'DocumentEndEvent', 'AliasEvent', 'ScalarEvent', 'SequenceStartEvent',
    'SequenceEndEvent', 'MappingStartEvent', 'MappingEndEvent',
    'EventParser', 'Emitter',
]


class _EventSource(Reader, Scanner, Parser):

    def __init__(self, stream):
        Reader.__init__(self, stream)
        Scanner.__init__(self)
        Parser.__init__(self)


class EventParser:
    """Pull-style parse events with positions.

    Args:
        text: The YAML source as str
        name: Stream name reported in marks
    """

    def __init__(self, text, name='<string>'):
        self.name = name
        self.text = text
        try:
            self._source = _EventSource(text)
        except yaml.YAMLError as exc:
            raise self._syntax_error(exc) from exc

    def next_event(self):
        """Return the next (event, mark) pair.

        Raises:
            ParseSyntaxError: If the text is not well-formed YAML.
        """
        try:
            event = self._source.get_event()
        except yaml.YAMLError as exc:
            raise self._syntax_error(exc) from exc
        return event, self.mark(event.start_mark)

    def mark(self, mark):
        if mark is None:
            return None
        return Mark(self.name, mark.index, mark.line, mark.column,
                    mark.buffer, mark.pointer)

    def _syntax_error(self, exc):
        if isinstance(exc, yaml.MarkedYAMLError):
            return ParseSyntaxError(exc.problem or exc.context or str(exc),
                                    mark=self.mark(exc.problem_mark or exc.context_mark),
                                    context=exc.context if exc.problem else None,
                                    context_mark=self.mark(exc.context_mark))
        if isinstance(exc, ReaderError):
            return ParseSyntaxError("unacceptable character #x%04x: %s"
                                    % (ord(exc.character), exc.reason),
                                    mark=self._position_mark(exc.position))
        return ParseSyntaxError(str(exc))

    def _position_mark(self, position):
        line = self.text.count('\n', 0, position)
        column = position - (self.text.rfind('\n', 0, position) + 1)
        return Mark(self.name, position, line, column, self.text, position)


class Emitter(yaml.emitter.Emitter):
    """PyYAML emitter with three output adjustments.

    A document holding a single plain scalar is not followed by a ``...``
    end marker, a document holding an empty string gets no explicit ``---``
    start marker, and a tagged scalar whose text can be written plain is
    written plain (``!Newtype 42`` instead of ``!Newtype '42'``).
    """

    @property
    def open_ended(self):
        return False

    @open_ended.setter
    def open_ended(self, value):
        pass

    def check_empty_document(self):
        return False

    def choose_scalar_style(self):
        style = super().choose_scalar_style()
        if style == "'" and not self.event.style and self.event.tag is not None \
                and not self.event.implicit[0] and self._plain_allowed():
            return ''
        return style

    def _plain_allowed(self):
        analysis = self.analysis
        if self.simple_key_context and (analysis.empty or analysis.multiline):
            return False
        if self.flow_level:
            return analysis.allow_flow_plain
        return analysis.allow_block_plain
