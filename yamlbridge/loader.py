"""Split a parse event stream into documents.

Each Document holds the node events of one YAML document with aliases
already resolved to the position of the anchored node, so the
deserializer can replay them.
"""

import logging

from .error import Error, UnknownAnchorError
from .events import (
    AliasEvent, DocumentEndEvent, DocumentStartEvent, EventParser, NodeEvent,
    StreamEndEvent, StreamStartEvent,
)

logger = logging.getLogger(__name__)


class Alias:
    """A resolved alias: index of the anchored node's first event."""

    __slots__ = ('target', 'anchor')

    def __init__(self, target, anchor):
        self.target = target
        self.anchor = anchor

    def __repr__(self):
        return 'Alias(%r)' % self.anchor


class Void:
    """Stands in for the node of an empty stream."""

    def __repr__(self):
        return 'VOID'


VOID = Void()


class Document:
    """Node events of one document.

    Attributes:
        events: List of (event, mark) pairs
        anchors: Anchor name -> index of the most recent node bearing it
        error: Error hit while loading, raised when the document is used
    """

    def __init__(self):
        self.events = []
        self.anchors = {}
        self.error = None

    def is_void(self):
        return len(self.events) == 1 and self.events[0][0] is VOID


class Loader:
    """Loads documents one at a time from YAML text."""

    def __init__(self, text, name='<string>'):
        self.parser = EventParser(text, name)
        self.document_count = 0

    def next_document(self):
        """Return the next Document, or None at the end of the stream."""
        if self.parser is None:
            return None
        first = self.document_count == 0
        document = Document()
        while True:
            try:
                event, mark = self.parser.next_event()
            except Error as exc:
                document.error = exc
                self.parser = None
                return document
            if isinstance(event, StreamStartEvent):
                continue
            if isinstance(event, StreamEndEvent):
                self.parser = None
                if first:
                    document.events.append((VOID, mark))
                    self.document_count += 1
                    return document
                return None
            if isinstance(event, DocumentStartEvent):
                continue
            if isinstance(event, DocumentEndEvent):
                self.document_count += 1
                logger.debug("loaded document %d (%d events)",
                             self.document_count, len(document.events))
                return document
            if isinstance(event, AliasEvent):
                target = document.anchors.get(event.anchor)
                if target is None:
                    document.error = UnknownAnchorError(
                        "unknown anchor %s" % event.anchor, mark=mark)
                    self.parser = None
                    return document
                event = Alias(target, event.anchor)
            elif isinstance(event, NodeEvent) and event.anchor is not None:
                document.anchors[event.anchor] = len(document.events)
            document.events.append((event, mark))

    def __iter__(self):
        while True:
            document = self.next_document()
            if document is None:
                return
            yield document
