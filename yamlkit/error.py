"""Error and position reporting shared by every stage.

Provides Mark, YAMLError, MarkedYAMLError and the warning channel used for
recoverable anomalies.
"""

import logging

logger = logging.getLogger(__name__)


class Mark:
    """Represents a position in a YAML stream.

    Attributes:
        name: The name of the stream (e.g., filename or '<unicode string>')
        index: Character index in the stream
        line: Line number (0-indexed)
        column: Column number (0-indexed)
        buffer: Optional buffer containing the source
        pointer: Optional pointer into the buffer
    """

    __slots__ = ('name', 'index', 'line', 'column', 'buffer', 'pointer')

    def __init__(self, name, index, line, column, buffer=None, pointer=None):
        self.name = name
        self.index = index
        self.line = line
        self.column = column
        self.buffer = buffer
        self.pointer = pointer

    def get_snippet(self, indent=4, max_length=75):
        """Return a snippet of the source at this mark."""
        if self.buffer is None:
            return None

        head = ''
        start = self.pointer
        while start > 0 and self.buffer[start - 1] not in '\0\r\n\x85\u2028\u2029':
            start -= 1
            if self.pointer - start > max_length / 2 - 1:
                head = ' ... '
                start += 5
                break

        tail = ''
        end = self.pointer
        while end < len(self.buffer) and self.buffer[end] not in '\0\r\n\x85\u2028\u2029':
            end += 1
            if end - self.pointer > max_length / 2 - 1:
                tail = ' ... '
                end -= 5
                break

        snippet = self.buffer[start:end]
        return ' ' * indent + head + snippet + tail + '\n' + \
               ' ' * (indent + self.pointer - start + len(head)) + '^'

    def __str__(self):
        snippet = self.get_snippet()
        where = "  in \"%s\", line %d, column %d" % (self.name, self.line + 1, self.column + 1)
        if snippet is not None:
            where += ":\n" + snippet
        return where

    def __repr__(self):
        return '<Mark %s:%d:%d>' % (self.name, self.line + 1, self.column + 1)


class YAMLError(Exception):
    """Base exception for YAML errors."""
    pass


class MarkedYAMLError(YAMLError):
    """YAML error with position marks.

    Attributes:
        context: Description of the parsing context
        context_mark: Mark pointing to the context
        problem: Description of the problem
        problem_mark: Mark pointing to the problem
        note: Additional note about the error
        kind: Short machine-readable name of the fault, such as
            'bad_indentation' or 'duplicate_key'
    """

    kind = None

    def __init__(self, context=None, context_mark=None,
                 problem=None, problem_mark=None, note=None, kind=None):
        super().__init__(problem if problem is not None else context)
        if kind is not None:
            self.kind = kind
        self.context = context
        self.context_mark = context_mark
        self.problem = problem
        self.problem_mark = problem_mark
        self.note = note

    @property
    def reason(self):
        """Short description of the fault without position information."""
        if self.problem is not None:
            return self.problem
        return self.context

    @property
    def mark(self):
        """The most specific mark attached to the error."""
        if self.problem_mark is not None:
            return self.problem_mark
        return self.context_mark

    def __str__(self):
        lines = []
        if self.context is not None:
            lines.append(self.context)
        if self.context_mark is not None \
                and (self.problem is None or self.problem_mark is None
                     or self.context_mark.name != self.problem_mark.name
                     or self.context_mark.line != self.problem_mark.line
                     or self.context_mark.column != self.problem_mark.column):
            lines.append(str(self.context_mark))
        if self.problem is not None:
            lines.append(self.problem)
        if self.problem_mark is not None:
            lines.append(str(self.problem_mark))
        if self.note is not None:
            lines.append(self.note)
        return '\n'.join(lines)


class DepthExceededError(MarkedYAMLError):
    """Nesting of the document or value graph is deeper than allowed."""
    kind = 'depth_exceeded'


class YAMLWarning(MarkedYAMLError):
    """Recoverable anomaly handed to an ``on_warning`` callback.

    The callback may raise the warning (or any other exception) to turn the
    anomaly into a fatal error.
    """
    kind = 'warning'


def report_warning(on_warning, context, context_mark, problem, problem_mark, kind=None):
    """Route a recoverable anomaly to ``on_warning``, or log it."""
    warning = YAMLWarning(context, context_mark, problem, problem_mark, kind=kind)
    if on_warning is None:
        logger.debug("ignoring YAML warning: %s", warning)
        return
    on_warning(warning)
