"""Node classes for the YAML representation graph.

The parser builds these directly from the token stream; the constructor
turns them into native values and the representer builds them back for the
emitter.
"""


class Node:
    """Base class for YAML nodes."""

    def __init__(self, tag=None, value=None, start_mark=None, end_mark=None, anchor=None):
        self.tag = tag
        self.value = value
        self.start_mark = start_mark
        self.end_mark = end_mark
        self.anchor = anchor

    def __repr__(self):
        value = self.value
        if isinstance(value, list):
            value = '<%d items>' % len(value)
        return '%s(tag=%r, value=%r)' % (self.__class__.__name__, self.tag, value)


class ScalarNode(Node):
    """Scalar node (strings, numbers, etc.).

    ``style`` is None for plain scalars, otherwise one of ``'``, ``"``,
    ``|`` or ``>``.
    """
    id = 'scalar'

    def __init__(self, tag, value, start_mark=None, end_mark=None, style=None, anchor=None):
        super().__init__(tag, value, start_mark, end_mark, anchor)
        self.style = style


class CollectionNode(Node):
    """Base class for collection nodes."""

    def __init__(self, tag, value, start_mark=None, end_mark=None, flow_style=None,
                 anchor=None):
        super().__init__(tag, value, start_mark, end_mark, anchor)
        self.flow_style = flow_style


class SequenceNode(CollectionNode):
    """Sequence node (lists/arrays)."""
    id = 'sequence'


class MappingNode(CollectionNode):
    """Mapping node; ``value`` is a list of ``(key_node, value_node)`` pairs."""
    id = 'mapping'


class AliasNode(Node):
    """Reference to an anchored node; ``value`` is the anchor name."""
    id = 'alias'

    def __init__(self, value, start_mark=None, end_mark=None):
        super().__init__(None, value, start_mark, end_mark)


class Document:
    """One document of a stream: its root node plus directive state."""

    def __init__(self, root, start_mark=None, end_mark=None, version=None, tags=None):
        self.root = root
        self.start_mark = start_mark
        self.end_mark = end_mark
        self.version = version
        self.tags = tags or {}

    def __repr__(self):
        return 'Document(root=%r, version=%r)' % (self.root, self.version)
