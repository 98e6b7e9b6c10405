"""Type descriptors and the ordered schema registry.

A schema is consulted in both directions: the constructor uses ``resolve``
and ``construct`` to turn nodes into values, and the representer uses
``predicate`` and ``represent`` to pick a tag and raw content for a value.
Descriptor order is significant, the first match wins either way.
"""

from .error import YAMLError


KINDS = ('scalar', 'sequence', 'mapping')

DEFAULT_SCALAR_TAG = 'tag:yaml.org,2002:str'
DEFAULT_SEQUENCE_TAG = 'tag:yaml.org,2002:seq'
DEFAULT_MAPPING_TAG = 'tag:yaml.org,2002:map'

DEFAULT_TAGS = {
    'scalar': DEFAULT_SCALAR_TAG,
    'sequence': DEFAULT_SEQUENCE_TAG,
    'mapping': DEFAULT_MAPPING_TAG,
}


class SchemaError(YAMLError):
    """Invalid type descriptor or schema definition."""
    pass


class YAMLType:
    """Describes how one tag is loaded and dumped.

    Args:
        tag: Full tag URI, e.g. 'tag:yaml.org,2002:int'
        kind: 'scalar', 'sequence' or 'mapping'
        resolve: Predicate over the raw node data (scalar text, list of item
            nodes or list of key/value node pairs)
        construct: ``construct(constructor, node)`` returning the native
            value, or a generator yielding the empty container first and
            filling it afterwards
        predicate: Dump-direction test, is ``data`` an instance of this type
        represent: Callable ``represent(data)``, or a dict mapping style
            names to such callables
        default_style: Style used when ``represent`` is a dict and no
            override is configured
        style_aliases: Dict mapping style names to sequences of aliases
        implicit: Whether plain untagged scalars may resolve to this type
    """

    def __init__(self, tag, kind, resolve=None, construct=None, predicate=None,
                 represent=None, default_style=None, style_aliases=None,
                 implicit=False):
        if kind not in KINDS:
            raise SchemaError("unknown kind %r for tag %r" % (kind, tag))
        self.tag = tag
        self.kind = kind
        self.resolve = resolve if resolve is not None else _accept_any
        self.construct = construct
        self.predicate = predicate
        self.represent = represent
        self.default_style = default_style
        self.implicit = implicit
        self.style_aliases = {}
        for style, aliases in (style_aliases or {}).items():
            for alias in aliases:
                self.style_aliases[str(alias)] = style

    def normalize_style(self, style):
        """Map a style alias (e.g. 'hex' or 16) to its canonical name."""
        if style is None:
            return self.default_style
        return self.style_aliases.get(str(style), style)

    def represent_data(self, data, style=None):
        """Return the raw content of ``data`` in the requested style."""
        if self.represent is None:
            return data
        if isinstance(self.represent, dict):
            style = self.normalize_style(style)
            if style not in self.represent:
                raise SchemaError("!<%s> tag resolver accepts not %r style"
                                  % (self.tag, style))
            return self.represent[style](data)
        return self.represent(data)

    def __repr__(self):
        return '<YAMLType %s (%s)>' % (self.tag, self.kind)


def _accept_any(data):
    return True


class Schema:
    """Ordered, immutable registry of YAMLType descriptors.

    Args:
        types: Iterable of YAMLType, in precedence order
        include: Schemas whose types come first, in order
    """

    def __init__(self, types=(), include=()):
        ordered = []
        for schema in include:
            ordered.extend(schema.types)
        ordered.extend(types)

        by_tag = {}
        for yaml_type in ordered:
            if not isinstance(yaml_type, YAMLType):
                raise SchemaError("schema entries must be YAMLType instances, not %r"
                                  % (yaml_type,))
            if yaml_type.tag in by_tag:
                raise SchemaError("duplicate tag %r in schema" % yaml_type.tag)
            by_tag[yaml_type.tag] = yaml_type

        self._types = tuple(ordered)
        self._by_tag = by_tag
        self._implicit = {
            kind: tuple(t for t in ordered if t.implicit and t.kind == kind)
            for kind in KINDS
        }
        self._represented = tuple(t for t in ordered if t.predicate is not None)

    @property
    def types(self):
        return self._types

    def extend(self, types):
        """Return a new schema with ``types`` appended."""
        return Schema(types, include=(self,))

    def lookup(self, tag):
        return self._by_tag.get(tag)

    def is_implicit(self, tag):
        yaml_type = self._by_tag.get(tag)
        return yaml_type is not None and yaml_type.implicit

    def resolve_implicit(self, kind, data):
        """Return the first implicit type of ``kind`` accepting ``data``."""
        for yaml_type in self._implicit[kind]:
            if yaml_type.resolve(data):
                return yaml_type
        return None

    def default_type(self, kind):
        """The fallback type for untagged nodes of ``kind``, if registered."""
        return self._by_tag.get(DEFAULT_TAGS[kind])

    def type_for(self, data):
        """Return the first type whose predicate accepts ``data``."""
        for yaml_type in self._represented:
            if yaml_type.predicate(data):
                return yaml_type
        return None

    def __contains__(self, tag):
        return tag in self._by_tag

    def __iter__(self):
        return iter(self._types)

    def __len__(self):
        return len(self._types)

    def __repr__(self):
        return '<Schema %s>' % ', '.join(t.tag for t in self._types)
