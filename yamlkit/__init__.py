"""YAML loading and dumping in pure Python.

Usage:
    import yamlkit

    data = yamlkit.safe_load("foo: bar")
    output = yamlkit.safe_dump({"foo": "bar"})

Supported API:
    - load(stream, Loader, **options) / safe_load(stream, **options)
    - load_all(stream, callback, Loader, **options) / safe_load_all(...)
    - dump(data, stream, Dumper, **options) / safe_dump(data, stream, **options)
    - dump_all(documents, stream, Dumper, **options) / safe_dump_all(...)
    - scan, parse, parse_all, compose, serialize for the individual stages
    - BaseLoader, SafeLoader, Loader, SafeDumper, Dumper

Loading runs scanner -> parser -> constructor; dumping runs
representer -> emitter. Every stage raises a subclass of YAMLError.
"""

import codecs
import logging

from yamlkit.error import YAMLError, MarkedYAMLError, Mark, DepthExceededError, YAMLWarning
from yamlkit.scanner import Scanner, ScannerError
from yamlkit.parser import Parser, ParserError, DEFAULT_MAX_DEPTH
from yamlkit.nodes import (
    Node, ScalarNode, SequenceNode, MappingNode, AliasNode, Document,
)
from yamlkit.tokens import *
from yamlkit.schema import YAMLType, Schema, SchemaError
from yamlkit.resolver import FAILSAFE_SCHEMA, JSON_SCHEMA, CORE_SCHEMA, DEFAULT_SCHEMA
from yamlkit.constructor import (
    Constructor, ConstructorError, UnresolvedTagError, AliasNotFoundError, TaggedValue,
)
from yamlkit.representer import (
    Representer, RepresenterError, UnrepresentableValueError, CircularReferenceError,
)
from yamlkit.emitter import Emitter, EmitterError

__version__ = '0.1.0'

logger = logging.getLogger(__name__)

DEFAULT_STREAM_NAME = '<unicode string>'


def _decode_bytes_stream(stream):
    """Decode bytes stream to string, handling BOM markers.

    UTF-16-BE and UTF-16-LE need a BOM; anything else is read as UTF-8.

    Returns:
        Decoded string

    Raises:
        YAMLError: If the bytes are not valid in the detected encoding
    """
    if isinstance(stream, (bytes, bytearray)):
        stream = bytes(stream)
        try:
            if stream.startswith(codecs.BOM_UTF16_BE):
                logger.debug("decoding stream as UTF-16-BE")
                return stream[len(codecs.BOM_UTF16_BE):].decode('utf-16-be')
            elif stream.startswith(codecs.BOM_UTF16_LE):
                logger.debug("decoding stream as UTF-16-LE")
                return stream[len(codecs.BOM_UTF16_LE):].decode('utf-16-le')
            elif stream.startswith(codecs.BOM_UTF8):
                return stream[len(codecs.BOM_UTF8):].decode('utf-8')
            else:
                return stream.decode('utf-8')
        except UnicodeError as e:
            raise YAMLError("failed to decode stream: %s" % e) from e
    return stream


def _read_stream(stream):
    """Return the text of a str, bytes or file-like stream."""
    if hasattr(stream, 'read'):
        stream = stream.read()
    stream = _decode_bytes_stream(stream)
    if stream is None:
        return ''
    if not isinstance(stream, str):
        raise TypeError("expected a str, bytes or file-like stream, not %s"
                        % type(stream).__name__)
    # A BOM in a text stream carries no content.
    if stream.startswith('\ufeff'):
        stream = stream[1:]
    return stream


def _stream_name(stream, filename):
    if filename is not None:
        return filename
    name = getattr(stream, 'name', None)
    if isinstance(name, str):
        return name
    return DEFAULT_STREAM_NAME


def _check_options(cls, options):
    for name in options:
        if name not in cls.OPTIONS:
            raise TypeError("%s got an unexpected option %r" % (cls.__name__, name))


class BaseLoader:
    """Loads documents with the failsafe schema: strings, lists and dicts.

    Class attributes hold the defaults; keyword options passed to the
    constructor override them for one load.
    """

    OPTIONS = ('schema', 'filename', 'on_warning', 'allow_duplicate_keys', 'max_depth')

    schema = FAILSAFE_SCHEMA
    strict_tags = False
    allow_duplicate_keys = True
    max_depth = DEFAULT_MAX_DEPTH
    on_warning = None

    def __init__(self, stream, **options):
        _check_options(type(self), options)
        name = _stream_name(stream, options.pop('filename', None))
        for key, value in options.items():
            if value is not None:
                setattr(self, key, value)
        self.name = name
        self.scanner = Scanner(_read_stream(stream), name)
        self.parser = Parser(self.scanner, on_warning=self.on_warning,
                             max_depth=self.max_depth)
        self.constructor = Constructor(self.schema, strict_tags=self.strict_tags,
                                       on_warning=self.on_warning,
                                       allow_duplicate_keys=self.allow_duplicate_keys)

    def get_single_node(self):
        """Return the root node of the first document, or None."""
        document = self.parser.parse()
        if document is None:
            return None
        return document.root

    def get_single_data(self):
        """Construct the first document, or None for an empty stream."""
        document = self.parser.parse()
        if document is None:
            return None
        return self.constructor.construct_document(document)

    def get_all_data(self):
        """Yield the constructed value of every document in turn."""
        for document in self.parser.parse_all():
            yield self.constructor.construct_document(document)


class SafeLoader(BaseLoader):
    """Loads the default schema; unknown tags are an error."""

    schema = DEFAULT_SCHEMA
    strict_tags = True


class Loader(SafeLoader):
    """Loads the default schema; unknown tags are kept as TaggedValue."""

    strict_tags = False


class SafeDumper:
    """Dumps values of the default schema types.

    Class attributes hold the defaults; keyword options passed to the
    constructor override them for one dump.
    """

    OPTIONS = (
        'schema', 'indent', 'width', 'flow_level', 'sort_keys', 'no_refs',
        'skip_invalid', 'styles', 'no_compat_mode', 'condense_flow',
        'no_array_indent', 'explicit_start', 'max_depth',
    )

    schema = DEFAULT_SCHEMA
    indent = 2
    width = 80
    flow_level = -1
    sort_keys = False
    no_refs = False
    skip_invalid = False
    styles = None
    no_compat_mode = False
    condense_flow = False
    no_array_indent = False
    explicit_start = False
    max_depth = DEFAULT_MAX_DEPTH
    allow_tagged = False

    def __init__(self, **options):
        _check_options(type(self), options)
        for key, value in options.items():
            if value is not None:
                setattr(self, key, value)
        self.representer = Representer(self.schema, sort_keys=self.sort_keys,
                                       no_refs=self.no_refs,
                                       skip_invalid=self.skip_invalid,
                                       styles=self.styles, max_depth=self.max_depth,
                                       allow_tagged=self.allow_tagged)
        self.emitter = Emitter(self.schema, indent=self.indent, width=self.width,
                               flow_level=self.flow_level,
                               no_compat_mode=self.no_compat_mode,
                               condense_flow=self.condense_flow,
                               no_array_indent=self.no_array_indent)

    def represent(self, data):
        return self.representer.represent(data)

    def serialize(self, node):
        return self.emitter.emit(node)

    def dump_document(self, data):
        """Return the text of one document, '' if the value was skipped."""
        return self.serialize(self.represent(data))


class Dumper(SafeDumper):
    """Dumps the default schema types and TaggedValue objects."""

    allow_tagged = True


def _write(text, stream):
    if stream is None:
        return text
    stream.write(text)
    return None


# Loading.

def scan(stream, filename=None):
    """Return an iterator over the tokens of a YAML stream."""
    return iter(Scanner(_read_stream(stream), _stream_name(stream, filename)))


def parse_all(stream, filename=None, on_warning=None, max_depth=DEFAULT_MAX_DEPTH):
    """Yield a Document for every document in the stream."""
    scanner = Scanner(_read_stream(stream), _stream_name(stream, filename))
    parser = Parser(scanner, on_warning=on_warning, max_depth=max_depth)
    return parser.parse_all()


def parse(stream, filename=None, on_warning=None, max_depth=DEFAULT_MAX_DEPTH):
    """Return the first Document of the stream, or None if there is none."""
    scanner = Scanner(_read_stream(stream), _stream_name(stream, filename))
    return Parser(scanner, on_warning=on_warning, max_depth=max_depth).parse()


def compose(stream, Loader=None, **options):
    """Parse YAML stream and return the root node of the first document.

    Returns:
        A ScalarNode, SequenceNode, or MappingNode, or None for an empty
        stream
    """
    if Loader is None:
        Loader = SafeLoader
    return Loader(stream, **options).get_single_node()


def load(stream, Loader=None, **options):
    """Parse YAML stream and return the value of its first document.

    Args:
        stream: String, bytes or file-like object containing YAML
        Loader: Loader class, SafeLoader by default
        **options: schema, filename, on_warning, allow_duplicate_keys,
            max_depth

    Returns:
        Python object, or None for an empty stream

    Raises:
        YAMLError: If the stream cannot be decoded, scanned, parsed or
            constructed

    Example:
        >>> load("foo: bar")
        {'foo': 'bar'}
    """
    if Loader is None:
        Loader = SafeLoader
    return Loader(stream, **options).get_single_data()


def safe_load(stream, **options):
    """Parse YAML stream with SafeLoader and return Python object.

    Example:
        >>> safe_load("foo: bar")
        {'foo': 'bar'}
    """
    return load(stream, SafeLoader, **options)


def load_all(stream, callback=None, Loader=None, **options):
    """Parse all YAML documents in stream.

    Without a callback, returns a generator of the document values. With a
    callback, calls it with each value in turn and returns None.

    Example:
        >>> list(load_all("---\\nfoo: 1\\n---\\nbar: 2\\n"))
        [{'foo': 1}, {'bar': 2}]
    """
    if Loader is None:
        Loader = SafeLoader
    documents = Loader(stream, **options).get_all_data()
    if callback is None:
        return documents
    for data in documents:
        callback(data)
    return None


def safe_load_all(stream, callback=None, **options):
    """Parse all YAML documents in stream with SafeLoader."""
    return load_all(stream, callback, SafeLoader, **options)


# Dumping.

def serialize(node, stream=None, Dumper=None, **options):
    """Emit a node graph as a YAML document.

    Returns the text when ``stream`` is None, otherwise writes it there.
    """
    if Dumper is None:
        Dumper = SafeDumper
    text = Dumper(**options).serialize(node)
    return _write(text, stream)


def dump(data, stream=None, Dumper=None, **options):
    """Serialize a Python object to YAML.

    Args:
        data: Python object to serialize
        stream: Optional file-like object to write to
        Dumper: Dumper class, SafeDumper by default
        **options: schema, indent, width, flow_level, sort_keys, no_refs,
            skip_invalid, styles, no_compat_mode, condense_flow,
            no_array_indent, explicit_start, max_depth

    Returns:
        YAML string if stream is None, otherwise None

    Example:
        >>> dump({"foo": "bar"})
        'foo: bar\\n'
    """
    return dump_all([data], stream, Dumper, **options)


def safe_dump(data, stream=None, **options):
    """Serialize a Python object to YAML with SafeDumper."""
    return dump_all([data], stream, SafeDumper, **options)


def dump_all(documents, stream=None, Dumper=None, **options):
    """Serialize a sequence of Python objects as a multi-document stream.

    Documents are separated by '---' lines; with ``explicit_start`` every
    document starts with one.
    """
    if Dumper is None:
        Dumper = SafeDumper
    dumper = Dumper(**options)
    chunks = []
    for index, data in enumerate(documents):
        text = dumper.dump_document(data)
        if dumper.explicit_start or index > 0:
            chunks.append('---\n')
        chunks.append(text)
    return _write(''.join(chunks), stream)


def safe_dump_all(documents, stream=None, **options):
    """Serialize a sequence of Python objects with SafeDumper."""
    return dump_all(documents, stream, SafeDumper, **options)


__all__ = [
    # Loading
    'load', 'safe_load', 'load_all', 'safe_load_all',
    'scan', 'parse', 'parse_all', 'compose',
    # Dumping
    'dump', 'safe_dump', 'dump_all', 'safe_dump_all', 'serialize',
    # Loader / Dumper classes
    'BaseLoader', 'SafeLoader', 'Loader', 'SafeDumper', 'Dumper',
    # Stages
    'Scanner', 'Parser', 'Constructor', 'Representer', 'Emitter',
    # Schemas
    'YAMLType', 'Schema', 'FAILSAFE_SCHEMA', 'JSON_SCHEMA', 'CORE_SCHEMA', 'DEFAULT_SCHEMA',
    # Values and nodes
    'TaggedValue', 'Node', 'ScalarNode', 'SequenceNode', 'MappingNode', 'AliasNode',
    'Document', 'Mark',
    # Errors
    'YAMLError', 'MarkedYAMLError', 'ScannerError', 'ParserError', 'ConstructorError',
    'UnresolvedTagError', 'AliasNotFoundError', 'DepthExceededError', 'YAMLWarning',
    'SchemaError', 'RepresenterError', 'UnrepresentableValueError',
    'CircularReferenceError', 'EmitterError',
]
