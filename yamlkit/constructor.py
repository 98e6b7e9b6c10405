"""Constructor: turns document node trees into native Python values.

Every node is resolved to exactly one schema type: explicit tags are looked
up directly, untagged plain scalars go through the schema's implicit
resolvers in order, and everything else falls back to the str/seq/map types.

Anchors live in a document-scoped table of slots. A slot is registered as
pending before an anchored node is built and receives the container as soon
as the type's generator yields it, so aliases inside the node's own subtree
resolve to the same shared object.
"""

import types

from .error import MarkedYAMLError, report_warning


MERGE_TAG = 'tag:yaml.org,2002:merge'
BOOL_TAG = 'tag:yaml.org,2002:bool'

# Plain scalars that YAML 1.1 would have loaded as booleans.
YAML11_BOOLEANS = frozenset([
    'y', 'Y', 'yes', 'Yes', 'YES', 'n', 'N', 'no', 'No', 'NO',
    'on', 'On', 'ON', 'off', 'Off', 'OFF',
])


class ConstructorError(MarkedYAMLError):
    """YAML constructor error."""
    kind = 'construct'


class UnresolvedTagError(ConstructorError):
    """Explicit tag with no matching type in the schema."""
    kind = 'unresolved_tag'


class AliasNotFoundError(ConstructorError):
    """Alias referring to an anchor that was not defined earlier."""
    kind = 'alias_not_found'

    def __init__(self, anchor, mark):
        super().__init__(None, None, "unidentified alias %r" % anchor, mark)
        self.anchor = anchor


class TaggedValue:
    """Value of a node whose tag the schema does not know.

    Produced by permissive loaders; the dumper writes it back with its
    original tag.
    """

    def __init__(self, tag, value, kind='scalar'):
        self.tag = tag
        self.value = value
        self.kind = kind

    def __eq__(self, other):
        if not isinstance(other, TaggedValue):
            return NotImplemented
        return (self.tag, self.kind, self.value) == (other.tag, other.kind, other.value)

    def __hash__(self):
        return hash((self.tag, self.kind))

    def __repr__(self):
        return 'TaggedValue(%r, %r)' % (self.tag, self.value)


class _Pending:
    """Marks an anchor slot whose node is still being constructed."""

    def __repr__(self):
        return '<pending>'


PENDING = _Pending()


class Constructor:
    """Builds native values from Document node trees.

    Args:
        schema: Schema used for tag resolution
        strict_tags: Raise UnresolvedTagError for unknown tags instead of
            producing TaggedValue objects
        on_warning: Callable receiving a YAMLWarning for recoverable
            anomalies; raising from it makes the anomaly fatal
        allow_duplicate_keys: Let later mapping keys overwrite earlier ones
            (reported as a warning) instead of failing
    """

    def __init__(self, schema, strict_tags=True, on_warning=None,
                 allow_duplicate_keys=True):
        self.schema = schema
        self.strict_tags = strict_tags
        self.on_warning = on_warning
        self.allow_duplicate_keys = allow_duplicate_keys
        self.anchors = {}
        self.slots = []

    def construct_document(self, document):
        """Construct the native value of a Document."""
        self.anchors = {}
        self.slots = []
        try:
            return self.construct_object(document.root)
        finally:
            self.anchors = {}
            self.slots = []

    def construct_object(self, node):
        """Construct a Python object from a node, dispatching by tag."""
        if node.id == 'alias':
            return self.construct_alias(node)

        slot = None
        if node.anchor is not None:
            # Redefinition points the name at a fresh slot.
            slot = len(self.slots)
            self.slots.append(PENDING)
            self.anchors[node.anchor] = slot

        yaml_type = self.resolve_type(node)
        if yaml_type is None:
            construct = construct_tagged_value
        elif yaml_type.construct is None:
            construct = construct_untyped
        else:
            construct = yaml_type.construct

        try:
            data = construct(self, node)
            if isinstance(data, types.GeneratorType):
                generator = data
                data = next(generator)
                if slot is not None:
                    self.slots[slot] = data
                for dummy in generator:
                    pass
        except ValueError as exc:
            raise ConstructorError(None, None,
                                   "cannot construct !<%s>: %s" % (node.tag or yaml_type.tag, exc),
                                   node.start_mark, kind='invalid_value') from exc

        if slot is not None:
            self.slots[slot] = data
        return data

    def construct_alias(self, node):
        index = self.anchors.get(node.value)
        if index is None:
            raise AliasNotFoundError(node.value, node.start_mark)
        data = self.slots[index]
        if data is PENDING:
            raise ConstructorError(None, None,
                                   "found unconstructable recursive node", node.start_mark,
                                   kind='recursive_node')
        return data

    def resolve_type(self, node):
        """Return the schema type of ``node``.

        Returns None for an unknown explicit tag in permissive mode.
        """
        tag = node.tag
        if tag is None or tag == '!':
            yaml_type = None
            if tag is None and (node.id != 'scalar' or node.style is None):
                yaml_type = self.schema.resolve_implicit(node.id, node.value)
            if yaml_type is None:
                yaml_type = self.schema.default_type(node.id)
                if yaml_type is None:
                    raise ConstructorError(None, None,
                                           "schema has no type for untagged %s nodes" % node.id,
                                           node.start_mark)
                if tag is None and node.id == 'scalar' and node.style is None \
                        and node.value in YAML11_BOOLEANS and BOOL_TAG in self.schema:
                    report_warning(self.on_warning, None, None,
                                   "deprecated boolean syntax %r loaded as a string"
                                   % node.value, node.start_mark,
                                   kind='deprecated_boolean')
            return yaml_type

        yaml_type = self.schema.lookup(tag)
        if yaml_type is None:
            if self.strict_tags:
                raise UnresolvedTagError(None, None, "unknown tag !<%s>" % tag,
                                         node.start_mark)
            return None
        if yaml_type.kind != node.id:
            raise ConstructorError(None, None,
                                   "unacceptable node kind for !<%s> tag; it should be %r, not %r"
                                   % (tag, yaml_type.kind, node.id), node.start_mark,
                                   kind='kind_mismatch')
        if not yaml_type.resolve(node.value):
            raise ConstructorError(None, None,
                                   "cannot resolve a node with !<%s> explicit tag" % tag,
                                   node.start_mark, kind='unresolvable_tag')
        return yaml_type

    def is_merge_key(self, key_node):
        if key_node.id != 'scalar':
            return False
        if key_node.tag is None:
            if key_node.style is not None:
                return False
            yaml_type = self.schema.resolve_implicit('scalar', key_node.value)
            return yaml_type is not None and yaml_type.tag == MERGE_TAG
        return key_node.tag == MERGE_TAG and MERGE_TAG in self.schema

    def construct_key(self, key_node, mapping_node):
        """Construct a mapping key, turning sequences into tuples."""
        key = self.construct_object(key_node)
        if isinstance(key, list):
            key = _freeze(key)
        try:
            hash(key)
        except TypeError as exc:
            raise ConstructorError("while constructing a mapping", mapping_node.start_mark,
                                   "found unhashable key", key_node.start_mark,
                                   kind='unhashable_key') from exc
        return key

    def fill_sequence(self, node, data):
        for child in node.value:
            data.append(self.construct_object(child))

    def fill_mapping(self, node, data):
        """Construct the pairs of ``node`` into the dict ``data``.

        Merge keys contribute pairs that never override keys set explicitly;
        among several merge sources the earlier one wins.
        """
        overridable = set()
        for key_node, value_node in node.value:
            if self.is_merge_key(key_node):
                self.merge_into(node, value_node, data, overridable)
                continue
            key = self.construct_key(key_node, node)
            value = self.construct_object(value_node)
            if key in data and key not in overridable:
                if not self.allow_duplicate_keys:
                    raise ConstructorError("while constructing a mapping", node.start_mark,
                                           "found duplicated key %r" % (key,),
                                           key_node.start_mark, kind='duplicate_key')
                report_warning(self.on_warning, "while constructing a mapping",
                               node.start_mark, "found duplicated key %r" % (key,),
                               key_node.start_mark, kind='duplicate_key')
            overridable.discard(key)
            data[key] = value

    def merge_into(self, node, value_node, data, overridable):
        source = self.construct_object(value_node)
        if isinstance(source, dict):
            sources = [source]
        elif isinstance(source, list) and all(isinstance(item, dict) for item in source):
            sources = source
        else:
            raise ConstructorError("while constructing a mapping", node.start_mark,
                                   "expected a mapping or list of mappings for merging",
                                   value_node.start_mark, kind='invalid_merge')
        for source in sources:
            for key, value in source.items():
                if key not in data:
                    data[key] = value
                    overridable.add(key)


def _freeze(value):
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


def construct_untyped(constructor, node):
    """Construct a node as plain text, list or dict."""
    if node.id == 'scalar':
        return node.value
    return _construct_untyped_collection(constructor, node)


def _construct_untyped_collection(constructor, node):
    if node.id == 'sequence':
        data = []
        yield data
        constructor.fill_sequence(node, data)
    else:
        data = {}
        yield data
        constructor.fill_mapping(node, data)


def construct_tagged_value(constructor, node):
    """Wrap the generic value of a node with an unknown tag."""
    default_type = constructor.schema.default_type(node.id)
    construct = construct_untyped
    if default_type is not None and default_type.construct is not None:
        construct = default_type.construct
    result = construct(constructor, node)
    if isinstance(result, types.GeneratorType):
        value = next(result)
        yield TaggedValue(node.tag, value, node.id)
        for dummy in result:
            pass
    else:
        yield TaggedValue(node.tag, result, node.id)
