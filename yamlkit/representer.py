"""Representer: turns native Python values into node graphs.

The schema picks the type of every value (first matching predicate wins)
and the type's ``represent`` supplies the raw content. Objects reached more
than once map to the same node, which the emitter writes with an anchor and
aliases; with ``no_refs`` shared objects are written out in full instead and
only true cycles are an error.
"""

import functools

from .constructor import TaggedValue
from .error import YAMLError, DepthExceededError
from .nodes import ScalarNode, SequenceNode, MappingNode
from .parser import DEFAULT_MAX_DEPTH
from .schema import SchemaError


YAML_TAG_PREFIX = 'tag:yaml.org,2002:'

COLLECTION_STYLES = {
    'flow': True,
    'block': False,
}


class RepresenterError(YAMLError):
    pass


class UnrepresentableValueError(RepresenterError):
    """No schema type accepts the value."""
    pass


class CircularReferenceError(RepresenterError):
    """A value contains itself and references are disabled."""
    pass


class Representer:
    """Builds node graphs from Python values.

    Args:
        schema: Schema used to pick a type for every value
        sort_keys: False keeps insertion order, True sorts keys, a
            two-argument comparator sorts with that ordering
        no_refs: Write shared objects in full instead of using aliases
        skip_invalid: Drop values no type accepts instead of failing
        styles: Dict mapping tags ('!!int' or full URIs) to style names
        max_depth: Maximum nesting of the value graph
        allow_tagged: Write TaggedValue objects with their own tag
    """

    def __init__(self, schema, sort_keys=False, no_refs=False, skip_invalid=False,
                 styles=None, max_depth=DEFAULT_MAX_DEPTH, allow_tagged=True):
        self.schema = schema
        self.allow_tagged = allow_tagged
        self.sort_keys = sort_keys
        self.no_refs = no_refs
        self.skip_invalid = skip_invalid
        self.max_depth = max_depth
        self.styles = self.compile_styles(styles)
        self.represented_objects = {}
        self.object_keeper = []
        self.path = set()
        self.depth = 0

    def compile_styles(self, styles):
        compiled = {}
        for tag, style in (styles or {}).items():
            if tag.startswith('!!'):
                tag = YAML_TAG_PREFIX + tag[2:]
            yaml_type = self.schema.lookup(tag)
            if yaml_type is not None:
                style = yaml_type.normalize_style(style)
            compiled[tag] = style
        return compiled

    def represent(self, data):
        """Return the root node for ``data``, or None if it was skipped."""
        try:
            return self.represent_data(data)
        finally:
            self.represented_objects = {}
            self.object_keeper = []
            self.path = set()
            self.depth = 0

    def ignore_aliases(self, data):
        """Return True if aliases should not be used for this data."""
        if data is None:
            return True
        if isinstance(data, (str, bytes, bool, int, float)):
            return True
        return False

    def represent_data(self, data):
        if self.ignore_aliases(data):
            alias_key = None
        else:
            alias_key = id(data)
        if alias_key is not None:
            if self.no_refs:
                if alias_key in self.path:
                    raise CircularReferenceError(
                        "cannot represent a circular reference to a %s object"
                        % type(data).__name__)
            elif alias_key in self.represented_objects:
                return self.represented_objects[alias_key]

        if isinstance(data, TaggedValue) and self.allow_tagged:
            yaml_type = None
            tag, kind = data.tag, data.kind
        else:
            yaml_type = self.schema.type_for(data)
            if yaml_type is None:
                if self.skip_invalid:
                    return None
                raise UnrepresentableValueError(
                    "cannot represent an object of type %s: %r" % (type(data).__name__, data))
            tag, kind = yaml_type.tag, yaml_type.kind

        # Only collections count toward the depth, as when parsing.
        collection = kind != 'scalar'
        if collection:
            self.depth += 1
            if self.max_depth is not None and self.depth > self.max_depth:
                raise DepthExceededError(None, None,
                                         "exceeded maximum nesting depth of %d" % self.max_depth,
                                         None)
        # Keep temporaries alive so their ids stay unique during this call.
        self.object_keeper.append(data)
        if alias_key is not None:
            self.path.add(alias_key)
        try:
            if kind == 'scalar':
                node = self.represent_scalar(tag, yaml_type, data)
                if alias_key is not None and not self.no_refs:
                    self.represented_objects[alias_key] = node
            elif kind == 'sequence':
                node = self.represent_sequence(tag, yaml_type, data, alias_key)
            else:
                node = self.represent_mapping(tag, yaml_type, data, alias_key)
        finally:
            self.path.discard(alias_key)
            if collection:
                self.depth -= 1
        return node

    def content(self, yaml_type, data):
        if yaml_type is None:
            return data.value
        try:
            return yaml_type.represent_data(data, self.styles.get(yaml_type.tag))
        except SchemaError as exc:
            raise RepresenterError(str(exc)) from exc
        except ValueError as exc:
            raise RepresenterError("cannot represent !<%s>: %s" % (yaml_type.tag, exc)) from exc

    def flow_style(self, tag):
        return COLLECTION_STYLES.get(self.styles.get(tag))

    def represent_scalar(self, tag, yaml_type, data):
        value = self.content(yaml_type, data)
        if not isinstance(value, str):
            value = str(value)
        return ScalarNode(tag, value)

    def represent_sequence(self, tag, yaml_type, data, alias_key):
        value = []
        node = SequenceNode(tag, value, flow_style=self.flow_style(tag))
        if alias_key is not None and not self.no_refs:
            self.represented_objects[alias_key] = node
        items = self.content(yaml_type, data)
        self.object_keeper.append(items)
        for item in items:
            item_node = self.represent_data(item)
            if item_node is not None:
                value.append(item_node)
        return node

    def represent_mapping(self, tag, yaml_type, data, alias_key):
        value = []
        node = MappingNode(tag, value, flow_style=self.flow_style(tag))
        if alias_key is not None and not self.no_refs:
            self.represented_objects[alias_key] = node
        pairs = self.content(yaml_type, data)
        if isinstance(pairs, dict):
            pairs = pairs.items()
        pairs = self.sort_pairs(list(pairs))
        self.object_keeper.append(pairs)
        for key, item in pairs:
            key_node = self.represent_data(key)
            if key_node is None:
                continue
            item_node = self.represent_data(item)
            if item_node is None:
                continue
            value.append((key_node, item_node))
        return node

    def sort_pairs(self, pairs):
        if callable(self.sort_keys):
            compare = self.sort_keys
            return sorted(pairs, key=functools.cmp_to_key(lambda a, b: compare(a[0], b[0])))
        if self.sort_keys:
            try:
                return sorted(pairs, key=lambda pair: pair[0])
            except TypeError:
                return sorted(pairs, key=lambda pair: str(pair[0]))
        return pairs
