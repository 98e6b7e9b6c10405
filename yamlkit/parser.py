"""Parser: builds document node trees from a token stream.

The grammar is handled by recursive descent, one method per production.
Directives are processed at the start of every document; tag handles they
declare are expanded while the nodes are built and are forgotten at the next
document.
"""

from .error import MarkedYAMLError, DepthExceededError, report_warning
from .nodes import ScalarNode, SequenceNode, MappingNode, AliasNode, Document
from .tokens import (
    StreamStartToken, StreamEndToken, DirectiveToken,
    DocumentStartToken, DocumentEndToken,
    BlockSequenceStartToken, BlockMappingStartToken, BlockEndToken,
    FlowSequenceStartToken, FlowMappingStartToken,
    FlowSequenceEndToken, FlowMappingEndToken,
    KeyToken, ValueToken, BlockEntryToken, FlowEntryToken,
    AliasToken, AnchorToken, TagToken, ScalarToken,
)


DEFAULT_TAGS = {
    '!': '!',
    '!!': 'tag:yaml.org,2002:',
}

DEFAULT_MAX_DEPTH = 128


class ParserError(MarkedYAMLError):
    """YAML parser error (grammar phase)."""
    kind = 'syntax'


class TokenBuffer:
    """Gives any iterable of tokens the scanner's check/peek/get interface."""

    def __init__(self, tokens):
        self._tokens = iter(tokens)
        self._next = None
        self._loaded = False

    def peek_token(self):
        if not self._loaded:
            self._next = next(self._tokens, None)
            self._loaded = True
        return self._next

    def get_token(self):
        token = self.peek_token()
        self._loaded = False
        return token

    def check_token(self, *choices):
        token = self.peek_token()
        if token is None:
            return False
        if not choices:
            return True
        return isinstance(token, choices)


class Parser:
    """Recursive-descent YAML parser.

    Args:
        tokens: A Scanner, or any iterable of tokens starting with a
            StreamStartToken
        on_warning: Callable receiving a YAMLWarning for recoverable
            anomalies (unknown directives, unsupported minor versions)
        max_depth: Maximum collection nesting before DepthExceededError
    """

    def __init__(self, tokens, on_warning=None, max_depth=DEFAULT_MAX_DEPTH):
        if not hasattr(tokens, 'check_token'):
            tokens = TokenBuffer(tokens)
        self.tokens = tokens
        self.on_warning = on_warning
        self.max_depth = max_depth
        self.depth = 0
        self.yaml_version = None
        self.tag_handles = dict(DEFAULT_TAGS)

    def parse(self):
        """Return the first document of the stream, or None if it is empty."""
        for document in self.parse_all():
            return document
        return None

    def parse_all(self):
        """Lazily yield every Document of the stream."""
        tokens = self.tokens
        if not tokens.check_token(StreamStartToken):
            self.unexpected(None, None, "expected '<stream start>'")
        tokens.get_token()
        while True:
            while tokens.check_token(DocumentEndToken):
                tokens.get_token()
            if tokens.check_token(StreamEndToken):
                tokens.get_token()
                return
            yield self.parse_document()

    def parse_document(self):
        tokens = self.tokens
        start_mark = self.peek().start_mark
        if tokens.check_token(DirectiveToken, DocumentStartToken):
            version, tags = self.process_directives()
            if not tokens.check_token(DocumentStartToken):
                self.unexpected(None, None, "expected '<document start>'")
            token = tokens.get_token()
            if tokens.check_token(DirectiveToken, DocumentStartToken,
                                  DocumentEndToken, StreamEndToken):
                root = self.empty_scalar(token.end_mark)
            else:
                root = self.parse_node(block=True)
        else:
            # Implicit document: no directives and no '---'.
            self.yaml_version = None
            self.tag_handles = dict(DEFAULT_TAGS)
            version, tags = None, {}
            root = self.parse_node(block=True)

        token = self.peek()
        end_mark = token.start_mark
        if tokens.check_token(DocumentEndToken):
            end_mark = tokens.get_token().end_mark
        elif not tokens.check_token(DocumentStartToken, DirectiveToken, StreamEndToken):
            self.unexpected("while parsing a document", start_mark,
                            "expected '<document end>'")
        return Document(root, start_mark, end_mark, version, tags)

    def process_directives(self):
        self.yaml_version = None
        self.tag_handles = {}
        while self.tokens.check_token(DirectiveToken):
            token = self.tokens.get_token()
            if token.name == 'YAML':
                if self.yaml_version is not None:
                    raise ParserError(None, None, "found duplicate YAML directive",
                                      token.start_mark, kind='duplicate_directive')
                major, minor = token.value
                if major != 1:
                    raise ParserError(None, None,
                                      "found incompatible YAML document (version 1.* is required)",
                                      token.start_mark, kind='unsupported_version')
                if minor > 2:
                    report_warning(self.on_warning, None, None,
                                   "unsupported YAML version %d.%d" % (major, minor),
                                   token.start_mark, kind='unsupported_version')
                self.yaml_version = token.value
            elif token.name == 'TAG':
                handle, prefix = token.value
                if handle in self.tag_handles:
                    raise ParserError(None, None, "duplicate tag handle %r" % handle,
                                      token.start_mark, kind='duplicate_directive')
                self.tag_handles[handle] = prefix
            else:
                report_warning(self.on_warning, None, None,
                               "unknown document directive %r" % token.name,
                               token.start_mark, kind='unknown_directive')
        declared = dict(self.tag_handles)
        for handle, prefix in DEFAULT_TAGS.items():
            self.tag_handles.setdefault(handle, prefix)
        return self.yaml_version, declared

    # Helpers.

    def peek(self):
        token = self.tokens.peek_token()
        if token is None:
            raise ParserError(None, None, "found unexpected end of token stream", None,
                              kind='unexpected_end')
        return token

    def unexpected(self, context, context_mark, expected):
        token = self.peek()
        raise ParserError(context, context_mark,
                          "%s, but found %r" % (expected, token.id), token.start_mark,
                          kind='unexpected_token')

    def empty_scalar(self, mark):
        return ScalarNode(None, '', mark, mark)

    def enter(self, mark):
        self.depth += 1
        if self.max_depth is not None and self.depth > self.max_depth:
            raise DepthExceededError(None, None,
                                     "exceeded maximum nesting depth of %d" % self.max_depth,
                                     mark)

    def leave(self):
        self.depth -= 1

    # Nodes.

    def parse_node(self, block=False, indentless_sequence=False):
        tokens = self.tokens
        if tokens.check_token(AliasToken):
            token = tokens.get_token()
            return AliasNode(token.value, token.start_mark, token.end_mark)

        anchor = None
        tag = None
        start_mark = end_mark = tag_mark = None
        if tokens.check_token(AnchorToken):
            token = tokens.get_token()
            start_mark, end_mark = token.start_mark, token.end_mark
            anchor = token.value
            if tokens.check_token(TagToken):
                token = tokens.get_token()
                tag_mark, end_mark = token.start_mark, token.end_mark
                tag = token.value
        elif tokens.check_token(TagToken):
            token = tokens.get_token()
            start_mark = tag_mark = token.start_mark
            end_mark = token.end_mark
            tag = token.value
            if tokens.check_token(AnchorToken):
                token = tokens.get_token()
                end_mark = token.end_mark
                anchor = token.value

        if tag is not None:
            handle, suffix = tag
            if handle is not None:
                if handle not in self.tag_handles:
                    raise ParserError("while parsing a node", start_mark,
                                      "found undefined tag handle %r" % handle, tag_mark,
                                      kind='undefined_tag_handle')
                tag = self.tag_handles[handle] + suffix
            else:
                tag = suffix

        if start_mark is None:
            start_mark = end_mark = self.peek().start_mark

        if indentless_sequence and tokens.check_token(BlockEntryToken):
            return self.parse_indentless_sequence(tag, anchor, start_mark)
        if tokens.check_token(ScalarToken):
            token = tokens.get_token()
            return ScalarNode(tag, token.value, start_mark, token.end_mark,
                              style=token.style, anchor=anchor)
        if tokens.check_token(FlowSequenceStartToken):
            return self.parse_flow_sequence(tag, anchor, start_mark)
        if tokens.check_token(FlowMappingStartToken):
            return self.parse_flow_mapping(tag, anchor, start_mark)
        if block and tokens.check_token(BlockSequenceStartToken):
            return self.parse_block_sequence(tag, anchor, start_mark)
        if block and tokens.check_token(BlockMappingStartToken):
            return self.parse_block_mapping(tag, anchor, start_mark)
        if anchor is not None or tag is not None:
            # Properties without content stand for an empty plain scalar.
            return ScalarNode(tag, '', start_mark, end_mark, anchor=anchor)

        self.unexpected("while parsing a %s node" % ('block' if block else 'flow'),
                        start_mark, "expected the node content")

    def parse_block_sequence(self, tag, anchor, start_mark):
        tokens = self.tokens
        self.enter(start_mark)
        tokens.get_token()
        items = []
        while tokens.check_token(BlockEntryToken):
            token = tokens.get_token()
            if tokens.check_token(BlockEntryToken, BlockEndToken):
                items.append(self.empty_scalar(token.end_mark))
            else:
                items.append(self.parse_node(block=True))
        if not tokens.check_token(BlockEndToken):
            self.unexpected("while parsing a block collection", start_mark,
                            "expected <block end>")
        end_mark = tokens.get_token().end_mark
        self.leave()
        return SequenceNode(tag, items, start_mark, end_mark,
                            flow_style=False, anchor=anchor)

    def parse_indentless_sequence(self, tag, anchor, start_mark):
        """Sequence entries at the same column as the owning mapping key."""
        tokens = self.tokens
        self.enter(start_mark)
        items = []
        end_mark = start_mark
        while tokens.check_token(BlockEntryToken):
            token = tokens.get_token()
            end_mark = token.end_mark
            if tokens.check_token(BlockEntryToken, KeyToken, ValueToken, BlockEndToken):
                items.append(self.empty_scalar(token.end_mark))
            else:
                node = self.parse_node(block=True)
                end_mark = node.end_mark
                items.append(node)
        self.leave()
        return SequenceNode(tag, items, start_mark, end_mark,
                            flow_style=False, anchor=anchor)

    def parse_block_mapping(self, tag, anchor, start_mark):
        tokens = self.tokens
        self.enter(start_mark)
        tokens.get_token()
        pairs = []
        while tokens.check_token(KeyToken, ValueToken):
            if tokens.check_token(KeyToken):
                token = tokens.get_token()
                if tokens.check_token(KeyToken, ValueToken, BlockEndToken):
                    key = self.empty_scalar(token.end_mark)
                else:
                    key = self.parse_node(block=True, indentless_sequence=True)
            else:
                key = self.empty_scalar(self.peek().start_mark)
            if tokens.check_token(ValueToken):
                token = tokens.get_token()
                if tokens.check_token(KeyToken, ValueToken, BlockEndToken):
                    value = self.empty_scalar(token.end_mark)
                else:
                    value = self.parse_node(block=True, indentless_sequence=True)
            else:
                value = self.empty_scalar(self.peek().start_mark)
            pairs.append((key, value))
        if not tokens.check_token(BlockEndToken):
            self.unexpected("while parsing a block mapping", start_mark,
                            "expected <block end>")
        end_mark = tokens.get_token().end_mark
        self.leave()
        return MappingNode(tag, pairs, start_mark, end_mark,
                           flow_style=False, anchor=anchor)

    def parse_flow_sequence(self, tag, anchor, start_mark):
        tokens = self.tokens
        self.enter(start_mark)
        tokens.get_token()
        items = []
        while not tokens.check_token(FlowSequenceEndToken):
            if items:
                if not tokens.check_token(FlowEntryToken):
                    self.unexpected("while parsing a flow sequence", start_mark,
                                    "expected ',' or ']'")
                tokens.get_token()
                if tokens.check_token(FlowSequenceEndToken):
                    break
            if tokens.check_token(KeyToken):
                items.append(self.parse_flow_sequence_pair())
            else:
                items.append(self.parse_node())
        end_mark = tokens.get_token().end_mark
        self.leave()
        return SequenceNode(tag, items, start_mark, end_mark,
                            flow_style=True, anchor=anchor)

    def parse_flow_sequence_pair(self):
        """A ``key: value`` entry of a flow sequence, read as a one-pair mapping."""
        tokens = self.tokens
        token = tokens.get_token()
        start_mark = token.start_mark
        if tokens.check_token(ValueToken, FlowEntryToken, FlowSequenceEndToken):
            key = self.empty_scalar(token.end_mark)
        else:
            key = self.parse_node()
        if tokens.check_token(ValueToken):
            token = tokens.get_token()
            if tokens.check_token(FlowEntryToken, FlowSequenceEndToken):
                value = self.empty_scalar(token.end_mark)
            else:
                value = self.parse_node()
        else:
            value = self.empty_scalar(self.peek().start_mark)
        return MappingNode(None, [(key, value)], start_mark, value.end_mark,
                           flow_style=True)

    def parse_flow_mapping(self, tag, anchor, start_mark):
        tokens = self.tokens
        self.enter(start_mark)
        tokens.get_token()
        pairs = []
        while not tokens.check_token(FlowMappingEndToken):
            if pairs:
                if not tokens.check_token(FlowEntryToken):
                    self.unexpected("while parsing a flow mapping", start_mark,
                                    "expected ',' or '}'")
                tokens.get_token()
                if tokens.check_token(FlowMappingEndToken):
                    break
            if tokens.check_token(KeyToken):
                token = tokens.get_token()
                if tokens.check_token(ValueToken, FlowEntryToken, FlowMappingEndToken):
                    key = self.empty_scalar(token.end_mark)
                else:
                    key = self.parse_node()
            elif tokens.check_token(ValueToken):
                key = self.empty_scalar(self.peek().start_mark)
            else:
                key = self.parse_node()
            if tokens.check_token(ValueToken):
                token = tokens.get_token()
                if tokens.check_token(FlowEntryToken, FlowMappingEndToken):
                    value = self.empty_scalar(token.end_mark)
                else:
                    value = self.parse_node()
            else:
                value = self.empty_scalar(self.peek().start_mark)
            pairs.append((key, value))
        end_mark = tokens.get_token().end_mark
        self.leave()
        return MappingNode(tag, pairs, start_mark, end_mark,
                           flow_style=True, anchor=anchor)
