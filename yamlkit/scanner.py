"""Scanner: turns a character stream into YAML tokens.

The scanner keeps an explicit stack of indentation columns to decide where
block collections start and end, and tracks "possible simple keys" so that
``key: value`` pairs can be recognized without arbitrary lookahead: when a
``:`` is found, a KEY token (and, if needed, a BLOCK-MAPPING-START token) is
inserted in front of the tokens already queued for the key.

Quoted-scalar escapes, block-scalar folding and chomping are all resolved
here, so ScalarToken values are final text.
"""

import re

from .error import MarkedYAMLError, Mark
from .tokens import (
    StreamStartToken, StreamEndToken, DirectiveToken,
    DocumentStartToken, DocumentEndToken,
    BlockSequenceStartToken, BlockMappingStartToken, BlockEndToken,
    FlowSequenceStartToken, FlowMappingStartToken,
    FlowSequenceEndToken, FlowMappingEndToken,
    KeyToken, ValueToken, BlockEntryToken, FlowEntryToken,
    AliasToken, AnchorToken, TagToken, ScalarToken,
)


class ScannerError(MarkedYAMLError):
    """YAML scanner error (tokenization phase)."""
    kind = 'syntax'


BREAKS = '\r\n\x85\u2028\u2029'
NULL_OR_BREAK = '\0' + BREAKS
BLANK_OR_BREAK = ' \t' + BREAKS
BLANK_OR_BREAK_OR_NULL = '\0' + BLANK_OR_BREAK
FLOW_INDICATORS = ',[]{}'

ESCAPE_REPLACEMENTS = {
    '0': '\0',
    'a': '\x07',
    'b': '\x08',
    't': '\x09',
    '\t': '\x09',
    'n': '\x0A',
    'v': '\x0B',
    'f': '\x0C',
    'r': '\x0D',
    'e': '\x1B',
    ' ': '\x20',
    '"': '"',
    '/': '/',
    '\\': '\\',
    'N': '\x85',
    '_': '\xA0',
    'L': '\u2028',
    'P': '\u2029',
}

ESCAPE_CODES = {
    'x': 2,
    'u': 4,
    'U': 8,
}

HEX_DIGITS = '0123456789ABCDEFabcdef'

NON_PRINTABLE = re.compile(
    '[^\x09\x0A\x0D\x20-\x7E\x85\xA0-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]')


def _is_word_char(ch):
    return '0' <= ch <= '9' or 'A' <= ch <= 'Z' or 'a' <= ch <= 'z' or ch in '-_'


class SimpleKey:
    """A token that may turn out to be a mapping key once ':' is seen."""

    def __init__(self, token_number, required, index, line, column, mark):
        self.token_number = token_number
        self.required = required
        self.index = index
        self.line = line
        self.column = column
        self.mark = mark


class Scanner:
    """YAML scanner over an in-memory string.

    Args:
        text: The document text
        name: Stream name reported in marks (usually a filename)
    """

    def __init__(self, text, name='<unicode string>'):
        self.name = name
        self.buffer = text + '\0'
        self.pointer = 0
        self.index = 0
        self.line = 0
        self.column = 0
        self.check_printable(text)

        # Had we reached the end of the stream?
        self.done = False

        # Number of unclosed '{' and '['; zero means block context.
        self.flow_level = 0

        # Tokens ready to be handed to the parser.
        self.tokens = []
        self.tokens_taken = 0

        # Indentation stack; the current column is ``indent``.
        self.indent = -1
        self.indents = []

        # May a simple key start at the current position?
        self.allow_simple_key = True

        # flow_level -> SimpleKey
        self.possible_simple_keys = {}

        self.fetch_stream_start()

    # Character access.

    def peek(self, index=0):
        try:
            return self.buffer[self.pointer + index]
        except IndexError:
            return '\0'

    def prefix(self, length=1):
        return self.buffer[self.pointer:self.pointer + length]

    def forward(self, length=1):
        while length:
            ch = self.buffer[self.pointer]
            self.pointer += 1
            self.index += 1
            if ch in '\n\x85\u2028\u2029' \
                    or (ch == '\r' and self.buffer[self.pointer] != '\n'):
                self.line += 1
                self.column = 0
            elif ch != '\uFEFF':
                self.column += 1
            length -= 1

    def get_mark(self):
        return Mark(self.name, self.index, self.line, self.column,
                    self.buffer, self.pointer)

    def check_printable(self, text):
        match = NON_PRINTABLE.search(text)
        if match:
            position = match.start()
            head = text[:position]
            line = len(re.findall('\r\n|[\n\r\x85\u2028\u2029]', head))
            column = position - max(head.rfind(ch) for ch in '\n\r\x85\u2028\u2029') - 1
            mark = Mark(self.name, position, line, column, self.buffer, position)
            raise ScannerError(
                None, None,
                "special characters are not allowed (found #x%04x)" % ord(match.group()),
                mark, kind='invalid_character')

    # Public token API.

    def check_token(self, *choices):
        """Check whether the next token is one of the given types."""
        while self.need_more_tokens():
            self.fetch_more_tokens()
        if self.tokens:
            if not choices:
                return True
            return isinstance(self.tokens[0], choices)
        return False

    def peek_token(self):
        """Return the next token without consuming it."""
        while self.need_more_tokens():
            self.fetch_more_tokens()
        if self.tokens:
            return self.tokens[0]
        return None

    def get_token(self):
        """Consume and return the next token."""
        while self.need_more_tokens():
            self.fetch_more_tokens()
        if self.tokens:
            self.tokens_taken += 1
            return self.tokens.pop(0)
        return None

    def __iter__(self):
        while self.check_token():
            yield self.get_token()

    def need_more_tokens(self):
        if self.done:
            return False
        if not self.tokens:
            return True
        # A queued token may still become a key; look further ahead first.
        self.stale_possible_simple_keys()
        return self.next_possible_simple_key() == self.tokens_taken

    def fetch_more_tokens(self):
        self.scan_to_next_token()
        self.stale_possible_simple_keys()
        self.unwind_indent(self.column)

        ch = self.peek()

        if ch == '\0':
            return self.fetch_stream_end()
        if ch == '%' and self.check_directive():
            return self.fetch_directive()
        if ch == '-' and self.check_document_start():
            return self.fetch_document_start()
        if ch == '.' and self.check_document_end():
            return self.fetch_document_end()
        if ch == '[':
            return self.fetch_flow_collection_start(FlowSequenceStartToken)
        if ch == '{':
            return self.fetch_flow_collection_start(FlowMappingStartToken)
        if ch == ']':
            return self.fetch_flow_collection_end(FlowSequenceEndToken)
        if ch == '}':
            return self.fetch_flow_collection_end(FlowMappingEndToken)
        if ch == ',':
            return self.fetch_flow_entry()
        if ch == '-' and self.check_block_entry():
            return self.fetch_block_entry()
        if ch == '?' and self.check_key():
            return self.fetch_key()
        if ch == ':' and self.check_value():
            return self.fetch_value()
        if ch == '*':
            return self.fetch_anchor(AliasToken)
        if ch == '&':
            return self.fetch_anchor(AnchorToken)
        if ch == '!':
            return self.fetch_tag()
        if ch == '|' and not self.flow_level:
            return self.fetch_block_scalar('|')
        if ch == '>' and not self.flow_level:
            return self.fetch_block_scalar('>')
        if ch == '\'':
            return self.fetch_flow_scalar('\'')
        if ch == '"':
            return self.fetch_flow_scalar('"')
        if self.check_plain():
            return self.fetch_plain()

        raise ScannerError("while scanning for the next token", None,
                           "found character %r that cannot start any token" % ch,
                           self.get_mark(), kind='unexpected_character')

    # Simple keys.

    def next_possible_simple_key(self):
        min_token_number = None
        for level in self.possible_simple_keys:
            key = self.possible_simple_keys[level]
            if min_token_number is None or key.token_number < min_token_number:
                min_token_number = key.token_number
        return min_token_number

    def stale_possible_simple_keys(self):
        # A simple key is limited to a single line and 1024 characters.
        for level in list(self.possible_simple_keys):
            key = self.possible_simple_keys[level]
            if key.line != self.line or self.index - key.index > 1024:
                if key.required:
                    raise ScannerError("while scanning a simple key", key.mark,
                                       "could not find expected ':'", self.get_mark(),
                                       kind='missing_colon')
                del self.possible_simple_keys[level]

    def save_possible_simple_key(self):
        # A key at the current block indentation must be followed by ':'.
        required = not self.flow_level and self.indent == self.column
        if self.allow_simple_key:
            self.remove_possible_simple_key()
            token_number = self.tokens_taken + len(self.tokens)
            key = SimpleKey(token_number, required, self.index, self.line,
                            self.column, self.get_mark())
            self.possible_simple_keys[self.flow_level] = key

    def remove_possible_simple_key(self):
        if self.flow_level in self.possible_simple_keys:
            key = self.possible_simple_keys[self.flow_level]
            if key.required:
                raise ScannerError("while scanning a simple key", key.mark,
                                   "could not find expected ':'", self.get_mark(),
                                   kind='missing_colon')
            del self.possible_simple_keys[self.flow_level]

    # Indentation.

    def unwind_indent(self, column):
        # Indentation is meaningless inside flow collections.
        if self.flow_level:
            return
        while self.indent > column:
            mark = self.get_mark()
            self.indent = self.indents.pop()
            self.tokens.append(BlockEndToken(mark, mark))

    def add_indent(self, column):
        if self.indent < column:
            self.indents.append(self.indent)
            self.indent = column
            return True
        return False

    # Fetchers.

    def fetch_stream_start(self):
        mark = self.get_mark()
        self.tokens.append(StreamStartToken(mark, mark))

    def fetch_stream_end(self):
        self.unwind_indent(-1)
        self.remove_possible_simple_key()
        self.allow_simple_key = False
        self.possible_simple_keys = {}
        mark = self.get_mark()
        self.tokens.append(StreamEndToken(mark, mark))
        self.done = True

    def fetch_directive(self):
        self.unwind_indent(-1)
        self.remove_possible_simple_key()
        self.allow_simple_key = False
        self.tokens.append(self.scan_directive())

    def fetch_document_start(self):
        self.fetch_document_indicator(DocumentStartToken)

    def fetch_document_end(self):
        self.fetch_document_indicator(DocumentEndToken)

    def fetch_document_indicator(self, TokenClass):
        self.unwind_indent(-1)
        self.remove_possible_simple_key()
        self.allow_simple_key = False
        start_mark = self.get_mark()
        self.forward(3)
        end_mark = self.get_mark()
        self.tokens.append(TokenClass(start_mark, end_mark))

    def fetch_flow_collection_start(self, TokenClass):
        # '[' and '{' may start a simple key.
        self.save_possible_simple_key()
        self.flow_level += 1
        self.allow_simple_key = True
        start_mark = self.get_mark()
        self.forward()
        end_mark = self.get_mark()
        self.tokens.append(TokenClass(start_mark, end_mark))

    def fetch_flow_collection_end(self, TokenClass):
        self.remove_possible_simple_key()
        if self.flow_level:
            self.flow_level -= 1
        self.allow_simple_key = False
        start_mark = self.get_mark()
        self.forward()
        end_mark = self.get_mark()
        self.tokens.append(TokenClass(start_mark, end_mark))

    def fetch_flow_entry(self):
        self.allow_simple_key = True
        self.remove_possible_simple_key()
        start_mark = self.get_mark()
        self.forward()
        end_mark = self.get_mark()
        self.tokens.append(FlowEntryToken(start_mark, end_mark))

    def fetch_block_entry(self):
        if not self.flow_level:
            if not self.allow_simple_key:
                raise ScannerError(None, None,
                                   "sequence entries are not allowed here",
                                   self.get_mark(), kind='misplaced_indicator')
            if self.add_indent(self.column):
                mark = self.get_mark()
                self.tokens.append(BlockSequenceStartToken(mark, mark))
        self.allow_simple_key = True
        self.remove_possible_simple_key()
        start_mark = self.get_mark()
        self.forward()
        end_mark = self.get_mark()
        self.tokens.append(BlockEntryToken(start_mark, end_mark))

    def fetch_key(self):
        if not self.flow_level:
            if not self.allow_simple_key:
                raise ScannerError(None, None,
                                   "mapping keys are not allowed here",
                                   self.get_mark(), kind='misplaced_indicator')
            if self.add_indent(self.column):
                mark = self.get_mark()
                self.tokens.append(BlockMappingStartToken(mark, mark))
        self.allow_simple_key = not self.flow_level
        self.remove_possible_simple_key()
        start_mark = self.get_mark()
        self.forward()
        end_mark = self.get_mark()
        self.tokens.append(KeyToken(start_mark, end_mark))

    def fetch_value(self):
        if self.flow_level in self.possible_simple_keys:
            key = self.possible_simple_keys.pop(self.flow_level)
            self.tokens.insert(key.token_number - self.tokens_taken,
                               KeyToken(key.mark, key.mark))
            if not self.flow_level:
                if self.add_indent(key.column):
                    self.tokens.insert(key.token_number - self.tokens_taken,
                                       BlockMappingStartToken(key.mark, key.mark))
            # Two simple keys cannot follow each other.
            self.allow_simple_key = False
        else:
            # ':' after a complex key, or an empty key.
            if not self.flow_level:
                if not self.allow_simple_key:
                    raise ScannerError(None, None,
                                       "mapping values are not allowed here",
                                       self.get_mark(), kind='misplaced_indicator')
                if self.add_indent(self.column):
                    mark = self.get_mark()
                    self.tokens.append(BlockMappingStartToken(mark, mark))
            self.allow_simple_key = not self.flow_level
            self.remove_possible_simple_key()
        start_mark = self.get_mark()
        self.forward()
        end_mark = self.get_mark()
        self.tokens.append(ValueToken(start_mark, end_mark))

    def fetch_anchor(self, TokenClass):
        self.save_possible_simple_key()
        self.allow_simple_key = False
        self.tokens.append(self.scan_anchor(TokenClass))

    def fetch_tag(self):
        self.save_possible_simple_key()
        self.allow_simple_key = False
        self.tokens.append(self.scan_tag())

    def fetch_block_scalar(self, style):
        # A simple key may follow a block scalar.
        self.allow_simple_key = True
        self.remove_possible_simple_key()
        self.tokens.append(self.scan_block_scalar(style))

    def fetch_flow_scalar(self, style):
        self.save_possible_simple_key()
        self.allow_simple_key = False
        self.tokens.append(self.scan_flow_scalar(style))

    def fetch_plain(self):
        self.save_possible_simple_key()
        self.allow_simple_key = False
        self.tokens.append(self.scan_plain())

    # Checkers.

    def check_directive(self):
        return self.column == 0

    def check_document_start(self):
        return self.column == 0 and self.prefix(3) == '---' \
            and self.peek(3) in BLANK_OR_BREAK_OR_NULL

    def check_document_end(self):
        return self.column == 0 and self.prefix(3) == '...' \
            and self.peek(3) in BLANK_OR_BREAK_OR_NULL

    def check_block_entry(self):
        return self.peek(1) in BLANK_OR_BREAK_OR_NULL

    def check_key(self):
        return bool(self.flow_level) or self.peek(1) in BLANK_OR_BREAK_OR_NULL

    def check_value(self):
        return bool(self.flow_level) or self.peek(1) in BLANK_OR_BREAK_OR_NULL

    def check_plain(self):
        ch = self.peek()
        return ch not in BLANK_OR_BREAK_OR_NULL + '-?:,[]{}#&*!|>\'"%@`' \
            or (self.peek(1) not in BLANK_OR_BREAK_OR_NULL
                and (ch == '-' or (not self.flow_level and ch in '?:')))

    # Scanners.

    def in_indentation(self):
        line_head = self.buffer[self.pointer - self.column:self.pointer]
        return not line_head.strip(' \t\uFEFF')

    def blank_line_ahead(self):
        length = 0
        while self.peek(length) in ' \t':
            length += 1
        return self.peek(length) in NULL_OR_BREAK + '#'

    def scan_to_next_token(self):
        """Skip whitespace, comments and line breaks before the next token.

        Tabs are accepted as separators after content and on blank lines,
        but never as block indentation.
        """
        if self.index == 0 and self.peek() == '\uFEFF':
            self.forward()
        found = False
        while not found:
            while self.peek() == ' ':
                self.forward()
            if self.peek() == '\t':
                if not self.flow_level and self.in_indentation() \
                        and not self.blank_line_ahead():
                    raise ScannerError("while scanning indentation", None,
                                       "found a tab character that violates indentation",
                                       self.get_mark(), kind='bad_indentation')
                self.forward()
                continue
            if self.peek() == '#':
                while self.peek() not in NULL_OR_BREAK:
                    self.forward()
            if self.scan_line_break():
                if not self.flow_level:
                    self.allow_simple_key = True
            else:
                found = True

    def scan_directive(self):
        start_mark = self.get_mark()
        self.forward()
        name = self.scan_directive_name(start_mark)
        value = None
        if name == 'YAML':
            value = self.scan_yaml_directive_value(start_mark)
            end_mark = self.get_mark()
        elif name == 'TAG':
            value = self.scan_tag_directive_value(start_mark)
            end_mark = self.get_mark()
        else:
            end_mark = self.get_mark()
            while self.peek() not in NULL_OR_BREAK:
                self.forward()
        self.scan_directive_ignored_line(start_mark)
        return DirectiveToken(name, value, start_mark, end_mark)

    def scan_directive_name(self, start_mark):
        length = 0
        while _is_word_char(self.peek(length)):
            length += 1
        if not length:
            raise ScannerError("while scanning a directive", start_mark,
                               "expected alphabetic or numeric character, but found %r"
                               % self.peek(), self.get_mark())
        value = self.prefix(length)
        self.forward(length)
        if self.peek() not in BLANK_OR_BREAK_OR_NULL:
            raise ScannerError("while scanning a directive", start_mark,
                               "expected alphabetic or numeric character, but found %r"
                               % self.peek(), self.get_mark())
        return value

    def scan_yaml_directive_value(self, start_mark):
        while self.peek() in ' \t':
            self.forward()
        major = self.scan_yaml_directive_number(start_mark)
        if self.peek() != '.':
            raise ScannerError("while scanning a directive", start_mark,
                               "expected a digit or '.', but found %r" % self.peek(),
                               self.get_mark())
        self.forward()
        minor = self.scan_yaml_directive_number(start_mark)
        if self.peek() not in BLANK_OR_BREAK_OR_NULL:
            raise ScannerError("while scanning a directive", start_mark,
                               "expected a digit or ' ', but found %r" % self.peek(),
                               self.get_mark())
        return (major, minor)

    def scan_yaml_directive_number(self, start_mark):
        if not '0' <= self.peek() <= '9':
            raise ScannerError("while scanning a directive", start_mark,
                               "expected a digit, but found %r" % self.peek(),
                               self.get_mark())
        length = 0
        while '0' <= self.peek(length) <= '9':
            length += 1
        value = int(self.prefix(length))
        self.forward(length)
        return value

    def scan_tag_directive_value(self, start_mark):
        while self.peek() in ' \t':
            self.forward()
        handle = self.scan_tag_handle('directive', start_mark)
        if self.peek() not in ' \t':
            raise ScannerError("while scanning a directive", start_mark,
                               "expected ' ', but found %r" % self.peek(),
                               self.get_mark())
        while self.peek() in ' \t':
            self.forward()
        prefix = self.scan_tag_uri('directive', start_mark)
        if self.peek() not in BLANK_OR_BREAK_OR_NULL:
            raise ScannerError("while scanning a directive", start_mark,
                               "expected ' ', but found %r" % self.peek(),
                               self.get_mark())
        return (handle, prefix)

    def scan_directive_ignored_line(self, start_mark):
        while self.peek() in ' \t':
            self.forward()
        if self.peek() == '#':
            while self.peek() not in NULL_OR_BREAK:
                self.forward()
        if self.peek() not in NULL_OR_BREAK:
            raise ScannerError("while scanning a directive", start_mark,
                               "expected a comment or a line break, but found %r"
                               % self.peek(), self.get_mark())
        self.scan_line_break()

    def scan_anchor(self, TokenClass):
        start_mark = self.get_mark()
        name = 'alias' if self.peek() == '*' else 'anchor'
        self.forward()
        length = 0
        while self.peek(length) not in BLANK_OR_BREAK_OR_NULL + FLOW_INDICATORS:
            length += 1
        if not length:
            raise ScannerError("while scanning an %s" % name, start_mark,
                               "expected %s name, but found %r" % (name, self.peek()),
                               self.get_mark())
        value = self.prefix(length)
        self.forward(length)
        end_mark = self.get_mark()
        return TokenClass(value, start_mark, end_mark)

    def scan_tag(self):
        start_mark = self.get_mark()
        ch = self.peek(1)
        if ch == '<':
            handle = None
            self.forward(2)
            suffix = self.scan_tag_uri('tag', start_mark)
            if self.peek() != '>':
                raise ScannerError("while parsing a tag", start_mark,
                                   "expected '>', but found %r" % self.peek(),
                                   self.get_mark())
            self.forward()
        elif ch in BLANK_OR_BREAK_OR_NULL:
            handle = None
            suffix = '!'
            self.forward()
        else:
            length = 1
            use_handle = False
            while ch not in BLANK_OR_BREAK_OR_NULL:
                if ch == '!':
                    use_handle = True
                    break
                length += 1
                ch = self.peek(length)
            if use_handle:
                handle = self.scan_tag_handle('tag', start_mark)
            else:
                handle = '!'
                self.forward()
            suffix = self.scan_tag_uri('tag', start_mark)
        ch = self.peek()
        if ch not in BLANK_OR_BREAK_OR_NULL \
                and not (self.flow_level and ch in FLOW_INDICATORS):
            raise ScannerError("while scanning a tag", start_mark,
                               "expected ' ', but found %r" % ch, self.get_mark())
        end_mark = self.get_mark()
        return TagToken((handle, suffix), start_mark, end_mark)

    def scan_tag_handle(self, name, start_mark):
        ch = self.peek()
        if ch != '!':
            raise ScannerError("while scanning a %s" % name, start_mark,
                               "expected '!', but found %r" % ch, self.get_mark())
        length = 1
        ch = self.peek(length)
        if ch not in ' \t':
            while _is_word_char(ch):
                length += 1
                ch = self.peek(length)
            if ch != '!':
                self.forward(length)
                raise ScannerError("while scanning a %s" % name, start_mark,
                                   "expected '!', but found %r" % ch, self.get_mark())
            length += 1
        value = self.prefix(length)
        self.forward(length)
        return value

    def is_uri_char(self, ch):
        if self.flow_level and ch in FLOW_INDICATORS:
            return False
        return _is_word_char(ch) or ch in ';/?:@&=+$,.!~*\'()[]%'

    def scan_tag_uri(self, name, start_mark):
        chunks = []
        length = 0
        ch = self.peek(length)
        while self.is_uri_char(ch):
            if ch == '%':
                chunks.append(self.prefix(length))
                self.forward(length)
                length = 0
                chunks.append(self.scan_uri_escapes(name, start_mark))
            else:
                length += 1
            ch = self.peek(length)
        if length:
            chunks.append(self.prefix(length))
            self.forward(length)
        if not chunks:
            raise ScannerError("while parsing a %s" % name, start_mark,
                               "expected URI, but found %r" % ch, self.get_mark())
        return ''.join(chunks)

    def scan_uri_escapes(self, name, start_mark):
        codes = []
        mark = self.get_mark()
        while self.peek() == '%':
            self.forward()
            for k in range(2):
                if self.peek(k) not in HEX_DIGITS:
                    raise ScannerError(
                        "while scanning a %s" % name, start_mark,
                        "expected URI escape sequence of 2 hexadecimal numbers, but found %r"
                        % self.peek(k), self.get_mark())
            codes.append(int(self.prefix(2), 16))
            self.forward(2)
        try:
            return bytes(codes).decode('utf-8')
        except UnicodeDecodeError as exc:
            raise ScannerError("while scanning a %s" % name, start_mark,
                               str(exc), mark) from exc

    def scan_block_scalar(self, style):
        """Scan a literal (``|``) or folded (``>``) block scalar."""
        folded = style == '>'
        chunks = []
        start_mark = self.get_mark()

        self.forward()
        chomping, increment = self.scan_block_scalar_indicators(start_mark)
        self.scan_block_scalar_ignored_line(start_mark)

        min_indent = self.indent + 1
        if min_indent < 1:
            min_indent = 1
        if increment is None:
            breaks, max_indent, end_mark = self.scan_block_scalar_indentation()
            indent = max(min_indent, max_indent)
        else:
            indent = min_indent + increment - 1
            breaks, end_mark = self.scan_block_scalar_breaks(indent)
        line_break = ''

        while self.column == indent and self.peek() != '\0':
            chunks.extend(breaks)
            leading_non_space = self.peek() not in ' \t'
            length = 0
            while self.peek(length) not in NULL_OR_BREAK:
                length += 1
            chunks.append(self.prefix(length))
            self.forward(length)
            line_break = self.scan_line_break()
            breaks, end_mark = self.scan_block_scalar_breaks(indent)
            if self.column == indent and self.peek() != '\0':
                # A single break between two ordinary lines folds into a space.
                if folded and line_break == '\n' \
                        and leading_non_space and self.peek() not in ' \t':
                    if not breaks:
                        chunks.append(' ')
                else:
                    chunks.append(line_break)
            else:
                break

        # Chomping: None clips to one break, False strips, True keeps all.
        if chomping is not False:
            chunks.append(line_break)
        if chomping is True:
            chunks.extend(breaks)

        return ScalarToken(''.join(chunks), False, start_mark, end_mark, style)

    def scan_block_scalar_indicators(self, start_mark):
        chomping = None
        increment = None
        ch = self.peek()
        if ch in '+-':
            chomping = ch == '+'
            self.forward()
            ch = self.peek()
            if ch in '0123456789':
                increment = self.scan_block_scalar_increment(start_mark)
        elif ch in '0123456789':
            increment = self.scan_block_scalar_increment(start_mark)
            ch = self.peek()
            if ch in '+-':
                chomping = ch == '+'
                self.forward()
        if self.peek() not in BLANK_OR_BREAK_OR_NULL:
            raise ScannerError("while scanning a block scalar", start_mark,
                               "expected chomping or indentation indicators, but found %r"
                               % self.peek(), self.get_mark())
        return chomping, increment

    def scan_block_scalar_increment(self, start_mark):
        increment = int(self.peek())
        if increment == 0:
            raise ScannerError("while scanning a block scalar", start_mark,
                               "expected indentation indicator in the range 1-9, but found 0",
                               self.get_mark())
        self.forward()
        return increment

    def scan_block_scalar_ignored_line(self, start_mark):
        while self.peek() in ' \t':
            self.forward()
        if self.peek() == '#':
            while self.peek() not in NULL_OR_BREAK:
                self.forward()
        if self.peek() not in NULL_OR_BREAK:
            raise ScannerError("while scanning a block scalar", start_mark,
                               "expected a comment or a line break, but found %r"
                               % self.peek(), self.get_mark())
        self.scan_line_break()

    def scan_block_scalar_indentation(self):
        chunks = []
        max_indent = 0
        end_mark = self.get_mark()
        while self.peek() in ' ' + BREAKS:
            if self.peek() != ' ':
                chunks.append(self.scan_line_break())
                end_mark = self.get_mark()
            else:
                self.forward()
                if self.column > max_indent:
                    max_indent = self.column
        return chunks, max_indent, end_mark

    def scan_block_scalar_breaks(self, indent):
        chunks = []
        end_mark = self.get_mark()
        while self.column < indent and self.peek() == ' ':
            self.forward()
        while self.peek() in BREAKS:
            chunks.append(self.scan_line_break())
            end_mark = self.get_mark()
            while self.column < indent and self.peek() == ' ':
                self.forward()
        return chunks, end_mark

    def scan_flow_scalar(self, style):
        """Scan a single- or double-quoted scalar, decoding escapes."""
        double = style == '"'
        chunks = []
        start_mark = self.get_mark()
        quote = self.peek()
        self.forward()
        chunks.extend(self.scan_flow_scalar_non_spaces(double, start_mark))
        while self.peek() != quote:
            chunks.extend(self.scan_flow_scalar_spaces(double, start_mark))
            chunks.extend(self.scan_flow_scalar_non_spaces(double, start_mark))
        self.forward()
        end_mark = self.get_mark()
        return ScalarToken(''.join(chunks), False, start_mark, end_mark, style)

    def scan_flow_scalar_non_spaces(self, double, start_mark):
        chunks = []
        while True:
            length = 0
            while self.peek(length) not in '\'"\\' + BLANK_OR_BREAK_OR_NULL:
                length += 1
            if length:
                chunks.append(self.prefix(length))
                self.forward(length)
            ch = self.peek()
            if not double and ch == '\'' and self.peek(1) == '\'':
                chunks.append('\'')
                self.forward(2)
            elif (double and ch == '\'') or (not double and ch in '"\\'):
                chunks.append(ch)
                self.forward()
            elif double and ch == '\\':
                self.forward()
                ch = self.peek()
                if ch in ESCAPE_REPLACEMENTS:
                    chunks.append(ESCAPE_REPLACEMENTS[ch])
                    self.forward()
                elif ch in ESCAPE_CODES:
                    length = ESCAPE_CODES[ch]
                    self.forward()
                    for k in range(length):
                        if self.peek(k) not in HEX_DIGITS:
                            raise ScannerError(
                                "while scanning a double-quoted scalar", start_mark,
                                "expected escape sequence of %d hexadecimal numbers, but found %r"
                                % (length, self.peek(k)), self.get_mark(),
                                kind='invalid_escape')
                    code = int(self.prefix(length), 16)
                    try:
                        chunks.append(chr(code))
                    except (ValueError, OverflowError) as exc:
                        raise ScannerError(
                            "while scanning a double-quoted scalar", start_mark,
                            "found invalid escape code #x%x" % code,
                            self.get_mark(), kind='invalid_escape') from exc
                    self.forward(length)
                elif ch in BREAKS:
                    self.scan_line_break()
                    chunks.extend(self.scan_flow_scalar_breaks(double, start_mark))
                else:
                    raise ScannerError("while scanning a double-quoted scalar", start_mark,
                                       "found unknown escape character %r" % ch,
                                       self.get_mark(), kind='invalid_escape')
            else:
                return chunks

    def scan_flow_scalar_spaces(self, double, start_mark):
        chunks = []
        length = 0
        while self.peek(length) in ' \t':
            length += 1
        whitespaces = self.prefix(length)
        self.forward(length)
        ch = self.peek()
        if ch == '\0':
            raise ScannerError("while scanning a quoted scalar", start_mark,
                               "found unexpected end of stream", self.get_mark(),
                               kind='unexpected_end')
        elif ch in BREAKS:
            line_break = self.scan_line_break()
            breaks = self.scan_flow_scalar_breaks(double, start_mark)
            if line_break != '\n':
                chunks.append(line_break)
            elif not breaks:
                chunks.append(' ')
            chunks.extend(breaks)
        else:
            chunks.append(whitespaces)
        return chunks

    def scan_flow_scalar_breaks(self, double, start_mark):
        chunks = []
        while True:
            # Document separators are not allowed inside quoted scalars.
            prefix = self.prefix(3)
            if self.column == 0 and prefix in ('---', '...') \
                    and self.peek(3) in BLANK_OR_BREAK_OR_NULL:
                raise ScannerError("while scanning a quoted scalar", start_mark,
                                   "found unexpected document separator", self.get_mark(),
                                   kind='unexpected_end')
            while self.peek() in ' \t':
                self.forward()
            if self.peek() in BREAKS:
                chunks.append(self.scan_line_break())
            else:
                return chunks

    def scan_plain(self):
        """Scan a plain scalar, folding line breaks into spaces."""
        chunks = []
        start_mark = self.get_mark()
        end_mark = start_mark
        indent = self.indent + 1
        spaces = []
        while True:
            length = 0
            if self.peek() == '#':
                break
            while True:
                ch = self.peek(length)
                if ch in BLANK_OR_BREAK_OR_NULL \
                        or (ch == ':' and self.peek(length + 1) in BLANK_OR_BREAK_OR_NULL
                            + (FLOW_INDICATORS if self.flow_level else '')) \
                        or (self.flow_level and ch in FLOW_INDICATORS):
                    break
                length += 1
            if length == 0:
                break
            self.allow_simple_key = False
            chunks.extend(spaces)
            chunks.append(self.prefix(length))
            self.forward(length)
            end_mark = self.get_mark()
            spaces = self.scan_plain_spaces(indent, start_mark)
            if not spaces or self.peek() == '#' \
                    or (not self.flow_level and self.column < indent):
                break
        return ScalarToken(''.join(chunks), True, start_mark, end_mark)

    def scan_plain_spaces(self, indent, start_mark):
        chunks = []
        length = 0
        while self.peek(length) in ' \t':
            length += 1
        whitespaces = self.prefix(length)
        self.forward(length)
        ch = self.peek()
        if ch in BREAKS:
            line_break = self.scan_line_break()
            self.allow_simple_key = True
            if self.at_document_separator():
                return
            breaks = []
            while self.peek() in ' ' + BREAKS:
                if self.peek() == ' ':
                    self.forward()
                else:
                    breaks.append(self.scan_line_break())
                    if self.at_document_separator():
                        return
            if line_break != '\n':
                chunks.append(line_break)
            elif not breaks:
                chunks.append(' ')
            chunks.extend(breaks)
        elif whitespaces:
            chunks.append(whitespaces)
        return chunks

    def at_document_separator(self):
        return self.column == 0 and self.prefix(3) in ('---', '...') \
            and self.peek(3) in BLANK_OR_BREAK_OR_NULL

    def scan_line_break(self):
        # Transforms:
        #   '\r\n'      :   '\n'
        #   '\r'        :   '\n'
        #   '\n'        :   '\n'
        #   '\x85'      :   '\n'
        #   '\u2028'    :   '\u2028'
        #   '\u2029'    :   '\u2029'
        #   default     :   ''
        ch = self.peek()
        if ch in '\r\n\x85':
            if self.prefix(2) == '\r\n':
                self.forward(2)
            else:
                self.forward()
            return '\n'
        elif ch in '\u2028\u2029':
            self.forward()
            return ch
        return ''


def scan(text, name='<unicode string>'):
    """Yield every token of ``text``."""
    return iter(Scanner(text, name))
