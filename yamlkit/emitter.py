"""Emitter: writes node graphs as YAML text.

Collections are written in block style unless the nesting level reaches the
``flow_level`` threshold or the collection is empty. Scalars are written
plain whenever the text scans back to the same type, otherwise quoted,
and multi-line or over-long text is written as a literal or folded block
scalar.
"""

import re

from .constructor import YAML11_BOOLEANS
from .error import YAMLError
from .schema import DEFAULT_TAGS, DEFAULT_SCALAR_TAG


YAML_TAG_PREFIX = 'tag:yaml.org,2002:'

STYLE_PLAIN = 1
STYLE_SINGLE = 2
STYLE_LITERAL = 3
STYLE_FOLDED = 4
STYLE_DOUBLE = 5

ESCAPE_SEQUENCES = {
    0x00: '\\0',
    0x07: '\\a',
    0x08: '\\b',
    0x09: '\\t',
    0x0A: '\\n',
    0x0B: '\\v',
    0x0C: '\\f',
    0x0D: '\\r',
    0x1B: '\\e',
    0x22: '\\"',
    0x5C: '\\\\',
    0x85: '\\N',
    0xA0: '\\_',
    0x2028: '\\L',
    0x2029: '\\P',
}

# Characters that may not start a plain scalar.
INDICATORS = '-?:,[]{}#&*!|>\'"%@`'

FLOW_INDICATORS = ',[]{}'

TAG_SUFFIX = re.compile(r"^[-\w;/?:@&=+$.~*'()%]+$")

LINE_FOLDS = re.compile(r'(\n+)([^\n]*)')

BREAK_POINTS = re.compile(r' [^ ]')

MAX_SIMPLE_KEY_LENGTH = 1024


class EmitterError(YAMLError):
    pass


def is_printable(ch):
    code = ord(ch)
    return (0x20 <= code <= 0x7E
            or (0xA1 <= code <= 0xD7FF and code not in (0x2028, 0x2029))
            or (0xE000 <= code <= 0xFFFD and code != 0xFEFF)
            or 0x10000 <= code <= 0x10FFFF)


def is_plain_safe(ch):
    return is_printable(ch) and ch not in FLOW_INDICATORS and ch not in ':#'


def is_plain_safe_first(ch):
    return is_printable(ch) and ch not in ' \t' and ch not in INDICATORS


def need_indent_indicator(text):
    return text.lstrip('\n').startswith(' ')


def choose_scalar_style(text, single_line_only, indent_per_level, line_width, is_ambiguous):
    """Pick the least intrusive style that writes ``text`` faithfully."""
    has_line_break = False
    has_foldable_line = False
    track_width = line_width != -1
    previous_break = -1
    plain = is_plain_safe_first(text[0]) and text[-1] not in ' \t' \
        and not text.startswith('...')

    if single_line_only:
        for ch in text:
            if not is_printable(ch):
                return STYLE_DOUBLE
            plain = plain and is_plain_safe(ch)
    else:
        for index, ch in enumerate(text):
            if ch == '\n':
                has_line_break = True
                if track_width:
                    has_foldable_line = has_foldable_line or (
                        index - previous_break - 1 > line_width
                        and text[previous_break + 1] != ' ')
                    previous_break = index
            elif not is_printable(ch):
                return STYLE_DOUBLE
            plain = plain and is_plain_safe(ch)
        has_foldable_line = has_foldable_line or (
            track_width and len(text) - previous_break - 1 > line_width
            and text[previous_break + 1] != ' ')

    if not has_line_break and not has_foldable_line:
        if plain and not is_ambiguous(text):
            return STYLE_PLAIN
        return STYLE_SINGLE
    if indent_per_level > 9 and need_indent_indicator(text):
        return STYLE_DOUBLE
    return STYLE_FOLDED if has_foldable_line else STYLE_LITERAL


def block_header(text, indent_per_level):
    indicator = str(indent_per_level) if need_indent_indicator(text) else ''
    clip = text.endswith('\n')
    keep = clip and (text.endswith('\n\n') or text == '\n')
    chomp = '+' if keep else ('' if clip else '-')
    return indicator + chomp + '\n'


def drop_ending_newline(text):
    return text[:-1] if text.endswith('\n') else text


def indent_string(text, spaces):
    """Indent every non-empty line of ``text`` by ``spaces``."""
    indentation = ' ' * spaces
    lines = text.split('\n')
    return '\n'.join(indentation + line if line else line for line in lines)


def fold_line(line, width):
    """Break one line at spaces so no piece exceeds ``width``."""
    if line == '' or line[0] == ' ':
        return line
    start = 0
    current = 0
    result = ''
    for match in BREAK_POINTS.finditer(line):
        following = match.start()
        if following - start > width:
            end = current if current > start else following
            result += '\n' + line[start:end]
            start = end + 1
        current = following
    result += '\n'
    if len(line) - start > width and current > start:
        result += line[start:current] + '\n' + line[current + 1:]
    else:
        result += line[start:]
    return result[1:]


def fold_string(text, width):
    """Prepare text for the folded style.

    Single breaks between ordinary lines are doubled so they survive
    folding; more-indented lines are kept as they are.
    """
    first_break = text.find('\n')
    if first_break == -1:
        first_break = len(text)
    result = fold_line(text[:first_break], width)
    previous_more_indented = text[:1] in ('\n', ' ')
    for match in LINE_FOLDS.finditer(text, first_break):
        prefix, line = match.group(1), match.group(2)
        more_indented = line[:1] == ' '
        result += prefix
        if not previous_more_indented and not more_indented and line != '':
            result += '\n'
        result += fold_line(line, width)
        previous_more_indented = more_indented
    return result


def encode_hex(ch):
    code = ord(ch)
    if code <= 0xFF:
        return '\\x%02X' % code
    if code <= 0xFFFF:
        return '\\u%04X' % code
    return '\\U%08X' % code


def escape_string(text):
    chunks = []
    for ch in text:
        escape = ESCAPE_SEQUENCES.get(ord(ch))
        if escape is not None:
            chunks.append(escape)
        elif is_printable(ch):
            chunks.append(ch)
        else:
            chunks.append(encode_hex(ch))
    return ''.join(chunks)


class Emitter:
    """Writes node graphs as YAML documents.

    Args:
        schema: Schema used to decide whether scalars scan back unchanged
        indent: Spaces per nesting level
        width: Preferred line width, -1 for unlimited
        flow_level: Nesting level from which collections use flow style,
            -1 for never
        no_compat_mode: Do not quote YAML 1.1 boolean words such as 'yes'
        condense_flow: Omit spaces after ',' and ':' in flow collections
        no_array_indent: Do not indent block sequences under mapping keys
    """

    ANCHOR_TEMPLATE = 'id%03d'

    def __init__(self, schema, indent=2, width=80, flow_level=-1, no_compat_mode=False,
                 condense_flow=False, no_array_indent=False):
        if not isinstance(indent, int) or indent < 1:
            raise EmitterError("indent must be a positive integer, not %r" % (indent,))
        if width is None:
            width = -1
        self.schema = schema
        self.indent = indent
        self.width = width
        self.flow_level = flow_level
        self.no_compat_mode = no_compat_mode
        self.condense_flow = condense_flow
        self.no_array_indent = no_array_indent
        self.anchors = {}
        self.serialized = set()

    def emit(self, node):
        """Return the text of one document, ending with a line break."""
        if node is None:
            return ''
        self.anchors = {}
        self.serialized = set()
        self.anchor_node(node)
        try:
            return self.write_node(0, node, True, True) + '\n'
        finally:
            self.anchors = {}
            self.serialized = set()

    def anchor_node(self, node):
        """Name every node reached more than once, in document order."""
        order = []
        counts = {}
        stack = [node]
        while stack:
            current = stack.pop()
            node_id = id(current)
            if node_id in counts:
                counts[node_id] += 1
                continue
            counts[node_id] = 1
            order.append(current)
            if current.id == 'sequence':
                stack.extend(reversed(current.value))
            elif current.id == 'mapping':
                for key_node, value_node in reversed(current.value):
                    stack.append(value_node)
                    stack.append(key_node)
        for current in order:
            if counts[id(current)] > 1:
                self.anchors[id(current)] = self.ANCHOR_TEMPLATE % (len(self.anchors) + 1)

    # Tags.

    def tag_shorthand(self, tag):
        if tag == '!':
            return '!'
        if tag.startswith(YAML_TAG_PREFIX) and TAG_SUFFIX.match(tag[len(YAML_TAG_PREFIX):]):
            return '!!' + tag[len(YAML_TAG_PREFIX):]
        if tag.startswith('!') and TAG_SUFFIX.match(tag[1:]):
            return tag
        return '!<%s>' % tag

    def scalar_tag(self, node):
        if node.tag is not None:
            return node.tag
        if node.style is None:
            yaml_type = self.schema.resolve_implicit('scalar', node.value)
            if yaml_type is not None:
                return yaml_type.tag
        return DEFAULT_SCALAR_TAG

    def resolves_to(self, text, tag):
        yaml_type = self.schema.resolve_implicit('scalar', text)
        if yaml_type is None:
            return tag == DEFAULT_SCALAR_TAG
        return yaml_type.tag == tag

    # Nodes.

    def write_node(self, level, node, block, compact, is_key=False, in_mapping=False):
        if node.id == 'alias':
            return '*' + node.value
        node_id = id(node)
        anchor = self.anchors.get(node_id, node.anchor)
        if anchor is not None:
            if node_id in self.serialized:
                return '*' + anchor
            self.serialized.add(node_id)

        if block:
            block = self.flow_level < 0 or self.flow_level > level

        tag = None
        if node.id == 'scalar':
            dump, tag = self.write_scalar_node(level, node, block, is_key)
        else:
            if node.tag is not None and node.tag != DEFAULT_TAGS[node.id]:
                tag = self.tag_shorthand(node.tag)
            if tag is not None or anchor is not None or (self.indent != 2 and level > 0):
                compact = False
            if node.flow_style is True:
                block = False
            if node.id == 'mapping':
                if block and node.value:
                    dump = self.write_block_mapping(level, node, compact)
                else:
                    dump = self.write_flow_mapping(level, node)
            else:
                array_level = level
                # Only a block sequence that is the value of a mapping key may sit
                # at the key's column.
                if self.no_array_indent and in_mapping and not compact:
                    array_level = level - 1
                if block and node.value:
                    dump = self.write_block_sequence(array_level, node, compact)
                else:
                    dump = self.write_flow_sequence(array_level, node)

        properties = []
        if anchor is not None:
            properties.append('&' + anchor)
        if tag is not None:
            properties.append(tag)
        if properties:
            prefix = ' '.join(properties)
            if not dump or dump[0] == '\n':
                dump = prefix + dump
            else:
                dump = prefix + ' ' + dump
        return dump

    def write_scalar_node(self, level, node, block, is_key):
        """Return the scalar text and the tag property it needs, if any."""
        tag = self.scalar_tag(node)
        text = node.value
        if tag == DEFAULT_SCALAR_TAG:
            return self.write_scalar(text, level, is_key, self.is_ambiguous), None
        if self.schema.is_implicit(tag) and self.resolves_to(text, tag):
            if text == '' and (is_key or not block):
                text = '~' if self.resolves_to('~', tag) else "''"
            return text, None
        return self.write_scalar(text, level, is_key, _never_ambiguous), self.tag_shorthand(tag)

    def is_ambiguous(self, text):
        return self.schema.resolve_implicit('scalar', text) is not None

    def write_scalar(self, text, level, is_key, is_ambiguous):
        if not text:
            return "''"
        if not self.no_compat_mode and text in YAML11_BOOLEANS:
            return "'" + text + "'"
        indent = self.indent * max(1, level)
        if self.width == -1:
            line_width = -1
        else:
            line_width = max(min(self.width, 40), self.width - indent)
        single_line_only = is_key or (self.flow_level > -1 and level >= self.flow_level)

        style = choose_scalar_style(text, single_line_only, self.indent, line_width,
                                    is_ambiguous)
        if style == STYLE_PLAIN:
            return text
        if style == STYLE_SINGLE:
            return "'" + text.replace("'", "''") + "'"
        if style == STYLE_LITERAL:
            return '|' + block_header(text, self.indent) \
                + drop_ending_newline(indent_string(text, indent))
        if style == STYLE_FOLDED:
            return '>' + block_header(text, self.indent) \
                + drop_ending_newline(indent_string(fold_string(text, line_width), indent))
        return '"' + escape_string(text) + '"'

    # Collections.

    def next_line(self, level):
        return '\n' + ' ' * (self.indent * level)

    def write_block_sequence(self, level, node, compact):
        result = ''
        for index, item in enumerate(node.value):
            dump = self.write_node(level + 1, item, True, True)
            if not compact or index != 0:
                result += self.next_line(level)
            if not dump or dump[0] == '\n':
                result += '-'
            else:
                result += '- '
            result += dump
        return result

    def write_block_mapping(self, level, node, compact):
        result = ''
        for index, (key_node, value_node) in enumerate(node.value):
            pair = ''
            if not compact or index != 0:
                pair += self.next_line(level)
            key_dump = self.write_node(level + 1, key_node, True, True, is_key=True)
            explicit = self.needs_explicit_key(key_node, key_dump)
            if explicit:
                pair += '?' if key_dump[:1] == '\n' else '? '
            pair += key_dump
            if explicit:
                pair += self.next_line(level)
            value_dump = self.write_node(level + 1, value_node, True, explicit,
                                         in_mapping=True)
            if not value_dump or value_dump[0] == '\n':
                pair += ':'
            else:
                pair += ': '
            pair += value_dump
            result += pair
        return result

    def needs_explicit_key(self, key_node, key_dump):
        if key_node.id != 'scalar':
            return True
        return len(key_dump) > MAX_SIMPLE_KEY_LENGTH or '\n' in key_dump \
            or key_dump[:1] in ('*', '&', '!')

    def write_flow_sequence(self, level, node):
        separator = ',' if self.condense_flow else ', '
        items = [self.write_node(level, item, False, False) for item in node.value]
        return '[' + separator.join(items) + ']'

    def write_flow_mapping(self, level, node):
        separator = ',' if self.condense_flow else ', '
        pairs = []
        for key_node, value_node in node.value:
            key_dump = self.write_node(level, key_node, False, False, is_key=True)
            value_dump = self.write_node(level, value_node, False, False)
            indicator = ': '
            if self.condense_flow:
                indicator = ':'
                if key_node.id == 'scalar' and self.is_plain_key(key_node, key_dump):
                    if self.scalar_tag(key_node) == DEFAULT_SCALAR_TAG:
                        key_dump = '"' + escape_string(key_node.value) + '"'
                    else:
                        indicator = ': '
            if key_dump[:1] == '*':
                indicator = ' ' + indicator.strip() + ' '
            if len(key_dump) > MAX_SIMPLE_KEY_LENGTH:
                key_dump = '? ' + key_dump
            pairs.append(key_dump + indicator + value_dump)
        return '{' + separator.join(pairs) + '}'

    def is_plain_key(self, key_node, key_dump):
        return key_dump == key_node.value and key_dump[:1] not in ('\'', '"')


def _never_ambiguous(text):
    return False
