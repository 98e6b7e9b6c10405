"""Built-in YAML types and the schemas assembled from them.

Implicit resolution follows YAML 1.2 core rules extended with the YAML 1.1
forms most documents still use: legacy ``0``-prefixed octals, sexagesimal
numbers, ``_`` digit separators, timestamps and merge keys.
"""

import base64
import datetime
import math
import re
from collections import OrderedDict

from .schema import YAMLType, Schema


NULL_VALUES = ('~', 'null', 'Null', 'NULL', '')

TRUE_VALUES = ('true', 'True', 'TRUE')
FALSE_VALUES = ('false', 'False', 'FALSE')

INT_REGEXP = re.compile(r'''^(?:[-+]?0b[0-1_]+
    |[-+]?0o[0-7_]+
    |[-+]?0x[0-9a-fA-F_]+
    |[-+]?0[0-7_]+
    |[-+]?(?:0|[1-9][0-9_]*)
    |[-+]?[1-9][0-9_]*(?::[0-5]?[0-9])+)$''', re.X)

FLOAT_REGEXP = re.compile(r'''^(?:[-+]?(?:0|[1-9][0-9_]*)(?:\.[0-9_]*)?(?:[eE][-+]?[0-9]+)?
    |\.[0-9_]+(?:[eE][-+]?[0-9]+)?
    |[-+]?[0-9][0-9_]*(?::[0-5]?[0-9])+\.[0-9_]*
    |[-+]?\.(?:inf|Inf|INF)
    |\.(?:nan|NaN|NAN))$''', re.X)

TIMESTAMP_REGEXP = re.compile(
    r'^(?:[0-9][0-9][0-9][0-9]-[0-9][0-9]-[0-9][0-9]'
    r'|[0-9][0-9][0-9][0-9]-[0-9][0-9]?-[0-9][0-9]?'
    r'(?:[Tt]|[ \t]+)[0-9][0-9]?:[0-9][0-9]:[0-9][0-9]'
    r'(?:\.[0-9]*)?(?:[ \t]*(?:Z|[-+][0-9][0-9]?(?::[0-9][0-9])?))?)$')

DATE_PARTS = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')

DATETIME_PARTS = re.compile(
    r'^(\d{4})-(\d{1,2})-(\d{1,2})'
    r'(?:[Tt]|[ \t]+)(\d{1,2}):(\d{2}):(\d{2})'
    r'(?:\.(\d*))?'
    r'(?:[ \t]*(Z|[-+]\d{1,2}(?::\d{2})?))?$')

BASE64_REGEXP = re.compile(r'^[A-Za-z0-9+/]*={0,2}$')


# null

def construct_yaml_null(constructor, node):
    return None


NULL = YAMLType(
    'tag:yaml.org,2002:null', 'scalar',
    resolve=lambda data: data in NULL_VALUES,
    construct=construct_yaml_null,
    predicate=lambda data: data is None,
    represent={
        'canonical': lambda data: '~',
        'lowercase': lambda data: 'null',
        'uppercase': lambda data: 'NULL',
        'camelcase': lambda data: 'Null',
        'empty': lambda data: '',
    },
    default_style='lowercase',
    implicit=True)


# bool

def construct_yaml_bool(constructor, node):
    return node.value in TRUE_VALUES


BOOL = YAMLType(
    'tag:yaml.org,2002:bool', 'scalar',
    resolve=lambda data: data in TRUE_VALUES or data in FALSE_VALUES,
    construct=construct_yaml_bool,
    predicate=lambda data: isinstance(data, bool),
    represent={
        'lowercase': lambda data: 'true' if data else 'false',
        'uppercase': lambda data: 'TRUE' if data else 'FALSE',
        'camelcase': lambda data: 'True' if data else 'False',
    },
    default_style='lowercase',
    implicit=True)


# int

def resolve_yaml_int(data):
    if not INT_REGEXP.match(data) or data.endswith('_'):
        return False
    digits = data.lstrip('+-')
    if digits[:2] in ('0b', '0o', '0x'):
        digits = digits[2:]
    return any(ch not in '_:' for ch in digits)


def construct_yaml_int(constructor, node):
    value = node.value.replace('_', '')
    sign = 1
    if value[0] in '+-':
        if value[0] == '-':
            sign = -1
        value = value[1:]
    if value == '0':
        return 0
    elif value.startswith('0b'):
        return sign * int(value[2:], 2)
    elif value.startswith('0x'):
        return sign * int(value[2:], 16)
    elif value.startswith('0o'):
        return sign * int(value[2:], 8)
    elif value[0] == '0':
        # YAML 1.1 octal
        return sign * int(value, 8)
    elif ':' in value:
        result = 0
        for part in value.split(':'):
            result = result * 60 + int(part)
        return sign * result
    return sign * int(value)


def _int_text(data, prefix, code):
    sign = '-' if data < 0 else ''
    return sign + prefix + format(abs(data), code)


INT = YAMLType(
    'tag:yaml.org,2002:int', 'scalar',
    resolve=resolve_yaml_int,
    construct=construct_yaml_int,
    predicate=lambda data: isinstance(data, int) and not isinstance(data, bool),
    represent={
        'binary': lambda data: _int_text(data, '0b', 'b'),
        'octal': lambda data: _int_text(data, '0o', 'o'),
        'decimal': lambda data: str(data),
        'hexadecimal': lambda data: _int_text(data, '0x', 'X'),
    },
    default_style='decimal',
    style_aliases={
        'binary': (2, 'bin'),
        'octal': (8, 'oct'),
        'decimal': (10, 'dec'),
        'hexadecimal': (16, 'hex'),
    },
    implicit=True)


# float

def resolve_yaml_float(data):
    return bool(FLOAT_REGEXP.match(data)) and not data.endswith('_')


def construct_yaml_float(constructor, node):
    value = node.value.replace('_', '').lower()
    sign = 1.0
    if value[0] in '+-':
        if value[0] == '-':
            sign = -1.0
        value = value[1:]
    if value == '.inf':
        return sign * math.inf
    elif value == '.nan':
        return math.nan
    elif ':' in value:
        result = 0.0
        for part in value.split(':'):
            result = result * 60 + float(part)
        return sign * result
    return sign * float(value)


def _float_text(data, case):
    if math.isnan(data):
        text = '.nan'
    elif math.isinf(data):
        text = '.inf' if data > 0 else '-.inf'
    elif data == 0 and math.copysign(1.0, data) < 0:
        return '-0.0'
    else:
        return repr(data)
    if case == 'uppercase':
        return text.upper()
    if case == 'camelcase':
        return text.replace('.inf', '.Inf').replace('.nan', '.NaN')
    return text


FLOAT = YAMLType(
    'tag:yaml.org,2002:float', 'scalar',
    resolve=resolve_yaml_float,
    construct=construct_yaml_float,
    predicate=lambda data: isinstance(data, float),
    represent={
        'lowercase': lambda data: _float_text(data, 'lowercase'),
        'uppercase': lambda data: _float_text(data, 'uppercase'),
        'camelcase': lambda data: _float_text(data, 'camelcase'),
    },
    default_style='lowercase',
    implicit=True)


# timestamp

def construct_yaml_timestamp(constructor, node):
    value = node.value
    match = DATE_PARTS.match(value)
    if match:
        return datetime.date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    match = DATETIME_PARTS.match(value)
    if match is None:
        raise ValueError("invalid timestamp %r" % value)
    year, month, day = int(match.group(1)), int(match.group(2)), int(match.group(3))
    hour, minute, second = int(match.group(4)), int(match.group(5)), int(match.group(6))
    fraction = 0
    if match.group(7):
        fraction = int(match.group(7)[:6].ljust(6, '0'))
    tz = None
    if match.group(8):
        if match.group(8) == 'Z':
            tz = datetime.timezone.utc
        else:
            tz_str = match.group(8)
            tz_sign = -1 if tz_str[0] == '-' else 1
            parts = tz_str[1:].split(':')
            tz_hour = int(parts[0])
            tz_min = int(parts[1]) if len(parts) > 1 else 0
            tz = datetime.timezone(datetime.timedelta(
                hours=tz_sign * tz_hour, minutes=tz_sign * tz_min))
    return datetime.datetime(year, month, day, hour, minute, second, fraction, tz)


TIMESTAMP = YAMLType(
    'tag:yaml.org,2002:timestamp', 'scalar',
    resolve=lambda data: bool(TIMESTAMP_REGEXP.match(data)),
    construct=construct_yaml_timestamp,
    predicate=lambda data: isinstance(data, datetime.date),
    represent=lambda data: data.isoformat(),
    implicit=True)


# merge

MERGE = YAMLType(
    'tag:yaml.org,2002:merge', 'scalar',
    resolve=lambda data: data == '<<',
    construct=lambda constructor, node: '<<',
    implicit=True)


# binary

def resolve_yaml_binary(data):
    stripped = ''.join(data.split())
    return len(stripped) % 4 == 0 and bool(BASE64_REGEXP.match(stripped))


def construct_yaml_binary(constructor, node):
    return base64.b64decode(''.join(node.value.split()), validate=True)


BINARY = YAMLType(
    'tag:yaml.org,2002:binary', 'scalar',
    resolve=resolve_yaml_binary,
    construct=construct_yaml_binary,
    predicate=lambda data: isinstance(data, (bytes, bytearray)),
    represent=lambda data: base64.encodebytes(bytes(data)).decode('ascii'))


# omap / pairs

def _single_pairs(items):
    return all(item.id == 'mapping' and len(item.value) == 1 for item in items)


def resolve_yaml_omap(items):
    if not _single_pairs(items):
        return False
    seen = set()
    for item in items:
        key_node = item.value[0][0]
        if key_node.id == 'scalar':
            if key_node.value in seen:
                return False
            seen.add(key_node.value)
    return True


def construct_yaml_omap(constructor, node):
    omap = OrderedDict()
    yield omap
    for item in node.value:
        key_node, value_node = item.value[0]
        key = constructor.construct_key(key_node, item)
        omap[key] = constructor.construct_object(value_node)


def construct_yaml_pairs(constructor, node):
    pairs = []
    yield pairs
    for item in node.value:
        key_node, value_node = item.value[0]
        key = constructor.construct_object(key_node)
        pairs.append((key, constructor.construct_object(value_node)))


OMAP = YAMLType(
    'tag:yaml.org,2002:omap', 'sequence',
    resolve=resolve_yaml_omap,
    construct=construct_yaml_omap,
    predicate=lambda data: isinstance(data, OrderedDict),
    represent=lambda data: [{key: value} for key, value in data.items()])

PAIRS = YAMLType(
    'tag:yaml.org,2002:pairs', 'sequence',
    resolve=_single_pairs,
    construct=construct_yaml_pairs,
    represent=lambda data: [{key: value} for key, value in data])


# set

def resolve_yaml_set(pairs):
    for key_node, value_node in pairs:
        if value_node.id != 'scalar' or value_node.style is not None:
            return False
        if value_node.tag not in (None, NULL.tag) or value_node.value not in NULL_VALUES:
            return False
    return True


def construct_yaml_set(constructor, node):
    data = set()
    yield data
    mapping = {}
    constructor.fill_mapping(node, mapping)
    data.update(mapping)


SET = YAMLType(
    'tag:yaml.org,2002:set', 'mapping',
    resolve=resolve_yaml_set,
    construct=construct_yaml_set,
    predicate=lambda data: isinstance(data, (set, frozenset)),
    represent=lambda data: [(item, None) for item in data])


# failsafe types

def construct_yaml_str(constructor, node):
    return node.value


def construct_yaml_seq(constructor, node):
    data = []
    yield data
    constructor.fill_sequence(node, data)


def construct_yaml_map(constructor, node):
    data = {}
    yield data
    constructor.fill_mapping(node, data)


STR = YAMLType(
    'tag:yaml.org,2002:str', 'scalar',
    construct=construct_yaml_str,
    predicate=lambda data: isinstance(data, str))

SEQ = YAMLType(
    'tag:yaml.org,2002:seq', 'sequence',
    construct=construct_yaml_seq,
    predicate=lambda data: isinstance(data, (list, tuple)))

MAP = YAMLType(
    'tag:yaml.org,2002:map', 'mapping',
    construct=construct_yaml_map,
    predicate=lambda data: isinstance(data, dict),
    represent=lambda data: list(data.items()))


FAILSAFE_SCHEMA = Schema([STR, SEQ, MAP])

JSON_SCHEMA = Schema([NULL, BOOL, INT, FLOAT, STR, SEQ, MAP])

CORE_SCHEMA = Schema(JSON_SCHEMA.types)

# Dump-direction precedence: OrderedDict and set must be tried before dict.
DEFAULT_SCHEMA = Schema([
    NULL, BOOL, INT, FLOAT, TIMESTAMP, MERGE,
    BINARY, OMAP, PAIRS, SET,
    STR, SEQ, MAP,
])
