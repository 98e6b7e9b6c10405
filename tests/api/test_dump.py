"""Tests for the dumping entry points: dump, dump_all, serialize."""

import datetime
import io
from collections import OrderedDict

import pytest

import yamlkit
from yamlkit import (
    SafeDumper, Dumper, TaggedValue, EmitterError, UnrepresentableValueError,
    CircularReferenceError, DepthExceededError,
)


class TestDump:

    def test_mapping(self):
        """Insertion order is kept by default."""
        assert yamlkit.safe_dump({'b': 1, 'a': 2, 'c': 3}) == 'b: 1\na: 2\nc: 3\n'

    def test_nested(self):
        """Block style is used for nested collections."""
        data = {'a': 1, 'b': [1, 2], 'c': {'d': 'x'}}
        assert yamlkit.dump(data) == 'a: 1\nb:\n  - 1\n  - 2\nc:\n  d: x\n'

    def test_scalars(self):
        """Top-level scalars are written on their own line."""
        assert yamlkit.dump(None) == 'null\n'
        assert yamlkit.dump('') == "''\n"
        assert yamlkit.dump(12) == '12\n'
        assert yamlkit.dump('text') == 'text\n'

    def test_empty_collections(self):
        """Empty collections use flow style."""
        assert yamlkit.dump({}) == '{}\n'
        assert yamlkit.dump([]) == '[]\n'

    def test_stream(self):
        """With a stream, the text is written there and None is returned."""
        stream = io.StringIO()
        assert yamlkit.dump({'a': 1}, stream) is None
        assert stream.getvalue() == 'a: 1\n'

    def test_unknown_option(self):
        """Options a dumper does not know are rejected."""
        with pytest.raises(TypeError):
            yamlkit.dump({}, default_flow_style=False)


class TestDumpOptions:

    def test_sort_keys(self):
        """sort_keys=True orders keys."""
        assert yamlkit.dump({'b': 1, 'a': 2, 'c': 3}, sort_keys=True) == 'a: 2\nb: 1\nc: 3\n'

    def test_sort_keys_comparator(self):
        """A comparator function orders keys."""
        def reverse(a, b):
            return 1 if a < b else -1 if a > b else 0
        assert yamlkit.dump({'b': 1, 'a': 2, 'c': 3}, sort_keys=reverse) == \
            'c: 3\nb: 1\na: 2\n'

    def test_indent(self):
        """indent sets spaces per level."""
        assert yamlkit.dump([[1, 2]], indent=4) == '-\n    - 1\n    - 2\n'

    def test_bad_indent(self):
        """indent must be positive."""
        with pytest.raises(EmitterError):
            yamlkit.dump({}, indent=0)

    def test_flow_level(self):
        """flow_level switches deeper collections to flow style."""
        data = {'a': [1, 2], 'b': {'c': 1}}
        assert yamlkit.dump(data, flow_level=1) == 'a: [1, 2]\nb: {c: 1}\n'
        assert yamlkit.dump(data, flow_level=0) == '{a: [1, 2], b: {c: 1}}\n'

    def test_condense_flow(self):
        """condense_flow writes compact flow collections."""
        assert yamlkit.dump({'a': 1, 'b': [1, 2]}, flow_level=0, condense_flow=True) == \
            '{"a":1,"b":[1,2]}\n'

    def test_no_array_indent(self):
        """no_array_indent keeps sequences at the key's column."""
        assert yamlkit.dump({'a': [1, 2]}, no_array_indent=True) == 'a:\n- 1\n- 2\n'

    def test_width(self):
        """Long strings are folded at the width."""
        assert yamlkit.dump({'a': 'aaaa bbbb cccc dddd eeee ffff'}, width=20) == \
            'a: >-\n  aaaa bbbb cccc dddd\n  eeee ffff\n'

    def test_unlimited_width(self):
        """width=-1 never folds."""
        text = 'word ' * 30 + 'end'
        assert yamlkit.dump(text, width=-1) == text + '\n'

    def test_styles(self):
        """styles picks the representation per tag."""
        assert yamlkit.dump(255, styles={'!!int': 'hex'}) == '0xFF\n'
        assert yamlkit.dump(True, styles={'!!bool': 'uppercase'}) == 'TRUE\n'
        assert yamlkit.dump({'a': None}, styles={'!!null': 'canonical'}) == 'a: ~\n'
        assert yamlkit.dump({'a': [1, 2]}, styles={'!!seq': 'flow'}) == 'a: [1, 2]\n'

    def test_no_compat_mode(self):
        """YAML 1.1 booleans are only quoted in compat mode."""
        assert yamlkit.dump(['yes', 'no']) == "- 'yes'\n- 'no'\n"
        assert yamlkit.dump(['yes', 'no'], no_compat_mode=True) == '- yes\n- no\n'

    def test_explicit_start(self):
        """explicit_start writes '---' before the document."""
        assert yamlkit.dump({'a': 1}, explicit_start=True) == '---\na: 1\n'

    def test_max_depth(self):
        """Deep values are rejected."""
        data = []
        for _ in range(10):
            data = [data]
        with pytest.raises(DepthExceededError):
            yamlkit.dump(data, max_depth=3)

    def test_subclass_defaults(self):
        """Class attributes configure a dumper subclass."""
        class SortedDumper(SafeDumper):
            sort_keys = True
            indent = 4

        assert yamlkit.dump({'b': {'c': 1}, 'a': 1}, Dumper=SortedDumper) == \
            'a: 1\nb:\n    c: 1\n'


class TestReferences:

    def test_shared_values(self):
        """Shared values are anchored once and aliased after."""
        shared = {'k': 1}
        assert yamlkit.dump({'a': shared, 'b': shared}) == 'a: &id001\n  k: 1\nb: *id001\n'

    def test_cycle(self):
        """Cyclic values are written with an alias back to the anchor."""
        data = []
        data.append(data)
        assert yamlkit.dump(data) == '&id001\n- *id001\n'

    def test_no_refs(self):
        """no_refs writes shared values in full."""
        shared = [1]
        assert yamlkit.dump([shared, shared], no_refs=True) == '- - 1\n- - 1\n'

    def test_no_refs_cycle(self):
        """no_refs cannot write cycles."""
        data = []
        data.append(data)
        with pytest.raises(CircularReferenceError):
            yamlkit.dump(data, no_refs=True)


class TestInvalidValues:

    def test_unrepresentable(self):
        """Unknown types are an error."""
        with pytest.raises(UnrepresentableValueError):
            yamlkit.dump({'a': object()})

    def test_skip_invalid(self):
        """skip_invalid drops what cannot be written."""
        assert yamlkit.dump({'a': object(), 'b': 1}, skip_invalid=True) == 'b: 1\n'
        assert yamlkit.dump(object(), skip_invalid=True) == ''

    def test_tagged_value_needs_dumper(self):
        """SafeDumper rejects TaggedValue; Dumper writes it."""
        value = TaggedValue('!point', [1, 2], 'sequence')
        with pytest.raises(UnrepresentableValueError):
            yamlkit.safe_dump(value)
        assert yamlkit.dump(value, Dumper=Dumper) == '!point\n- 1\n- 2\n'
        assert yamlkit.dump(TaggedValue('!x', 'v'), Dumper=Dumper) == '!x v\n'

    def test_verbatim_tag(self):
        """Tags that cannot be shortened are written verbatim."""
        value = TaggedValue('tag:example.com,2000:x', 'v')
        assert yamlkit.dump(value, Dumper=Dumper) == '!<tag:example.com,2000:x> v\n'


class TestTypes:

    def test_binary(self):
        """bytes are written as tagged base64."""
        assert yamlkit.dump(b'abc') == '!!binary |\n  YWJj\n'

    def test_ordered_dict(self):
        """OrderedDict is written as !!omap."""
        assert yamlkit.dump(OrderedDict([('b', 1), ('a', 2)])) == '!!omap\n- b: 1\n- a: 2\n'

    def test_set(self):
        """Sets are written as !!set."""
        assert yamlkit.dump({'a'}) == '!!set\na: null\n'

    def test_date(self):
        """Dates are written plain."""
        assert yamlkit.dump(datetime.date(2002, 12, 14)) == '2002-12-14\n'

    def test_floats(self):
        """Special floats use YAML spellings."""
        assert yamlkit.dump([1.5, float('inf'), float('nan')]) == '- 1.5\n- .inf\n- .nan\n'

    def test_keys(self):
        """Non-string keys are written by their own type."""
        assert yamlkit.dump({1: 'a', None: 'b'}) == '1: a\nnull: b\n'
        assert yamlkit.dump({(1, 2): 'x'}) == '? - 1\n  - 2\n: x\n'


class TestDumpAll:

    def test_separators(self):
        """Documents after the first start with '---'."""
        assert yamlkit.dump_all([1, 2]) == '1\n---\n2\n'

    def test_explicit_start(self):
        """explicit_start marks every document."""
        assert yamlkit.safe_dump_all([1, 2], explicit_start=True) == '---\n1\n---\n2\n'

    def test_stream(self):
        """The stream receives all documents."""
        stream = io.StringIO()
        yamlkit.dump_all([{'a': 1}, [2]], stream)
        assert stream.getvalue() == 'a: 1\n---\n- 2\n'

    def test_empty(self):
        """No documents give an empty stream."""
        assert yamlkit.dump_all([]) == ''


class TestSerialize:

    def test_composed_tree(self):
        """Composed nodes are written back with their anchors."""
        node = yamlkit.compose('a: &x [1, 2]\nb: *x\n')
        assert yamlkit.serialize(node) == 'a: &x [1, 2]\nb: *x\n'

    def test_nothing(self):
        """A missing node writes nothing."""
        assert yamlkit.serialize(None) == ''


class TestRoundTrip:

    @pytest.mark.parametrize('data', [
        {'name': 'yamlkit', 'version': 1, 'tags': ['a', 'b'], 'ratio': 0.5},
        ['null', '123', 'yes', '', ' padded ', 'a: b', '#hash', "it's", 'multi\nline\n'],
        {'nested': {'list': [[1, 2], {'k': None}], 'flag': False}},
        {'when': datetime.date(2002, 12, 14), 'raw': b'\x00\x01'},
        {'text': 'x' * 200, 'folded': ' '.join(['word'] * 40)},
        {'tab': 'a\tb', 'control': '\x01', 'separator': 'a\u2028b'},
    ])
    def test_round_trip(self, data):
        """Dumped values load back unchanged."""
        assert yamlkit.safe_load(yamlkit.safe_dump(data)) == data

    def test_round_trip_identity(self):
        """Shared values come back shared."""
        shared = {'k': [1]}
        data = yamlkit.safe_load(yamlkit.safe_dump({'a': shared, 'b': shared}))
        assert data['a'] is data['b']

    def test_round_trip_tagged(self):
        """Tagged values survive a Loader/Dumper round trip."""
        text = '!point\n- 1\n- 2\n'
        assert yamlkit.dump(yamlkit.load(text, Loader=yamlkit.Loader), Dumper=Dumper) == text
