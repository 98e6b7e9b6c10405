"""
Tests for the constructor: tag resolution, anchors, merge keys and
duplicate-key policy.
"""

import datetime
from collections import OrderedDict

import pytest

from yamlkit.constructor import (
    Constructor, ConstructorError, UnresolvedTagError, AliasNotFoundError, TaggedValue,
)
from yamlkit.error import YAMLWarning
from yamlkit.parser import Parser
from yamlkit.resolver import DEFAULT_SCHEMA, FAILSAFE_SCHEMA, JSON_SCHEMA
from yamlkit.scanner import Scanner
from yamlkit.schema import YAMLType


def _construct(text, schema=DEFAULT_SCHEMA, **kwargs):
    document = Parser(Scanner(text)).parse()
    return Constructor(schema, **kwargs).construct_document(document)


def _raise(warning):
    raise warning


class TestScalars:

    def test_implicit_types(self):
        """Plain scalars are resolved by the schema."""
        data = _construct('[~, true, 12, 0x10, 017, 0o17, 1.5, .inf, text, 190:20:30]')
        assert data[:7] == [None, True, 12, 16, 15, 15, 1.5]
        assert data[7] == float('inf')
        assert data[8] == 'text'
        assert data[9] == 685230

    def test_quoted_scalars_are_strings(self):
        """Quoting prevents implicit resolution."""
        assert _construct("['12', \"true\", '']") == ['12', 'true', '']

    def test_explicit_tags(self):
        """Explicit tags select the type directly."""
        assert _construct('[!!str 12, !!int "12", !!float 1, !!null ""]') == \
            ['12', 12, 1.0, None]

    def test_explicit_tag_must_resolve(self):
        """An explicit tag whose content does not fit is an error."""
        with pytest.raises(ConstructorError) as exc:
            _construct('!!int abc')
        assert 'cannot resolve' in str(exc.value)

    def test_timestamps(self):
        """Dates and date-times become datetime objects."""
        data = _construct('[2002-12-14, 2001-12-14t21:59:43.10-05:00, 2001-12-15 2:59:43.1Z]')
        assert data[0] == datetime.date(2002, 12, 14)
        assert data[1] == datetime.datetime(
            2001, 12, 14, 21, 59, 43, 100000,
            datetime.timezone(datetime.timedelta(hours=-5)))
        assert data[2] == datetime.datetime(2001, 12, 15, 2, 59, 43, 100000,
                                            datetime.timezone.utc)

    def test_invalid_timestamp(self):
        """Out-of-range dates fail with a constructor error."""
        with pytest.raises(ConstructorError) as exc:
            _construct('2001-13-14')
        assert 'cannot construct' in str(exc.value)

    def test_binary(self):
        """!!binary decodes base64."""
        assert _construct('!!binary |\n  YWJj\n') == b'abc'

    def test_non_specific_tag(self):
        """'!' forces the default type of the node kind."""
        assert _construct('! 12') == '12'

    def test_failsafe_schema(self):
        """The failsafe schema only produces strings, lists and dicts."""
        assert _construct('{a: 1, b: [true, ~]}', FAILSAFE_SCHEMA) == \
            {'a': '1', 'b': ['true', '~']}

    def test_json_schema(self):
        """The JSON schema keeps timestamps as strings."""
        assert _construct('2001-12-14', JSON_SCHEMA) == '2001-12-14'


class TestCollections:

    def test_sequence_keys_become_tuples(self):
        """Sequence keys are frozen so they can be hashed."""
        assert _construct('? [1, 2]\n: x\n') == {(1, 2): 'x'}

    def test_mapping_key_unhashable(self):
        """Mapping keys cannot be hashed."""
        with pytest.raises(ConstructorError) as exc:
            _construct('? {a: 1}\n: x\n')
        assert 'found unhashable key' in str(exc.value)

    def test_omap(self):
        """!!omap builds an OrderedDict."""
        data = _construct('!!omap\n- b: 1\n- a: 2\n')
        assert isinstance(data, OrderedDict)
        assert list(data.items()) == [('b', 1), ('a', 2)]

    def test_pairs(self):
        """!!pairs keeps duplicates as a list of tuples."""
        assert _construct('!!pairs\n- a: 1\n- a: 2\n') == [('a', 1), ('a', 2)]

    def test_set(self):
        """!!set builds a Python set."""
        assert _construct('!!set\n? a\n? b\n') == {'a', 'b'}

    def test_kind_mismatch(self):
        """A sequence tag on a mapping is an error."""
        with pytest.raises(ConstructorError) as exc:
            _construct('!!seq {a: 1}')
        assert 'unacceptable node kind' in str(exc.value)
        assert exc.value.kind == 'kind_mismatch'


class TestAnchors:

    def test_alias_shares_identity(self):
        """An alias yields the very same object as its anchor."""
        data = _construct('a: &x {k: 1}\nb: *x\n')
        assert data['a'] is data['b']
        data['a']['k'] = 2
        assert data['b']['k'] == 2

    def test_recursive_sequence(self):
        """A collection may contain an alias to itself."""
        data = _construct('&x [1, *x]')
        assert data[1] is data

    def test_recursive_mapping(self):
        """Self-references work in mappings as well."""
        data = _construct('&x\nself: *x\nname: n\n')
        assert data['self'] is data
        assert data['name'] == 'n'

    def test_recursion_into_unfinished_value(self):
        """An alias to a node whose value is not available yet is an error."""
        point = YAMLType('!point', 'sequence',
                         construct=lambda constructor, node: tuple(
                             constructor.construct_object(item) for item in node.value))
        with pytest.raises(ConstructorError) as exc:
            _construct('&p !point [1, *p]', DEFAULT_SCHEMA.extend([point]))
        assert 'recursive' in str(exc.value)

    def test_undefined_alias(self):
        """An alias must follow its anchor."""
        with pytest.raises(AliasNotFoundError) as exc:
            _construct('[*nope]')
        assert exc.value.anchor == 'nope'
        assert "unidentified alias 'nope'" in str(exc.value)
        assert exc.value.kind == 'alias_not_found'

    def test_anchor_redefinition(self):
        """A redefined anchor refers to the latest node."""
        assert _construct('[&x 1, *x, &x 2, *x]') == [1, 1, 2, 2]

    def test_anchors_are_per_document(self):
        """Anchors do not carry over to the next document."""
        parser = Parser(Scanner('--- &x 1\n--- *x\n'))
        constructor = Constructor(DEFAULT_SCHEMA)
        documents = parser.parse_all()
        assert constructor.construct_document(next(documents)) == 1
        with pytest.raises(AliasNotFoundError):
            constructor.construct_document(next(documents))


class TestMergeKeys:

    def test_merge_single(self):
        """'<<' copies keys that are not set explicitly."""
        data = _construct('base: &b {a: 1, b: 2}\nchild:\n  <<: *b\n  b: 3\n')
        assert data['child'] == {'a': 1, 'b': 3}

    def test_explicit_key_wins_regardless_of_order(self):
        """An explicit key set before the merge keeps its value."""
        data = _construct('base: &b {a: 1}\nchild:\n  a: 2\n  <<: *b\n')
        assert data['child'] == {'a': 2}

    def test_merge_list(self):
        """With several sources, the earlier one wins."""
        data = _construct('- &a {x: 1}\n- &b {x: 2, y: 2}\n- <<: [*a, *b]\n')
        assert data[2] == {'x': 1, 'y': 2}

    def test_merge_invalid(self):
        """Only mappings can be merged."""
        with pytest.raises(ConstructorError) as exc:
            _construct('<<: 1\n')
        assert 'for merging' in str(exc.value)

    def test_quoted_merge_key_is_plain(self):
        """A quoted '<<' is an ordinary key."""
        assert _construct("'<<': 1\n") == {'<<': 1}


class TestDuplicateKeys:

    def test_overwrite_by_default(self):
        """Later keys overwrite earlier ones."""
        assert _construct('a: 1\na: 2\n') == {'a': 2}

    def test_warning_reported(self):
        """The overwrite is reported to on_warning."""
        warnings = []
        _construct('a: 1\na: 2\n', on_warning=warnings.append)
        assert len(warnings) == 1
        assert isinstance(warnings[0], YAMLWarning)
        assert 'found duplicated key' in str(warnings[0])
        assert warnings[0].mark.line == 1
        assert warnings[0].kind == 'duplicate_key'

    def test_fatal_when_disallowed(self):
        """allow_duplicate_keys=False turns duplicates into errors."""
        with pytest.raises(ConstructorError) as exc:
            _construct('a: 1\na: 2\n', allow_duplicate_keys=False)
        assert exc.value.kind == 'duplicate_key'

    def test_fatal_through_warning_hook(self):
        """A raising on_warning also makes duplicates fatal."""
        with pytest.raises(YAMLWarning):
            _construct('a: 1\na: 2\n', on_warning=_raise)


class TestTags:

    def test_unknown_tag_strict(self):
        """Unknown tags fail in strict mode."""
        with pytest.raises(UnresolvedTagError) as exc:
            _construct('!point [1, 2]')
        assert exc.value.kind == 'unresolved_tag'
        assert 'unknown tag !<!point>' in str(exc.value)

    def test_unknown_tag_permissive(self):
        """Permissive mode keeps the tag alongside the value."""
        data = _construct('!point [1, 2]', strict_tags=False)
        assert data == TaggedValue('!point', [1, 2], 'sequence')
        assert data.kind == 'sequence'

    def test_tagged_value_anchor(self):
        """A tagged value can be shared through an alias."""
        data = _construct('[&p !point {x: 1}, *p]', strict_tags=False)
        assert data[0] is data[1]

    def test_custom_type(self):
        """Extended schemas construct custom tags."""
        point = YAMLType('!point', 'sequence',
                         construct=lambda constructor, node: tuple(
                             constructor.construct_object(item) for item in node.value))
        schema = DEFAULT_SCHEMA.extend([point])
        assert _construct('!point [1, 2]', schema) == (1, 2)

    def test_yaml11_boolean_warning(self):
        """YAML 1.1 boolean words load as strings with a warning."""
        warnings = []
        assert _construct('a: yes\n', on_warning=warnings.append) == {'a': 'yes'}
        assert 'deprecated boolean syntax' in str(warnings[0])

    def test_quoted_yaml11_boolean_is_silent(self):
        """Quoted words are not reported."""
        warnings = []
        _construct("a: 'yes'\n", on_warning=warnings.append)
        assert warnings == []
