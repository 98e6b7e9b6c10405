"""
Tests for the parser: document structure, node properties and depth limits.
"""

import pytest

from yamlkit.error import DepthExceededError, YAMLWarning
from yamlkit.parser import Parser, ParserError
from yamlkit.scanner import Scanner, scan
from yamlkit.nodes import ScalarNode, SequenceNode, MappingNode, AliasNode


def _parse(text, **kwargs):
    return Parser(Scanner(text), **kwargs).parse()


def _parse_all(text, **kwargs):
    return list(Parser(Scanner(text), **kwargs).parse_all())


def _raise(warning):
    raise warning


class TestDocuments:

    def test_empty_stream(self):
        """An empty stream has no documents."""
        assert _parse('') is None
        assert _parse_all('# only a comment\n') == []

    def test_implicit_document(self):
        """A bare node is a document of its own."""
        document = _parse('a')
        assert isinstance(document.root, ScalarNode)
        assert document.root.value == 'a'
        assert document.version is None

    def test_explicit_empty_document(self):
        """'---' with no content holds an empty plain scalar."""
        document = _parse('---\n')
        assert document.root.value == ''
        assert document.root.style is None

    def test_multiple_documents(self):
        """Each '---' starts a new document."""
        documents = _parse_all('a\n---\nb\n...\n---\nc\n')
        assert [d.root.value for d in documents] == ['a', 'b', 'c']

    def test_parse_all_is_lazy(self):
        """Documents are produced one at a time."""
        documents = Parser(Scanner('a\n--- b\n--- [\n')).parse_all()
        assert next(documents).root.value == 'a'
        assert next(documents).root.value == 'b'
        with pytest.raises(ParserError):
            next(documents)

    def test_accepts_token_iterable(self):
        """A plain iterable of tokens can feed the parser."""
        tokens = list(scan('[1, 2]'))
        document = Parser(tokens).parse()
        assert [item.value for item in document.root.value] == ['1', '2']


class TestDirectives:

    def test_yaml_version(self):
        """The YAML directive sets the document version."""
        assert _parse('%YAML 1.2\n--- a\n').version == (1, 2)

    def test_duplicate_yaml_directive(self):
        """Two YAML directives in one document are an error."""
        with pytest.raises(ParserError) as exc:
            _parse('%YAML 1.2\n%YAML 1.2\n--- a\n')
        assert 'duplicate YAML directive' in str(exc.value)
        assert exc.value.kind == 'duplicate_directive'

    def test_incompatible_major_version(self):
        """Only YAML 1.x documents are accepted."""
        with pytest.raises(ParserError) as exc:
            _parse('%YAML 2.0\n--- a\n')
        assert exc.value.kind == 'unsupported_version'

    def test_newer_minor_version_warns(self):
        """A newer 1.x version is read with a warning."""
        warnings = []
        document = _parse('%YAML 1.3\n--- a\n', on_warning=warnings.append)
        assert document.root.value == 'a'
        assert len(warnings) == 1
        assert isinstance(warnings[0], YAMLWarning)
        assert 'unsupported YAML version 1.3' in str(warnings[0])
        assert warnings[0].kind == 'unsupported_version'

    def test_unknown_directive_warning_can_be_fatal(self):
        """Raising from on_warning aborts the parse."""
        with pytest.raises(YAMLWarning):
            _parse('%FOO bar\n--- a\n', on_warning=_raise)

    def test_tag_directive(self):
        """Declared handles expand tag shorthands."""
        document = _parse('%TAG !e! tag:example.com,2000:app/\n--- !e!foo a\n')
        assert document.root.tag == 'tag:example.com,2000:app/foo'
        assert document.tags == {'!e!': 'tag:example.com,2000:app/'}

    def test_tag_handles_are_per_document(self):
        """Handles declared for one document do not leak into the next."""
        with pytest.raises(ParserError) as exc:
            _parse_all('%TAG !e! tag:e/\n--- !e!a x\n--- !e!b y\n')
        assert 'undefined tag handle' in str(exc.value)

    def test_duplicate_tag_handle(self):
        """A handle may be declared once per document."""
        with pytest.raises(ParserError):
            _parse('%TAG !e! tag:a/\n%TAG !e! tag:b/\n--- a\n')


class TestNodes:

    def test_block_mapping(self):
        """Block mappings produce ordered key/value node pairs."""
        root = _parse('b: 1\na: 2\n').root
        assert isinstance(root, MappingNode)
        assert [(k.value, v.value) for k, v in root.value] == [('b', '1'), ('a', '2')]
        assert root.flow_style is False

    def test_indentless_sequence(self):
        """'- ' entries at the key's column form the value sequence."""
        root = _parse('a:\n- 1\n- 2\nb: 3\n').root
        value = root.value[0][1]
        assert isinstance(value, SequenceNode)
        assert [item.value for item in value.value] == ['1', '2']
        assert root.value[1][0].value == 'b'

    def test_empty_values(self):
        """Missing keys and values become empty plain scalars."""
        root = _parse('a:\n? b\n: \n').root
        assert [(k.value, v.value) for k, v in root.value] == [('a', ''), ('b', '')]

    def test_flow_sequence_pair(self):
        """'key: value' inside a flow sequence is a one-pair mapping."""
        root = _parse('[a: 1, b]').root
        assert isinstance(root.value[0], MappingNode)
        assert root.value[0].value[0][0].value == 'a'
        assert root.value[1].value == 'b'

    def test_flow_trailing_comma(self):
        """A trailing comma before the closing bracket is allowed."""
        assert len(_parse('[1, 2,]').root.value) == 2
        assert len(_parse('{a: 1,}').root.value) == 1

    def test_anchor_and_alias(self):
        """Anchors are attached to nodes and aliases keep the name."""
        root = _parse('- &x a\n- *x\n').root
        assert root.value[0].anchor == 'x'
        assert isinstance(root.value[1], AliasNode)
        assert root.value[1].value == 'x'

    def test_properties_in_either_order(self):
        """Tag and anchor may come in either order."""
        first = _parse('!!str &a x').root
        second = _parse('&a !!str x').root
        for node in (first, second):
            assert node.tag == 'tag:yaml.org,2002:str'
            assert node.anchor == 'a'

    def test_properties_without_content(self):
        """A tag with no content is an empty scalar."""
        root = _parse('a: !!str\n').root
        value = root.value[0][1]
        assert value.tag == 'tag:yaml.org,2002:str'
        assert value.value == ''

    def test_non_specific_tag(self):
        """'!' alone is the non-specific tag."""
        assert _parse('! 12').root.tag == '!'

    def test_scalar_styles(self):
        """Scalar nodes remember their style."""
        root = _parse("- a\n- 'b'\n- \"c\"\n- |\n  d\n- >\n  e\n").root
        assert [item.style for item in root.value] == [None, "'", '"', '|', '>']

    def test_marks(self):
        """Nodes carry the marks of their source."""
        root = _parse('a:\n  - b\n').root
        sequence = root.value[0][1]
        assert sequence.start_mark.line == 1
        assert sequence.start_mark.column == 2


class TestParserErrors:

    def test_unclosed_flow_sequence(self):
        """A flow sequence must be closed."""
        with pytest.raises(ParserError) as exc:
            _parse('[1, 2')
        assert "expected ',' or ']'" in str(exc.value)
        assert exc.value.kind == 'unexpected_token'

    def test_unclosed_flow_mapping(self):
        """A flow mapping must be closed."""
        with pytest.raises(ParserError):
            _parse('{a: 1')

    def test_undefined_tag_handle(self):
        """Tag handles must be declared."""
        with pytest.raises(ParserError) as exc:
            _parse('!e!foo bar')
        assert "found undefined tag handle '!e!'" in str(exc.value)
        assert exc.value.kind == 'undefined_tag_handle'

    def test_bad_block_structure(self):
        """Content after the root collection must be indented."""
        with pytest.raises(ParserError):
            _parse('- a\nb: c\n')

    def test_content_after_document(self):
        """A second root node needs a document marker."""
        with pytest.raises(ParserError):
            _parse('[a]\nb\n')

    def test_context_in_message(self):
        """Errors name the construct being parsed."""
        with pytest.raises(ParserError) as exc:
            _parse('{a: 1\n')
        assert exc.value.context == 'while parsing a flow mapping'
        assert exc.value.context_mark.line == 0


class TestDepthGuard:

    def test_within_limit(self):
        """Nesting up to max_depth is accepted."""
        text = '[' * 10 + ']' * 10
        assert _parse(text, max_depth=10) is not None

    def test_exceeds_limit(self):
        """One level too deep fails with DepthExceededError."""
        text = '[' * 11 + ']' * 11
        with pytest.raises(DepthExceededError) as exc:
            _parse(text, max_depth=10)
        assert 'maximum nesting depth of 10' in str(exc.value)

    def test_default_limit_stops_deep_documents(self):
        """Very deep input fails cleanly instead of exhausting the stack."""
        text = '[' * 5000 + ']' * 5000
        with pytest.raises(DepthExceededError):
            _parse(text)

    def test_block_nesting_counts(self):
        """Block collections count toward the limit as well."""
        text = ''.join('  ' * level + 'k:\n' for level in range(5)) + '  ' * 5 + 'v\n'
        with pytest.raises(DepthExceededError):
            _parse(text, max_depth=3)
