"""Tests for the language-feature detectors."""

import logging

import pytest

from codefeatures_cli import features
from codefeatures_cli.features import (
    FEATURES,
    GenericsCollectingVisitor,
    collect_annotations,
    collect_generic_types,
    count_features,
    get_annotation,
    has_annotation,
    type_name,
)
from codefeatures_cli.loader import build_project, InMemoryASTResolver
from codefeatures_cli.models import (
    ASTRoot,
    Declaration,
    Expression,
    ExpressionKind,
    Method,
    Modifier,
    ModifierKind,
    Namespace,
    Statement,
    StatementKind,
    Type,
    Variable,
)


EXPECTED_SAMPLE_COUNTS = {
    "uses_enhanced_for": 1,
    "uses_varargs": 1,
    "uses_assert": 1,
    "uses_enums": 1,
    "uses_try_resources": 1,
    "uses_generics_define_type": 1,
    "uses_generics_define_method": 1,
    "uses_generics_define_field": 2,
    "uses_generics_wildcard_super": 1,
    "uses_generics_wildcard_extends": 1,
    "uses_generics_wildcard": 1,
    "uses_annotations_define": 1,
    "uses_annotations_uses": 3,
    "uses_multi_catch": 1,
    "uses_binary_lit": 1,
    "uses_underscore_lit": 2,
    "uses_diamond": 1,
    "uses_safe_varargs": 2,
}


def _file(*declarations) -> ASTRoot:
    return ASTRoot(namespaces=(Namespace(name="t", declarations=tuple(declarations)),))


def test_every_detector_is_registered():
    assert set(FEATURES) == set(EXPECTED_SAMPLE_COUNTS)


@pytest.mark.parametrize("name", sorted(EXPECTED_SAMPLE_COUNTS))
def test_detector_counts_on_sample(name, sample_ast):
    assert FEATURES[name](sample_ast) == EXPECTED_SAMPLE_COUNTS[name]


def test_count_features_is_deterministic(sample_ast):
    first = count_features(sample_ast)
    second = count_features(sample_ast)

    assert first == second == EXPECTED_SAMPLE_COUNTS


def test_empty_file_counts_nothing():
    assert set(count_features(ASTRoot()).values()) == {0}


class TestGenericFieldDetector:
    """The field detector walks a restricted part of the tree."""

    def test_method_signature_types_are_ignored(self):
        root = _file(
            Declaration(
                "C",
                methods=(
                    Method(
                        "m",
                        Type("List<String>"),
                        arguments=(Variable("a", Type("Set<Integer>")),),
                    ),
                ),
            )
        )
        assert features.uses_generics_define_field(root) == 0

    def test_field_initializers_are_ignored(self):
        root = _file(
            Declaration(
                "C",
                fields=(
                    Variable(
                        "f",
                        Type("String"),
                        initializer=Expression(kind=ExpressionKind.NEW, new_type=Type("Box<String>")),
                    ),
                ),
            )
        )
        assert features.uses_generics_define_field(root) == 0

    def test_nested_declaration_fields_counted(self):
        inner = Declaration("Inner", fields=(Variable("x", Type("Map<K, V>")),))
        root = _file(Declaration("Outer", nested_declarations=(inner,)))

        assert features.uses_generics_define_field(root) == 1

    def test_deep_statement_nesting_does_not_exhaust_stack(self):
        local = Declaration("Local", fields=(Variable("x", Type("List<T>")),))
        node = Statement(kind=StatementKind.TYPEDECL, type_declaration=local)
        for _ in range(3000):
            node = Statement(kind=StatementKind.IF, statements=(node,))
        root = _file(Declaration("C", methods=(Method("m", Type("void"), statements=(node,)),)))

        assert features.uses_generics_define_field(root) == 1
        assert count_features(root)["uses_generics_define_field"] == 1


class TestSafeVarargs:
    def _method(self, *modifiers) -> ASTRoot:
        return _file(Declaration("C", methods=(Method("m", Type("void"), modifiers=modifiers),)))

    def _suppress(self, *literals, member="value") -> Modifier:
        return Modifier(
            kind=ModifierKind.ANNOTATION,
            annotation_name="SuppressWarnings",
            annotation_members=(member,),
            annotation_values=(
                Expression(
                    kind=ExpressionKind.ARRAYINIT,
                    expressions=tuple(
                        Expression(kind=ExpressionKind.LITERAL, literal=lit) for lit in literals
                    ),
                ),
            ),
        )

    def test_suppress_needs_both_values(self):
        assert features.uses_safe_varargs(self._method(self._suppress('"unchecked"'))) == 0

    def test_suppress_with_both_values(self):
        root = self._method(self._suppress("unchecked", "varargs"))
        assert features.uses_safe_varargs(root) == 1

    def test_suppress_other_member_ignored(self):
        root = self._method(self._suppress("unchecked", "varargs", member="other"))
        assert features.uses_safe_varargs(root) == 0


def test_annotation_helpers():
    method = Method(
        "m",
        Type("void"),
        modifiers=(
            Modifier(kind=ModifierKind.VISIBILITY, visibility="public"),
            Modifier(kind=ModifierKind.ANNOTATION, annotation_name="Override"),
        ),
    )
    assert has_annotation(method, "Override")
    assert not has_annotation(method, "Deprecated")
    assert get_annotation(method, "Override").annotation_name == "Override"


@pytest.mark.parametrize(
    "literal, binary, underscore",
    [
        ("0b1010", True, False),
        ("0B1_0L", True, True),
        ("1_000", False, True),
        ("0x7fff_ffff", False, True),
        ("1000", False, False),
        ('"a_b"', False, False),
    ],
)
def test_literal_detectors(literal, binary, underscore):
    root = _file(
        Declaration(
            "C",
            fields=(
                Variable("f", Type("long"), initializer=Expression(kind=ExpressionKind.LITERAL, literal=literal)),
            ),
        )
    )
    assert features.uses_binary_lit(root) == int(binary)
    assert features.uses_underscore_lit(root) == int(underscore)


# ------------------------------------------------------------------
# Collectors
# ------------------------------------------------------------------

def test_collect_annotations_accumulates_into_caller_mapping(sample_ast):
    counts = {"Deprecated": 5}
    result = collect_annotations(sample_ast, counts)

    assert result is counts
    assert counts == {"Deprecated": 6, "SafeVarargs": 1, "SuppressWarnings": 1}


def test_collect_generic_types(sample_ast):
    counts = collect_generic_types(sample_ast, {})

    assert counts["Comparable<Box<T>>"] == 1
    assert counts["Box<T>"] == 1
    assert counts["List<Map<String, Integer>>"] == 1
    assert counts["Map<String, Integer>"] == 1
    assert counts["List"] == 3
    assert counts["ArrayList<>"] == 1
    assert "String" not in counts


def test_collectors_use_supplied_name_resolver():
    names = {"#1": "Deprecated", "#2": "Map<#3, V>"}
    root = _file(
        Declaration(
            "C",
            modifiers=(Modifier(kind=ModifierKind.ANNOTATION, annotation_name="#1"),),
            fields=(Variable("f", Type("#2")),),
        )
    )

    assert collect_annotations(root, {}, resolve_name=lambda n: names.get(n, n)) == {"Deprecated": 1}
    assert collect_generic_types(root, {}, resolve_name=lambda n: names.get(n, n)) == {"Map<#3, V>": 1, "Map": 1}


def test_type_name_strips_surrounding_whitespace():
    assert type_name("  List<String> ") == "List<String>"


def test_collect_generic_types_skips_pathological_signature(caplog):
    deep = "A<" * 20 + "X" + ">" * 20
    root = _file(
        Declaration(
            "C",
            fields=(Variable("bad", Type(deep)), Variable("good", Type("List<String>"))),
        )
    )
    visitor = GenericsCollectingVisitor(max_depth=10)

    with caplog.at_level(logging.WARNING, logger="codefeatures_cli.features"):
        visitor.initialize({}).visit(root)

    assert visitor.counts == {"List<String>": 1, "List": 1}
    assert visitor.skipped == 1
    assert deep in caplog.text


def test_detectors_traverse_whole_project(project_document):
    resolver = InMemoryASTResolver()
    project = build_project(project_document, resolver)

    # The same file AST is present at both revisions; the broken file has none.
    assert features.uses_assert(project, resolver) == 2
    assert features.uses_enums(project, resolver) == 2
    assert collect_generic_types(project, {}, resolver)["List<String>"] == 2
