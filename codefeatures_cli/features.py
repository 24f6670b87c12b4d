"""Detectors for Java language features, built on the AST visitor.

Every ``uses_*`` function builds a fresh detector, traverses the given node
(usually an :class:`~codefeatures_cli.models.ASTRoot`) and returns how many
times the feature occurs. The two ``collect_*`` functions add to a mapping
supplied by the caller and return it.
"""

from __future__ import annotations

import logging
import re
from itertools import chain
from typing import Any, Callable, Dict, Iterator, MutableMapping, Optional, Union

from .config import DEFAULT_MAX_SIGNATURE_DEPTH
from .models import (
    Declaration,
    Expression,
    ExpressionKind,
    Method,
    Modifier,
    ModifierKind,
    NodeKind,
    Statement,
    StatementKind,
    Type,
    TypeKind,
    Variable,
)
from .signatures import (
    SignatureTooComplexError,
    is_extends_wildcard,
    is_other_wildcard,
    is_super_wildcard,
    parse_generic_type,
)
from .visitor import AbstractVisitor, ASTResolver, CountingVisitor

logger = logging.getLogger(__name__)

NameResolver = Callable[[str], str]
FeatureFunction = Callable[..., int]

FEATURES: Dict[str, FeatureFunction] = {}


def feature(name: str) -> Callable[[FeatureFunction], FeatureFunction]:
    """Register a counting function under *name*."""

    def register(func: FeatureFunction) -> FeatureFunction:
        FEATURES[name] = func
        return func

    return register


def type_name(name: str) -> str:
    """Literal text for a stored name; names in this model are already text."""
    return name.strip()


# ------------------------------------------------------------------
# Annotation helpers
# ------------------------------------------------------------------

def get_annotation(node: Union[Declaration, Method, Variable], name: str) -> Optional[Modifier]:
    """Return the first annotation named *name* on *node*, if any."""
    for modifier in node.modifiers:
        if modifier.kind == ModifierKind.ANNOTATION and modifier.annotation_name == name:
            return modifier
    return None


def has_annotation(node: Union[Declaration, Method, Variable], name: str) -> bool:
    return get_annotation(node, name) is not None


def _literal_text(expr: Expression) -> str:
    return (expr.literal or "").strip('"')


# ------------------------------------------------------------------
# Statements
# ------------------------------------------------------------------

class EnhancedForVisitor(CountingVisitor):
    def pre_visit_statement(self, node: Statement) -> bool:
        if node.kind == StatementKind.FOR and node.has_variable_declaration:
            self.count += 1
        return True


class AssertVisitor(CountingVisitor):
    def pre_visit_statement(self, node: Statement) -> bool:
        if node.kind == StatementKind.ASSERT:
            self.count += 1
        return True


class TryResourcesVisitor(CountingVisitor):
    def pre_visit_statement(self, node: Statement) -> bool:
        if node.kind == StatementKind.TRY and node.initializations:
            self.count += 1
        return True


class MultiCatchVisitor(CountingVisitor):
    def pre_visit_statement(self, node: Statement) -> bool:
        if (
            node.kind == StatementKind.CATCH
            and node.has_variable_declaration
            and "|" in node.variable_declaration.variable_type.name
        ):
            self.count += 1
        return True


@feature("uses_enhanced_for")
def uses_enhanced_for(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return EnhancedForVisitor(ast_resolver).run(root).count


@feature("uses_assert")
def uses_assert(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return AssertVisitor(ast_resolver).run(root).count


@feature("uses_try_resources")
def uses_try_resources(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return TryResourcesVisitor(ast_resolver).run(root).count


@feature("uses_multi_catch")
def uses_multi_catch(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return MultiCatchVisitor(ast_resolver).run(root).count


# ------------------------------------------------------------------
# Declarations and methods
# ------------------------------------------------------------------

class VarargsVisitor(CountingVisitor):
    def pre_visit_method(self, node: Method) -> bool:
        if node.arguments and "..." in node.arguments[-1].variable_type.name:
            self.count += 1
        return True


class EnumVisitor(CountingVisitor):
    def pre_visit_declaration(self, node: Declaration) -> bool:
        if node.kind == TypeKind.ENUM:
            self.count += 1
        return True


class GenericTypeVisitor(CountingVisitor):
    def pre_visit_declaration(self, node: Declaration) -> bool:
        if node.generic_parameters:
            self.count += 1
        return True


class GenericMethodVisitor(CountingVisitor):
    def pre_visit_method(self, node: Method) -> bool:
        if node.generic_parameters:
            self.count += 1
        return True


class GenericFieldVisitor(CountingVisitor):
    """Counts parameterized field types.

    Only declarations, their methods, fields and nested declarations, and the
    statements (and local type declarations) inside methods are walked.
    Method signatures, expressions and modifiers are never entered.
    """

    def pre_visit_type(self, node: Type) -> bool:
        if "<" in node.name:
            self.count += 1
        return True

    def children(self, node: Any) -> Iterator[Any]:
        kind = node.node_kind
        if kind is NodeKind.DECLARATION:
            return chain(node.methods, node.fields, node.nested_declarations)
        if kind is NodeKind.METHOD:
            return iter(node.statements)
        if kind is NodeKind.STATEMENT:
            if node.has_type_declaration:
                return chain(node.statements, (node.type_declaration,))
            return iter(node.statements)
        return super().children(node)

    def pre_visit_expression(self, node: Expression) -> bool:
        return False

    def pre_visit_modifier(self, node: Modifier) -> bool:
        return False


class DeclaresAnnotationVisitor(CountingVisitor):
    def pre_visit_declaration(self, node: Declaration) -> bool:
        if node.kind == TypeKind.ANNOTATION:
            self.count += 1
        return True


class UsesAnnotationVisitor(CountingVisitor):
    def pre_visit_modifier(self, node: Modifier) -> bool:
        if node.kind == ModifierKind.ANNOTATION:
            self.count += 1
        return True


class SafeVarargsVisitor(CountingVisitor):
    """Counts ``@SafeVarargs`` and ``@SuppressWarnings({"unchecked", "varargs"})``."""

    def pre_visit_method(self, node: Method) -> bool:
        if has_annotation(node, "SafeVarargs"):
            self.count += 1

        suppress = get_annotation(node, "SuppressWarnings")
        if suppress is not None and self._suppresses_varargs(suppress):
            self.count += 1
        return True

    @staticmethod
    def _suppresses_varargs(modifier: Modifier) -> bool:
        for i, member in enumerate(modifier.annotation_members):
            if member != "value":
                continue
            if i >= len(modifier.annotation_values):
                return False
            value = modifier.annotation_values[i]
            if value.kind != ExpressionKind.ARRAYINIT:
                return False
            literals = {
                _literal_text(e) for e in value.expressions if e.kind == ExpressionKind.LITERAL
            }
            return {"unchecked", "varargs"} <= literals
        return False


@feature("uses_varargs")
def uses_varargs(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return VarargsVisitor(ast_resolver).run(root).count


@feature("uses_enums")
def uses_enums(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return EnumVisitor(ast_resolver).run(root).count


@feature("uses_generics_define_type")
def uses_generics_define_type(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return GenericTypeVisitor(ast_resolver).run(root).count


@feature("uses_generics_define_method")
def uses_generics_define_method(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return GenericMethodVisitor(ast_resolver).run(root).count


@feature("uses_generics_define_field")
def uses_generics_define_field(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return GenericFieldVisitor(ast_resolver).run(root).count


@feature("uses_annotations_define")
def uses_annotations_define(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return DeclaresAnnotationVisitor(ast_resolver).run(root).count


@feature("uses_annotations_uses")
def uses_annotations_uses(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return UsesAnnotationVisitor(ast_resolver).run(root).count


@feature("uses_safe_varargs")
def uses_safe_varargs(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return SafeVarargsVisitor(ast_resolver).run(root).count


# ------------------------------------------------------------------
# Types and wildcards
# ------------------------------------------------------------------

class _TypePredicateVisitor(CountingVisitor):
    predicate: Callable[[str], bool]

    def pre_visit_type(self, node: Type) -> bool:
        if self.predicate(node.name):
            self.count += 1
        return True


class SuperWildcardVisitor(_TypePredicateVisitor):
    predicate = staticmethod(is_super_wildcard)


class ExtendsWildcardVisitor(_TypePredicateVisitor):
    predicate = staticmethod(is_extends_wildcard)


class OtherWildcardVisitor(_TypePredicateVisitor):
    predicate = staticmethod(is_other_wildcard)


class DiamondVisitor(_TypePredicateVisitor):
    predicate = staticmethod(lambda name: "<>" in name)


@feature("uses_generics_wildcard_super")
def uses_generics_wildcard_super(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return SuperWildcardVisitor(ast_resolver).run(root).count


@feature("uses_generics_wildcard_extends")
def uses_generics_wildcard_extends(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return ExtendsWildcardVisitor(ast_resolver).run(root).count


@feature("uses_generics_wildcard")
def uses_generics_wildcard(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return OtherWildcardVisitor(ast_resolver).run(root).count


@feature("uses_diamond")
def uses_diamond(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return DiamondVisitor(ast_resolver).run(root).count


# ------------------------------------------------------------------
# Literals
# ------------------------------------------------------------------

# Generous on purpose: only error-free parsed source reaches the detectors.
BINARY_LITERAL = re.compile(r"0[bB][01][01_]*[01][L]?")
UNDERSCORE_LITERAL = re.compile(
    r"(0[bBx])?([0-9]+.[0-9]+)?[0-9A-Fa-f]([0-9A-Fa-f_])*[0-9A-Fa-f][FL]?"
)


class BinaryLiteralVisitor(CountingVisitor):
    def pre_visit_expression(self, node: Expression) -> bool:
        if (
            node.kind == ExpressionKind.LITERAL
            and node.has_literal
            and BINARY_LITERAL.fullmatch(node.literal)
        ):
            self.count += 1
        return True


class UnderscoreLiteralVisitor(CountingVisitor):
    def pre_visit_expression(self, node: Expression) -> bool:
        if (
            node.kind == ExpressionKind.LITERAL
            and node.has_literal
            and "_" in node.literal
            and UNDERSCORE_LITERAL.fullmatch(node.literal)
        ):
            self.count += 1
        return True


@feature("uses_binary_lit")
def uses_binary_lit(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return BinaryLiteralVisitor(ast_resolver).run(root).count


@feature("uses_underscore_lit")
def uses_underscore_lit(root: Any, ast_resolver: Optional[ASTResolver] = None) -> int:
    return UnderscoreLiteralVisitor(ast_resolver).run(root).count


# ------------------------------------------------------------------
# Collectors
# ------------------------------------------------------------------

class AnnotationCollectingVisitor(AbstractVisitor):
    """Counts annotation usages by annotation name."""

    def __init__(
        self,
        ast_resolver: Optional[ASTResolver] = None,
        resolve_name: NameResolver = type_name,
    ) -> None:
        super().__init__(ast_resolver)
        self.resolve_name = resolve_name
        self.counts: MutableMapping[str, int] = {}

    def initialize(self, counts: Optional[MutableMapping[str, int]] = None) -> "AnnotationCollectingVisitor":
        self.counts = counts if counts is not None else {}
        super().initialize()
        return self

    def pre_visit_modifier(self, node: Modifier) -> bool:
        if node.kind == ModifierKind.ANNOTATION:
            name = self.resolve_name(node.annotation_name)
            self.counts[name] = self.counts.get(name, 0) + 1
        return True


class GenericsCollectingVisitor(AbstractVisitor):
    """Counts every generic type usage found in ``Type`` names."""

    def __init__(
        self,
        ast_resolver: Optional[ASTResolver] = None,
        resolve_name: NameResolver = type_name,
        max_depth: int = DEFAULT_MAX_SIGNATURE_DEPTH,
    ) -> None:
        super().__init__(ast_resolver)
        self.resolve_name = resolve_name
        self.max_depth = max_depth
        self.counts: MutableMapping[str, int] = {}
        self.skipped = 0

    def initialize(self, counts: Optional[MutableMapping[str, int]] = None) -> "GenericsCollectingVisitor":
        self.counts = counts if counts is not None else {}
        self.skipped = 0
        super().initialize()
        return self

    def pre_visit_type(self, node: Type) -> bool:
        signature = self.resolve_name(node.name)
        try:
            parse_generic_type(signature, self.counts, self.max_depth)
        except SignatureTooComplexError as exc:
            self.skipped += 1
            logger.warning("Skipping type %r (resolved %r): %s", node.name, signature, exc)
        return True


def collect_annotations(
    root: Any,
    counts: MutableMapping[str, int],
    ast_resolver: Optional[ASTResolver] = None,
    resolve_name: NameResolver = type_name,
) -> MutableMapping[str, int]:
    visitor = AnnotationCollectingVisitor(ast_resolver, resolve_name)
    visitor.initialize(counts).visit(root)
    return visitor.counts


def collect_generic_types(
    root: Any,
    counts: MutableMapping[str, int],
    ast_resolver: Optional[ASTResolver] = None,
    max_depth: int = DEFAULT_MAX_SIGNATURE_DEPTH,
    resolve_name: NameResolver = type_name,
) -> MutableMapping[str, int]:
    visitor = GenericsCollectingVisitor(ast_resolver, resolve_name, max_depth=max_depth)
    visitor.initialize(counts).visit(root)
    return visitor.counts


def count_features(root: Any, ast_resolver: Optional[ASTResolver] = None) -> Dict[str, int]:
    """Run every registered ``uses_*`` detector over *root*."""
    return {name: func(root, ast_resolver) for name, func in FEATURES.items()}
