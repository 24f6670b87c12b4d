"""Generic pre-order/post-order traversal over the repository AST.

``visit(node)`` first calls ``pre_visit(node)``. If it returns ``True`` the
node's children are visited in a fixed order and then ``post_visit(node)`` is
called. If it returns ``False`` neither the children nor ``post_visit`` run.

Hooks are looked up by node tag: a visitor interested in statements defines
``pre_visit_statement`` and/or ``post_visit_statement``. Kinds without a hook
fall back to :meth:`AbstractVisitor.default_pre_visit` (returning ``True``)
and :meth:`AbstractVisitor.default_post_visit`.

A visitor that walks only some children overrides
:meth:`AbstractVisitor.children`. A hook may also call ``self.visit()`` on
chosen children and return ``False``, at the cost of one Python frame chain
per nesting level.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .models import (
    ASTRoot,
    ChangedFile,
    CodeRepository,
    Declaration,
    Expression,
    Method,
    Modifier,
    Namespace,
    NodeKind,
    Project,
    Revision,
    Statement,
    Variable,
)

logger = logging.getLogger(__name__)

ASTResolver = Callable[[Revision, ChangedFile], Optional[ASTRoot]]


class VisitorNotInitializedError(RuntimeError):
    """Raised when a visitor starts a traversal without being reset first."""


def no_ast_resolver(revision: Revision, changed_file: ChangedFile) -> Optional[ASTRoot]:
    """Resolver used when none is supplied: no file has an AST."""
    return None


# ---------------------------------------------------------------------------
# Child order per node kind
# ---------------------------------------------------------------------------

def _project_children(node: Project, resolver: ASTResolver) -> Iterator[Any]:
    yield from node.code_repositories


def _repository_children(node: CodeRepository, resolver: ASTResolver) -> Iterator[Any]:
    yield from node.revisions


def _revision_children(node: Revision, resolver: ASTResolver) -> Iterator[Any]:
    for changed_file in node.files:
        root = resolver(node, changed_file)
        if root is None:
            logger.debug("No AST for '%s' at revision %s; skipping", changed_file.name, node.id)
            continue
        yield root


def _ast_root_children(node: ASTRoot, resolver: ASTResolver) -> Iterator[Any]:
    yield from node.namespaces


def _namespace_children(node: Namespace, resolver: ASTResolver) -> Iterator[Any]:
    yield from node.declarations
    yield from node.modifiers


def _declaration_children(node: Declaration, resolver: ASTResolver) -> Iterator[Any]:
    yield from node.modifiers
    yield from node.generic_parameters
    yield from node.parents
    yield from node.methods
    yield from node.fields
    yield from node.nested_declarations
    yield from node.comments


def _method_children(node: Method, resolver: ASTResolver) -> Iterator[Any]:
    yield node.return_type
    yield from node.modifiers
    yield from node.generic_parameters
    yield from node.arguments
    yield from node.exception_types
    yield from node.statements
    yield from node.comments


def _variable_children(node: Variable, resolver: ASTResolver) -> Iterator[Any]:
    yield node.variable_type
    yield from node.modifiers
    if node.has_initializer:
        yield node.initializer
    yield from node.comments


def _statement_children(node: Statement, resolver: ASTResolver) -> Iterator[Any]:
    yield from node.comments
    yield from node.statements
    yield from node.initializations
    if node.has_condition:
        yield node.condition
    yield from node.updates
    if node.has_variable_declaration:
        yield node.variable_declaration
    if node.has_type_declaration:
        yield node.type_declaration
    if node.has_expression:
        yield node.expression


def _expression_children(node: Expression, resolver: ASTResolver) -> Iterator[Any]:
    yield from node.expressions
    yield from node.variable_decls
    if node.has_new_type:
        yield node.new_type
    yield from node.generic_parameters
    yield from node.method_args
    if node.has_anon_declaration:
        yield node.anon_declaration


def _modifier_children(node: Modifier, resolver: ASTResolver) -> Iterator[Any]:
    yield from node.annotation_values


def _leaf_children(node: Any, resolver: ASTResolver) -> Iterator[Any]:
    return iter(())


CHILDREN: Dict[NodeKind, Callable[[Any, ASTResolver], Iterator[Any]]] = {
    NodeKind.PROJECT: _project_children,
    NodeKind.CODE_REPOSITORY: _repository_children,
    NodeKind.REVISION: _revision_children,
    NodeKind.AST_ROOT: _ast_root_children,
    NodeKind.NAMESPACE: _namespace_children,
    NodeKind.DECLARATION: _declaration_children,
    NodeKind.TYPE: _leaf_children,
    NodeKind.METHOD: _method_children,
    NodeKind.VARIABLE: _variable_children,
    NodeKind.STATEMENT: _statement_children,
    NodeKind.EXPRESSION: _expression_children,
    NodeKind.MODIFIER: _modifier_children,
    NodeKind.COMMENT: _leaf_children,
}


# ===================================================================
# Visitors
# ===================================================================

class AbstractVisitor:
    """Base class for AST visitors.

    Visitors are reused across many inputs, so every top-level traversal must
    be preceded by :meth:`initialize` (or use :meth:`run`, which does both).
    Starting a second top-level ``visit()`` without a reset raises
    :class:`VisitorNotInitializedError`.
    """

    def __init__(self, ast_resolver: Optional[ASTResolver] = None) -> None:
        self.ast_resolver: ASTResolver = ast_resolver or no_ast_resolver
        self._initialized = False
        self._depth = 0

    def initialize(self) -> "AbstractVisitor":
        """Reset visitor-specific state before a traversal.

        Subclasses holding state must override this, reset their fields and
        return ``super().initialize()``.
        """
        self._initialized = True
        return self

    def run(self, node: Any) -> "AbstractVisitor":
        """Initialize, traverse *node*, and return the visitor."""
        self.initialize().visit(node)
        return self

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def default_pre_visit(self) -> None:
        """Action for every ``pre_visit`` without a kind-specific hook."""

    def default_post_visit(self) -> None:
        """Action for every ``post_visit`` without a kind-specific hook."""

    def pre_visit(self, node: Any) -> bool:
        hook = getattr(self, "pre_visit_" + node.node_kind.value, None)
        if hook is None:
            self.default_pre_visit()
            return True
        return hook(node)

    def post_visit(self, node: Any) -> None:
        hook = getattr(self, "post_visit_" + node.node_kind.value, None)
        if hook is None:
            self.default_post_visit()
        else:
            hook(node)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def visit(self, node: Any) -> None:
        """Visit *node* and, unless ``pre_visit`` declines, its subtree."""
        if self._depth == 0 and not self._initialized:
            raise VisitorNotInitializedError(
                f"{type(self).__name__} must be initialized before each traversal"
            )
        self._depth += 1
        try:
            self._walk(node)
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._initialized = False

    def _walk(self, node: Any) -> None:
        # Explicit stack of (node, pending children); hooks may re-enter visit().
        if not self.pre_visit(node):
            return
        stack: List[Tuple[Any, Iterator[Any]]] = [(node, self.children(node))]
        while stack:
            current, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                self.post_visit(current)
            elif self.pre_visit(child):
                stack.append((child, self.children(child)))

    def children(self, node: Any) -> Iterator[Any]:
        """Children of *node* in traversal order.

        Override to restrict which children are walked; the result is pushed
        onto the traversal stack, so restricted walks stay iterative.
        """
        return CHILDREN[node.node_kind](node, self.ast_resolver)


class CountingVisitor(AbstractVisitor):
    """Visitor accumulating a single integer count."""

    def __init__(self, ast_resolver: Optional[ASTResolver] = None) -> None:
        super().__init__(ast_resolver)
        self.count = 0

    def initialize(self) -> "CountingVisitor":
        self.count = 0
        super().initialize()
        return self
