"""Node model for repository-history ASTs consumed by the traversal engine.

Nodes are immutable once built. Ordered children are stored as tuples and
optional children as ``None`` when absent; use the ``has_*`` properties to
probe them before access.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class NodeKind(str, Enum):
    """Tag identifying which node class a value belongs to."""

    PROJECT = "project"
    CODE_REPOSITORY = "code_repository"
    REVISION = "revision"
    AST_ROOT = "ast_root"
    NAMESPACE = "namespace"
    DECLARATION = "declaration"
    TYPE = "type"
    METHOD = "method"
    VARIABLE = "variable"
    STATEMENT = "statement"
    EXPRESSION = "expression"
    MODIFIER = "modifier"
    COMMENT = "comment"


class TypeKind(str, Enum):
    OTHER = "OTHER"
    CLASS = "CLASS"
    INTERFACE = "INTERFACE"
    ENUM = "ENUM"
    ANNOTATION = "ANNOTATION"
    GENERIC = "GENERIC"


class StatementKind(str, Enum):
    OTHER = "OTHER"
    BLOCK = "BLOCK"
    TYPEDECL = "TYPEDECL"
    EXPRESSION = "EXPRESSION"
    SYNCHRONIZED = "SYNCHRONIZED"
    RETURN = "RETURN"
    FOR = "FOR"
    DO = "DO"
    WHILE = "WHILE"
    IF = "IF"
    ASSERT = "ASSERT"
    BREAK = "BREAK"
    CONTINUE = "CONTINUE"
    LABEL = "LABEL"
    SWITCH = "SWITCH"
    CASE = "CASE"
    TRY = "TRY"
    THROW = "THROW"
    CATCH = "CATCH"
    EMPTY = "EMPTY"


class ExpressionKind(str, Enum):
    OTHER = "OTHER"
    LITERAL = "LITERAL"
    VARACCESS = "VARACCESS"
    VARDECL = "VARDECL"
    METHODCALL = "METHODCALL"
    CAST = "CAST"
    ARRAYINDEX = "ARRAYINDEX"
    ARRAYINIT = "ARRAYINIT"
    TYPECOMPARE = "TYPECOMPARE"
    NEW = "NEW"
    NEWARRAY = "NEWARRAY"
    OP_ADD = "OP_ADD"
    OP_SUB = "OP_SUB"
    LOGICAL_NOT = "LOGICAL_NOT"
    LOGICAL_AND = "LOGICAL_AND"
    LOGICAL_OR = "LOGICAL_OR"
    EQ = "EQ"
    NEQ = "NEQ"
    ASSIGN = "ASSIGN"
    CONDITIONAL = "CONDITIONAL"
    NULLCOALESCE = "NULLCOALESCE"


class ModifierKind(str, Enum):
    OTHER = "OTHER"
    VISIBILITY = "VISIBILITY"
    ANNOTATION = "ANNOTATION"
    FINAL = "FINAL"
    STATIC = "STATIC"
    SYNCHRONIZED = "SYNCHRONIZED"
    ABSTRACT = "ABSTRACT"


class CommentKind(str, Enum):
    OTHER = "OTHER"
    LINE = "LINE"
    BLOCK = "BLOCK"
    DOC = "DOC"
    SPEC = "SPEC"


@dataclass(frozen=True)
class Comment:
    value: str = ""
    kind: CommentKind = CommentKind.OTHER

    node_kind = NodeKind.COMMENT


@dataclass(frozen=True)
class Type:
    """Leaf node; ``name`` may encode generics, wildcards and bounds."""

    name: str
    kind: TypeKind = TypeKind.OTHER

    node_kind = NodeKind.TYPE


@dataclass(frozen=True)
class Modifier:
    kind: ModifierKind = ModifierKind.OTHER
    visibility: str = ""
    annotation_name: str = ""
    annotation_members: Tuple[str, ...] = ()
    annotation_values: Tuple["Expression", ...] = ()
    other: str = ""

    node_kind = NodeKind.MODIFIER


@dataclass(frozen=True)
class Expression:
    kind: ExpressionKind = ExpressionKind.OTHER
    expressions: Tuple["Expression", ...] = ()
    variable_decls: Tuple["Variable", ...] = ()
    new_type: Optional[Type] = None
    generic_parameters: Tuple[Type, ...] = ()
    method: str = ""
    method_args: Tuple["Expression", ...] = ()
    literal: Optional[str] = None
    variable: str = ""
    anon_declaration: Optional["Declaration"] = None

    node_kind = NodeKind.EXPRESSION

    @property
    def has_new_type(self) -> bool:
        return self.new_type is not None

    @property
    def has_literal(self) -> bool:
        return self.literal is not None

    @property
    def has_anon_declaration(self) -> bool:
        return self.anon_declaration is not None


@dataclass(frozen=True)
class Variable:
    name: str
    variable_type: Type
    modifiers: Tuple[Modifier, ...] = ()
    initializer: Optional[Expression] = None
    comments: Tuple[Comment, ...] = ()

    node_kind = NodeKind.VARIABLE

    @property
    def has_initializer(self) -> bool:
        return self.initializer is not None


@dataclass(frozen=True)
class Statement:
    kind: StatementKind = StatementKind.OTHER
    comments: Tuple[Comment, ...] = ()
    statements: Tuple["Statement", ...] = ()
    initializations: Tuple[Expression, ...] = ()
    condition: Optional[Expression] = None
    updates: Tuple[Expression, ...] = ()
    variable_declaration: Optional[Variable] = None
    type_declaration: Optional["Declaration"] = None
    expression: Optional[Expression] = None

    node_kind = NodeKind.STATEMENT

    @property
    def has_condition(self) -> bool:
        return self.condition is not None

    @property
    def has_variable_declaration(self) -> bool:
        return self.variable_declaration is not None

    @property
    def has_type_declaration(self) -> bool:
        return self.type_declaration is not None

    @property
    def has_expression(self) -> bool:
        return self.expression is not None


@dataclass(frozen=True)
class Method:
    name: str
    return_type: Type
    modifiers: Tuple[Modifier, ...] = ()
    generic_parameters: Tuple[Type, ...] = ()
    arguments: Tuple[Variable, ...] = ()
    exception_types: Tuple[Type, ...] = ()
    statements: Tuple[Statement, ...] = ()
    comments: Tuple[Comment, ...] = ()

    node_kind = NodeKind.METHOD


@dataclass(frozen=True)
class Declaration:
    name: str
    kind: TypeKind = TypeKind.CLASS
    modifiers: Tuple[Modifier, ...] = ()
    generic_parameters: Tuple[Type, ...] = ()
    parents: Tuple[Type, ...] = ()
    methods: Tuple[Method, ...] = ()
    fields: Tuple[Variable, ...] = ()
    nested_declarations: Tuple["Declaration", ...] = ()
    comments: Tuple[Comment, ...] = ()

    node_kind = NodeKind.DECLARATION


@dataclass(frozen=True)
class Namespace:
    name: str = ""
    modifiers: Tuple[Modifier, ...] = ()
    declarations: Tuple[Declaration, ...] = ()

    node_kind = NodeKind.NAMESPACE


@dataclass(frozen=True)
class ASTRoot:
    namespaces: Tuple[Namespace, ...] = ()
    imports: Tuple[str, ...] = ()

    node_kind = NodeKind.AST_ROOT


@dataclass(frozen=True)
class ChangedFile:
    """Reference to a file touched by a revision; resolved to an ASTRoot externally."""

    name: str
    kind: str = "SOURCE_JAVA_JLS"
    change: str = "MODIFIED"


@dataclass(frozen=True)
class Revision:
    id: str
    files: Tuple[ChangedFile, ...] = ()
    author: str = ""
    log: str = ""
    commit_date: int = 0

    node_kind = NodeKind.REVISION


@dataclass(frozen=True)
class CodeRepository:
    url: str
    revisions: Tuple[Revision, ...] = ()
    kind: str = "GIT"

    node_kind = NodeKind.CODE_REPOSITORY


@dataclass(frozen=True)
class Project:
    name: str
    code_repositories: Tuple[CodeRepository, ...] = ()

    node_kind = NodeKind.PROJECT
