"""Build the node model from JSON-shaped dicts and resolve per-file ASTs.

A project document looks like::

    {"name": "demo",
     "code_repositories": [
        {"url": "https://example.org/demo.git",
         "revisions": [
            {"id": "r1",
             "files": [{"name": "src/A.java", "ast": {"namespaces": [...]}}]}]}]}

Each file's ``ast`` is kept out of the tree and registered with an
:class:`InMemoryASTResolver`, which the visitor consults when it reaches the
revision. Files without an ``ast`` entry have no AST available.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple, Type as TypingType, TypeVar

from .models import (
    ASTRoot,
    ChangedFile,
    CodeRepository,
    Comment,
    CommentKind,
    Declaration,
    Expression,
    ExpressionKind,
    Method,
    Modifier,
    ModifierKind,
    Namespace,
    Project,
    Revision,
    Statement,
    StatementKind,
    Type,
    TypeKind,
    Variable,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


class AstLoadError(ValueError):
    """Raised when a document does not describe a valid node tree."""


class InMemoryASTResolver:
    """Map ``(revision id, file name)`` to an ASTRoot."""

    def __init__(self) -> None:
        self._asts: Dict[Tuple[str, str], ASTRoot] = {}

    def register(self, revision_id: str, file_name: str, root: ASTRoot) -> None:
        self._asts[(revision_id, file_name)] = root

    def __call__(self, revision: Revision, changed_file: ChangedFile) -> Optional[ASTRoot]:
        return self._asts.get((revision.id, changed_file.name))

    def __len__(self) -> int:
        return len(self._asts)


# ------------------------------------------------------------------
# Field helpers
# ------------------------------------------------------------------

def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if not isinstance(data, dict):
        raise AstLoadError(f"{where}: expected an object, got {type(data).__name__}")
    if key not in data:
        raise AstLoadError(f"{where}: missing required field '{key}'")
    return data[key]


def _text(value: Any, key: str, where: str, optional: bool = False) -> Optional[str]:
    if value is None and optional:
        return None
    if not isinstance(value, str):
        raise AstLoadError(f"{where}: '{key}' must be a string, got {type(value).__name__}")
    return value


def _enum(enum_cls: TypingType[E], value: Optional[str], default: E, where: str) -> E:
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        raise AstLoadError(f"{where}: unknown {enum_cls.__name__} '{value}'") from None


def _many(data: Dict[str, Any], key: str, build: Any, where: str) -> Tuple[Any, ...]:
    items = data.get(key, [])
    if not isinstance(items, list):
        raise AstLoadError(f"{where}: '{key}' must be a list")
    return tuple(build(item, f"{where}.{key}[{i}]") for i, item in enumerate(items))


def _optional(data: Dict[str, Any], key: str, build: Any, where: str) -> Any:
    value = data.get(key)
    if value is None:
        return None
    return build(value, f"{where}.{key}")


# ------------------------------------------------------------------
# AST nodes
# ------------------------------------------------------------------

def build_comment(data: Dict[str, Any], where: str = "comment") -> Comment:
    if isinstance(data, str):
        return Comment(value=data)
    return Comment(
        value=data.get("value", ""),
        kind=_enum(CommentKind, data.get("kind"), CommentKind.OTHER, where),
    )


def build_type(data: Any, where: str = "type") -> Type:
    if isinstance(data, str):
        return Type(name=data)
    return Type(
        name=_text(_require(data, "name", where), "name", where),
        kind=_enum(TypeKind, data.get("kind"), TypeKind.OTHER, where),
    )


def build_modifier(data: Dict[str, Any], where: str = "modifier") -> Modifier:
    _require(data, "kind", where)
    return Modifier(
        kind=_enum(ModifierKind, data.get("kind"), ModifierKind.OTHER, where),
        visibility=data.get("visibility", ""),
        annotation_name=_text(data.get("annotation_name", ""), "annotation_name", where),
        annotation_members=tuple(data.get("annotation_members", [])),
        annotation_values=_many(data, "annotation_values", build_expression, where),
        other=data.get("other", ""),
    )


def build_expression(data: Dict[str, Any], where: str = "expression") -> Expression:
    _require(data, "kind", where)
    return Expression(
        kind=_enum(ExpressionKind, data.get("kind"), ExpressionKind.OTHER, where),
        expressions=_many(data, "expressions", build_expression, where),
        variable_decls=_many(data, "variable_decls", build_variable, where),
        new_type=_optional(data, "new_type", build_type, where),
        generic_parameters=_many(data, "generic_parameters", build_type, where),
        method=data.get("method", ""),
        method_args=_many(data, "method_args", build_expression, where),
        literal=_text(data.get("literal"), "literal", where, optional=True),
        variable=data.get("variable", ""),
        anon_declaration=_optional(data, "anon_declaration", build_declaration, where),
    )


def build_variable(data: Dict[str, Any], where: str = "variable") -> Variable:
    return Variable(
        name=_require(data, "name", where),
        variable_type=build_type(_require(data, "variable_type", where), f"{where}.variable_type"),
        modifiers=_many(data, "modifiers", build_modifier, where),
        initializer=_optional(data, "initializer", build_expression, where),
        comments=_many(data, "comments", build_comment, where),
    )


def build_statement(data: Dict[str, Any], where: str = "statement") -> Statement:
    _require(data, "kind", where)
    return Statement(
        kind=_enum(StatementKind, data.get("kind"), StatementKind.OTHER, where),
        comments=_many(data, "comments", build_comment, where),
        statements=_many(data, "statements", build_statement, where),
        initializations=_many(data, "initializations", build_expression, where),
        condition=_optional(data, "condition", build_expression, where),
        updates=_many(data, "updates", build_expression, where),
        variable_declaration=_optional(data, "variable_declaration", build_variable, where),
        type_declaration=_optional(data, "type_declaration", build_declaration, where),
        expression=_optional(data, "expression", build_expression, where),
    )


def build_method(data: Dict[str, Any], where: str = "method") -> Method:
    return Method(
        name=_require(data, "name", where),
        return_type=build_type(data.get("return_type", "void"), f"{where}.return_type"),
        modifiers=_many(data, "modifiers", build_modifier, where),
        generic_parameters=_many(data, "generic_parameters", build_type, where),
        arguments=_many(data, "arguments", build_variable, where),
        exception_types=_many(data, "exception_types", build_type, where),
        statements=_many(data, "statements", build_statement, where),
        comments=_many(data, "comments", build_comment, where),
    )


def build_declaration(data: Dict[str, Any], where: str = "declaration") -> Declaration:
    return Declaration(
        name=_require(data, "name", where),
        kind=_enum(TypeKind, data.get("kind"), TypeKind.CLASS, where),
        modifiers=_many(data, "modifiers", build_modifier, where),
        generic_parameters=_many(data, "generic_parameters", build_type, where),
        parents=_many(data, "parents", build_type, where),
        methods=_many(data, "methods", build_method, where),
        fields=_many(data, "fields", build_variable, where),
        nested_declarations=_many(data, "nested_declarations", build_declaration, where),
        comments=_many(data, "comments", build_comment, where),
    )


def build_namespace(data: Dict[str, Any], where: str = "namespace") -> Namespace:
    return Namespace(
        name=data.get("name", ""),
        modifiers=_many(data, "modifiers", build_modifier, where),
        declarations=_many(data, "declarations", build_declaration, where),
    )


def build_ast_root(data: Dict[str, Any], where: str = "ast") -> ASTRoot:
    if not isinstance(data, dict):
        raise AstLoadError(f"{where}: expected an object, got {type(data).__name__}")
    return ASTRoot(
        namespaces=_many(data, "namespaces", build_namespace, where),
        imports=tuple(data.get("imports", [])),
    )


# ------------------------------------------------------------------
# Repository history
# ------------------------------------------------------------------

def build_project(data: Dict[str, Any], resolver: Optional[InMemoryASTResolver] = None) -> Project:
    """Build a Project, registering each file's embedded AST with *resolver*."""
    resolver = resolver if resolver is not None else InMemoryASTResolver()
    where = "project"
    name = _require(data, "name", where)

    repositories = []
    for r, repo in enumerate(data.get("code_repositories", [])):
        repo_where = f"{where}.code_repositories[{r}]"
        url = _require(repo, "url", repo_where)
        revisions = []
        for v, rev in enumerate(repo.get("revisions", [])):
            rev_where = f"{repo_where}.revisions[{v}]"
            revision_id = str(_require(rev, "id", rev_where))
            files = []
            for f, file_data in enumerate(rev.get("files", [])):
                file_where = f"{rev_where}.files[{f}]"
                file_name = _require(file_data, "name", file_where)
                files.append(
                    ChangedFile(
                        name=file_name,
                        kind=file_data.get("kind", "SOURCE_JAVA_JLS"),
                        change=file_data.get("change", "MODIFIED"),
                    )
                )
                if file_data.get("ast") is not None:
                    resolver.register(revision_id, file_name, build_ast_root(file_data["ast"], f"{file_where}.ast"))
            revisions.append(
                Revision(
                    id=revision_id,
                    files=tuple(files),
                    author=rev.get("author", ""),
                    log=rev.get("log", ""),
                    commit_date=int(rev.get("commit_date", 0)),
                )
            )
        repositories.append(
            CodeRepository(
                url=url,
                revisions=tuple(revisions),
                kind=repo.get("kind", "GIT"),
            )
        )

    return Project(name=name, code_repositories=tuple(repositories))


def load_project(path: Path) -> Tuple[Project, InMemoryASTResolver]:
    """Load a project document from *path*.

    Returns:
        The project tree and a resolver holding every embedded file AST.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except UnicodeDecodeError as exc:
        raise AstLoadError(f"{path}: not UTF-8 text: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise AstLoadError(f"{path}: invalid JSON: {exc}") from exc

    resolver = InMemoryASTResolver()
    project = build_project(data, resolver)
    logger.info("Loaded project '%s' with %d file ASTs from %s", project.name, len(resolver), path)
    return project, resolver


def iter_asts(project: Project, resolver: InMemoryASTResolver) -> Iterable[Tuple[Revision, ChangedFile, ASTRoot]]:
    """Yield every resolvable file AST in project order."""
    for repository in project.code_repositories:
        for revision in repository.revisions:
            for changed_file in revision.files:
                root = resolver(revision, changed_file)
                if root is not None:
                    yield revision, changed_file, root
