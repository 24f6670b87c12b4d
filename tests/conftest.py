"""Pytest configuration and fixtures for CodeFeatures CLI tests."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator

import pytest

from codefeatures_cli.models import (
    ASTRoot,
    Comment,
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
    TypeKind,
    Variable,
)


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch):
    """Point configuration at a throwaway directory for every test."""
    monkeypatch.setattr("codefeatures_cli.config.BASE_DIR", tmp_path / "home")
    monkeypatch.setattr("codefeatures_cli.config.CONFIG_FILE", tmp_path / "home" / "config.toml")
    monkeypatch.delenv("CODEFEATURES_MAX_DEPTH", raising=False)
    monkeypatch.delenv("CODEFEATURES_LOG_LEVEL", raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


def _annotation(name: str, members=(), values=()) -> Modifier:
    return Modifier(
        kind=ModifierKind.ANNOTATION,
        annotation_name=name,
        annotation_members=tuple(members),
        annotation_values=tuple(values),
    )


@pytest.fixture
def sample_ast() -> ASTRoot:
    """A small Java file exercising every detector at least once.

    Roughly::

        @Deprecated
        class Box<T> implements Comparable<Box<T>> {
            List<Map<String, Integer>> items = new ArrayList<>();
            Class<?> type;

            @SafeVarargs
            <E extends T> void addAll(E... values) {
                for (E v : values) { assert v != null; }
            }

            @SuppressWarnings({"unchecked", "varargs"})
            List<? super T> copy(List<? extends T> src) {
                try (Reader r = open()) {
                } catch (IOException | RuntimeException e) { }
                x = 0b1010_1010 + 1_000_000;
            }
        }
        enum Color {}
        @interface Marker {}
    """
    add_all = Method(
        name="addAll",
        return_type=Type("void"),
        modifiers=(_annotation("SafeVarargs"),),
        generic_parameters=(Type("E extends T"),),
        arguments=(Variable("values", Type("E...")),),
        statements=(
            Statement(
                kind=StatementKind.FOR,
                variable_declaration=Variable("v", Type("E")),
                expression=Expression(kind=ExpressionKind.VARACCESS, variable="values"),
                statements=(Statement(kind=StatementKind.ASSERT),),
            ),
        ),
    )
    suppress = _annotation(
        "SuppressWarnings",
        members=("value",),
        values=(
            Expression(
                kind=ExpressionKind.ARRAYINIT,
                expressions=(
                    Expression(kind=ExpressionKind.LITERAL, literal='"unchecked"'),
                    Expression(kind=ExpressionKind.LITERAL, literal='"varargs"'),
                ),
            ),
        ),
    )
    copy = Method(
        name="copy",
        return_type=Type("List<? super T>"),
        modifiers=(suppress,),
        arguments=(Variable("src", Type("List<? extends T>")),),
        statements=(
            Statement(
                kind=StatementKind.TRY,
                initializations=(Expression(kind=ExpressionKind.VARDECL),),
                statements=(
                    Statement(
                        kind=StatementKind.CATCH,
                        variable_declaration=Variable("e", Type("IOException | RuntimeException")),
                    ),
                ),
            ),
            Statement(
                kind=StatementKind.EXPRESSION,
                expression=Expression(
                    kind=ExpressionKind.ASSIGN,
                    expressions=(
                        Expression(kind=ExpressionKind.LITERAL, literal="0b1010_1010"),
                        Expression(kind=ExpressionKind.LITERAL, literal="1_000_000"),
                    ),
                ),
            ),
        ),
        comments=(Comment("copies"),),
    )
    box = Declaration(
        name="Box",
        kind=TypeKind.CLASS,
        modifiers=(_annotation("Deprecated"),),
        generic_parameters=(Type("T"),),
        parents=(Type("Comparable<Box<T>>"),),
        methods=(add_all, copy),
        fields=(
            Variable(
                "items",
                Type("List<Map<String, Integer>>"),
                initializer=Expression(kind=ExpressionKind.NEW, new_type=Type("ArrayList<>")),
            ),
            Variable("type", Type("Class<?>")),
        ),
    )
    return ASTRoot(
        namespaces=(
            Namespace(
                name="demo",
                declarations=(
                    box,
                    Declaration(name="Color", kind=TypeKind.ENUM),
                    Declaration(name="Marker", kind=TypeKind.ANNOTATION),
                ),
            ),
        ),
    )


@pytest.fixture
def project_document() -> Dict[str, Any]:
    """JSON-shaped project with two revisions; one file has no AST."""
    ast = {
        "namespaces": [
            {
                "name": "demo",
                "declarations": [
                    {
                        "name": "Repo",
                        "kind": "CLASS",
                        "generic_parameters": ["K"],
                        "modifiers": [{"kind": "ANNOTATION", "annotation_name": "Deprecated"}],
                        "fields": [{"name": "cache", "variable_type": "Map<K, List<String>>"}],
                        "methods": [
                            {
                                "name": "check",
                                "return_type": "void",
                                "statements": [{"kind": "ASSERT"}],
                            }
                        ],
                    },
                    {"name": "Mode", "kind": "ENUM"},
                ],
            }
        ]
    }
    return {
        "name": "demo",
        "code_repositories": [
            {
                "url": "https://example.org/demo.git",
                "revisions": [
                    {"id": "r1", "files": [{"name": "src/Repo.java", "ast": ast}]},
                    {
                        "id": "r2",
                        "files": [
                            {"name": "src/Repo.java", "ast": ast},
                            {"name": "src/Broken.java"},
                        ],
                    },
                ],
            }
        ],
    }


@pytest.fixture
def project_file(temp_dir: Path, project_document: Dict[str, Any]) -> Path:
    path = temp_dir / "project.json"
    path.write_text(json.dumps(project_document), encoding="utf-8")
    return path
