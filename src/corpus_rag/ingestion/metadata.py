"""Structural metadata extraction for source-code corpora.

Declared symbols are enumerated from a real parse of the file
(``tree-sitter`` for TypeScript, :mod:`ast` for Python).  Import
statements, on the other hand, are matched lexically per chunk so that a
chunk only advertises the imports whose text actually ended up in it.
Multi-line or otherwise unusual import forms may be missed.
"""

from __future__ import annotations

import ast
import logging
import re
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TYPESCRIPT_EXTENSIONS = frozenset({".ts", ".tsx", ".mts", ".cts"})
PYTHON_EXTENSIONS = frozenset({".py"})

_TS_IMPORT_RE = re.compile(r"""import\s+(?:.+?\s+from\s+)?(['"])(.+?)\1;?""")
_PY_IMPORT_RE = re.compile(r"^\s*(?:from\s+(\.*[\w.]*)\s+import\s+|import\s+([\w.]+))", re.MULTILINE)


@dataclass
class StructuralMetadata:
    """Symbols declared at the top level of a source file."""

    classes: list[str] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)
    interfaces: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    def is_empty(self) -> bool:
        return not any((self.classes, self.functions, self.interfaces, self.types, self.exports))


# ---------------------------------------------------------------------------
# TypeScript
# ---------------------------------------------------------------------------


@lru_cache(maxsize=2)
def _typescript_parser(tsx: bool = False) -> Any:
    import tree_sitter_typescript
    from tree_sitter import Language, Parser

    grammar = tree_sitter_typescript.language_tsx() if tsx else tree_sitter_typescript.language_typescript()
    return Parser(Language(grammar))


def _node_name(node: Any, field_name: str = "name") -> str | None:
    child = node.child_by_field_name(field_name)
    if child is None:
        return None
    return child.text.decode("utf-8")


def _collect_ts_declaration(node: Any, meta: StructuralMetadata) -> None:
    kind = node.type
    name = _node_name(node)
    if name is None:
        return
    if kind in ("class_declaration", "abstract_class_declaration"):
        meta.classes.append(name)
    elif kind in ("function_declaration", "generator_function_declaration"):
        meta.functions.append(name)
    elif kind == "interface_declaration":
        meta.interfaces.append(name)
    elif kind == "type_alias_declaration":
        meta.types.append(name)


def _collect_ts_export_clause(clause: Any, meta: StructuralMetadata) -> None:
    for spec in clause.named_children:
        if spec.type != "export_specifier":
            continue
        exported = _node_name(spec, "alias") or _node_name(spec, "name")
        if exported:
            meta.exports.append(exported)


def extract_typescript(content: str, *, tsx: bool = False) -> StructuralMetadata:
    """Enumerate top-level TypeScript declarations and named exports."""
    tree = _typescript_parser(tsx).parse(content.encode("utf-8"))
    meta = StructuralMetadata()
    for node in tree.root_node.named_children:
        if node.type == "export_statement":
            declaration = node.child_by_field_name("declaration")
            if declaration is not None:
                _collect_ts_declaration(declaration, meta)
                continue
            for child in node.named_children:
                if child.type == "export_clause":
                    _collect_ts_export_clause(child, meta)
        else:
            _collect_ts_declaration(node, meta)
    return meta


# ---------------------------------------------------------------------------
# Python
# ---------------------------------------------------------------------------


def _is_protocol(node: ast.ClassDef) -> bool:
    for base in node.bases:
        if isinstance(base, ast.Name) and base.id == "Protocol":
            return True
        if isinstance(base, ast.Attribute) and base.attr == "Protocol":
            return True
    return False


def _dunder_all(node: ast.Assign) -> list[str]:
    if not any(isinstance(t, ast.Name) and t.id == "__all__" for t in node.targets):
        return []
    if not isinstance(node.value, (ast.List, ast.Tuple)):
        return []
    return [elt.value for elt in node.value.elts if isinstance(elt, ast.Constant) and isinstance(elt.value, str)]


def extract_python(content: str) -> StructuralMetadata:
    """Enumerate top-level Python classes, functions, type aliases and ``__all__``."""
    module = ast.parse(content)
    meta = StructuralMetadata()
    for node in module.body:
        if isinstance(node, ast.ClassDef):
            (meta.interfaces if _is_protocol(node) else meta.classes).append(node.name)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            meta.functions.append(node.name)
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            annotation = ast.unparse(node.annotation)
            if annotation.endswith("TypeAlias"):
                meta.types.append(node.target.id)
        elif isinstance(node, ast.Assign):
            meta.exports.extend(_dunder_all(node))
        elif type(node).__name__ == "TypeAlias":  # ``type X = ...`` (3.12+)
            meta.types.append(node.name.id)  # type: ignore[attr-defined]
    return meta


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_structure(file_path: str | Path, content: str) -> StructuralMetadata:
    """Return the structural metadata of a source file.

    Dispatches on the file extension.  Parse failures and unsupported
    languages yield an empty :class:`StructuralMetadata` rather than an
    error; partial metadata is preferable to dropping the file.
    """
    suffix = Path(file_path).suffix.lower()
    try:
        if suffix in TYPESCRIPT_EXTENSIONS:
            return extract_typescript(content, tsx=suffix == ".tsx")
        if suffix in PYTHON_EXTENSIONS:
            return extract_python(content)
    except Exception:
        logger.warning("Could not extract structural metadata from %s", file_path, exc_info=True)
        return StructuralMetadata()
    logger.debug("No structural extractor for %s", file_path)
    return StructuralMetadata()


def extract_imports(chunk_text: str, file_path: str | Path) -> list[str]:
    """Return the module specifiers of import statements found in *chunk_text*."""
    suffix = Path(file_path).suffix.lower()
    if suffix in PYTHON_EXTENSIONS:
        return [m.group(1) or m.group(2) for m in _PY_IMPORT_RE.finditer(chunk_text)]
    return [m.group(2) for m in _TS_IMPORT_RE.finditer(chunk_text)]
