"""Import declaration extraction.

Reads ``import`` statements into plain records so the classifier, the
rewrite passes and the analyzer share one view of a file's bindings.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import tree_sitter

from .models import SyntaxTree
from .utils import string_value


@dataclass
class ImportSpecifier:
    """One ``{ imported as local }`` entry of a named import."""

    imported: str
    local: str
    node: tree_sitter.Node
    type_only: bool = False


@dataclass
class ImportDeclaration:
    """A top-level ``import ... from 'module'`` statement."""

    module: str
    node: tree_sitter.Node
    default: Optional[str] = None
    namespace: Optional[str] = None
    specifiers: List[ImportSpecifier] = field(default_factory=list)
    type_only: bool = False

    @property
    def local_names(self) -> List[str]:
        names = [s.local for s in self.specifiers]
        if self.default:
            names.append(self.default)
        if self.namespace:
            names.append(self.namespace)
        return names

    @property
    def is_side_effect(self) -> bool:
        return not self.default and not self.namespace and not self.specifiers


def iter_imports(tree: SyntaxTree) -> List[ImportDeclaration]:
    """Top-level import declarations of a file, in source order."""
    declarations = []
    for child in tree.root.children:
        if child.type == "import_statement":
            declaration = _read_import(tree, child)
            if declaration is not None:
                declarations.append(declaration)
    return declarations


def _read_import(tree: SyntaxTree, node: tree_sitter.Node) -> Optional[ImportDeclaration]:
    module = string_value(tree, node.child_by_field_name("source"))
    if module is None:
        return None

    declaration = ImportDeclaration(module=module, node=node)
    # `import type { X } from '...'` (typed dialects)
    declaration.type_only = any(c.type == "type" for c in node.children)

    clause = next((c for c in node.named_children if c.type == "import_clause"), None)
    if clause is None:
        return declaration

    for part in clause.named_children:
        if part.type == "identifier":
            declaration.default = tree.text(part)
        elif part.type == "namespace_import":
            ident = next((c for c in part.named_children if c.type == "identifier"), None)
            declaration.namespace = tree.text(ident) if ident is not None else None
        elif part.type == "named_imports":
            for spec in part.named_children:
                if spec.type != "import_specifier":
                    continue
                name_node = spec.child_by_field_name("name")
                alias_node = spec.child_by_field_name("alias")
                imported = tree.text(name_node)
                if name_node is not None and name_node.type == "string":
                    imported = imported[1:-1]
                declaration.specifiers.append(ImportSpecifier(
                    imported=imported,
                    local=tree.text(alias_node) if alias_node is not None else imported,
                    node=spec,
                    type_only=any(c.type == "type" for c in spec.children),
                ))
    return declaration


def render_import(declaration: ImportDeclaration, keep: List[ImportSpecifier], quote: str = "'") -> str:
    """Render ``declaration`` keeping only the ``keep`` named specifiers."""
    parts = []
    if declaration.default:
        parts.append(declaration.default)
    if declaration.namespace:
        parts.append(f"* as {declaration.namespace}")
    if keep:
        names = []
        for spec in keep:
            prefix = "type " if spec.type_only else ""
            if spec.imported == spec.local:
                names.append(f"{prefix}{spec.local}")
            else:
                names.append(f"{prefix}{spec.imported} as {spec.local}")
        parts.append("{ " + ", ".join(names) + " }")
    keyword = "import type" if declaration.type_only else "import"
    source = f"{quote}{declaration.module}{quote}"
    if not parts:
        return f"{keyword} {source};"
    return f"{keyword} {', '.join(parts)} from {source};"
