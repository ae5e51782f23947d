"""Hierarchical view of an OutputTree."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models import OutputTree


@dataclass
class FileNode:
    name: str
    path: str
    type: str  # "file" | "directory"
    children: List["FileNode"] = field(default_factory=list)
    content: Optional[str] = None

    def find(self, path: str) -> Optional["FileNode"]:
        """Node at a slash-separated path below this one."""
        node = self
        for segment in [s for s in path.split("/") if s]:
            node = next((c for c in node.children if c.name == segment), None)
            if node is None:
                return None
        return node

    def to_dict(self, include_content: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "path": self.path, "type": self.type}
        if self.type == "directory":
            data["children"] = [c.to_dict(include_content) for c in self.children]
        elif include_content:
            data["content"] = self.content
        return data


def build_file_tree(output: OutputTree, root_name: str = "next-app") -> FileNode:
    """Directory tree of every file in ``output``, directories first."""
    root = FileNode(name=root_name, path="/", type="directory")
    for category, path, text in output.items():
        segments = [s for s in output.full_path(category, path).split("/") if s]
        file_name = segments.pop()
        current = root
        for segment in segments:
            child = next((c for c in current.children if c.type == "directory" and c.name == segment), None)
            if child is None:
                child = FileNode(name=segment, path=f"{current.path}{segment}/", type="directory")
                current.children.append(child)
            current = child
        current.children.append(FileNode(name=file_name, path=f"{current.path}{file_name}", type="file", content=text))

    _sort(root)
    return root


def _sort(node: FileNode) -> None:
    node.children.sort(key=lambda c: (c.type != "directory", c.name))
    for child in node.children:
        if child.type == "directory":
            _sort(child)
