"""C# front-end: Tree-sitter syntax builder and project-wide semantic model."""

from src.parser.csharp.semantic_model import CSharpSemanticModel
from src.parser.csharp.syntax_builder import CSharpSyntaxBuilder

__all__ = [
    "CSharpSemanticModel",
    "CSharpSyntaxBuilder",
]
