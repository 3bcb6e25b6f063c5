"""Building graph triples for a parsed source file.

The extractor works in two phases per reference: the semantic model resolves a
declaration or expression to a symbol, then the symbol is turned into a node and
the relationship is derived. References that do not resolve are dropped.

Triples produced for one file, in order:
  * INCLUDED_IN: folder -> parent folder, then file -> folder (containment chain)
  * per class/interface declaration, in source order:
      - DECLARED_AT: type -> file
      - OF_TYPE: type -> base type
      - per method, own methods first, then those of nested types:
          - HAVE: type -> method
          - CONSTRUCT: method -> class, INVOKE: method -> method (per body expression)

Local functions and lambdas are not modeled as nodes; whatever they construct or
invoke is attributed to the enclosing method.
"""

from src.analysis.exceptions import ResolutionError
from src.analysis.semantic import (
    MethodSymbol,
    SemanticModel,
    SymbolKind,
    TypeSymbol,
    qualify,
)
from src.analysis.syntax import (
    CompilationUnit,
    DeclarationKind,
    ExpressionKind,
    MethodDeclaration,
    TypeDeclaration,
)
from src.graph.folder_chain import build_folder_chain
from src.graph.graph_types import (
    ClassNode,
    FileNode,
    InterfaceNode,
    MethodNode,
    RelationshipType,
    Triple,
    TypeNode,
)
from src.graph.helpers.utils import path_basename, relative_to_folder
from src.utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_DECLARATIONS = frozenset({DeclarationKind.class_, DeclarationKind.interface})


def create_type_node(symbol: TypeSymbol, modifiers: tuple[str, ...] = ()) -> TypeNode | None:
    """Create the node for a class or interface symbol; other kinds have no node."""
    full_name = qualify(symbol.containing_namespace, symbol.name)
    match symbol.kind:
        case SymbolKind.class_:
            return ClassNode(full_name, symbol.name, modifiers=modifiers)
        case SymbolKind.interface:
            return InterfaceNode(full_name, symbol.name, modifiers=modifiers)
        case _:
            return None


def create_method_node(symbol: MethodSymbol, modifiers: tuple[str, ...] = ()) -> MethodNode:
    """Create the node for a method symbol.

    The full name folds the namespace chain, the containing type name and the
    method name; parameters and return type complete the identity so overloads
    get distinct keys.
    """
    full_name = qualify(symbol.containing_namespace, symbol.containing_type.name, symbol.name)
    return MethodNode(
        full_name,
        symbol.name,
        tuple((parameter.name, parameter.type_name) for parameter in symbol.parameters),
        symbol.return_type,
        modifiers=modifiers,
    )


class CodeGraphExtractor:
    """Derives the triples of one compilation unit through a semantic model.

    Each step returns its own batch of triples; nothing is accumulated across
    calls, so one extractor can serve several files (and threads) of the same
    project.
    """

    def __init__(self, semantic_model: SemanticModel):
        self.semantic_model = semantic_model

    def analyze_tree(self, unit: CompilationUnit, root_folder: str) -> list[Triple]:
        """Build every triple for a single file.

        Args:
            unit: The parsed file.
            root_folder: Name of the analysis root folder; the file path is trimmed
                so it starts with this folder.

        Returns:
            The file's triples in emission order.
        """
        file_path = relative_to_folder(unit.file_path, root_folder)
        file_node = FileNode(full_name=file_path, name=path_basename(file_path))

        triples = build_folder_chain(file_path, file_node)
        for declaration in unit.declarations:
            triples.extend(self.analyze_declaration(declaration, file_node))

        logger.debug(f"Extracted {len(triples)} triples from {file_path}")
        return triples

    def analyze_declaration(
        self, declaration: TypeDeclaration, file_node: FileNode
    ) -> list[Triple]:
        if declaration.kind not in SUPPORTED_DECLARATIONS:
            return []

        symbol = self._resolve(self.semantic_model.get_declared_symbol, declaration)
        if not isinstance(symbol, TypeSymbol):
            logger.debug(f"Skipping declaration {declaration.name}: no type symbol")
            return []

        node = create_type_node(symbol, declaration.modifiers)
        if node is None:
            return []

        triples = [Triple(node, file_node, RelationshipType.declared_at)]
        triples.extend(self.get_inherits(declaration, node))
        triples.extend(self.get_methods_all(declaration, node))
        return triples

    def get_inherits(self, declaration: TypeDeclaration, node: TypeNode) -> list[Triple]:
        """OF_TYPE triples for the base list of a declaration.

        A class points at every resolved base, class or interface. An interface
        only points at interface bases; anything else in its base list is ignored.
        """
        triples: list[Triple] = []
        for base_type in declaration.base_types:
            type_info = self._resolve(self.semantic_model.get_type_info, base_type)
            parent_node = create_type_node(type_info) if type_info is not None else None
            if parent_node is None:
                logger.debug(f"Dropping base type {base_type.name} of {node.full_name}: unresolved")
                continue

            match node, parent_node:
                case ClassNode(), _:
                    triples.append(Triple(node, parent_node, RelationshipType.of_type))
                case InterfaceNode(), InterfaceNode():
                    triples.append(Triple(node, parent_node, RelationshipType.of_type))
                case _:
                    logger.debug(
                        f"Ignoring base {parent_node.full_name} of interface {node.full_name}"
                    )
        return triples

    def get_methods_all(self, declaration: TypeDeclaration, node: TypeNode) -> list[Triple]:
        """HAVE triples for every method in a declaration, each followed by its body triples.

        Methods of nested types are included: the outer type HAVEs them too, and
        the nested type emits its own HAVE when it is visited as a declaration.
        """
        triples: list[Triple] = []
        for method in declaration.descendant_methods():
            symbol = self._resolve(self.semantic_model.get_declared_symbol, method)
            if not isinstance(symbol, MethodSymbol):
                logger.debug(f"Skipping method {method.name} of {node.full_name}: no method symbol")
                continue

            method_node = create_method_node(symbol, method.modifiers)
            triples.append(Triple(node, method_node, RelationshipType.have))
            triples.extend(self.get_body_triples(method, method_node))
        return triples

    def get_body_triples(self, method: MethodDeclaration, method_node: MethodNode) -> list[Triple]:
        """CONSTRUCT and INVOKE triples for every expression in a method body."""
        triples: list[Triple] = []
        for expression in method.descendant_expressions():
            match expression.kind:
                case ExpressionKind.object_creation:
                    type_info = self._resolve(self.semantic_model.get_type_info, expression)
                    if type_info is not None and type_info.kind == SymbolKind.class_:
                        class_node = create_type_node(type_info)
                        triples.append(Triple(method_node, class_node, RelationshipType.construct))
                    else:
                        logger.debug(f"Dropping construction '{expression.text}' in {method_node.full_name}")
                case ExpressionKind.invocation:
                    invoked = self._resolve(self.semantic_model.get_symbol_info, expression)
                    if isinstance(invoked, MethodSymbol):
                        triples.append(
                            Triple(method_node, create_method_node(invoked), RelationshipType.invoke)
                        )
                    else:
                        logger.debug(f"Dropping invocation '{expression.text}' in {method_node.full_name}")
                case _:
                    pass
        return triples

    @staticmethod
    def _resolve(resolver, syntax):
        """Ask the semantic model, treating a ResolutionError as 'unresolved'."""
        try:
            return resolver(syntax)
        except ResolutionError as e:
            logger.debug(f"Resolution failed: {e}")
            return None
