import hashlib

# Bump when the canonical identity layout changes; every pk changes with it.
PK_SCHEME_VERSION = "v1"


def generate_pk(label: str, *identity: str) -> str:
    """
    Generate the primary key used to match-or-create a node in the graph store.

    The key is a SHA-256 digest over a canonical identity string, so it is stable
    across processes, interpreter versions and machines. Two runs over an unchanged
    entity always produce the same key.

    Args:
        label: The node label (kind scope of the identity).
        identity: The identity-defining fields, in a fixed order per node kind.
    """
    if not identity or not identity[0]:
        raise ValueError("full_name must be provided to derive a primary key")
    canonical = "::".join((PK_SCHEME_VERSION, label, *identity))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def normalize_path(path: str) -> str:
    """Normalize a relative path to '/' separators without empty or '.' segments."""
    segments = [
        segment
        for segment in path.replace("\\", "/").split("/")
        if segment and segment != "."
    ]
    return "/".join(segments)


def path_basename(path: str) -> str:
    normalized = normalize_path(path)
    return normalized.rsplit("/", 1)[-1] if normalized else ""


def relative_to_folder(path: str, folder_name: str) -> str:
    """
    Trim everything before the first segment named `folder_name`.

    The result starts with the root folder itself, e.g. 'Root/Proj/Src/A.cs' for
    '/home/me/Root/Proj/Src/A.cs'. Paths that do not contain the folder are
    returned normalized and otherwise untouched.
    """
    segments = normalize_path(path).split("/")
    if folder_name in segments:
        segments = segments[segments.index(folder_name):]
    return "/".join(segments)


def render_modifiers(modifiers: tuple[str, ...]) -> str:
    return ", ".join(modifiers)


def render_arguments(parameters: tuple[tuple[str, str], ...]) -> str:
    """Render (name, type) pairs as a signature string like 'int count, string name'."""
    return ", ".join(f"{type_name} {name}" for name, type_name in parameters)
