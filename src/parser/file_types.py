from pathlib import Path
import enum

class FileTypes(enum.StrEnum):
    """Enum of the file types the analyzer knows about"""

    CSHARP = "csharp"
    SOLUTION = "solution"
    PROJECT = "project"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_path(cls, path: Path):
        match path.suffix.lower():
            case ".cs":
                return cls.CSHARP
            case ".sln":
                return cls.SOLUTION
            case ".csproj":
                return cls.PROJECT
            case _:
                return cls.UNKNOWN
