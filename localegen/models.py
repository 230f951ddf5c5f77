"""Core data models shared across localegen components."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class DeclarationNode:
    """A class or mixin and the simple names of the types it builds on."""

    name: str
    kind: str
    parents: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LiteralField:
    """A translatable `String` field found in a family declaration."""

    owner: str
    field_name: str
    seed_value: str
    path: Path
    literal_offset: int
    literal_length: int
    anchor_offset: int

    @property
    def key(self) -> str:
        return f"{self.owner}_{self.field_name}"


@dataclass(frozen=True)
class EditDescriptor:
    """Where a literal lives and what should replace it."""

    path: Path
    offset: int
    length: int
    replacement: str
    anchor_offset: int


@dataclass
class FileError:
    """A failure confined to one source file."""

    path: Path
    stage: str
    message: str


@dataclass
class ExtractionResult:
    """Keys, seed values and edits produced by the field extractor."""

    fields: List[LiteralField] = field(default_factory=list)
    edits: List[EditDescriptor] = field(default_factory=list)

    @property
    def keys(self) -> List[str]:
        return list(dict.fromkeys(item.key for item in self.fields))

    def seed_values(self) -> Dict[str, str]:
        # Later fields overwrite earlier ones that share a key.
        return {item.key: item.seed_value for item in self.fields}


@dataclass
class GenerateOutcome:
    """Result of a generate run."""

    catalog_path: Path
    entries: int
    first_run: bool
    catalog_changed: bool
    rewritten: List[Path] = field(default_factory=list)
    errors: List[FileError] = field(default_factory=list)
    dry_run: bool = False
    pruning_skipped: bool = False
    keys: List[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.errors)
