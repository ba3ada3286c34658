import dataclasses
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, List

from .naming.generator import generate_filename
from .naming.parser import ParsedMetadata, parse_filename


class Company(Enum):
    QVC = "QVC"
    HSN = "HSN"

    @property
    def code(self) -> str:
        """Token used in the canonical filename."""
        return self.value

    @classmethod
    def from_string(cls, value: str) -> "Company":
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        raise ValueError(f"Unknown company: {value!r}")


class ImageType(Enum):
    LIFESTYLE = ("lifestyle", "Lifestyle", "Lifestyle Images", "LS", True)
    PRODUCT = ("product", "Product", "Product Images", "PR", False)
    HEADSHOT = ("headshot", "Headshot", "Headshots", "HS", False)
    PD_LIFESTYLE_LITE = ("pd-lifestyle-lite", "PD Lifestyle Lite", "Product Photographer > Master Images – Lifestyle", "PD", False)
    FOOD_SHOOT = ("food-shoot", "Food Shoot", "Product Photographer > Master Images – Lifestyle", "QC", False)
    STANDARD = ("standard", "Standard/Custom", "Product Photographer > Master Images – Lifestyle", "PD", False)

    def __init__(self, slug, label, destination_folder, abbreviation, uses_sequence):
        self.slug = slug
        self.label = label
        self.destination_folder = destination_folder
        self.abbreviation = abbreviation
        self.uses_sequence = uses_sequence

    @classmethod
    def from_string(cls, value: str) -> "ImageType":
        """Accepts a slug ('food-shoot'), a label ('Food Shoot') or a member name."""
        wanted = value.strip().lower()
        for member in cls:
            if wanted in (member.slug, member.label.lower(), member.name.lower()):
                return member
        raise ValueError(f"Unknown image type: {value!r}")


@dataclass(frozen=True)
class RawAsset:
    """The imported source file. Never changes once created."""
    path: Path
    original_filename: str
    original_extension: str  # lower-case, no dot

    @classmethod
    def from_path(cls, path: Path) -> "RawAsset":
        path = Path(path)
        return cls(
            path=path,
            original_filename=path.name,
            original_extension=path.suffix.lstrip(".").lower(),
        )


class CommitStatus(Enum):
    SKIPPED_NO_NAME = "skipped"
    COMMITTED = "committed"
    COMMITTED_RENAMED = "renamed"
    FAILED = "failed"


@dataclass(frozen=True)
class CommitOutcome:
    status: CommitStatus
    reason: Optional[str] = None
    destination: Optional[Path] = None

    @property
    def is_success(self) -> bool:
        return self.status in (CommitStatus.COMMITTED, CommitStatus.COMMITTED_RENAMED)


# Fields an operator (or a batch operation) may change on a Record
EDITABLE_FIELDS = {
    'description', 'request_id', 'company', 'sequence',
    'retouched', 'image_type', 'verified',
}

# Fields that feed the canonical filename
NAMING_FIELDS = EDITABLE_FIELDS - {'verified'}


@dataclass
class Record:
    """
    One imported asset plus the operator-editable naming fields.

    `canonical_name` is derived from the current field values on every
    access, so it can never lag behind an edit.
    """
    asset: RawAsset
    parsed: ParsedMetadata

    description: str = ""
    request_id: str = ""
    company: Company = Company.QVC
    sequence: str = ""
    retouched: bool = False
    image_type: ImageType = ImageType.LIFESTYLE
    verified: bool = False

    outcome: Optional[CommitOutcome] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def from_path(cls, path: Path, image_type: Optional[ImageType] = None) -> "Record":
        asset = RawAsset.from_path(path)
        parsed = parse_filename(asset.original_filename)
        return cls(
            asset=asset,
            parsed=parsed,
            description=parsed.description or "",
            request_id=parsed.request_id or "",
            company=Company.from_string(parsed.company) if parsed.company else Company.QVC,
            sequence=parsed.sequence or "",
            image_type=image_type or ImageType.LIFESTYLE,
        )

    @property
    def canonical_name(self) -> Optional[str]:
        return generate_filename(
            description=self.description,
            request_id=self.request_id,
            company=self.company,
            sequence=self.sequence,
            retouched=self.retouched,
            image_type=self.image_type,
            extension=self.asset.original_extension,
        )

    @property
    def original_filename(self) -> str:
        return self.asset.original_filename

    @property
    def source_path(self) -> Path:
        return self.asset.path


def apply_edit(record: Record, **changes) -> Record:
    """
    Returns a copy of `record` with `changes` applied.

    The copy keeps the record id. Changing any naming field clears a previous
    commit outcome, since it described a different filename.
    """
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")

    if isinstance(changes.get('company'), str):
        changes['company'] = Company.from_string(changes['company'])
    if isinstance(changes.get('image_type'), str):
        changes['image_type'] = ImageType.from_string(changes['image_type'])

    updated = dataclasses.replace(record, **changes)
    if any(getattr(record, k) != getattr(updated, k) for k in NAMING_FIELDS & set(changes)):
        updated.outcome = None
    return updated


def group_by_item_number(records: List[Record]) -> Dict[str, List[Record]]:
    """Groups records by description; records without one land under 'Unknown'."""
    grouped: Dict[str, List[Record]] = {}
    for rec in records:
        key = rec.description or "Unknown"
        grouped.setdefault(key, []).append(rec)
    return grouped


def sort_by_sequence(records: List[Record]) -> List[Record]:
    """Numeric sequences first (ascending), then the rest by original filename."""
    def key(rec: Record):
        if rec.sequence.isdigit():
            return (0, int(rec.sequence), rec.original_filename)
        if rec.sequence:
            return (1, 0, rec.original_filename)
        return (2, 0, rec.original_filename)

    return sorted(records, key=key)
