import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

ASSET_KEY_PREFIX = "products/"

_ASSET_KEY_RE = re.compile(
    r"^products/(?P<owner_id>[^/]+)/"
    r"(?P<date>\d{4}-\d{2}-\d{2})-v(?P<version>\d+)-(?P<uid>[0-9a-f]+)"
    r"\.(?P<extension>[A-Za-z0-9]+)$"
)


class ArtifactKind(str, Enum):
    IMAGE = "image"
    DOCUMENT_TEMPLATE = "document-template"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def default_extension(self) -> str:
        return _DEFAULT_EXTENSIONS[self]

    @property
    def upload_path(self) -> str:
        return _UPLOAD_PATHS[self]


_LABELS = {
    ArtifactKind.IMAGE: "Image",
    ArtifactKind.DOCUMENT_TEMPLATE: "Document template",
}
_DEFAULT_EXTENSIONS = {
    ArtifactKind.IMAGE: "png",
    ArtifactKind.DOCUMENT_TEMPLATE: "pdf",
}
_UPLOAD_PATHS = {
    ArtifactKind.IMAGE: "upload-image-url",
    ArtifactKind.DOCUMENT_TEMPLATE: "upload-template-url",
}


@dataclass(frozen=True)
class AssetKey:
    owner_id: str
    date: str
    version: int
    uid: str
    extension: str


def get_file_extension(file_name: str) -> str:
    parts = file_name.rsplit(".", 1)
    if len(parts) < 2:
        return ""
    ext = parts[1].lower()
    return ext if re.fullmatch(r"[a-z0-9]+", ext) else ""


def owner_prefix(owner_id: str) -> str:
    return f"{ASSET_KEY_PREFIX}{owner_id}/"


def generate_asset_key(owner_id: str, version: int, extension: str) -> str:
    """Build ``products/{owner_id}/{YYYY-MM-DD}-v{version}-{uid}.{ext}``.

    The uid makes every key unique, so issuing twice for the same version
    yields two distinct keys.
    """
    if version < 1:
        raise ValueError("version must be >= 1")
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return f"{owner_prefix(owner_id)}{date}-v{version}-{uuid4().hex}.{extension}"


def parse_asset_key(key: str) -> AssetKey | None:
    match = _ASSET_KEY_RE.match(key)
    if not match:
        return None
    return AssetKey(
        owner_id=match["owner_id"],
        date=match["date"],
        version=int(match["version"]),
        uid=match["uid"],
        extension=match["extension"],
    )
