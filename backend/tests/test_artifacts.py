from datetime import datetime, timezone

import pytest

from lending_uploads.core.artifacts import (
    ArtifactKind,
    generate_asset_key,
    get_file_extension,
    parse_asset_key,
)


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("Report.PDF", "pdf"),
        ("archive.tar.gz", "gz"),
        ("no-extension", ""),
        ("weird.p n g", ""),
    ],
)
def test_get_file_extension(file_name, expected):
    assert get_file_extension(file_name) == expected


def test_generated_key_parses_back():
    key = generate_asset_key("prod-1", 3, "png")

    parsed = parse_asset_key(key)
    assert parsed is not None
    assert parsed.owner_id == "prod-1"
    assert parsed.version == 3
    assert parsed.extension == "png"
    assert parsed.date == datetime.now(timezone.utc).strftime("%Y-%m-%d")
    assert key.startswith("products/prod-1/")


def test_generated_keys_are_unique_for_same_version():
    assert generate_asset_key("prod-1", 1, "pdf") != generate_asset_key("prod-1", 1, "pdf")


def test_generate_rejects_non_positive_version():
    with pytest.raises(ValueError):
        generate_asset_key("prod-1", 0, "png")


@pytest.mark.parametrize(
    "key",
    [
        "site-documents/terms/v1-2025-01-01-abc.pdf",
        "products/prod-1/image.png",
        "products/prod-1/2025-01-01-v1-abc",
        "products/a/b/2025-01-01-v1-abc.png",
    ],
)
def test_parse_rejects_foreign_keys(key):
    assert parse_asset_key(key) is None


def test_kind_labels():
    assert ArtifactKind.IMAGE.label == "Image"
    assert ArtifactKind.DOCUMENT_TEMPLATE.label == "Document template"
    assert ArtifactKind("document-template") is ArtifactKind.DOCUMENT_TEMPLATE
