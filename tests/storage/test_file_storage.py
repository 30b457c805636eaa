import pytest

from src.hr_portal.hr_portal.core.exceptions import NotFoundError, ValidationError
from src.hr_portal.hr_portal.storage.file_storage import (
    InlineFileStorage,
    LocalFileStorage,
    UploadPolicy,
    unique_filename,
)

IMAGES = UploadPolicy(allowed_types=frozenset({"image/png"}), allowed_extensions=frozenset({".png"}), max_bytes=10, label="Photo")


def test_local_storage_round_trip(tmp_path):
    storage = LocalFileStorage(tmp_path)
    stored = storage.save(b"png-bytes", content_type="image/png", filename="Me.PNG", policy=IMAGES, prefix="photos")

    assert stored.reference.startswith("photos/") and stored.reference.endswith(".png")
    assert (tmp_path / stored.reference).is_file()
    assert storage.read(stored.reference) == b"png-bytes"


def test_local_storage_refuses_escaping_paths(tmp_path):
    storage = LocalFileStorage(tmp_path / "uploads")
    with pytest.raises(ValidationError):
        storage.read("../secrets.txt")
    with pytest.raises(NotFoundError):
        storage.read("missing.png")


@pytest.mark.parametrize(
    "data,content_type,filename,message",
    [
        (b"", "image/png", "a.png", "empty"),
        (b"x" * 11, "image/png", "a.png", "exceeds"),
        (b"x", "image/gif", "a.png", "type not allowed"),
        (b"x", "image/png", "a.gif", "extension not allowed"),
    ],
)
def test_policy(data, content_type, filename, message):
    with pytest.raises(ValidationError, match=message):
        InlineFileStorage().save(data, content_type=content_type, filename=filename, policy=IMAGES)


def test_inline_storage_hands_bytes_back():
    stored = InlineFileStorage().save(b"abc", content_type="application/pdf", filename="a.pdf")
    assert stored.data == b"abc" and stored.reference is None and stored.size == 3


def test_unique_filename_keeps_extension():
    a, b = unique_filename("r.JPG"), unique_filename("r.JPG")
    assert a != b and a.endswith(".jpg")
    assert "/" not in unique_filename("noext")
