import io

import pytest

from post_analyzer.staging import UploadStaging


def test_creates_missing_staging_directory(tmp_path):
    base = tmp_path / "nested" / "uploads"

    UploadStaging(base)

    assert base.is_dir()


def test_staged_file_exists_inside_block_and_is_removed_after(tmp_path):
    staging = UploadStaging(tmp_path)

    with staging.stage(io.BytesIO(b"payload"), "post.pdf", "application/pdf") as staged:
        assert staged.path.read_bytes() == b"payload"
        assert staged.size_bytes == 7
        assert staged.original_name == "post.pdf"
        assert staged.content_type == "application/pdf"
        assert staged.path.parent == tmp_path

    assert not staged.path.exists()
    assert list(tmp_path.iterdir()) == []


def test_staged_file_is_removed_when_block_raises(tmp_path):
    staging = UploadStaging(tmp_path)

    with pytest.raises(RuntimeError):
        with staging.stage(io.BytesIO(b"payload"), "post.pdf") as staged:
            raise RuntimeError("extraction blew up")

    assert not staged.path.exists()


def test_cleanup_tolerates_file_already_gone(tmp_path):
    staging = UploadStaging(tmp_path)

    with staging.stage(io.BytesIO(b"payload"), "post.pdf") as staged:
        staged.path.unlink()

    assert list(tmp_path.iterdir()) == []


def test_unique_name_keeps_basename_behind_timestamp():
    name = UploadStaging.unique_name("post.pdf")

    millis, token, base = name.split("_", 2)
    assert millis.isdigit()
    assert len(token) == 8
    assert base == "post.pdf"


def test_unique_names_do_not_collide():
    names = {UploadStaging.unique_name("post.pdf") for _ in range(50)}

    assert len(names) == 50


@pytest.mark.parametrize(
    "original, expected",
    [
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\post.png", "post.png"),
        ("", "upload"),
        (None, "upload"),
    ],
)
def test_unique_name_drops_directories(original, expected):
    assert UploadStaging.unique_name(original).split("_", 2)[2] == expected


def test_default_content_type_when_none_declared(tmp_path):
    with UploadStaging(tmp_path).stage(io.BytesIO(b"x"), "post.bin") as staged:
        assert staged.content_type == "application/octet-stream"
