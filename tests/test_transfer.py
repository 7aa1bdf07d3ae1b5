import math
from pathlib import Path

import pytest

from cratecache.cache import CacheKey
from cratecache.errors import (
    CacheFetchFailedError,
    ChunkUploadExhaustedError,
    CompletionExhaustedError,
    PostUploadVerificationFailedError,
    StorageError,
)
from cratecache.storage.base import CONTENT_TYPE, ObjectHead, PartResult
from cratecache.transfer import (
    UploadSession,
    check_exists,
    fetch_archive,
    iter_chunks,
    part_count,
    retry,
    upload_archive,
    verify_upload,
)

from fakes import FakeObjectStore

KEY = CacheKey(
    package_name="demo",
    platform_hash="p" * 32,
    manifest_hash="m" * 32,
    archive_name="release.tar.gz",
)


class FlakyCall:
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise StorageError("transient")
        return "ok"


@pytest.mark.parametrize("failures", [0, 1, 9])
def test_retry_succeeds_after_transient_failures(failures: int) -> None:
    call = FlakyCall(failures)

    result = retry(call, limit=10, operation="upload_part", exhausted=ChunkUploadExhaustedError)

    assert result == "ok"
    assert call.calls == failures + 1


def test_retry_gives_up_after_limit() -> None:
    call = FlakyCall(failures=100)

    with pytest.raises(ChunkUploadExhaustedError) as excinfo:
        retry(call, limit=10, operation="upload_part", exhausted=ChunkUploadExhaustedError)

    assert call.calls == 10
    assert excinfo.value.context["attempts"] == "10"
    assert "transient" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, StorageError)


def test_retry_rejects_non_positive_limit() -> None:
    with pytest.raises(ValueError):
        retry(FlakyCall(0), limit=0, operation="x", exhausted=ChunkUploadExhaustedError)


@pytest.mark.parametrize(("size", "chunk_size"), [(1, 4), (4, 4), (10, 4), (17, 5), (100, 100)])
def test_iter_chunks_splits_file_exactly(tmp_path: Path, size: int, chunk_size: int) -> None:
    payload = bytes(range(256)) * (size // 256 + 1)
    payload = payload[:size]
    archive = tmp_path / "archive.bin"
    archive.write_bytes(payload)

    chunks = list(iter_chunks(archive, chunk_size))

    assert len(chunks) == math.ceil(size / chunk_size) == part_count(size, chunk_size)
    assert all(len(chunk) == chunk_size for chunk in chunks[:-1])
    assert b"".join(chunks) == payload


def test_upload_archive_sends_ordered_parts(tmp_path: Path, fake_store: FakeObjectStore) -> None:
    payload = b"0123456789" * 5 + b"tail"
    archive = tmp_path / "release.tar.gz"
    archive.write_bytes(payload)

    session = upload_archive(fake_store, KEY, archive, chunk_size=16)

    assert [part.part_number for part in session.parts] == [1, 2, 3, 4]
    assert fake_store.call_names() == [
        "initiate_multipart_upload",
        "put_multipart_chunk",
        "put_multipart_chunk",
        "put_multipart_chunk",
        "put_multipart_chunk",
        "complete_multipart_upload",
    ]
    assert fake_store.calls[-1] == ("complete_multipart_upload", (1, 2, 3, 4))
    assert fake_store.objects[KEY.path] == payload
    assert fake_store.content_types[KEY.path] == CONTENT_TYPE


def test_upload_archive_retries_failed_chunk(tmp_path: Path, fake_store: FakeObjectStore) -> None:
    archive = tmp_path / "release.tar.gz"
    archive.write_bytes(b"a" * 30)
    fake_store.put_failures = {2: 3}

    session = upload_archive(fake_store, KEY, archive, chunk_size=10, retry_limit=10)

    puts = [value for name, value in fake_store.calls if name == "put_multipart_chunk"]
    assert puts == [1, 2, 2, 2, 2, 3]
    assert len(session.parts) == 3
    assert fake_store.objects[KEY.path] == b"a" * 30


def test_upload_archive_aborts_when_chunk_retries_run_out(
    tmp_path: Path,
    fake_store: FakeObjectStore,
) -> None:
    archive = tmp_path / "release.tar.gz"
    archive.write_bytes(b"a" * 30)
    fake_store.put_failures = {1: 1000}

    with pytest.raises(ChunkUploadExhaustedError) as excinfo:
        upload_archive(fake_store, KEY, archive, chunk_size=10, retry_limit=4)

    assert fake_store.call_names().count("put_multipart_chunk") == 4
    assert "complete_multipart_upload" not in fake_store.call_names()
    assert KEY.path not in fake_store.objects
    assert excinfo.value.context["part"] == "1"


def test_upload_archive_retries_completion(tmp_path: Path, fake_store: FakeObjectStore) -> None:
    archive = tmp_path / "release.tar.gz"
    archive.write_bytes(b"payload")
    fake_store.complete_failures = 2

    upload_archive(fake_store, KEY, archive, chunk_size=4, retry_limit=3)

    assert fake_store.call_names().count("complete_multipart_upload") == 3
    assert fake_store.objects[KEY.path] == b"payload"


def test_upload_archive_aborts_when_completion_retries_run_out(
    tmp_path: Path,
    fake_store: FakeObjectStore,
) -> None:
    archive = tmp_path / "release.tar.gz"
    archive.write_bytes(b"payload")
    fake_store.complete_failures = 50

    with pytest.raises(CompletionExhaustedError):
        upload_archive(fake_store, KEY, archive, chunk_size=4, retry_limit=3)

    assert fake_store.call_names().count("complete_multipart_upload") == 3


def test_upload_session_rejects_out_of_order_parts() -> None:
    session = UploadSession(key=KEY, upload_id="u1")
    session.record(PartResult(part_number=1, etag="a"))

    with pytest.raises(StorageError):
        session.record(PartResult(part_number=3, etag="c"))


def test_verify_upload_accepts_matching_metadata(fake_store: FakeObjectStore) -> None:
    fake_store.objects[KEY.path] = b"data"
    fake_store.content_types[KEY.path] = CONTENT_TYPE

    head = verify_upload(fake_store, KEY)

    assert head == ObjectHead(status=200, content_type=CONTENT_TYPE, content_length=4)


def test_verify_upload_rejects_wrong_content_type(fake_store: FakeObjectStore) -> None:
    fake_store.objects[KEY.path] = b"data"
    fake_store.content_types[KEY.path] = "binary/octet-stream"

    with pytest.raises(PostUploadVerificationFailedError) as excinfo:
        verify_upload(fake_store, KEY)

    assert excinfo.value.context["content_type"] == "binary/octet-stream"


def test_verify_upload_rejects_missing_object(fake_store: FakeObjectStore) -> None:
    with pytest.raises(PostUploadVerificationFailedError):
        verify_upload(fake_store, KEY)


def test_check_exists_treats_any_failure_as_miss(fake_store: FakeObjectStore) -> None:
    assert check_exists(fake_store, KEY) is False

    fake_store.objects[KEY.path] = b"data"
    assert check_exists(fake_store, KEY) is True

    fake_store.head_failure = ConnectionError("network unreachable")
    assert check_exists(fake_store, KEY) is False


class RecordingCodec:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.unpacked: list[bytes] = []

    def ensure_available(self) -> None:
        pass

    def compress(self, dirs, out_path, *, cwd):  # type: ignore[no-untyped-def]
        raise AssertionError("compress must not be called")

    def decompress(self, archive_path: Path, *, cwd: Path) -> None:
        if self.fail:
            raise OSError("corrupt archive")
        self.unpacked.append(archive_path.read_bytes())


def test_fetch_archive_streams_unpacks_and_cleans_up(
    tmp_path: Path,
    fake_store: FakeObjectStore,
) -> None:
    payload = b"x" * 50
    fake_store.objects[KEY.path] = payload
    codec = RecordingCodec()

    size = fetch_archive(fake_store, KEY, dest_dir=tmp_path, codec=codec)

    assert size == 50
    assert codec.unpacked == [payload]
    assert not (tmp_path / "release.tar.gz").exists()


def test_fetch_archive_wraps_unpack_failure(tmp_path: Path, fake_store: FakeObjectStore) -> None:
    fake_store.objects[KEY.path] = b"x" * 10

    with pytest.raises(CacheFetchFailedError) as excinfo:
        fetch_archive(fake_store, KEY, dest_dir=tmp_path, codec=RecordingCodec(fail=True))

    assert "corrupt archive" in str(excinfo.value)
    assert excinfo.value.code == "E_CACHE_FETCH"
    assert not (tmp_path / KEY.archive_name).exists()
