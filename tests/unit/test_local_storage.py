import json
import os
import stat
from pathlib import Path

import pytest

from storedesk.adapters.local_storage import InMemoryTokenStorage, LocalTokenStorage


@pytest.fixture
def storage(test_data_dir: Path) -> LocalTokenStorage:
    return LocalTokenStorage(test_data_dir)


def test_read_missing_directory(storage: LocalTokenStorage) -> None:
    assert storage.read() is None


def test_write_then_read(storage: LocalTokenStorage) -> None:
    storage.write("abc")

    assert storage.read() == "abc"
    assert json.loads(storage.path.read_text()) == {"token": "abc"}


def test_survives_new_instance(storage: LocalTokenStorage, test_data_dir: Path) -> None:
    """Durable across process restarts."""
    storage.write("abc")

    assert LocalTokenStorage(test_data_dir).read() == "abc"


@pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
def test_file_is_owner_only(storage: LocalTokenStorage) -> None:
    storage.write("abc")

    mode = stat.S_IMODE(storage.path.stat().st_mode)
    assert mode == 0o600


def test_clear(storage: LocalTokenStorage) -> None:
    storage.write("abc")
    storage.clear()

    assert storage.read() is None
    assert not storage.path.exists()


def test_clear_empty_is_noop(storage: LocalTokenStorage) -> None:
    storage.clear()
    storage.clear()

    assert storage.read() is None


def test_keys_are_independent(test_data_dir: Path) -> None:
    a = LocalTokenStorage(test_data_dir, key="a")
    b = LocalTokenStorage(test_data_dir, key="b")
    a.write("token-a")
    b.write("token-b")

    a.clear()

    assert a.read() is None
    assert b.read() == "token-b"


def test_corrupt_file_reads_as_empty(storage: LocalTokenStorage, test_data_dir: Path) -> None:
    test_data_dir.mkdir(parents=True)
    storage.path.write_text("{not json")

    assert storage.read() is None

    storage.write("fresh")
    assert storage.read() == "fresh"


def test_non_mapping_file_reads_as_empty(storage: LocalTokenStorage, test_data_dir: Path) -> None:
    test_data_dir.mkdir(parents=True)
    storage.path.write_text('["token"]')

    assert storage.read() is None


def test_in_memory_storage() -> None:
    storage = InMemoryTokenStorage("seed")
    assert storage.read() == "seed"

    storage.write("next")
    assert storage.read() == "next"

    storage.clear()
    storage.clear()
    assert storage.read() is None
