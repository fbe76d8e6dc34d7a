import enum
import sys
import types
from pathlib import Path

import pytest


class FakeKeyState(enum.Enum):
    Deleted = 0
    Live = 1
    Unknown = 2


class FakeRawRecord:
    def __init__(self, key, value, seq, state):
        self.user_key = key
        self.key = key
        self.value = value
        self.seq = seq
        self.state = state


class FakeRawLevelDb:
    records = []
    instances = []

    def __init__(self, in_dir):
        if not Path(in_dir).is_dir():
            raise ValueError("in_dir is not a directory")
        self.in_dir = in_dir
        self.closed = False
        type(self).instances.append(self)

    def iterate_records_raw(self, *, reverse=False):
        for rec in type(self).records:
            if isinstance(rec, Exception):
                raise rec
            yield rec

    def close(self):
        self.closed = True

    @classmethod
    def put(cls, key, value, seq):
        cls.records.append(FakeRawRecord(key, value, seq, FakeKeyState.Live))

    @classmethod
    def delete(cls, key, seq):
        cls.records.append(FakeRawRecord(key, b"", seq, FakeKeyState.Deleted))


@pytest.fixture()
def fake_leveldb(monkeypatch):
    """Install a stand-in ccl_chromium_reader.storage_formats.ccl_leveldb and return its RawLevelDb."""
    db_cls = type("FakeRawLevelDb", (FakeRawLevelDb,), {"records": [], "instances": []})

    leveldb_mod = types.ModuleType("ccl_chromium_reader.storage_formats.ccl_leveldb")
    leveldb_mod.RawLevelDb = db_cls
    leveldb_mod.KeyState = FakeKeyState
    formats_pkg = types.ModuleType("ccl_chromium_reader.storage_formats")
    formats_pkg.__path__ = []
    formats_pkg.ccl_leveldb = leveldb_mod
    ccl_pkg = types.ModuleType("ccl_chromium_reader")
    ccl_pkg.__path__ = []
    ccl_pkg.storage_formats = formats_pkg

    monkeypatch.setitem(sys.modules, "ccl_chromium_reader", ccl_pkg)
    monkeypatch.setitem(sys.modules, "ccl_chromium_reader.storage_formats", formats_pkg)
    monkeypatch.setitem(sys.modules, "ccl_chromium_reader.storage_formats.ccl_leveldb", leveldb_mod)
    return db_cls


@pytest.fixture()
def vault_dir(tmp_path: Path) -> Path:
    """An extension settings directory with the files MetaMask leaves behind."""
    d = tmp_path / "nkbihfbeogaeaoehlefnkodbefgpgknn"
    d.mkdir()
    (d / "000005.ldb").write_bytes(b"")
    (d / "000006.log").write_bytes(b"")
    (d / "CURRENT").write_text("MANIFEST-000004\n")
    return d
