#!/usr/bin/env python3
r"""
metamask_extractor.py

Extract MetaMask vault JSON and hashcat-compatible hashes from the extension's LevelDB store,
using ccl_chromium_reader's read-only LevelDB reader.

Supports both vault formats:
- Old vault format: {"data": "", "iv": "", "salt": ""}                       -> hashcat -m 26600
- New vault format: {"data": "", "iv": "", "keyMetadata": {"algorithm": "PBKDF2",
                     "params": {"iterations": N}}, "salt": ""}                -> hashcat -m 26620

MetaMask vault location for Chrome:
    Linux:   ~/.config/google-chrome/Default/Local Extension Settings/nkbihfbeogaeaoehlefnkodbefgpgknn/
    macOS:   ~/Library/Application Support/Google/Chrome/Default/Local Extension Settings/nkbihfbeogaeaoehlefnkodbefgpgknn/
    Windows: %LOCALAPPDATA%\Google\Chrome\User Data\Default\Local Extension Settings\nkbihfbeogaeaoehlefnkodbefgpgknn\

Typical usage:
    python metamask_extractor.py nkbihfbeogaeaoehlefnkodbefgpgknn/
    python metamask_extractor.py nkbihfbeogaeaoehlefnkodbefgpgknn/ --include-deleted --errors-jsonl errors.jsonl

Notes:
- Results (extracted JSON + hash) go to stdout; diagnostics go to stderr.
- The store is never written to. Nothing is decrypted.
"""

from __future__ import annotations

import argparse
import datetime as _dt
import json
import os
import platform
import sys
import tempfile
import traceback
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, TextIO, Tuple, Union

VERSION = "0.3.0"

# chrome.storage.local keeps the whole extension state under the "data" key
VAULT_KEY_MARKER = b"data"
VAULT_VALUE_HINT = "salt"
JSON_MARKER = '{"data":"'


# -----------------------------
# Errors
# -----------------------------

class ExtractorError(Exception):
    """Base exception for vault extraction errors."""
    pass


class StoreOpenError(ExtractorError):
    """Raised when the LevelDB store cannot be opened for reading."""

    def __init__(self, db_path: Union[str, Path], reason: str):
        self.db_path = Path(db_path)
        self.reason = reason
        super().__init__(f"cannot open vault store {self.db_path}: {reason}")


class ExtractionError(ExtractorError):
    """Raised when no vault JSON object can be cut out of a record value."""
    pass


class MarkerNotFoundError(ExtractionError):
    pass


class UnbalancedJSONError(ExtractionError):
    pass


class SchemaDecodeError(ExtractorError):
    """Raised when extracted JSON does not have the vault shape."""
    pass


# -----------------------------
# Small utilities
# -----------------------------

def utc_now_iso() -> str:
    tz = getattr(_dt, "UTC", _dt.timezone.utc)
    return _dt.datetime.now(tz).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def write_text(path: Union[str, Path], text: str, *, encoding: str = "utf-8") -> None:
    """Write text to disk (creating parent dirs)."""
    p = Path(path)
    if p.parent:
        safe_mkdir(p.parent)
    p.write_text(text, encoding=encoding, errors="replace")


def jsonable(x: Any) -> Any:
    """Convert objects (bytes, paths, containers) into JSON-serializable form."""
    if x is None or isinstance(x, (str, int, float, bool)):
        return x
    if isinstance(x, (bytes, bytearray, memoryview)):
        return bytes(x).decode("utf-8", errors="replace")
    if isinstance(x, (list, tuple, set)):
        return [jsonable(v) for v in x]
    if isinstance(x, dict):
        return {str(k): jsonable(v) for k, v in x.items()}
    return str(x)


def build_self_check() -> Dict[str, Any]:
    info: Dict[str, Any] = {
        "metamask_extractor_version": VERSION,
        "python_version": sys.version,
        "sys.executable": sys.executable,
        "platform": platform.platform(),
        "ccl_chromium_reader_version": None,
        "ccl_chromium_reader_module_path": None,
    }
    try:
        import importlib.metadata as md
        info["ccl_chromium_reader_version"] = md.version("ccl_chromium_reader")
    except Exception:
        pass
    try:
        import ccl_chromium_reader as ccl_module  # type: ignore
        info["ccl_chromium_reader_module_path"] = getattr(ccl_module, "__file__", None)
    except ImportError:
        pass
    return info


# -----------------------------
# Logging + error events
# -----------------------------

class Logger:
    """Run logger: diagnostics to stderr, optionally mirrored to a run-log file."""

    def __init__(
        self,
        log_path: Optional[Path] = None,
        verbose: bool = False,
        warn_limit: int = 25,
        stream: Optional[TextIO] = None,
    ):
        self.log_path = log_path
        self.verbose = verbose
        self.warn_limit = int(warn_limit) if warn_limit is not None else 25
        self._stream = stream
        self._warn_counts = Counter()
        self._last = ""
        if log_path is not None:
            safe_mkdir(log_path.parent)
            with log_path.open("a", encoding="utf-8", errors="replace", newline="\n") as f:
                f.write(f"[{utc_now_iso()}] start metamask_extractor {VERSION}\n")

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def _record(self, line: str) -> None:
        if self.log_path is None:
            return
        with self.log_path.open("a", encoding="utf-8", errors="replace", newline="\n") as f:
            f.write(line + "\n")

    def _print(self, line: str) -> None:
        print(line, file=self.stream, flush=True)

    def info(self, msg: str) -> None:
        line = f"[{utc_now_iso()}] {msg}"
        self._last = msg
        self._record(line)
        if self.verbose:
            self._print(line)

    def notice(self, msg: str) -> None:
        """Always print (and write to run log), regardless of verbose."""
        line = f"[{utc_now_iso()}] {msg}"
        self._last = msg
        self._record(line)
        self._print(line)

    def warn(self, msg: str) -> None:
        """Write warning to run log; print with rate-limiting to avoid spam."""
        line = f"[{utc_now_iso()}] WARNING: {msg}"
        self._last = f"WARNING: {msg}"
        self._record(line)

        # warn_limit semantics:
        #   -1 => never suppress
        #    0 => suppress all console warning lines
        #   >0 => print at most N times per unique message (+1 note when suppression starts)
        self._warn_counts[msg] += 1
        n = self._warn_counts[msg]

        if self.warn_limit == -1:
            self._print(line)
            return
        if self.warn_limit == 0:
            return
        if n <= self.warn_limit:
            self._print(line)
            return
        if n == self.warn_limit + 1:
            self._print(f"[{utc_now_iso()}] WARNING: (suppressed further repeats of this warning) {msg}")

    def error(self, msg: str) -> None:
        line = f"[{utc_now_iso()}] ERROR: {msg}"
        self._last = f"ERROR: {msg}"
        self._record(line)
        self._print(line)

    def debug(self, msg: str) -> None:
        if self.verbose:
            self.info(f"DEBUG: {msg}")

    def last(self) -> str:
        return self._last


class JsonlWriter:
    def __init__(self, path: Path):
        self.path = path
        safe_mkdir(path.parent)
        self.f = path.open("w", encoding="utf-8", errors="replace", newline="\n")
        self.count = 0

    def write(self, obj: Any) -> None:
        self.f.write(json.dumps(jsonable(obj), ensure_ascii=False) + "\n")
        self.count += 1

    def flush(self) -> None:
        self.f.flush()

    def close(self) -> None:
        if self.f.closed:
            return
        self.flush()
        self.f.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def log_error_event(
    errors_writer: Optional[JsonlWriter],
    logger: Optional[Logger],
    *,
    stage: str,
    context: Optional[Dict[str, Any]] = None,
    exc: Optional[BaseException] = None,
) -> None:
    """
    Write a structured error event to the errors JSONL (if any) and emit a one-line WARNING.
    Per-record failures are never silent.
    """
    evt: Dict[str, Any] = {"ts_utc": utc_now_iso(), "stage": stage}
    if context:
        evt.update(context)
    if exc is not None:
        evt["exc_type"] = type(exc).__name__
        evt["exc"] = str(exc)

    if errors_writer is not None:
        errors_writer.write(evt)

    if logger is not None:
        msg = f"stage={stage}"
        if context and "key" in context:
            msg += f" key={context['key']!r}"
        if exc is not None:
            msg += f" err={type(exc).__name__}: {exc}"
        logger.warn(msg)


def capture_fatal_exception(exc: BaseException, *, log_dir: Optional[Path], errors_path: Optional[Path]) -> int:
    exc_type = type(exc).__name__
    exc_msg = str(exc)
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    print(f"{exc_type}: {exc_msg}", file=sys.stderr, flush=True)
    print(tb, file=sys.stderr, flush=True)

    tz = getattr(_dt, "UTC", _dt.timezone.utc)
    timestamp = _dt.datetime.now(tz).strftime("%Y%m%d_%H%M%S")
    if log_dir is not None and log_dir.is_dir():
        fatal_dir = log_dir
    else:
        fatal_dir = Path(os.getenv("TEMP") or os.getenv("TMPDIR") or tempfile.gettempdir())
    fatal_path = fatal_dir / f"metamask_fatal_{timestamp}.txt"
    print(f"fatal traceback written to: {fatal_path}", file=sys.stderr, flush=True)

    try:
        write_text(fatal_path, tb)
    except OSError as e:
        print(f"could not write {fatal_path}: {e}", file=sys.stderr, flush=True)

    if errors_path is not None:
        evt = {
            "stage": "fatal",
            "exc_type": exc_type,
            "exc": exc_msg,
            "traceback": tb,
            "ts_utc": utc_now_iso(),
        }
        try:
            with errors_path.open("a", encoding="utf-8", errors="replace", newline="\n") as f:
                f.write(json.dumps(evt, ensure_ascii=False) + "\n")
        except OSError as e:
            print(f"could not append to {errors_path}: {e}", file=sys.stderr, flush=True)

    return 2


# -----------------------------
# LevelDB store access
# -----------------------------

@dataclass
class StoreRecord:
    """Raw LevelDB record with metadata."""
    key: bytes
    value: bytes
    seq: int
    is_deleted: bool = False

    @property
    def key_str(self) -> str:
        return self.key.decode("utf-8", errors="replace")

    @property
    def value_str(self) -> str:
        return self.value.decode("utf-8", errors="replace")


def _load_ccl_leveldb():
    from ccl_chromium_reader.storage_formats import ccl_leveldb  # type: ignore
    return ccl_leveldb


class StoreReader:
    """
    Read-only view over a LevelDB directory.

    Default iteration yields every live key once (newest sequence number wins, deletions
    drop the key), sorted by key bytes. With include_deleted=True every record version
    still present in the .log/.ldb files is yielded, sorted by (key, seq).

    Usage:
        with StoreReader(db_path) as reader:
            for record in reader:
                ...
    """

    def __init__(self, db_path: Union[str, Path], include_deleted: bool = False, logger: Optional[Logger] = None):
        self.db_path = Path(db_path)
        self.include_deleted = include_deleted
        self.logger = logger
        self.error_count = 0
        self._db = None
        self._deleted_state = None

    def open(self) -> "StoreReader":
        if self._db is not None:
            return self
        try:
            ccl_leveldb = _load_ccl_leveldb()
        except ImportError as e:
            raise StoreOpenError(
                self.db_path,
                f"ccl_chromium_reader is not installed ({e})",
            ) from e
        try:
            self._db = ccl_leveldb.RawLevelDb(self.db_path)
        except Exception as e:
            raise StoreOpenError(self.db_path, f"{type(e).__name__}: {e}") from e
        self._deleted_state = ccl_leveldb.KeyState.Deleted
        return self

    def close(self) -> None:
        if self._db is None:
            return
        db, self._db = self._db, None
        db.close()

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __iter__(self) -> Iterator[StoreRecord]:
        return self.iterate_records()

    def _iterate_raw(self) -> Iterator[StoreRecord]:
        iterator = self._db.iterate_records_raw()
        while True:
            # A corrupt block ends the underlying generator; keep what was read so far.
            try:
                rec = next(iterator)
            except StopIteration:
                return
            except Exception as e:
                self.error_count += 1
                if self.logger is not None:
                    self.logger.warn(f"stopping LevelDB iteration in {self.db_path}: {type(e).__name__}: {e}")
                return
            yield StoreRecord(
                key=bytes(rec.user_key),
                value=bytes(rec.value or b""),
                seq=int(rec.seq),
                is_deleted=rec.state == self._deleted_state,
            )

    def iterate_records(self) -> Iterator[StoreRecord]:
        self.open()
        if self.include_deleted:
            records = sorted(self._iterate_raw(), key=lambda r: (r.key, r.seq))
            yield from records
            return

        newest: Dict[bytes, StoreRecord] = {}
        for rec in self._iterate_raw():
            current = newest.get(rec.key)
            if current is None or rec.seq >= current.seq:
                newest[rec.key] = rec
        for key in sorted(newest):
            rec = newest[key]
            if not rec.is_deleted:
                yield rec


def iter_store_records(db_path: Union[str, Path], *, include_deleted: bool = False,
                       logger: Optional[Logger] = None) -> Iterator[StoreRecord]:
    """Yield store records; the store is closed when iteration ends or is abandoned."""
    with StoreReader(db_path, include_deleted=include_deleted, logger=logger) as reader:
        yield from reader


def validate_store_dir(path: Union[str, Path]) -> Path:
    """Check that path is a directory holding LevelDB table files. Raises StoreOpenError."""
    p = Path(path).expanduser()
    if not p.is_dir():
        raise StoreOpenError(p, "path does not exist or is not a directory")
    try:
        has_ldb = any(child.suffix == ".ldb" for child in p.iterdir())
    except OSError as e:
        raise StoreOpenError(p, f"failed to read the directory: {e}") from e
    if not has_ldb:
        raise StoreOpenError(
            p,
            "no .ldb files found; make sure this is the MetaMask extension directory "
            "(Local Extension Settings/nkbihfbeogaeaoehlefnkodbefgpgknn)",
        )
    return p


# -----------------------------
# Record filtering + JSON extraction
# -----------------------------

def is_vault_candidate(key: bytes) -> bool:
    return VAULT_KEY_MARKER in key


def looks_like_vault(text: str) -> bool:
    return VAULT_VALUE_HINT in text


def de_escape(value: Union[bytes, str]) -> str:
    """
    Decode a record value and drop every backslash.

    The vault is stored as a JSON string inside the extension state JSON, so its quotes
    arrive escaped. Base64 never contains a backslash, so vault fields survive unchanged.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        value = bytes(value).decode("utf-8", errors="replace")
    return value.replace("\\", "")


def _balanced_span(text: str, start: int) -> Optional[str]:
    depth = 1
    for i in range(start + len(JSON_MARKER), len(text)):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def extract_embedded_json(text: str) -> str:
    """
    Cut the vault object out of a de-escaped record value.

    Each occurrence of {"data":" is scanned by brace depth. The first balanced span that
    also parses as JSON wins; the de-escaped outer wrapper may itself begin with the marker
    and never parses. If spans balance but none parses, the first balanced span is returned
    and decode_vault reports it.
    """
    start = text.find(JSON_MARKER)
    if start == -1:
        raise MarkerNotFoundError(f"marker {JSON_MARKER!r} not found")

    first_balanced: Optional[str] = None
    while start != -1:
        span = _balanced_span(text, start)
        if span is not None:
            try:
                json.loads(span)
            except ValueError:
                if first_balanced is None:
                    first_balanced = span
            else:
                return span
        start = text.find(JSON_MARKER, start + 1)

    if first_balanced is None:
        raise UnbalancedJSONError("vault JSON object is not terminated")
    return first_balanced


# -----------------------------
# Vault decoding + hash synthesis
# -----------------------------

@dataclass(frozen=True)
class KeyMetadata:
    algorithm: str
    iterations: int


@dataclass(frozen=True)
class Vault:
    salt: str
    iv: str
    vault_data: str
    key_metadata: Optional[KeyMetadata] = None


@dataclass(frozen=True)
class HashScheme:
    hashcat_mode: str
    label: str


LEGACY_SCHEME = HashScheme(hashcat_mode="26600", label="OLD format")
CURRENT_SCHEME = HashScheme(hashcat_mode="26620", label="NEW format")


def _required_str(obj: Dict[str, Any], field: str) -> str:
    if field not in obj:
        raise SchemaDecodeError(f"missing field {field!r}")
    value = obj[field]
    if not isinstance(value, str):
        raise SchemaDecodeError(f"field {field!r} must be a string, got {type(value).__name__}")
    if not value:
        raise SchemaDecodeError(f"field {field!r} is empty")
    return value


def _decode_key_metadata(raw: Any) -> KeyMetadata:
    if not isinstance(raw, dict):
        raise SchemaDecodeError("keyMetadata must be an object")
    algorithm = raw.get("algorithm")
    if not isinstance(algorithm, str) or not algorithm:
        raise SchemaDecodeError("keyMetadata.algorithm must be a non-empty string")
    params = raw.get("params")
    if not isinstance(params, dict):
        raise SchemaDecodeError("keyMetadata.params must be an object")
    iterations = params.get("iterations")
    # bool is an int subclass
    if isinstance(iterations, bool) or not isinstance(iterations, int):
        raise SchemaDecodeError("keyMetadata.params.iterations must be an integer")
    if iterations <= 0:
        raise SchemaDecodeError(f"keyMetadata.params.iterations must be positive, got {iterations}")
    return KeyMetadata(algorithm=algorithm, iterations=iterations)


def decode_vault(json_text: str) -> Vault:
    try:
        obj = json.loads(json_text)
    except ValueError as e:
        raise SchemaDecodeError(f"invalid JSON: {e}") from e
    if not isinstance(obj, dict):
        raise SchemaDecodeError(f"vault must be a JSON object, got {type(obj).__name__}")

    key_metadata = None
    if obj.get("keyMetadata") is not None:
        key_metadata = _decode_key_metadata(obj["keyMetadata"])

    return Vault(
        salt=_required_str(obj, "salt"),
        iv=_required_str(obj, "iv"),
        vault_data=_required_str(obj, "data"),
        key_metadata=key_metadata,
    )


def select_scheme(vault: Vault) -> HashScheme:
    if vault.key_metadata is not None:
        return CURRENT_SCHEME
    return LEGACY_SCHEME


def synthesize_hash(vault: Vault) -> str:
    if select_scheme(vault) is CURRENT_SCHEME:
        return f"$metamask${vault.key_metadata.iterations}${vault.salt}${vault.iv}${vault.vault_data}"
    return f"$metamask${vault.salt}${vault.iv}${vault.vault_data}"


# -----------------------------
# Reporting
# -----------------------------

TOOL_BANNER = [
    " ----------------------------------------------------- ",
    "|           MetaMask Vault Hash Extractor             |",
    "|  Use a MetaMask vault decryptor on the JSON below   |",
    " ----------------------------------------------------- ",
]


def scheme_banner(scheme: HashScheme) -> List[str]:
    title = f"hashcat -m {scheme.hashcat_mode} hash ({scheme.label})"
    return [
        " -------------------------------------------------- ",
        f"|{title:^50}|",
        " -------------------------------------------------- ",
    ]


class Reporter:
    """Writes extracted vault JSON and hashes to stdout (or the given stream)."""

    def __init__(self, stream: Optional[TextIO] = None, banner: bool = True):
        self._stream = stream
        self.banner = banner
        self.count = 0

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def _line(self, text: str = "") -> None:
        self.stream.write(text + "\n")

    def emit(self, extracted_json: str, vault: Vault, hash_string: str) -> None:
        if self.count == 0:
            if self.banner:
                for line in TOOL_BANNER:
                    self._line(line)
        else:
            self._line()
        self._line(extracted_json)
        for line in scheme_banner(select_scheme(vault)):
            self._line(line)
        self._line(hash_string)
        self.stream.flush()
        self.count += 1


# -----------------------------
# Scan pipeline
# -----------------------------

@dataclass
class ScanSummary:
    records_seen: int = 0
    candidates: int = 0
    vaults: int = 0
    failures: int = 0
    skipped: int = 0


def process_record(record: StoreRecord) -> Optional[Tuple[str, Vault, str]]:
    """
    Run one record through filter, extraction, decoding and hash synthesis.

    Returns None when the record does not look like a vault carrier; raises
    ExtractionError / SchemaDecodeError when it does but cannot be turned into a hash.
    """
    if not is_vault_candidate(record.key):
        return None
    text = de_escape(record.value)
    if not looks_like_vault(text):
        return None
    extracted = extract_embedded_json(text)
    vault = decode_vault(extracted)
    return extracted, vault, synthesize_hash(vault)


def scan_store(
    db_path: Union[str, Path],
    reporter: Reporter,
    logger: Logger,
    *,
    errors_writer: Optional[JsonlWriter] = None,
    include_deleted: bool = False,
) -> ScanSummary:
    """Scan every record of the store. StoreOpenError propagates; per-record errors do not."""
    stage = "vault_scan"
    summary = ScanSummary()

    with StoreReader(db_path, include_deleted=include_deleted, logger=logger) as reader:
        logger.info(f"[{stage}] scanning {reader.db_path} include_deleted={include_deleted}")
        for record in reader:
            summary.records_seen += 1
            if not is_vault_candidate(record.key):
                continue
            summary.candidates += 1
            try:
                result = process_record(record)
            except ExtractorError as e:
                summary.failures += 1
                log_error_event(
                    errors_writer,
                    logger,
                    stage=f"{stage}_record_failed",
                    context={"key": record.key_str, "seq": record.seq, "is_deleted": record.is_deleted},
                    exc=e,
                )
                continue
            if result is None:
                summary.skipped += 1
                logger.debug(f"[{stage}] key={record.key_str!r} seq={record.seq} has no vault fields")
                continue
            extracted, vault, hash_string = result
            reporter.emit(extracted, vault, hash_string)
            summary.vaults += 1

        if reader.error_count:
            log_error_event(
                errors_writer,
                None,
                stage=f"{stage}_iteration_stopped",
                context={"db_path": str(reader.db_path), "error_count": reader.error_count},
            )

    logger.info(
        f"[{stage}] records={summary.records_seen} candidates={summary.candidates} "
        f"vaults={summary.vaults} failures={summary.failures} skipped={summary.skipped}"
    )
    return summary


# -----------------------------
# Command line
# -----------------------------

_FATAL_LOG_DIR: Optional[Path] = None
_FATAL_ERRORS_PATH: Optional[Path] = None


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="metamask_extractor",
        description="Extract MetaMask vault JSON and hashcat hashes (modes 26600/26620) from the extension's LevelDB store.",
        epilog="Example: metamask_extractor nkbihfbeogaeaoehlefnkodbefgpgknn/",
    )
    ap.add_argument("vault_dir", nargs="?", help="MetaMask extension LevelDB directory (contains *.ldb files).")
    ap.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    ap.add_argument("--include-deleted", action="store_true", help="Also scan superseded/deleted record versions still present on disk.")
    ap.add_argument("--no-banner", action="store_true", help="Do not print the tool banner before the first result.")
    ap.add_argument("--log-file", default="", help="Also append the run log to this file.")
    ap.add_argument("--errors-jsonl", default="", help="Write one JSON event per failed record to this file.")
    ap.add_argument("--warn-limit", type=int, default=25, help="Max console repeats per identical warning (-1 never suppress, 0 suppress all; default: 25).")
    ap.add_argument("-v", "--verbose", action="store_true", help="Print progress and debug diagnostics to stderr.")
    ap.add_argument("--self-check", action="store_true", help="Print an environment report as JSON and exit.")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_arg_parser()
    args = ap.parse_args(argv)

    if args.self_check:
        print(json.dumps(build_self_check(), indent=2))
        return 0

    global _FATAL_LOG_DIR, _FATAL_ERRORS_PATH
    log_path = Path(args.log_file).expanduser().resolve() if args.log_file else None
    errors_path = Path(args.errors_jsonl).expanduser().resolve() if args.errors_jsonl else None
    if log_path is not None:
        _FATAL_LOG_DIR = log_path.parent
    _FATAL_ERRORS_PATH = errors_path

    logger = Logger(log_path, verbose=args.verbose, warn_limit=args.warn_limit)

    if not args.vault_dir:
        logger.error("MetaMask vault directory is required")
        ap.print_help(sys.stderr)
        return 1

    try:
        vault_dir = validate_store_dir(args.vault_dir)
    except StoreOpenError as e:
        logger.error(str(e))
        return 1

    errors_writer = JsonlWriter(errors_path) if errors_path is not None else None
    try:
        summary = scan_store(
            vault_dir,
            Reporter(banner=not args.no_banner),
            logger,
            errors_writer=errors_writer,
            include_deleted=args.include_deleted,
        )
    except StoreOpenError as e:
        logger.error(str(e))
        if errors_writer is not None:
            log_error_event(errors_writer, None, stage="store_open", context={"db_path": str(vault_dir)}, exc=e)
        return 1
    finally:
        if errors_writer is not None:
            errors_writer.close()

    if summary.vaults == 0:
        logger.notice(f"no vault found in {vault_dir} ({summary.candidates} candidate records, {summary.failures} failed, {summary.skipped} skipped without vault fields)")
    return 0


def run(argv: Optional[List[str]] = None) -> int:
    """Console entry point: main() with unexpected exceptions captured to a fatal file (exit 2)."""
    try:
        return main(argv)
    except Exception as exc:
        return capture_fatal_exception(exc, log_dir=_FATAL_LOG_DIR, errors_path=_FATAL_ERRORS_PATH)


if __name__ == "__main__":
    raise SystemExit(run())
