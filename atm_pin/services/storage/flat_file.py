"""
Flat-File Account Storage

DESIGN DECISION: Accounts live in a single newline-delimited file,
one encoded record per line, because that is the format existing
demo installations already have on disk.

TRADEOFFS:
- Every add/update rewrites the whole file (fine for a demo-sized
  account list)
- One process owns the file; there is no locking between processes
- A damaged line costs that one account, never the whole load

The file is opened, fully read or written, and closed on every call.
No handle is kept between calls.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog

from atm_pin.config import get_settings
from atm_pin.models.account import (
    AccountRecord,
    AccountSummary,
    ErrorKind,
    LoadReport,
    MalformedRecordError,
    StoreResult,
)
from atm_pin.services.storage.encoding import ReversibleEncoding
from atm_pin.services.storage.interface import (
    AccountStorageInterface,
    StorageError,
    StorageWriteError,
)


logger = structlog.get_logger(__name__)


class FlatFileAccountStorage(AccountStorageInterface):
    """
    Account store backed by a flat file.

    Usage:
        store = FlatFileAccountStorage("atm_users.db")
        report = store.load()
        store.add(record)
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        encoding: Optional[ReversibleEncoding] = None,
        atomic_writes: Optional[bool] = None,
    ):
        """
        Initialize storage. Nothing is read until `load` is called.

        Args:
            path: Account file. Defaults to settings.
            encoding: Line encoding. Defaults to the configured key.
            atomic_writes: Write via a temporary file and rename.
                           Defaults to settings.
        """
        settings = get_settings().store
        self._path = Path(path) if path is not None else Path(settings.path)
        self._encoding = encoding or ReversibleEncoding(settings.encoding_key)
        self._atomic_writes = (
            settings.atomic_writes if atomic_writes is None else atomic_writes
        )
        self._accounts: dict[str, AccountRecord] = {}

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        return len(self._accounts)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _parse_line(self, raw: bytes) -> tuple[Optional[AccountRecord], Optional[str]]:
        """Decode one stored line into (record, None) or (None, error)."""
        try:
            return AccountRecord.from_line(self._encoding.decode_line(raw)), None
        except UnicodeDecodeError as e:
            return None, f"Not valid UTF-8 after decoding: {e.reason}"
        except MalformedRecordError as e:
            return None, str(e)

    def load(self) -> LoadReport:
        """
        Read the whole file into memory.

        A missing file loads as an empty store. When a username appears
        on several lines, the last one wins.

        Raises:
            StorageError: If the file exists but cannot be read
        """
        accounts: dict[str, AccountRecord] = {}
        report = LoadReport()

        try:
            with open(self._path, "rb") as f:
                data = f.read()
        except FileNotFoundError:
            logger.info("store_file_missing", path=str(self._path))
            data = b""
        except OSError as e:
            raise StorageError(f"Could not read {self._path}: {e}") from e

        for line_number, raw in enumerate(data.split(b"\n"), start=1):
            if not raw:
                continue
            record, error = self._parse_line(raw)
            if record is None:
                report.skipped += 1
                report.skipped_lines.append(line_number)
                logger.warning(
                    "record_skipped",
                    path=str(self._path),
                    line_number=line_number,
                    error=error,
                )
                continue
            accounts[record.username] = record

        self._accounts = accounts
        report.loaded = len(accounts)
        logger.info(
            "store_loaded",
            path=str(self._path),
            loaded=report.loaded,
            skipped=report.skipped,
        )
        return report

    def save(self) -> None:
        """
        Rewrite the whole file from memory.

        Raises:
            StorageWriteError: If the file cannot be written
        """
        payload = b"".join(
            self._encoding.encode_line(record.to_line()) + b"\n"
            for record in self._accounts.values()
        )

        if self._atomic_writes:
            self._write_atomic(payload)
        else:
            try:
                with open(self._path, "wb") as f:
                    f.write(payload)
            except OSError as e:
                raise StorageWriteError(str(self._path), str(e)) from e

        logger.debug("store_saved", path=str(self._path), accounts=len(self._accounts))

    def _write_atomic(self, payload: bytes) -> None:
        directory = self._path.parent
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=directory,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except OSError as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageWriteError(str(self._path), str(e)) from e

    def _commit(self, record: AccountRecord) -> None:
        """Put record in memory and save, restoring memory if the save fails."""
        previous = self._accounts.get(record.username)
        self._accounts[record.username] = record
        try:
            self.save()
        except StorageError:
            if previous is None:
                del self._accounts[record.username]
            else:
                self._accounts[record.username] = previous
            raise

    # -------------------------------------------------------------------------
    # Queries and mutations
    # -------------------------------------------------------------------------

    def exists(self, username: str) -> bool:
        return username in self._accounts

    def add(self, record: AccountRecord) -> StoreResult:
        if self.exists(record.username):
            return StoreResult.failed(ErrorKind.USER_ALREADY_EXISTS)
        if not self._encoding.fits_on_one_line(record.to_line()):
            logger.warning("record_unencodable", username=record.username)
            return StoreResult.failed(ErrorKind.UNENCODABLE_RECORD)

        self._commit(record)
        return StoreResult.ok()

    def update(self, record: AccountRecord) -> StoreResult:
        if not self.exists(record.username):
            return StoreResult.failed(ErrorKind.USER_NOT_FOUND)
        if not self._encoding.fits_on_one_line(record.to_line()):
            logger.warning("record_unencodable", username=record.username)
            return StoreResult.failed(ErrorKind.UNENCODABLE_RECORD)

        self._commit(record)
        return StoreResult.ok()

    def get(self, username: str) -> Optional[AccountRecord]:
        record = self._accounts.get(username)
        if record is None:
            return None
        return record.model_copy(deep=True)

    def list_accounts(self) -> list[AccountSummary]:
        return [
            AccountSummary.from_record(self._accounts[username])
            for username in sorted(self._accounts)
        ]
