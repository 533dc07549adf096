"""
Main FlowSync class for pulling and pushing workflow definitions.

This is the primary public API for Flowkeeper.
"""

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, TypeVar, Union

from ..config import Settings, load_settings
from ..exceptions import FlowkeeperError, MappingNotFoundError, SourceError
from ..privacy.redactor import SecretMapping, SecretRedactor, rehydrate
from ..schemas.base import CheckResult, SyncOperation, SyncResult
from ..sources import BaseFlowSource, get_source
from ..storage import BaseMappingStore, JsonMappingStore, atomic_write_text, document_id
from ..validators import CheckEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")

PathLike = Union[str, Path]


class FlowSync:
    """
    Keeps a local, redacted copy of a workflow definition in sync with its source.

    Features:
    - pull: fetch, hide sensitive values, record the mapping, write the local file
    - push: check the edited file, restore hidden values, back up, upload
    - offline extract/rehydrate of local files
    - retry with exponential backoff around source calls

    Every operation returns a SyncResult; nothing is printed.
    """

    def __init__(
        self,
        source: Optional[BaseFlowSource] = None,
        store: Optional[BaseMappingStore] = None,
        redactor: Optional[SecretRedactor] = None,
        check_engine: Optional[CheckEngine] = None,
        retries: int = 3,
        retry_delay: float = 0.5,
        backup_dir: Optional[PathLike] = None,
    ):
        """
        Initialize FlowSync.

        Args:
            source: Where definitions are fetched from and uploaded to
            store: Mapping store (default: JSON store at the default path)
            redactor: SecretRedactor used for extraction
            check_engine: Pre-push checks (default: built-in rules)
            retries: Attempts per source call (default: 3)
            retry_delay: Base delay in seconds, doubled after each failure
            backup_dir: Where the remote definition is saved before a push
                (None disables backups)
        """
        if retries < 1:
            raise ValueError(f"retries must be at least 1, got {retries}")

        self.source = source
        self.store = store or JsonMappingStore(Settings().expanded_store_path())
        self.redactor = redactor or SecretRedactor()
        self.check_engine = check_engine or CheckEngine()
        self.retries = retries
        self.retry_delay = retry_delay
        self.backup_dir = Path(backup_dir).expanduser() if backup_dir else None

    @classmethod
    def from_settings(
        cls, settings: Optional[Settings] = None, with_source: bool = True
    ) -> "FlowSync":
        """
        Build a FlowSync from Settings.

        Args:
            settings: Settings to use (default: from the environment)
            with_source: Create the definition source; offline extract and
                rehydrate do not need one
        """
        settings = settings or load_settings()

        source: Optional[BaseFlowSource] = None
        if with_source and settings.source == "file":
            source = get_source("file", root=settings.source_root or Path.cwd())
        elif with_source:
            source = get_source(
                settings.source,
                base_url=settings.api_base_url,
                token=settings.api_token,
                api_version=settings.api_version,
                timeout=settings.timeout,
            )

        return cls(
            source=source,
            store=JsonMappingStore(settings.expanded_store_path()),
            redactor=SecretRedactor(indent=settings.indent),
            retries=settings.retries,
            retry_delay=settings.retry_delay,
            backup_dir=settings.expanded_backup_dir(),
        )

    def _require_source(self) -> BaseFlowSource:
        if self.source is None:
            raise SourceError("none", "No definition source configured")
        return self.source

    def _with_retry(self, action: str, call: Callable[[], T]) -> T:
        """Run a source call, retrying retryable SourceErrors with backoff."""
        attempt = 0
        while True:
            try:
                return call()
            except SourceError as e:
                attempt += 1
                if not e.retryable or attempt >= self.retries:
                    raise
                delay = self.retry_delay * (2 ** (attempt - 1))
                logger.warning(
                    "%s failed (%s), retrying in %.1fs (attempt %d/%d)",
                    action,
                    e,
                    delay,
                    attempt,
                    self.retries,
                )
                time.sleep(delay)

    @staticmethod
    def _failure(
        operation: SyncOperation,
        error: Exception,
        start_time: float,
        flow_id: Optional[str] = None,
        local_path: Optional[PathLike] = None,
        code: Optional[str] = None,
        **extra,
    ) -> SyncResult:
        logger.error("%s failed: %s", operation.value, error)
        return SyncResult(
            success=False,
            operation=operation,
            flow_id=flow_id,
            local_path=str(local_path) if local_path is not None else None,
            error=str(error),
            error_code=code or getattr(error, "code", "error"),
            total_time=time.time() - start_time,
            **extra,
        )

    def pull(self, flow_id: str, local_path: PathLike) -> SyncResult:
        """
        Fetch a definition and write its redacted form to ``local_path``.

        The mapping is saved before the local file is written, so a redacted
        file on disk always has a mapping behind it.

        Args:
            flow_id: Identifier of the flow at the source
            local_path: Where the redacted definition is written

        Returns:
            SyncResult with placeholder counts
        """
        start_time = time.time()
        try:
            source = self._require_source()
            definition = self._with_retry(
                f"fetch {flow_id}", lambda: source.fetch_definition(flow_id)
            )
            result = self.redactor.extract(definition, source=f"flow {flow_id}")
            key = self.store.put(local_path, result.mapping)
            atomic_write_text(key, result.redacted + "\n")
        except FlowkeeperError as e:
            return self._failure(SyncOperation.PULL, e, start_time, flow_id, local_path)
        except (OSError, UnicodeError) as e:
            return self._failure(
                SyncOperation.PULL,
                e,
                start_time,
                flow_id,
                local_path,
                code="local_write_error",
            )

        logger.info(
            "Pulled flow %s into %s (%d placeholders)", flow_id, key, len(result.mapping)
        )
        return SyncResult(
            success=True,
            operation=SyncOperation.PULL,
            flow_id=flow_id,
            local_path=key,
            placeholder_count=len(result.mapping),
            counts=result.counts,
            total_time=time.time() - start_time,
        )

    def _read_local(self, local_path: PathLike) -> str:
        return Path(local_path).expanduser().read_text(encoding="utf-8")

    def _mapping_for(self, local_path: PathLike) -> SecretMapping:
        mapping = self.store.get(local_path)
        if mapping is None:
            raise MappingNotFoundError(
                document_id(local_path), str(getattr(self.store, "path", "")) or None
            )
        return mapping

    def _backup(self, flow_id: str) -> Optional[Path]:
        """Save the current remote definition before it is overwritten."""
        if self.backup_dir is None:
            return None

        source = self._require_source()
        current = self._with_retry(
            f"fetch {flow_id} for backup", lambda: source.fetch_definition(flow_id)
        )
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        backup_path = self.backup_dir / f"{flow_id}-{timestamp}.json"
        atomic_write_text(backup_path, current)
        logger.info("Backed up flow %s to %s", flow_id, backup_path)
        return backup_path

    def push(
        self, flow_id: str, local_path: PathLike, dry_run: bool = False
    ) -> SyncResult:
        """
        Restore hidden values in ``local_path`` and upload the result.

        The mapping store is read, never modified.

        Args:
            flow_id: Identifier of the flow at the source
            local_path: Edited, redacted definition
            dry_run: Rehydrate and check but do not back up or upload; the
                rehydrated text is returned in ``SyncResult.rehydrated``

        Returns:
            SyncResult with check findings and the backup location
        """
        start_time = time.time()
        path = Path(local_path).expanduser()

        if not path.is_file():
            return self._failure(
                SyncOperation.PUSH,
                FileNotFoundError(f"File not found: {path}"),
                start_time,
                flow_id,
                path,
                code="file_not_found",
            )

        try:
            text = self._read_local(path)
            mapping = self._mapping_for(path)
        except FlowkeeperError as e:
            return self._failure(SyncOperation.PUSH, e, start_time, flow_id, path)
        except (OSError, UnicodeError) as e:
            return self._failure(
                SyncOperation.PUSH, e, start_time, flow_id, path, code="local_read_error"
            )

        checks = self.check_engine.check(text, mapping)
        for warning in checks.warnings:
            logger.warning("%s: %s", path, warning)
        if not checks.is_valid:
            return self._failure(
                SyncOperation.PUSH,
                ValueError("; ".join(checks.errors)),
                start_time,
                flow_id,
                path,
                code="checks_failed",
                checks=checks,
            )

        rehydrated = rehydrate(text, mapping)
        if dry_run:
            return SyncResult(
                success=True,
                operation=SyncOperation.PUSH,
                flow_id=flow_id,
                local_path=str(path),
                placeholder_count=len(mapping),
                checks=checks,
                rehydrated=rehydrated,
                total_time=time.time() - start_time,
            )

        try:
            source = self._require_source()
            backup_path = self._backup(flow_id)
            self._with_retry(
                f"update {flow_id}",
                lambda: source.update_definition(flow_id, rehydrated),
            )
        except FlowkeeperError as e:
            return self._failure(
                SyncOperation.PUSH, e, start_time, flow_id, path, checks=checks
            )
        except (OSError, UnicodeError) as e:
            return self._failure(
                SyncOperation.PUSH,
                e,
                start_time,
                flow_id,
                path,
                code="backup_error",
                checks=checks,
            )

        logger.info("Pushed %s to flow %s", path, flow_id)
        return SyncResult(
            success=True,
            operation=SyncOperation.PUSH,
            flow_id=flow_id,
            local_path=str(path),
            placeholder_count=len(mapping),
            checks=checks,
            backup_path=str(backup_path) if backup_path else None,
            total_time=time.time() - start_time,
        )

    def extract_file(self, input_path: PathLike, output_path: PathLike) -> SyncResult:
        """Redact a local definition file into ``output_path`` without any source."""
        start_time = time.time()
        try:
            text = self._read_local(input_path)
            result = self.redactor.extract(text, source=str(input_path))
            key = self.store.put(output_path, result.mapping)
            atomic_write_text(key, result.redacted + "\n")
        except FlowkeeperError as e:
            return self._failure(
                SyncOperation.EXTRACT, e, start_time, local_path=output_path
            )
        except (OSError, UnicodeError) as e:
            return self._failure(
                SyncOperation.EXTRACT,
                e,
                start_time,
                local_path=output_path,
                code="local_io_error",
            )

        return SyncResult(
            success=True,
            operation=SyncOperation.EXTRACT,
            local_path=key,
            placeholder_count=len(result.mapping),
            counts=result.counts,
            total_time=time.time() - start_time,
        )

    def rehydrate_file(
        self, local_path: PathLike, output_path: Optional[PathLike] = None
    ) -> SyncResult:
        """
        Restore hidden values in a local file without any source.

        The rehydrated text is returned in ``SyncResult.rehydrated`` and, when
        ``output_path`` is given, also written there.
        """
        start_time = time.time()
        path = Path(local_path).expanduser()
        if not path.is_file():
            return self._failure(
                SyncOperation.REHYDRATE,
                FileNotFoundError(f"File not found: {path}"),
                start_time,
                local_path=path,
                code="file_not_found",
            )

        try:
            text = self._read_local(path)
            mapping = self._mapping_for(path)
            rehydrated = rehydrate(text, mapping)
            if output_path is not None:
                atomic_write_text(output_path, rehydrated)
        except FlowkeeperError as e:
            return self._failure(SyncOperation.REHYDRATE, e, start_time, local_path=path)
        except (OSError, UnicodeError) as e:
            return self._failure(
                SyncOperation.REHYDRATE,
                e,
                start_time,
                local_path=path,
                code="local_io_error",
            )

        return SyncResult(
            success=True,
            operation=SyncOperation.REHYDRATE,
            local_path=str(path),
            placeholder_count=len(mapping),
            rehydrated=rehydrated,
            total_time=time.time() - start_time,
        )

    def check_file(self, local_path: PathLike) -> CheckResult:
        """Run the pre-push checks on a local file. Raises on missing file or mapping."""
        path = Path(local_path).expanduser()
        return self.check_engine.check(self._read_local(path), self._mapping_for(path))

    def close(self) -> None:
        if self.source is not None:
            self.source.close()


def pull(
    flow_id: str, local_path: PathLike, settings: Optional[Settings] = None
) -> SyncResult:
    """
    One-liner pull using Settings (environment variables by default).

    Examples:
        ```python
        from flowkeeper import pull, push

        result = pull("3f2a...", "flows/approval.json")
        print(result.placeholder_count)

        # ... edit flows/approval.json ...
        result = push("3f2a...", "flows/approval.json")
        ```
    """
    sync = FlowSync.from_settings(settings)
    try:
        return sync.pull(flow_id, local_path)
    finally:
        sync.close()


def push(
    flow_id: str,
    local_path: PathLike,
    dry_run: bool = False,
    settings: Optional[Settings] = None,
) -> SyncResult:
    """One-liner push using Settings (environment variables by default)."""
    sync = FlowSync.from_settings(settings)
    try:
        return sync.push(flow_id, local_path, dry_run=dry_run)
    finally:
        sync.close()
