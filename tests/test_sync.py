"""Tests for the FlowSync orchestrator."""

import json

import pytest

from flowkeeper.config import Settings
from flowkeeper.core.sync import FlowSync
from flowkeeper.exceptions import MappingNotFoundError, SourceError
from flowkeeper.schemas.base import SyncOperation
from flowkeeper.sources import BaseFlowSource, FileFlowSource
from flowkeeper.storage import document_id

FLOW_ID = "approval-flow"


class FlakySource(BaseFlowSource):
    """Source that fails a given number of times before answering."""

    def __init__(self, failures, retryable=True, definition='{"a": "bob@x.com"}'):
        self.failures = failures
        self.retryable = retryable
        self.definition = definition
        self.calls = 0
        self.uploads = []

    def fetch_definition(self, flow_id):
        self.calls += 1
        if self.calls <= self.failures:
            raise SourceError("flaky", "temporarily unavailable", retryable=self.retryable)
        return self.definition

    def update_definition(self, flow_id, definition):
        self.uploads.append(definition)

    @classmethod
    def get_source_name(cls):
        return "flaky"


def _edit(path, change):
    """Apply ``change`` to the parsed JSON at ``path`` and write it back."""
    data = json.loads(path.read_text(encoding="utf-8"))
    change(data)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


class TestFlowSyncInit:
    def test_rejects_zero_retries(self, store):
        with pytest.raises(ValueError):
            FlowSync(store=store, retries=0)

    def test_from_settings_file_source(self, tmp_path, remote_dir):
        settings = Settings(
            source="file",
            source_root=remote_dir,
            store_path=tmp_path / "s.json",
            backup_dir=tmp_path / "b",
            retries=5,
        )
        sync = FlowSync.from_settings(settings)

        assert isinstance(sync.source, FileFlowSource)
        assert sync.source.root == remote_dir
        assert sync.store.path == tmp_path / "s.json"
        assert sync.retries == 5

    def test_from_settings_without_source(self, tmp_path):
        settings = Settings(store_path=tmp_path / "s.json")
        assert FlowSync.from_settings(settings, with_source=False).source is None


class TestPull:
    def test_pull_writes_redacted_file(self, sync, local_path, store, sample_secrets):
        result = sync.pull(FLOW_ID, local_path)

        assert result.success
        assert result.operation == SyncOperation.PULL
        assert result.local_path == document_id(local_path)
        assert result.placeholder_count == 5
        assert result.counts == {"EMAIL": 2, "URL": 1, "GUID": 1, "STRING": 1}

        text = local_path.read_text(encoding="utf-8")
        for secret in sample_secrets:
            assert secret not in text
        assert "{{EMAIL_1}}" in text

        mapping = store.get(local_path)
        assert mapping.get_original("{{EMAIL_1}}") == "alice@contoso.com"

    def test_summary_has_no_secrets(self, sync, local_path, sample_secrets):
        summary = json.dumps(sync.pull(FLOW_ID, local_path).to_summary())
        for secret in sample_secrets:
            assert secret not in summary

    def test_pull_unknown_flow(self, sync, local_path):
        result = sync.pull("missing", local_path)

        assert not result.success
        assert result.error_code == "source_error"
        assert not local_path.exists()

    def test_pull_without_source(self, store, local_path):
        result = FlowSync(store=store).pull(FLOW_ID, local_path)
        assert not result.success
        assert result.error_code == "source_error"

    def test_store_write_failure_is_fatal(self, sync, local_path, store_path, monkeypatch):
        """Test that no local file is written when the mapping cannot be saved."""

        def failing_replace(src, dst):
            raise OSError("permission denied")

        monkeypatch.setattr("flowkeeper.storage.atomic.os.replace", failing_replace)
        result = sync.pull(FLOW_ID, local_path)

        assert not result.success
        assert result.error_code == "store_write_error"
        assert "permission denied" in result.error
        assert not local_path.exists()
        assert not store_path.exists()

    def test_pull_invalid_remote_json(self, tmp_path, store, local_path):
        root = tmp_path / "broken"
        root.mkdir()
        (root / "bad.json").write_text("{not json", encoding="utf-8")

        result = FlowSync(source=FileFlowSource(root), store=store).pull("bad", local_path)
        assert not result.success
        assert result.error_code == "document_parse_error"

    def test_pull_lone_surrogate(self, tmp_path, store, local_path):
        """Test that an unpaired surrogate escape is pulled and pushed intact."""
        root = tmp_path / "surrogate"
        root.mkdir()
        definition = {"a": "\ud83d", "b": "hello world \ud83d"}
        (root / "odd.json").write_text(json.dumps(definition), encoding="ascii")
        sync = FlowSync(source=FileFlowSource(root), store=store)

        result = sync.pull("odd", local_path)

        assert result.success, result.error
        assert json.loads(local_path.read_text(encoding="utf-8"))["a"] == "\ud83d"

        pushed = sync.push("odd", local_path)
        assert pushed.success, pushed.error
        remote = json.loads((root / "odd.json").read_text(encoding="utf-8"))
        assert remote == definition

    def test_pull_non_finite_number(self, tmp_path, store, local_path):
        root = tmp_path / "numbers"
        root.mkdir()
        (root / "big.json").write_text('{"n": 1e400}', encoding="utf-8")

        result = FlowSync(source=FileFlowSource(root), store=store).pull("big", local_path)
        assert not result.success
        assert result.error_code == "document_parse_error"
        assert not local_path.exists()


class TestPush:
    def test_push_round_trip(
        self, sync, local_path, remote_dir, sample_definition, store_path, tmp_path
    ):
        sync.pull(FLOW_ID, local_path)
        store_before = store_path.read_bytes()

        def add_delay(data):
            data["actions"]["Delay"] = {
                "type": "Wait",
                "inputs": {"interval": {"count": 5, "unit": "Minute"}},
                "runAfter": {"Notify": ["Succeeded"]},
            }

        _edit(local_path, add_delay)
        result = sync.push(FLOW_ID, local_path)

        assert result.success, result.error
        assert result.operation == SyncOperation.PUSH
        assert result.checks.is_valid

        remote = json.loads((remote_dir / f"{FLOW_ID}.json").read_text(encoding="utf-8"))
        expected = dict(sample_definition)
        expected["actions"] = dict(sample_definition["actions"])
        expected["actions"]["Delay"] = {
            "type": "Wait",
            "inputs": {"interval": {"count": 5, "unit": "Minute"}},
            "runAfter": {"Notify": ["Succeeded"]},
        }
        assert remote == expected

        # Push reads the store but never modifies it
        assert store_path.read_bytes() == store_before

        backups = list((tmp_path / "backups").iterdir())
        assert len(backups) == 1
        assert backups[0].name.startswith(f"{FLOW_ID}-")
        assert json.loads(backups[0].read_text(encoding="utf-8")) == sample_definition
        assert result.backup_path == str(backups[0])

    def test_dry_run_does_not_upload(self, sync, local_path, remote_dir, tmp_path, sample_definition):
        sync.pull(FLOW_ID, local_path)
        remote_before = (remote_dir / f"{FLOW_ID}.json").read_text(encoding="utf-8")

        result = sync.push(FLOW_ID, local_path, dry_run=True)

        assert result.success
        assert json.loads(result.rehydrated) == sample_definition
        assert (remote_dir / f"{FLOW_ID}.json").read_text(encoding="utf-8") == remote_before
        assert not (tmp_path / "backups").exists()
        assert "rehydrated" not in result.to_summary()

    def test_missing_file(self, sync, local_path):
        result = sync.push(FLOW_ID, local_path)

        assert not result.success
        assert result.error_code == "file_not_found"

    def test_file_never_extracted(self, sync, local_path):
        local_path.parent.mkdir(parents=True)
        local_path.write_text('{"a": "{{EMAIL_1}}"}', encoding="utf-8")

        result = sync.push(FLOW_ID, local_path)

        assert not result.success
        assert result.error_code == "mapping_not_found"
        assert "never extracted" in result.error

    def test_invalid_edit_blocks_push(self, sync, local_path, remote_dir):
        sync.pull(FLOW_ID, local_path)
        remote_before = (remote_dir / f"{FLOW_ID}.json").read_text(encoding="utf-8")
        local_path.write_text(
            local_path.read_text(encoding="utf-8") + "trailing garbage", encoding="utf-8"
        )

        result = sync.push(FLOW_ID, local_path)

        assert not result.success
        assert result.error_code == "checks_failed"
        assert result.checks is not None and not result.checks.is_valid
        assert (remote_dir / f"{FLOW_ID}.json").read_text(encoding="utf-8") == remote_before

    def test_unknown_placeholder_is_pushed_literally(self, sync, local_path, remote_dir):
        sync.pull(FLOW_ID, local_path)

        def add_cc(data):
            data["actions"]["Send_email"]["inputs"]["cc"] = "{{EMAIL_99}}"

        _edit(local_path, add_cc)
        result = sync.push(FLOW_ID, local_path)

        assert result.success
        assert len(result.checks.warnings) == 1
        remote = json.loads((remote_dir / f"{FLOW_ID}.json").read_text(encoding="utf-8"))
        assert remote["actions"]["Send_email"]["inputs"]["cc"] == "{{EMAIL_99}}"


class TestRetry:
    def test_retryable_errors_are_retried(self, store, local_path, monkeypatch):
        delays = []
        monkeypatch.setattr("flowkeeper.core.sync.time.sleep", delays.append)
        source = FlakySource(failures=2)

        result = FlowSync(source=source, store=store, retries=3, retry_delay=0.5).pull(
            "f", local_path
        )

        assert result.success
        assert source.calls == 3
        assert delays == [0.5, 1.0]

    def test_gives_up_after_retries(self, store, local_path, monkeypatch):
        delays = []
        monkeypatch.setattr("flowkeeper.core.sync.time.sleep", delays.append)
        source = FlakySource(failures=10)

        result = FlowSync(source=source, store=store, retries=2, retry_delay=0.5).pull(
            "f", local_path
        )

        assert not result.success
        assert result.error_code == "source_error"
        assert source.calls == 2
        assert delays == [0.5]

    def test_non_retryable_errors_fail_fast(self, store, local_path, monkeypatch):
        delays = []
        monkeypatch.setattr("flowkeeper.core.sync.time.sleep", delays.append)
        source = FlakySource(failures=1, retryable=False)

        result = FlowSync(source=source, store=store).pull("f", local_path)

        assert not result.success
        assert source.calls == 1
        assert delays == []


class TestOfflineOperations:
    def test_extract_and_rehydrate_file(self, store, tmp_path, sample_definition_text, sample_definition):
        original = tmp_path / "original.json"
        original.write_text(sample_definition_text, encoding="utf-8")
        redacted = tmp_path / "redacted.json"
        restored = tmp_path / "restored.json"
        sync = FlowSync(store=store)

        extracted = sync.extract_file(original, redacted)
        assert extracted.success
        assert extracted.operation == SyncOperation.EXTRACT
        assert "alice@contoso.com" not in redacted.read_text(encoding="utf-8")

        result = sync.rehydrate_file(redacted, output_path=restored)
        assert result.success
        assert json.loads(result.rehydrated) == sample_definition
        assert json.loads(restored.read_text(encoding="utf-8")) == sample_definition

    def test_extract_missing_input(self, store, tmp_path):
        result = FlowSync(store=store).extract_file(tmp_path / "nope.json", tmp_path / "out.json")
        assert not result.success
        assert result.error_code == "local_io_error"

    def test_rehydrate_without_mapping(self, store, tmp_path):
        path = tmp_path / "flow.json"
        path.write_text("{}", encoding="utf-8")

        result = FlowSync(store=store).rehydrate_file(path)
        assert not result.success
        assert result.error_code == "mapping_not_found"

    def test_check_file(self, sync, local_path):
        sync.pull(FLOW_ID, local_path)
        assert sync.check_file(local_path).is_valid

    def test_check_file_without_mapping(self, store, tmp_path):
        path = tmp_path / "flow.json"
        path.write_text("{}", encoding="utf-8")
        with pytest.raises(MappingNotFoundError):
            FlowSync(store=store).check_file(path)
