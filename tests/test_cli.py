"""Command-line entry point."""

from click.testing import CliRunner

from snapshotter.cli import cli
from snapshotter.storage import SnapshotStore

SNAPSHOT = {
    "date": "2024-05",
    "lists": [{"id": "L1", "name": "Board", "numColumns": 2, "columnsInfo": {"to do": 3, "complete": 1}}],
    "kanbanColumns": {},
    "listViewTasks": [{"id": "t1"}, {"id": "t2"}],
}


def invoke(*args: str):
    return CliRunner().invoke(cli, ["--token", "", "--space-id", "", *args])


class TestCli:
    def test_snapshots_lists_local_files(self, tmp_path):
        store = SnapshotStore(tmp_path)
        store.write_snapshot("2024-05", SNAPSHOT)
        store.write_snapshot("2024-04", {"date": "2024-04", "lists": [], "listViewTasks": []})
        result = invoke("--snapshots-dir", str(tmp_path), "snapshots")
        assert result.exit_code == 0
        assert "2024-05" in result.output
        assert "2024-04" in result.output

    def test_show(self, tmp_path):
        SnapshotStore(tmp_path).write_snapshot("2024-05", SNAPSHOT)
        result = invoke("--snapshots-dir", str(tmp_path), "show", "2024-05")
        assert result.exit_code == 0
        assert "Board" in result.output
        assert "to do" in result.output

    def test_show_missing_month(self, tmp_path):
        result = invoke("--snapshots-dir", str(tmp_path), "show", "1999-01")
        assert result.exit_code == 1

    def test_show_invalid_json(self, tmp_path):
        (tmp_path / "2024-05.json").write_text("{truncated", encoding="utf-8")
        result = invoke("--snapshots-dir", str(tmp_path), "show", "2024-05")
        assert result.exit_code == 1
        assert "not valid JSON" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_snapshot_without_credentials_writes_empty_month(self, tmp_path):
        result = invoke("--snapshots-dir", str(tmp_path / "snaps"), "snapshot", "--no-backfill")
        assert result.exit_code == 0, result.output
        assert "Snapshot Run" in result.output
        assert "errors" in result.output
        months = SnapshotStore(tmp_path / "snaps").months()
        assert len(months) == 1
        assert SnapshotStore(tmp_path / "snaps").read_snapshot(months[0])["lists"] == []

    def test_snapshot_unwritable_directory_exits_1(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        result = invoke("--snapshots-dir", str(blocker / "snaps"), "snapshot", "--no-backfill")
        assert result.exit_code == 1
