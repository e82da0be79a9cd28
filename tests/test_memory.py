import json
from pathlib import Path

from voicecmd.core.memory_ops import MemoryDispatcher
from voicecmd.memory import MemoryStore
from voicecmd.types import ErrorKind, failed, ok


def test_save_and_get_persist_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "memory.json"
    MemoryStore(path).save_memory("favorite color", "blue")

    item = MemoryStore(path).get_memory("favorite color")
    assert item is not None
    assert item.value == "blue"
    assert item.timestamp.endswith("Z")

    document = json.loads(path.read_text(encoding="utf-8"))
    assert set(document) == {"userData", "commandHistory", "context", "lastUpdated"}
    assert document["userData"]["favorite color"]["value"] == "blue"


def test_missing_and_corrupt_files_start_empty(tmp_path: Path) -> None:
    store = MemoryStore(tmp_path / "absent.json")
    assert store.get_all_memory() == {}

    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{not json", encoding="utf-8")
    assert MemoryStore(corrupt).get_memory("anything") is None


def test_clear_memory_drops_everything(memory: MemoryStore) -> None:
    memory.save_memory("a", "1")
    memory.set_context("project", "voicecmd")
    memory.clear_memory()

    stats = memory.get_memory_stats()
    assert stats.total_user_data == 0
    assert stats.total_context == 0
    assert memory.get_context("project") is None


def test_search_covers_user_data_and_context(memory: MemoryStore) -> None:
    memory.save_memory("dentist", "tuesday at noon")
    memory.save_memory("wifi password", "hunter2")
    memory.set_context("current project", "kitchen remodel")

    assert [match.key for match in memory.search_memory("TUESDAY")] == ["dentist"]
    assert [match.kind for match in memory.search_memory("remodel")] == ["context"]
    assert memory.search_memory("   ") == []


def test_search_tolerates_small_typos(memory: MemoryStore) -> None:
    memory.save_memory("password", "hunter2")
    assert [match.key for match in memory.search_memory("pasword")] == ["password"]
    assert memory.search_memory("zz") == []


def test_history_is_newest_first_and_trimmed(tmp_path: Path) -> None:
    store = MemoryStore(tmp_path / "memory.json", history_limit=3)
    for index in range(5):
        store.add_command_to_history(f"echo {index}", ok("Shell Command", str(index)))
    store.add_command_to_history("rm -rf /", failed("Shell Command", "no", ErrorKind.COMMAND_BLOCKED, blocked=True))

    entries = store.get_command_history(limit=10)
    assert [entry.command for entry in entries] == ["rm -rf /", "echo 4", "echo 3"]
    assert entries[0].status == "blocked"
    assert store.get_memory_stats().total_commands == 3
    assert store.get_command_history(limit=1)[0].command == "rm -rf /"


def test_dispatcher_renders_results(memory: MemoryStore) -> None:
    dispatcher = MemoryDispatcher(memory)

    saved = dispatcher.dispatch("saveMemory", ("cat", "true"))
    assert saved.result_text == 'Memory saved: "cat" = "true"'

    assert dispatcher.dispatch("getAllMemory", ()).result_text.startswith("Memory contains 1 items:")
    assert "Memory Statistics:" in dispatcher.dispatch("getMemoryStats", ()).result_text

    missing = dispatcher.dispatch("getMemory", ("dog",))
    assert missing.success is False
    assert missing.error_code is ErrorKind.MEMORY_OPERATION_FAILED

    assert dispatcher.dispatch("searchMemory", ("unicorn",)).success is False
    assert dispatcher.dispatch("getCommandHistory", ()).success is False
    assert dispatcher.dispatch("clearMemory", ()).success is True
    assert "No memories stored" in dispatcher.dispatch("getAllMemory", ()).result_text


def test_dispatcher_reports_unknown_and_failing_operations(memory: MemoryStore) -> None:
    dispatcher = MemoryDispatcher(memory)
    assert dispatcher.dispatch("forgetEverything", ()).error_code is ErrorKind.MEMORY_OPERATION_FAILED

    broken = dispatcher.dispatch("saveMemory", ())
    assert broken.success is False
    assert broken.result_text.startswith("Error executing memory operation:")
