import json

from doclens.qa.history import ConversationHistory
from doclens.utils.types import ChatMessage


def msg(i, **kw):
    return ChatMessage(id=str(i), role="user" if i % 2 == 0 else "assistant", content=f"m{i}", timestamp="10:00:00", **kw)


def test_save_keeps_most_recent(tmp_path):
    history = ConversationHistory(tmp_path / "qa.json", keep=20)
    history.save([msg(i) for i in range(30)])
    loaded = history.load()
    assert len(loaded) == 20
    assert loaded[0].content == "m10"
    assert loaded[-1].content == "m29"


def test_loading_placeholder_not_saved(tmp_path):
    history = ConversationHistory(tmp_path / "qa.json")
    history.save([msg(0), msg(1, is_loading=True)])
    assert [m.id for m in history.load()] == ["0"]


def test_oversized_history_ignored(tmp_path):
    path = tmp_path / "qa.json"
    path.write_text(json.dumps([msg(i).as_dict() for i in range(51)]))
    assert ConversationHistory(path, load_limit=50).load() == []


def test_corrupt_history_ignored(tmp_path):
    path = tmp_path / "qa.json"
    path.write_text("{not json")
    assert ConversationHistory(path).load() == []
    assert ConversationHistory(tmp_path / "missing.json").load() == []


def test_document_file_name_sanitized(tmp_path):
    history = ConversationHistory.for_document(tmp_path, "../etc/passwd")
    assert history.path.parent == tmp_path
    assert history.path.name.startswith("qa_")
