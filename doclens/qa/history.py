from __future__ import annotations
import json
import re
from pathlib import Path
from typing import List, Union

from doclens.utils.logger import get_logger
from doclens.utils.types import ChatMessage

logger = get_logger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")


class ConversationHistory:
    """JSON-file persistence for one document's Q&A conversation.

    Only the most recent ``keep`` messages are written; a stored history longer
    than ``load_limit`` is treated as corrupt and ignored.
    """

    def __init__(self, path: Union[str, Path], keep: int = 20, load_limit: int = 50):
        self.path = Path(path)
        self.keep = keep
        self.load_limit = load_limit

    @classmethod
    def for_document(cls, directory: Union[str, Path], document_id: str, **kwargs) -> "ConversationHistory":
        safe = _UNSAFE.sub("_", document_id or "default").strip("._") or "default"
        return cls(Path(directory) / f"qa_{safe}.json", **kwargs)

    def load(self) -> List[ChatMessage]:
        try:
            items = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            logger.warning("Failed to parse saved conversation %s: %s", self.path, e)
            return []
        if not isinstance(items, list) or len(items) > self.load_limit:
            return []
        messages = []
        for item in items:
            if isinstance(item, dict) and {"id", "role", "content"} <= item.keys():
                item.setdefault("timestamp", "")
                msg = ChatMessage.from_dict(item)
                if not msg.is_loading:
                    messages.append(msg)
        return messages

    def save(self, messages: List[ChatMessage]) -> None:
        recent = [m.as_dict() for m in messages if not m.is_loading][-self.keep:]
        if not recent:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(recent, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save conversation history to %s: %s", self.path, e)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
