"""
Semantic message bus for user-facing diagnostics.

Call sites name a message id and its fields; the text lives in the JSON
locale files and the installed Renderer decides how (and whether) it is shown.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from . import protocols

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
}

LOCALES_DIR = Path(__file__).parent.parent / "locales"


class MessageStore:
    """
    Message templates for one locale, merged from every `<locale>/*.json`
    file. Files load in name order, so a later file overrides an id defined
    by an earlier one.
    """

    def __init__(self, locale: str = "en", locales_dir: Optional[Path] = None):
        self.locale = locale
        self.locales_dir = locales_dir or LOCALES_DIR
        self._messages: Dict[str, str] = {}
        self._load_messages()

    def _load_messages(self):
        locale_path = self.locales_dir / self.locale
        if not locale_path.is_dir():
            logger.warning(f"No messages for locale '{self.locale}' in {self.locales_dir}.")
            return

        for message_file in sorted(locale_path.glob("*.json")):
            try:
                with open(message_file, "r", encoding="utf-8") as f:
                    self._messages.update(json.load(f))
            except (json.JSONDecodeError, OSError) as e:
                logger.error(f"Failed to load message file {message_file}: {e}")

    def __contains__(self, msg_id: str) -> bool:
        return msg_id in self._messages

    def get(self, msg_id: str, **kwargs) -> str:
        template = self._messages.get(msg_id)
        if template is None:
            return f"<{msg_id}>"
        try:
            return template.format(**kwargs)
        except KeyError as e:
            return f"<Formatting error for '{msg_id}': missing key {e}>"


class MessageBus:
    """Routes `bus.<level>(msg_id, **fields)` to the installed renderer, if any."""

    def __init__(self, store: MessageStore):
        self._store = store
        self._renderer: Optional[protocols.Renderer] = None

    @property
    def store(self) -> MessageStore:
        return self._store

    def set_renderer(self, renderer: Optional[protocols.Renderer]):
        self._renderer = renderer

    def emit(self, level: str, msg_id: str, **kwargs: Any) -> None:
        if self._renderer is not None:
            self._renderer.render(msg_id, level, **kwargs)

    def debug(self, msg_id: str, **kwargs: Any) -> None:
        self.emit("debug", msg_id, **kwargs)

    def info(self, msg_id: str, **kwargs: Any) -> None:
        self.emit("info", msg_id, **kwargs)

    def warning(self, msg_id: str, **kwargs: Any) -> None:
        self.emit("warning", msg_id, **kwargs)

    def error(self, msg_id: str, **kwargs: Any) -> None:
        self.emit("error", msg_id, **kwargs)


bus = MessageBus(store=MessageStore(locale="en"))
