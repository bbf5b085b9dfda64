import json
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO

from rich.console import Console
from rich.theme import Theme

from lifecast.common.messaging import LOG_LEVELS, MessageStore, bus, protocols

custom_theme = Theme(
    {
        "debug": "dim",
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
    }
)

LOG_FORMATS = ("rich", "json")


class RichCliRenderer(protocols.Renderer):
    """
    A renderer that uses the 'rich' library for formatted, colorful output.
    """

    def __init__(
        self,
        store: MessageStore,
        min_level: str = "INFO",
        console: Optional[Console] = None,
    ):
        self._store = store
        self._console = console or Console(theme=custom_theme, stderr=True)
        self._min_level_val = LOG_LEVELS.get(min_level.upper(), 20)

    def render(self, msg_id: str, level: str, **kwargs):
        if LOG_LEVELS.get(level.upper(), 20) < self._min_level_val:
            return
        message = self._store.get(msg_id, **kwargs)
        style = level.lower() if level.lower() in custom_theme.styles else ""
        self._console.print(message, style=style, highlight=False)


class JsonRenderer(protocols.Renderer):
    """One JSON object per message, for log collectors."""

    def __init__(
        self,
        source: str,
        stream: Optional[TextIO] = None,
        min_level: str = "INFO",
    ):
        self._source = source
        self._stream = stream
        self._min_level_val = LOG_LEVELS.get(min_level.upper(), 20)

    def render(self, msg_id: str, level: str, **kwargs):
        if LOG_LEVELS.get(level.upper(), 20) < self._min_level_val:
            return
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "source": self._source,
            "level": level.upper(),
            "event_id": msg_id,
            "data": kwargs,
        }
        stream = self._stream if self._stream is not None else sys.stderr
        print(json.dumps(log_record, default=repr), file=stream)


def install_renderer(source: str, log_format: str, log_level: str) -> None:
    """Points the global message bus at the renderer chosen on the command line."""
    if log_format == "json":
        bus.set_renderer(JsonRenderer(source=source, min_level=log_level))
    else:
        bus.set_renderer(RichCliRenderer(store=bus.store, min_level=log_level))
