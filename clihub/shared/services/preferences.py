"""User preferences — persistent settings stored in ~/.clihub/preferences.json.

Only UI choices live here (selected tool, conversation continuation).
Chat transcripts are never persisted.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

from clihub.engine.errors import UnknownToolError
from clihub.engine.models import ToolIdentity

logger = logging.getLogger(__name__)

PREFS_PATH = Path.home() / ".clihub" / "preferences.json"


@dataclass
class UserPreferences:
    """User preference settings.

    Attributes:
        last_tool: Tool selected when the window was last closed.
        continue_conversation: Pass a continuation token on follow-up
            messages so tools that support it keep prior context.
    """

    last_tool: str = ToolIdentity.CLAUDE.value
    continue_conversation: bool = True

    def validate(self) -> None:
        """Ensure all values are within allowed ranges."""
        try:
            self.last_tool = ToolIdentity.parse(self.last_tool).value
        except UnknownToolError:
            self.last_tool = ToolIdentity.CLAUDE.value
        if not isinstance(self.continue_conversation, bool):
            self.continue_conversation = True

    def save(self, path: Path | None = None) -> None:
        """Persist preferences to disk."""
        target = path or PREFS_PATH
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(json.dumps(asdict(self), indent=2))
        except OSError:
            logger.debug("Failed to save preferences to %s", target)

    @classmethod
    def load(cls, path: Path | None = None) -> UserPreferences:
        """Load preferences from disk, returning defaults if missing/corrupt."""
        target = path or PREFS_PATH
        try:
            if target.exists():
                data = json.loads(target.read_text())
                prefs = cls(**{
                    k: v for k, v in data.items()
                    if k in cls.__dataclass_fields__
                })
                prefs.validate()
                logger.debug("Loaded preferences from %s", target)
                return prefs
            logger.debug("Preferences file not found at %s; using defaults", target)
        except (OSError, ValueError, TypeError, AttributeError):
            logger.warning("Failed to load preferences from %s; using defaults", target)
        return cls()
