"""Typed values and the runtime state container shared across the panel."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

STATUS_RUNNING = "running"
STATUS_STOPPED = "stopped"


@dataclass(frozen=True)
class LogEntry:
    """One timestamped, human-readable panel event."""
    timestamp: datetime
    message: str

    def render(self) -> str:
        return f"[{self.timestamp.strftime('%H:%M:%S')}] {self.message}"


@dataclass(frozen=True)
class StatusSnapshot:
    """Point-in-time status pushed to subscribers; built fresh per broadcast."""
    status: str
    players: list[str] = field(default_factory=list)
    logs: list[LogEntry] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """Wire shape: ``{"status": ..., "players": [...], "logs": [...]}``."""
        return {
            "status": self.status,
            "players": list(self.players),
            "logs": [entry.render() for entry in self.logs],
        }


@dataclass
class PanelState:
    """Explicitly wired services for one app process."""
    settings: Any
    log_store: Any
    hub: Any
    controller: Any
    monitor: Any
    log_action: Any
    log_exception: Any
