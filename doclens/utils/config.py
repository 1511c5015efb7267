from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv

DEFAULT_API_URL = "http://localhost:8000"


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class ViewOptions:
    """Recognized variations of the document views."""
    show_performance_metrics: bool = True
    show_pdf_viewer: bool = False
    enhanced_tabs: bool = True


@dataclass(frozen=True)
class AppConfig:
    api_url: str = DEFAULT_API_URL
    request_timeout: float = 15.0
    process_timeout: float = 180.0
    health_interval: float = 30.0
    status_initial_delay: float = 3.0
    status_interval: float = 10.0
    status_max_attempts: int = 30
    history_dir: str = str(Path.home() / ".doclens" / "history")
    history_keep: int = 20
    history_load_limit: int = 50
    log_level: str = "INFO"
    views: ViewOptions = field(default_factory=ViewOptions)

    @classmethod
    def from_env(cls) -> "AppConfig":
        load_dotenv()
        api_url = os.getenv("API_URL") or os.getenv("NEXT_PUBLIC_API_URL") or DEFAULT_API_URL
        return cls(
            api_url=api_url.rstrip("/"),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "15")),
            process_timeout=float(os.getenv("PROCESS_TIMEOUT", "180")),
            health_interval=float(os.getenv("HEALTH_INTERVAL", "30")),
            status_initial_delay=float(os.getenv("STATUS_INITIAL_DELAY", "3")),
            status_interval=float(os.getenv("STATUS_INTERVAL", "10")),
            status_max_attempts=int(os.getenv("STATUS_MAX_ATTEMPTS", "30")),
            history_dir=os.getenv("HISTORY_DIR", str(Path.home() / ".doclens" / "history")),
            history_keep=int(os.getenv("HISTORY_KEEP", "20")),
            history_load_limit=int(os.getenv("HISTORY_LOAD_LIMIT", "50")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            views=ViewOptions(
                show_performance_metrics=_flag("SHOW_PERFORMANCE_METRICS", "true"),
                show_pdf_viewer=_flag("SHOW_PDF_VIEWER", "false"),
                enhanced_tabs=_flag("ENHANCED_TABS", "true"),
            ),
        )
