"""Line-per-request console logger, for terminals where a live dashboard is unwanted."""

from datetime import datetime
from pathlib import Path

from rich.console import Console

from core.config import Config
from ui.log_utils import write_cli_log, write_relay_log


class ConsoleLogger:
    """Print one line per relay, cache hit or error."""

    def __init__(self, config: Config, console: Console | None = None):
        self.config = config
        self._console = console or Console()
        self._log_root = Path(config.logging.log_dir)

    def log_relay(
        self,
        method: str,
        url: str,
        status: int,
        *,
        elapsed: float,
        headers: dict[str, str] | None = None,
    ) -> None:
        style = "green" if status < 400 else "yellow" if status < 500 else "red"
        self._console.print(
            f"[dim]{_now()}[/dim] [bold]{method}[/bold] [{style}]{status}[/{style}] "
            f"{url} [dim]{elapsed * 1000:.0f}ms[/dim]",
            highlight=False,
        )
        if self.config.logging.request_logs:
            write_relay_log(method, url, status, headers or {}, elapsed=elapsed, log_root=self._log_root)
        write_cli_log(
            "RELAY", f"{method} {url}", log_root=self._log_root, status=status, ms=round(elapsed * 1000)
        )

    def log_cache_hit(self, method: str, url: str) -> None:
        self._console.print(
            f"[dim]{_now()}[/dim] [bold]{method}[/bold] [green]cache[/green] {url}",
            highlight=False,
        )
        write_cli_log("CACHE", f"{method} {url}", log_root=self._log_root)

    def log_error(self, url: str | None, status: int, message: str) -> None:
        self._console.print(
            f"[dim]{_now()}[/dim] [red][ERROR][/red] {status} {url or '-'}: {message}",
            highlight=False,
        )
        write_cli_log("ERROR", message[:200], log_root=self._log_root, url=url or "-", status=status)


def _now() -> str:
    return datetime.now().strftime("%H:%M:%S")
