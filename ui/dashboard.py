"""Real-time CLI dashboard for proxy monitoring."""

from datetime import datetime
from pathlib import Path
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log, write_relay_log

console = Console()


class RelayInfo:
    """Info about a single relayed request."""

    def __init__(
        self,
        method: str,
        url: str,
        status: int | None,
        elapsed: float | None,
        timestamp: datetime,
        cached: bool = False,
    ):
        self.method = method
        self.url = url[:70] + "..." if len(url) > 70 else url
        self.status = status
        self.elapsed = elapsed
        self.timestamp = timestamp
        self.cached = cached


class Dashboard:
    """Real-time dashboard showing recent relays, cache hits and errors."""

    def __init__(self, config: Config):
        self.config = config
        self._log_root = Path(config.logging.log_dir)
        self._lock = Lock()
        self._recent: list[RelayInfo] = []
        self._max_recent = 10
        self._counts = {"relayed": 0, "cached": 0, "errors": 0}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_relay(
        self,
        method: str,
        url: str,
        status: int,
        *,
        elapsed: float,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Log a completed upstream call."""
        with self._lock:
            self._counts["relayed"] += 1
            self._remember(RelayInfo(method, url, status, elapsed, datetime.now()))

            if self.config.logging.request_logs:
                write_relay_log(
                    method, url, status, headers or {}, elapsed=elapsed, log_root=self._log_root
                )
            write_cli_log(
                "RELAY", f"{method} {url}", log_root=self._log_root,
                status=status, ms=round(elapsed * 1000),
            )
            self._refresh()

    def log_cache_hit(self, method: str, url: str) -> None:
        """Log a request answered from the response cache."""
        with self._lock:
            self._counts["cached"] += 1
            self._remember(RelayInfo(method, url, None, None, datetime.now(), cached=True))
            write_cli_log("CACHE", f"{method} {url}", log_root=self._log_root)
            self._refresh()

    def log_error(self, url: str | None, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            self._counts["errors"] += 1
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{status} {url or '-'}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log(
                "ERROR", message[:200], log_root=self._log_root, url=url or "-", status=status
            )

    def _remember(self, info: RelayInfo) -> None:
        self._recent.insert(0, info)
        self._recent = self._recent[: self._max_recent]

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_recent_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("CORS Relay", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Relayed: {self._counts['relayed']}", style="blue")
        stats.append("  |  ")
        stats.append(f"Cache hits: {self._counts['cached']}", style="green")
        stats.append("  |  ")
        stats.append(f"Errors: {self._counts['errors']}", style="red")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_recent_panel(self) -> Panel:
        """Build the recent requests panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Status", width=6)
            table.add_column("ms", width=6, justify="right")
            table.add_column("URL", ratio=1)

            for info in self._recent:
                if info.cached:
                    status = Text("cache", style="green")
                else:
                    status = Text(str(info.status), style=_status_style(info.status))
                elapsed = "" if info.elapsed is None else f"{info.elapsed * 1000:.0f}"
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.method,
                    status,
                    elapsed,
                    info.url,
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent relays[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Try http://localhost:{self.config.proxy.port}/proxy?url=https://example.com",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")


def _status_style(status: int | None) -> str:
    if status is None or status >= 500:
        return "red"
    if status >= 400:
        return "yellow"
    return "green"
