"""CLI entry point for cors-relay."""

import sys
from datetime import datetime
from pathlib import Path

from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, load_config
from ui.console_logger import ConsoleLogger
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()
    plain = False

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            console.print(f"[bold]Logs:[/bold]   {Path(config.logging.log_dir).resolve()}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        if arg == "--plain":
            plain = True
        else:
            console.print(f"[red][ERROR][/red] Unknown option: {arg}")
            _print_help()
            sys.exit(2)

    log_root = Path(config.logging.log_dir)
    clear_logs(log_root)

    import uvicorn

    logger = ConsoleLogger(config, console) if plain else Dashboard(config)
    app = create_app(config, logger)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="info" if config.proxy.debug else "warning",
    )
    server = uvicorn.Server(uvicorn_config)

    if plain:
        console.print(
            f"[bold cyan]CORS relay[/bold cyan] running on "
            f"http://{config.proxy.host}:{config.proxy.port}"
        )
    else:
        logger.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", log_root=log_root, port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", log_root=log_root, duration=str(duration))
        if not plain:
            logger.stop()


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]CORS Relay[/bold cyan]

Relays browser requests to third-party APIs and adds permissive CORS headers.

[bold]Usage:[/bold]
    cors-relay              Start with live dashboard
    cors-relay --plain      Start with one log line per request
    cors-relay --config     Show config and log locations
    cors-relay --help       Show this help

[bold]Endpoints:[/bold]
    ANY /proxy?url=URL&method=METHOD&headers=JSON&body=JSON
    ANY /proxy   with JSON body {url, method, headers, body}
    ANY /proxy/<host/path>   (RESTful style)
    GET /health
    GET /examples

[bold]Environment:[/bold]
    PORT    Listen port (default 3000)
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
