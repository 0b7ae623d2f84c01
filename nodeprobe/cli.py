import logging
import sys

import typer

from nodeprobe.commands import nodes, serve, status
from nodeprobe.config import Config
from nodeprobe.logging import add_file_handler

app = typer.Typer()

debug_mode = False

def setup_logging(debug_mode: bool = False):
    """Configure logging based on debug mode."""
    log_level = logging.DEBUG if debug_mode else getattr(logging, Config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=log_level,
        format=Config.LOG_FORMAT,
        handlers=[
            logging.StreamHandler()
        ]
    )
    if Config.LOG_FILE:
        add_file_handler(Config.LOG_FILE)
    # Keep transport libraries quiet unless debugging
    if not debug_mode:
        logging.getLogger('paramiko').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)

app.add_typer(status.app, name="status")
app.add_typer(nodes.app, name="nodes")
app.add_typer(serve.app, name="serve")

@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """nodeprobe - check role software on nodes behind SSH bastions."""
    global debug_mode
    debug_mode = debug
    setup_logging(debug)
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Debug mode enabled")

if __name__ == "__main__":
    try:
        app()
    except Exception as e:
        if debug_mode:
            logging.error("Unhandled exception: %s", e, exc_info=True)
        else:
            logging.error("Error: %s", e)
        sys.exit(1)
