import typer
import uvicorn

from nodeprobe.config import Config

app = typer.Typer()


@app.callback(invoke_without_command=True)
def serve(
    host: str = typer.Option(Config.API_HOST, "--host", help="Bind address"),
    port: int = typer.Option(Config.API_PORT, "--port", help="Bind port"),
):
    """Run the HTTP API."""
    Config.validate()
    uvicorn.run("nodeprobe.api.main:app", host=host, port=port)
