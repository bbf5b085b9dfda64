import asyncio

import typer

from lifecast.cli.rendering import LOG_FORMATS, install_renderer
from lifecast.common.messaging import bus
from lifecast.connectors.redis import RedisConnector
from lifecast.runtime.exceptions import ChannelConnectionError
from lifecast.runtime.subscriber import FrameSubscriber
from lifecast.spec.config import (
    DEFAULT_CHANNEL,
    DEFAULT_HEIGHT,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_WIDTH,
    ChannelConfig,
)
from lifecast.visualization import FrameMatrix, TerminalSurface

app = typer.Typer(
    help="Subscribe to a Game of Life channel and render every frame as it arrives."
)


async def _run_subscriber(
    channel: ChannelConfig, width: int, height: int, headless: bool
) -> int:
    """Renders frames until end of stream. Returns the frames presented."""
    connector = RedisConnector(host=channel.host, port=channel.port)
    await connector.connect()
    bus.info("subscriber.connected")

    if headless:
        surface = FrameMatrix(width, height)
    else:
        surface = TerminalSurface(width, height, title="SubGlife")
        surface.set_status("Channel", channel.channel)

    subscriber = FrameSubscriber(connector, surface, channel=channel.channel)
    if not headless:
        surface.start()
    try:
        return await subscriber.run()
    finally:
        if not headless:
            surface.stop()


@app.command()
def watch(
    host: str = typer.Option(
        DEFAULT_HOST, "--host", "-h", envvar="LIFECAST_HOST", help="Redis host."
    ),
    port: int = typer.Option(
        DEFAULT_PORT, "--port", "-p", envvar="LIFECAST_PORT", help="Redis port."
    ),
    channel: str = typer.Option(
        DEFAULT_CHANNEL,
        "--channel",
        "-c",
        envvar="LIFECAST_CHANNEL",
        help="Channel to subscribe to.",
    ),
    width: int = typer.Option(
        DEFAULT_WIDTH, "--width", min=1, help="Surface width in cells."
    ),
    height: int = typer.Option(
        DEFAULT_HEIGHT, "--height", min=1, help="Surface height in cells."
    ),
    headless: bool = typer.Option(
        False, "--headless", help="Decode frames without drawing to the terminal."
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Minimum message level."),
    log_format: str = typer.Option(
        "rich", "--log-format", help=f"Message format, one of {', '.join(LOG_FORMATS)}."
    ),
):
    """
    Render frames from the channel until the end-of-stream marker arrives,
    then disconnect.
    """
    install_renderer("subscriber", log_format, log_level)
    try:
        channel_config = ChannelConfig(host=host, port=port, channel=channel)
    except ValueError as e:
        bus.error("subscriber.connection_failed", error=e)
        raise typer.Exit(2)

    bus.info("subscriber.startup", host=host, port=port, channel=channel)
    try:
        asyncio.run(
            _run_subscriber(
                channel_config, width=width, height=height, headless=headless
            )
        )
    except ChannelConnectionError as e:
        bus.error("subscriber.connection_failed", error=e)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        bus.info("subscriber.stopped")


def main():
    app()


if __name__ == "__main__":
    main()
