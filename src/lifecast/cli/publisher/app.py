import asyncio
from typing import Optional

import typer

from lifecast.cli.rendering import LOG_FORMATS, install_renderer
from lifecast.common.messaging import bus
from lifecast.connectors.local import LocalBusConnector
from lifecast.connectors.redis import RedisConnector
from lifecast.runtime.exceptions import ChannelConnectionError, PublishError
from lifecast.runtime.session import PublisherSession
from lifecast.runtime.subscriber import FrameSubscriber
from lifecast.spec.config import (
    DEFAULT_CHANNEL,
    DEFAULT_DENSITY,
    DEFAULT_HEIGHT,
    DEFAULT_HOST,
    DEFAULT_LIFE_SPAN,
    DEFAULT_PORT,
    DEFAULT_WIDTH,
    SCAN_ORDERS,
    ChannelConfig,
    LifeConfig,
)
from lifecast.visualization import FrameMatrix, TerminalSurface

app = typer.Typer(
    help="Simulate Conway's Game of Life and publish every generation to a Redis channel."
)


async def _run_publisher(
    channel: ChannelConfig,
    config: LifeConfig,
    render: bool,
    interval: float,
) -> PublisherSession:
    """Connects, publishes until the life span ends, and disconnects."""
    connector = RedisConnector(host=channel.host, port=channel.port)
    await connector.connect()
    bus.info("publisher.connected")

    surface = None
    if render:
        surface = TerminalSurface(config.width, config.height, title="PubGlife")
    session = PublisherSession(
        connector,
        config=config,
        channel=channel.channel,
        surface=surface,
        interval=interval,
    )
    try:
        if surface is not None:
            surface.start()
        await session.run()
    finally:
        if surface is not None:
            surface.stop()
        await connector.disconnect()
    return session


async def _run_demo(config: LifeConfig, channel: str, interval: float, render: bool):
    """Runs a publisher and a subscriber against the in-memory connector."""
    if render:
        surface = TerminalSurface(config.width, config.height, title="SubGlife")
    else:
        surface = FrameMatrix(config.width, config.height)
    subscriber_connector = LocalBusConnector()
    await subscriber_connector.connect()
    subscriber = FrameSubscriber(subscriber_connector, surface, channel=channel)

    bus.info("demo.startup", channel=channel)
    if render:
        surface.start()
    try:
        subscriber_task = asyncio.create_task(subscriber.run())
        await subscriber.ready.wait()

        async with LocalBusConnector() as publisher_connector:
            session = PublisherSession(
                publisher_connector, config=config, channel=channel, interval=interval
            )
            published = await session.run()

        presented = await subscriber_task
    finally:
        if render:
            surface.stop()
    bus.info("demo.finished", published=published, presented=presented)


def _build_config(**kwargs) -> LifeConfig:
    try:
        return LifeConfig(**kwargs)
    except ValueError as e:
        bus.error("publisher.invalid_config", error=e)
        raise typer.Exit(2)


@app.command()
def run(
    host: str = typer.Option(
        DEFAULT_HOST, "--host", "-h", envvar="LIFECAST_HOST", help="Redis host."
    ),
    port: int = typer.Option(
        DEFAULT_PORT, "--port", "-p", envvar="LIFECAST_PORT", help="Redis port."
    ),
    life_span: int = typer.Option(
        DEFAULT_LIFE_SPAN,
        "--life-span",
        "-l",
        help="Frames to publish before end of stream (life span + 1 are sent).",
    ),
    channel: str = typer.Option(
        DEFAULT_CHANNEL,
        "--channel",
        "-c",
        envvar="LIFECAST_CHANNEL",
        help="Channel to publish on.",
    ),
    width: int = typer.Option(DEFAULT_WIDTH, "--width", help="Grid width in cells."),
    height: int = typer.Option(DEFAULT_HEIGHT, "--height", help="Grid height in cells."),
    density: float = typer.Option(
        DEFAULT_DENSITY, "--density", help="Probability that a seeded cell is alive."
    ),
    seed: Optional[int] = typer.Option(
        None, "--seed", help="Random seed for a reproducible population."
    ),
    reseed: bool = typer.Option(
        True, "--reseed/--no-reseed", help="Reseed when the population dies out."
    ),
    scan_order: str = typer.Option(
        "row", "--scan-order", help=f"Cell scan order, one of {', '.join(SCAN_ORDERS)}."
    ),
    interval: float = typer.Option(
        0.0, "--interval", min=0.0, help="Seconds to wait between frames."
    ),
    render: bool = typer.Option(
        False, "--render/--no-render", help="Also draw each published frame locally."
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Minimum message level."),
    log_format: str = typer.Option(
        "rich", "--log-format", help=f"Message format, one of {', '.join(LOG_FORMATS)}."
    ),
):
    """
    Publish generations to the channel until the life span is exceeded,
    then send the end-of-stream marker.
    """
    install_renderer("publisher", log_format, log_level)
    try:
        channel_config = ChannelConfig(host=host, port=port, channel=channel)
    except ValueError as e:
        bus.error("publisher.invalid_config", error=e)
        raise typer.Exit(2)
    config = _build_config(
        width=width,
        height=height,
        density=density,
        life_span=life_span,
        reseed_on_extinction=reseed,
        seed=seed,
        scan_order=scan_order,
    )

    bus.info(
        "publisher.startup",
        host=host,
        port=port,
        channel=channel,
        width=width,
        height=height,
        life_span=life_span,
    )
    try:
        session = asyncio.run(
            _run_publisher(
                channel=channel_config, config=config, render=render, interval=interval
            )
        )
    except ChannelConnectionError as e:
        bus.error("publisher.connection_failed", error=e)
        raise typer.Exit(1)
    except PublishError as e:
        bus.error("publisher.publish_failed", error=e)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        bus.warning("publisher.interrupted")
        raise typer.Exit(130)

    bus.info(
        "publisher.finished",
        frames=session.publisher.frames_published,
        messages=session.publisher.messages_published,
    )


@app.command()
def demo(
    life_span: int = typer.Option(DEFAULT_LIFE_SPAN, "--life-span", "-l"),
    width: int = typer.Option(40, "--width"),
    height: int = typer.Option(20, "--height"),
    density: float = typer.Option(DEFAULT_DENSITY, "--density"),
    seed: Optional[int] = typer.Option(None, "--seed"),
    interval: float = typer.Option(0.2, "--interval", min=0.0),
    render: bool = typer.Option(True, "--render/--no-render"),
    log_level: str = typer.Option("INFO", "--log-level"),
    log_format: str = typer.Option("rich", "--log-format"),
):
    """
    Run publisher and subscriber in one process over the in-memory channel.
    No Redis server is needed.
    """
    install_renderer("demo", log_format, log_level)
    config = _build_config(
        width=width, height=height, density=density, life_span=life_span, seed=seed
    )
    try:
        asyncio.run(
            _run_demo(config, channel=DEFAULT_CHANNEL, interval=interval, render=render)
        )
    except KeyboardInterrupt:
        bus.warning("publisher.interrupted")
        raise typer.Exit(130)


def main():
    app()


if __name__ == "__main__":
    main()
