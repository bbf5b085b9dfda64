import pytest
from typer.testing import CliRunner

from lifecast.cli.publisher.app import app
from lifecast.runtime.exceptions import ChannelConnectionError, PublishError

runner = CliRunner()


@pytest.fixture
def mock_run_publisher(mocker):
    return mocker.patch("lifecast.cli.publisher.app._run_publisher", new_callable=mocker.AsyncMock)


@pytest.fixture(autouse=True)
def keep_spy_renderer(mocker):
    # The command installs its own renderer; keep the test's one in place.
    return mocker.patch("lifecast.cli.publisher.app.install_renderer")


def test_run_uses_defaults(mock_run_publisher, bus_spy):
    result = runner.invoke(app, ["run"])

    assert result.exit_code == 0
    mock_run_publisher.assert_awaited_once()
    kwargs = mock_run_publisher.await_args.kwargs
    assert kwargs["channel"].host == "127.0.0.1"
    assert kwargs["channel"].port == 6379
    assert kwargs["channel"].channel == "sscpactest"
    assert kwargs["config"].life_span == 6
    assert kwargs["config"].width == 100
    assert kwargs["render"] is False
    assert bus_spy.ids("info") == ["publisher.startup", "publisher.finished"]


def test_run_passes_options(mock_run_publisher):
    result = runner.invoke(
        app,
        [
            "run",
            "-h", "redis.local",
            "-p", "6380",
            "-l", "12",
            "-c", "life",
            "--width", "20",
            "--height", "10",
            "--density", "0.5",
            "--seed", "7",
            "--no-reseed",
            "--scan-order", "column",
            "--interval", "0.1",
        ],
    )

    assert result.exit_code == 0
    kwargs = mock_run_publisher.await_args.kwargs
    assert kwargs["channel"].address == "redis.local:6380"
    assert kwargs["channel"].channel == "life"
    config = kwargs["config"]
    assert (config.width, config.height) == (20, 10)
    assert config.density == 0.5
    assert config.seed == 7
    assert config.life_span == 12
    assert config.reseed_on_extinction is False
    assert config.scan_order == "column"
    assert kwargs["interval"] == 0.1


def test_run_reads_environment(mock_run_publisher):
    result = runner.invoke(
        app, ["run"], env={"LIFECAST_HOST": "cache", "LIFECAST_PORT": "7000"}
    )

    assert result.exit_code == 0
    channel = mock_run_publisher.await_args.kwargs["channel"]
    assert channel.host == "cache"
    assert channel.port == 7000


def test_run_rejects_non_numeric_port(mock_run_publisher):
    result = runner.invoke(app, ["run", "--port", "not-a-port"])

    assert result.exit_code == 2
    mock_run_publisher.assert_not_called()


def test_run_rejects_invalid_grid(mock_run_publisher, bus_spy):
    result = runner.invoke(app, ["run", "--width", "2"])

    assert result.exit_code == 2
    assert bus_spy.ids("error") == ["publisher.invalid_config"]
    mock_run_publisher.assert_not_called()


def test_run_reports_unreachable_server(mock_run_publisher, bus_spy):
    mock_run_publisher.side_effect = ChannelConnectionError(
        "127.0.0.1", 6379, "Connection refused"
    )

    result = runner.invoke(app, ["run"])

    assert result.exit_code == 1
    assert bus_spy.ids("error") == ["publisher.connection_failed"]
    assert "publisher.finished" not in bus_spy.ids()


def test_run_aborts_on_publish_failure(mock_run_publisher, bus_spy):
    mock_run_publisher.side_effect = PublishError("sscpactest", "swap", "reset")

    result = runner.invoke(app, ["run"])

    assert result.exit_code == 1
    assert bus_spy.ids("error") == ["publisher.publish_failed"]


def test_demo_runs_without_redis(bus_spy):
    result = runner.invoke(
        app,
        [
            "demo",
            "--no-render",
            "--interval", "0",
            "--width", "8",
            "--height", "8",
            "--seed", "3",
            "-l", "2",
        ],
    )

    assert result.exit_code == 0
    assert "demo.finished" in bus_spy.ids("info")
    finished = [m for m in bus_spy.messages if m[0] == "demo.finished"][0]
    assert finished[2] == {"published": 3, "presented": 3}
