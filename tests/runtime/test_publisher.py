import pytest

from lifecast.life.grid import Grid
from lifecast.runtime.exceptions import PublishError, StreamClosedError
from lifecast.runtime.publisher import FramePublisher, encode_generation
from lifecast.spec.wire import CellUpdate, Clear, Swap

BLINKER = [".....", "..#..", "..#..", "..#..", "....."]


def test_encode_generation_frames_alive_cells_only():
    grid = Grid.from_rows(BLINKER)
    messages = encode_generation(grid)

    assert messages[0] == Clear()
    assert messages[-1] == Swap()
    assert messages[1:-1] == [CellUpdate(2, 1), CellUpdate(2, 2), CellUpdate(2, 3)]


def test_encode_generation_of_empty_grid_is_an_empty_frame():
    assert encode_generation(Grid(5, 5)) == [Clear(), Swap()]


def test_column_order_scans_x_major():
    grid = Grid.from_rows(["#.#", "...", "#.."])
    updates = encode_generation(grid, order="column")[1:-1]
    assert updates == [CellUpdate(0, 0), CellUpdate(0, 2), CellUpdate(2, 0)]


@pytest.mark.asyncio
async def test_publish_frame_sends_clear_data_swap_in_order(recording_connector):
    publisher = FramePublisher(recording_connector, channel="life", life_span=6)
    alive = await publisher.publish_frame(Grid.from_rows(BLINKER))

    assert alive == 3
    assert recording_connector.published == [
        ("life", "clear"),
        ("life", "data 2 1 Alive"),
        ("life", "data 2 2 Alive"),
        ("life", "data 2 3 Alive"),
        ("life", "swap"),
    ]
    assert publisher.frames_published == 1
    assert publisher.messages_published == 5
    assert not publisher.finished


@pytest.mark.asyncio
async def test_dead_cells_never_produce_messages(recording_connector):
    grid = Grid.from_rows(["#....", ".....", ".....", ".....", "....#"])
    publisher = FramePublisher(recording_connector)
    await publisher.publish_frame(grid)

    data = [p for p in recording_connector.payloads() if p.startswith("data")]
    assert data == ["data 0 0 Alive", "data 4 4 Alive"]


@pytest.mark.asyncio
@pytest.mark.parametrize("life_span", [0, 1, 6])
async def test_end_of_stream_after_life_span_plus_one_frames(recording_connector, life_span):
    publisher = FramePublisher(recording_connector, life_span=life_span)
    grid = Grid.from_rows(BLINKER)

    frames = 0
    while not publisher.finished:
        await publisher.publish_frame(grid)
        grid.step()
        frames += 1

    payloads = recording_connector.payloads()
    assert frames == life_span + 1
    assert payloads.count("clear") == life_span + 1
    assert payloads.count("swap") == life_span + 1
    assert payloads.count("_EOF_") == 1
    assert payloads[-1] == "_EOF_"
    assert payloads[-2] == "swap"


@pytest.mark.asyncio
async def test_no_messages_after_end_of_stream(recording_connector):
    publisher = FramePublisher(recording_connector, life_span=0)
    await publisher.publish_frame(Grid(5, 5))
    sent = len(recording_connector.published)

    with pytest.raises(StreamClosedError):
        await publisher.publish_frame(Grid(5, 5))
    await publisher.end_stream()

    assert len(recording_connector.published) == sent


@pytest.mark.asyncio
async def test_end_stream_early_is_sent_once(recording_connector):
    publisher = FramePublisher(recording_connector, life_span=10)
    await publisher.end_stream()
    await publisher.end_stream()

    assert recording_connector.payloads() == ["_EOF_"]
    assert publisher.finished


@pytest.mark.asyncio
async def test_publish_failure_aborts_the_frame(mocker):
    connector = mocker.AsyncMock()
    connector.publish.side_effect = [None, ConnectionResetError("gone")]
    publisher = FramePublisher(connector, channel="life")

    with pytest.raises(PublishError) as excinfo:
        await publisher.publish_frame(Grid.from_rows(BLINKER))

    assert excinfo.value.payload == "data 2 1 Alive"
    assert isinstance(excinfo.value.__cause__, ConnectionResetError)
    assert connector.publish.await_count == 2
    assert publisher.frames_published == 0


@pytest.mark.asyncio
async def test_connector_publish_error_is_not_rewrapped(mocker):
    original = PublishError("life", "clear", "not connected")
    connector = mocker.AsyncMock()
    connector.publish.side_effect = original
    publisher = FramePublisher(connector, channel="life")

    with pytest.raises(PublishError) as excinfo:
        await publisher.publish_frame(Grid(5, 5))
    assert excinfo.value is original


@pytest.mark.asyncio
async def test_frames_are_reported_on_the_bus(recording_connector, bus_spy):
    publisher = FramePublisher(recording_connector, life_span=0)
    await publisher.publish_frame(Grid(5, 5))

    assert "publisher.frame_published" in bus_spy.ids("debug")
    assert "publisher.end_of_stream" in bus_spy.ids("info")
