import asyncio

from src.feed_controller import FeedController
from src.schemas import Category, ViewMode
from src.sentinel import ScrollSentinel, ViewportSensor

from conftest import FakeFetchClient, make_page, settle


GENERAL = Category.GENERAL


def build(pages, *, mode=ViewMode.FEED):
    client = FakeFetchClient(pages)
    controller = FeedController(client)
    sensor = ViewportSensor()
    sentinel = ScrollSentinel(controller, sensor, view_mode=lambda: mode)
    sentinel.attach()
    return client, controller, sensor, sentinel


# ---------- sensor ----------

def test_sensor_notifies_only_on_entering_edge():
    sensor = ViewportSensor()
    hits = []

    async def on_visible():
        hits.append(1)

    sensor.subscribe(on_visible)

    async def scenario():
        assert await sensor.report(True) == 1
        assert await sensor.report(True) == 0   # still visible, no edge
        await sensor.report(False)
        assert await sensor.report(True) == 1

    asyncio.run(scenario())
    assert len(hits) == 2


def test_unsubscribe_is_idempotent():
    sensor = ViewportSensor()

    async def on_visible():
        pass

    unsubscribe = sensor.subscribe(on_visible)
    unsubscribe()
    unsubscribe()
    assert sensor.subscriber_count == 0


# ---------- sentinel ----------

def test_visible_marker_loads_next_page():
    client, controller, sensor, _ = build({
        (GENERAL, 1): make_page("general", 1, 9, 18),
        (GENERAL, 2): make_page("general", 10, 9, 18),
    })

    async def scenario():
        await controller.reset(GENERAL)
        await sensor.report(True)

    asyncio.run(scenario())
    assert client.calls == [(GENERAL, 1), (GENERAL, 2)]
    assert len(controller.state.items) == 18


def test_single_full_page_stops_pagination():
    # general page 1: 9 articles, totalResults 9 -> no further fetch
    client, controller, sensor, sentinel = build({(GENERAL, 1): make_page("general", 1, 9, 9)})

    async def scenario():
        await controller.reset(GENERAL)
        await sensor.report(True)
        await sensor.report(False)
        await sensor.report(True)
        return await sentinel.on_visible()

    assert asyncio.run(scenario()) is False
    assert client.calls == [(GENERAL, 1)]


def test_no_trigger_while_loading():
    async def scenario():
        client = FakeFetchClient(manual=True)
        controller = FeedController(client)
        sensor = ViewportSensor()
        sentinel = ScrollSentinel(controller, sensor)
        sentinel.attach()

        reset = asyncio.create_task(controller.reset(GENERAL))
        await settle()
        client.resolve(0, make_page("general", 1, 9, 30))
        await reset

        first = asyncio.create_task(sensor.report(True))
        await settle()
        assert controller.state.loading
        assert await sentinel.on_visible() is False
        assert len(client.calls) == 2

        client.resolve(1, make_page("general", 10, 9, 30))
        await first

    asyncio.run(scenario())


def test_favorites_mode_never_loads():
    client, controller, sensor, sentinel = build(
        {(GENERAL, 1): make_page("general", 1, 9, 30)}, mode=ViewMode.FAVORITES
    )

    async def scenario():
        await controller.reset(GENERAL)
        return await sentinel.on_visible()

    assert asyncio.run(scenario()) is False
    assert client.calls == [(GENERAL, 1)]


def test_disposed_sentinel_stops_observing():
    client, controller, sensor, sentinel = build({(GENERAL, 1): make_page("general", 1, 9, 30)})

    async def scenario():
        await controller.reset(GENERAL)
        sentinel.dispose()
        sentinel.dispose()
        return await sensor.report(True)

    assert asyncio.run(scenario()) == 0
    assert not sentinel.attached
    assert sensor.subscriber_count == 0
    assert client.calls == [(GENERAL, 1)]


def test_attach_twice_subscribes_once():
    _, _, sensor, sentinel = build({})
    sentinel.attach()
    assert sensor.subscriber_count == 1
