"""Tests for the notification bus, queues and polling client."""
import asyncio

import httpx

from civicsense.jobs.notification_poller import NotificationPoller
from civicsense.services.notifications import (
    REPORT_CREATED,
    REPORT_STATUS_CHANGED,
    NotificationBus,
    NotificationService,
)


class TestNotificationBus:
    def test_publish_reaches_subscribers_in_order(self):
        bus = NotificationBus()
        received = []
        bus.subscribe(lambda e: received.append((e.seq, e.type)))

        bus.publish(REPORT_CREATED, {"tracking_id": "RPT-1"})
        bus.publish(REPORT_STATUS_CHANGED, {"tracking_id": "RPT-1"})

        assert received == [(1, REPORT_CREATED), (2, REPORT_STATUS_CHANGED)]
        assert bus.last_seq == 2

    def test_failing_subscriber_does_not_break_publish(self):
        bus = NotificationBus()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(received.append)

        event = bus.publish(REPORT_CREATED, {})

        assert event is not None
        assert received == [event]

    def test_unsubscribe(self):
        bus = NotificationBus()
        received = []
        unsubscribe = bus.subscribe(received.append)
        unsubscribe()
        unsubscribe()

        bus.publish(REPORT_CREATED)

        assert received == []

    def test_recent_after_seq_and_bounded_buffer(self):
        bus = NotificationBus(buffer_size=3)
        for i in range(5):
            bus.publish(REPORT_CREATED, {"n": i})

        assert [e.seq for e in bus.recent()] == [3, 4, 5]
        assert [e.seq for e in bus.recent(after=4)] == [5]
        assert [e.seq for e in bus.recent(limit=2)] == [3, 4]
        assert bus.recent(after=5) == []


class TestNotificationService:
    def test_status_change_queues_email_and_whatsapp(self):
        service = NotificationService(NotificationBus())

        service.notify_status_change(
            tracking_id="RPT-20240101-0001",
            old_status="in-progress",
            new_status="resolved",
            note="patched",
            updated_by="admin",
            contact_info="citizen@example.com",
            anonymous=False,
        )

        status = service.queue_status()
        assert status["email"] == {"queued": 1, "total": 1}
        assert status["whatsapp"] == {"queued": 1, "total": 1}
        assert status["last_seq"] == 1
        assert service.email_queue[0]["subject"] == "Report Update - RPT-20240101-0001"
        assert service.email_queue[0]["body"].endswith("resolved. Note: patched")

    def test_report_created_queues_confirmation(self):
        service = NotificationService(NotificationBus())

        service.notify_report_created(
            tracking_id="RPT-20240101-0003",
            category="infrastructure",
            has_location=True,
            contact_info="citizen@example.com",
            anonymous=False,
        )

        assert service.queue_status()["email"] == {"queued": 1, "total": 1}
        assert service.email_queue[0]["subject"] == "Report Submitted - RPT-20240101-0003"
        assert service.email_queue[0]["body"].endswith("Tracking ID: RPT-20240101-0003")
        assert service.whatsapp_queue[0]["message"].startswith(
            "Your report RPT-20240101-0003 has been submitted successfully."
        )
        assert service.bus.recent()[0].type == REPORT_CREATED

    def test_anonymous_report_created_has_no_queued_messages(self):
        service = NotificationService(NotificationBus())

        service.notify_report_created(
            tracking_id="RPT-20240101-0004",
            category="safety",
            has_location=False,
            contact_info="citizen@example.com",
            anonymous=True,
        )

        assert service.email_queue == []
        assert service.whatsapp_queue == []
        assert service.bus.last_seq == 1

    def test_anonymous_report_only_gets_in_app_event(self):
        bus = NotificationBus()
        service = NotificationService(bus)

        service.notify_status_change(
            tracking_id="RPT-20240101-0002",
            old_status="reported",
            new_status="in-progress",
            note=None,
            updated_by="admin",
            contact_info="citizen@example.com",
            anonymous=True,
        )

        assert service.email_queue == []
        assert service.whatsapp_queue == []
        assert bus.recent()[0].type == REPORT_STATUS_CHANGED


def _events_handler(pages):
    """Serve ``pages`` in order, then empty pages."""
    calls = []
    served = [0]

    def handler(request: httpx.Request):
        calls.append(int(request.url.params["after"]))
        events = pages.pop(0) if pages else []
        served.extend(e["seq"] for e in events if isinstance(e, dict) and "seq" in e)
        return httpx.Response(200, json={"events": events, "last_seq": max(served)})

    return handler, calls


class TestNotificationPoller:
    def test_poll_once_dispatches_and_advances(self):
        handler, calls = _events_handler([[
            {"seq": 4, "type": REPORT_CREATED, "data": {"tracking_id": "RPT-1"}, "timestamp": "t"},
            {"seq": 5, "type": REPORT_STATUS_CHANGED, "data": {}, "timestamp": "t"},
        ]])
        bus = NotificationBus()
        received = []
        bus.subscribe(received.append)
        poller = NotificationPoller("http://api.test", bus)

        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                first = await poller.poll_once(client)
                second = await poller.poll_once(client)
            return first, second

        assert asyncio.run(go()) == (2, 0)
        assert calls == [0, 5]
        assert [e.seq for e in received] == [4, 5]
        assert poller.last_seq == 5
        assert poller.connected

    def test_transport_error_is_swallowed(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        poller = NotificationPoller("http://api.test", NotificationBus())

        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await poller.poll_once(client)

        assert asyncio.run(go()) == 0
        assert not poller.connected

    def test_run_stops_on_event(self):
        handler, calls = _events_handler([])

        async def go():
            client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
            poller = NotificationPoller(
                "http://api.test", NotificationBus(), interval_seconds=0.01, client=client
            )
            stop = asyncio.Event()
            task = asyncio.create_task(poller.run(stop))
            await asyncio.sleep(0.05)
            stop.set()
            await asyncio.wait_for(task, timeout=1)
            await client.aclose()

        asyncio.run(go())
        assert len(calls) >= 1

    def test_malformed_events_are_skipped(self):
        handler, _ = _events_handler([[
            {"type": REPORT_CREATED},
            "garbage",
            {"seq": 2, "type": REPORT_CREATED, "data": {}},
        ]])
        bus = NotificationBus()
        received = []
        bus.subscribe(received.append)
        poller = NotificationPoller("http://api.test", bus)

        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await poller.poll_once(client)

        assert asyncio.run(go()) == 1
        assert [e.seq for e in received] == [2]
        assert poller.last_seq == 2

    def test_non_object_payload_keeps_loop_alive(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[1, 2, 3]))

        async def go():
            client = httpx.AsyncClient(transport=transport)
            poller = NotificationPoller(
                "http://api.test", NotificationBus(), interval_seconds=0.01, client=client
            )
            assert await poller.poll_once(client) == 0
            stop = asyncio.Event()
            task = asyncio.create_task(poller.run(stop))
            await asyncio.sleep(0.05)
            stop.set()
            await asyncio.wait_for(task, timeout=1)
            await client.aclose()
            return poller

        poller = asyncio.run(go())
        assert not poller.connected

    def test_server_restart_resets_sequence(self):
        calls = []

        def handler(request: httpx.Request):
            after = int(request.url.params["after"])
            calls.append(after)
            events = [{"seq": 1, "type": REPORT_CREATED, "data": {}}] if after < 1 else []
            return httpx.Response(200, json={"events": events, "last_seq": 1})

        bus = NotificationBus()
        received = []
        bus.subscribe(received.append)
        poller = NotificationPoller("http://api.test", bus)
        poller.last_seq = 40

        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await poller.poll_once(client)

        assert asyncio.run(go()) == 1
        assert calls == [40, 0]
        assert [e.seq for e in received] == [1]
        assert poller.last_seq == 1
