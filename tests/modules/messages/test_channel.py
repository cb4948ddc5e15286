import asyncio
import pytest
import pytest_asyncio

from shared.exceptions import ExternalServiceError

from modules.messages.channel import MessageChannel

from tests.fakes import FakeMessageRepository, FakeRealtimeFeed, message_row


@pytest.fixture
def feed():
    return FakeRealtimeFeed()


@pytest.fixture
def repository(feed):
    return FakeMessageRepository(
        [
            message_row("m-1", "booking-1", minutes=0, body="Hi, is Saturday ok?"),
            message_row("m-2", "booking-1", minutes=5, body="Saturday works", sender="host-1"),
            message_row("m-9", "booking-2", minutes=1, body="Other booking"),
        ],
        feed=feed,
    )


@pytest_asyncio.fixture
async def channel(repository, feed):
    channel = MessageChannel(repository, feed, "guest-1", "booking-1")
    await channel.open()
    yield channel
    await channel.close()


def ids(channel: MessageChannel) -> list[str]:
    return [m.id for m in channel.messages]


class TestOpen:
    @pytest.mark.asyncio
    async def test_loads_history_and_subscribes(self, repository, feed):
        """Should subscribe to the booking and load its history oldest first."""
        async with MessageChannel(repository, feed, "guest-1", "booking-1") as channel:
            assert ids(channel) == ["m-1", "m-2"]
            assert channel.state.connected is True
            [subscription] = feed.active
            assert (subscription.table, subscription.column, subscription.value) == (
                "messages",
                "booking_id",
                "booking-1",
            )

        assert feed.active == []

    @pytest.mark.asyncio
    async def test_no_booking(self, repository, feed):
        async with MessageChannel(repository, feed, "guest-1") as channel:
            assert channel.messages == []
            assert feed.count("subscribe_inserts") == 0
            assert repository.count("list_for_booking") == 0

    @pytest.mark.asyncio
    async def test_history_failure_is_exposed(self, repository, feed):
        repository.error = ExternalServiceError("Gateway down", service="supabase")

        async with MessageChannel(repository, feed, "guest-1", "booking-1") as channel:
            assert channel.messages == []
            assert channel.state.error == "Gateway down"
            assert channel.state.loading is False

    @pytest.mark.asyncio
    async def test_subscribe_failure_still_loads_history(self, repository, feed):
        """Without live updates the history should still be shown."""
        feed.error = ExternalServiceError("socket closed", service="realtime")

        async with MessageChannel(repository, feed, "guest-1", "booking-1") as channel:
            assert ids(channel) == ["m-1", "m-2"]
            assert channel.state.connected is False
            assert channel.state.error == "socket closed"


class TestRealtime:
    @pytest.mark.asyncio
    async def test_insert_is_appended(self, channel, feed):
        feed.deliver(message_row("m-3", "booking-1", minutes=10, body="See you"))
        assert ids(channel) == ["m-1", "m-2", "m-3"]

    @pytest.mark.asyncio
    async def test_other_booking_is_ignored(self, channel, feed):
        """An insert for another booking should not appear."""
        feed.deliver(message_row("m-x", "booking-2", minutes=10))
        assert ids(channel) == ["m-1", "m-2"]

    @pytest.mark.asyncio
    async def test_duplicate_insert_is_ignored(self, channel, feed):
        feed.deliver(message_row("m-2", "booking-1", minutes=5))
        assert ids(channel) == ["m-1", "m-2"]

    @pytest.mark.asyncio
    async def test_out_of_order_insert_is_sorted(self, channel, feed):
        """Messages should stay ordered by created_at."""
        feed.deliver(message_row("m-late", "booking-1", minutes=3))

        assert ids(channel) == ["m-1", "m-late", "m-2"]
        stamps = [m.created_at for m in channel.messages]
        assert stamps == sorted(stamps)

    @pytest.mark.asyncio
    async def test_malformed_row_is_ignored(self, channel, feed):
        feed.deliver({"id": "broken"})
        assert ids(channel) == ["m-1", "m-2"]


class TestSend:
    @pytest.mark.asyncio
    async def test_empty_body_is_rejected_locally(self, channel, repository):
        """An empty message should fail without reaching the Gateway."""
        for body in ("", "   "):
            result = await channel.send(body)

            assert result.success is False
            assert result.code == "EMPTY_MESSAGE"
        assert repository.count("create") == 0

    @pytest.mark.asyncio
    async def test_requires_booking_and_sender(self, repository, feed):
        async with MessageChannel(repository, feed, None, "booking-1") as channel:
            result = await channel.send("Hello")

        assert result.code == "NO_ACTIVE_BOOKING"
        assert repository.count("create") == 0

    @pytest.mark.asyncio
    async def test_echo_after_response_shows_once(self, channel):
        """The realtime echo of a sent message should not duplicate it."""
        result = await channel.send("  On my way  ")
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert result.success is True
        assert result.data.body == "On my way"
        assert result.data.sender_profile_id == "guest-1"
        assert ids(channel).count(result.data.id) == 1
        assert len(channel.messages) == 3

    @pytest.mark.asyncio
    async def test_echo_before_response_shows_once(self, channel, repository):
        repository.echo_before_response = True

        result = await channel.send("On my way")

        assert ids(channel).count(result.data.id) == 1
        assert ids(channel)[-1] == result.data.id

    @pytest.mark.asyncio
    async def test_send_failure(self, channel, repository):
        repository.error = ExternalServiceError("Gateway down", service="supabase")

        result = await channel.send("Hello")

        assert result.success is False
        assert len(channel.messages) == 2


class TestSwitching:
    @pytest.mark.asyncio
    async def test_set_booking_replaces_subscription(self, channel, feed):
        """Switching should tear the old subscription down and load the new history."""
        old = feed.active[0]

        await channel.set_booking("booking-2")

        assert old.active is False
        assert [s.value for s in feed.active] == ["booking-2"]
        assert ids(channel) == ["m-9"]

    @pytest.mark.asyncio
    async def test_old_handler_is_ignored_after_switch(self, channel, feed):
        old = feed.active[0]
        await channel.set_booking("booking-2")

        old.handler(message_row("m-3", "booking-1", minutes=10))

        assert ids(channel) == ["m-9"]

    @pytest.mark.asyncio
    async def test_same_booking_is_a_no_op(self, channel, feed, repository):
        await channel.set_booking("booking-1")

        assert feed.count("subscribe_inserts") == 1
        assert repository.count("list_for_booking") == 1

    @pytest.mark.asyncio
    async def test_close_stops_updates(self, channel, feed):
        subscription = feed.active[0]

        await channel.close()
        subscription.handler(message_row("m-3", "booking-1", minutes=10))

        assert channel.closed is True
        assert subscription.active is False
        assert ids(channel) == ["m-1", "m-2"]
        assert channel.state.connected is False
