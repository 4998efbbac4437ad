import pytest

from mqttkit.store import (
    Store,
    inbound_key_from_mid,
    is_key_inbound,
    is_key_outbound,
    mid_from_key,
    outbound_key_from_mid,
)


class FakePacket:
    def __init__(self, message_id):
        self.message_id = message_id


class RecordingStore(Store):
    """Records the message ids it sees, like a mock persistence layer."""

    def __init__(self):
        self.opened = False
        self.messages = {}
        self.mput = []
        self.mget = []
        self.mdel = []

    def open(self):
        self.opened = True

    def close(self):
        self.opened = False

    def put(self, key, message):
        self.mput.append(message.message_id)
        self.messages[key] = message

    def get(self, key):
        self.mget.append(mid_from_key(key))
        return self.messages.get(key)

    def all(self):
        return list(self.messages)

    def delete(self, key):
        self.mdel.append(mid_from_key(key))
        self.messages.pop(key, None)

    def reset(self):
        self.messages.clear()


def test_inbound_key_format():
    assert inbound_key_from_mid(91) == "i.91"
    assert inbound_key_from_mid(17) == "i.17"


def test_outbound_key_format():
    assert outbound_key_from_mid(121) == "o.121"
    assert outbound_key_from_mid(120) == "o.120"


@pytest.mark.parametrize("mid", [0, 71, 120, 65535])
def test_mid_round_trip(mid):
    assert mid_from_key(inbound_key_from_mid(mid)) == mid
    assert mid_from_key(outbound_key_from_mid(mid)) == mid


@pytest.mark.parametrize("key", ["i.", "i.abc", "o.-1", "o.+5", "i.65536", "o. 12"])
def test_mid_from_invalid_key(key):
    with pytest.raises(ValueError):
        mid_from_key(key)


def test_key_direction():
    assert is_key_inbound("i.91") is True
    assert is_key_outbound("i.91") is False
    assert is_key_outbound("o.120") is True
    assert is_key_inbound("o.120") is False


def test_store_is_abstract():
    with pytest.raises(TypeError):
        Store()


def test_recording_store_put_get_del():
    store = RecordingStore()
    store.open()
    key = outbound_key_from_mid(120)
    packet = FakePacket(120)
    store.put(key, packet)
    assert store.get(key) is packet
    assert store.all() == ["o.120"]
    store.delete(key)
    assert store.mput == [120]
    assert store.mget == [120]
    assert store.mdel == [120]
    assert store.all() == []


def test_store_reset_clears_everything():
    store = RecordingStore()
    store.open()
    for mid in (71, 72, 73, 74, 75):
        store.put(inbound_key_from_mid(mid), FakePacket(mid))
    assert len(store.all()) == 5
    store.reset()
    assert store.all() == []


def test_store_context_manager_opens_and_closes():
    store = RecordingStore()
    key = inbound_key_from_mid(91)
    with store as opened:
        assert opened is store
        assert store.opened is True
        opened.put(key, FakePacket(91))
        assert opened.all() == ["i.91"]
    assert store.opened is False
    assert store.mput == [91]
    assert is_key_inbound(store.all()[0]) is True