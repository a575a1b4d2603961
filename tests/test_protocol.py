import json

import pytest

from strangerlink.protocol import MessageType, Mode, ProtocolError, decode, encode


class TestDecode:
    def test_connect_with_mode(self):
        message_type, data = decode('{"type": "CONNECT", "mode": "video"}')
        assert message_type is MessageType.CONNECT
        assert data["mode"] == "video"

    def test_signal_payload_untouched(self):
        payload = {"sdp": {"type": "offer", "sdp": "v=0\r\n"}, "nested": [1, None, True]}
        _, data = decode(json.dumps({"type": "SIGNAL", "signal": payload}))
        assert data["signal"] == payload

    @pytest.mark.parametrize(
        "frame",
        [
            "not json",
            "[1, 2, 3]",
            '"CONNECT"',
            '{"mode": "voice"}',
            '{"type": "HELLO"}',
            '{"type": "PAIR_FOUND", "initiator": true}',
            b'{"type": "CONNECT"}',
        ],
    )
    def test_rejects(self, frame):
        with pytest.raises(ProtocolError):
            decode(frame)


def test_encode_flattens_payload():
    assert json.loads(encode(MessageType.PAIR_FOUND, initiator=False)) == {
        "type": "PAIR_FOUND",
        "initiator": False,
    }


@pytest.mark.parametrize(
    "value, expected",
    [("voice", Mode.VOICE), ("video", Mode.VIDEO), (None, Mode.VOICE), ("VIDEO", Mode.VOICE), (3, Mode.VOICE)],
)
def test_mode_parse_defaults_to_voice(value, expected):
    assert Mode.parse(value) is expected
