"""
Unit tests for the packet models and newline-delimited JSON codec.
"""

import json

import pytest
from pydantic import ValidationError

from scratchcloud.session.codec import decode, encode
from scratchcloud.session.models import Credential, HandshakePacket, SetPacket


class TestEncode:
    def test_handshake_omits_name_and_value(self):
        line = encode(HandshakePacket(user="griffpatch", project_id=1234))
        assert line.endswith("\n")
        assert json.loads(line) == {
            "method": "handshake",
            "user": "griffpatch",
            "project_id": 1234,
        }

    def test_set_packet_fields(self):
        packet = SetPacket(user="u", project_id="99", name="☁ score", value="42")
        data = json.loads(encode(packet))
        assert data == {
            "method": "set",
            "user": "u",
            "project_id": "99",
            "name": "☁ score",
            "value": "42",
        }

    def test_single_line(self):
        line = encode(SetPacket(name="☁ a", value="1"))
        assert line.count("\n") == 1
        assert "null" not in line


class TestDecode:
    def test_single_set(self):
        packets = decode('{"method":"set","name":"☁ x","value":"3"}\n')
        assert len(packets) == 1
        assert isinstance(packets[0], SetPacket)
        assert packets[0].name == "☁ x"
        assert packets[0].value == "3"

    def test_multiple_packets_in_one_frame(self):
        frame = (
            '{"method":"set","name":"☁ a","value":"1"}\n'
            '{"method":"set","name":"☁ b","value":"2"}\n'
        )
        assert [p.name for p in decode(frame)] == ["☁ a", "☁ b"]

    def test_empty_segments_skipped(self):
        assert decode("\n\n") == []
        assert decode("") == []

    def test_malformed_segment_dropped(self):
        frame = (
            '{"method":"set","name":"☁ a","value":"1"}\n'
            "{not json\n"
            '{"method":"set","name":"☁ b","value":"2"}\n'
        )
        packets = decode(frame)
        assert [p.name for p in packets] == ["☁ a", "☁ b"]

    def test_non_object_and_unknown_method_dropped(self):
        frame = '42\n{"method":"ping"}\n{"method":"set","value":"1"}\n'
        assert decode(frame) == []

    def test_numeric_value_becomes_string(self):
        packets = decode('{"method":"set","name":"☁ n","value":17}')
        assert packets[0].value == "17"

    def test_float_value_becomes_string(self):
        packets = decode('{"method":"set","name":"☁ n","value":1.5}')
        assert packets[0].value == "1.5"

    def test_large_float_uses_exponent_form(self):
        packets = decode('{"method":"set","name":"☁ n","value":1e21}')
        assert packets[0].value == "1e+21"

    def test_bytes_frame(self):
        frame = '{"method":"set","name":"☁ x","value":"3"}\n'.encode("utf-8")
        assert decode(frame)[0].name == "☁ x"

    def test_handshake_decodes(self):
        packets = decode('{"method":"handshake","user":"u","project_id":1}')
        assert isinstance(packets[0], HandshakePacket)


class TestCredential:
    def test_frozen(self):
        cred = Credential(username="u", session_id="s")
        with pytest.raises(ValidationError):
            cred.username = "other"

    def test_session_id_optional(self):
        assert Credential(username="u").session_id == ""
