"""
Tests for the record decoders and the RecordCodec registry.
"""

import pytest

from ubnt_discovery.protocol import constants as c
from ubnt_discovery.protocol.records import (
    IpInfo,
    RecordCodec,
    RecordDecodeError,
    decode_bool,
    decode_hex,
    decode_ip_info,
    decode_ipv4,
    decode_mac,
    decode_string,
    decode_uint,
    encode_bool,
    encode_ip_info,
    encode_ipv4,
    encode_mac,
    encode_uint,
)


class TestDecoders:
    """Tests for the individual decoders"""

    def test_string_is_not_trimmed(self):
        data = b"xx  U7PG2 \x00yy"
        assert decode_string(data, 2, 9) == "  U7PG2 \x00"

    def test_hex_is_uppercase_without_separators(self):
        assert decode_hex(b"\x00\x0a\xff\x80", 0, 4) == "000AFF80"

    def test_hex_respects_offset_and_length(self):
        assert decode_hex(b"\x01\x02\x03\x04", 1, 2) == "0203"

    def test_uint_is_big_endian(self):
        assert decode_uint(b"\x00\x01\x00", 0, 3) == 256
        assert decode_uint(b"\x12\x34", 0, 2) == 0x1234

    def test_uint_has_no_sign(self):
        assert decode_uint(b"\xff\xff\xff\xff", 0, 4) == 0xFFFFFFFF

    def test_uint_empty_is_zero(self):
        assert decode_uint(b"", 0, 0) == 0

    def test_bool_true_only_for_one(self):
        assert decode_bool(b"\x01", 0, 1) is True
        assert decode_bool(b"\x00", 0, 1) is False
        assert decode_bool(b"\x02", 0, 1) is False
        assert decode_bool(b"\xff", 0, 1) is False

    def test_bool_empty_is_false(self):
        assert decode_bool(b"\x01", 0, 0) is False

    def test_mac(self):
        data = bytes([0x24, 0x5A, 0x4C, 0x01, 0x0B, 0xFF])
        assert decode_mac(data, 0, 6) == "24:5A:4C:01:0B:FF"

    def test_mac_too_short(self):
        with pytest.raises(RecordDecodeError):
            decode_mac(b"\x01\x02\x03", 0, 3)

    def test_ipv4(self):
        assert decode_ipv4(bytes([192, 168, 1, 254]), 0, 4) == "192.168.1.254"

    def test_ipv4_too_short(self):
        with pytest.raises(RecordDecodeError):
            decode_ipv4(b"\xc0\xa8", 0, 2)

    def test_ip_info(self):
        data = bytes([0x24, 0x5A, 0x4C, 0x11, 0x22, 0x33, 10, 0, 0, 7])
        info = decode_ip_info(data, 0, 10)
        assert info == IpInfo("24:5A:4C:11:22:33", "10.0.0.7")
        assert info.mac == "24:5A:4C:11:22:33"
        assert info.ip == "10.0.0.7"


class TestEncoders:
    """Encoders produce what the decoders read back"""

    def test_mac_round_trip(self):
        mac = "FC:EC:DA:00:0A:1B"
        assert decode_mac(encode_mac(mac), 0, 6) == mac

    def test_ipv4_round_trip(self):
        assert decode_ipv4(encode_ipv4("172.16.0.1"), 0, 4) == "172.16.0.1"

    def test_ip_info_round_trip(self):
        info = IpInfo("FC:EC:DA:00:0A:1B", "172.16.0.1")
        assert decode_ip_info(encode_ip_info(info), 0, 10) == info

    def test_uint_and_bool_round_trip(self):
        assert decode_uint(encode_uint(86400, 4), 0, 4) == 86400
        assert decode_bool(encode_bool(True), 0, 1) is True
        assert decode_bool(encode_bool(False), 0, 1) is False

    def test_invalid_mac_rejected(self):
        with pytest.raises(ValueError):
            encode_mac("24:5A:4C")


class TestRecordCodec:
    """Tests for the decoder registry"""

    def test_first_registration_wins(self):
        codec = RecordCodec()
        assert codec.register(99, decode_string) is True
        assert codec.register(99, decode_uint) is False
        assert codec.decoder_for(99) is decode_string

    def test_unregistered_type_falls_back_to_hex(self):
        codec = RecordCodec()
        assert codec.decode(42, b"\xde\xad", 0, 2) == "DEAD"

    def test_unregister(self):
        codec = RecordCodec()
        codec.register(5, decode_mac)
        assert codec.unregister(5) is decode_mac
        assert 5 not in codec

    def test_default_codec_has_both_versions(self):
        codec = RecordCodec.default_codec()
        assert codec.decoder_for(c.IPINFO) is decode_ip_info
        assert codec.decoder_for(c.HW_ADDRESS) is decode_ipv4
        assert codec.decoder_for(c.SOURCE_MAC) is decode_mac
        assert codec.decoder_for(c.DEFAULT) is decode_bool
        assert codec.decoder_for(c.SSHD_PORT) is decode_uint
        assert codec.decoder_for(c.MODEL) is decode_string
        assert codec.decoder_for(c.MODEL_V2) is decode_string

    def test_v2_registration_pulls_in_v1(self):
        codec = RecordCodec()
        codec.register_v2()
        assert c.UPTIME in codec
        assert c.SEQ in codec

    def test_registries_are_isolated(self):
        first = RecordCodec()
        second = RecordCodec()
        first.register(77, decode_string)
        assert 77 not in second
