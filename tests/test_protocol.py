import pytest

from etherrecorder.protocol import (
    END_MARKER,
    START_MARKER,
    MessageEncoder,
    PacketError,
    decode_packet,
    encode_message,
)


def test_encode_fixed_layout():
    packet = encode_message("abc", 1)
    assert packet == bytes.fromhex("baadf00d" "00000013" "00000001" "616263" "deadbeef")


def test_encode_length_field_counts_whole_packet():
    packet = encode_message("log_level=DEBUG", 7)
    assert int.from_bytes(packet[4:8], "big") == len(packet)
    assert len(packet) == 16 + len("log_level=DEBUG")


def test_markers_at_both_ends():
    packet = encode_message("hello", 3)
    assert int.from_bytes(packet[:4], "big") == START_MARKER
    assert int.from_bytes(packet[-4:], "big") == END_MARKER


@pytest.mark.parametrize("text", ["", "x", "log_level=TRACE", "a b c " * 50])
def test_round_trip(text):
    assert decode_packet(encode_message(text, 42)) == (42, text)


def test_non_ascii_replaced():
    index, text = decode_packet(encode_message("héllo", 5))
    assert index == 5
    assert text == "h?llo"


def test_trailing_bytes_ignored():
    data = encode_message("first", 1) + encode_message("second", 2)
    assert decode_packet(data) == (1, "first")


def test_text_stops_at_nul():
    assert decode_packet(encode_message("ab\0cd", 9)) == (9, "ab")


def test_short_data_is_incomplete():
    with pytest.raises(PacketError) as info:
        decode_packet(encode_message("abc", 1)[:10])
    assert info.value.incomplete is True


def test_truncated_packet_is_incomplete():
    packet = encode_message("some longer message", 1)
    with pytest.raises(PacketError) as info:
        decode_packet(packet[:-2])
    assert info.value.incomplete is True


def test_bad_start_marker():
    packet = bytearray(encode_message("abc", 1))
    packet[0] = 0
    with pytest.raises(PacketError) as info:
        decode_packet(bytes(packet))
    assert info.value.incomplete is False


def test_bad_end_marker():
    packet = bytearray(encode_message("abc", 1))
    packet[-1] = 0
    with pytest.raises(PacketError) as info:
        decode_packet(bytes(packet))
    assert info.value.incomplete is False


def test_length_below_minimum_rejected():
    packet = bytearray(encode_message("abcdef", 1))
    packet[4:8] = (8).to_bytes(4, "big")
    with pytest.raises(PacketError):
        decode_packet(bytes(packet))


def test_index_wraps_to_32_bits():
    assert decode_packet(encode_message("x", 2**32 + 3))[0] == 3


def test_encoder_indices_increase_from_one():
    encoder = MessageEncoder()
    indices = [decode_packet(encoder.encode(f"m{i}"))[0] for i in range(4)]
    assert indices == [1, 2, 3, 4]
    assert encoder.next_index == 5


def test_encoder_wraps():
    encoder = MessageEncoder(first_index=2**32 - 1)
    assert decode_packet(encoder.encode("a"))[0] == 2**32 - 1
    assert decode_packet(encoder.encode("b"))[0] == 0