import pytest

from taskscheduler.huffman import build_codes, build_tree, decode, encode


def test_known_codes():
    codes = build_codes("aaaabbc")
    assert codes == {"a": "1", "b": "01", "c": "00"}
    assert encode("aaaabbc") == "1111" + "0101" + "00"


def test_single_symbol():
    codes = build_codes("zzzzz")
    assert codes == {"z": "0"}
    bits = encode("zzzzz", codes)
    assert len(bits) == len(codes["z"]) * 5
    assert decode(bits, build_tree("zzzzz")) == "zzzzz"


def test_empty_text():
    assert build_codes("") == {}
    assert encode("") == ""
    assert build_tree("") is None
    assert decode("", None) == ""


def test_codes_are_prefix_free_and_optimal():
    text = "abracadabra"
    codes = build_codes(text)
    words = list(codes.values())
    for w in words:
        assert not any(o != w and o.startswith(w) for o in words)
    # a5 b2 r2 c1 d1: optimal weighted path length is 23
    assert len(encode(text, codes)) == 23


@pytest.mark.parametrize("text", ["homeworkshopping", "the quick brown fox", "aab", "ππ∑∑∑"])
def test_round_trip(text):
    assert decode(encode(text), build_tree(text)) == text


def test_decode_rejects_truncated_bits():
    tree = build_tree("aaaabbc")
    with pytest.raises(ValueError):
        decode("0", tree)
    with pytest.raises(ValueError):
        decode("102", tree)
