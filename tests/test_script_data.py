"""
Tests for the script data codec
"""

import pytest

from programmable_tokens import script_data
from programmable_tokens.exceptions import MalformedData
from programmable_tokens.script_data import Constr, PlutusMap


REGISTRY_NODE_HEX = (
    "d8799f581c0befd1269cf3b5b41cce136c92c64b45dde93e4bfe11875839b713d1"
    "581bffffffffffffffffffffffffffffffffffffffffffffffffffffff"
    "d87a9f581caaa513b0fcc01d635f8535d49f38acc33d4d6b62ee8732ca6e126102ff"
    "d87a9f581cdef513b0fcc01d635f8535d49f38acc33d4d6b62ee8732ca6e126103ff"
    "581c1234567890abcdef1234567890abcdef1234567890abcdef12345678ff"
)


class TestEncode:
    """Canonical encoding of each variant"""

    def test_empty_constructor(self):
        assert script_data.to_hex(Constr(0)) == "d87980"

    def test_compact_constructor_with_fields(self):
        assert script_data.to_hex(Constr(1, [b"\xaa"])) == "d87a9f41aaff"

    def test_extended_constructor_tag(self):
        assert script_data.to_hex(Constr(7, [])) == "d9050080"

    def test_general_constructor_tag(self):
        assert script_data.to_hex(Constr(200, [1])) == "d8668218c89f01ff"

    def test_integers_keep_sign(self):
        assert script_data.to_hex(100) == "1864"
        assert script_data.to_hex(-1) == "20"

    def test_big_integers_use_bignum_tags(self):
        assert script_data.to_hex(2**64) == "c249010000000000000000"
        assert script_data.to_hex(-(2**64) - 1) == "c349010000000000000000"

    def test_long_bytes_are_chunked(self):
        value = b"\x01" * 65
        expected = "5f5840" + "01" * 64 + "4101" + "ff"
        assert script_data.to_hex(value) == expected

    def test_64_bytes_are_not_chunked(self):
        assert script_data.to_hex(b"\x02" * 64) == "5840" + "02" * 64

    def test_lists(self):
        assert script_data.to_hex([]) == "80"
        assert script_data.to_hex([1, 2]) == "9f0102ff"

    def test_map_keeps_entry_order(self):
        value = PlutusMap(((2, b""), (1, Constr(0))))
        assert script_data.to_hex(value) == "a20240" + "01d87980"

    def test_map_with_list_keys(self):
        value = PlutusMap((([1], 2),))
        assert script_data.to_hex(value) == "a19f01ff02"

    @pytest.mark.parametrize("value", ["text", 1.5, True, None, {"a": 1}])
    def test_values_outside_algebra_are_rejected(self, value):
        with pytest.raises(MalformedData):
            script_data.encode(value)


class TestDecode:
    """Decoding into script data values"""

    def test_registry_node_round_trip(self):
        decoded = script_data.from_hex(REGISTRY_NODE_HEX)

        assert isinstance(decoded, Constr)
        assert decoded.tag == 0
        assert len(decoded.fields) == 5
        assert decoded.fields[2] == Constr(1, [bytes.fromhex("aaa513b0fcc01d635f8535d49f38acc33d4d6b62ee8732ca6e126102")])
        assert script_data.to_hex(decoded) == REGISTRY_NODE_HEX

    def test_definite_arrays_are_accepted(self):
        assert script_data.from_hex("d8798101") == Constr(0, [1])

    def test_extended_and_general_tags(self):
        assert script_data.from_hex("d9050080") == Constr(7)
        assert script_data.from_hex("d8668218c89f01ff") == Constr(200, [1])

    def test_chunked_bytes_are_joined(self):
        assert script_data.from_hex("5f5840" + "01" * 64 + "4101" + "ff") == b"\x01" * 65

    def test_map(self):
        assert script_data.from_hex("a20240" + "01d87980") == PlutusMap(((2, b""), (1, Constr(0))))

    def test_nested_values(self):
        value = Constr(0, [[1, b"ab"], PlutusMap(((b"k", -5),)), Constr(3, [])])
        assert script_data.decode(script_data.encode(value)) == value

    @pytest.mark.parametrize(
        "data_hex",
        [
            "",  # empty
            "d8",  # truncated tag
            "d8799f01",  # unterminated fields
            "f94000",  # float
            "6161",  # text string
            "d83201",  # unknown tag
            "f5",  # boolean
            "d86683010203",  # general form with wrong arity
        ],
    )
    def test_malformed_input(self, data_hex):
        with pytest.raises(MalformedData):
            script_data.from_hex(data_hex)

    def test_invalid_hex(self):
        with pytest.raises(MalformedData):
            script_data.from_hex("invalid_hex_data")
