"""Tests for claim link encoding and decoding."""

import pytest

from claimlink.errors import ConfigurationError, LinkDecodeError
from claimlink.links import DEFAULT_BASE_URL, LinkParams, decode_link, encode_link


class TestEncodeLink:
    """Tests for encode_link()."""

    def test_format(self):
        """Test the link layout is byte-compatible with shared links."""
        link = encode_link(5, "v3", 12, "super_secret_password")
        assert link == "https://peanut.to/claim?c=5&v=v3&i=12&p=super_secret_password"

    def test_custom_base_url(self):
        """Test links can be built on another base URL."""
        link = encode_link("polygon", "v3", 0, "abc", base_url="https://example.org/c")
        assert link == "https://example.org/c?c=polygon&v=v3&i=0&p=abc"

    def test_reserved_characters_are_escaped(self):
        """Test passwords with URL syntax do not break the query."""
        link = encode_link(5, "v3", 1, "a&p=b c/d")
        assert "&p=a%26p%3Db%20c%2Fd" in link

    def test_missing_values_encode_empty(self):
        """Test encode does not validate and leaves absent fields empty."""
        assert encode_link(None, None, None, None, base_url="x") == "x?c=&v=&i=&p="


class TestDecodeLink:
    """Tests for decode_link()."""

    def test_decode(self):
        """Test decoding every parameter."""
        params = decode_link("https://peanut.to/claim?c=137&v=v3&i=42&p=hunter2")

        assert params == LinkParams(
            chain="137", contract_version="v3", deposit_index=42, password="hunter2"
        )
        assert params.locates_deposit

    def test_parameter_order_irrelevant(self):
        """Test parameters are read by name, not position."""
        params = decode_link("https://peanut.to/claim?p=pw&i=3&v=v3&c=5")
        assert (params.chain, params.contract_version, params.deposit_index, params.password) == (
            "5", "v3", 3, "pw"
        )

    def test_missing_password(self):
        """Test a link without p decodes with an absent password."""
        params = decode_link("https://peanut.to/claim?c=5&v=v3&i=0")

        assert params.password is None
        assert params.deposit_index == 0
        assert params.locates_deposit

    @pytest.mark.parametrize("link", [
        "https://peanut.to/claim?v=v3&i=0&p=x",
        "https://peanut.to/claim?c=&v=v3&i=0&p=x",
        "https://peanut.to/claim?c=5&i=0&p=x",
        "https://peanut.to/claim?c=5&v=v3&p=x",
    ])
    def test_incomplete_location(self, link):
        """Test links missing chain, version or index do not locate a deposit."""
        assert not decode_link(link).locates_deposit

    def test_no_query(self):
        """Test a bare URL decodes to all-absent parameters."""
        assert decode_link(DEFAULT_BASE_URL) == LinkParams()

    def test_non_integer_index(self):
        """Test a present but malformed index is a configuration error."""
        with pytest.raises(LinkDecodeError):
            decode_link("https://peanut.to/claim?c=5&v=v3&i=abc&p=x")

        with pytest.raises(ConfigurationError):
            decode_link("https://peanut.to/claim?c=5&v=v3&i=-1&p=x")

    def test_repr_hides_password(self):
        """Test the password is masked in repr."""
        params = decode_link("https://peanut.to/claim?c=5&v=v3&i=0&p=hunter2")
        assert "hunter2" not in repr(params)


class TestRoundTrip:
    """Tests for decode_link(encode_link(x)) == x."""

    @pytest.mark.parametrize("chain,version,index,password", [
        ("5", "v3", 0, "super_secret_password"),
        ("137", "v3", 987654321, "Ab3dEf9hIj2kLm0n"),
        ("polygon", "v4", 7, "pässwörd with spaces & symbols=?#"),
        ("1", "v3", 1, ""),
    ])
    def test_round_trip(self, chain, version, index, password):
        """Test parameters survive encoding and decoding."""
        params = decode_link(encode_link(chain, version, index, password))
        assert params == LinkParams(chain, version, index, password)
