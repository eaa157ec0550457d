import pytest

from gaia_storage.core.errors import InvalidKeyError
from gaia_storage.core.keys import (
    SECP256K1_ORDER,
    extract_address,
    get_entropy,
    get_public_key_from_private,
    make_ec_private_key,
    public_key_to_address,
)

KEY_ONE = "00" * 31 + "01"
KEY_ONE_PUBLIC = "0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
KEY_ONE_ADDRESS = "1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH"


def test_public_key_from_private():
    assert get_public_key_from_private(KEY_ONE) == KEY_ONE_PUBLIC


def test_public_key_to_address():
    assert public_key_to_address(KEY_ONE_PUBLIC) == KEY_ONE_ADDRESS


def test_compressed_marker_suffix_is_accepted():
    assert get_public_key_from_private(KEY_ONE + "01") == KEY_ONE_PUBLIC


@pytest.mark.parametrize("bad_key", [
    "not hex at all",
    "zz" * 32,
    "00" * 31,
    "00" * 32,
    format(SECP256K1_ORDER, "064x"),
    "ff" * 32,
])
def test_invalid_private_keys(bad_key):
    with pytest.raises(InvalidKeyError):
        get_public_key_from_private(bad_key)


def test_entropy_defaults_to_32_bytes():
    assert len(get_entropy()) == 32
    assert len(get_entropy(0)) == 32
    assert len(get_entropy(16)) == 16
    assert get_entropy() != get_entropy()


def test_make_ec_private_key():
    key = make_ec_private_key()
    assert len(key) == 64
    assert public_key_to_address(get_public_key_from_private(key)).startswith("1")


def test_extract_address():
    url = f"https://gaia.example.com/hub/{KEY_ONE_ADDRESS}/"
    assert extract_address(url) == KEY_ONE_ADDRESS
    assert extract_address("https://gaia.example.com/hub/") is None
