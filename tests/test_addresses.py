import string

from walletledger.addresses import generate_random_address


def test_address_is_64_hex_characters():
    address = generate_random_address()
    assert len(address) == 64
    assert set(address) <= set(string.hexdigits.lower())


def test_address_decodes_to_32_bytes():
    assert len(bytes.fromhex(generate_random_address())) == 32


def test_addresses_are_distinct():
    addresses = {generate_random_address() for _ in range(50)}
    assert len(addresses) == 50