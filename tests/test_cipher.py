import base64

import pytest

from cryptostring.errors import (
    DecodeError,
    EmptyInputError,
    EncryptionError,
    UnsupportedAlgorithmError,
)
from cryptostring.schemas.cipher import Algorithm, EncryptionConfig
from cryptostring.services import cipher_service
from cryptostring.services.cipher_service import (
    CIPHERS,
    Cipher,
    caesar_key_shift,
    caesar_shift,
    derive_key,
    hybrid_shift,
    xor_stream,
)

ALL_ALGORITHMS = [a.value for a in Algorithm]
SAMPLES = [
    "hello",
    "The quick brown fox jumps over the lazy dog 0123456789!",
    "  leading and trailing whitespace  ",
    "héllo wörld ✓ 🚀 日本語",
    "x",
    "A" * 300,
]


class TestKeyDerivation:
    def test_no_salt_returns_key_bytes(self):
        assert derive_key("secret") == b"secret"
        assert derive_key("secret", "") == b"secret"

    def test_mixes_key_salt_and_position(self):
        derived = derive_key("a", "b")
        assert len(derived) == 32
        assert derived[0] == 0x61 ^ 0x62 ^ 0
        assert derived[1] == 0x61 ^ 0x62 ^ 1

    def test_length_follows_long_keys(self):
        assert len(derive_key("k" * 50, "salt")) == 50

    def test_deterministic(self):
        assert derive_key("key-material", "pepper") == derive_key("key-material", "pepper")
        assert derive_key("key-material", "pepper") != derive_key("key-material", "Pepper")


class TestXorStream:
    def test_position_varying(self):
        assert xor_stream(b"\x00\x00", b"\x01") == b"\x01\x00"

    def test_self_inverse(self):
        data = bytes(range(256)) * 2
        assert xor_stream(xor_stream(data, b"key"), b"key") == data

    def test_empty_key_rejected(self):
        with pytest.raises(EmptyInputError):
            xor_stream(b"data", b"")


class TestCaesar:
    def test_rotates_each_class(self):
        assert caesar_shift("Hello, World 789", 3) == "Khoor, Zruog 012"

    def test_negative_shift_inverts(self):
        text = "Attack at Dawn 2024"
        assert caesar_shift(caesar_shift(text, 11), -11) == text

    def test_shift_closed(self):
        text = "Zebra zoo 909"
        for s1, s2 in [(1, 2), (5, 7), (13, 13), (9, 0)]:
            assert caesar_shift(caesar_shift(text, s1), s2) == caesar_shift(text, s1 + s2)

    def test_other_characters_untouched(self):
        assert caesar_shift("äöü ✓ !?", 5) == "äöü ✓ !?"

    @pytest.mark.parametrize("key,expected", [
        ("zz-rest", 1295 % 26),
        ("ab", 371 % 26),
        ("a!", 10),
        (" 1abc", 1),
        ("00", 13),
        ("!a", 13),
        ("-5", -5),
        ("", 13),
    ])
    def test_key_shift(self, key, expected):
        assert caesar_key_shift(key) == expected

    def test_hybrid_shift(self):
        assert hybrid_shift("A") == 65 % 26
        with pytest.raises(EmptyInputError):
            hybrid_shift("")


class TestCipherSuite:
    def test_every_algorithm_has_a_cipher(self):
        assert set(CIPHERS) == set(Algorithm)

    def test_incomplete_cipher_cannot_be_instantiated(self):
        class EncryptOnly(Cipher):
            def encrypt(self, plaintext, key, salt=None):
                return plaintext

        with pytest.raises(TypeError):
            EncryptOnly()

    @pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
    @pytest.mark.parametrize("text", SAMPLES)
    def test_round_trip(self, algorithm, text):
        cipher = CIPHERS[Algorithm(algorithm)]
        encrypted = cipher.encrypt(text, "k3y-M4terial!", "s4lt")
        assert cipher.decrypt(encrypted, "k3y-M4terial!", "s4lt") == text

    def test_base64_is_standard(self):
        assert CIPHERS[Algorithm.BASE64].encrypt("hello", "") == "aGVsbG8="

    def test_base64_tolerates_whitespace(self):
        assert CIPHERS[Algorithm.BASE64].decrypt(" aGVs\nbG8= ", "") == "hello"

    @pytest.mark.parametrize("bad", ["!!!!", "aGVsbG8", "/w=="])
    def test_base64_rejects_malformed(self, bad):
        with pytest.raises(DecodeError):
            CIPHERS[Algorithm.BASE64].decrypt(bad, "")

    def test_xor_output_is_base64_of_stream(self):
        encrypted = CIPHERS[Algorithm.XOR].encrypt("abc", "k")
        assert base64.b64decode(encrypted) == xor_stream(b"abc", b"k")

    def test_aes_like_uses_derived_key(self):
        encrypted = CIPHERS[Algorithm.AES].encrypt("abc", "key", "salt")
        assert base64.b64decode(encrypted) == xor_stream(b"abc", derive_key("key", "salt"))

    def test_aes_like_without_salt_matches_xor(self):
        assert CIPHERS[Algorithm.AES].encrypt("abc", "key") == CIPHERS[Algorithm.XOR].encrypt("abc", "key")

    def test_hybrid_layers(self):
        key, salt, text = "Key!", "NaCl", "Layered text 42"
        shifted = caesar_shift(text, ord("K") % 26)
        expected = xor_stream(xor_stream(shifted.encode("utf-8"), key.encode("utf-8")), derive_key(key, salt))
        encrypted = CIPHERS[Algorithm.HYBRID].encrypt(text, key, salt)
        assert base64.b64decode(encrypted) == expected

    def test_hybrid_stream_layers_cancel_without_salt(self):
        encrypted = CIPHERS[Algorithm.HYBRID].encrypt("Layered text", "Key!")
        assert base64.b64decode(encrypted).decode("utf-8") == caesar_shift("Layered text", ord("K") % 26)

    def test_xor_rejects_corrupt_input(self):
        with pytest.raises(DecodeError):
            CIPHERS[Algorithm.XOR].decrypt("not base64!", "key")


class TestEncrypt:
    def test_caesar_example(self, counting_bytes):
        config = EncryptionConfig(algorithm="caesar", key_length=32, use_salt=False)
        result = cipher_service.encrypt("hello", config, random_bytes=counting_bytes)
        assert result.key == "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdef"
        assert result.encrypted == "olssv"
        assert result.salt is None

        decrypted = cipher_service.decrypt(result.encrypted, result.key, "caesar")
        assert decrypted.success is True
        assert decrypted.decrypted == "hello"

    @pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
    @pytest.mark.parametrize("use_salt", [True, False])
    def test_round_trip(self, algorithm, use_salt):
        text = "Round trip ✓ 123"
        result = cipher_service.encrypt(text, EncryptionConfig(algorithm=algorithm, use_salt=use_salt))
        decrypted = cipher_service.decrypt(result.encrypted, result.key, result.algorithm, result.salt)
        assert decrypted.success
        assert decrypted.decrypted == text

    def test_result_metadata(self):
        result = cipher_service.encrypt("data", EncryptionConfig(algorithm="aes", use_salt=True))
        assert result.algorithm == Algorithm.AES
        assert len(result.key) == 32
        assert len(result.salt) == 16
        assert result.timestamp > 1_600_000_000_000

    @pytest.mark.parametrize("algorithm", ["caesar", "base64"])
    def test_salt_only_for_salted_algorithms(self, algorithm):
        result = cipher_service.encrypt("data", EncryptionConfig(algorithm=algorithm, use_salt=True))
        assert result.salt is None

    @pytest.mark.parametrize("requested,expected", [(5, 16), (16, 16), (40, 40), (64, 64), (500, 64)])
    def test_key_length_clamped(self, requested, expected):
        result = cipher_service.encrypt("data", EncryptionConfig(algorithm="xor", key_length=requested))
        assert len(result.key) == expected

    def test_result_is_immutable(self):
        result = cipher_service.encrypt("data", EncryptionConfig(algorithm="xor"))
        with pytest.raises(Exception):
            result.key = "other"

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_text_rejected(self, text):
        with pytest.raises(EmptyInputError):
            cipher_service.encrypt(text, EncryptionConfig(algorithm="aes"))

    def test_unsupported_algorithm(self):
        with pytest.raises(UnsupportedAlgorithmError):
            cipher_service.encrypt("data", EncryptionConfig(algorithm="rot13"))

    def test_wraps_lower_level_failures(self):
        with pytest.raises(EncryptionError) as exc_info:
            cipher_service.encrypt("bad \ud800 surrogate", EncryptionConfig(algorithm="xor"))
        assert exc_info.value.__cause__ is not None
        assert str(exc_info.value).startswith("Encryption failed:")


class TestDecrypt:
    def test_blank_ciphertext(self):
        result = cipher_service.decrypt("  ", "key", "aes")
        assert result.success is False
        assert result.error == "Encrypted text cannot be empty"
        assert result.decrypted == ""

    def test_blank_key(self):
        result = cipher_service.decrypt("abc", "", "aes")
        assert result.success is False
        assert result.error == "Decryption key cannot be empty"

    def test_unsupported_algorithm(self):
        result = cipher_service.decrypt("abc", "key", "rot13")
        assert result.success is False
        assert "Unsupported decryption algorithm" in result.error

    def test_malformed_base64(self):
        result = cipher_service.decrypt("***", "key", "base64")
        assert result.success is False
        assert result.error == "Invalid Base64 encoded text"

    def test_wrong_algorithm_does_not_raise(self):
        encrypted = CIPHERS[Algorithm.CAESAR].encrypt("plain words here", "key")
        result = cipher_service.decrypt(encrypted, "key", "hybrid")
        assert result.success is False or result.decrypted != "plain words here"

    # Hybrid depends on the key only through its first character (the caesar
    # shift); its two stream layers cancel for every other key position.
    @pytest.mark.parametrize("algorithm,index", [("aes", 5), ("xor", 5), ("hybrid", 0)])
    def test_mutated_key_breaks_round_trip(self, algorithm, index):
        text = "Sensitive message body"
        result = cipher_service.encrypt(text, EncryptionConfig(algorithm=algorithm, use_salt=True))
        key = result.key
        bad_key = key[:index] + chr(ord(key[index]) ^ 1) + key[index + 1:]
        decrypted = cipher_service.decrypt(result.encrypted, bad_key, algorithm, result.salt)
        assert not (decrypted.success and decrypted.decrypted == text)

    def test_mutated_salt_breaks_hybrid(self):
        text = "Sensitive message body"
        result = cipher_service.encrypt(text, EncryptionConfig(algorithm="hybrid", use_salt=True))
        bad_salt = result.salt[::-1] + "x"
        decrypted = cipher_service.decrypt(result.encrypted, result.key, "hybrid", bad_salt)
        assert not (decrypted.success and decrypted.decrypted == text)
