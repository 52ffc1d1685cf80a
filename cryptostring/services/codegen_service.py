from datetime import datetime, timezone
from string import Template

from cryptostring.schemas.cipher import Algorithm, EncryptionResult
from cryptostring.services.cipher_service import caesar_key_shift, hybrid_shift, resolve_algorithm

HEADER = Template('''\
# Auto-generated decryption code for CryptoString
# Algorithm: $algorithm
# Generated: $generated
# WARNING: Keep this code and key secure!

import base64

''')

DERIVE_KEY = '''\
def derive_key(key, salt):
    key_bytes = key.encode("utf-8")
    if not salt:
        return key_bytes
    salt_bytes = salt.encode("utf-8")
    length = max(len(key_bytes), 32)
    return bytes(
        key_bytes[i % len(key_bytes)] ^ salt_bytes[i % len(salt_bytes)] ^ (i % 256)
        for i in range(length)
    )


'''

XOR_STREAM = '''\
def xor_stream(data, key):
    return bytes(b ^ key[i % len(key)] ^ (i % 256) for i, b in enumerate(data))


'''

CAESAR_DECRYPT = '''\
def caesar_decrypt(text, shift):
    out = []
    for char in text:
        if "A" <= char <= "Z":
            out.append(chr((ord(char) - 65 - shift) % 26 + 65))
        elif "a" <= char <= "z":
            out.append(chr((ord(char) - 97 - shift) % 26 + 97))
        elif "0" <= char <= "9":
            out.append(chr((ord(char) - 48 - shift) % 10 + 48))
        else:
            out.append(char)
    return "".join(out)


'''

BODIES = {
    Algorithm.AES: Template('''\
def aes_decrypt(encrypted_text, key, salt):
    decoded = base64.b64decode(encrypted_text)
    return xor_stream(decoded, derive_key(key, salt)).decode("utf-8")


# Encrypted data
encrypted_text = $encrypted
key = $key
salt = $salt

decrypted_text = aes_decrypt(encrypted_text, key, salt)
print("Decrypted text:", decrypted_text)
'''),
    Algorithm.CAESAR: Template('''\
# Encrypted data
encrypted_text = $encrypted
shift = $shift

decrypted_text = caesar_decrypt(encrypted_text, shift)
print("Decrypted text:", decrypted_text)
'''),
    Algorithm.XOR: Template('''\
def xor_decrypt(encrypted_text, key):
    decoded = base64.b64decode(encrypted_text)
    return xor_stream(decoded, key.encode("utf-8")).decode("utf-8")


# Encrypted data
encrypted_text = $encrypted
key = $key

decrypted_text = xor_decrypt(encrypted_text, key)
print("Decrypted text:", decrypted_text)
'''),
    Algorithm.BASE64: Template('''\
def base64_decrypt(encoded_text):
    return base64.b64decode(encoded_text).decode("utf-8")


# Encoded data
encrypted_text = $encrypted

decrypted_text = base64_decrypt(encrypted_text)
print("Decrypted text:", decrypted_text)
'''),
    Algorithm.HYBRID: Template('''\
def hybrid_decrypt(encrypted_text, key, salt):
    layered = xor_stream(base64.b64decode(encrypted_text), derive_key(key, salt))
    shifted = xor_stream(layered, key.encode("utf-8")).decode("utf-8")
    return caesar_decrypt(shifted, $shift)


# Encrypted data
encrypted_text = $encrypted
key = $key
salt = $salt

decrypted_text = hybrid_decrypt(encrypted_text, key, salt)
print("Decrypted text:", decrypted_text)
'''),
}

HELPERS = {
    Algorithm.AES: (DERIVE_KEY, XOR_STREAM),
    Algorithm.CAESAR: (CAESAR_DECRYPT,),
    Algorithm.XOR: (XOR_STREAM,),
    Algorithm.BASE64: (),
    Algorithm.HYBRID: (DERIVE_KEY, XOR_STREAM, CAESAR_DECRYPT),
}


def _shift_for(algorithm: Algorithm, key: str) -> int | None:
    if algorithm is Algorithm.CAESAR:
        return caesar_key_shift(key)
    if algorithm is Algorithm.HYBRID:
        return hybrid_shift(key)
    return None


def generate_decryption_code(result: EncryptionResult) -> str:
    algorithm = resolve_algorithm(result.algorithm)
    header = HEADER.substitute(
        algorithm=algorithm.value.upper(),
        generated=datetime.now(timezone.utc).isoformat(),
    )
    body = BODIES[algorithm].substitute(
        encrypted=repr(result.encrypted),
        key=repr(result.key),
        salt=repr(result.salt),
        shift=_shift_for(algorithm, result.key),
    )
    return header + "".join(HELPERS[algorithm]) + body
