"""
Codificación de IDs numéricos a identificadores externos opacos (hashids).
Cada modelo usa su propia sal, de forma que el hash de un dispositivo no
coincide con el de una aplicación con el mismo ID.
"""
from functools import lru_cache
from typing import Optional

from hashids import Hashids

from fleetgroups.core.config import settings


class HashidCodec:
    def __init__(self, salt: str, min_length: int = 0):
        self._hashids = Hashids(salt=salt, min_length=min_length)

    def encode(self, id_: int) -> str:
        return self._hashids.encode(id_)

    def decode(self, hashid: str) -> Optional[int]:
        decoded = self._hashids.decode(hashid)
        return decoded[0] if decoded else None


@lru_cache(maxsize=None)
def codec_for(model_name: str) -> HashidCodec:
    return HashidCodec(f"{settings.HASHID_SALT}:{model_name}", settings.HASHID_MIN_LENGTH)


def encode_id(model_name: str, id_: Optional[int]) -> Optional[str]:
    if id_ is None:
        return None
    return codec_for(model_name).encode(id_)


def decode_device_id(hashid: str) -> Optional[int]:
    return codec_for("Device").decode(hashid)
