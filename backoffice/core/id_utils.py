import os
import threading
import time
import uuid

import shortuuid

_ordered_lock = threading.Lock()
_last_ordered = (0, 0)


def generate_shortuuid() -> str:
    return shortuuid.uuid()


def generate_uuid() -> str:
    return str(uuid.uuid4())


def generate_ordered_uuid() -> str:
    """
    UUIDv7 layout (48-bit unix ms, 12-bit counter, 62 random bits). Ids from one
    process sort in creation order, also within the same millisecond.
    """
    global _last_ordered
    with _ordered_lock:
        millis = time.time_ns() // 1_000_000
        last_millis, last_counter = _last_ordered
        if millis <= last_millis:
            millis, counter = last_millis, last_counter + 1
            if counter > 0xFFF:
                millis, counter = last_millis + 1, 0
        else:
            counter = 0
        _last_ordered = (millis, counter)

    rand_b = int.from_bytes(os.urandom(8), "big") & ((1 << 62) - 1)
    value = (millis & ((1 << 48) - 1)) << 80
    value |= 0x7 << 76
    value |= counter << 64
    value |= 0b10 << 62
    value |= rand_b
    return str(uuid.UUID(int=value))


def generate_order_number() -> str:
    suffix = shortuuid.ShortUUID(alphabet="ABCDEFGHJKLMNPQRSTUVWXYZ23456789").random(length=5)
    return f"ORD-{time.time_ns() // 1_000_000}-{suffix}"
