import logging
import pickle
from typing import Any, BinaryIO, Dict, Mapping, Tuple

from memcell.exceptions import SnapshotDecodeError, SnapshotEncodeError

logger = logging.getLogger(__name__)

# header + pickle of {key: (value, expires_at)}; pickle runs code on load, only load our own files
MAGIC = b"MEMCELL1"


def dump_entries(entries: Mapping[str, Any], writer: BinaryIO) -> int:
    """
    - Serialize a mapping of key -> Entry into writer
    - Return number of bytes written
    - Raise SnapshotEncodeError if any value cannot be pickled; nothing is written then
    """
    records = {key: (entry.value, entry.expires_at) for key, entry in entries.items()}
    try:
        body = pickle.dumps(records, protocol=pickle.HIGHEST_PROTOCOL)
    except Exception as e:
        raise SnapshotEncodeError(f"Cannot serialize snapshot: {type(e).__name__}: {e}") from e

    data = MAGIC + body
    writer.write(data)
    logger.debug(f"Encoded {len(records)} entries into {len(data)} bytes")
    return len(data)


def load_entries(reader: BinaryIO) -> Dict[str, Tuple[Any, float]]:
    """
    - Read a snapshot from reader
    - Return a dict of key -> (value, expires_at)
    - Raise SnapshotDecodeError if the stream is not a snapshot
    """
    header = reader.read(len(MAGIC))
    if header != MAGIC:
        raise SnapshotDecodeError("Missing snapshot header")

    try:
        records = pickle.load(reader)
    except OSError:
        raise
    except Exception as e:
        # corrupt bytes can surface as nearly any error, MemoryError and OverflowError included
        raise SnapshotDecodeError(f"Corrupt snapshot: {type(e).__name__}: {e}") from e

    if not isinstance(records, dict):
        raise SnapshotDecodeError(f"Expected a mapping, got {type(records).__name__}")
    for key, record in records.items():
        if not isinstance(key, str) or not isinstance(record, tuple) or len(record) != 2:
            raise SnapshotDecodeError(f"Malformed record for key {key!r}")
        if not isinstance(record[1], (int, float)):
            raise SnapshotDecodeError(f"Malformed expiration for key {key!r}")

    logger.debug(f"Decoded {len(records)} entries")
    return records
