from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional
import os

load_dotenv()


@dataclass
class Settings:
    """
    Runtime settings, read from the environment (and a .env file if present).
    Durations are in seconds.
    """
    host: str = "0.0.0.0"
    port: int = 6380
    default_ttl: float = 1800.0   # 0 means keys never expire by default
    reap_interval: float = 3.0    # <= 0 disables the background sweep
    snapshot_path: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("MEMCELL_HOST", cls.host),
            port=int(os.getenv("MEMCELL_PORT", cls.port)),
            default_ttl=float(os.getenv("MEMCELL_DEFAULT_TTL", cls.default_ttl)),
            reap_interval=float(os.getenv("MEMCELL_REAP_INTERVAL", cls.reap_interval)),
            snapshot_path=os.getenv("MEMCELL_SNAPSHOT_PATH") or None,
            log_level=os.getenv("MEMCELL_LOG_LEVEL", cls.log_level).upper(),
        )
