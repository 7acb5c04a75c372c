from typing import List, Tuple
import logging
import math
import re

logger = logging.getLogger(__name__)

# "quoted value", 'quoted value' or a bare word
TOKEN = re.compile(r'"([^"]*)"|\'([^\']*)\'|(\S+)')

class CommandParser:
    def __init__(self):
        # (min, max) arguments for each command
        self._arities = {
            "get": (1, 1),
            "del": (1, 1),
            "ttl": (1, 1),
            "count": (0, 0),
            "keys": (0, 0),
            "flushdb": (0, 0),
            "save": (0, 0),
            "load": (0, 0),
        }
        # write commands take: key value [ttl]
        self._writes = ("set", "add", "update")

    def tokenize(self, command: str) -> List[str]:
        return [g1 or g2 or g3 for (g1, g2, g3) in TOKEN.findall(command)]

    def parse(self, command: str) -> Tuple:
        """
        Parse a command string
        Return a tuple of (command_name, args); the TTL of a write command is returned as a float
        """
        parts = self.tokenize(command)
        logger.debug(f"Parts after split: {parts}")
        if not parts:
            raise ValueError("Empty command")

        cmd, args = parts[0].lower(), parts[1:]
        if cmd in self._writes:
            return cmd, self._parse_write(cmd, args)
        if cmd not in self._arities:
            raise ValueError(f"Unknown command: {cmd}")

        min_args, max_args = self._arities[cmd]
        if not min_args <= len(args) <= max_args:
            raise ValueError(f"Invalid number of arguments for {cmd}: expected {min_args}-{max_args}, got {len(args)}")
        return cmd, args

    def _parse_write(self, cmd: str, args: List[str]) -> list:
        if len(args) not in (2, 3):
            raise ValueError(f"Invalid number of arguments for {cmd}: expected key value [ttl], got {len(args)}")
        if len(args) == 3:
            return [args[0], args[1], self.parse_ttl(args[2])]
        return args

    @staticmethod
    def parse_ttl(raw: str) -> float:
        """
        TTL argument in seconds; negative means never expire, 0 means the store default
        """
        try:
            ttl = float(raw)
        except ValueError:
            raise ValueError(f"Invalid TTL: {raw}")
        if not math.isfinite(ttl):
            raise ValueError(f"Invalid TTL: {raw}")
        return ttl
