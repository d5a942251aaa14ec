"""
Chunk name templates.

A template holds exactly one ``*`` (the base file name) and one run of
``#`` (the chunk index, left-padded with zeros to the run length, never
truncated). ``*.rclone_chunk.###`` turns chunk 1 of ``big.iso`` into
``big.iso.rclone_chunk.001``. With ``norename`` transactions a
``_<txn>`` suffix is appended.
"""
from dataclasses import dataclass
from typing import Optional
import re

from ...exceptions import ConfigurationError

DEFAULT_NAME_FORMAT = "*.rclone_chunk.###"

_PLACEHOLDERS = re.compile(r"(\*|#+)")
_TXN_SUFFIX = r"(?:_(?P<txn>[0-9a-z]{4,9}))?"


@dataclass(frozen=True)
class ChunkName:
    """A parsed chunk name."""
    base: str
    index: int
    txn: Optional[str] = None


class NameFormat:
    """Formats and parses chunk names for one template."""
    
    def __init__(self, template: str = DEFAULT_NAME_FORMAT):
        """
        Compile a template.
        
        Raises:
            ConfigurationError: Unless the template has exactly one ``*`` and
                                exactly one run of ``#``
        """
        if template.count("*") != 1:
            raise ConfigurationError(f"name_format {template!r} must contain exactly one '*'")
        runs = re.findall(r"#+", template)
        if len(runs) != 1:
            raise ConfigurationError(f"name_format {template!r} must contain exactly one run of '#'")
        
        self.template = template
        self.width = len(runs[0])
        self._tokens = [t for t in _PLACEHOLDERS.split(template) if t]
        
        pattern = []
        for token in self._tokens:
            if token == "*":
                pattern.append(r"(?P<base>.+?)")
            elif token.startswith("#"):
                pattern.append(r"(?P<index>[0-9]+)")
            else:
                pattern.append(re.escape(token))
        self._regex = re.compile("".join(pattern) + _TXN_SUFFIX)
    
    def format(self, base: str, index: int, txn: Optional[str] = None) -> str:
        """Build the name of chunk ``index`` of ``base``."""
        parts = []
        for token in self._tokens:
            if token == "*":
                parts.append(base)
            elif token.startswith("#"):
                parts.append(str(index).zfill(self.width))
            else:
                parts.append(token)
        name = "".join(parts)
        return f"{name}_{txn}" if txn else name
    
    def parse(self, name: str) -> Optional[ChunkName]:
        """
        Recognise a chunk name.
        
        Returns:
            ChunkName, or None if ``name`` is not a chunk of this template
        """
        match = self._regex.fullmatch(name)
        if match is None:
            return None
        chunk = ChunkName(
            base=match.group("base"),
            index=int(match.group("index")),
            txn=match.group("txn"),
        )
        # Reject spellings format() would never produce (e.g. extra zeros)
        if self.format(chunk.base, chunk.index, chunk.txn) != name:
            return None
        return chunk
