"""
Composite file metadata ("simplejson" format).

Stored under the original file name when a file is split::

    {"ver":1,"size":10485760,"nchunks":3,"md5":"..."}
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
import json

METADATA_VERSION = 1
# Objects larger than this are never metadata
MAX_METADATA_SIZE = 1023


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class CompositeFileRecord:
    """
    Metadata of a composite file.
    
    Attributes:
        size: Total size of the composite file
        nchunks: Number of data chunks
        md5: MD5 hex digest of the whole file (optional)
        sha1: SHA1 hex digest of the whole file (optional)
        txn: Transaction id appended to chunk names (optional)
        ver: Format version
    """
    size: int
    nchunks: int
    md5: Optional[str] = None
    sha1: Optional[str] = None
    txn: Optional[str] = None
    ver: int = METADATA_VERSION
    
    def to_dict(self) -> Dict[str, Any]:
        result = {'ver': self.ver, 'size': self.size, 'nchunks': self.nchunks}
        if self.md5:
            result['md5'] = self.md5
        if self.sha1:
            result['sha1'] = self.sha1
        if self.txn:
            result['txn'] = self.txn
        return result
    
    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), separators=(',', ':')).encode('utf-8')
    
    @classmethod
    def parse(cls, data: bytes) -> Optional['CompositeFileRecord']:
        """
        Interpret ``data`` as a metadata record.
        
        Anything that is not a well-formed record of a known version yields
        None: such an object is ordinary file content.
        """
        if len(data) > MAX_METADATA_SIZE:
            return None
        try:
            info = json.loads(data.decode('utf-8'))
        except (UnicodeDecodeError, ValueError):
            return None
        if not isinstance(info, dict):
            return None
        
        ver, size, nchunks = info.get('ver'), info.get('size'), info.get('nchunks')
        if not (_is_int(ver) and 1 <= ver <= METADATA_VERSION):
            return None
        if not (_is_int(size) and size >= 0):
            return None
        if not (_is_int(nchunks) and nchunks >= 1):
            return None
        
        md5, sha1, txn = info.get('md5'), info.get('sha1'), info.get('txn')
        if md5 is not None and not isinstance(md5, str):
            return None
        if sha1 is not None and not isinstance(sha1, str):
            return None
        return cls(
            size=size,
            nchunks=nchunks,
            md5=md5 or None,
            sha1=sha1 or None,
            txn=str(txn) if txn not in (None, "") else None,
            ver=ver,
        )
