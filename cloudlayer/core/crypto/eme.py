"""
EME (ECB-Mix-ECB) wide-block encryption.

EME is a tweakable wide-block mode by Halevi and Rogaway: every output bit
depends on every input bit, and equal inputs give equal outputs under the
same key and tweak. Inputs are 1 to 128 AES blocks long.

Variable names follow the paper (P, C, T, L, M, MP, MC, ...).
"""
from enum import Enum
from typing import List

from Crypto.Util.strxor import strxor
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

BLOCK_SIZE = 16
MAX_BLOCKS = 128


class Direction(Enum):
    ENCRYPT = 0
    DECRYPT = 1


def mult_by_two(block: bytes) -> bytes:
    """Multiply a 16-byte block by 2 in GF(2^128), little-endian convention."""
    if len(block) != BLOCK_SIZE:
        raise ValueError("Invalid length")
    out = bytearray(BLOCK_SIZE)
    out[0] = (block[0] << 1) & 0xFF
    if block[15] >= 0x80:
        out[0] ^= 0x87
    for j in range(1, BLOCK_SIZE):
        out[j] = (block[j] << 1) & 0xFF
        if block[j - 1] >= 0x80:
            out[j] = (out[j] + 1) & 0xFF
    return bytes(out)


class EMECipher:
    """EME transform keyed by an AES key."""
    
    def __init__(self, key: bytes):
        """
        Initialize the cipher.
        
        Args:
            key: AES key (16, 24 or 32 bytes)
        """
        cipher = Cipher(algorithms.AES(key), modes.ECB())
        self._encryptor = cipher.encryptor()
        self._decryptor = cipher.decryptor()
    
    def _aes(self, block: bytes, direction: Direction) -> bytes:
        if direction is Direction.ENCRYPT:
            return self._encryptor.update(block)
        return self._decryptor.update(block)
    
    def _tabulate_l(self, m: int) -> List[bytes]:
        li = self._encryptor.update(bytes(BLOCK_SIZE))
        table = []
        for _ in range(m):
            li = mult_by_two(li)
            table.append(li)
        return table
    
    def transform(self, tweak: bytes, data: bytes, direction: Direction) -> bytes:
        """
        Run EME in either direction (the two are symmetric).
        
        Args:
            tweak: 16-byte tweak
            data: Input, a multiple of 16 bytes, 1 to 128 blocks
            direction: ENCRYPT or DECRYPT
            
        Returns:
            Output of the same length as ``data``
        """
        T = tweak
        P = data
        if len(T) != BLOCK_SIZE:
            raise ValueError("Tweak must be 16 bytes long")
        if len(P) % BLOCK_SIZE != 0:
            raise ValueError("Input data must be a multiple of 16 long")
        m = len(P) // BLOCK_SIZE
        if m == 0 or m > MAX_BLOCKS:
            raise ValueError(f"EME operates on 1 to {MAX_BLOCKS} blocks, you passed {m}")
        
        L = self._tabulate_l(m)
        C = []
        for j in range(m):
            Pj = P[j * BLOCK_SIZE:(j + 1) * BLOCK_SIZE]
            # PPj = 2**(j-1)*L xor Pj ; PPPj = AES(K; PPj)
            C.append(self._aes(strxor(Pj, L[j]), direction))
        
        # MP = (xorSum PPPj) xor T
        MP = strxor(C[0], T)
        for j in range(1, m):
            MP = strxor(MP, C[j])
        MC = self._aes(MP, direction)
        
        M = strxor(MP, MC)
        for j in range(1, m):
            M = mult_by_two(M)
            # CCCj = 2**(j-1)*M xor PPPj
            C[j] = strxor(C[j], M)
        
        # CCC1 = (xorSum CCCj) xor T xor MC
        CCC1 = strxor(MC, T)
        for j in range(1, m):
            CCC1 = strxor(CCC1, C[j])
        C[0] = CCC1
        
        # Cj = AES(K; CCCj) xor 2**(j-1)*L
        return b"".join(
            strxor(self._aes(C[j], direction), L[j]) for j in range(m)
        )
    
    def encrypt(self, tweak: bytes, data: bytes) -> bytes:
        return self.transform(tweak, data, Direction.ENCRYPT)
    
    def decrypt(self, tweak: bytes, data: bytes) -> bytes:
        return self.transform(tweak, data, Direction.DECRYPT)
