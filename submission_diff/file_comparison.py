"""
Helper to fingerprint file contents.
"""

from __future__ import annotations

import hashlib as hl
from typing import Mapping


class FileHasher:
    """
    Helper class to compute hash values of decoded texts and of whole file sets.
    """

    def __init__(self, hash_algorithm: str = 'md5', encoding: str = 'utf-8'):
        """
        :param hash_algorithm: Hashing algorithm, must be supported by `hashlib`
        :param encoding: Encoding used to turn text back into bytes before hashing.
        """
        self.hash_algorithm = hash_algorithm
        self.encoding = encoding
        # Fail early for unknown algorithms instead of on the first hash.
        hl.new(hash_algorithm)

    def __repr__(self):
        return f'FileHasher({self.hash_algorithm})'

    def compute_hash(self, text: str) -> str:
        """
        Computes the hash sum of a single text.
        :param text: input text
        :return: string with the hex representation of the hash
        """
        digest = hl.new(self.hash_algorithm)
        digest.update(text.encode(self.encoding, errors='surrogatepass'))
        return digest.hexdigest()

    def compute_files_hash(self, files: Mapping[str, str]) -> str:
        """
        Computes a hash over all paths and contents of a file mapping. The result is independent of
        the mapping's iteration order.

        :param files: Mapping from path to text content.
        :return: string with the hex representation of the hash
        """
        digest = hl.new(self.hash_algorithm)
        for path in sorted(files):
            # Length prefixes keep ('ab', 'c') and ('a', 'bc') apart.
            for value in (path, files[path]):
                encoded = value.encode(self.encoding, errors='surrogatepass')
                digest.update(len(encoded).to_bytes(8, 'big'))
                digest.update(encoded)
        return digest.hexdigest()
