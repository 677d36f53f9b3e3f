from __future__ import annotations

from collections import Counter
from typing import Dict, List, Optional

from .models import HuffmanNode

CodeTable = Dict[str, str]


def build_tree(data: str) -> Optional[HuffmanNode]:
    """
    Merge the two lowest-frequency nodes until one root remains. The forest is
    re-sorted (stable) before every merge; the lower node becomes the left child.
    Characters first seen earlier win frequency ties.
    """
    if not data:
        return None
    forest: List[HuffmanNode] = [HuffmanNode(freq, char=ch) for ch, freq in Counter(data).items()]
    while len(forest) > 1:
        forest.sort(key=lambda node: node.freq)
        left, right = forest[0], forest[1]
        forest = forest[2:]
        forest.append(HuffmanNode(left.freq + right.freq, left=left, right=right))
    return forest[0]


def _assign(node: HuffmanNode, prefix: str, codes: CodeTable) -> None:
    if node.is_leaf:
        codes[node.char] = prefix
        return
    if node.left is not None:
        _assign(node.left, prefix + "0", codes)
    if node.right is not None:
        _assign(node.right, prefix + "1", codes)


def build_codes(data: str) -> CodeTable:
    """
    Map each distinct character of data to its Huffman bit string.
    A single-symbol alphabet gets the code "0".
    """
    root = build_tree(data)
    codes: CodeTable = {}
    if root is None:
        return codes
    if root.is_leaf:
        codes[root.char] = "0"
        return codes
    _assign(root, "", codes)
    return codes


def encode(data: str, codes: Optional[CodeTable] = None) -> str:
    table = codes if codes is not None else build_codes(data)
    return "".join(table[ch] for ch in data)


def decode(bits: str, root: Optional[HuffmanNode]) -> str:
    """
    Walk the tree per bit, emitting a character at each leaf.
    """
    if root is None:
        if bits:
            raise ValueError("Cannot decode bits without a Huffman tree.")
        return ""
    if root.is_leaf:
        if set(bits) - {"0"}:
            raise ValueError("Single-symbol code only contains '0' bits.")
        return root.char * len(bits)

    out: List[str] = []
    node = root
    for bit in bits:
        if bit == "0":
            node = node.left
        elif bit == "1":
            node = node.right
        else:
            raise ValueError(f"Invalid bit {bit!r}.")
        if node.is_leaf:
            out.append(node.char)
            node = root
    if node is not root:
        raise ValueError("Bit string ends in the middle of a code.")
    return "".join(out)
