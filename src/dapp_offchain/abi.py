"""
Contract ABIs

Minimal ABIs for the XToken ERC-20 and the XNonFunToken NFT, covering only
the functions and events the engine uses. Full Hardhat artifacts can be used
instead through the token_abi_path / nft_abi_path settings.
"""

import json
from pathlib import Path
from typing import Any, Dict, List


def _fn(name: str, inputs: List[tuple], outputs: List[str], mutability: str = "view") -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "stateMutability": mutability,
        "inputs": [{"name": arg, "type": typ} for arg, typ in inputs],
        "outputs": [{"name": "", "type": typ} for typ in outputs],
    }


def _event(name: str, inputs: List[tuple]) -> Dict[str, Any]:
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [{"name": arg, "type": typ, "indexed": indexed} for arg, typ, indexed in inputs],
    }


TOKEN_ABI: List[Dict[str, Any]] = [
    _fn("name", [], ["string"]),
    _fn("symbol", [], ["string"]),
    _fn("decimals", [], ["uint8"]),
    _fn("balanceOf", [("account", "address")], ["uint256"]),
    _fn("allowance", [("owner", "address"), ("spender", "address")], ["uint256"]),
    _fn("transfer", [("to", "address"), ("amount", "uint256")], ["bool"], "nonpayable"),
    _fn("approve", [("spender", "address"), ("amount", "uint256")], ["bool"], "nonpayable"),
    _event(
        "TokensTransferred",
        [("from", "address", True), ("to", "address", True), ("amount", "uint256", False)],
    ),
]

NFT_ABI: List[Dict[str, Any]] = [
    _fn("name", [], ["string"]),
    _fn("symbol", [], ["string"]),
    _fn("mintFee", [], ["uint256"]),
    _fn("tokenURI", [("tokenId", "uint256")], ["string"]),
    _fn("ownerOf", [("tokenId", "uint256")], ["address"]),
    _fn("mint", [], ["uint256"], "nonpayable"),
    _event("NFTMinted", [("owner", "address", True), ("tokenId", "uint256", True)]),
    _event(
        "NFTTransferred",
        [("from", "address", True), ("to", "address", True), ("tokenId", "uint256", True)],
    ),
]


def load_artifact_abi(path: Path) -> List[Dict[str, Any]]:
    """
    Load the ABI from a Hardhat artifact or a plain ABI JSON file

    Args:
        path: Path to artifacts/contracts/X.sol/X.json or an ABI list file

    Returns:
        ABI list
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        if "abi" not in data:
            raise ValueError(f"No 'abi' key in artifact {path}")
        return data["abi"]
    return data
