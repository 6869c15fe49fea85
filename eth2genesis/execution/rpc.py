from itertools import count
from typing import Any, Optional

import requests

from eth2genesis.exceptions import ExecutionBlockError
from eth2genesis.execution.block import ExecutionBlock
from eth2genesis.execution.json_block import block_from_json, parse_quantity

DEFAULT_TIMEOUT = 30

_request_ids = count(1)


def rpc_call(url: str, method: str, params: list, session: Optional[requests.Session] = None,
             timeout: float = DEFAULT_TIMEOUT) -> Any:
    """
    Makes a single JSON-RPC 2.0 call over HTTP. There are no retries: transport errors propagate.
    """
    payload = {"jsonrpc": "2.0", "id": next(_request_ids), "method": method, "params": params}
    post = session.post if session is not None else requests.post
    response = post(url, json=payload, timeout=timeout)
    response.raise_for_status()
    body = response.json()
    if body.get("error") is not None:
        error = body["error"]
        raise ExecutionBlockError(f"{method} failed: {error.get('message', error)}")
    if "result" not in body:
        raise ExecutionBlockError(f"{method} returned no result")
    return body["result"]


def fetch_latest_block(url: str, session: Optional[requests.Session] = None,
                       timeout: float = DEFAULT_TIMEOUT) -> ExecutionBlock:
    """
    Fetches the latest block, with full transactions, from an execution node.
    """
    number = parse_quantity(rpc_call(url, "eth_blockNumber", [], session, timeout), "eth_blockNumber")
    result = rpc_call(url, "eth_getBlockByNumber", [hex(number), True], session, timeout)
    if result is None:
        raise ExecutionBlockError(f"execution node has no block {number}")
    return block_from_json(result)
