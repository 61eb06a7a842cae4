from __future__ import annotations

import asyncio
from dataclasses import dataclass

from arbitrai_protocol import (
    DisputeRecord,
    EscrowRecord,
    LegacyTransaction,
    WorkflowOutput,
    decode_dispute_record,
    decode_escrow_record,
    encode_get_dispute_call,
    encode_get_escrow_call,
    private_key_to_address,
    sign_transaction,
)
from arbitrai_protocol.abi import hex_to_bytes
from eth_utils import to_checksum_address

from .errors import RpcError
from .observability import get_logger
from .rpc import JsonRpcClient

logger = get_logger(__name__)


class DisputeReader:
    """Reads dispute and escrow state through ``eth_call``."""

    def __init__(self, rpc: JsonRpcClient, registry_contract: str, escrow_contract: str | None = None) -> None:
        self.rpc = rpc
        self.registry_contract = to_checksum_address(registry_contract)
        self.escrow_contract = to_checksum_address(escrow_contract) if escrow_contract else None

    async def get_dispute(self, dispute_id: str) -> DisputeRecord:
        result = await self.rpc.eth_call(self.registry_contract, encode_get_dispute_call(dispute_id))
        try:
            return decode_dispute_record(result)
        except ValueError as exc:
            raise RpcError("eth_call", f"cannot decode getDispute({dispute_id}) result: {exc}") from exc

    async def get_escrow(self, dispute_id: str) -> EscrowRecord | None:
        if self.escrow_contract is None:
            return None
        result = await self.rpc.eth_call(self.escrow_contract, encode_get_escrow_call(dispute_id))
        try:
            return decode_escrow_record(result)
        except ValueError as exc:
            raise RpcError("eth_call", f"cannot decode getEscrow({dispute_id}) result: {exc}") from exc


@dataclass(slots=True)
class SubmissionResult:
    tx_hash: str
    raw_transaction: str
    nonce: int
    gas_price: int
    sender: str


class VerdictSubmitter:
    """Broadcasts ``submitVerdict`` calldata as a signed EIP-155 legacy transaction."""

    def __init__(
        self,
        rpc: JsonRpcClient,
        *,
        verifier_contract: str,
        chain_id: int,
        operator_private_key: str,
        gas_limit: int = 500_000,
        gas_price_multiplier_pct: int = 120,
    ) -> None:
        self.rpc = rpc
        self.verifier_contract = to_checksum_address(verifier_contract)
        self.chain_id = chain_id
        self._operator_key = operator_private_key
        self.operator_address = private_key_to_address(operator_private_key)
        self.gas_limit = gas_limit
        self.gas_price_multiplier_pct = gas_price_multiplier_pct

    async def submit(self, output: WorkflowOutput) -> SubmissionResult:
        nonce, network_gas_price = await asyncio.gather(
            self.rpc.get_transaction_count(self.operator_address, "pending"),
            self.rpc.gas_price(),
        )
        gas_price = network_gas_price * self.gas_price_multiplier_pct // 100

        tx = LegacyTransaction(
            nonce=nonce,
            gas_price=gas_price,
            gas=self.gas_limit,
            to=self.verifier_contract,
            chain_id=self.chain_id,
            data=hex_to_bytes(output.calldata),
        )
        signed = sign_transaction(tx, self._operator_key)
        tx_hash = await self.rpc.send_raw_transaction(signed.raw_hex)

        logger.info(
            "verdict_broadcast",
            dispute_id=output.dispute_id,
            tx_hash=tx_hash,
            nonce=nonce,
            gas_price=gas_price,
            sender=self.operator_address,
        )
        return SubmissionResult(
            tx_hash=tx_hash,
            raw_transaction=signed.raw_hex,
            nonce=nonce,
            gas_price=gas_price,
            sender=self.operator_address,
        )
