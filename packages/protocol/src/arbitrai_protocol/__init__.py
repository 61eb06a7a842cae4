from .abi import AbiReader, CodecError, Dynamic, encode_params
from .consensus import CONSENSUS_THRESHOLD, apply_consensus, simulate_what_if
from .contracts import (
    build_workflow_output,
    decode_dispute_record,
    decode_escrow_record,
    encode_get_dispute_call,
    encode_get_escrow_call,
    encode_submit_verdict_calldata,
)
from .hashing import content_hash, eth_signed_message_hash, function_selector, keccak_hex, reasoning_hash
from .schema_validation import validate_schema
from .signatures import (
    private_key_to_address,
    recover_signer_eip191,
    sign_hash_eip191,
    verify_signature_eip191,
)
from .transactions import LegacyTransaction, SignedTransaction, decode_raw_transaction, recover_sender, sign_transaction
from .types import (
    ArbitrationPrompt,
    ConsensusResult,
    DisputeRecord,
    DisputeStatus,
    EscrowRecord,
    Evidence,
    ModelVote,
    ParsedModelVerdict,
    RawModelResponse,
    VerdictOutcome,
    WorkflowOutput,
    WorkflowVerdict,
)
from .verdict import (
    SUBMIT_VERDICT_SIGNATURE,
    VERDICT_TUPLE_TYPE,
    build_model_vote,
    build_workflow_verdict,
    compute_verdict_hash,
    compute_verdict_hash_hex,
    encode_verdict,
    new_workflow_run_id,
    recover_verdict_signer,
    sign_verdict,
    summarize_verdict,
)

__all__ = [
    "AbiReader",
    "CodecError",
    "Dynamic",
    "encode_params",
    "CONSENSUS_THRESHOLD",
    "apply_consensus",
    "simulate_what_if",
    "build_workflow_output",
    "decode_dispute_record",
    "decode_escrow_record",
    "encode_get_dispute_call",
    "encode_get_escrow_call",
    "encode_submit_verdict_calldata",
    "content_hash",
    "eth_signed_message_hash",
    "function_selector",
    "keccak_hex",
    "reasoning_hash",
    "validate_schema",
    "private_key_to_address",
    "recover_signer_eip191",
    "sign_hash_eip191",
    "verify_signature_eip191",
    "LegacyTransaction",
    "SignedTransaction",
    "decode_raw_transaction",
    "recover_sender",
    "sign_transaction",
    "ArbitrationPrompt",
    "ConsensusResult",
    "DisputeRecord",
    "DisputeStatus",
    "EscrowRecord",
    "Evidence",
    "ModelVote",
    "ParsedModelVerdict",
    "RawModelResponse",
    "VerdictOutcome",
    "WorkflowOutput",
    "WorkflowVerdict",
    "SUBMIT_VERDICT_SIGNATURE",
    "VERDICT_TUPLE_TYPE",
    "build_model_vote",
    "build_workflow_verdict",
    "compute_verdict_hash",
    "compute_verdict_hash_hex",
    "encode_verdict",
    "new_workflow_run_id",
    "recover_verdict_signer",
    "sign_verdict",
    "summarize_verdict",
]
