from __future__ import annotations

import httpx

from .arbitrators import build_panel
from .chain import DisputeReader, VerdictSubmitter
from .config import WorkflowConfig
from .evidence import EvidenceFetcher
from .rpc import JsonRpcClient
from .storage import VerdictStorage
from .workflow import ArbitrationWorkflow, OutputSink


def build_workflow(
    config: WorkflowConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    storage: VerdictStorage | None = None,
    sink: OutputSink | None = None,
) -> ArbitrationWorkflow:
    """Wire a workflow from configuration. Fails on missing secrets before any I/O."""
    config.require_secrets()

    rpc = JsonRpcClient(config.rpc_url, timeout=config.rpc_timeout_sec, transport=transport)
    submitter = None
    if config.submit_onchain:
        submitter = VerdictSubmitter(
            rpc,
            verifier_contract=config.verifier_contract,
            chain_id=config.chain_id,
            operator_private_key=config.operator_private_key,
            gas_limit=config.gas_limit,
            gas_price_multiplier_pct=config.gas_price_multiplier_pct,
        )
    if storage is None and config.sqlite_path:
        storage = VerdictStorage(config.sqlite_path)

    return ArbitrationWorkflow(
        reader=DisputeReader(rpc, config.registry_contract, config.escrow_contract),
        evidence=EvidenceFetcher(
            config.evidence_server_url,
            config.evidence_server_key,
            timeout=config.evidence_timeout_sec,
            transport=transport,
        ),
        arbitrators=build_panel(config, transport=transport),
        operator_private_key=config.operator_private_key,
        submitter=submitter,
        storage=storage,
        sink=sink,
        model_retry_attempts=config.model_retry_attempts,
        max_disputes_per_run=config.max_disputes_per_run,
    )
