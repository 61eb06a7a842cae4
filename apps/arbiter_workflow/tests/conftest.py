from __future__ import annotations

from typing import Any

import pytest
from eth_account import Account

from arbiter_workflow.workflow import ArbitrationWorkflow
from workflow_fakes import FakeReader, StaticEvidence, make_dispute, make_panel, verdict_json


@pytest.fixture()
def operator() -> Any:
    return Account.create()


@pytest.fixture()
def build(operator: Any) -> Any:
    def _build(
        *,
        reader: Any = None,
        evidence: Any = None,
        arbitrators: Any = None,
        **kwargs: Any,
    ) -> ArbitrationWorkflow:
        return ArbitrationWorkflow(
            reader=reader or FakeReader(make_dispute()),
            evidence=evidence or StaticEvidence(),
            arbitrators=arbitrators
            or make_panel(
                verdict_json("FAVOR_PARTY_A", 90),
                verdict_json("FAVOR_PARTY_A", 80),
                verdict_json("FAVOR_PARTY_B", 70),
            ),
            operator_private_key=operator.key.hex(),
            clock=lambda: 1_700_000_500,
            **kwargs,
        )

    return _build
