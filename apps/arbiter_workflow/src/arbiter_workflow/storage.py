from __future__ import annotations

import json
import sqlite3
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from arbitrai_protocol import ConsensusResult, WorkflowOutput, WorkflowVerdict


class VerdictStorage:
    """Audit log of emitted verdicts. Evidence content is never written here."""

    def __init__(self, db_path: str) -> None:
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._init_db()

    def _init_db(self) -> None:
        self.conn.executescript(
            """
            PRAGMA journal_mode=WAL;

            CREATE TABLE IF NOT EXISTS verdicts (
              workflow_run_id TEXT PRIMARY KEY,
              dispute_id TEXT NOT NULL,
              final_outcome TEXT NOT NULL,
              status TEXT NOT NULL,
              tx_hash TEXT,
              payload_json TEXT NOT NULL,
              created_at INTEGER NOT NULL DEFAULT (strftime('%s', 'now'))
            );

            CREATE INDEX IF NOT EXISTS idx_verdicts_dispute
              ON verdicts(dispute_id);

            CREATE TABLE IF NOT EXISTS model_reasoning (
              reasoning_hash TEXT PRIMARY KEY,
              model_id TEXT NOT NULL,
              reasoning TEXT NOT NULL
            );
            """
        )
        self.conn.commit()

    def is_processed(self, dispute_id: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM verdicts WHERE dispute_id = ? LIMIT 1", (dispute_id.lower(),)
        ).fetchone()
        return row is not None

    def store_result(
        self,
        *,
        verdict: WorkflowVerdict,
        consensus: ConsensusResult,
        output: WorkflowOutput,
        reasonings: Mapping[str, tuple[str, str]],
        tx_hash: str | None = None,
    ) -> None:
        """``reasonings`` maps reasoning hash to (model id, reasoning text)."""
        payload = {
            "output": output.model_dump(by_alias=True, mode="json"),
            "verdict": verdict.model_dump(by_alias=True, mode="json"),
            "consensus": consensus.model_dump(by_alias=True, mode="json"),
            "txHash": tx_hash,
        }
        with self.conn:
            self.conn.execute(
                """
                INSERT OR REPLACE INTO verdicts
                  (workflow_run_id, dispute_id, final_outcome, status, tx_hash, payload_json)
                VALUES
                  (?, ?, ?, ?, ?, ?)
                """,
                (
                    verdict.workflow_run_id,
                    verdict.dispute_id,
                    verdict.final_outcome.value,
                    "submitted" if tx_hash else "emitted",
                    tx_hash,
                    json.dumps(payload, separators=(",", ":")),
                ),
            )
            self.conn.executemany(
                "INSERT OR IGNORE INTO model_reasoning (reasoning_hash, model_id, reasoning) VALUES (?, ?, ?)",
                [(h, model_id, text) for h, (model_id, text) in reasonings.items()],
            )

    @staticmethod
    def _row_payload(row: sqlite3.Row) -> dict[str, Any]:
        payload = json.loads(row["payload_json"])
        payload["status"] = row["status"]
        return payload

    def list_verdicts(self, limit: int = 100) -> list[dict[str, Any]]:
        rows = self.conn.execute(
            "SELECT payload_json, status FROM verdicts ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [self._row_payload(row) for row in rows]

    def get_verdict_by_dispute(self, dispute_id: str) -> dict[str, Any] | None:
        row = self.conn.execute(
            """
            SELECT payload_json, status FROM verdicts
            WHERE dispute_id = ?
            ORDER BY created_at DESC, rowid DESC LIMIT 1
            """,
            (dispute_id.lower(),),
        ).fetchone()
        return self._row_payload(row) if row else None

    def get_reasoning(self, reasoning_hash: str) -> dict[str, str] | None:
        row = self.conn.execute(
            "SELECT model_id, reasoning FROM model_reasoning WHERE reasoning_hash = ?",
            (reasoning_hash.lower(),),
        ).fetchone()
        if not row:
            return None
        return {"modelId": row["model_id"], "reasoning": row["reasoning"]}

    def close(self) -> None:
        self.conn.close()
