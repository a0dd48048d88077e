"""
Append-only JSON ledger of deployment steps
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Optional, Dict, List

from ..models import (
    DeploymentRecord,
    STEP_NFT_DEPLOYED,
    STEP_DEPLOYMENT_FAILED,
)


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string with millisecond precision"""
    now = datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"


class DeploymentLedger:
    """Single-writer append-only log of DeploymentRecord entries"""

    def __init__(self, path: str = 'deployment-index.json'):
        self.path = path
        self.logger = logging.getLogger('nft_deployer')

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def read_all(self) -> List[Dict]:
        """Return every record in insertion order (empty if no ledger yet)"""
        if not self.exists():
            return []
        with open(self.path, 'r', encoding='utf-8') as f:
            records = json.load(f)
        if not isinstance(records, list):
            raise ValueError(f"Deployment index is not a JSON array: {self.path}")
        return records

    def append(self, entry: Dict) -> Dict:
        """Stamp entry with the current time and append it to the ledger"""
        if 'step' not in entry:
            raise ValueError("Ledger entries require a 'step'")

        records = self.read_all()
        details = {k: v for k, v in entry.items() if k not in ('step', 'timestamp')}
        record = DeploymentRecord(step=entry['step'], timestamp=utc_timestamp(), details=details).to_dict()
        records.append(record)

        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(records, f, indent=2, ensure_ascii=False)

        print(f"📝 Updated deployment index: {record['step']}")
        self.logger.debug(f"Ledger append {record['step']} -> {self.path}")
        return record

    def filter_by_step(self, step: Optional[str] = None) -> List[Dict]:
        """Records matching step (all records when step is empty)"""
        records = self.read_all()
        if not step:
            return records
        return [r for r in records if r.get('step') == step]

    def latest_successful(self) -> Optional[Dict]:
        """Most recent nft_deployed record, if any"""
        deployed = [
            r for r in self.filter_by_step(STEP_NFT_DEPLOYED)
            if r.get('success', True)
        ]
        return deployed[-1] if deployed else None

    def stats(self) -> Dict:
        """Success/failure counts across all deployment attempts"""
        records = self.read_all()
        successful = sum(1 for r in records if r.get('step') == STEP_NFT_DEPLOYED)
        failed = sum(1 for r in records if r.get('step') == STEP_DEPLOYMENT_FAILED)
        total = successful + failed

        return {
            'totalDeployments': total,
            'successfulDeployments': successful,
            'failedDeployments': failed,
            # Half-up rounding, so 12.5 -> 13
            'successRate': int(successful / total * 100 + 0.5) if total > 0 else 0,
            'lastDeployment': records[-1].get('timestamp') if records else None,
        }
