"""
Data models for NFT deployments and the deployment ledger
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, List, Any


STEP_METADATA_PREPARED = "metadata_prepared"
STEP_TRANSACTION_SENT = "transaction_sent"
STEP_NFT_DEPLOYED = "nft_deployed"
STEP_DEPLOYMENT_FAILED = "deployment_failed"

REQUIRED_METADATA_FIELDS = ("name", "symbol", "description", "image")


class TransactionStatus:
    """Signature states as reported by the RPC node"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"

    TERMINAL_SUCCESS = (CONFIRMED, FINALIZED)


@dataclass(frozen=True)
class NFTMetadata:
    """Descriptive metadata for a single NFT"""
    name: str
    symbol: str
    description: str
    image: str
    attributes: Optional[List[Dict[str, Any]]] = None
    extra: Dict[str, Any] = field(default_factory=dict)  # Unknown keys, published as-is

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NFTMetadata":
        known = set(REQUIRED_METADATA_FIELDS) | {"attributes"}
        return cls(
            name=data["name"],
            symbol=data["symbol"],
            description=data["description"],
            image=data["image"],
            attributes=data.get("attributes"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the metadata JSON shape"""
        data = {
            "name": self.name,
            "symbol": self.symbol,
            "description": self.description,
            "image": self.image,
        }
        if self.attributes is not None:
            data["attributes"] = self.attributes
        data.update(self.extra)
        return data


@dataclass
class DeploymentRecord:
    """A single append-only ledger entry"""
    step: str
    timestamp: str
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentRecord":
        details = {k: v for k, v in data.items() if k not in ("step", "timestamp")}
        return cls(step=data.get("step", ""), timestamp=data.get("timestamp", ""), details=details)

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step, **self.details, "timestamp": self.timestamp}


@dataclass
class ConfirmationResult:
    """Terminal successful status of a submitted transaction"""
    signature: str
    confirmation_status: str  # confirmed or finalized
    attempts: int
    slot: Optional[int] = None
    confirmations: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confirmationStatus": self.confirmation_status,
            "slot": self.slot,
            "confirmations": self.confirmations,
            "attempts": self.attempts,
        }


@dataclass
class PublishResult:
    """Outcome of publishing metadata: pinned, or recovered with a data URI"""
    uri: str
    outcome: str  # succeeded, recovered
    ipfs_hash: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.outcome == "recovered"


@dataclass
class ImageCheckResult:
    """Outcome of the best-effort image reachability check"""
    url: str
    outcome: str  # succeeded, recovered, skipped
    status_code: Optional[int] = None
    content_type: Optional[str] = None
    error: Optional[str] = None

    @property
    def reachable(self) -> bool:
        return self.outcome == "succeeded"
