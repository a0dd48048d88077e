from .deployment import (
    DeploymentRecord,
    NFTMetadata,
    ConfirmationResult,
    PublishResult,
    ImageCheckResult,
    TransactionStatus,
    STEP_METADATA_PREPARED,
    STEP_TRANSACTION_SENT,
    STEP_NFT_DEPLOYED,
    STEP_DEPLOYMENT_FAILED,
    REQUIRED_METADATA_FIELDS,
)

__all__ = [
    'DeploymentRecord',
    'NFTMetadata',
    'ConfirmationResult',
    'PublishResult',
    'ImageCheckResult',
    'TransactionStatus',
    'STEP_METADATA_PREPARED',
    'STEP_TRANSACTION_SENT',
    'STEP_NFT_DEPLOYED',
    'STEP_DEPLOYMENT_FAILED',
    'REQUIRED_METADATA_FIELDS',
]
