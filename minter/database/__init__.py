from .deployment_ledger import DeploymentLedger

__all__ = ['DeploymentLedger']
