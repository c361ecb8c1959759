# services/__init__.py
from .account_service import AccountService
from .permission_service import PermissionService
from .record_service import RecordService
from .ledger_service import (
     compute_content_hash,
     compute_block_hash,
     recompute_hash,
     get_chain,
     append_block,
     verify_chain,
     ChainFailure,
     ChainVerification,
     GENESIS_HASH,
)

__all__ = [
     "AccountService",
     "PermissionService",
     "RecordService",
     "compute_content_hash",
     "compute_block_hash",
     "recompute_hash",
     "get_chain",
     "append_block",
     "verify_chain",
     "ChainFailure",
     "ChainVerification",
     "GENESIS_HASH",
]
