# hypermap_id/tba/__init__.py
"""
Hypermap ID TBA

Token-bound account address prediction.

Updated: 2025-01-20
Version: 0.1.0
"""

from .predict import (
    AccountScheme,
    TbaPrediction,
    TbaPredictor,
    create2_address,
    proxy_init_code_hash,
    compute_proxy_address,
    account_init_code,
    predict_account_address,
)

__all__ = [
    "AccountScheme",
    "TbaPrediction",
    "TbaPredictor",
    "create2_address",
    "proxy_init_code_hash",
    "compute_proxy_address",
    "account_init_code",
    "predict_account_address",
]
