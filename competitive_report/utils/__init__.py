"""Shared utilities."""

from competitive_report.utils.tqdm_logging import TqdmLoggingHandler

__all__ = ["TqdmLoggingHandler"]
