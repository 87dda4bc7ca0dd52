"""
Utils Module
Logging, errors and reliability primitives
"""
from .logger import setup_logger, setup_pipeline_logging
from .exceptions import (
    PipelineError,
    ConfigurationMissingError,
    InvalidInputError,
    SourceFailureError,
    RankingError,
    MalformedRankingLineError,
    EnrichmentError,
    EmptyWorkingSetError,
    CoverAssetError,
    PublishError,
    TaskFailedError,
    TaskTimeoutError,
    CredentialError,
    UnsupportedProviderError,
    LLMError,
    PipelineTimeoutError,
)
from .retry import BackoffStrategy, RetryExecutor, RetryPolicy
from .polling import AsyncTaskWaiter

__all__ = [
    "setup_logger",
    "setup_pipeline_logging",
    "PipelineError",
    "ConfigurationMissingError",
    "InvalidInputError",
    "SourceFailureError",
    "RankingError",
    "MalformedRankingLineError",
    "EnrichmentError",
    "EmptyWorkingSetError",
    "CoverAssetError",
    "PublishError",
    "TaskFailedError",
    "TaskTimeoutError",
    "CredentialError",
    "UnsupportedProviderError",
    "LLMError",
    "PipelineTimeoutError",
    "BackoffStrategy",
    "RetryExecutor",
    "RetryPolicy",
    "AsyncTaskWaiter",
]
