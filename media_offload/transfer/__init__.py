"""Transfer engine for the Media Offload Tool."""

from .classifier import Classifier
from .guard import DuplicateGuard, GuardDecision
from .staging import StagingArea
from .pipeline import TransferPipeline, TransferRun

__all__ = [
    'Classifier',
    'DuplicateGuard',
    'GuardDecision',
    'StagingArea',
    'TransferPipeline',
    'TransferRun',
]
