"""Checkpoint persistence for the Media Offload Tool."""

from .manager import CheckpointStore

__all__ = ['CheckpointStore']
