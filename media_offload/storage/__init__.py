"""Local storage helpers for the Media Offload Tool."""

from .drive import DriveManager

__all__ = ['DriveManager']
