"""Command implementations for the Media Offload Tool."""

from .transfer import TransferCommand
from .checkpoint import cmd_checkpoint_info, cmd_checkpoint_forget
from .staging import cmd_purge_staging

__all__ = ['TransferCommand', 'cmd_checkpoint_info', 'cmd_checkpoint_forget', 'cmd_purge_staging']
