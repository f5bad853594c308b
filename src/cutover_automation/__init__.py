"""Cluster configuration cutover toolkit."""

from .hub import execute_rpc, update_conf_files
from .patch import update_configuration_file
from .types import Directive

__all__ = ["Directive", "execute_rpc", "update_conf_files", "update_configuration_file"]
