"""
eiftool Shared Module
=====================

Configuration, logging, console and finding models shared by the EIF
parser, its engine and its command-line interface.
"""

from shared.config import EifToolConfig, get_config

__all__ = ["EifToolConfig", "get_config"]
