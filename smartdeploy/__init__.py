"""
SmartDeploy - deployment orchestration client.

This package classifies scanned projects into deployment targets, tracks the
progress of a remote deployment streamed over a persistent connection, and
reconciles in-progress config edits against the persisted deployment record.
"""

__version__ = "0.1.0"
__author__ = "SmartDeploy"
