# Copyright Red Hat
#
# schemadrift/diff/optypes.py - Schema drift diff operation types
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree diff operation types
"""
from enum import Enum


class OpType(Enum):
    """
    Enum for the different tree diff operation types.
    """

    ADD = "add"
    REMOVE = "remove"
    UPDATE = "update"
    MOVE = "move"
    RENAME = "rename"
