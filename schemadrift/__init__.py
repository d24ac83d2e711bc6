# Copyright Red Hat
#
# schemadrift/__init__.py - Schema drift package initialisation
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Schemadrift top-level package.
"""
from ._schemadrift import *  # noqa: F401, F403
from ._schemadrift import __all__  # noqa: F401

__version__ = "0.1.0"
