# Copyright Red Hat
#
# tests/diff/__init__.py - Schema drift diff tests
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
