# Copyright Red Hat
#
# tests/migration/__init__.py - Schema drift migration tests
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
