# Copyright Red Hat
#
# tests/schema/__init__.py - Schema drift schema tests
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
