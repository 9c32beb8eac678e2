# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Trigger handlers for the asset hub scripting facility."""

__version__ = "0.1.0"
