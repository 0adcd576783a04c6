# SPDX-License-Identifier: BSD-3-Clause

"""Package version info."""

from __future__ import annotations

import importlib.metadata

VERSION_STRING = importlib.metadata.version("html-validator-plugin")

USER_AGENT = f"html-validator-plugin/{VERSION_STRING}"
"""Value of the C{User-Agent} header sent to the checker service."""
