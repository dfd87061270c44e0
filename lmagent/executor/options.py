"""Options of the executor loop.

The options are the `executor` section of the settings. They are
exposed here under the name used by the executor API.
"""

# pyright: reportUnusedImport=false
# flake8: noqa

from lmagent.config.config import ExecutorSettings

ExecutorOptions = ExecutorSettings
