# pyright: reportUnusedImport=false
# flake8: noqa

from .instructor import (
    Instructor,
    DefaultInstructor,
    Qwen3Instructor,
    get_instructor,
)
from .parse_helpers import (
    parse_partial_json,
    repair_json,
    flatten_final_answer,
)
