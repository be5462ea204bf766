# util/types.py
from typing import Literal


# How a job submission partitions its items into provider groups.
GroupBy = Literal["language", "none"]
