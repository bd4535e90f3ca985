# pyworkqueue/server/context.py
from dataclasses import dataclass

from pyworkqueue.common.job import Job
from pyworkqueue.common.states import BaseState


@dataclass
class ElectStateContext:
    """What a filter sees after one execution; filters may swap ``candidate_state``."""

    job: Job
    candidate_state: BaseState
